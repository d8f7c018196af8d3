"""Logging configuration using Loguru.

Console logging is always on; production additionally writes a rotating
application log and an error-only log. Patient-entered notes, agent prompts
and e-mail addresses must go through ``sanitize_for_log`` before they are
logged.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{line} | {message}"

REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset({"notes", "agent_prompt", "agentPrompt", "collaborator_api_token"})
OWNER_FIELDS = frozenset({"created_by", "createdBy"})


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_file: bool = True,
) -> None:
    """Configure application logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        enable_file: Whether to enable file logging
    """
    logger.remove()
    # Records logged without get_logger() still render
    logger.configure(extra={"name": "medvoice"})

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=not enable_file,  # Variable values can include transcript text
    )

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        sinks = (
            ("medvoice_{time:YYYY-MM-DD}.log", level, "100 MB", "30 days"),
            ("medvoice_errors_{time:YYYY-MM-DD}.log", "ERROR", "50 MB", "90 days"),
        )
        for filename, sink_level, rotation, retention in sinks:
            logger.add(
                log_path / filename,
                format=FILE_FORMAT,
                level=sink_level,
                rotation=rotation,
                retention=retention,
                compression="gz",
                enqueue=True,
                backtrace=True,
                diagnose=False,
            )

    logger.bind(name=__name__).info(f"Logging initialized at {level} level")


def get_logger(name: str) -> "logger":
    """Get a logger bound to a module name.

    Usage:
        from medvoice.logging_config import get_logger
        logger = get_logger(__name__)
    """
    return logger.bind(name=name)


def mask_email(email: str) -> str:
    """Mask an e-mail address: jane.doe@example.com -> ja***@example.com."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"


def sanitize_for_log(data: dict) -> dict:
    """Copy ``data`` with patient content redacted and e-mail addresses masked.

    Nested dicts (e.g. the selected doctor) are sanitized recursively.
    """
    result = {}
    for key, value in data.items():
        if key in SENSITIVE_FIELDS:
            result[key] = REDACTED
        elif isinstance(value, str) and (key in OWNER_FIELDS or "email" in key.lower()):
            result[key] = mask_email(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_log(value)
        else:
            result[key] = value
    return result
