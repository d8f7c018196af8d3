"""HTTP client for the report-generation endpoint."""

from __future__ import annotations

import json
from typing import Any

import aiohttp

from medvoice.config import Settings, get_settings
from medvoice.logging_config import get_logger, sanitize_for_log
from medvoice.services.reports.exceptions import (
    ReportConnectionError,
    ReportResponseError,
)
from medvoice.services.reports.protocol import ReportRequest

logger: Any = get_logger(__name__)


class ReportClient:
    """POSTs finished transcripts to the report endpoint.

    Opens a short-lived aiohttp session per request; a report is generated at
    most once per call, so there is nothing to pool.
    """

    def __init__(self, settings: Settings | None = None, url: str | None = None) -> None:
        self._settings = settings or get_settings()
        self._url = url or self._settings.report_api_url

    async def generate(self, request: ReportRequest) -> dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self._settings.collaborator_timeout_seconds)
        payload = request.to_payload()
        logger.debug(
            f"Requesting report for session {request.session_id}: "
            f"{sanitize_for_log(payload['sessionDetail'])}"
        )

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self._url,
                    json=payload,
                    headers=self._settings.collaborator_headers,
                ) as resp:
                    body = await resp.text()
                    if resp.status >= 400:
                        raise ReportResponseError(
                            _error_from_body(body) or f"Report endpoint returned {resp.status}",
                            status=resp.status,
                        )
                    try:
                        data = json.loads(body)
                    except ValueError as e:
                        raise ReportResponseError(f"Report endpoint returned invalid JSON: {e}") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Report endpoint unreachable: {e}")
            raise ReportConnectionError(f"Report service unavailable: {e}") from e

        if not isinstance(data, dict):
            raise ReportResponseError("Report endpoint returned a non-object body")

        logger.info(
            f"Report generated for session {request.session_id} "
            f"({len(request.messages)} utterances)"
        )
        return data


def _error_from_body(body: str) -> str | None:
    """Pull ``error`` out of a JSON error payload, if there is one."""
    try:
        parsed = json.loads(body)
    except ValueError:
        return body.strip() or None
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    return None
