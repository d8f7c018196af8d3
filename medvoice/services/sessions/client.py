"""HTTP client for the session lookup endpoint."""

from __future__ import annotations

from typing import Any

import aiohttp
from pydantic import ValidationError

from medvoice.config import Settings, get_settings
from medvoice.core.context import SessionContext
from medvoice.logging_config import get_logger, sanitize_for_log
from medvoice.services.sessions.exceptions import (
    SessionLookupError,
    SessionNotFoundError,
    SessionUnauthorizedError,
)

logger: Any = get_logger(__name__)


class SessionLookupClient:
    """Fetches a consultation session by id (``GET ?sessionID=``)."""

    def __init__(self, settings: Settings | None = None, url: str | None = None) -> None:
        self._settings = settings or get_settings()
        self._url = url or self._settings.session_api_url

    async def get(self, session_id: str) -> SessionContext:
        if not session_id:
            raise SessionLookupError("No session ID given.")

        timeout = aiohttp.ClientTimeout(total=self._settings.collaborator_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(
                    self._url,
                    params={"sessionID": session_id},
                    headers=self._settings.collaborator_headers,
                ) as resp:
                    if resp.status == 404:
                        logger.warning(f"Session not found: {session_id}")
                        raise SessionNotFoundError(session_id)
                    if resp.status in (401, 403):
                        logger.warning(f"Session lookup refused ({resp.status}): {session_id}")
                        raise SessionUnauthorizedError("Unauthorized access to session.")
                    if resp.status >= 400:
                        body = await resp.text()
                        raise SessionLookupError(
                            f"Failed to load session details: {resp.status} {body}"
                        )
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise SessionLookupError(f"Session endpoint returned invalid JSON: {e}") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Session endpoint unreachable: {e}")
            raise SessionLookupError(f"Failed to load session details: {e}") from e

        if not isinstance(data, dict):
            raise SessionLookupError("Session endpoint returned a non-object body")

        try:
            context = SessionContext.model_validate(data)
        except ValidationError as e:
            raise SessionLookupError(f"Session details are malformed: {e}") from e

        logger.debug(f"Loaded session {session_id}: {sanitize_for_log(data)}")
        return context
