"""Clockify time tracking over httpx.

Only the calls the reminders and clock commands need: who am I, am I
tracking, start an entry, stop the running entry. Methods log failures
instead of raising: the clock calls return a plain bool, and the tracking
query returns None when the state cannot be determined.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = 15.0
CLOCKIFY_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _clockify_time(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime(CLOCKIFY_TIME_FORMAT)


@runtime_checkable
class TimeTracker(Protocol):
    """Minimal time-tracking contract."""

    async def is_tracking(self) -> bool | None:
        """Whether an entry is running; None when the state is unknown."""
        ...

    async def clock_in(self, description: str = "Working") -> bool: ...

    async def clock_out(self) -> bool: ...


class ClockifyTracker:
    """Implements TimeTracker against the Clockify REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        workspace_id: str | None = None,
        default_project_id: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.clockify_api_key
        self._workspace_id = (
            workspace_id if workspace_id is not None else settings.clockify_workspace_id
        )
        self._default_project_id = (
            default_project_id
            if default_project_id is not None
            else settings.clockify_default_project_id
        )
        self._base_url = (base_url or settings.clockify_api_url).rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._workspace_id)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._base_url}/workspaces/{self._workspace_id}",
            headers={"X-Api-Key": self._api_key},
            timeout=_TIMEOUT,
            transport=self._transport,
        )

    async def _active_user(self, client: httpx.AsyncClient) -> dict[str, Any] | None:
        resp = await client.get("/users")
        resp.raise_for_status()
        return next((u for u in resp.json() if u.get("status") == "ACTIVE"), None)

    async def is_tracking(self) -> bool | None:
        """True when the active user has a time entry in progress.

        None when Clockify is unconfigured or unreachable.
        """
        if not self.configured:
            logger.warning("Clockify is not configured; tracking state unknown")
            return None
        try:
            async with self._client() as client:
                user = await self._active_user(client)
                if user is None:
                    logger.error("No active Clockify user found")
                    return None
                resp = await client.get(
                    f"/user/{user['id']}/time-entries", params={"in-progress": "true"}
                )
                resp.raise_for_status()
                return bool(resp.json())
        except Exception:
            logger.exception("Error checking tracking status")
            return None

    async def clock_in(self, description: str = "Working", project_id: str | None = None) -> bool:
        """Start a billable entry on *project_id* (default project if omitted)."""
        project = project_id or self._default_project_id
        if not self.configured:
            logger.warning("Clockify is not configured; cannot clock in")
            return False
        if not project:
            logger.error("CLOCKIFY_DEFAULT_PROJECT_ID not set; cannot clock in")
            return False
        try:
            async with self._client() as client:
                user = await self._active_user(client)
                if user is None:
                    logger.error("No active Clockify user found")
                    return False
                resp = await client.post(
                    f"/user/{user['id']}/time-entries",
                    json={
                        "start": _clockify_time(datetime.now(UTC)),
                        "projectId": project,
                        "billable": True,
                        "description": description,
                    },
                )
                resp.raise_for_status()
        except Exception:
            logger.exception("Error clocking in")
            return False
        logger.info("Clocked in (project=%s)", project)
        return True

    async def clock_out(self) -> bool:
        """Stop the running entry."""
        if not self.configured:
            logger.warning("Clockify is not configured; cannot clock out")
            return False
        try:
            async with self._client() as client:
                user = await self._active_user(client)
                if user is None:
                    logger.error("No active Clockify user found")
                    return False
                resp = await client.patch(
                    f"/user/{user['id']}/time-entries",
                    json={"end": _clockify_time(datetime.now(UTC))},
                )
                resp.raise_for_status()
        except Exception:
            logger.exception("Error clocking out")
            return False
        logger.info("Clocked out")
        return True
