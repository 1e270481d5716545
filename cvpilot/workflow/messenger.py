"""Controller side of the background message protocol."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cvpilot import config
from cvpilot.background import BackgroundOrchestrator

_LOGGER = logging.getLogger(__name__)


class Messenger:
    """Delivers a protocol message and returns the response.

    None means the other side never answered.
    """

    async def send(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class LocalMessenger(Messenger):
    """Talks to an orchestrator living in the same process."""

    def __init__(self, orchestrator: BackgroundOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def send(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.orchestrator.handle_message(message)


class HttpMessenger(Messenger):
    """Posts messages to a background service's ``/api/messages`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = (base_url or config.BACKGROUND_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def send(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post("/api/messages", json=message)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError):
            _LOGGER.warning("No answer from background service for %s", message.get("type"), exc_info=True)
            return None

        return payload if isinstance(payload, dict) else None
