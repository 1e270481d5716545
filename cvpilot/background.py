"""Background orchestrator answering the workflow's inter-context messages."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from cvpilot.errors import CVPilotError, RequestFailed
from cvpilot.services.token_manager import TokenManager

_LOGGER = logging.getLogger(__name__)

Message = Dict[str, Any]
Handler = Callable[[Message], Awaitable[Dict[str, Any]]]


class BackgroundOrchestrator:
    """Dispatch ``AUTH_GOOGLE``, ``GET_AUTH_STATE``, ``SIGN_OUT`` and ``ANALYZE``.

    Every response has the shape ``{success, data?|error?, code?}``; failures
    from the token manager are rendered with :meth:`CVPilotError.to_payload`.
    """

    def __init__(self, token_manager: TokenManager) -> None:
        self.token_manager = token_manager
        self._handlers: Dict[str, Handler] = {
            "AUTH_GOOGLE": self._auth_google,
            "GET_AUTH_STATE": self._get_auth_state,
            "SIGN_OUT": self._sign_out,
            "ANALYZE": self._analyze,
        }

    async def handle_message(self, message: Message) -> Dict[str, Any]:
        message_type = message.get("type") if isinstance(message, dict) else None
        handler = self._handlers.get(message_type)
        if handler is None:
            return RequestFailed(f"Unknown message type: {message_type}", code="UNKNOWN_MESSAGE").to_payload()

        try:
            return await handler(message)
        except CVPilotError as exc:
            _LOGGER.info("%s failed: %s (%s)", message_type, exc.message, exc.code)
            return exc.to_payload()
        except Exception:
            _LOGGER.exception("%s failed unexpectedly", message_type)
            return RequestFailed(
                "Background service error", code="INTERNAL_ERROR"
            ).to_payload()

    async def _auth_google(self, message: Message) -> Dict[str, Any]:
        identity = self.token_manager.identity
        if identity is None:
            raise RequestFailed("Google sign-in is not available", code="IDENTITY_UNAVAILABLE")

        try:
            token = await identity.get_token(interactive=True)
        except Exception as exc:  # provider errors carry their own message
            raise RequestFailed(str(exc) or "Google sign-in failed", code="IDENTITY_UNAVAILABLE") from exc
        if not token:
            raise RequestFailed("Google sign-in was cancelled", code="IDENTITY_UNAVAILABLE")

        session = await self.token_manager.sign_in_with_google(token)
        return {"success": True, "data": {"authenticated": session.authenticated}}

    async def _get_auth_state(self, message: Message) -> Dict[str, Any]:
        state = self.token_manager.get_auth_state()
        return {"success": True, "authenticated": state["authenticated"]}

    async def _sign_out(self, message: Message) -> Dict[str, Any]:
        await self.token_manager.sign_out()
        return {"success": True}

    async def _analyze(self, message: Message) -> Dict[str, Any]:
        payload = await self.token_manager.analyze_match(
            message.get("vacancyText") or "",
            message.get("resumeText") or "",
            message.get("vacancyTitle"),
            message.get("companyName"),
        )
        return {"success": True, "data": payload.get("data")}
