"""Error taxonomy shared by the token manager, the background and the workflow."""

from __future__ import annotations

from typing import Any, Dict, Optional

DEFAULT_ERROR_CODE = "UNKNOWN_ERROR"


class CVPilotError(Exception):
    """Base class for every failure surfaced to the workflow."""

    code = DEFAULT_ERROR_CODE

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.status = status

    def to_payload(self) -> Dict[str, Any]:
        """Render the error as a message protocol response."""
        payload: Dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        if self.status is not None:
            payload["status"] = self.status
        return payload


class AuthExpired(CVPilotError):
    """The session could not be refreshed and has been wiped."""

    code = "AUTH_EXPIRED"

    def __init__(self, message: str = "AUTH_EXPIRED", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class LimitExceeded(CVPilotError):
    """The daily analysis quota has been reached."""

    code = "LIMIT_EXCEEDED"

    def __init__(self, message: str = "Daily analysis limit reached", **kwargs: Any) -> None:
        kwargs.setdefault("status", 403)
        super().__init__(message, **kwargs)


class RequestFailed(CVPilotError):
    """Generic remote failure; the user may retry it."""


class ValidationFailed(CVPilotError):
    """Local input was rejected before reaching the network."""

    code = "VALIDATION_FAILED"


_LIMIT_CODES = {"LIMIT_EXCEEDED", "RATE_LIMIT_EXCEEDED"}


def error_from_response(
    response: Optional[Dict[str, Any]],
    default_message: str = "Request failed",
) -> CVPilotError:
    """Rebuild a typed error from a failed message protocol response."""
    if not response:
        return RequestFailed(default_message, code="NO_RESPONSE")

    message = response.get("error") or default_message
    if not isinstance(message, str):
        message = default_message
    code = response.get("code")
    status = response.get("status")

    if code in _LIMIT_CODES:
        return LimitExceeded(message, code=code, status=status)
    if code == AuthExpired.code or message == "AUTH_EXPIRED":
        return AuthExpired(message, status=status)
    if code == ValidationFailed.code:
        return ValidationFailed(message, status=status)
    return RequestFailed(message, code=code or DEFAULT_ERROR_CODE, status=status)
