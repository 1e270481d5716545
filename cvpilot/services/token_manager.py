"""Authenticated access to the Analysis Service with transparent token refresh."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from cvpilot import config
from cvpilot.errors import AuthExpired, DEFAULT_ERROR_CODE, LimitExceeded, RequestFailed
from cvpilot.models import Session
from cvpilot.services import token_store
from cvpilot.services.identity import IdentityProvider

_LOGGER = logging.getLogger(__name__)


def _parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_envelope(payload: Any) -> Dict[str, Any]:
    """Return the ``error`` object of a service response, or an empty dict."""
    if not isinstance(payload, dict):
        return {}
    error = payload.get("error")
    if isinstance(error, dict):
        return error
    if isinstance(error, str):
        return {"message": error}
    return {}


def extract_tokens(payload: Any) -> Optional[Tuple[str, str]]:
    """Pull ``(accessToken, refreshToken)`` out of a successful auth response."""
    if not isinstance(payload, dict) or payload.get("status") != "success":
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    access_token = data.get("accessToken")
    refresh_token = data.get("refreshToken")
    if not isinstance(access_token, str) or not access_token:
        return None
    if not isinstance(refresh_token, str) or not refresh_token:
        return None
    return access_token, refresh_token


class TokenManager:
    """Every call to the Analysis Service goes through this class.

    It attaches the stored access token, refreshes it once when the service
    answers 401 and maps failures onto the error taxonomy in
    :mod:`cvpilot.errors`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        identity: Optional[IdentityProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.identity = identity
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one logical request to the service.

        Args:
            method: HTTP method
            path: Path relative to the configured base URL
            body: Optional JSON body

        Returns:
            The parsed response body

        Raises:
            LimitExceeded: on 403
            AuthExpired: on 401 when the session cannot be renewed
            RequestFailed: on any other failure
        """
        return await self._send(method, path, body, allow_refresh=True)

    async def _send(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        allow_refresh: bool,
    ) -> Dict[str, Any]:
        session = token_store.get_tokens()
        headers = {"Content-Type": "application/json"}
        if session.access_token:
            headers["Authorization"] = f"Bearer {session.access_token}"

        try:
            async with self._client() as client:
                response = await client.request(method, path, json=body, headers=headers)
        except httpx.HTTPError as exc:
            _LOGGER.warning("%s %s failed: %s", method, path, exc)
            raise RequestFailed(f"Network error: {exc}", code="NETWORK_ERROR") from exc

        if response.status_code == 401:
            if allow_refresh and await self._refresh():
                _LOGGER.info("Access token refreshed, retrying %s %s", method, path)
                return await self._send(method, path, body, allow_refresh=False)
            _LOGGER.info("Session expired, clearing stored tokens")
            token_store.clear_tokens()
            raise AuthExpired(status=401)

        payload = _parse_json(response)

        if response.status_code == 403:
            error = _error_envelope(payload)
            raise LimitExceeded(error.get("message") or "Daily analysis limit reached")

        if not response.is_success:
            error = _error_envelope(payload)
            raise RequestFailed(
                error.get("message") or f"Request failed with status {response.status_code}",
                code=error.get("code") or DEFAULT_ERROR_CODE,
                status=response.status_code,
            )

        if not isinstance(payload, dict):
            raise RequestFailed(
                "Service returned a malformed response",
                code="MALFORMED_RESPONSE",
                status=response.status_code,
            )
        return payload

    async def _refresh(self) -> bool:
        """Exchange the stored refresh token for a new pair.

        Returns True only when both new tokens were stored.
        """
        refresh_token = token_store.get_tokens().refresh_token
        if not refresh_token:
            return False

        try:
            async with self._client() as client:
                response = await client.post(
                    config.AUTH_REFRESH_PATH,
                    json={"refreshToken": refresh_token},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError:
            _LOGGER.warning("Token refresh request failed", exc_info=True)
            return False

        if not response.is_success:
            _LOGGER.info("Token refresh rejected with status %s", response.status_code)
            return False

        tokens = extract_tokens(_parse_json(response))
        if tokens is None:
            _LOGGER.warning("Token refresh returned a malformed body")
            return False

        token_store.save_tokens(*tokens)
        return True

    async def sign_in_with_google(self, identity_token: str) -> Session:
        """Exchange a Google access token for a service session and store it."""
        payload = await self.request("POST", config.AUTH_GOOGLE_PATH, {"accessToken": identity_token})
        tokens = extract_tokens(payload)
        if tokens is None:
            raise RequestFailed("Sign-in response did not include tokens", code="MALFORMED_RESPONSE")
        return token_store.save_tokens(*tokens)

    async def sign_out(self) -> None:
        """Drop the cached identity token (best effort) and the stored session."""
        if self.identity is not None:
            try:
                token = await self.identity.get_token(interactive=False)
                if token:
                    await self.identity.remove_cached_token(token)
            except Exception:  # revocation is best effort
                _LOGGER.debug("Could not revoke cached identity token", exc_info=True)

        token_store.clear_tokens()

    def get_auth_state(self) -> Dict[str, bool]:
        """Report whether an access token is stored, without contacting the service."""
        return {"authenticated": token_store.get_tokens().authenticated}

    async def analyze_match(
        self,
        vacancy_text: str,
        resume_text: str,
        vacancy_title: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Request a vacancy/resume match analysis."""
        return await self.request(
            "POST",
            config.ANALYSIS_MATCH_PATH,
            {
                "vacancyText": vacancy_text,
                "resumeText": resume_text,
                "vacancyTitle": vacancy_title or None,
                "companyName": company_name or None,
            },
        )
