"""Identity provider collaborators supplying Google access tokens."""

from __future__ import annotations

import os
from typing import Optional


class IdentityProvider:
    """Source of externally obtained identity tokens.

    ``get_token`` returns None when no token is available without user
    interaction and raises when an interactive request fails.
    """

    async def get_token(self, interactive: bool = True) -> Optional[str]:
        raise NotImplementedError

    async def remove_cached_token(self, token: str) -> None:
        raise NotImplementedError


class StaticIdentityProvider(IdentityProvider):
    """Identity provider backed by a pre-issued token."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token or None

    @classmethod
    def from_env(cls) -> "StaticIdentityProvider":
        """Use the token in ``GOOGLE_ACCESS_TOKEN`` if set."""
        return cls(os.getenv("GOOGLE_ACCESS_TOKEN"))

    async def get_token(self, interactive: bool = True) -> Optional[str]:
        if self._token is None and interactive:
            raise LookupError("No Google access token is configured")
        return self._token

    async def remove_cached_token(self, token: str) -> None:
        if token == self._token:
            self._token = None
