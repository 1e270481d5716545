"""Tests for token injection, refresh-and-retry and error classification."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import analysis_reply, request_json, tokens_reply
from cvpilot.errors import AuthExpired, LimitExceeded, RequestFailed
from cvpilot.models import Session
from cvpilot.services import token_store
from cvpilot.services.identity import StaticIdentityProvider


def test_request_attaches_bearer_token(service, make_token_manager):
    token_store.save_tokens("access-1", "refresh-1")
    service.queue("/analysis/match", analysis_reply())

    payload = asyncio.run(make_token_manager().analyze_match("vacancy", "resume", "", "Acme"))

    assert payload["status"] == "success"
    (call,) = service.calls
    assert call.headers["Authorization"] == "Bearer access-1"
    assert call.headers["Content-Type"] == "application/json"
    assert request_json(call) == {
        "vacancyText": "vacancy",
        "resumeText": "resume",
        "vacancyTitle": None,
        "companyName": "Acme",
    }


def test_request_without_session_sends_no_authorization(service, make_token_manager):
    service.queue("/analysis/match", analysis_reply())

    asyncio.run(make_token_manager().request("POST", "/analysis/match", {}))

    assert "Authorization" not in service.calls[0].headers


def test_forbidden_raises_limit_exceeded_without_retry(service, make_token_manager):
    token_store.save_tokens("access-1", "refresh-1")
    service.queue("/analysis/match", (403, {"error": {"message": "Daily limit reached"}}))

    with pytest.raises(LimitExceeded) as excinfo:
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert excinfo.value.message == "Daily limit reached"
    assert excinfo.value.status == 403
    assert len(service.calls) == 1
    assert token_store.get_tokens().authenticated is True


def test_forbidden_without_envelope_uses_default_message(service, make_token_manager):
    service.queue("/analysis/match", (403, b"forbidden"))

    with pytest.raises(LimitExceeded) as excinfo:
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert excinfo.value.message == "Daily analysis limit reached"


def test_unauthorized_refreshes_once_and_retries(service, make_token_manager):
    token_store.save_tokens("stale", "refresh-1")
    service.queue("/analysis/match", (401, {}), analysis_reply())
    service.queue("/auth/refresh", tokens_reply("fresh", "refresh-2"))

    payload = asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert payload["data"]["analysis"]["match_score"] == 75
    assert token_store.get_tokens() == Session("fresh", "refresh-2")
    refresh_calls = service.calls_to("/auth/refresh")
    assert len(refresh_calls) == 1
    assert request_json(refresh_calls[0]) == {"refreshToken": "refresh-1"}
    match_calls = service.calls_to("/analysis/match")
    assert [call.headers["Authorization"] for call in match_calls] == [
        "Bearer stale",
        "Bearer fresh",
    ]


def test_second_unauthorized_surfaces_auth_expired(service, make_token_manager):
    token_store.save_tokens("stale", "refresh-1")
    service.queue("/analysis/match", (401, {}), (401, {}))
    service.queue("/auth/refresh", tokens_reply("fresh", "refresh-2"), tokens_reply("x", "y"))

    with pytest.raises(AuthExpired):
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert len(service.calls_to("/auth/refresh")) == 1
    assert len(service.calls_to("/analysis/match")) == 2
    assert token_store.get_tokens() == Session()


def test_refresh_without_refresh_token_makes_no_call(service, make_token_manager, mongo_db):
    mongo_db.tokens.insert_one({"_id": "session", "access_token": "stale", "refresh_token": None})
    service.queue("/analysis/match", (401, {}))

    with pytest.raises(AuthExpired):
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert service.calls_to("/auth/refresh") == []
    assert token_store.get_tokens() == Session()


@pytest.mark.parametrize(
    "refresh_reply",
    [
        (500, {"error": {"message": "boom"}}),
        (200, {"status": "success", "data": {"accessToken": "only-access"}}),
        (200, {"status": "error", "data": None}),
        (200, b"not json"),
        httpx.ConnectError("refresh endpoint unreachable"),
    ],
)
def test_failed_refresh_never_updates_tokens_partially(service, make_token_manager, refresh_reply):
    token_store.save_tokens("stale", "refresh-1")
    service.queue("/analysis/match", (401, {}))
    service.queue("/auth/refresh", refresh_reply)

    with pytest.raises(AuthExpired):
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    # Nothing partial was written; the expired session is wiped as a whole.
    assert token_store.get_tokens() == Session()
    assert len(service.calls_to("/analysis/match")) == 1


def test_other_errors_carry_envelope(service, make_token_manager):
    service.queue(
        "/analysis/match",
        (422, {"error": {"code": "VACANCY_TOO_SHORT", "message": "Vacancy text is too short"}}),
    )

    with pytest.raises(RequestFailed) as excinfo:
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert excinfo.value.code == "VACANCY_TOO_SHORT"
    assert excinfo.value.status == 422
    assert excinfo.value.message == "Vacancy text is too short"


def test_other_errors_default_code_and_message(service, make_token_manager):
    service.queue("/analysis/match", (502, b"<html>bad gateway</html>"))

    with pytest.raises(RequestFailed) as excinfo:
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert excinfo.value.code == "UNKNOWN_ERROR"
    assert excinfo.value.message == "Request failed with status 502"


def test_transport_errors_are_normalized(service, make_token_manager):
    service.queue("/analysis/match", httpx.ConnectError("connection refused"))

    with pytest.raises(RequestFailed) as excinfo:
        asyncio.run(make_token_manager().analyze_match("v", "r"))

    assert excinfo.value.code == "NETWORK_ERROR"


def test_sign_in_with_google_persists_session(service, make_token_manager):
    service.queue("/auth/google", tokens_reply("access-1", "refresh-1"))

    session = asyncio.run(make_token_manager().sign_in_with_google("google-token"))

    assert session == Session("access-1", "refresh-1")
    assert token_store.get_tokens() == session
    assert request_json(service.calls[0]) == {"accessToken": "google-token"}


def test_sign_in_without_tokens_is_malformed(service, make_token_manager):
    service.queue("/auth/google", (200, {"status": "success"}))

    with pytest.raises(RequestFailed) as excinfo:
        asyncio.run(make_token_manager().sign_in_with_google("google-token"))

    assert excinfo.value.code == "MALFORMED_RESPONSE"
    assert token_store.get_tokens() == Session()


class BrokenIdentity(StaticIdentityProvider):
    async def remove_cached_token(self, token: str) -> None:
        raise RuntimeError("identity service offline")


def test_sign_out_swallows_revocation_errors(make_token_manager):
    token_store.save_tokens("access-1", "refresh-1")
    manager = make_token_manager(identity=BrokenIdentity("google-token"))

    asyncio.run(manager.sign_out())

    assert token_store.get_tokens() == Session()


def test_sign_out_removes_cached_identity_token(make_token_manager):
    identity = StaticIdentityProvider("google-token")
    token_store.save_tokens("access-1", "refresh-1")

    asyncio.run(make_token_manager(identity=identity).sign_out())

    assert asyncio.run(identity.get_token(interactive=False)) is None
    assert token_store.get_tokens() == Session()


def test_get_auth_state_is_a_local_read(service, make_token_manager):
    manager = make_token_manager()
    assert manager.get_auth_state() == {"authenticated": False}

    token_store.save_tokens("access-1", "refresh-1")
    assert manager.get_auth_state() == {"authenticated": True}
    assert service.calls == []
