"""Shared pytest fixtures: in-memory MongoDB and a fake Analysis Service."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import mongomock
import pytest

# Ensure the application package is importable during tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cvpilot import database  # noqa: E402

BASE_URL = "http://analysis.test/api/v1"


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch: pytest.MonkeyPatch):
    """Provide an isolated in-memory MongoDB database for each test."""
    test_db_name = "test_cvpilot"
    monkeypatch.setenv("MONGODB_DATABASE", test_db_name)

    client = mongomock.MongoClient()
    db = client[test_db_name]

    monkeypatch.setattr(database, "get_mongo_client", lambda: client)
    monkeypatch.setattr(database, "get_database", lambda: db)

    yield db

    client.drop_database(test_db_name)


Reply = Tuple[int, Any]


class FakeAnalysisService:
    """Scripted stand-in for the remote service behind an httpx.MockTransport.

    Replies are queued per path; each reply is ``(status, body)`` where a
    ``bytes`` body is sent raw and anything else as JSON. An exception
    instance in the queue is raised instead, simulating a transport error.
    """

    def __init__(self) -> None:
        self.replies: Dict[str, List[Any]] = {}
        self.calls: List[httpx.Request] = []

    def queue(self, path: str, *replies: Any) -> None:
        self.replies.setdefault(path, []).extend(replies)

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [call for call in self.calls if call.url.path.endswith(path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path[len("/api/v1"):]
        queued = self.replies.get(path)
        if not queued:
            return httpx.Response(404, json={"error": {"message": f"No reply for {path}"}})
        reply = queued.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def service() -> FakeAnalysisService:
    return FakeAnalysisService()


@pytest.fixture()
def make_token_manager(service: FakeAnalysisService) -> Callable[..., Any]:
    from cvpilot.services.token_manager import TokenManager

    def factory(identity: Optional[Any] = None) -> TokenManager:
        return TokenManager(BASE_URL, identity=identity, transport=service.transport)

    return factory


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


def tokens_reply(access: str, refresh: str) -> Reply:
    return 200, {"status": "success", "data": {"accessToken": access, "refreshToken": refresh}}


def analysis_reply(score: int = 75, remaining: Optional[int] = 2) -> Reply:
    metadata = {} if remaining is None else {"remaining_today": remaining}
    return 200, {
        "status": "success",
        "data": {
            "analysis": {
                "match_score": score,
                "match_level": "Good match",
                "summary": "Solid backend experience.",
                "strengths": [{"area": "Python", "description": "Eight years of Django"}],
                "partial_matches": [{"requirement": "Kubernetes", "comment": "Docker only"}],
                "gaps": [{"missing_requirement": "Go", "impact": "Medium"}],
                "recommendations": {
                    "resume_improvements": ["Quantify the migration project"],
                    "skills_to_highlight": ["PostgreSQL"],
                    "skills_to_acquire": [],
                },
                "risk_notes": ["Frequent job changes"],
            },
            "metadata": metadata,
        },
    }
