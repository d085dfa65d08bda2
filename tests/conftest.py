from typing import Any, Callable, Generator
import os
import sys
import pytest
from fastapi.testclient import TestClient

ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)
os.environ["DISABLE_KAFKA"] = "true"

from main import create_app
from models.content import ContentCreatedEvent
from models.moderation import ActionTaken, Severity, Verdict
from fakes import FakeBackend


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app_client(backend: FakeBackend) -> Generator[TestClient, None, None]:
    with TestClient(create_app(backend.services)) as client:
        yield client


@pytest.fixture
def make_verdict() -> Callable[..., Verdict]:
    def _make(
        action: ActionTaken = ActionTaken.NONE,
        severity: Severity = Severity.LOW,
        confidence: float = 0.9,
        **extra: Any,
    ) -> Verdict:
        return Verdict(action_taken=action, severity=severity, confidence=confidence, **extra)

    return _make


@pytest.fixture
def message_event(backend: FakeBackend) -> Callable[..., ContentCreatedEvent]:
    """Stores a community message and returns the matching content-created event."""

    def _make(content_id: str = "msg-1", text: str = "hello there", user_id: str = "author-1") -> ContentCreatedEvent:
        record = {"id": content_id, "user_id": user_id, "content": text}
        backend.content.add(backend.rule("message"), record)
        return ContentCreatedEvent(kind="insert", content_kind="message", record=record)

    return _make
