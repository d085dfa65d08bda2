import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from clients.assessment import AssessmentClient
from errors import AssessmentError
from models.content import ContentItem
from models.moderation import ActionTaken, Severity

ENDPOINT = "https://assessment.example.com/v1/assess"


@pytest.fixture
def item() -> ContentItem:
    return ContentItem(
        content_id="p-1",
        content_kind="post",
        author_id="u-1",
        text="buy followers now",
        media_refs=["https://cdn.example.com/1.png"],
    )


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> AssessmentClient:
    return AssessmentClient(ENDPOINT, "secret-key", timeout=2.0, transport=httpx.MockTransport(handler))


def test_assess_sends_contract_payload_and_parses_verdict(item: ContentItem) -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "analysis": {
                    "action_taken": "shadow_ban",
                    "severity": "high",
                    "confidence": 0.82,
                    "flags": ["spam"],
                    "categories": ["authenticity_spam"],
                    "is_appropriate": False,
                },
            },
        )

    verdict = asyncio.run(_client(handler).assess(item))

    assert seen["auth"] == "Bearer secret-key"
    assert seen["body"] == {
        "content": "buy followers now",
        "contentId": "p-1",
        "contentType": "post",
        "userId": "u-1",
        "mediaUrls": ["https://cdn.example.com/1.png"],
    }
    assert verdict.action_taken is ActionTaken.SHADOW_BAN
    assert verdict.severity is Severity.HIGH
    assert verdict.confidence == pytest.approx(0.82)
    assert verdict.flags == ["spam"]
    assert verdict.is_appropriate is False


def test_approved_action_reads_as_none(item: ContentItem) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"analysis": {"action_taken": "approved", "severity": "low", "confidence": 0.99, "flags": []}},
        )

    verdict = asyncio.run(_client(handler).assess(item))

    assert verdict.action_taken is ActionTaken.NONE
    assert verdict.is_appropriate is True


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"success": False, "error": "boom"}),
        httpx.Response(404, text="not found"),
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"success": True}),
        httpx.Response(200, json={"analysis": {"action_taken": "nuke", "severity": "low", "confidence": 0.5}}),
        httpx.Response(200, json={"analysis": {"action_taken": "none", "severity": "low", "confidence": 1.7}}),
    ],
    ids=["server-error", "not-found", "not-json", "no-analysis", "unknown-action", "confidence-out-of-range"],
)
def test_non_conforming_responses_are_assessment_errors(item: ContentItem, response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(AssessmentError):
        asyncio.run(client.assess(item))


@pytest.mark.parametrize(
    "error",
    [httpx.ReadTimeout, httpx.ConnectError],
    ids=["timeout", "connect-error"],
)
def test_transport_failures_are_assessment_errors(item: ContentItem, error: type[httpx.TransportError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("unreachable", request=request)

    with pytest.raises(AssessmentError):
        asyncio.run(_client(handler).assess(item))
