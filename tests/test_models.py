"""Tests for committee/models.py dataclasses."""

from committee.models import CommitteeContext, CommitteeRequest, Message, ModelResponse, PromptSegment
from tests.conftest import MockProvider


def test_model_response_optional_token_count():
    r = ModelResponse(
        provider="gemini",
        model="gemini-2.5-flash",
        content="Some answer.",
        latency_sec=0.9,
        token_count=None,
    )
    assert r.token_count is None


def test_request_defaults():
    req = CommitteeRequest(leader="gpt")
    assert req.messages == []
    assert req.members == []
    assert req.want_opinions is False
    assert req.want_reviews is False


def test_context_starts_empty():
    leader = MockProvider("leader")
    ctx = CommitteeContext(messages=[], leader=leader, members={"leader": leader})
    assert ctx.summary == ""
    assert ctx.opinions == {}
    assert ctx.reviews == {}


def test_prompt_segment_and_message_are_values():
    assert PromptSegment("user", "hi") == PromptSegment("user", "hi")
    assert Message("user", "hi") == Message("user", "hi")
