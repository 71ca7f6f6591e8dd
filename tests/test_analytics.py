"""Tests for call analytics queries and transcript review."""

import pytest
from agents import Agent
from agents.exceptions import AgentsException

from agentdesk.agents import PromptReviewAgent
from agentdesk.errors import (
    CompletionError,
    MalformedResponseError,
    NotFoundError,
    PlaceholderRemovedError,
)
from agentdesk.models import Mode
from agentdesk.services.analytics import filter_calls, select_transcripts, share_links
from agentdesk.services.transcript_review import TranscriptReviewService
from tests.conftest import USER_ID, placeholder_tripwire


def call(start: int, sentiment: str, transcript: str) -> dict:
    return {
        "start_timestamp": start,
        "end_timestamp": start + 60000,
        "transcript": transcript,
        "call_analysis": {"user_sentiment": sentiment, "call_summary": f"{sentiment} call"},
    }


ANALYTICS = {
    "call-1": call(1000, "Positive", "User: I'd like a table for four"),
    "call-2": call(3000, "Negative", "User: My order was cold"),
    "call-3": call(2000, "Positive", "User: Do you have vegan pizza?"),
}


class TestFilterCalls:
    def test_all_newest_first(self):
        """Test calls are listed newest first."""
        records = filter_calls(ANALYTICS)

        assert [r.call_id for r in records] == ["call-2", "call-3", "call-1"]

    def test_by_sentiment(self):
        """Test filtering calls by sentiment."""
        records = filter_calls(ANALYTICS, sentiment="positive")

        assert [r.call_id for r in records] == ["call-3", "call-1"]

    def test_by_transcript_text(self):
        """Test filtering calls by transcript text."""
        records = filter_calls(ANALYTICS, query="PIZZA")

        assert [r.call_id for r in records] == ["call-3"]

    def test_no_match(self):
        """Test a filter with no match."""
        assert filter_calls(ANALYTICS, sentiment="neutral") == []


class TestSelectTranscripts:
    def test_select(self):
        """Test selecting transcripts in request order."""
        selected = select_transcripts(ANALYTICS, ["call-2", "call-1", "call-2"])

        assert selected == [
            {
                "transcript": "User: My order was cold",
                "sentiment": "Negative",
                "summary": "Negative call",
            },
            {
                "transcript": "User: I'd like a table for four",
                "sentiment": "Positive",
                "summary": "Positive call",
            },
        ]

    def test_requires_selection(self):
        """Test an empty selection is rejected."""
        with pytest.raises(ValueError):
            select_transcripts(ANALYTICS, [])

    def test_at_most_five(self):
        """Test at most five transcripts can be selected."""
        analytics = {f"call-{i}": call(i, "Positive", "hi") for i in range(6)}

        assert len(select_transcripts(analytics, list(analytics)[:5])) == 5
        with pytest.raises(ValueError):
            select_transcripts(analytics, list(analytics))

    def test_unknown_call(self):
        """Test selecting an unknown call."""
        with pytest.raises(NotFoundError):
            select_transcripts(ANALYTICS, ["call-9"])


class TestShareLinks:
    def test_links(self):
        """Test building share links."""
        links = share_links("https://console.example/", "user 1", Mode.SALES)

        assert links["url"] == "https://console.example/shared/user%201/sales"
        assert 'src="https://console.example/shared/user%201/sales?embed=true"' in links["embed_code"]
        assert 'allow="microphone"' in links["embed_code"]


class TestPromptReviewAgent:
    """Test PromptReviewAgent creation."""

    def test_create_agent(self):
        """Test creating the review agent."""
        review_agent = PromptReviewAgent()
        agent = review_agent.create()

        assert isinstance(agent, Agent)
        assert agent.name == "Prompt Review Agent"
        assert len(agent.output_guardrails) == 1
        assert "{{" in agent.instructions

    def test_agent_cached(self):
        """Test the review agent is created once."""
        review_agent = PromptReviewAgent()

        assert review_agent.agent is review_agent.create()


class FakeReviewAgent:
    def __init__(self, result: str) -> None:
        self.result = result
        self.calls = []

    async def improve_prompt(self, current_prompt, transcripts):
        self.calls.append((current_prompt, transcripts))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class TestTranscriptReviewService:
    @pytest.fixture
    async def profile_with_calls(self, profiles, stored_profile):
        for call_id, payload in ANALYTICS.items():
            await profiles.save_call_analytics(USER_ID, Mode.CUSTOMER, call_id, payload)
        return await profiles.get(USER_ID)

    async def test_improve_prompt(self, profiles, agent_sync, fake_platform, profile_with_calls):
        """Test improving a prompt from transcripts."""
        improved = "{{botName}} of {{restaurantName}} apologises for cold food."
        reviewer = FakeReviewAgent(improved)
        service = TranscriptReviewService(profiles, agent_sync, review_agent=reviewer)

        config = await service.improve_prompt(USER_ID, Mode.CUSTOMER, ["call-2"])

        current_prompt, transcripts = reviewer.calls[0]
        assert "{{restaurantName}}" in current_prompt
        assert transcripts[0]["sentiment"] == "Negative"
        profile = await profiles.get(USER_ID)
        assert profile.settings(Mode.CUSTOMER).general_prompt == improved
        assert config.general_prompt == "Sofia of Luigi's apologises for cold food."
        assert len(fake_platform.requests_to("PATCH", "/update-retell-llm/")) == 1

    async def test_empty_result(self, profiles, agent_sync, fake_platform, profile_with_calls):
        """Test an empty review result writes nothing."""
        service = TranscriptReviewService(profiles, agent_sync, review_agent=FakeReviewAgent(""))

        with pytest.raises(MalformedResponseError):
            await service.improve_prompt(USER_ID, Mode.CUSTOMER, ["call-1"])

        assert (await profiles.get(USER_ID)).settings(Mode.CUSTOMER).general_prompt is None
        assert fake_platform.requests == []

    async def test_too_many_transcripts(self, profiles, agent_sync, profile_with_calls):
        """Test selecting too many transcripts."""
        reviewer = FakeReviewAgent("unused")
        service = TranscriptReviewService(profiles, agent_sync, review_agent=reviewer)

        with pytest.raises(ValueError):
            await service.improve_prompt(USER_ID, Mode.CUSTOMER, [f"c{i}" for i in range(6)])

        assert reviewer.calls == []

    async def test_guardrail_rejection(
        self, profiles, agent_sync, fake_platform, profile_with_calls
    ):
        """Test a rewrite that drops placeholders is refused without writing anything."""
        tripwire = placeholder_tripwire(
            "Welcome to {{restaurantName}}, I am {{botName}}.", "Greet callers kindly."
        )
        service = TranscriptReviewService(
            profiles, agent_sync, review_agent=FakeReviewAgent(tripwire)
        )

        with pytest.raises(PlaceholderRemovedError) as exc_info:
            await service.improve_prompt(USER_ID, Mode.CUSTOMER, ["call-2"])

        assert "restaurantName" in str(exc_info.value)
        assert "botName" in exc_info.value.missing
        assert exc_info.value.__cause__ is tripwire
        assert (await profiles.get(USER_ID)).settings(Mode.CUSTOMER).general_prompt is None
        assert fake_platform.requests == []

    async def test_agent_failure(self, profiles, agent_sync, fake_platform, profile_with_calls):
        """Test an Agents SDK failure surfaces as a CompletionError."""
        reviewer = FakeReviewAgent(AgentsException("model failed"))
        service = TranscriptReviewService(profiles, agent_sync, review_agent=reviewer)

        with pytest.raises(CompletionError):
            await service.improve_prompt(USER_ID, Mode.CUSTOMER, ["call-1"])

        assert (await profiles.get(USER_ID)).settings(Mode.CUSTOMER).general_prompt is None
        assert fake_platform.requests == []
