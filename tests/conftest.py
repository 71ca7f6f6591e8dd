"""Shared fixtures for AgentDesk tests."""

import json
import os

import httpx
import pytest
from agents import (
    Agent,
    OutputGuardrailResult,
    OutputGuardrailTripwireTriggered,
    RunContextWrapper,
)

os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("RETELL_API_KEY", "test-retell-key")

from agentdesk.config import Config  # noqa: E402
from agentdesk.guardrails import PromptReviewContext, placeholder_guardrail  # noqa: E402
from agentdesk.models import (  # noqa: E402
    AgentConfig,
    Mode,
    ModeSettings,
    UserProfile,
    VoiceAgent,
)
from agentdesk.services import AgentSyncService, VoicePlatformClient  # noqa: E402
from agentdesk.store import InMemoryDocumentStore, ProfileStore  # noqa: E402

USER_ID = "user-123"


class FakeVoicePlatform:
    """Records requests and answers like the voice platform's REST API."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict]] = []
        self.calls: dict[str, dict] = {}
        self.fail_status: int | None = None
        self.version = 0

    def requests_to(self, method: str, prefix: str) -> list[dict]:
        return [
            body
            for m, path, body in self.requests
            if m == method and path.startswith(prefix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        path = request.url.path
        self.requests.append((request.method, path, body))

        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": "rejected"})

        if request.method == "PATCH" and path.startswith("/update-retell-llm/"):
            self.version += 1
            llm_id = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "llm_id": llm_id,
                    "llm_websocket_url": f"wss://voice.example/llm/{llm_id}",
                    "version": self.version,
                    **body,
                },
            )

        if path == "/create-retell-llm":
            return httpx.Response(
                201,
                json={
                    "llm_id": "llm-new",
                    "llm_websocket_url": "wss://voice.example/llm/llm-new",
                    **body,
                },
            )

        if path == "/create-agent":
            return httpx.Response(201, json={"agent_id": "agent-new", **body})

        if path == "/v2/create-web-call":
            call_id = f"call-{len(self.requests)}"
            return httpx.Response(
                201, json={"call_id": call_id, "access_token": f"token-{call_id}"}
            )

        if path.startswith("/v2/get-call/"):
            call_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json=self.calls.get(call_id, {}))

        return httpx.Response(404, json={"error": "not found"})


class FakeCompletion:
    """Stand-in for CompletionClient returning canned responses."""

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses)
        self.requests: list[tuple[str, str]] = []

    async def complete_json(self, system_prompt: str, user_message: str) -> str:
        self.requests.append((system_prompt, user_message))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> str:
        return "make the greeting more casual"


def placeholder_tripwire(current_prompt: str, output: str) -> OutputGuardrailTripwireTriggered:
    """Build the exception the Agents SDK raises when the placeholder guardrail trips."""
    context = RunContextWrapper(context=PromptReviewContext(current_prompt=current_prompt))
    agent = Agent(name="Prompt Review Agent")
    result = OutputGuardrailResult(
        guardrail=placeholder_guardrail,
        agent_output=output,
        agent=agent,
        output=placeholder_guardrail.guardrail_function(context, agent, output),
    )
    return OutputGuardrailTripwireTriggered(result)


def make_profile(**overrides) -> UserProfile:
    """Build a fully provisioned profile for tests."""
    data = {
        "restaurant_name": "Luigi's",
        "address": "1 Main Street",
        "seating_capacity": 40,
        "menu": "Margherita pizza\nTiramisu",
        "modes": {
            Mode.CUSTOMER: ModeSettings(
                bot_name="Sofia",
                tone="friendly",
                model="gpt-4o",
                begin_message="Hi, thanks for calling Luigi's!",
                llm_data=AgentConfig(llm_id="llm-customer"),
                agent_data=VoiceAgent(agent_id="agent-customer"),
            ),
            Mode.SALES: ModeSettings(
                bot_name="Marco",
                tone="professional",
                model="gpt-4o-mini",
                begin_message="Luigi's catering desk, how can I help?",
            ),
        },
    }
    data.update(overrides)
    return UserProfile(**data)


@pytest.fixture
def config():
    """Configuration independent of the developer's environment."""
    return Config(
        _env_file=None,
        openai_api_key="test-openai-key",
        retell_api_key="test-retell-key",
        store_backend="memory",
        analytics_interval=5.0,
        analytics_max_attempts=10,
    )


@pytest.fixture
def fake_platform():
    return FakeVoicePlatform()


@pytest.fixture
def voice_platform(config, fake_platform):
    return VoicePlatformClient(config, transport=httpx.MockTransport(fake_platform.handler))


@pytest.fixture
def profiles():
    return ProfileStore(InMemoryDocumentStore())


@pytest.fixture
async def stored_profile(profiles):
    """Store the default test profile and return it."""
    profile = make_profile()
    await profiles.create(USER_ID, profile)
    return profile


@pytest.fixture
def agent_sync(profiles, voice_platform):
    return AgentSyncService(profiles, voice_platform)
