"""Async client for the voice-agent platform's REST API."""

import logging
from typing import Any

import httpx

from agentdesk.config import Config, get_config
from agentdesk.errors import UpstreamConfigError, VoicePlatformError
from agentdesk.models import AgentConfig, VoiceAgent

logger = logging.getLogger(__name__)


class VoicePlatformClient:
    """Service for the voice platform's LLM, agent and call endpoints.

    This service handles:
    - Creating and updating the LLM configuration behind an agent
    - Creating agents bound to an LLM websocket
    - Registering web calls and fetching post-call analytics
    """

    def __init__(
        self,
        cfg: Config | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            cfg: Application configuration (global config if omitted)
            transport: Optional httpx transport, mainly for tests
        """
        self.config = cfg or get_config()
        self._client = httpx.AsyncClient(
            base_url=self.config.retell_base_url,
            headers={
                "Authorization": f"Bearer {self.config.retell_api_key or ''}",
                "Content-Type": "application/json",
            },
            timeout=self.config.request_timeout,
            transport=transport,
        )

    def is_configured(self) -> bool:
        """Check if an API key is set."""
        return self.config.has_voice_platform_config()

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type[UpstreamConfigError] | type[VoicePlatformError],
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.is_configured():
            msg = "Voice platform is not configured"
            raise error_cls(msg)

        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.exception(f"{method} {path} failed")
            raise error_cls(f"Request to voice platform failed: {e}") from e

        if not response.is_success:
            logger.error(f"{method} {path} returned {response.status_code}: {response.text}")
            raise error_cls(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    async def create_llm(
        self, model: str | None, general_prompt: str, begin_message: str | None
    ) -> AgentConfig:
        """Create a new LLM configuration."""
        data = await self._request(
            "POST",
            "/create-retell-llm",
            UpstreamConfigError,
            json={
                "model": model,
                "general_prompt": general_prompt,
                "begin_message": begin_message,
            },
        )
        logger.info(f"Created LLM {data.get('llm_id')}")
        return AgentConfig.model_validate(data)

    async def update_llm(
        self,
        llm_id: str,
        model: str | None,
        general_prompt: str,
        begin_message: str | None,
    ) -> AgentConfig:
        """Push a new model / prompt / begin message to an existing LLM.

        Raises:
            UpstreamConfigError: If the platform rejects the update
        """
        data = await self._request(
            "PATCH",
            f"/update-retell-llm/{llm_id}",
            UpstreamConfigError,
            json={
                "model": model,
                "general_prompt": general_prompt,
                "begin_message": begin_message,
            },
        )
        logger.info(f"Updated LLM {llm_id}")
        return AgentConfig.model_validate(data)

    async def create_agent(self, llm_websocket_url: str, agent_name: str | None) -> VoiceAgent:
        """Create an agent that answers calls using the given LLM."""
        data = await self._request(
            "POST",
            "/create-agent",
            UpstreamConfigError,
            json={
                "llm_websocket_url": llm_websocket_url,
                "agent_name": agent_name,
                "voice_id": self.config.agent_voice_id,
                "language": self.config.agent_language,
            },
        )
        logger.info(f"Created agent {data.get('agent_id')}")
        return VoiceAgent.model_validate(data)

    async def create_web_call(self, agent_id: str) -> dict[str, Any]:
        """Register a browser call against an agent.

        Returns:
            Dictionary with ``access_token`` and ``call_id``
        """
        data = await self._request(
            "POST", "/v2/create-web-call", VoicePlatformError, json={"agent_id": agent_id}
        )
        if not data.get("call_id") or not data.get("access_token"):
            raise VoicePlatformError("Web call response is missing call_id or access_token")

        logger.info(f"Web call {data['call_id']} registered for agent {agent_id}")
        return data

    async def get_call(self, call_id: str) -> dict[str, Any]:
        """Fetch a call's details and analysis (empty dict until available)."""
        return await self._request("GET", f"/v2/get-call/{call_id}", VoicePlatformError)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
