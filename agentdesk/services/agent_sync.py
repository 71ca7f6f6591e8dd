"""Keeps each mode's voice platform configuration in line with the stored profile."""

import logging

from agentdesk.errors import AgentNotProvisionedError
from agentdesk.models import (
    AgentConfig,
    CallerConfigUpdate,
    Mode,
    RestaurantInfo,
    UserProfile,
)
from agentdesk.prompts import resolve_prompt, substitute_placeholders
from agentdesk.services.voice_platform import VoicePlatformClient
from agentdesk.store import ProfileStore

logger = logging.getLogger(__name__)


def render_prompt(profile: UserProfile, mode: Mode) -> str:
    """Resolve the mode's prompt template and fill in its placeholders."""
    return substitute_placeholders(resolve_prompt(profile, mode), profile, mode)


class AgentSyncService:
    """Pushes resolved prompts to the voice platform and caches the result.

    Attributes:
        profiles: Configuration store adapter
        voice_platform: Voice platform REST client
    """

    def __init__(self, profiles: ProfileStore, voice_platform: VoicePlatformClient) -> None:
        self.profiles = profiles
        self.voice_platform = voice_platform

    async def _push(self, profile: UserProfile, mode: Mode) -> AgentConfig:
        settings = profile.settings(mode)
        if settings.llm_data is None:
            raise AgentNotProvisionedError(f"LLM data not found for mode: {mode.value}")

        return await self.voice_platform.update_llm(
            settings.llm_data.llm_id,
            model=settings.model,
            general_prompt=render_prompt(profile, mode),
            begin_message=settings.begin_message,
        )

    async def sync_agent(self, user_id: str, mode: Mode) -> AgentConfig:
        """Push the mode's current configuration live.

        Args:
            user_id: Profile owner
            mode: Which agent to update

        Returns:
            The configuration applied by the voice platform

        Raises:
            NotFoundError: If the profile or the mode's LLM does not exist
            MissingFieldError: If a placeholder refers to an unset field
            UpstreamConfigError: If the voice platform rejects the update
        """
        mode = Mode(mode)
        profile = await self.profiles.get(user_id)
        agent_config = await self._push(profile, mode)

        await self.profiles.merge_mode(
            user_id, mode, llm_data=agent_config.model_dump(mode="json")
        )
        logger.info(f"{mode.value} LLM updated successfully for user {user_id}")
        return agent_config

    async def provision_agent(self, user_id: str, mode: Mode) -> UserProfile:
        """Create the LLM and agent for a mode and store both."""
        mode = Mode(mode)
        profile = await self.profiles.get(user_id)
        settings = profile.settings(mode)

        llm_data = await self.voice_platform.create_llm(
            model=settings.model,
            general_prompt=render_prompt(profile, mode),
            begin_message=settings.begin_message,
        )
        agent_data = await self.voice_platform.create_agent(
            llm_websocket_url=llm_data.llm_websocket_url or "",
            agent_name=settings.bot_name,
        )

        logger.info(f"Provisioned {mode.value} agent {agent_data.agent_id} for {user_id}")
        return await self.profiles.merge_mode(
            user_id,
            mode,
            llm_data=llm_data.model_dump(mode="json"),
            agent_data=agent_data.model_dump(mode="json"),
        )

    async def update_caller_config(
        self, user_id: str, mode: Mode, update: CallerConfigUpdate
    ) -> UserProfile:
        """Apply bot configuration edits and push them live.

        The push happens before anything is written, so a rejected update
        leaves the stored profile untouched.
        """
        mode = Mode(mode)
        profile = await self.profiles.get(user_id)
        fields = update.model_dump(exclude_unset=True)

        settings = profile.settings(mode).model_copy(update=fields)
        candidate = profile.model_copy(update={"modes": {**profile.modes, mode: settings}})
        agent_config = await self._push(candidate, mode)

        return await self.profiles.merge_mode(
            user_id, mode, **fields, llm_data=agent_config.model_dump(mode="json")
        )

    async def update_restaurant_info(self, user_id: str, info: RestaurantInfo) -> UserProfile:
        """Store new restaurant facts and resync every provisioned mode."""
        await self.profiles.get(user_id)
        profile = await self.profiles.merge(user_id, info.model_dump(exclude_unset=True))

        for mode in Mode:
            if profile.settings(mode).llm_data is None:
                continue
            await self.sync_agent(user_id, mode)

        return await self.profiles.get(user_id)
