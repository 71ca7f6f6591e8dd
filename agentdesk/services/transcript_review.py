"""Improve a mode's prompt from selected call transcripts."""

import logging

import openai
from agents.exceptions import AgentsException, OutputGuardrailTripwireTriggered

from agentdesk.agents import PromptReviewAgent
from agentdesk.errors import CompletionError, MalformedResponseError, PlaceholderRemovedError
from agentdesk.models import AgentConfig, Mode
from agentdesk.prompts import resolve_prompt
from agentdesk.services.agent_sync import AgentSyncService
from agentdesk.services.analytics import select_transcripts
from agentdesk.store import ProfileStore

logger = logging.getLogger(__name__)


class TranscriptReviewService:
    """Runs the review agent, stores the result as the override and syncs it."""

    def __init__(
        self,
        profiles: ProfileStore,
        agent_sync: AgentSyncService,
        review_agent: PromptReviewAgent | None = None,
    ) -> None:
        self.profiles = profiles
        self.agent_sync = agent_sync
        self.review_agent = review_agent or PromptReviewAgent()

    async def improve_prompt(
        self, user_id: str, mode: Mode, call_ids: list[str]
    ) -> AgentConfig:
        """Rewrite the mode's prompt using up to five call transcripts.

        Raises:
            ValueError: If zero or more than five calls are selected
            NotFoundError: If the profile or a selected call is missing
            PlaceholderRemovedError: If the rewrite drops placeholders
            CompletionError: If the review agent run fails
        """
        mode = Mode(mode)
        profile = await self.profiles.get(user_id)
        transcripts = select_transcripts(profile.calls(mode), call_ids)
        current_prompt = resolve_prompt(profile, mode)

        try:
            improved = await self.review_agent.improve_prompt(current_prompt, transcripts)
        except OutputGuardrailTripwireTriggered as e:
            info = e.guardrail_result.output.output_info or {}
            raise PlaceholderRemovedError(info.get("missing_placeholders", [])) from e
        except (AgentsException, openai.OpenAIError) as e:
            logger.exception("Prompt review failed")
            raise CompletionError(f"Failed to analyze transcripts: {e}") from e

        if not improved:
            raise MalformedResponseError("Prompt review returned an empty prompt")

        await self.profiles.merge_mode(user_id, mode, general_prompt=improved)
        logger.info(f"Prompt for {user_id} ({mode.value}) updated from {len(transcripts)} transcripts")
        return await self.agent_sync.sync_agent(user_id, mode)
