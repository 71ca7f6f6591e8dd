"""Agent that rewrites a prompt template based on real call transcripts."""

import json
import logging

from agents import Agent, Runner

from agentdesk.config import get_config
from agentdesk.guardrails import PromptReviewContext, placeholder_guardrail
from agentdesk.prompts import load_prompt

logger = logging.getLogger(__name__)


class PromptReviewAgent:
    """Agent that improves a mode's prompt from selected call transcripts.

    The rewritten prompt must keep every ``{{placeholder}}`` of the current
    one; the placeholder guardrail trips otherwise.
    """

    def __init__(self):
        self.config = get_config()
        self._agent: Agent[PromptReviewContext] | None = None

    def create(self) -> Agent[PromptReviewContext]:
        """Create the prompt review agent."""
        if self._agent is not None:
            return self._agent

        self._agent = Agent[PromptReviewContext](
            name="Prompt Review Agent",
            model=self.config.review_model,
            instructions=load_prompt("prompt_review"),
            output_guardrails=[placeholder_guardrail],
        )

        logger.info("Prompt Review Agent created")
        return self._agent

    @property
    def agent(self) -> Agent[PromptReviewContext]:
        """Get the agent instance (creates it if needed)."""
        return self.create()

    async def improve_prompt(self, current_prompt: str, transcripts: list[dict]) -> str:
        """Return an improved version of ``current_prompt``.

        Args:
            current_prompt: Prompt template with placeholders
            transcripts: Selected calls (transcript, sentiment, summary)

        Raises:
            OutputGuardrailTripwireTriggered: If placeholders were dropped
        """
        review_input = f"""Current prompt:
{current_prompt}

Transcripts for analysis:
{json.dumps(transcripts, indent=2)}"""

        logger.info(f"Reviewing prompt against {len(transcripts)} transcripts...")

        runner = Runner()
        result = await runner.run(
            starting_agent=self.create(),
            input=review_input,
            context=PromptReviewContext(current_prompt=current_prompt),
        )

        improved = str(result.final_output).strip()
        logger.info(f"✓ Prompt review complete ({len(improved)} chars)")
        return improved
