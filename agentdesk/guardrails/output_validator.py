"""Output guardrails for prompt rewriting agents."""

import logging
from dataclasses import dataclass

from agents import Agent, GuardrailFunctionOutput, RunContextWrapper, output_guardrail

from agentdesk.prompts import missing_placeholders

logger = logging.getLogger(__name__)


@dataclass
class PromptReviewContext:
    """Run context shared with the review agent's guardrails."""

    current_prompt: str


@output_guardrail(name="placeholder_guardrail")
def placeholder_guardrail(
    context: RunContextWrapper[PromptReviewContext],
    _agent: Agent,
    output,
) -> GuardrailFunctionOutput:
    """Block rewritten prompts that lose any ``{{placeholder}}`` of the original.

    Args:
        context: Run context holding the prompt being rewritten
        _agent: The agent being run
        output: The rewritten prompt

    Returns:
        GuardrailFunctionOutput listing the missing placeholders, if any
    """
    candidate = str(output) if output else ""
    missing = missing_placeholders(context.context.current_prompt, candidate)

    if missing:
        logger.warning(f"Guardrail triggered: Placeholders removed ({', '.join(missing)})")
        return GuardrailFunctionOutput(
            output_info={"missing_placeholders": missing},
            tripwire_triggered=True,
        )

    return GuardrailFunctionOutput(
        output_info={"missing_placeholders": []},
        tripwire_triggered=False,
    )
