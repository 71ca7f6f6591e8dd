"""Guardrails for AgentDesk prompt editing."""

from agentdesk.guardrails.input_validator import validate_edit_request
from agentdesk.guardrails.output_validator import (
    PromptReviewContext,
    placeholder_guardrail,
)

__all__ = [
    "PromptReviewContext",
    "placeholder_guardrail",
    "validate_edit_request",
]
