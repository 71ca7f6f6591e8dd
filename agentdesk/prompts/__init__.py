"""Prompt template management for AgentDesk."""

from pathlib import Path
from string import Template

from agentdesk.prompts.builder import (
    PLACEHOLDERS,
    extract_placeholders,
    missing_placeholders,
    resolve_prompt,
    substitute_placeholders,
)

PROMPT_DIR = Path(__file__).parent


def load_prompt(name: str, **kwargs) -> str:
    """Load and fill an instruction template.

    Templates use ``$name`` variables so that the ``{{placeholder}}`` tokens
    and JSON examples inside them survive untouched.

    Args:
        name: Name of the prompt file (without .md extension)
        **kwargs: Variables to substitute in the template

    Returns:
        Filled prompt string

    Example:
        >>> load_prompt("prompt_editor", current_prompt="You are ...")
    """
    prompt_file = PROMPT_DIR / f"{name}.md"

    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt template not found: {prompt_file}")

    template = prompt_file.read_text(encoding="utf-8")

    # safe_substitute leaves unknown $variables in place
    return Template(template).safe_substitute(**kwargs)


__all__ = [
    "PLACEHOLDERS",
    "extract_placeholders",
    "load_prompt",
    "missing_placeholders",
    "resolve_prompt",
    "substitute_placeholders",
]
