"""Validation of free-text edit requests sent to the prompt editor."""

import logging
import re

logger = logging.getLogger(__name__)

# Patterns that indicate potential abuse or injected markup
BLOCKED_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onclick",
    r"onerror",
    r"eval\(",
    r"exec\(",
]

MAX_MESSAGE_LENGTH = 2000


def validate_edit_request(message: str) -> str:
    """Check a user edit request before it is sent to the completion endpoint.

    Args:
        message: Raw user input

    Returns:
        The message with surrounding whitespace removed

    Raises:
        ValueError: If the message is empty, too long, or suspicious
    """
    text = (message or "").strip()

    if not text:
        logger.warning("Guardrail triggered: Empty edit request")
        raise ValueError("Message cannot be empty. Please describe the change you want.")

    if len(text) > MAX_MESSAGE_LENGTH:
        logger.warning(
            f"Guardrail triggered: Edit request too long ({len(text)} > {MAX_MESSAGE_LENGTH} chars)"
        )
        raise ValueError(
            f"Message too long (max {MAX_MESSAGE_LENGTH} characters). Please shorten your request."
        )

    lowered = text.lower()
    for pattern in BLOCKED_PATTERNS:
        if re.search(pattern, lowered):
            logger.warning(f"Guardrail triggered: Suspicious pattern detected ({pattern})")
            raise ValueError("Message contains suspicious content. Please rephrase your request.")

    return text
