"""Default prompt generation and placeholder substitution."""

import logging
import re

from agentdesk.errors import MissingFieldError
from agentdesk.models import Mode, UserProfile

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# placeholder name -> profile field (mode-scoped fields marked by the tuple flag)
PLACEHOLDERS: dict[str, tuple[str, bool]] = {
    "restaurantName": ("restaurant_name", False),
    "botName": ("bot_name", True),
    "tone": ("tone", True),
    "seatingCapacity": ("seating_capacity", False),
    "address": ("address", False),
    "menu": ("menu", False),
}

PREAMBLE = """You are an AI assistant caller for a restaurant named {{restaurantName}}. Your name is {{botName}}. You should maintain a {{tone}} tone throughout the conversation.

The details of the restaurant are:

Seating Capacity: {{seatingCapacity}}
Address: {{address}}

Menu:
{{menu}}"""

MODE_ROLES: dict[Mode, str] = {
    Mode.CUSTOMER: (
        "Your role is to assist callers with inquiries about the restaurant, "
        "take reservations, and provide information about the menu and services."
    ),
    Mode.OPERATIONS: (
        "Your role is to assist with internal operations, including inventory "
        "management, staff scheduling, and kitchen coordination."
    ),
    Mode.SALES: (
        "Your role is to handle business inquiries, catering requests, and "
        "partnership opportunities."
    ),
}

CLOSING = (
    "Please use this information to assist callers accurately. If asked about "
    "matters outside your domain, politely redirect them to the appropriate "
    "department. Always keep the tone described above throughout the conversation."
)


def resolve_prompt(profile: UserProfile, mode: Mode) -> str:
    """Return the prompt template for ``mode``.

    The stored override is returned unchanged when present; otherwise the
    default template is generated with its placeholders intact.
    """
    mode = Mode(mode)
    override = profile.settings(mode).general_prompt
    if override:
        return override

    return f"{PREAMBLE}\n\n{MODE_ROLES[mode]}\n\n{CLOSING}"


def extract_placeholders(template: str) -> list[str]:
    """Return the known placeholder names used in ``template``, in order."""
    seen: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name in PLACEHOLDERS and name not in seen:
            seen.append(name)
    return seen


def missing_placeholders(original: str, candidate: str) -> list[str]:
    """Return placeholders present in ``original`` but absent from ``candidate``."""
    kept = set(extract_placeholders(candidate))
    return [name for name in extract_placeholders(original) if name not in kept]


def _field_value(profile: UserProfile, mode: Mode, placeholder: str) -> str:
    field, mode_scoped = PLACEHOLDERS[placeholder]
    source = profile.settings(mode) if mode_scoped else profile
    value = getattr(source, field)
    if value is None:
        raise MissingFieldError(field, placeholder)
    return str(value)


def substitute_placeholders(template: str, profile: UserProfile, mode: Mode) -> str:
    """Replace every known ``{{placeholder}}`` with the profile's value.

    Raises:
        MissingFieldError: If a placeholder used in the template maps to an
            unset field.
    """
    mode = Mode(mode)
    values = {
        name: _field_value(profile, mode, name)
        for name in extract_placeholders(template)
    }

    def _replace(match: re.Match) -> str:
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template)
