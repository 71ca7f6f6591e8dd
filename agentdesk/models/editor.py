"""Models for the conversational prompt editor."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class EditorState(str, Enum):
    """State of a prompt editing session."""

    IDLE = "idle"
    AWAITING_PROPOSAL = "awaiting_proposal"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class ChatMessage(BaseModel):
    """One line of the editor conversation."""

    role: Literal["user", "assistant"]
    content: str


class PendingChange(BaseModel):
    """A proposed prompt edit waiting for the user's decision."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(default="", description="Replacement prompt template")
    summary: str = Field(..., description="Human-readable description of the change")
    configuration_request: bool = Field(
        default=False,
        description="True when the user asked to change a protected field",
    )
