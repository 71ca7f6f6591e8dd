"""Restaurant profile and mode-scoped agent configuration models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Mode(str, Enum):
    """Which calling agent a piece of configuration belongs to."""

    CUSTOMER = "customer"
    OPERATIONS = "operations"
    SALES = "sales"


class AgentConfig(BaseModel):
    """LLM configuration as applied by the voice platform.

    Upstream-assigned fields we do not model (version, timestamps, ...)
    are kept as extras so the cached copy round-trips unchanged.
    """

    model_config = ConfigDict(extra="allow")

    llm_id: str = Field(..., description="Voice platform LLM identifier")
    llm_websocket_url: str | None = Field(None, description="LLM websocket endpoint")
    model: str | None = Field(None, description="Model actually applied")
    general_prompt: str | None = Field(None, description="Prompt actually applied")
    begin_message: str | None = Field(None, description="Opening line actually applied")


class VoiceAgent(BaseModel):
    """Agent record created on the voice platform for a mode."""

    model_config = ConfigDict(extra="allow")

    agent_id: str = Field(..., description="Voice platform agent identifier")
    agent_name: str | None = None
    voice_id: str | None = None
    language: str | None = None


class ModeSettings(BaseModel):
    """Fields that exist once per mode."""

    bot_name: str | None = Field(None, description="Name the agent introduces itself with")
    tone: str | None = Field(None, description="Conversational tone, e.g. 'friendly'")
    model: str | None = Field(None, description="Voice platform LLM model identifier")
    begin_message: str | None = Field(None, description="First line spoken on a call")
    call_transfer_number: str | None = Field(None, description="Number to transfer calls to")
    general_prompt: str | None = Field(
        None, description="User-edited prompt template overriding the default"
    )
    llm_data: AgentConfig | None = Field(None, description="Cached LLM configuration")
    agent_data: VoiceAgent | None = Field(None, description="Cached agent record")


class RestaurantInfo(BaseModel):
    """Restaurant facts shared by every mode."""

    restaurant_name: str | None = None
    address: str | None = None
    seating_capacity: int | None = Field(None, ge=0)
    menu: str | None = None


class UserProfile(RestaurantInfo):
    """Everything stored for one restaurant owner."""

    modes: dict[Mode, ModeSettings] = Field(default_factory=dict)
    analytics: dict[Mode, dict[str, dict]] = Field(
        default_factory=dict, description="Raw call payloads keyed by mode then call id"
    )

    def settings(self, mode: Mode) -> ModeSettings:
        """Return the settings for ``mode`` (empty settings if none stored)."""
        return self.modes.get(Mode(mode)) or ModeSettings()

    def calls(self, mode: Mode) -> dict[str, dict]:
        """Return stored call payloads for ``mode``."""
        return self.analytics.get(Mode(mode), {})


class CallerConfigUpdate(BaseModel):
    """Edits submitted from the bot configuration form."""

    bot_name: str | None = None
    tone: str | None = None
    model: str | None = None
    begin_message: str | None = None
    call_transfer_number: str | None = None
