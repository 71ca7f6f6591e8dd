"""Data models for the AgentDesk system."""

from agentdesk.models.call import CallEvent, CallRecord, CallSession, CallStatus
from agentdesk.models.editor import ChatMessage, EditorState, PendingChange
from agentdesk.models.profile import (
    AgentConfig,
    CallerConfigUpdate,
    Mode,
    ModeSettings,
    RestaurantInfo,
    UserProfile,
    VoiceAgent,
)

__all__ = [
    "AgentConfig",
    "CallEvent",
    "CallRecord",
    "CallSession",
    "CallStatus",
    "CallerConfigUpdate",
    "ChatMessage",
    "EditorState",
    "Mode",
    "ModeSettings",
    "PendingChange",
    "RestaurantInfo",
    "UserProfile",
    "VoiceAgent",
]
