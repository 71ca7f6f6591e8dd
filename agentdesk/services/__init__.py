"""Services for AgentDesk."""

from agentdesk.services.agent_sync import AgentSyncService, render_prompt
from agentdesk.services.call_manager import CallSessionManager
from agentdesk.services.completion import CompletionClient
from agentdesk.services.prompt_editor import (
    PromptEditor,
    PromptEditorRegistry,
    parse_completion_response,
)
from agentdesk.services.voice_platform import VoicePlatformClient

__all__ = [
    "AgentSyncService",
    "CallSessionManager",
    "CompletionClient",
    "PromptEditor",
    "PromptEditorRegistry",
    "VoicePlatformClient",
    "parse_completion_response",
    "render_prompt",
]
