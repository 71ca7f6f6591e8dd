"""Chat-based prompt editing: propose, confirm, apply."""

import json
import logging
import re
from typing import Any

from agentdesk.errors import EditorBusyError, MalformedResponseError, PlaceholderRemovedError
from agentdesk.guardrails import validate_edit_request
from agentdesk.models import AgentConfig, ChatMessage, EditorState, Mode, PendingChange
from agentdesk.prompts import load_prompt, missing_placeholders, resolve_prompt
from agentdesk.services.agent_sync import AgentSyncService
from agentdesk.services.completion import CompletionClient
from agentdesk.store import ProfileStore

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)

PROTECTED_FIELDS = (
    "restaurant name",
    "seating capacity",
    "address",
    "menu",
    "bot name",
    "tone",
    "begin message",
    "model",
)


def _load_json_object(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        raise MalformedResponseError("No valid JSON found in response")

    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedResponseError("Invalid JSON structure in response") from e


def parse_completion_response(text: str) -> PendingChange:
    """Turn the completion endpoint's reply into a PendingChange.

    The reply is parsed directly first; failing that, the outermost
    brace-delimited span is extracted and parsed.

    Raises:
        MalformedResponseError: If no object with the required keys is found
    """
    data = _load_json_object(text)
    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object")

    summary = data.get("summary")
    prompt = data.get("prompt") or ""
    if not isinstance(summary, str) or not summary.strip():
        raise MalformedResponseError("Response is missing a summary")
    if not isinstance(prompt, str):
        raise MalformedResponseError("Response prompt is not a string")

    configuration_request = bool(data.get("configurationRequest"))
    if configuration_request:
        if prompt:
            logger.warning("Configuration request carried a prompt; discarding it")
        return PendingChange(prompt="", summary=summary, configuration_request=True)

    if not prompt.strip():
        raise MalformedResponseError("Response is missing the modified prompt")

    return PendingChange(prompt=prompt, summary=summary)


class PromptEditor:
    """One user's prompt editing session for one mode.

    Idle → AwaitingProposal on a user message, AwaitingProposal →
    AwaitingConfirmation once a proposal is parsed, and back to Idle on
    confirm or reject. At most one PendingChange exists at a time.

    Whether a request touches protected fields is decided by the completion
    endpoint's ``configurationRequest`` flag. With ``enforce_placeholders``
    the editor additionally rejects proposals that drop placeholders.
    """

    def __init__(
        self,
        user_id: str,
        mode: Mode,
        profiles: ProfileStore,
        agent_sync: AgentSyncService,
        completion: CompletionClient,
        enforce_placeholders: bool = False,
    ) -> None:
        self.user_id = user_id
        self.mode = Mode(mode)
        self.profiles = profiles
        self.agent_sync = agent_sync
        self.completion = completion
        self.enforce_placeholders = enforce_placeholders

        self._state = EditorState.IDLE
        self._pending: PendingChange | None = None
        self._messages: list[ChatMessage] = []

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def pending_change(self) -> PendingChange | None:
        return self._pending

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def _reset(self) -> None:
        self._pending = None
        self._messages.clear()
        self._state = EditorState.IDLE

    async def build_instruction(self) -> tuple[str, str]:
        """Return the current prompt template and the editor system instruction."""
        profile = await self.profiles.get(self.user_id)
        current_prompt = resolve_prompt(profile, self.mode)
        return current_prompt, load_prompt(
            "prompt_editor",
            current_prompt=current_prompt,
            protected_fields=", ".join(PROTECTED_FIELDS),
        )

    async def send_message(self, message: str) -> ChatMessage:
        """Ask for a prompt change and stage the proposal.

        A message sent while a proposal awaits confirmation rejects that
        proposal first, even if the message itself is then refused.

        Args:
            message: The user's edit request

        Returns:
            The assistant reply added to the conversation

        Raises:
            EditorBusyError: If a proposal is already being generated
            ValueError: If the message fails input validation
            MalformedResponseError: If the reply cannot be parsed
        """
        if self._state is EditorState.AWAITING_PROPOSAL:
            raise EditorBusyError("A proposal is already being generated")

        if self._state is EditorState.AWAITING_CONFIRMATION:
            logger.info("New message while a change was pending; discarding it")
            self.reject()

        text = validate_edit_request(message)

        self._state = EditorState.AWAITING_PROPOSAL
        self._messages.append(ChatMessage(role="user", content=text))

        try:
            current_prompt, instruction = await self.build_instruction()
            raw = await self.completion.complete_json(instruction, text)
            change = parse_completion_response(raw)

            if self.enforce_placeholders and not change.configuration_request:
                missing = missing_placeholders(current_prompt, change.prompt)
                if missing:
                    raise PlaceholderRemovedError(missing)
        except Exception as e:
            logger.exception(f"Failed to get a proposal for {self.user_id} ({self.mode.value})")
            self._state = EditorState.IDLE
            self._messages.append(
                ChatMessage(
                    role="assistant",
                    content=f"I encountered an error: {e}. Please try again with a different request.",
                )
            )
            raise

        self._pending = change
        self._state = EditorState.AWAITING_CONFIRMATION

        if change.configuration_request:
            content = change.summary
        else:
            content = (
                f"Here's what I understand you want to change:\n\n{change.summary}"
                "\n\nWould you like me to apply these changes?"
            )
        reply = ChatMessage(role="assistant", content=content)
        self._messages.append(reply)
        return reply

    async def confirm(self) -> AgentConfig | None:
        """Apply the pending change.

        Configuration requests (and confirming with nothing pending) only
        clear the session. On failure the pending change is kept so the user
        can retry.

        Returns:
            The applied configuration, or None if nothing was written
        """
        if self._state is EditorState.AWAITING_PROPOSAL:
            raise EditorBusyError("A proposal is still being generated")

        change = self._pending
        if change is None or change.configuration_request:
            self._reset()
            return None

        await self.profiles.merge_mode(self.user_id, self.mode, general_prompt=change.prompt)
        agent_config = await self.agent_sync.sync_agent(self.user_id, self.mode)

        logger.info(f"Prompt updated for {self.user_id} ({self.mode.value})")
        self._reset()
        return agent_config

    def reject(self) -> None:
        """Discard the pending change together with the conversation."""
        self._reset()

    async def decide(self, confirmed: bool) -> AgentConfig | None:
        """Confirm when ``confirmed`` is true, reject otherwise."""
        if confirmed:
            return await self.confirm()
        self.reject()
        return None

    async def transcribe(self, audio: bytes) -> str:
        """Turn a recorded voice request into text for :meth:`send_message`."""
        return await self.completion.transcribe(audio)


class PromptEditorRegistry:
    """Holds one PromptEditor per (user, mode)."""

    def __init__(
        self,
        profiles: ProfileStore,
        agent_sync: AgentSyncService,
        completion: CompletionClient,
        enforce_placeholders: bool = False,
    ) -> None:
        self.profiles = profiles
        self.agent_sync = agent_sync
        self.completion = completion
        self.enforce_placeholders = enforce_placeholders
        self._editors: dict[tuple[str, Mode], PromptEditor] = {}

    def get(self, user_id: str, mode: Mode) -> PromptEditor:
        """Return the user's editor for ``mode``, creating it on first use."""
        key = (user_id, Mode(mode))
        editor = self._editors.get(key)
        if editor is None:
            editor = PromptEditor(
                user_id,
                key[1],
                self.profiles,
                self.agent_sync,
                self.completion,
                enforce_placeholders=self.enforce_placeholders,
            )
            self._editors[key] = editor
        return editor
