"""OpenAI chat completion and transcription client."""

import logging

import openai
from openai import AsyncOpenAI

from agentdesk.config import Config, get_config
from agentdesk.errors import CompletionError

logger = logging.getLogger(__name__)


class CompletionClient:
    """Thin async wrapper over the OpenAI endpoints the editor relies on."""

    def __init__(
        self, cfg: Config | None = None, openai_client: AsyncOpenAI | None = None
    ) -> None:
        """Initialize the client.

        Args:
            cfg: Application configuration
            openai_client: OpenAI client for LLM calls
        """
        self.config = cfg or get_config()
        self.openai_client = openai_client or AsyncOpenAI(
            api_key=self.config.openai_api_key,
            timeout=self.config.request_timeout,
        )

    async def complete_json(self, system_prompt: str, user_message: str) -> str:
        """Run a JSON-mode chat completion and return the raw message content.

        Raises:
            CompletionError: If the request fails or returns no content
        """
        try:
            response = await self.openai_client.chat.completions.create(
                model=self.config.editor_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                temperature=self.config.editor_temperature,
                max_tokens=self.config.editor_max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            logger.exception("Completion request failed")
            raise CompletionError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CompletionError("Invalid response format from OpenAI")
        return content

    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> str:
        """Convert recorded speech to text."""
        try:
            result = await self.openai_client.audio.transcriptions.create(
                model=self.config.transcription_model,
                file=(filename, audio),
            )
        except openai.OpenAIError as e:
            logger.exception("Transcription request failed")
            raise CompletionError(f"Failed to transcribe audio: {e}") from e

        logger.info(f"Transcribed {len(audio)} bytes of audio")
        return result.text
