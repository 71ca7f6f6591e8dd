"""Exception hierarchy for AgentDesk."""


class AgentDeskError(Exception):
    """Base class for all AgentDesk errors."""


class NotFoundError(AgentDeskError):
    """A profile, document or call record does not exist."""


class AgentNotProvisionedError(NotFoundError):
    """The mode has no LLM or agent on the voice platform yet."""


class UpstreamConfigError(AgentDeskError):
    """The voice platform rejected a configuration push."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VoicePlatformError(AgentDeskError):
    """A non-configuration voice platform request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CompletionError(AgentDeskError):
    """The completion or transcription endpoint failed."""


class MalformedResponseError(AgentDeskError):
    """A completion response could not be parsed into the expected shape."""


class PlaceholderRemovedError(MalformedResponseError):
    """A rewritten prompt dropped placeholders of the prompt it replaces."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Rewritten prompt removes placeholders: {', '.join(missing)}")
        self.missing = missing


class AnalyticsUnavailableError(AgentDeskError):
    """Post-call analytics never became available."""

    def __init__(self, call_id: str, attempts: int) -> None:
        super().__init__(
            f"Analytics for call {call_id} unavailable after {attempts} attempts"
        )
        self.call_id = call_id
        self.attempts = attempts


class MissingFieldError(AgentDeskError):
    """A prompt placeholder refers to a profile field that is not set."""

    def __init__(self, field: str, placeholder: str) -> None:
        super().__init__(
            f"Cannot substitute {{{{{placeholder}}}}}: field '{field}' is not set"
        )
        self.field = field
        self.placeholder = placeholder


class EditorBusyError(AgentDeskError):
    """A proposal is already being generated for this editor session."""
