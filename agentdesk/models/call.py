"""Voice call data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from agentdesk.models.profile import Mode


class CallStatus(str, Enum):
    """Lifecycle of a web call session."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    INACTIVE = "inactive"


class CallEvent(str, Enum):
    """Lifecycle notifications delivered by the call transport."""

    STARTED = "started"
    ENDED = "ended"
    ERROR = "error"
    TRANSCRIPT_UPDATE = "transcript_update"
    ANALYZED = "analyzed"


class CallSession(BaseModel):
    """State for an in-progress or finished web call."""

    call_id: str = Field(description="Voice platform call identifier")
    user_id: str = Field(description="Owner of the agent being called")
    mode: Mode
    agent_id: str
    access_token: str = Field(description="Token the browser uses to join the call")
    status: CallStatus = CallStatus.NOT_STARTED
    transcript: list[str] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None
    end_code: int | None = None
    end_reason: str | None = None
    error_message: str | None = None


class CallRecord(BaseModel):
    """Read-only view over a stored post-call analytics payload."""

    model_config = ConfigDict(frozen=True)

    call_id: str
    start_timestamp: int | None = None
    end_timestamp: int | None = None
    duration_ms: int | None = None
    transcript: str = ""
    sentiment: str | None = None
    summary: str | None = None
    recording_url: str | None = None

    @classmethod
    def from_payload(cls, call_id: str, payload: dict) -> "CallRecord":
        """Build a record from a voice platform ``get-call`` payload."""
        analysis = payload.get("call_analysis") or {}
        start = payload.get("start_timestamp")
        end = payload.get("end_timestamp")
        duration = payload.get("duration_ms")
        if duration is None and start is not None and end is not None:
            duration = end - start

        return cls(
            call_id=payload.get("call_id") or call_id,
            start_timestamp=start,
            end_timestamp=end,
            duration_ms=duration,
            transcript=payload.get("transcript") or "",
            sentiment=analysis.get("user_sentiment"),
            summary=analysis.get("call_summary"),
            recording_url=payload.get("recording_url"),
        )
