"""Call session management and post-call analytics collection."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from agentdesk.config import Config, get_config
from agentdesk.errors import (
    AgentNotProvisionedError,
    AnalyticsUnavailableError,
    NotFoundError,
    VoicePlatformError,
)
from agentdesk.models import CallEvent, CallSession, CallStatus, Mode
from agentdesk.services.voice_platform import VoicePlatformClient
from agentdesk.store import ProfileStore

logger = logging.getLogger(__name__)


class CallSessionManager:
    """Tracks web call sessions and collects their analytics.

    One instance is created per application and handed to whoever needs it.
    Leaving the ACTIVE state schedules a single analytics task per call id;
    each task writes only to the record of the call it was scheduled for.
    A call is polled at most once, and its stored analytics are never overwritten.
    Finished sessions beyond ``max_tracked_calls`` are forgotten, oldest first.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        voice_platform: VoicePlatformClient,
        cfg: Config | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.profiles = profiles
        self.voice_platform = voice_platform
        self.config = cfg or get_config()
        self.max_attempts = self.config.analytics_max_attempts
        self.interval = self.config.analytics_interval
        self.max_tracked_calls = self.config.max_tracked_calls
        self._sleep = sleep
        self._sessions: dict[str, CallSession] = {}
        self._analytics_tasks: dict[str, asyncio.Task] = {}
        self._collected: set[str] = set()
        self._polled: set[str] = set()

    async def start_call(self, user_id: str, mode: Mode) -> CallSession:
        """Register a web call against the mode's agent.

        Args:
            user_id: Owner of the agent
            mode: Which agent to call

        Returns:
            CallSession holding the access token for the browser

        Raises:
            AgentNotProvisionedError: If the mode has no agent yet
            VoicePlatformError: If the platform refuses the call
        """
        mode = Mode(mode)
        profile = await self.profiles.get(user_id)
        agent = profile.settings(mode).agent_data
        if agent is None:
            raise AgentNotProvisionedError(f"Agent not created yet for mode: {mode.value}")

        data = await self.voice_platform.create_web_call(agent.agent_id)
        session = CallSession(
            call_id=data["call_id"],
            user_id=user_id,
            mode=mode,
            agent_id=agent.agent_id,
            access_token=data["access_token"],
        )
        self._sessions[session.call_id] = session
        self._evict_settled()
        logger.info(f"Created call {session.call_id} for {user_id} ({mode.value})")
        return session

    def get_session(self, call_id: str) -> CallSession | None:
        """Get call session by ID."""
        return self._sessions.get(call_id)

    def _require_session(self, call_id: str) -> CallSession:
        session = self._sessions.get(call_id)
        if session is None:
            raise NotFoundError(f"Call {call_id} not found")
        return session

    async def stop_call(self, call_id: str) -> CallSession:
        """End a call from the user's side."""
        session = self._require_session(call_id)
        self._deactivate(session)
        return session

    async def handle_event(
        self, call_id: str, event: CallEvent, payload: dict[str, Any] | None = None
    ) -> CallSession:
        """Apply a lifecycle notification from the call transport.

        Args:
            call_id: Call the event belongs to
            event: started, ended, error, transcript_update or analyzed
            payload: Event details (end code/reason, error, transcript line,
                or the full analysis for ``analyzed``)
        """
        session = self._require_session(call_id)
        payload = payload or {}
        event = CallEvent(event)

        if event is CallEvent.STARTED:
            if session.status is CallStatus.NOT_STARTED:
                session.status = CallStatus.ACTIVE
                logger.info(f"Call {call_id} started")

        elif event is CallEvent.ENDED:
            session.end_code = payload.get("code")
            session.end_reason = payload.get("reason")
            logger.info(
                f"Call {call_id} ended with code: {session.end_code}, reason: {session.end_reason}"
            )
            self._deactivate(session)

        elif event is CallEvent.ERROR:
            session.error_message = str(payload.get("error") or "unknown error")
            logger.error(f"Call {call_id} failed: {session.error_message}")
            self._deactivate(session)

        elif event is CallEvent.TRANSCRIPT_UPDATE:
            line = payload.get("text")
            if line:
                speaker = payload.get("speaker")
                session.transcript.append(f"{speaker}: {line}" if speaker else line)
                logger.debug(f"Call {call_id} transcript: {line}")

        elif event is CallEvent.ANALYZED:
            self._deactivate(session, schedule=False)
            self.cancel_analytics(call_id)
            if payload and call_id not in self._collected:
                await self.profiles.save_call_analytics(
                    session.user_id, session.mode, call_id, payload
                )
                self._collected.add(call_id)

        return session

    def _deactivate(self, session: CallSession, schedule: bool = True) -> None:
        if session.status is not CallStatus.INACTIVE:
            session.status = CallStatus.INACTIVE
            session.end_time = datetime.now()
        if schedule:
            self._schedule_analytics(session)

    def _schedule_analytics(self, session: CallSession) -> None:
        call_id = session.call_id
        if call_id in self._analytics_tasks or call_id in self._polled | self._collected:
            return

        task = asyncio.create_task(self._collect_analytics(session), name=f"analytics-{call_id}")
        self._analytics_tasks[call_id] = task

    async def fetch_analytics(self, call_id: str) -> dict[str, Any]:
        """Poll the platform until the call's analytics are available.

        Waits ``interval`` seconds before each of up to ``max_attempts``
        requests and stops at the first non-empty payload. Failed requests
        count as attempts.

        Raises:
            AnalyticsUnavailableError: If every attempt came back empty
        """
        for attempt in range(1, self.max_attempts + 1):
            await self._sleep(self.interval)

            try:
                data = await self.voice_platform.get_call(call_id)
            except VoicePlatformError as e:
                logger.warning(f"Analytics attempt {attempt} for call {call_id} failed: {e}")
                continue

            if data:
                logger.info(f"Analytics for call {call_id} available after {attempt} attempts")
                return data

            logger.debug(f"Analytics for call {call_id} not ready (attempt {attempt})")

        raise AnalyticsUnavailableError(call_id, self.max_attempts)

    async def _collect_analytics(self, session: CallSession) -> None:
        # Analytics loss never affects the session itself
        try:
            data = await self.fetch_analytics(session.call_id)
            await self.profiles.save_call_analytics(
                session.user_id, session.mode, session.call_id, data
            )
            self._collected.add(session.call_id)
            self._polled.add(session.call_id)
        except asyncio.CancelledError:
            logger.info(f"Analytics collection for call {session.call_id} cancelled")
            raise
        except AnalyticsUnavailableError as e:
            self._polled.add(session.call_id)
            logger.warning(str(e))
        except Exception:
            logger.exception(f"Error saving call analytics for {session.call_id}")
        finally:
            if self._analytics_tasks.get(session.call_id) is asyncio.current_task():
                del self._analytics_tasks[session.call_id]

    def _evict_settled(self) -> None:
        # Insertion order of _sessions is start order
        excess = len(self._sessions) - self.max_tracked_calls
        if excess <= 0:
            return

        for call_id in list(self._sessions):
            if excess <= 0:
                break
            session = self._sessions[call_id]
            if session.status is not CallStatus.INACTIVE or call_id in self._analytics_tasks:
                continue
            del self._sessions[call_id]
            self._collected.discard(call_id)
            self._polled.discard(call_id)
            excess -= 1
            logger.debug(f"Forgot finished call {call_id}")

    def analytics_task(self, call_id: str) -> asyncio.Task | None:
        """Return the pending analytics task for a call, if any."""
        return self._analytics_tasks.get(call_id)

    def cancel_analytics(self, call_id: str) -> bool:
        """Cancel the pending analytics task for a call.

        Returns:
            True if a task was cancelled
        """
        task = self._analytics_tasks.pop(call_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def shutdown(self) -> None:
        """Cancel every pending analytics task and wait for them to finish."""
        tasks = list(self._analytics_tasks.values())
        self._analytics_tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
