"""FastAPI server exposing prompt editing, agent sync and test calls."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agentdesk.config import Config, get_config, setup_logging
from agentdesk.errors import (
    AgentDeskError,
    EditorBusyError,
    MissingFieldError,
    NotFoundError,
    PlaceholderRemovedError,
)
from agentdesk.models import (
    CallerConfigUpdate,
    CallEvent,
    CallSession,
    Mode,
    RestaurantInfo,
)
from agentdesk.prompts import resolve_prompt
from agentdesk.services import (
    AgentSyncService,
    CallSessionManager,
    CompletionClient,
    PromptEditor,
    PromptEditorRegistry,
    VoicePlatformClient,
)
from agentdesk.services.analytics import filter_calls, share_links
from agentdesk.services.transcript_review import TranscriptReviewService
from agentdesk.store import ProfileStore, create_document_store

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Components shared by every request."""

    config: Config
    profiles: ProfileStore
    voice_platform: VoicePlatformClient
    agent_sync: AgentSyncService
    editors: PromptEditorRegistry
    calls: CallSessionManager
    review: TranscriptReviewService


def build_services(cfg: Config) -> AppServices:
    """Wire up the default components from configuration."""
    profiles = ProfileStore(create_document_store(cfg))
    voice_platform = VoicePlatformClient(cfg)
    agent_sync = AgentSyncService(profiles, voice_platform)
    completion = CompletionClient(cfg)

    return AppServices(
        config=cfg,
        profiles=profiles,
        voice_platform=voice_platform,
        agent_sync=agent_sync,
        editors=PromptEditorRegistry(
            profiles,
            agent_sync,
            completion,
            enforce_placeholders=cfg.editor_enforce_placeholders,
        ),
        calls=CallSessionManager(profiles, voice_platform, cfg),
        review=TranscriptReviewService(profiles, agent_sync),
    )


ERROR_STATUS: list[tuple[type[AgentDeskError], int]] = [
    (NotFoundError, 404),
    (MissingFieldError, 422),
    (PlaceholderRemovedError, 422),
    (EditorBusyError, 409),
    (AgentDeskError, 502),
]


class EditorMessageRequest(BaseModel):
    message: str


class EditorDecisionRequest(BaseModel):
    confirmed: bool


class CallEventRequest(BaseModel):
    event: CallEvent
    payload: dict[str, Any] = Field(default_factory=dict)


class ReviewRequest(BaseModel):
    call_ids: list[str]


WEBHOOK_EVENTS = {
    "call_started": CallEvent.STARTED,
    "call_ended": CallEvent.ENDED,
    "call_analyzed": CallEvent.ANALYZED,
}


def get_services(request: Request) -> AppServices:
    """Dependency to get the shared components from app state."""
    return request.app.state.services


def editor_state(editor: PromptEditor, reply: str | None = None) -> dict[str, Any]:
    pending = editor.pending_change
    return {
        "reply": reply,
        "state": editor.state.value,
        "pending_change": pending.model_dump() if pending else None,
        "messages": [m.model_dump() for m in editor.messages],
    }


def call_view(session: CallSession) -> dict[str, Any]:
    return session.model_dump(mode="json")


def create_app(services: AppServices | None = None) -> FastAPI:
    """Create the API application.

    Args:
        services: Pre-built components (built from config at startup if omitted)
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Application lifespan manager."""
        app_services = services or build_services(get_config())
        _app.state.services = app_services
        logger.info(
            f"Starting AgentDesk API (store: {app_services.config.store_backend})"
        )

        yield

        logger.info("Shutting down AgentDesk API")
        await app_services.calls.shutdown()
        await app_services.voice_platform.aclose()
        await app_services.profiles.store.close()

    app = FastAPI(
        title="AgentDesk API",
        description="Restaurant voice assistant management API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgentDeskError)
    async def agentdesk_error_handler(_request: Request, exc: AgentDeskError):
        status_code = next(code for cls, code in ERROR_STATUS if isinstance(exc, cls))
        if status_code >= 500:
            logger.error(f"Upstream failure: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": type(exc).__name__, "message": str(exc)},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(_request: Request, exc: ValueError):
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "ValueError", "message": str(exc)},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "service": "agentdesk-api"}

    @app.get("/users/{user_id}/modes/{mode}/prompt")
    async def get_prompt(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        """Return the mode's prompt template with placeholders."""
        profile = await svc.profiles.get(user_id)
        settings = profile.settings(mode)
        return {
            "mode": mode.value,
            "prompt": resolve_prompt(profile, mode),
            "is_custom": bool(settings.general_prompt),
        }

    @app.post("/users/{user_id}/modes/{mode}/provision")
    async def provision(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        profile = await svc.agent_sync.provision_agent(user_id, mode)
        return profile.settings(mode).model_dump(mode="json")

    @app.post("/users/{user_id}/modes/{mode}/sync")
    async def sync(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        agent_config = await svc.agent_sync.sync_agent(user_id, mode)
        return agent_config.model_dump(mode="json")

    @app.put("/users/{user_id}/modes/{mode}/caller-config")
    async def update_caller_config(
        user_id: str,
        mode: Mode,
        update: CallerConfigUpdate,
        svc: AppServices = Depends(get_services),
    ):
        profile = await svc.agent_sync.update_caller_config(user_id, mode, update)
        return profile.settings(mode).model_dump(mode="json")

    @app.put("/users/{user_id}/restaurant")
    async def update_restaurant(
        user_id: str, info: RestaurantInfo, svc: AppServices = Depends(get_services)
    ):
        profile = await svc.agent_sync.update_restaurant_info(user_id, info)
        return RestaurantInfo.model_validate(profile.model_dump()).model_dump()

    @app.post("/users/{user_id}/modes/{mode}/editor/messages")
    async def send_editor_message(
        user_id: str,
        mode: Mode,
        body: EditorMessageRequest,
        svc: AppServices = Depends(get_services),
    ):
        """Send an edit request to the prompt engineer and stage its proposal."""
        editor = svc.editors.get(user_id, mode)
        reply = await editor.send_message(body.message)
        return editor_state(editor, reply.content)

    @app.post("/users/{user_id}/modes/{mode}/editor/confirm")
    async def decide_editor_change(
        user_id: str,
        mode: Mode,
        body: EditorDecisionRequest,
        svc: AppServices = Depends(get_services),
    ):
        """Apply or discard the pending prompt change."""
        editor = svc.editors.get(user_id, mode)
        agent_config = await editor.decide(body.confirmed)
        state = editor_state(editor)
        state["applied"] = agent_config is not None
        return state

    @app.get("/users/{user_id}/modes/{mode}/editor")
    async def get_editor(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        return editor_state(svc.editors.get(user_id, mode))

    @app.post("/users/{user_id}/modes/{mode}/editor/transcribe")
    async def transcribe(
        user_id: str, mode: Mode, request: Request, svc: AppServices = Depends(get_services)
    ):
        """Convert a recorded voice request (raw audio body) to text."""
        audio = await request.body()
        if not audio:
            raise ValueError("Request body must contain audio")
        text = await svc.editors.get(user_id, mode).transcribe(audio)
        return {"text": text}

    @app.post("/users/{user_id}/modes/{mode}/calls")
    async def start_call(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        session = await svc.calls.start_call(user_id, mode)
        return call_view(session)

    @app.post("/calls/{call_id}/stop")
    async def stop_call(call_id: str, svc: AppServices = Depends(get_services)):
        session = await svc.calls.stop_call(call_id)
        return call_view(session)

    @app.post("/calls/{call_id}/events")
    async def call_event(
        call_id: str, body: CallEventRequest, svc: AppServices = Depends(get_services)
    ):
        """Receive a lifecycle notification relayed by the browser client."""
        session = await svc.calls.handle_event(call_id, body.event, body.payload)
        return call_view(session)

    @app.post("/webhooks/voice")
    async def voice_webhook(request: Request, svc: AppServices = Depends(get_services)):
        """Handle call lifecycle webhooks from the voice platform."""
        data = await request.json()
        event = WEBHOOK_EVENTS.get(data.get("event"))
        call = data.get("call") or {}
        call_id = call.get("call_id")

        if event is None or not call_id or svc.calls.get_session(call_id) is None:
            logger.debug(f"Ignoring webhook {data.get('event')} for call {call_id}")
            return {"status": "ignored"}

        if event is CallEvent.ENDED:
            payload = {"reason": call.get("disconnection_reason")}
        elif event is CallEvent.ANALYZED:
            payload = call
        else:
            payload = {}

        await svc.calls.handle_event(call_id, event, payload)
        return {"status": "ok"}

    @app.get("/users/{user_id}/modes/{mode}/analytics")
    async def list_calls(
        user_id: str,
        mode: Mode,
        sentiment: str = Query("all"),
        q: str = Query(""),
        svc: AppServices = Depends(get_services),
    ):
        """List stored call records filtered by sentiment and transcript text."""
        profile = await svc.profiles.get(user_id)
        records = filter_calls(profile.calls(mode), sentiment=sentiment, query=q)
        return {"calls": [r.model_dump() for r in records]}

    @app.post("/users/{user_id}/modes/{mode}/review")
    async def review_transcripts(
        user_id: str,
        mode: Mode,
        body: ReviewRequest,
        svc: AppServices = Depends(get_services),
    ):
        """Improve the prompt from up to five selected transcripts."""
        agent_config = await svc.review.improve_prompt(user_id, mode, body.call_ids)
        return agent_config.model_dump(mode="json")

    @app.get("/users/{user_id}/modes/{mode}/share")
    async def share(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        await svc.profiles.get(user_id)
        return share_links(svc.config.public_base_url, user_id, mode)

    @app.get("/shared/{user_id}/{mode}")
    async def shared_session(user_id: str, mode: Mode, svc: AppServices = Depends(get_services)):
        """Public, read-only view used by embedded call widgets."""
        profile = await svc.profiles.get(user_id)
        agent = profile.settings(mode).agent_data
        return {
            "restaurant_name": profile.restaurant_name or "",
            "mode": mode.value,
            "agent_data": agent.model_dump(mode="json") if agent else None,
        }

    @app.post("/shared/{user_id}/{mode}/calls")
    async def shared_start_call(
        user_id: str, mode: Mode, svc: AppServices = Depends(get_services)
    ):
        session = await svc.calls.start_call(user_id, mode)
        return {"call_id": session.call_id, "access_token": session.access_token}

    return app


app = create_app()


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "agentdesk.server:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
