"""
Session REST endpoints.

Thin adapter over the active ``VoiceSession``: every endpoint triggers one
transition and answers with the resulting snapshot. No business logic here.
"""

from fastapi import APIRouter, Request

from voicecheck.api.middleware.error_handler import ERROR_RESPONSES

from voicecheck.core.exceptions import NoActiveSessionError
from voicecheck.core.models import (
    NavigateRequest,
    SessionCreate,
    SessionSnapshot,
    ShareLinkResponse,
    SpectrumResponse,
)
from voicecheck.services import session as session_registry
from voicecheck.services.session import VoiceSession

router = APIRouter(prefix="/session", tags=["session"], responses=ERROR_RESPONSES)


def _require_session() -> VoiceSession:
    active = session_registry.get_active_session()
    if active is None:
        raise NoActiveSessionError()
    return active


@router.post("", response_model=SessionSnapshot, status_code=201)
async def create_session(request: Request, body: SessionCreate | None = None):
    """Open a fresh session at the given location (share links are adopted here)."""
    body = body or SessionCreate()
    active = await session_registry.create_session(
        url=body.url,
        language=body.language,
        user_agent=request.headers.get("user-agent"),
    )
    return active.snapshot()


@router.get("", response_model=SessionSnapshot)
async def get_session_snapshot():
    """Current state of the active session."""
    return _require_session().snapshot()


@router.post("/start", response_model=SessionSnapshot)
async def start_recording():
    """Acquire the microphone and start recording."""
    active = _require_session()
    await active.start_recording()
    return active.snapshot()


@router.post("/stop", response_model=SessionSnapshot)
async def stop_recording():
    """Stop recording; returns once the analysis has resolved."""
    active = _require_session()
    await active.stop_recording()
    await active.join()
    return active.snapshot()


@router.post("/reset", response_model=SessionSnapshot)
async def reset_session():
    """Return to idle and clear share/admin markers."""
    active = _require_session()
    active.reset()
    return active.snapshot()


@router.post("/share", response_model=ShareLinkResponse)
async def share_result():
    """Produce the share link for the current result."""
    active = _require_session()
    url = await active.share()
    return ShareLinkResponse(url=url, copied=active.copied)


@router.post("/navigate", response_model=SessionSnapshot)
async def navigate(body: NavigateRequest):
    """User-driven location change (only the admin marker is acted on)."""
    active = _require_session()
    active.location.navigate(body.url)
    return active.snapshot()


@router.get("/spectrum", response_model=SpectrumResponse)
async def get_spectrum():
    """Latest level-meter bins of the live recording."""
    return SpectrumResponse(levels=_require_session().levels)
