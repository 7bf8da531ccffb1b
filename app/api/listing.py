"""
Listing session API — everything the SellSmart page does goes through here.

GET    /v1/options                     — choice lists for the Edit / Pro Style views
GET    /v1/sessions/{id}               — current session state
DELETE /v1/sessions/{id}               — forget the session (page closed)
POST   /v1/sessions/{id}/capture       — photo as data URI / base64, then analyze
POST   /v1/sessions/{id}/capture/file  — photo as multipart upload, then analyze
PUT    /v1/sessions/{id}/view          — switch details / edit / generate
PATCH  /v1/sessions/{id}/draft         — local listing edits
PATCH  /v1/sessions/{id}/style         — Pro Style selections
POST   /v1/sessions/{id}/edit          — quick edit or typed instruction
POST   /v1/sessions/{id}/generate      — Pro Style generation
POST   /v1/sessions/{id}/reset         — back to the upload screen
GET    /v1/sessions/{id}/image         — download the current photo
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError

from ..core.config import get_settings
from ..core.dependencies import find_listing_session, get_listing_session
from ..models.listing import ImageResolution
from ..models.session import ActiveView, SessionState
from ..models.style import LocationChoice, ModelChoice, QuickEdit, StyleChoice
from ..services import session_store
from ..services.image_capture import InvalidImage, capture_from_base64, load_image
from ..services.listing_session import (
    ActionResult,
    InvalidTransition,
    ListingSession,
    SessionBusy,
)

logger = logging.getLogger(__name__)

listing_router = APIRouter(tags=["listing"])


# ── Response models ──────────────────────────────────────────────────

class LoadingOut(BaseModel):
    active: bool
    message: str = ""


class StyleOut(BaseModel):
    model: ModelChoice
    location: LocationChoice
    style: StyleChoice
    custom_details: str = ""
    resolution: ImageResolution


class SessionResponse(BaseModel):
    session_id: str
    phase: str
    active_view: str
    image: Optional[str] = None            # data URI
    draft: Optional[dict] = None           # camelCase listing fields
    display_hashtags: list[str] = []
    price_digits: str = ""
    loading: LoadingOut
    style: StyleOut
    notice: Optional[str] = None


class ActionResponse(BaseModel):
    ok: bool
    notice: Optional[str] = None
    session: SessionResponse


class OptionsResponse(BaseModel):
    models: list[str]
    locations: list[str]
    styles: list[str]
    resolutions: list[str]
    quick_edits: list[str]


# ── Request models ───────────────────────────────────────────────────

class CaptureRequest(BaseModel):
    data: str                              # data:image/jpeg;base64,... or raw base64
    filename: Optional[str] = None


class ViewRequest(BaseModel):
    view: ActiveView


class DraftUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price_range: Optional[str] = None
    hashtags: Optional[list[str]] = None
    suggested_marketplaces: Optional[list[str]] = None


class StyleUpdate(BaseModel):
    model: Optional[ModelChoice] = None
    location: Optional[LocationChoice] = None
    style: Optional[StyleChoice] = None
    custom_details: Optional[str] = None
    resolution: Optional[ImageResolution] = None


class EditRequest(BaseModel):
    instruction: Optional[str] = None
    quick_edit: Optional[QuickEdit] = None


# ── Helpers ──────────────────────────────────────────────────────────

def _state_response(session_id: str, state: SessionState) -> SessionResponse:
    draft = state.draft
    return SessionResponse(
        session_id=session_id,
        phase=state.phase.value,
        active_view=state.active_view.value,
        image=state.image.to_data_uri() if state.image else None,
        draft=draft.model_dump(mode="json", by_alias=True) if draft else None,
        display_hashtags=draft.display_hashtags() if draft else [],
        price_digits=draft.price_digits() if draft else "",
        loading=LoadingOut(active=state.loading.active, message=state.loading.message),
        style=StyleOut(
            model=state.style.model,
            location=state.style.location,
            style=state.style.style,
            custom_details=state.style.custom_details,
            resolution=state.style.resolution,
        ),
        notice=state.notice,
    )


def _session_response(session: ListingSession) -> SessionResponse:
    return _state_response(session.session_id, session.state)


def _action_response(session: ListingSession, result: ActionResult) -> ActionResponse:
    return ActionResponse(ok=result.ok, notice=result.notice, session=_session_response(session))


def _conflict(e: Exception) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


async def _capture(session: ListingSession, load, *args) -> ActionResponse:
    if session.busy:
        raise _conflict(SessionBusy("Please wait for the current request to finish."))
    try:
        image = await asyncio.to_thread(load, *args)
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        result = await session.capture(image)
    except (InvalidTransition, SessionBusy) as e:
        raise _conflict(e)
    return _action_response(session, result)


# ── Routes ───────────────────────────────────────────────────────────

@listing_router.get("/options", response_model=OptionsResponse)
async def options():
    return OptionsResponse(
        models=[m.value for m in ModelChoice],
        locations=[loc.value for loc in LocationChoice],
        styles=[s.value for s in StyleChoice],
        resolutions=[r.value for r in ImageResolution],
        quick_edits=[q.value for q in QuickEdit],
    )


@listing_router.get("/sessions/{session_id}", response_model=SessionResponse)
async def read_session(
    session_id: str,
    session: Optional[ListingSession] = Depends(find_listing_session),
):
    """Current state. An unknown id reads as a fresh upload screen and is not stored."""
    if session is None:
        return _state_response(session_id, SessionState())
    return _session_response(session)


@listing_router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    session_store.remove_session(session_id)
    return Response(status_code=204)


@listing_router.post("/sessions/{session_id}/capture", response_model=ActionResponse)
async def capture(
    request: CaptureRequest,
    session: ListingSession = Depends(get_listing_session),
):
    """Upload a photo (data URI or base64) and get the AI listing for it."""
    return await _capture(session, capture_from_base64, request.data, request.filename)


@listing_router.post("/sessions/{session_id}/capture/file", response_model=ActionResponse)
async def capture_file(
    file: UploadFile = File(..., description="JPEG or PNG photo of the item"),
    session: ListingSession = Depends(get_listing_session),
):
    """Upload a photo as multipart form data and get the AI listing for it."""
    # One byte over the limit is enough for load_image to refuse it.
    file_bytes = await file.read(get_settings().max_upload_bytes + 1)
    return await _capture(session, load_image, file_bytes, file.filename)


@listing_router.put("/sessions/{session_id}/view", response_model=SessionResponse)
async def select_view(
    request: ViewRequest,
    session: ListingSession = Depends(get_listing_session),
):
    try:
        session.select_view(request.view)
    except InvalidTransition as e:
        raise _conflict(e)
    return _session_response(session)


@listing_router.patch("/sessions/{session_id}/draft", response_model=SessionResponse)
async def update_draft(
    request: DraftUpdate,
    session: ListingSession = Depends(get_listing_session),
):
    """Edit the listing text. Stays local; nothing is sent to Gemini."""
    try:
        session.update_draft(**request.model_dump(exclude_unset=True, exclude_none=True))
    except InvalidTransition as e:
        raise _conflict(e)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response(session)


@listing_router.patch("/sessions/{session_id}/style", response_model=SessionResponse)
async def update_style(
    request: StyleUpdate,
    session: ListingSession = Depends(get_listing_session),
):
    session.update_style(**request.model_dump(exclude_unset=True, exclude_none=True))
    return _session_response(session)


@listing_router.post("/sessions/{session_id}/edit", response_model=ActionResponse)
async def edit(
    request: EditRequest,
    session: ListingSession = Depends(get_listing_session),
):
    """Apply a quick edit (or typed instruction) to the current photo."""
    instruction = request.quick_edit if request.quick_edit is not None else (request.instruction or "")
    try:
        result = await session.apply_edit(instruction)
    except (InvalidTransition, SessionBusy) as e:
        raise _conflict(e)
    return _action_response(session, result)


@listing_router.post("/sessions/{session_id}/generate", response_model=ActionResponse)
async def generate(session: ListingSession = Depends(get_listing_session)):
    """Restyle the photo with the session's current Pro Style selection."""
    try:
        result = await session.generate_pro()
    except (InvalidTransition, SessionBusy) as e:
        raise _conflict(e)
    return _action_response(session, result)


@listing_router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset(session: ListingSession = Depends(get_listing_session)):
    try:
        session.reset()
    except SessionBusy as e:
        raise _conflict(e)
    return _session_response(session)


@listing_router.get("/sessions/{session_id}/image")
async def download_image(session: Optional[ListingSession] = Depends(find_listing_session)):
    """Download the current photo as an attachment."""
    image = session.state.image if session is not None else None
    if image is None:
        raise HTTPException(status_code=404, detail="No image in this session")
    filename = f"smart-sell-image{image.extension}"
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
