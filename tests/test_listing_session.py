import asyncio

import pytest

from app.core.errors import AnalysisFailed, AuthError, EditFailed, GenerateFailed, TransportError
from app.models.listing import ImagePayload, ImageResolution
from app.models.session import ActiveView, Phase, SessionState
from app.models.style import LocationChoice, ModelChoice, QuickEdit, StyleSelection
from app.services.listing_session import (
    ANALYZE_FAILED,
    EDIT_FAILED,
    GENERATE_FAILED,
    InvalidTransition,
    ListingSession,
    SessionBusy,
)


@pytest.fixture
def session(gateway):
    s = ListingSession(gateway, session_id="test")
    gateway.session = s
    return s


@pytest.fixture
async def ready(session, photo):
    result = await session.capture(photo)
    assert result.ok
    return session


# ── capture / analyze ────────────────────────────────────────────────

async def test_successful_analysis_moves_to_ready(session, photo, draft):
    result = await session.capture(photo)

    assert result.ok and result.notice is None
    assert session.state.phase is Phase.READY
    assert session.state.active_view is ActiveView.DETAILS
    assert session.state.image == photo
    assert session.state.draft == draft


@pytest.mark.parametrize("error", [AnalysisFailed("bad json"), AuthError("no key"), TransportError("down")])
async def test_failed_analysis_stays_in_upload_and_drops_photo(session, gateway, photo, error):
    gateway.analyze_error = error
    result = await session.capture(photo)

    assert not result.ok
    assert result.notice == ANALYZE_FAILED
    assert session.state.phase is Phase.UPLOAD
    assert session.state.image is None
    assert session.state.draft is None
    assert session.state.notice == ANALYZE_FAILED


async def test_capture_twice_is_refused(ready, photo):
    with pytest.raises(InvalidTransition):
        await ready.capture(photo)


# ── loading indicator ────────────────────────────────────────────────

async def test_loading_is_on_only_during_gateway_calls(session, gateway, photo):
    assert not session.state.loading.active
    await session.capture(photo)
    assert not session.state.loading.active

    gateway.edit_error = EditFailed("no image")
    await session.apply_edit("Remove the background")
    assert not session.state.loading.active

    await session.generate_pro()
    assert not session.state.loading.active

    assert gateway.loading_seen == [True, True, True]
    assert session.state.loading.message == ""


async def test_loading_cleared_when_gateway_crashes(ready, gateway):
    gateway.edit_error = RuntimeError("unexpected")  # not a GatewayError
    with pytest.raises(RuntimeError):
        await ready.apply_edit("Remove the background")
    assert not ready.state.loading.active


async def test_photo_dropped_when_analysis_crashes(session, gateway, photo):
    gateway.analyze_error = RuntimeError("unexpected")
    with pytest.raises(RuntimeError):
        await session.capture(photo)

    assert session.state.phase == Phase.UPLOAD
    assert session.state.image is None
    assert session.state.draft is None
    assert not session.state.loading.active


async def test_second_call_while_busy_is_refused(ready, gateway):
    gateway.gate = asyncio.Event()
    first = asyncio.create_task(ready.apply_edit("Remove the background"))
    while not ready.busy:
        await asyncio.sleep(0)

    assert ready.state.loading.message == 'Applying: "Remove the background" with Gemini 2.5 Flash...'
    with pytest.raises(SessionBusy):
        await ready.apply_edit("Add a cozy warm filter")
    with pytest.raises(SessionBusy):
        await ready.generate_pro()
    with pytest.raises(SessionBusy):
        ready.reset()

    gateway.gate.set()
    assert (await first).ok
    assert not ready.busy
    assert len([c for c in gateway.calls if c[0] == "edit"]) == 1


# ── edit ─────────────────────────────────────────────────────────────

async def test_edit_replaces_image_and_keeps_draft(ready, gateway, draft):
    result = await ready.apply_edit(QuickEdit.WHITE_WALL)

    assert result.ok
    assert ready.state.image == gateway.edited
    assert ready.state.draft == draft
    assert ready.state.phase is Phase.READY
    assert gateway.calls[-1][2] == "Make the background a white studio wall"


async def test_failed_edit_keeps_prior_image(ready, gateway, photo):
    gateway.edit_error = EditFailed("no image part")
    result = await ready.apply_edit("Remove the background")

    assert not result.ok
    assert result.notice == EDIT_FAILED
    assert ready.state.image == photo
    assert ready.state.image.data == photo.data


async def test_blank_instruction_is_ignored(ready, gateway):
    calls = len(gateway.calls)
    result = await ready.apply_edit("   ")

    assert not result.ok and result.notice is None
    assert len(gateway.calls) == calls


async def test_edit_needs_a_photo(session):
    with pytest.raises(InvalidTransition):
        await session.apply_edit("Remove the background")


# ── generate ─────────────────────────────────────────────────────────

async def test_generate_uses_current_style(ready, gateway):
    ready.update_style(model=ModelChoice.MALE, location=LocationChoice.NATURE,
                       custom_details="golden hour lighting", resolution="4K")
    result = await ready.generate_pro()

    assert result.ok
    _, image, prompt, resolution = gateway.calls[-1]
    assert resolution is ImageResolution.FOUR_K
    assert "Male Model" in prompt and "Nature / Park" in prompt
    assert prompt.endswith("Additional Instructions: golden hour lighting")


async def test_generate_replaces_image(ready, gateway):
    gateway.generated = ImagePayload(data=b"styled", mime_type="image/png")
    await ready.generate_pro()
    assert ready.state.image.data == b"styled"


async def test_failed_generate_keeps_prior_image(ready, gateway, photo, draft):
    gateway.generate_error = GenerateFailed("blocked")
    result = await ready.generate_pro()

    assert result.notice == GENERATE_FAILED
    assert ready.state.image == photo
    assert ready.state.draft == draft


async def test_generate_needs_a_photo(session):
    with pytest.raises(InvalidTransition):
        await session.generate_pro()


# ── views, local edits, reset ────────────────────────────────────────

async def test_views_switch_without_network(ready, gateway):
    calls = len(gateway.calls)
    for view in (ActiveView.EDIT, ActiveView.GENERATE, ActiveView.DETAILS):
        ready.select_view(view)
        assert ready.state.active_view is view
    assert len(gateway.calls) == calls


def test_views_need_a_listing(session):
    with pytest.raises(InvalidTransition):
        session.select_view(ActiveView.EDIT)


async def test_draft_edits_stay_local(ready, gateway):
    calls = len(gateway.calls)
    ready.update_draft(title="Levi's jacket, size M", hashtags=["levis"])

    assert ready.state.draft.title == "Levi's jacket, size M"
    assert ready.state.draft.hashtags == ["levis"]
    assert len(gateway.calls) == calls


async def test_unknown_draft_field(ready):
    with pytest.raises(ValueError):
        ready.update_draft(category="OBJECT")


def test_invalid_style_value(session):
    with pytest.raises(ValueError):
        session.update_style(location="Moon Base")


@pytest.mark.parametrize("view", list(ActiveView))
async def test_reset_returns_to_initial_state(ready, view):
    ready.select_view(view)
    ready.update_style(model=ModelChoice.FEMALE, custom_details="red shoes")
    ready.reset()

    assert ready.state == SessionState()
    assert ready.state.style == StyleSelection()


async def test_reset_after_failure_clears_notice(session, gateway, photo):
    gateway.analyze_error = AnalysisFailed("bad")
    await session.capture(photo)
    session.reset()
    assert session.state.notice is None


async def test_capture_again_after_reset(ready, photo):
    ready.reset()
    assert (await ready.capture(photo)).ok
