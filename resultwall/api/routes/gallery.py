"""Gallery view for the display: current announcement and history strip."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from resultwall.api.state import AppState, get_state
from resultwall.models.presentation import GalleryView
from resultwall.models.record import Record

router = APIRouter()

LONG_POLL_MAX_SEC = 60.0


def record_to_dict(r: Optional[Record]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "id": r.record_id,
        "name": r.name,
        "school": r.school,
        "aplus": r.score,
        "image_url": r.image_url,
    }


def _view_to_dict(view: GalleryView) -> dict:
    return {
        "phase": view.state.phase.value,
        "current": record_to_dict(view.current_presentation),
        "image_ready": view.readiness.value if view.readiness else None,
        "history": [record_to_dict(r) for r in view.history],
        "version": view.version,
    }


@router.get("")
def get_gallery(state: AppState = Depends(get_state)):
    """Phase, current presentation (or null), and history, from one consistent snapshot."""
    return _view_to_dict(state.sequencer.view())


@router.get("/changes")
def wait_for_change(
    since: int = Query(0, ge=0),
    timeout: float = Query(25.0, ge=0.0, le=LONG_POLL_MAX_SEC),
    state: AppState = Depends(get_state),
):
    """Long poll: answers as soon as the view version passes `since`, else after timeout.

    Displays pass back the version they last rendered, so every transition
    reaches them without hammering GET /api/gallery.
    """
    return _view_to_dict(state.watcher.wait_newer(since, timeout))


@router.get("/history")
def get_history(state: AppState = Depends(get_state)):
    """Most recently announced results, newest first."""
    return [record_to_dict(r) for r in state.sequencer.history_snapshot()]
