"""Moderation: list submitted results and approve or withdraw them (stored in JSON)."""
from fastapi import APIRouter, Depends, HTTPException

from resultwall.api.state import AppState, get_state
from resultwall.core.record_store import ResultRow

router = APIRouter()


def _row_to_dict(r: ResultRow) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "school": r.school,
        "aplus": r.aplus,
        "reg_no": r.reg_no,
        "phone_number": r.phone_number,
        "image_url": r.image_url,
        "active": r.active,
        "created_at": r.created_at,
        "updated_at": r.updated_at,
    }


@router.get("/pending")
def list_pending_results(state: AppState = Depends(get_state)):
    """Results awaiting approval, newest first."""
    return [_row_to_dict(r) for r in state.get_pending()]


@router.post("/{result_id}/approve")
def approve_result(result_id: str, state: AppState = Depends(get_state)):
    """Approve a result. The change feed picks it up and queues its announcement."""
    row = state.set_active(result_id, True)
    if row is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return _row_to_dict(row)


@router.post("/{result_id}/deactivate")
def deactivate_result(result_id: str, state: AppState = Depends(get_state)):
    """Withdraw approval."""
    row = state.set_active(result_id, False)
    if row is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return _row_to_dict(row)
