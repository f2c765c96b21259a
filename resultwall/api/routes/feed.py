"""Push endpoint for external change feeds, and feed status."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from resultwall.api.state import AppState, get_state
from resultwall.models.record import MalformedEvent, parse_change_event

logger = logging.getLogger(__name__)

router = APIRouter()


class ChangeEventBody(BaseModel):
    """Either kind ("activated"/"deactivated") or a row-change type ("INSERT"/"UPDATE")."""
    kind: Optional[str] = None
    type: Optional[str] = None
    record: Dict[str, Any]


@router.post("/events", status_code=202)
def push_event(
    body: ChangeEventBody,
    state: AppState = Depends(get_state),
):
    """Accept one change event. Duplicate deliveries are harmless."""
    try:
        event = parse_change_event(body.model_dump(exclude_none=True))
    except MalformedEvent as e:
        logger.warning("Dropping malformed change event: %s", e)
        raise HTTPException(status_code=422, detail=str(e))
    state.sequencer.submit(event)
    return {"accepted": True, "kind": event.kind.value, "id": event.record.record_id}


@router.get("/status")
def feed_status(state: AppState = Depends(get_state)):
    """Poller health; last_error is a non-fatal notice for the operator."""
    return state.feed.status()
