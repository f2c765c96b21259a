"""Result records and the change events that announce them."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from resultwall.config import MIN_SCORE, PERFECT_SCORE


class MalformedEvent(ValueError):
    """Change payload that cannot become a ChangeEvent (no id, bad kind, bad score)."""


@dataclass(frozen=True)
class Record:
    """One approved result. Identity is record_id; other fields may change between arrivals."""
    record_id: str
    name: str
    school: Optional[str] = None
    score: Optional[int] = None  # A+ count, 0..10
    image_url: Optional[str] = None


class EventKind(str, Enum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class ChangeEvent:
    """A record tagged with what happened to it. seq is assigned on receipt, never by the sender."""
    kind: EventKind
    record: Record
    seq: int = 0


def record_from_dict(data: Any) -> Record:
    """Build a Record from a feed/store row. Raises MalformedEvent."""
    if not isinstance(data, dict):
        raise MalformedEvent("record payload is not an object")
    raw_id = data.get("id", data.get("record_id"))
    if raw_id is None or str(raw_id).strip() == "":
        raise MalformedEvent("record has no identifier")
    score = data.get("aplus", data.get("score"))
    if score is not None:
        try:
            score = int(score)
        except (TypeError, ValueError):
            raise MalformedEvent(f"record {raw_id}: score {score!r} is not an integer")
        if not MIN_SCORE <= score <= PERFECT_SCORE:
            raise MalformedEvent(f"record {raw_id}: score {score} out of range")
    return Record(
        record_id=str(raw_id),
        name=data.get("name") or "",
        school=data.get("school") or None,
        score=score,
        image_url=data.get("image_url") or None,
    )


def parse_change_event(payload: Any) -> ChangeEvent:
    """Parse a pushed change payload.

    Accepts either ``{"kind": "activated", "record": {...}}`` or a database
    webhook row change ``{"type": "UPDATE", "record": {...}}`` where the
    row's ``active`` flag decides the kind.
    """
    if not isinstance(payload, dict):
        raise MalformedEvent("event payload is not an object")
    record = record_from_dict(payload.get("record"))
    kind = payload.get("kind")
    if kind is None:
        if payload.get("type") not in ("INSERT", "UPDATE"):
            raise MalformedEvent(f"unsupported change type {payload.get('type')!r}")
        active = bool((payload.get("record") or {}).get("active"))
        kind = EventKind.ACTIVATED if active else EventKind.DEACTIVATED
    try:
        kind = EventKind(kind)
    except ValueError:
        raise MalformedEvent(f"unknown event kind {kind!r}")
    return ChangeEvent(kind=kind, record=record)
