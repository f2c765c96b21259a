"""Data models for records, change events, and sequencer state."""
from resultwall.models.presentation import GalleryView, Phase, Readiness, SequencerState
from resultwall.models.record import ChangeEvent, EventKind, MalformedEvent, Record

__all__ = [
    "ChangeEvent",
    "EventKind",
    "GalleryView",
    "MalformedEvent",
    "Phase",
    "Readiness",
    "Record",
    "SequencerState",
]
