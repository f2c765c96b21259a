"""Sequencer phase and the read-only view handed to rendering."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from resultwall.models.record import Record


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_ASSET = "awaiting_asset"
    PRESENTING = "presenting"
    COOLDOWN = "cooldown"


class Readiness(str, Enum):
    READY = "ready"
    FAILED = "failed"
    NO_ASSET = "no_asset"


@dataclass(frozen=True)
class SequencerState:
    """Phase plus the in-flight record (only for AWAITING_ASSET and PRESENTING)."""
    phase: Phase = Phase.IDLE
    record: Optional[Record] = None

    def __post_init__(self) -> None:
        carries_record = self.phase in (Phase.AWAITING_ASSET, Phase.PRESENTING)
        if carries_record != (self.record is not None):
            raise ValueError(f"{self.phase.value} state with record={self.record!r}")


@dataclass(frozen=True)
class GalleryView:
    """Immutable snapshot published on every transition."""
    state: SequencerState = field(default_factory=SequencerState)
    history: Tuple[Record, ...] = ()
    readiness: Optional[Readiness] = None
    version: int = 0

    @property
    def current_presentation(self) -> Optional[Record]:
        if self.state.phase is Phase.PRESENTING:
            return self.state.record
        return None
