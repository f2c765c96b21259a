"""Shared application state (injected into routes)."""
import logging
import threading
from pathlib import Path
from typing import List, Optional

from resultwall.config import INITIAL_LOAD_LIMIT, RESULTS_PATH
from resultwall.core.asset_gate import AssetReadinessGate
from resultwall.core.change_feed import ChangeFeedPoller
from resultwall.core.record_store import (
    ResultRow,
    list_pending,
    list_recent_active,
    load_results,
    read_results_strict,
    set_active,
    to_record,
)
from resultwall.core.sequencer import Sequencer, SequencerConfig
from resultwall.models.presentation import GalleryView
from resultwall.models.record import Record

logger = logging.getLogger(__name__)


class GalleryWatcher:
    """Wakes long-poll requests when the sequencer publishes a new view."""

    def __init__(self, sequencer: Sequencer) -> None:
        self._sequencer = sequencer
        self._changed = threading.Condition()
        sequencer.add_listener(self._on_view)

    def _on_view(self, view: GalleryView) -> None:
        with self._changed:
            self._changed.notify_all()

    def wait_newer(self, version: int, timeout: float) -> GalleryView:
        """Current view once its version passes `version`, or after timeout."""
        with self._changed:
            self._changed.wait_for(lambda: self._sequencer.view().version > version, timeout=timeout)
        return self._sequencer.view()


class AppState:
    def __init__(
        self,
        results_path: Path = RESULTS_PATH,
        gate=None,
        config: Optional[SequencerConfig] = None,
    ) -> None:
        self.results_path = results_path
        self.gate = gate or AssetReadinessGate()
        self.sequencer = Sequencer(self.gate, config=config)
        self.watcher = GalleryWatcher(self.sequencer)
        self._feed: ChangeFeedPoller | None = None

    def get_results(self) -> List[ResultRow]:
        return load_results(self.results_path)

    def get_records(self) -> List[Record]:
        """Every displayable record in the store, for analytics."""
        records = (to_record(r) for r in self.get_results())
        return [r for r in records if r is not None]

    def get_pending(self) -> List[ResultRow]:
        return list_pending(self.get_results())

    def set_active(self, result_id: str, active: bool) -> ResultRow | None:
        return set_active(self.get_results(), result_id, active, self.results_path)

    def seed_history(self, limit: int = INITIAL_LOAD_LIMIT) -> None:
        """One-shot bulk read of the most recently approved results.

        The same read becomes the change feed's baseline, so a result
        approved after it is announced rather than lost.
        """
        try:
            rows = read_results_strict(self.results_path)
        except (OSError, ValueError) as e:
            # Leave the feed unprimed: its first good poll becomes the baseline
            logger.warning("Initial load failed, starting with empty history: %s", e)
            self.sequencer.seed_history([])
            return
        recent = list_recent_active(rows, limit)
        records = (to_record(r) for r in recent)
        self.sequencer.seed_history([r for r in records if r is not None])
        self.feed.prime(rows)

    @property
    def feed(self) -> ChangeFeedPoller:
        if self._feed is None:
            self._feed = ChangeFeedPoller(sink=self.sequencer.submit, path=self.results_path)
        return self._feed


_state: AppState | None = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state
