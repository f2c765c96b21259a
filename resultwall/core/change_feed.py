"""Change feed: poll the result store and turn approval flips into change events."""
import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from resultwall.config import FEED_POLL_INTERVAL_SEC
from resultwall.core.record_store import ResultRow, read_results_strict, to_record
from resultwall.models.record import ChangeEvent, EventKind

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """The feed could not be read this round."""


class ChangeFeedPoller:
    """Diffs the active set between polls; emits activated/deactivated events to sink.

    The baseline comes from prime() (the same read that seeded the history)
    or, failing that, from the first successful poll. Rows in the baseline
    are not announced again.
    """

    def __init__(
        self,
        sink: Callable[[ChangeEvent], None],
        path: Optional[Path] = None,
        read_rows: Optional[Callable[[], List[ResultRow]]] = None,
    ) -> None:
        self._sink = sink
        self._read_rows = read_rows or (lambda: read_results_strict(path))
        self._active: Optional[Dict[str, ResultRow]] = None
        self._lock = threading.Lock()
        self._last_poll_at: Optional[float] = None
        self._last_error: Optional[str] = None
        self._poll_thread: Optional[threading.Thread] = None
        self._stop_poll = threading.Event()

    def status(self) -> dict:
        with self._lock:
            return {
                "running": self._poll_thread is not None and self._poll_thread.is_alive(),
                "last_poll_at": self._last_poll_at,
                "last_error": self._last_error,
            }

    def _fetch(self) -> List[ResultRow]:
        try:
            return self._read_rows()
        except (OSError, ValueError, json.JSONDecodeError) as e:
            raise TransportError(f"result store unreadable: {e}") from e

    def prime(self, rows: List[ResultRow]) -> None:
        """Use rows from an earlier read (the history seed) as the baseline.

        Anything approved after that read then shows up as a change on the
        first poll instead of being folded into a later baseline.
        """
        self._active = {r.id: r for r in rows if r.active}
        logger.info("Feed: primed baseline of %d active results", len(self._active))

    def poll_once(self) -> List[ChangeEvent]:
        """One read + diff. Raises TransportError; emitted events are also returned."""
        rows = self._fetch()
        current = {r.id: r for r in rows if r.active}
        previous = self._active
        self._active = current
        with self._lock:
            self._last_poll_at = time.time()
            self._last_error = None
        if previous is None:
            logger.info("Feed: baseline of %d active results", len(current))
            return []

        events = []
        activated = [r for rid, r in current.items() if rid not in previous]
        activated.sort(key=lambda r: r.updated_at)
        for row in activated:
            record = to_record(row)
            if record is None:
                logger.warning("Feed: dropping malformed result %s", row.id)
                continue
            events.append(ChangeEvent(kind=EventKind.ACTIVATED, record=record))
        for rid, row in previous.items():
            if rid in current:
                continue
            record = to_record(row)
            if record is not None:
                events.append(ChangeEvent(kind=EventKind.DEACTIVATED, record=record))

        for event in events:
            self._sink(event)
        if events:
            logger.info("Feed: emitted %d change events", len(events))
        return events

    def start_polling(self, interval_sec: float = FEED_POLL_INTERVAL_SEC) -> None:
        """Start background poll loop. Failed reads are reported and retried next interval."""
        self._stop_poll.clear()

        def _poll_loop() -> None:
            while not self._stop_poll.is_set():
                try:
                    self.poll_once()
                except TransportError as e:
                    with self._lock:
                        self._last_error = str(e)
                    logger.warning("Feed: %s (keeping last known gallery)", e)
                except Exception as e:
                    with self._lock:
                        self._last_error = str(e)
                    logger.exception("Feed: poll failed")
                if self._stop_poll.wait(timeout=interval_sec):
                    break

        self._poll_thread = threading.Thread(target=_poll_loop, name="change-feed", daemon=True)
        self._poll_thread.start()

    def stop_polling(self) -> None:
        """Stop background poll loop."""
        self._stop_poll.set()
        if self._poll_thread:
            self._poll_thread.join(timeout=2.0)
            self._poll_thread = None
