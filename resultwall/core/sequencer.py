"""Announcement sequencer: one presentation at a time, gated on image readiness, paced by a cooldown.

All queue, history and state mutation happens on the sequencer's own thread
(or whoever calls pump() in tests). Feed adapters only call submit(), which
puts onto the sequencer's inbox. Rendering reads view(), an immutable
GalleryView replaced wholesale on every transition.
"""
import itertools
import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, List, Optional, Tuple

from resultwall.config import (
    ASSET_WAIT_TIMEOUT_SEC,
    COOLDOWN_SEC,
    HISTORY_CAPACITY,
    PRESENTATION_SEC,
)
from resultwall.core.announcement_queue import AnnouncementQueue
from resultwall.core.display_history import DisplayHistory
from resultwall.models.presentation import GalleryView, Phase, Readiness, SequencerState
from resultwall.models.record import (
    ChangeEvent,
    EventKind,
    MalformedEvent,
    Record,
    parse_change_event,
)

logger = logging.getLogger(__name__)

# Inbox marker: something outside the inbox changed (readiness resolved, stop requested)
_WAKE = object()


@dataclass(frozen=True)
class SequencerConfig:
    presentation_sec: float = PRESENTATION_SEC
    cooldown_sec: float = COOLDOWN_SEC
    asset_wait_timeout_sec: float = ASSET_WAIT_TIMEOUT_SEC
    history_capacity: int = HISTORY_CAPACITY


class Sequencer:
    """Serializes activations into timed presentations and folds them into the history."""

    def __init__(
        self,
        gate,
        config: Optional[SequencerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gate = gate
        self._config = config or SequencerConfig()
        self._clock = clock
        self._inbox: "queue.Queue[Any]" = queue.Queue()
        self._history = DisplayHistory(self._config.history_capacity)
        self._queue = AnnouncementQueue(is_settled=self._is_settled)
        self._state = SequencerState()
        self._deadline: Optional[float] = None
        self._readiness_future: Optional[Future] = None
        self._readiness: Optional[Readiness] = None
        self._arrivals = itertools.count(1)
        self._view = GalleryView()
        self._listeners: List[Callable[[GalleryView], None]] = []
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    # --- feed side (any thread) ---

    def submit(self, event: ChangeEvent) -> None:
        if not isinstance(event, ChangeEvent):
            logger.warning("Dropping non-event submission: %r", event)
            return
        self._inbox.put(event)

    def submit_payload(self, payload: Any) -> bool:
        """Parse and submit a raw change payload. Malformed payloads are logged and dropped."""
        try:
            event = parse_change_event(payload)
        except MalformedEvent as e:
            logger.warning("Dropping malformed change event: %s", e)
            return False
        self.submit(event)
        return True

    # --- rendering side (any thread) ---

    def view(self) -> GalleryView:
        return self._view

    def current_presentation(self) -> Optional[Record]:
        return self._view.current_presentation

    def history_snapshot(self) -> Tuple[Record, ...]:
        return self._view.history

    def add_listener(self, callback: Callable[[GalleryView], None]) -> None:
        """callback(view) runs on the sequencer thread after every transition."""
        self._listeners.append(callback)

    # --- lifecycle ---

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def seed_history(self, records: Iterable[Record]) -> None:
        """Initial population, most-recent-first. Must run before start()."""
        if self.running:
            raise RuntimeError("history can only be seeded before the sequencer starts")
        self._history.seed(records)
        self._publish()
        logger.info("Seeded history with %d records", len(self._history))

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="sequencer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        self._inbox.put(_WAKE)
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Sequencer did not stop within %.1fs", timeout)
                return
            self._thread = None

    def _run(self) -> None:
        """Background loop: sleep on the inbox until the next deadline or message."""
        logger.info("Sequencer started")
        while not self._stop.is_set():
            try:
                wait = self.pump()
            except Exception:
                logger.exception("Sequencer step failed")
                wait = 0.5
            try:
                msg = self._inbox.get(timeout=wait)
            except queue.Empty:
                continue
            try:
                self._receive(msg)
            except Exception:
                logger.exception("Dropping inbox message %r", msg)
        logger.info("Sequencer stopped")

    # --- sequencer context ---

    def pump(self, now: Optional[float] = None) -> Optional[float]:
        """Drain the inbox, then advance as far as the clock allows.

        Returns seconds until the next timed transition, or None when the
        sequencer is waiting only on new messages.
        """
        while True:
            try:
                msg = self._inbox.get_nowait()
            except queue.Empty:
                break
            self._receive(msg)
        if now is None:
            now = self._clock()
        self._advance(now)
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - now)

    def _receive(self, msg: Any) -> None:
        if msg is _WAKE:
            return
        if not isinstance(msg, ChangeEvent):
            logger.warning("Dropping unexpected inbox message: %r", msg)
            return
        event = replace(msg, seq=next(self._arrivals))
        if event.kind is EventKind.ACTIVATED:
            if self._queue.enqueue(event.record):
                logger.info(
                    "Queued %s (%s) as arrival #%d",
                    event.record.record_id,
                    event.record.name,
                    event.seq,
                )
        else:
            # Deactivation matters to moderation, not to announcements
            logger.debug("Ignoring %s for %s", event.kind.value, event.record.record_id)

    def _is_settled(self, record_id: str) -> bool:
        in_flight = self._state.record
        if in_flight is not None and in_flight.record_id == record_id:
            return True
        return self._history.contains(record_id)

    def _advance(self, now: float) -> None:
        while True:
            phase = self._state.phase
            if phase is Phase.IDLE:
                record = self._queue.dequeue()
                if record is None:
                    return
                self._await_asset(record, now)
            elif phase is Phase.AWAITING_ASSET:
                readiness = self._poll_readiness(now)
                if readiness is None:
                    return
                self._readiness = readiness
                self._deadline = now + self._config.presentation_sec
                self._transition(SequencerState(Phase.PRESENTING, self._state.record))
            elif phase is Phase.PRESENTING:
                if now < self._deadline:
                    return
                self._history.insert_most_recent(self._state.record)
                self._readiness = None
                self._deadline = now + self._config.cooldown_sec
                self._transition(SequencerState(Phase.COOLDOWN))
            else:
                if now < self._deadline:
                    return
                self._deadline = None
                self._transition(SequencerState(Phase.IDLE))

    def _await_asset(self, record: Record, now: float) -> None:
        fut = self._gate.request(record.image_url)
        self._readiness_future = fut
        self._deadline = now + self._config.asset_wait_timeout_sec
        self._transition(SequencerState(Phase.AWAITING_ASSET, record))
        fut.add_done_callback(lambda _f: self._inbox.put(_WAKE))

    def _poll_readiness(self, now: float) -> Optional[Readiness]:
        fut = self._readiness_future
        record = self._state.record
        if fut.cancelled():
            logger.warning("Readiness check for %s was cancelled", record.record_id)
            readiness = Readiness.FAILED
        elif fut.done():
            try:
                readiness = fut.result()
            except Exception as e:
                logger.warning("Readiness check for %s errored: %s", record.record_id, e)
                readiness = Readiness.FAILED
            if readiness is Readiness.FAILED:
                logger.warning("Image for %s unavailable, presenting without it", record.record_id)
        elif now >= self._deadline:
            fut.cancel()
            logger.warning(
                "Image for %s not ready after %.1fs, presenting without it",
                record.record_id,
                self._config.asset_wait_timeout_sec,
            )
            readiness = Readiness.NO_ASSET
        else:
            return None
        self._readiness_future = None
        return readiness

    def _transition(self, state: SequencerState) -> None:
        logger.info(
            "Sequencer: %s -> %s%s",
            self._state.phase.value,
            state.phase.value,
            f" ({state.record.record_id})" if state.record else "",
        )
        self._state = state
        self._publish()

    def _publish(self) -> None:
        view = GalleryView(
            state=self._state,
            history=self._history.snapshot(),
            readiness=self._readiness,
            version=self._view.version + 1,
        )
        self._view = view
        for callback in list(self._listeners):
            try:
                callback(view)
            except Exception as e:
                logger.warning("Gallery listener failed: %s", e)
