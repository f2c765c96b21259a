"""Bounded, most-recent-first gallery strip of already announced records."""
from collections import deque
from typing import Deque, Iterable, Tuple

from resultwall.config import HISTORY_CAPACITY
from resultwall.models.record import Record


class DisplayHistory:
    """Fixed-capacity history. Inserting past capacity drops the oldest (last) entry."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self._items: Deque[Record] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen

    def __len__(self) -> int:
        return len(self._items)

    def contains(self, record_id: str) -> bool:
        return any(r.record_id == record_id for r in self._items)

    def insert_most_recent(self, record: Record) -> None:
        """Prepend record; an older entry with the same id is removed first."""
        for existing in list(self._items):
            if existing.record_id == record.record_id:
                self._items.remove(existing)
        # appendleft on a full deque(maxlen) discards from the right
        self._items.appendleft(record)

    def seed(self, records: Iterable[Record]) -> None:
        """Replace contents with records given most-recent-first (initial load)."""
        self._items.clear()
        seen = set()
        for record in records:
            if record.record_id in seen:
                continue
            seen.add(record.record_id)
            self._items.append(record)
            if len(self._items) == self._items.maxlen:
                break

    def snapshot(self) -> Tuple[Record, ...]:
        return tuple(self._items)
