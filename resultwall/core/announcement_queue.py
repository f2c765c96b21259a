"""Pending announcements: FIFO, one entry per record id."""
import logging
from collections import OrderedDict
from typing import Callable, List, Optional

from resultwall.models.record import Record

logger = logging.getLogger(__name__)


class AnnouncementQueue:
    """Records waiting to be announced, in first-arrival order.

    is_settled(record_id) reports ids that must not be queued again: the
    in-flight record and anything already in the display history. The
    sequencer supplies it.
    """

    def __init__(self, is_settled: Optional[Callable[[str], bool]] = None) -> None:
        self._pending: "OrderedDict[str, Record]" = OrderedDict()
        self._is_settled = is_settled or (lambda _record_id: False)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._pending

    def enqueue(self, record: Record) -> bool:
        """Queue record. Returns True if it was appended as a new entry."""
        if self._is_settled(record.record_id):
            logger.debug("Queue: %s already announced or in flight, ignoring", record.record_id)
            return False
        if record.record_id in self._pending:
            # OrderedDict keeps the original position on reassignment
            self._pending[record.record_id] = record
            logger.debug("Queue: refreshed pending %s", record.record_id)
            return False
        self._pending[record.record_id] = record
        return True

    def dequeue(self) -> Optional[Record]:
        """Pop the head, or None when nothing is pending."""
        if not self._pending:
            return None
        _, record = self._pending.popitem(last=False)
        return record

    def pending(self) -> List[Record]:
        return list(self._pending.values())
