"""Bounded in-memory table of live execution records."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import List, Optional

from .constants import DEFAULT_MAX_TRACKED_EXECUTIONS
from .models import ExecutionRecord

logger = logging.getLogger(__name__)


class ExecutionTable:
    """LRU of execution records keyed by execution id.

    When the table grows past ``max_entries`` the least recently used
    *finished* records are evicted. Running records are never evicted, so the
    table can temporarily exceed its bound by the number of in-flight runs.
    Evicted records remain available from the store.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_TRACKED_EXECUTIONS) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._records: "OrderedDict[str, ExecutionRecord]" = OrderedDict()

    def add(self, record: ExecutionRecord) -> None:
        self._records[record.id] = record
        self._records.move_to_end(record.id)
        self._evict()

    def get(self, execution_id: str) -> Optional[ExecutionRecord]:
        record = self._records.get(execution_id)
        if record is not None:
            self._records.move_to_end(execution_id)
        return record

    def touch(self, execution_id: str) -> None:
        """Mark a record as recently used and apply the eviction policy."""
        if execution_id in self._records:
            self._records.move_to_end(execution_id)
        self._evict()

    def ids(self) -> List[str]:
        return list(self._records)

    def __contains__(self, execution_id: object) -> bool:
        return execution_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _evict(self) -> None:
        overflow = len(self._records) - self.max_entries
        if overflow <= 0:
            return
        for execution_id in [
            eid for eid, rec in self._records.items() if rec.is_finished
        ][:overflow]:
            del self._records[execution_id]
            logger.debug(f"Evicted execution {execution_id} from the live table")
