"""Run record storage with per-run write serialization."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from kyc_relay.schemas.webhook import RunRecord

logger = logging.getLogger(__name__)

MergeFn = Callable[[Optional[RunRecord]], RunRecord]


class RunStore(ABC):
    """Storage interface used by the webhook reconciler and the aggregator."""

    @abstractmethod
    async def get(self, run_id: str) -> Optional[RunRecord]:
        """Return the record for a run, or None."""

    @abstractmethod
    async def set(self, run_id: str, record: RunRecord) -> None:
        """Replace the record for a run."""

    @abstractmethod
    async def merge(self, run_id: str, merge_fn: MergeFn) -> RunRecord:
        """
        Read-modify-write a record atomically with respect to other writers
        of the same run.

        Args:
            run_id: Workflow run identifier
            merge_fn: Receives the existing record (or None), returns the new one

        Returns:
            The stored record
        """


class InMemoryRunStore(RunStore):
    """
    Process-local store bounded by size (LRU on write) and age (TTL).

    Writes for the same run are serialized with one asyncio.Lock per run id;
    different runs never contend.
    """

    def __init__(
        self,
        max_runs: int = 0,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_runs = max_runs
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: "OrderedDict[str, Tuple[float, RunRecord]]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, run_id: str) -> bool:
        return self._lookup(run_id) is not None

    def _expired(self, written_at: float) -> bool:
        return self.ttl_seconds > 0 and self._clock() - written_at > self.ttl_seconds

    def _drop(self, run_id: str) -> None:
        self._records.pop(run_id, None)
        lock = self._locks.get(run_id)
        if lock is not None and not lock.locked():
            del self._locks[run_id]

    def _lookup(self, run_id: str) -> Optional[RunRecord]:
        entry = self._records.get(run_id)
        if entry is None:
            return None
        written_at, record = entry
        if self._expired(written_at):
            logger.info(f"Run {run_id} expired from webhook store")
            self._drop(run_id)
            return None
        return record

    def _store(self, run_id: str, record: RunRecord) -> None:
        self._records[run_id] = (self._clock(), record)
        self._records.move_to_end(run_id)
        self._evict()

    def _evict(self) -> None:
        """Drop expired entries from the old end, then trim to max_runs."""
        while self._records:
            oldest_id, (written_at, _) = next(iter(self._records.items()))
            if not self._expired(written_at):
                break
            self._drop(oldest_id)

        while self.max_runs > 0 and len(self._records) > self.max_runs:
            oldest_id = next(iter(self._records))
            logger.info(f"Evicting run {oldest_id} from webhook store (max {self.max_runs})")
            self._drop(oldest_id)

    def _lock_for(self, run_id: str) -> asyncio.Lock:
        lock = self._locks.get(run_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[run_id] = lock
        return lock

    async def get(self, run_id: str) -> Optional[RunRecord]:
        return self._lookup(run_id)

    async def set(self, run_id: str, record: RunRecord) -> None:
        self._store(run_id, record)

    async def merge(self, run_id: str, merge_fn: MergeFn) -> RunRecord:
        async with self._lock_for(run_id):
            record = merge_fn(self._lookup(run_id))
            self._store(run_id, record)
            return record
