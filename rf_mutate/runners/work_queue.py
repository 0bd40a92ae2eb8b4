# rf_mutate/runners/work_queue.py
"""
Cross-worker shared state: the pending-transcript queue and the run counters.

Both are guarded by a single coarse lock each, held only for one pop or one
increment.
"""

import threading
from collections import deque
from dataclasses import dataclass, fields
from typing import Dict, Iterable, Optional

from rf_mutate.pipeline.errors import (
    InvalidOrfError,
    InvalidTargetError,
    MotifNotFoundError,
    MutateError,
    ParseError,
    SearchExhaustedError,
)


class WorkQueue:
    """FIFO of transcript identifiers shared by the workers."""

    def __init__(self, items: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._items = deque(items)

    def pop(self) -> Optional[str]:
        """Next identifier, or None once the queue is drained."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass
class RunSummary:
    success: int = 0
    parse_errors: int = 0
    orf_errors: int = 0
    motif_not_found: int = 0
    invalid_targets: int = 0
    mutagenesis_failures: int = 0
    rescue_failures: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class RunCounters:
    """Thread-safe tally of terminal motif/transcript states."""

    def __init__(self):
        self._lock = threading.Lock()
        self._summary = RunSummary()

    def increment(self, name: str, amount: int = 1) -> None:
        if not hasattr(self._summary, name):
            raise KeyError(f"Unknown counter: {name}")
        with self._lock:
            setattr(self._summary, name, getattr(self._summary, name) + amount)

    def record_error(self, error: MutateError, amount: int = 1) -> None:
        """Tally a per-unit error under its category."""
        self.increment(counter_for_error(error), amount)

    def summary(self) -> RunSummary:
        with self._lock:
            return RunSummary(**self._summary.as_dict())


def counter_for_error(error: MutateError) -> str:
    if isinstance(error, ParseError):
        return "parse_errors"
    if isinstance(error, InvalidOrfError):
        return "orf_errors"
    if isinstance(error, MotifNotFoundError):
        return "motif_not_found"
    if isinstance(error, InvalidTargetError):
        return "invalid_targets"
    if isinstance(error, SearchExhaustedError):
        return "rescue_failures" if error.phase == "rescue" else "mutagenesis_failures"
    raise TypeError(f"No counter for {type(error).__name__}")
