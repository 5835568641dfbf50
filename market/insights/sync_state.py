"""
Sync state for background listing jobs.

A job is either idle or running. SyncState is an immutable snapshot whose
transitions return a new snapshot; SyncGuard owns the current snapshot and
makes check-and-start atomic so two callers cannot both start a run.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional


class SyncPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"


class SyncStateError(RuntimeError):
    """Raised on an illegal sync transition."""


@dataclass(frozen=True)
class SyncState:
    """Snapshot of a sync job: idle -> running -> idle."""
    phase: SyncPhase = SyncPhase.IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    last_error: Optional[str] = None
    run_count: int = 0

    @property
    def is_running(self) -> bool:
        return self.phase is SyncPhase.RUNNING

    def start(self, now: Optional[datetime] = None) -> "SyncState":
        """
        Enter the running phase.

        Raises:
            SyncStateError: If a run is already in progress
        """
        if self.is_running:
            raise SyncStateError("sync already running")
        return replace(
            self,
            phase=SyncPhase.RUNNING,
            started_at=now or datetime.now(),
            last_error=None,
        )

    def finish(self, error: Optional[str] = None, now: Optional[datetime] = None) -> "SyncState":
        """
        Return to idle, recording the outcome of the run.

        Raises:
            SyncStateError: If no run is in progress
        """
        if not self.is_running:
            raise SyncStateError("sync is not running")
        return replace(
            self,
            phase=SyncPhase.IDLE,
            finished_at=now or datetime.now(),
            last_error=error,
            run_count=self.run_count + 1,
        )

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "is_running": self.is_running,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "last_error": self.last_error,
            "run_count": self.run_count,
        }


class SyncGuard:
    """Thread-safe holder of the current SyncState."""

    def __init__(self):
        self._lock = threading.Lock()
        self._state = SyncState()

    @property
    def state(self) -> SyncState:
        with self._lock:
            return self._state

    def try_start(self) -> bool:
        """Start a run unless one is in progress. Returns True if started."""
        with self._lock:
            if self._state.is_running:
                return False
            self._state = self._state.start()
            return True

    def finish(self, error: Optional[str] = None) -> SyncState:
        with self._lock:
            self._state = self._state.finish(error=error)
            return self._state

    @contextmanager
    def running(self) -> Iterator[SyncState]:
        """
        Hold the guard for the duration of a block.

        Raises:
            SyncStateError: If a run is already in progress
        """
        if not self.try_start():
            raise SyncStateError("sync already running")
        error = None
        try:
            yield self.state
        except Exception as e:
            error = str(e)
            raise
        except BaseException as e:
            error = type(e).__name__
            raise
        finally:
            self.finish(error=error)
