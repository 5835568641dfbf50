"""
Tests for the sync state value object and guard.

Verifies:
- idle -> running -> idle is the only legal cycle
- Starting twice is an error, not a silent race
- Concurrent starts: exactly one caller wins
"""

import dataclasses
import threading
from datetime import datetime
from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from market.insights import SyncGuard, SyncPhase, SyncState, SyncStateError


# =============================================================================
# Test: SyncState Transitions
# =============================================================================

class TestSyncState:
    """Immutable state transitions."""

    def test_initial_state_idle(self):
        state = SyncState()
        assert state.phase == SyncPhase.IDLE
        assert state.is_running is False
        assert state.run_count == 0

    def test_start_then_finish(self):
        started = datetime(2024, 6, 1, 9, 0)
        finished = datetime(2024, 6, 1, 9, 5)

        running = SyncState().start(now=started)
        idle = running.finish(now=finished)

        assert running.is_running
        assert running.started_at == started
        assert idle.phase == SyncPhase.IDLE
        assert idle.finished_at == finished
        assert idle.run_count == 1

    def test_start_while_running_raises(self):
        running = SyncState().start()
        with pytest.raises(SyncStateError):
            running.start()

    def test_finish_while_idle_raises(self):
        with pytest.raises(SyncStateError):
            SyncState().finish()

    def test_error_recorded_and_cleared(self):
        failed = SyncState().start().finish(error="timeout")
        assert failed.last_error == "timeout"
        assert failed.start().last_error is None

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SyncState().phase = SyncPhase.RUNNING

    def test_to_dict(self):
        data = SyncState().to_dict()
        assert data["phase"] == "idle"
        assert data["started_at"] is None


# =============================================================================
# Test: SyncGuard
# =============================================================================

class TestSyncGuard:
    """Atomic check-and-start."""

    def test_try_start_once(self):
        guard = SyncGuard()

        assert guard.try_start() is True
        assert guard.try_start() is False

        guard.finish()
        assert guard.state.phase == SyncPhase.IDLE
        assert guard.try_start() is True

    def test_running_context(self):
        guard = SyncGuard()
        with guard.running() as state:
            assert state.is_running
        assert guard.state.run_count == 1
        assert guard.state.last_error is None

    def test_running_context_records_error(self):
        guard = SyncGuard()
        with pytest.raises(RuntimeError):
            with guard.running():
                raise RuntimeError("provider down")

        assert guard.state.is_running is False
        assert guard.state.last_error == "provider down"

    def test_running_context_released_on_base_exception(self):
        """KeyboardInterrupt and friends still return the guard to idle."""
        guard = SyncGuard()
        with pytest.raises(KeyboardInterrupt):
            with guard.running():
                raise KeyboardInterrupt()

        assert guard.state.is_running is False
        assert guard.state.last_error == "KeyboardInterrupt"
        assert guard.try_start() is True

    def test_nested_running_raises(self):
        guard = SyncGuard()
        with guard.running():
            with pytest.raises(SyncStateError):
                with guard.running():
                    pass

    def test_concurrent_start_single_winner(self):
        guard = SyncGuard()
        barrier = threading.Barrier(16)
        outcomes = []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            started = guard.try_start()
            with lock:
                outcomes.append(started)

        threads = [threading.Thread(target=attempt) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        assert outcomes.count(True) == 1
        assert len(outcomes) == 16
