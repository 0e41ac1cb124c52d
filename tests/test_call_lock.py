"""Tests for the upstream call serializer."""

import threading

import pytest

from lungcat.call_lock import CallSerializer
from lungcat.errors import ConcurrencyRejectedError


class TestTryAcquire:
    """Test the non-blocking gate."""

    def test_acquire_release_sequence(self):
        serializer = CallSerializer()

        assert serializer.try_acquire() is True
        assert serializer.try_acquire() is False
        serializer.release()
        assert serializer.try_acquire() is True

    def test_release_is_idempotent(self):
        serializer = CallSerializer()
        serializer.release()
        serializer.try_acquire()
        serializer.release()
        serializer.release()

        assert serializer.in_progress is False
        assert serializer.current_call_id is None

    def test_call_id_assigned(self):
        serializer = CallSerializer()
        serializer.try_acquire("motivation:user_1")

        stats = serializer.get_stats()
        assert stats["in_progress"] is True
        assert stats["label"] == "motivation:user_1"
        assert len(stats["call_id"]) == 12

    def test_only_one_thread_wins(self):
        serializer = CallSerializer()
        barrier = threading.Barrier(8)
        results = []
        results_lock = threading.Lock()

        def contend():
            barrier.wait()
            acquired = serializer.try_acquire()
            with results_lock:
                results.append(acquired)

        threads = [threading.Thread(target=contend) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 7


class TestHold:
    """Test the context manager."""

    def test_hold_releases_on_exit(self):
        serializer = CallSerializer()
        with serializer.hold("tip") as call_id:
            assert serializer.in_progress is True
            assert call_id == serializer.current_call_id

        assert serializer.in_progress is False

    def test_hold_releases_on_error(self):
        serializer = CallSerializer()
        with pytest.raises(RuntimeError):
            with serializer.hold("tip"):
                raise RuntimeError("boom")

        assert serializer.in_progress is False

    def test_hold_rejects_when_busy(self):
        serializer = CallSerializer()
        serializer.try_acquire("first")

        with pytest.raises(ConcurrencyRejectedError) as exc_info:
            with serializer.hold("second"):
                pass
        assert exc_info.value.holder_call_id == serializer.current_call_id
        assert serializer.in_progress is True
