"""Tests for the repeating task primitive."""

import threading
import time

import pytest

from conftest import wait_until
from gitok.core.cadence import Rearm, RepeatingTask


class TestRepeatingTask:
    """Tests for RepeatingTask class."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError, match="interval must be positive"):
            RepeatingTask(0, lambda: None)

    def test_fires_repeatedly_until_cancelled(self):
        calls = []
        task = RepeatingTask(0.02, lambda: calls.append(1), rearm=Rearm.FIXED_RATE)
        task.start()

        assert wait_until(lambda: len(calls) >= 3)
        task.cancel()
        count = len(calls)
        time.sleep(0.1)

        assert len(calls) == count
        assert not task.running

    def test_does_not_fire_immediately(self):
        fired = threading.Event()
        task = RepeatingTask(5, fired.set)
        task.start()
        try:
            assert not fired.wait(0.1)
            assert task.seconds_until_next() > 4
        finally:
            task.cancel()

    def test_start_twice_fails(self):
        task = RepeatingTask(5, lambda: None)
        task.start()
        try:
            with pytest.raises(RuntimeError):
                task.start()
        finally:
            task.cancel()

    def test_callback_exception_does_not_stop_task(self):
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("scan blew up")

        task = RepeatingTask(0.02, flaky)
        task.start()
        try:
            assert wait_until(lambda: len(calls) >= 2)
        finally:
            task.cancel()

    def test_fixed_rate_skips_missed_ticks(self):
        calls = []

        def slow():
            calls.append(time.monotonic())
            if len(calls) == 1:
                time.sleep(0.25)

        task = RepeatingTask(0.05, slow, rearm=Rearm.FIXED_RATE)
        task.start()
        try:
            assert wait_until(lambda: len(calls) >= 2)
        finally:
            task.cancel()

        assert task.skipped_ticks >= 3
        # The missed ticks were dropped, not replayed back to back
        assert calls[1] - calls[0] >= 0.25

    def test_after_completion_measures_from_end_of_callback(self):
        calls = []

        def slow():
            calls.append(time.monotonic())
            time.sleep(0.1)

        task = RepeatingTask(0.05, slow, rearm=Rearm.AFTER_COMPLETION)
        task.start()
        try:
            assert wait_until(lambda: len(calls) >= 2)
        finally:
            task.cancel()

        assert calls[1] - calls[0] >= 0.15
        assert task.skipped_ticks == 0

    def test_cancel_from_callback_does_not_deadlock(self):
        calls = []
        holder = {}

        def cancel_self():
            calls.append(1)
            holder["task"].cancel()

        holder["task"] = RepeatingTask(0.02, cancel_self)
        holder["task"].start()

        assert wait_until(lambda: len(calls) == 1)
        time.sleep(0.1)
        assert len(calls) == 1

    def test_next_firing_reported_from_inside_callback(self):
        seen = []
        holder = {}

        def record():
            seen.append(holder["task"].seconds_until_next())
            holder["task"].cancel()

        holder["task"] = RepeatingTask(0.5, record, rearm=Rearm.AFTER_COMPLETION)
        holder["task"].start()

        assert wait_until(lambda: len(seen) == 1)
        # The deadline that just fired is stale; the answer is the re-armed one
        assert seen[0] == pytest.approx(0.5, abs=0.1)

    def test_fixed_rate_next_firing_from_inside_callback(self):
        now = {"value": 0.0}
        seen = []
        holder = {}

        def record():
            now["value"] = 0.25
            seen.append(holder["task"].seconds_until_next())
            holder["task"].cancel()

        holder["task"] = RepeatingTask(
            0.1, record, rearm=Rearm.FIXED_RATE, monotonic=lambda: now["value"]
        )
        holder["task"].start()
        now["value"] = 0.1

        assert wait_until(lambda: len(seen) == 1)
        # Deadline 0.2 was missed; the next one is 0.3
        assert seen[0] == pytest.approx(0.05)
