import time

import numpy as np
import pytest

from balance_engine.common.enums import BalanceState
from balance_engine.common.geometry import Vector3
from balance_engine.processing.balance_processor import BalanceProcessor
from balance_engine.scheduling.recompute_scheduler import IntervalTickSource, ManualTickSource, RecomputeScheduler


class CountingProcessor(BalanceProcessor):
    def __init__(self):
        super().__init__({})
        self.calls = 0

    def process_snapshot(self, snapshot, timestamp=None):
        self.calls += 1
        return super().process_snapshot(snapshot, timestamp)


@pytest.fixture
def wired(rig):
    processor = CountingProcessor()
    scheduler = RecomputeScheduler(processor, rig.snapshot)
    rig.add_change_listener(scheduler.mark_dirty)
    return processor, scheduler


def test_clean_tick_does_nothing(wired):
    processor, scheduler = wired

    assert scheduler.tick() is None
    assert processor.calls == 0
    assert scheduler.get_stats()["ticks"] == 1


def test_burst_of_edits_coalesces_into_one_pass(rig, wired):
    processor, scheduler = wired
    ticks = ManualTickSource(scheduler)

    for angle in (5, 10, 15, 20):
        rig.set_joint_local_rotation("mixamorig_Hips", Vector3(x=np.radians(angle)))
    assert scheduler.is_dirty

    frames = ticks.fire(3)

    assert len(frames) == 1
    assert processor.calls == 1
    assert not scheduler.is_dirty
    assert frames[0].state == BalanceState.UNSTABLE
    assert scheduler.get_stats() == {
        "ticks": 3, "recomputes": 1, "coalesced_edits": 3, "failed_passes": 0, "is_dirty": False,
    }


def test_pass_sees_the_latest_edit(rig, wired):
    _, scheduler = wired
    rig.set_joint_local_rotation("mixamorig_Hips", Vector3(x=np.radians(20)))
    rig.reset_pose()

    frame = scheduler.tick()

    assert frame.state == BalanceState.STABLE
    assert scheduler.latest_frame is frame


def test_listeners_receive_each_frame_and_may_redirty(wired):
    _, scheduler = wired
    received = []
    scheduler.subscribe(received.append)
    scheduler.subscribe(lambda frame: scheduler.mark_dirty())

    scheduler.mark_dirty()
    first = scheduler.tick()
    second = scheduler.tick()

    assert received == [first, second]
    assert scheduler.is_dirty


def test_interval_tick_source_runs_pending_pass(wired):
    processor, scheduler = wired
    scheduler.mark_dirty()

    with IntervalTickSource(scheduler, tick_hz=200) as source:
        assert source.is_running()
        deadline = time.perf_counter() + 2.0
        while processor.calls == 0 and time.perf_counter() < deadline:
            time.sleep(0.01)

    assert processor.calls == 1
    assert not source.is_running()
    assert scheduler.get_stats()["ticks"] >= 1


def test_interval_tick_source_rejects_bad_rate(wired):
    _, scheduler = wired
    with pytest.raises(ValueError):
        IntervalTickSource(scheduler, tick_hz=0)


class FlakyProvider:
    """Snapshot provider that fails on its first call, like a rig still loading."""

    def __init__(self, rig):
        self.rig = rig
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("model still loading")
        return self.rig.snapshot()


def test_failed_pass_is_retried_on_next_tick(rig, caplog):
    processor = CountingProcessor()
    scheduler = RecomputeScheduler(processor, FlakyProvider(rig))
    scheduler.mark_dirty()

    assert scheduler.tick() is None
    assert scheduler.is_dirty
    assert "Balance pass failed" in caplog.text

    frame = scheduler.tick()

    assert frame.state == BalanceState.STABLE
    assert scheduler.latest_frame is frame
    assert scheduler.get_stats()["failed_passes"] == 1
    assert not scheduler.is_dirty


def test_failing_listener_does_not_block_others(wired):
    _, scheduler = wired
    received = []

    def broken(frame):
        raise ValueError("bad listener")

    scheduler.subscribe(broken)
    scheduler.subscribe(received.append)
    scheduler.mark_dirty()

    frame = scheduler.tick()

    assert received == [frame]
    scheduler.mark_dirty()
    assert scheduler.tick() is not None


def test_interval_tick_source_survives_a_failed_pass(rig):
    processor = CountingProcessor()
    scheduler = RecomputeScheduler(processor, FlakyProvider(rig))
    scheduler.mark_dirty()

    with IntervalTickSource(scheduler, tick_hz=200) as source:
        deadline = time.perf_counter() + 2.0
        while scheduler.latest_frame is None and time.perf_counter() < deadline:
            time.sleep(0.01)
        ticks_before = scheduler.get_stats()["ticks"]
        time.sleep(0.05)
        assert source.is_running()
        assert scheduler.get_stats()["ticks"] > ticks_before

    assert scheduler.latest_frame is not None
    assert processor.calls == 1
    assert scheduler.get_stats()["failed_passes"] == 1
