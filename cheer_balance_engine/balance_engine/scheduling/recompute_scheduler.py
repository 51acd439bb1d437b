# cheer_balance_engine/balance_engine/scheduling/recompute_scheduler.py
import logging
import threading
import time
from typing import Callable, List, Optional
from ..common.models import BalanceFrame, JointSnapshot
from ..processing.balance_processor import BalanceProcessor

logger = logging.getLogger(__name__)

FrameListener = Callable[[BalanceFrame], None]

class RecomputeScheduler:
    """
    Coalesces joint transform edits into at most one balance pass per tick.

    Input handlers call mark_dirty(); the tick source calls tick(). Any number
    of edits between two ticks result in a single recompute on the next tick.
    """

    def __init__(self, processor: BalanceProcessor, snapshot_provider: Callable[[], JointSnapshot]):
        self._processor = processor
        self._snapshot_provider = snapshot_provider
        self._listeners: List[FrameListener] = []
        # Guards the dirty flag and keeps a recompute pass atomic
        self._lock = threading.Lock()
        self._dirty = False
        self._pending_edits = 0
        self._ticks = 0
        self._recomputes = 0
        self._coalesced_edits = 0
        self._failed_passes = 0
        self.latest_frame: Optional[BalanceFrame] = None

    @property
    def is_dirty(self) -> bool:
        with self._lock:
            return self._dirty

    def mark_dirty(self) -> None:
        with self._lock:
            self._dirty = True
            self._pending_edits += 1

    def subscribe(self, listener: FrameListener) -> None:
        self._listeners.append(listener)

    def tick(self) -> Optional[BalanceFrame]:
        """
        Runs one full recompute pass if anything changed since the last one.

        A pass that raises is logged and leaves the scheduler dirty, so the
        next tick retries with a fresh snapshot.
        """
        with self._lock:
            self._ticks += 1
            if not self._dirty:
                return None

            try:
                frame = self._processor.process_snapshot(self._snapshot_provider())
            except Exception:
                self._failed_passes += 1
                logger.exception("Balance pass failed, retrying on next tick")
                return None

            self._recomputes += 1
            self._coalesced_edits += max(self._pending_edits - 1, 0)
            self._pending_edits = 0
            self._dirty = False
            self.latest_frame = frame

        # Outside the lock so listeners may mark the scheduler dirty again
        for listener in list(self._listeners):
            try:
                listener(frame)
            except Exception:
                logger.exception("Frame listener %r failed on frame %d", listener, frame.frame_id)
        return frame

    def get_stats(self) -> dict:
        """Returns tick and recompute counters."""
        with self._lock:
            return {
                "ticks": self._ticks,
                "recomputes": self._recomputes,
                "coalesced_edits": self._coalesced_edits,
                "failed_passes": self._failed_passes,
                "is_dirty": self._dirty,
            }

class ManualTickSource:
    """Tick source fired by hand, for tests and step-through debugging."""

    def __init__(self, scheduler: RecomputeScheduler):
        self.scheduler = scheduler

    def fire(self, count: int = 1) -> List[BalanceFrame]:
        frames = []
        for _ in range(count):
            frame = self.scheduler.tick()
            if frame is not None:
                frames.append(frame)
        return frames

class IntervalTickSource:
    """Fires scheduler ticks at a fixed rate from a dedicated daemon thread."""

    def __init__(self, scheduler: RecomputeScheduler, tick_hz: float = 30.0):
        if tick_hz <= 0:
            raise ValueError(f"tick_hz must be positive, got {tick_hz}")
        self.scheduler = scheduler
        self._interval = 1.0 / tick_hz
        self._running = False
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self):
        """Fixed-interval loop; sleeps off whatever is left of each interval."""
        next_tick = time.perf_counter()
        while self._running:
            self.scheduler.tick()
            next_tick += self._interval
            delay = next_tick - time.perf_counter()
            if delay > 0:
                time.sleep(delay)
            else:
                # Fell behind, skip missed ticks instead of bursting
                next_tick = time.perf_counter()

    def is_running(self) -> bool:
        return self._running and self._thread.is_alive()

    def __enter__(self):
        self._running = True
        self._thread.start()
        logger.info("Tick source started at %.1f Hz.", 1.0 / self._interval)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._running = False
        self._thread.join()
        logger.info("Tick source stopped.")
