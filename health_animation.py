"""
health_animation.py
-------------------

Counting animation for the financial health score.

The displayed integer and a parallel continuous progress value count up to
the latest score with a cubic ease-out. Snapshot changes are debounced so a
burst of refreshes produces one animation towards the last score received,
and a score that barely moved snaps into place instead of restarting.

``HealthScoreAnimator`` is for event-loop hosts: scheduling goes through any
loop exposing ``time()`` and ``call_later(delay, callback)``, so the state
machine never owns a thread or a real timer of its own. Blocking hosts that
redraw inside one script run (the streamlit dashboard) use ``play_frames``
instead, which applies the same snap rule and paces the same frames on the
wall clock.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

from config import ANIMATION_TICK_SECONDS, HEALTH_DEBOUNCE_SECONDS
from models import MAX_SCORE

logger = logging.getLogger(__name__)

BASE_DURATION = 1.8
EXTRA_DURATION = 1.0
SNAP_THRESHOLD = 2


def ease_out_cubic(t: float) -> float:
    t = max(0.0, min(1.0, t))
    return 1 - (1 - t) ** 3


def run_duration(target: int) -> float:
    """Seconds for a full run: 1.8s at 0 up to 2.8s at 100."""
    return BASE_DURATION + (target / 100.0) * EXTRA_DURATION


def should_snap(displayed: int, target: int) -> bool:
    return displayed > 0 and abs(displayed - target) <= SNAP_THRESHOLD


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class AnimationFrame:
    progress: float
    displayed: int
    finished: bool
    # Seconds into the run this frame belongs to, capped at the duration
    elapsed: float = 0.0


def animation_frame(elapsed: float, duration: float, target: int) -> AnimationFrame:
    t = min(elapsed / duration, 1.0) if duration > 0 else 1.0
    at = max(0.0, min(elapsed, duration))
    if t >= 1.0:
        return AnimationFrame(progress=float(target), displayed=target, finished=True, elapsed=at)
    progress = target * ease_out_cubic(t)
    return AnimationFrame(progress=progress, displayed=_round_half_up(progress), finished=False, elapsed=at)


def iter_frames(target: int, interval: float = ANIMATION_TICK_SECONDS) -> Iterator[AnimationFrame]:
    """
    Frames of a full run sampled every ``interval`` seconds.

    Only frames whose displayed integer changed are yielded, and the final
    frame always is. Each frame carries its ``elapsed`` time on the run, so
    a host that waits until that time before drawing keeps the eased pacing.
    """
    duration = run_duration(target)
    last = None
    tick = 1
    while True:
        frame = animation_frame(tick * interval, duration, target)
        if frame.finished or frame.displayed != last:
            last = frame.displayed
            yield frame
        if frame.finished:
            return
        tick += 1


def play_frames(
    displayed: int,
    target: int,
    draw: Callable[[AnimationFrame], None],
    interval: float = ANIMATION_TICK_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Run one count-up inside a blocking host and return the value left on screen.

    A score that barely moved is drawn once at its target. Otherwise each
    frame is drawn at its own time on the run, so the whole run lasts
    ``run_duration(target)`` on the eased curve.
    """
    target = max(0, min(MAX_SCORE, int(target)))
    if should_snap(displayed, target):
        draw(AnimationFrame(progress=float(target), displayed=target, finished=True))
        return target

    started = clock()
    for frame in iter_frames(target, interval):
        delay = started + frame.elapsed - clock()
        if delay > 0:
            sleep(delay)
        draw(frame)
    return target


class AnimationRun:
    """One scheduled run of ticks; cancel() stops it for good."""

    def __init__(self, loop, target: int, duration: float, interval: float,
                 on_frame: Callable[[AnimationFrame], None]):
        self._loop = loop
        self._interval = interval
        self._on_frame = on_frame
        self.target = target
        self.duration = duration
        self.finished = False
        self._started_at = loop.time()
        self._handle = loop.call_later(interval, self._tick)

    @property
    def active(self) -> bool:
        return self._handle is not None

    def _tick(self):
        self._handle = None
        frame = animation_frame(self._loop.time() - self._started_at, self.duration, self.target)
        if frame.finished:
            self.finished = True
        else:
            self._handle = self._loop.call_later(self._interval, self._tick)
        self._on_frame(frame)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AnimationClock:
    def __init__(self, loop=None, interval: float = ANIMATION_TICK_SECONDS):
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self.interval = interval

    def time(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback):
        return self._loop.call_later(delay, callback)

    def start(self, target: int, duration: float, on_frame: Callable[[AnimationFrame], None]) -> AnimationRun:
        return AnimationRun(self._loop, target, duration, self.interval, on_frame)


class AnimatorState(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"
    SETTLED = "settled"


class HealthScoreAnimator:
    """
    Drives the on-screen health score towards the latest target.

    ``on_change(displayed, progress)`` fires whenever the displayed integer
    changes; ``on_progress(progress)`` fires on every tick. Call ``close()``
    when the owning widget goes away.
    """

    def __init__(
        self,
        loop=None,
        on_change: Optional[Callable[[int, float], None]] = None,
        on_progress: Optional[Callable[[float], None]] = None,
        debounce: float = HEALTH_DEBOUNCE_SECONDS,
        interval: float = ANIMATION_TICK_SECONDS,
    ):
        self._clock = AnimationClock(loop, interval)
        self._on_change = on_change
        self._on_progress = on_progress
        self._debounce = debounce
        self._debounce_handle = None
        self._pending_target: Optional[int] = None
        self._revision = None
        self._run: Optional[AnimationRun] = None
        self._closed = False

        self.state = AnimatorState.IDLE
        self.target: Optional[int] = None
        self.displayed = 0
        self.progress = 0.0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> bool:
        return self._debounce_handle is not None

    @property
    def running(self) -> bool:
        return self._run is not None and self._run.active

    def snapshot_changed(self, target: int, revision=None):
        """Queue a new target; bursts inside the debounce window coalesce."""
        if self._closed:
            return
        if revision is not None:
            if self._revision is not None and revision <= self._revision:
                logger.debug("Ignoring stale snapshot revision %s", revision)
                return
            self._revision = revision

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            logger.debug("Coalescing health score update %s -> %s", self._pending_target, target)
        self._pending_target = target
        self._debounce_handle = self._clock.call_later(self._debounce, self._flush)

    def _flush(self):
        self._debounce_handle = None
        target, self._pending_target = self._pending_target, None
        if target is not None:
            self.set_target(target)

    def set_target(self, target: int):
        """Apply a target immediately, bypassing the debounce."""
        if self._closed:
            return
        target = max(0, min(MAX_SCORE, int(target)))
        self.target = target
        self._cancel_run()

        if should_snap(self.displayed, target):
            logger.debug("Snapping health score %s -> %s", self.displayed, target)
            changed = self.displayed != target
            self.displayed = target
            self.progress = float(target)
            self.state = AnimatorState.SETTLED
            if changed:
                self._notify()
            return

        self.displayed = 0
        self.progress = 0.0
        self._notify()
        duration = run_duration(target)
        logger.debug("Animating health score to %s over %.2fs", target, duration)
        self.state = AnimatorState.ANIMATING
        self._run = self._clock.start(target, duration, self._on_frame)

    def _on_frame(self, frame: AnimationFrame):
        self.progress = frame.progress
        if self._on_progress is not None:
            self._on_progress(frame.progress)
        if frame.displayed != self.displayed:
            self.displayed = frame.displayed
            self._notify()
        if frame.finished:
            self._run = None
            self.state = AnimatorState.SETTLED
            logger.debug("Health score settled at %s", self.displayed)

    def _notify(self):
        if self._on_change is not None:
            self._on_change(self.displayed, self.progress)

    def _cancel_run(self):
        if self._run is not None:
            self._run.cancel()
            self._run = None

    def close(self):
        """Cancel the debounce timer and any running animation."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._pending_target = None
        self._cancel_run()
        self._closed = True
        self.state = AnimatorState.IDLE
