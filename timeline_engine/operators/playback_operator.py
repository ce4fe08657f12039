"""
Playback Operator - the stopped / paused / playing state machine.

The reducers in this module are pure: each takes a Timeline snapshot and
returns the next one. PlaybackController wires them to a TimelineStore and
to a host-provided frame scheduler that calls back once per display frame.

Transitions:
- play:  stopped/paused -> playing, time preserved
- pause: playing -> paused
- stop:  any -> stopped, time reset to 0
- tick:  advances time by delta * rate while playing; at the end it either
  wraps (loop) or clamps to the duration and pauses
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Protocol

from timeline_engine.models.animation_models import (
    ObjectAnimationState,
    PlaybackStatus,
    Timeline,
    rebuild,
)
from timeline_engine.operators.scene_sampler import sample_all
from timeline_engine.operators.timeline_operator import TimelineStore


logger = logging.getLogger(__name__)


# =============================================================================
# REDUCERS
# =============================================================================


def play(timeline: Timeline) -> Timeline:
    if timeline.status == PlaybackStatus.PLAYING:
        return timeline
    return rebuild(timeline, status=PlaybackStatus.PLAYING)


def pause(timeline: Timeline) -> Timeline:
    if timeline.status != PlaybackStatus.PLAYING:
        return timeline
    return rebuild(timeline, status=PlaybackStatus.PAUSED)


def stop(timeline: Timeline) -> Timeline:
    if timeline.status == PlaybackStatus.STOPPED and timeline.current_time == 0:
        return timeline
    return rebuild(timeline, status=PlaybackStatus.STOPPED, current_time=0.0)


def tick(timeline: Timeline, delta_s: float) -> Timeline:
    """
    Advance playback by one frame.

    Has no effect unless playing. Negative or non-finite deltas count as
    zero, so a host clock stepping backwards cannot rewind playback.
    """
    if timeline.status != PlaybackStatus.PLAYING:
        return timeline
    if not math.isfinite(delta_s) or delta_s < 0:
        logger.debug(f"Ignoring invalid tick delta {delta_s}")
        delta_s = 0.0

    new_time = timeline.current_time + delta_s * timeline.playback_rate
    if new_time < timeline.duration:
        return rebuild(timeline, current_time=new_time)

    if timeline.loop:
        return rebuild(timeline, current_time=new_time % timeline.duration)

    logger.debug(f"Timeline {timeline.id} reached its end at {timeline.duration}s")
    return rebuild(
        timeline,
        current_time=timeline.duration,
        status=PlaybackStatus.PAUSED,
    )


def set_current_time(timeline: Timeline, time_s: float) -> Timeline:
    """Seek to ``time_s``, clamped into ``[0, duration]``. Status is unchanged."""
    return rebuild(timeline, current_time=time_s)


def set_playback_rate(timeline: Timeline, rate: float) -> Timeline:
    """Set the rate used by subsequent ticks. Non-positive rates are rejected."""
    return rebuild(timeline, playback_rate=rate)


def set_loop(timeline: Timeline, loop: bool) -> Timeline:
    return rebuild(timeline, loop=loop)


# =============================================================================
# FRAME SCHEDULING
# =============================================================================


FrameCallback = Callable[[float], None]


class CancelToken(Protocol):
    def cancel(self) -> None: ...


class FrameScheduler(Protocol):
    """
    Host capability that runs a callback on the next display frame.

    The callback receives a monotonic timestamp in seconds. The returned
    token cancels the request if it has not fired yet.
    """

    def next_frame(self, callback: FrameCallback) -> CancelToken: ...


class _ManualFrameRequest:
    def __init__(self, scheduler: ManualFrameScheduler, callback: FrameCallback):
        self._scheduler = scheduler
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._scheduler._discard(self)


class ManualFrameScheduler:
    """
    Deterministic scheduler driven by explicit ``advance`` calls.

    Useful for tests and for stepping playback without a display.
    """

    def __init__(self, start_time: float = 0.0):
        self.now = start_time
        self._pending: list[_ManualFrameRequest] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def next_frame(self, callback: FrameCallback) -> CancelToken:
        request = _ManualFrameRequest(self, callback)
        self._pending.append(request)
        return request

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire the frames requested before this call."""
        self.now += seconds
        due, self._pending = self._pending, []
        fired = 0
        for request in due:
            if request.cancelled:
                continue
            request.callback(self.now)
            fired += 1
        return fired

    def _discard(self, request: _ManualFrameRequest) -> None:
        if request in self._pending:
            self._pending.remove(request)


# =============================================================================
# CONTROLLER
# =============================================================================


class PlaybackController:
    """
    Drives a TimelineStore from frame callbacks.

    Each frame computes the delta from the previous frame timestamp and
    commits ``tick``. The first frame after ``play`` contributes no time.
    Frames are requested only while playing, and ``pause``/``stop`` cancel
    the pending request before returning.
    """

    def __init__(self, store: TimelineStore, scheduler: FrameScheduler):
        self.store = store
        self.scheduler = scheduler
        self._token: CancelToken | None = None
        self._last_frame_time: float | None = None

    @property
    def timeline(self) -> Timeline:
        return self.store.snapshot

    @property
    def status(self) -> PlaybackStatus:
        return self.store.snapshot.status

    @property
    def current_time(self) -> float:
        return self.store.snapshot.current_time

    def play(self) -> None:
        self.store.apply(play)
        if self._token is None:
            self._last_frame_time = None
            self._request_frame()

    def pause(self) -> None:
        self._cancel_frame()
        self.store.apply(pause)

    def stop(self) -> None:
        self._cancel_frame()
        self.store.apply(stop)

    def toggle(self) -> None:
        if self.status == PlaybackStatus.PLAYING:
            self.pause()
        else:
            self.play()

    def seek(self, time_s: float) -> None:
        self.store.apply(set_current_time, time_s)

    def set_playback_rate(self, rate: float) -> None:
        self.store.apply(set_playback_rate, rate)

    def set_loop(self, loop: bool) -> None:
        self.store.apply(set_loop, loop)

    def current_states(self) -> dict[str, ObjectAnimationState]:
        """Sample the current snapshot at its current time."""
        snapshot = self.store.snapshot
        return sample_all(snapshot, snapshot.current_time)

    def _on_frame(self, timestamp: float) -> None:
        self._token = None
        if self.status != PlaybackStatus.PLAYING:
            self._last_frame_time = None
            return

        delta = 0.0 if self._last_frame_time is None else timestamp - self._last_frame_time
        self._last_frame_time = timestamp
        self.store.apply(tick, delta)

        # A subscriber may have paused, stopped or restarted playback during the tick.
        if self.status != PlaybackStatus.PLAYING:
            self._last_frame_time = None
        elif self._token is None:
            self._request_frame()

    def _request_frame(self) -> None:
        self._token = self.scheduler.next_frame(self._on_frame)

    def _cancel_frame(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._last_frame_time = None
