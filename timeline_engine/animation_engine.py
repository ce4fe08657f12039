from __future__ import annotations

import logging
import math
from bisect import bisect_right
from typing import Callable, Sequence

from timeline_engine.models.animation_models import (
    EasingFunction,
    InterpolationResult,
    Keyframe,
    KeyframeValue,
    Track,
    Vec2,
)
from timeline_engine.operators.timeline_operator import UnsortedKeyframesError


logger = logging.getLogger(__name__)

# Scrubbing within this many seconds of a keyframe returns its authored value.
KEYFRAME_SNAP_EPSILON = 0.001


def linear(t: float) -> float:
    return t


def ease_in(t: float) -> float:
    return t * t


def ease_out(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


def ease_in_out(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - ((-2 * t + 2) ** 2) / 2


def ease_out_bounce(t: float) -> float:
    n1 = 7.5625
    d1 = 2.75
    if t < 1 / d1:
        return n1 * t * t
    if t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    if t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


def ease_out_elastic(t: float) -> float:
    if t == 0 or t == 1:
        return t
    return 2 ** (-10 * t) * math.sin((t - 0.1) * (2 * math.pi) / 0.4) + 1


EASING_FUNCTIONS: dict[EasingFunction, Callable[[float], float]] = {
    EasingFunction.LINEAR: linear,
    EasingFunction.EASE_IN: ease_in,
    EasingFunction.EASE_OUT: ease_out,
    EasingFunction.EASE_IN_OUT: ease_in_out,
    EasingFunction.BOUNCE: ease_out_bounce,
    EasingFunction.ELASTIC: ease_out_elastic,
}


def resolve_easing(name: EasingFunction | str | None) -> Callable[[float], float]:
    if not name:
        return linear
    try:
        return EASING_FUNCTIONS[EasingFunction(name)]
    except ValueError:
        logger.warning(f"Unknown easing '{name}', falling back to linear")
        return linear


def ease(name: EasingFunction | str | None, t: float) -> float:
    """Apply an easing curve. Output is not clamped; bounce and elastic may overshoot."""
    return resolve_easing(name)(t)


def blend_values(start: KeyframeValue, end: KeyframeValue, eased: float) -> KeyframeValue:
    """
    Blend two keyframe values at eased progress ``eased``.

    Numbers and vectors blend linearly. Anything else (colors, or values of
    different shapes) holds ``start`` below the halfway point and switches
    to ``end`` from there on.
    """
    if isinstance(start, Vec2) and isinstance(end, Vec2):
        return Vec2(
            x=start.x + (end.x - start.x) * eased,
            y=start.y + (end.y - start.y) * eased,
        )
    if _is_number(start) and _is_number(end):
        return start + (end - start) * eased
    return start if eased < 0.5 else end


def _is_number(value: KeyframeValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _exact(keyframe: Keyframe) -> InterpolationResult:
    return InterpolationResult(value=keyframe.value, is_keyframe=True, keyframe_id=keyframe.id)


def interpolate_keyframes(
    start: Keyframe,
    end: Keyframe,
    time_s: float,
) -> InterpolationResult:
    """
    Value between two keyframes at ``time_s``.

    The easing of ``start`` shapes the segment. A zero-length segment
    resolves to ``end``. Times within KEYFRAME_SNAP_EPSILON of either
    keyframe return that keyframe's value untouched.
    """
    span = end.time - start.time
    if span == 0:
        return _exact(end)

    if abs(time_s - start.time) < KEYFRAME_SNAP_EPSILON:
        return _exact(start)
    if abs(time_s - end.time) < KEYFRAME_SNAP_EPSILON:
        return _exact(end)

    progress = (time_s - start.time) / span
    eased = ease(start.easing, progress)
    return InterpolationResult(
        value=blend_values(start.value, end.value, eased),
        is_keyframe=False,
    )


def check_sorted(track: Track) -> None:
    keyframes = track.keyframes
    for idx in range(1, len(keyframes)):
        if keyframes[idx].time < keyframes[idx - 1].time:
            raise UnsortedKeyframesError(track.id, idx)


def find_bracket(times: Sequence[float], time_s: float) -> int:
    """
    Index ``i`` of the segment with ``times[i] <= time_s < times[i + 1]``.

    Returns -1 before the first time and ``len - 1`` at or after the last.
    Times must be strictly increasing.
    """
    return bisect_right(times, time_s) - 1


def evaluate_track(track: Track | None, time_s: float) -> InterpolationResult | None:
    """
    Value of ``track`` at ``time_s``, or None for an absent or empty track.

    Before the first keyframe and after the last one the boundary value is
    held; there is no extrapolation. A NaN time resolves to the first
    keyframe. The collapsed keyframes and their times are built once per
    track snapshot, so each query is a binary search.

    Raises:
        UnsortedKeyframesError: If the track's keyframes are out of time order
    """
    if track is None or not track.keyframes:
        return None

    check_sorted(track)
    keyframes, times = track.search_index()

    if math.isnan(time_s):
        logger.debug(f"NaN query time on track {track.id}, holding first keyframe")
        return _exact(keyframes[0])

    if time_s <= keyframes[0].time:
        return _exact(keyframes[0])
    if time_s >= keyframes[-1].time:
        return _exact(keyframes[-1])

    idx = find_bracket(times, time_s)
    return interpolate_keyframes(keyframes[idx], keyframes[idx + 1], time_s)
