"""
Scene Sampler - resolve every animated object's state at a point in time.

Sampling is read-only: it returns fresh ObjectAnimationState values and
leaves the timeline untouched. Hosts apply the result to their own objects
(``apply_animation_to_objects`` does this for plain mappings).
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterator, Mapping

from timeline_engine.animation_engine import evaluate_track
from timeline_engine.models.animation_models import (
    ObjectAnimationState,
    Timeline,
    Track,
    value_kind,
    value_matches_property,
)
from timeline_engine.operators.timeline_operator import InvalidOperationError


logger = logging.getLogger(__name__)


def _resolve_object(object_id: str, tracks: list[Track], time_s: float) -> ObjectAnimationState:
    resolved: dict[str, Any] = {}
    for track in tracks:
        result = evaluate_track(track, time_s)
        if result is None:
            continue
        if not value_matches_property(result.value, track.property):
            logger.warning(
                f"Track {track.id} holds a {value_kind(result.value).value} value "
                f"for {track.property.value}; keeping default"
            )
            continue
        # Later tracks for the same property override earlier ones.
        resolved[track.property.value] = result.value
    return ObjectAnimationState(object_id=object_id, **resolved)


def sample_all(timeline: Timeline, time_s: float) -> dict[str, ObjectAnimationState]:
    """
    State of every object referenced by a track at ``time_s``.

    Properties without an evaluable track keep their neutral defaults.
    An empty timeline yields an empty mapping.
    """
    tracks_by_object: dict[str, list[Track]] = {}
    for track in timeline.tracks.values():
        tracks_by_object.setdefault(track.object_id, []).append(track)

    return {
        object_id: _resolve_object(object_id, tracks, time_s)
        for object_id, tracks in tracks_by_object.items()
    }


def sample_object(
    timeline: Timeline,
    object_id: str,
    time_s: float,
) -> ObjectAnimationState | None:
    """State of a single object, or None if no track references it."""
    tracks = timeline.tracks_for_object(object_id)
    if not tracks:
        return None
    return _resolve_object(object_id, tracks, time_s)


def sample_range(
    timeline: Timeline,
    fps: float,
    start_s: float = 0.0,
    end_s: float | None = None,
) -> Iterator[tuple[float, dict[str, ObjectAnimationState]]]:
    """
    Sample the timeline at a fixed rate from ``start_s`` to ``end_s`` inclusive.

    ``end_s`` defaults to the timeline duration. Sample times are computed
    from the frame index so rounding does not accumulate.
    """
    if fps <= 0:
        raise InvalidOperationError(f"fps must be positive, got {fps}")
    end_s = timeline.duration if end_s is None else end_s
    if end_s < start_s:
        return

    frame_count = int(math.floor((end_s - start_s) * fps + 1e-9))
    for frame in range(frame_count + 1):
        time_s = start_s + frame / fps
        yield time_s, sample_all(timeline, time_s)
    last_time = start_s + frame_count / fps
    if end_s - last_time > 1e-9:
        yield end_s, sample_all(timeline, end_s)


def apply_animation_to_objects(
    objects: list[Mapping[str, Any]],
    states: Mapping[str, ObjectAnimationState],
) -> list[dict[str, Any]]:
    """
    Overlay sampled states onto host objects.

    Each object is a mapping with an ``id`` key. Matching objects come back
    as new dicts with ``x``, ``y``, ``angle``, ``opacity``, ``stroke_color``,
    ``fill_color`` and ``stroke_width`` replaced; the rest are copied as is.
    """
    applied: list[dict[str, Any]] = []
    for obj in objects:
        state = states.get(obj.get("id"))
        if state is None:
            applied.append(dict(obj))
            continue
        applied.append({
            **obj,
            "x": state.position.x,
            "y": state.position.y,
            "angle": state.rotation,
            "opacity": state.opacity,
            "stroke_color": state.stroke_color,
            "fill_color": state.fill_color,
            "stroke_width": state.stroke_width,
        })
    return applied
