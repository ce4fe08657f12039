"""
Timeline Editor - pure editing operations on tracks and timelines.

Every function takes a snapshot and returns a new one; inputs are never
modified. Unknown ids are not errors: the operation logs and returns its
input unchanged, so the caller can compare identities to detect a no-op.

Keyframe insertion keeps tracks time-sorted (stable, so keyframes sharing
a time keep insertion order). ``update_keyframe`` on a bare track does not
re-sort; the timeline-level update path does.
"""

from __future__ import annotations

import logging
from typing import Any

from timeline_engine.config import get_settings
from timeline_engine.models.animation_models import (
    AnimationProperty,
    EasingFunction,
    Keyframe,
    KeyframeValue,
    PlaybackStatus,
    Timeline,
    Track,
    new_id,
    rebuild,
)


logger = logging.getLogger(__name__)

_IMMUTABLE_KEYFRAME_FIELDS = frozenset({"id", "object_id", "property"})


def _sorted_keyframes(keyframes: tuple[Keyframe, ...] | list[Keyframe]) -> tuple[Keyframe, ...]:
    return tuple(sorted(keyframes, key=lambda k: k.time))


# =============================================================================
# TRACK OPERATIONS
# =============================================================================


def create_track(object_id: str, property: AnimationProperty) -> Track:
    """Create an empty, visible, unlocked track."""
    return Track(id=new_id("track"), object_id=object_id, property=property)


def add_keyframe(
    track: Track,
    time: float,
    value: KeyframeValue | dict[str, float],
    easing: EasingFunction | None = None,
) -> Track:
    """
    Insert a keyframe with a fresh id and re-sort the track by time.

    Keyframes at an already used time are kept; the newest one wins during
    evaluation.
    """
    keyframe = Keyframe(
        id=new_id("keyframe"),
        time=time,
        object_id=track.object_id,
        property=track.property,
        value=value,
        easing=easing,
    )
    logger.debug(f"Adding keyframe {keyframe.id} at {time}s to track {track.id}")
    return rebuild(track, keyframes=_sorted_keyframes([*track.keyframes, keyframe]))


def remove_keyframe(track: Track, keyframe_id: str) -> Track:
    remaining = tuple(k for k in track.keyframes if k.id != keyframe_id)
    if len(remaining) == len(track.keyframes):
        logger.debug(f"Keyframe {keyframe_id} not in track {track.id}, nothing removed")
        return track
    return rebuild(track, keyframes=remaining)


def update_keyframe(track: Track, keyframe_id: str, **changes: Any) -> Track:
    """
    Merge ``changes`` into the matching keyframe.

    ``id``, ``object_id`` and ``property`` cannot change. The track is not
    re-sorted here; use ``sort_keyframes`` or ``update_keyframe_in_timeline``
    when ``time`` changes.
    """
    ignored = _IMMUTABLE_KEYFRAME_FIELDS.intersection(changes)
    if ignored:
        logger.warning(
            f"Ignoring immutable keyframe fields {sorted(ignored)} for {keyframe_id}"
        )
    updates = {k: v for k, v in changes.items() if k not in _IMMUTABLE_KEYFRAME_FIELDS}

    found = False
    keyframes = []
    for keyframe in track.keyframes:
        if keyframe.id == keyframe_id:
            found = True
            keyframe = rebuild(keyframe, **updates)
        keyframes.append(keyframe)

    if not found:
        logger.debug(f"Keyframe {keyframe_id} not in track {track.id}, nothing updated")
        return track
    return rebuild(track, keyframes=tuple(keyframes))


def sort_keyframes(track: Track) -> Track:
    """Return the track with keyframes in stable time order."""
    if track.is_sorted():
        return track
    return rebuild(track, keyframes=_sorted_keyframes(track.keyframes))


def set_track_visible(track: Track, visible: bool) -> Track:
    return rebuild(track, visible=visible)


def set_track_locked(track: Track, locked: bool) -> Track:
    return rebuild(track, locked=locked)


# =============================================================================
# TIMELINE OPERATIONS
# =============================================================================


def create_timeline(
    name: str | None = None,
    duration: float | None = None,
) -> Timeline:
    """
    Create an empty timeline.

    Defaults come from EngineSettings: 10 seconds, rate 1, stopped at
    time zero, no loop.
    """
    settings = get_settings()
    return Timeline(
        id=new_id("timeline"),
        name=name if name is not None else settings.default_timeline_name,
        duration=duration if duration is not None else settings.default_duration,
        tracks={},
        current_time=0.0,
        status=PlaybackStatus.STOPPED,
        loop=False,
        playback_rate=settings.default_playback_rate,
    )


def rename_timeline(timeline: Timeline, name: str) -> Timeline:
    return rebuild(timeline, name=name)


def set_duration(timeline: Timeline, duration: float) -> Timeline:
    """Change the duration; current time is re-clamped into the new range."""
    return rebuild(timeline, duration=duration)


def find_track_for(
    timeline: Timeline,
    object_id: str,
    property: AnimationProperty,
) -> Track | None:
    """First track animating ``property`` of ``object_id``, if any."""
    for track in timeline.tracks.values():
        if track.object_id == object_id and track.property == property:
            return track
    return None


def add_track(
    timeline: Timeline,
    object_id: str,
    property: AnimationProperty,
) -> Timeline:
    existing = find_track_for(timeline, object_id, property)
    if existing is not None:
        logger.warning(
            f"Object {object_id} already has a {property.value} track ({existing.id}); "
            f"the later track will override it during sampling"
        )
    track = create_track(object_id, property)
    logger.debug(f"Adding track {track.id} ({object_id}.{property.value})")
    return rebuild(timeline, tracks={**timeline.tracks, track.id: track})


def remove_track(timeline: Timeline, track_id: str) -> Timeline:
    if track_id not in timeline.tracks:
        logger.debug(f"Track {track_id} not in timeline {timeline.id}, nothing removed")
        return timeline
    tracks = {tid: t for tid, t in timeline.tracks.items() if tid != track_id}
    return rebuild(timeline, tracks=tracks)


def update_track(timeline: Timeline, track: Track) -> Timeline:
    """Replace the track with the same id. Its keyframes are re-sorted."""
    if track.id not in timeline.tracks:
        logger.debug(f"Track {track.id} not in timeline {timeline.id}, nothing updated")
        return timeline
    return _replace_track(timeline, sort_keyframes(track))


def set_track_visibility(timeline: Timeline, track_id: str, visible: bool) -> Timeline:
    track = timeline.get_track(track_id)
    if track is None:
        return timeline
    return _replace_track(timeline, set_track_visible(track, visible))


def set_track_lock(timeline: Timeline, track_id: str, locked: bool) -> Timeline:
    track = timeline.get_track(track_id)
    if track is None:
        return timeline
    return _replace_track(timeline, set_track_locked(track, locked))


def add_keyframe_to_track(
    timeline: Timeline,
    track_id: str,
    time: float,
    value: KeyframeValue | dict[str, float],
    easing: EasingFunction | None = None,
) -> Timeline:
    track = timeline.get_track(track_id)
    if track is None:
        logger.debug(f"Track {track_id} not in timeline {timeline.id}, keyframe dropped")
        return timeline
    return _replace_track(timeline, add_keyframe(track, time, value, easing))


def remove_keyframe_from_timeline(timeline: Timeline, keyframe_id: str) -> Timeline:
    """Remove a keyframe by id from whichever track holds it."""
    for track in timeline.tracks.values():
        updated = remove_keyframe(track, keyframe_id)
        if updated is not track:
            return _replace_track(timeline, updated)
    logger.debug(f"Keyframe {keyframe_id} not in timeline {timeline.id}, nothing removed")
    return timeline


def update_keyframe_in_timeline(
    timeline: Timeline,
    keyframe_id: str,
    **changes: Any,
) -> Timeline:
    """Update a keyframe by id and re-sort its track so it stays evaluable."""
    for track in timeline.tracks.values():
        updated = update_keyframe(track, keyframe_id, **changes)
        if updated is not track:
            return _replace_track(timeline, sort_keyframes(updated))
    logger.debug(f"Keyframe {keyframe_id} not in timeline {timeline.id}, nothing updated")
    return timeline


def _replace_track(timeline: Timeline, track: Track) -> Timeline:
    tracks = dict(timeline.tracks)
    tracks[track.id] = track
    return rebuild(timeline, tracks=tracks)
