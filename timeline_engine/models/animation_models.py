"""
Pydantic models for keyframe animation timelines.

The hierarchy is Timeline -> Tracks -> Keyframes. Every model is frozen:
an edit produces a new snapshot rather than mutating the old one, so a
reader holding a Timeline never sees a half-applied change.

ObjectAnimationState and InterpolationResult are derived values produced by
sampling and are never stored on the timeline.
"""

from __future__ import annotations

import math
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_serializer,
    field_validator,
    model_validator,
)


def new_id(kind: str) -> str:
    """Generate a unique identifier such as ``keyframe_3f2a...``."""
    return f"{kind}_{uuid4().hex}"


# =============================================================================
# ENUMS
# =============================================================================


class AnimationProperty(str, Enum):
    """Visual property animated by a track."""
    POSITION = "position"
    ROTATION = "rotation"
    SCALE = "scale"
    OPACITY = "opacity"
    STROKE_COLOR = "stroke_color"
    FILL_COLOR = "fill_color"
    STROKE_WIDTH = "stroke_width"


class ValueKind(str, Enum):
    """Shape of a keyframe value."""
    NUMBER = "number"
    VECTOR = "vector"
    COLOR = "color"


class EasingFunction(str, Enum):
    """Easing curves available between two keyframes."""
    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"
    BOUNCE = "bounce"
    ELASTIC = "elastic"


class PlaybackStatus(str, Enum):
    STOPPED = "stopped"
    PAUSED = "paused"
    PLAYING = "playing"


PROPERTY_VALUE_KINDS: dict[AnimationProperty, ValueKind] = {
    AnimationProperty.POSITION: ValueKind.VECTOR,
    AnimationProperty.ROTATION: ValueKind.NUMBER,
    AnimationProperty.SCALE: ValueKind.VECTOR,
    AnimationProperty.OPACITY: ValueKind.NUMBER,
    AnimationProperty.STROKE_COLOR: ValueKind.COLOR,
    AnimationProperty.FILL_COLOR: ValueKind.COLOR,
    AnimationProperty.STROKE_WIDTH: ValueKind.NUMBER,
}


def expected_value_kind(prop: AnimationProperty) -> ValueKind:
    """Return the value shape a track for ``prop`` is expected to hold."""
    return PROPERTY_VALUE_KINDS[prop]


# =============================================================================
# VALUES
# =============================================================================


class Vec2(BaseModel):
    """2D vector used for position and scale values."""
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0


KeyframeValue = Union[float, Vec2, str]


def value_kind(value: KeyframeValue) -> ValueKind:
    """Classify a keyframe value by its shape."""
    if isinstance(value, Vec2):
        return ValueKind.VECTOR
    if isinstance(value, str):
        return ValueKind.COLOR
    return ValueKind.NUMBER


def value_matches_property(value: KeyframeValue, prop: AnimationProperty) -> bool:
    return value_kind(value) == expected_value_kind(prop)


def effective_keyframes(keyframes: Sequence[Keyframe]) -> list[Keyframe]:
    """
    Collapse keyframes sharing a time to the last one inserted.

    Expects time-sorted input where ties keep insertion order.
    """
    result: list[Keyframe] = []
    for keyframe in keyframes:
        if result and result[-1].time == keyframe.time:
            result[-1] = keyframe
        else:
            result.append(keyframe)
    return result


# =============================================================================
# TIMELINE STRUCTURE
# =============================================================================


class Keyframe(BaseModel):
    """An authored value of one property of one object at one instant."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("keyframe"))
    time: float = Field(description="Time in seconds, never negative")
    object_id: str = Field(description="Animated object this keyframe belongs to")
    property: AnimationProperty
    value: KeyframeValue
    easing: EasingFunction | None = Field(
        default=None,
        description="Easing applied from this keyframe to the next (linear if unset)",
    )

    @field_validator("time", mode="before")
    @classmethod
    def _clamp_time(cls, value: Any) -> Any:
        try:
            time_s = float(value)
        except (TypeError, ValueError):
            return value
        if math.isnan(time_s) or time_s < 0:
            return 0.0
        return value


class Track(BaseModel):
    """
    Keyframes for a single (object, property) pair.

    Keyframes are kept in non-decreasing time order by the editing
    operations. The model does not reorder on its own: evaluation checks
    the order and fails fast if an edit left the track unsorted.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("track"))
    object_id: str
    property: AnimationProperty
    keyframes: tuple[Keyframe, ...] = ()
    visible: bool = True
    locked: bool = False

    _search_keyframes: tuple[Keyframe, ...] = PrivateAttr(default=())
    _search_times: tuple[float, ...] = PrivateAttr(default=())

    def model_post_init(self, __context: Any) -> None:
        self._search_keyframes = tuple(effective_keyframes(self.keyframes))
        self._search_times = tuple(k.time for k in self._search_keyframes)

    def is_sorted(self) -> bool:
        """Check that keyframe times never decrease."""
        return all(
            prev.time <= curr.time
            for prev, curr in zip(self.keyframes, self.keyframes[1:])
        )

    def search_index(self) -> tuple[tuple[Keyframe, ...], tuple[float, ...]]:
        """Keyframes with shared times collapsed to the newest, and their times."""
        return self._search_keyframes, self._search_times


class Timeline(BaseModel):
    """
    Root of the animation: every track plus global playback state.

    ``current_time`` is clamped into ``[0, duration]`` whenever a snapshot
    is built. ``duration`` and ``playback_rate`` must be positive.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("timeline"))
    name: str = Field(default="New Animation")
    duration: float = Field(default=10.0, gt=0, description="Total length in seconds")
    tracks: Mapping[str, Track] = Field(
        default_factory=dict,
        validate_default=True,
        description="Read-only view of tracks keyed by id, in insertion order",
    )
    current_time: float = Field(default=0.0)
    status: PlaybackStatus = Field(default=PlaybackStatus.STOPPED)
    loop: bool = False
    playback_rate: float = Field(default=1.0, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _clamp_current_time(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        current = data.get("current_time")
        duration = data.get("duration", cls.model_fields["duration"].default)
        if current is None or duration is None:
            return data
        try:
            current = float(current)
            duration = float(duration)
        except (TypeError, ValueError):
            # Let field validation report the bad value.
            return data
        if duration > 0:
            if math.isnan(current):
                current = 0.0
            data = {**data, "current_time": min(max(current, 0.0), duration)}
        return data

    @field_validator("tracks", mode="after")
    @classmethod
    def _freeze_tracks(cls, value: Mapping[str, Track]) -> Mapping[str, Track]:
        return MappingProxyType(dict(value))

    @field_serializer("tracks")
    def _serialize_tracks(self, tracks: Mapping[str, Track]) -> dict[str, Track]:
        return dict(tracks)

    @model_validator(mode="after")
    def _check_track_ids(self) -> Timeline:
        for key, track in self.tracks.items():
            if key != track.id:
                raise ValueError(
                    f"Track stored under '{key}' has mismatched id '{track.id}'"
                )
        return self

    @property
    def is_playing(self) -> bool:
        return self.status == PlaybackStatus.PLAYING

    def get_track(self, track_id: str) -> Track | None:
        return self.tracks.get(track_id)

    def object_ids(self) -> list[str]:
        """Distinct animated object ids in first-seen track order."""
        seen: dict[str, None] = {}
        for track in self.tracks.values():
            seen.setdefault(track.object_id, None)
        return list(seen)

    def tracks_for_object(self, object_id: str) -> list[Track]:
        return [t for t in self.tracks.values() if t.object_id == object_id]


# =============================================================================
# DERIVED OUTPUT
# =============================================================================


class InterpolationResult(BaseModel):
    """Value of a track at a query time."""
    model_config = ConfigDict(frozen=True)

    value: KeyframeValue
    is_keyframe: bool = Field(
        default=False,
        description="True when the value is an authored keyframe value verbatim",
    )
    keyframe_id: str | None = None


class ObjectAnimationState(BaseModel):
    """Resolved visual state of one animated object at one instant."""
    model_config = ConfigDict(frozen=True)

    object_id: str
    position: Vec2 = Field(default_factory=lambda: Vec2(x=0.0, y=0.0))
    rotation: float = 0.0
    scale: Vec2 = Field(default_factory=lambda: Vec2(x=1.0, y=1.0))
    opacity: float = 1.0
    stroke_color: str = "#000000"
    fill_color: str = "transparent"
    stroke_width: float = 1.0


def rebuild(model: BaseModel, **changes: Any) -> Any:
    """
    Return a validated copy of ``model`` with ``changes`` applied.

    Unlike ``model_copy(update=...)`` this re-runs field and model
    validators, so invariants hold on every new snapshot.
    """
    return type(model).model_validate({**dict(model), **changes})
