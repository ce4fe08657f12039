from .animation_models import (
    AnimationProperty,
    EasingFunction,
    InterpolationResult,
    Keyframe,
    KeyframeValue,
    ObjectAnimationState,
    PlaybackStatus,
    Timeline,
    Track,
    ValueKind,
    Vec2,
    effective_keyframes,
    expected_value_kind,
    new_id,
    rebuild,
    value_kind,
    value_matches_property,
)

__all__ = [
    "AnimationProperty",
    "EasingFunction",
    "InterpolationResult",
    "Keyframe",
    "KeyframeValue",
    "ObjectAnimationState",
    "PlaybackStatus",
    "Timeline",
    "Track",
    "ValueKind",
    "Vec2",
    "effective_keyframes",
    "expected_value_kind",
    "new_id",
    "rebuild",
    "value_kind",
    "value_matches_property",
]
