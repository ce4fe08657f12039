"""Keyframe animation timeline engine: evaluation, sampling and playback."""

from timeline_engine.animation_engine import (
    EASING_FUNCTIONS,
    KEYFRAME_SNAP_EPSILON,
    evaluate_track,
    interpolate_keyframes,
    resolve_easing,
)
from timeline_engine.config import EngineSettings, configure_logging, get_settings
from timeline_engine.models import (
    AnimationProperty,
    EasingFunction,
    InterpolationResult,
    Keyframe,
    ObjectAnimationState,
    PlaybackStatus,
    Timeline,
    Track,
    Vec2,
)
from timeline_engine.operators.playback_operator import (
    FrameScheduler,
    ManualFrameScheduler,
    PlaybackController,
)
from timeline_engine.operators.scene_sampler import (
    apply_animation_to_objects,
    sample_all,
    sample_object,
    sample_range,
)
from timeline_engine.operators.timeline_editor import (
    add_keyframe,
    add_keyframe_to_track,
    add_track,
    create_timeline,
    create_track,
    remove_keyframe,
    remove_keyframe_from_timeline,
    remove_track,
    update_keyframe,
    update_keyframe_in_timeline,
    update_track,
)
from timeline_engine.operators.timeline_operator import (
    InvalidOperationError,
    TimelineError,
    TimelineStore,
    UnsortedKeyframesError,
    VersionConflictError,
)
from timeline_engine.utils.time_format import format_time, parse_time

__version__ = "0.1.0"
