import pytest

from timeline_engine.config import get_settings
from timeline_engine.models import AnimationProperty, Vec2
from timeline_engine.operators import timeline_editor


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def opacity_track():
    track = timeline_editor.create_track("rect-1", AnimationProperty.OPACITY)
    track = timeline_editor.add_keyframe(track, 0.0, 0.0)
    return timeline_editor.add_keyframe(track, 2.0, 10.0)


@pytest.fixture
def two_track_timeline():
    timeline = timeline_editor.create_timeline("Scene")
    timeline = timeline_editor.add_track(timeline, "rect-1", AnimationProperty.POSITION)
    timeline = timeline_editor.add_track(timeline, "rect-1", AnimationProperty.OPACITY)
    position_id, opacity_id = list(timeline.tracks)

    timeline = timeline_editor.add_keyframe_to_track(timeline, position_id, 0.0, Vec2(x=0, y=0))
    timeline = timeline_editor.add_keyframe_to_track(timeline, position_id, 4.0, Vec2(x=100, y=40))
    timeline = timeline_editor.add_keyframe_to_track(timeline, opacity_id, 1.0, 1.0)
    timeline = timeline_editor.add_keyframe_to_track(timeline, opacity_id, 3.0, 0.0)
    return timeline
