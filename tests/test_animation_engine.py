import math
import random

import pytest

from timeline_engine import animation_engine
from timeline_engine.animation_engine import (
    evaluate_track,
    find_bracket,
    interpolate_keyframes,
)
from timeline_engine.models import (
    AnimationProperty,
    EasingFunction,
    Keyframe,
    Vec2,
    effective_keyframes,
)
from timeline_engine.operators import timeline_editor
from timeline_engine.operators.timeline_operator import UnsortedKeyframesError


def _keyframe(time, value, easing=None, prop=AnimationProperty.OPACITY):
    return Keyframe(time=time, object_id="obj", property=prop, value=value, easing=easing)


def _track(points, prop=AnimationProperty.OPACITY, easing=None):
    track = timeline_editor.create_track("obj", prop)
    for time, value in points:
        track = timeline_editor.add_keyframe(track, time, value, easing)
    return track


class TestEasing:
    def test_quadratic_curves(self):
        assert animation_engine.linear(0.3) == pytest.approx(0.3)
        assert animation_engine.ease_in(0.5) == pytest.approx(0.25)
        assert animation_engine.ease_out(0.5) == pytest.approx(0.75)
        assert animation_engine.ease_in_out(0.25) == pytest.approx(0.125)
        assert animation_engine.ease_in_out(0.75) == pytest.approx(0.875)

    @pytest.mark.parametrize("easing", list(EasingFunction))
    def test_endpoints(self, easing):
        fn = animation_engine.resolve_easing(easing)
        assert fn(0.0) == pytest.approx(0.0)
        assert fn(1.0) == pytest.approx(1.0)

    def test_bounce_segments(self):
        assert animation_engine.ease_out_bounce(0.2) == pytest.approx(7.5625 * 0.04)
        assert animation_engine.ease_out_bounce(0.5) == pytest.approx(0.765625)

    def test_elastic_overshoots_without_clamping(self):
        assert animation_engine.ease_out_elastic(0.2) == pytest.approx(1.25)
        assert animation_engine.ease("elastic", 0.2) > 1.0

    def test_unknown_or_missing_easing_is_linear(self):
        assert animation_engine.resolve_easing(None) is animation_engine.linear
        assert animation_engine.resolve_easing("wobble") is animation_engine.linear
        assert animation_engine.resolve_easing("ease-in") is animation_engine.ease_in


class TestInterpolateKeyframes:
    def test_numeric_blend(self):
        result = interpolate_keyframes(_keyframe(0, 0.0), _keyframe(2, 10.0), 1.0)

        assert result.value == pytest.approx(5.0)
        assert result.is_keyframe is False
        assert result.keyframe_id is None

    def test_easing_comes_from_first_keyframe(self):
        start = _keyframe(0, 0.0, EasingFunction.EASE_IN)
        end = _keyframe(2, 10.0, EasingFunction.EASE_OUT)

        assert interpolate_keyframes(start, end, 1.0).value == pytest.approx(2.5)

    def test_vector_blend(self):
        start = _keyframe(0, Vec2(x=0, y=0), prop=AnimationProperty.POSITION)
        end = _keyframe(4, {"x": 100, "y": 40}, prop=AnimationProperty.POSITION)

        result = interpolate_keyframes(start, end, 1.0)

        assert result.value.x == pytest.approx(25.0)
        assert result.value.y == pytest.approx(10.0)

    def test_color_holds_until_halfway(self):
        start = _keyframe(0, "#ff0000", prop=AnimationProperty.FILL_COLOR)
        end = _keyframe(2, "#00ff00", prop=AnimationProperty.FILL_COLOR)

        assert interpolate_keyframes(start, end, 0.9).value == "#ff0000"
        assert interpolate_keyframes(start, end, 1.0).value == "#00ff00"

    def test_mismatched_shapes_step(self):
        start = _keyframe(0, 1.0)
        end = _keyframe(2, "#ffffff")

        assert interpolate_keyframes(start, end, 0.5).value == 1.0
        assert interpolate_keyframes(start, end, 1.5).value == "#ffffff"

    def test_zero_length_segment_resolves_to_second(self):
        start = _keyframe(1.0, 3.0)
        end = _keyframe(1.0, 8.0)

        result = interpolate_keyframes(start, end, 1.0)

        assert result.value == 8.0
        assert result.is_keyframe is True
        assert result.keyframe_id == end.id

    def test_snaps_within_a_millisecond(self):
        start = _keyframe(0.0, 0.1)
        end = _keyframe(1.0, 0.7)

        near_start = interpolate_keyframes(start, end, 0.0004)
        near_end = interpolate_keyframes(start, end, 0.9996)

        assert near_start.value == 0.1
        assert near_start.keyframe_id == start.id
        assert near_end.value == 0.7
        assert near_end.keyframe_id == end.id


class TestEvaluateTrack:
    def test_empty_or_missing_track(self):
        assert evaluate_track(None, 1.0) is None
        assert evaluate_track(_track([]), 1.0) is None

    def test_linear_midpoint(self, opacity_track):
        assert evaluate_track(opacity_track, 1.0).value == pytest.approx(5.0)

    def test_changing_easing_to_ease_in(self, opacity_track):
        first = opacity_track.keyframes[0]
        track = timeline_editor.update_keyframe(
            opacity_track, first.id, easing=EasingFunction.EASE_IN
        )

        assert evaluate_track(track, 1.0).value == pytest.approx(2.5)

    def test_holds_boundary_values(self):
        track = _track([(1.0, 4.0), (3.0, 9.0)])

        before = evaluate_track(track, 0.2)
        after = evaluate_track(track, 7.5)

        assert before.value == 4.0
        assert before.is_keyframe is True
        assert after.value == 9.0
        assert after.keyframe_id == track.keyframes[-1].id

    def test_exact_hit_on_every_keyframe(self):
        points = [(0.0, 0.1), (0.3333, 0.7), (1.1, 0.2), (2.71828, 0.95), (4.0, 0.0)]
        track = _track(points, easing=EasingFunction.ELASTIC)

        for keyframe in track.keyframes:
            result = evaluate_track(track, keyframe.time)
            assert result.value == keyframe.value
            assert result.is_keyframe is True
            assert result.keyframe_id == keyframe.id

    def test_monotonic_for_linear_numbers(self):
        track = _track([(0.0, 0.0), (10.0, 100.0)])
        times = [0.01 * i for i in range(1, 1000)]

        values = [evaluate_track(track, t).value for t in times]

        assert all(a <= b for a, b in zip(values, values[1:]))

    def test_last_inserted_wins_on_duplicate_time(self):
        track = _track([(0.0, 0.0), (1.0, 5.0), (1.0, 7.0), (2.0, 10.0)])

        assert evaluate_track(track, 1.0).value == 7.0
        assert evaluate_track(track, 0.5).value == pytest.approx(3.5)

    def test_duplicate_first_time_uses_newest(self):
        track = _track([(1.0, 2.0), (1.0, 6.0)])

        assert evaluate_track(track, 0.0).value == 6.0
        assert evaluate_track(track, 5.0).value == 6.0

    def test_unsorted_track_fails_fast(self):
        track = _track([(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)])
        moved = timeline_editor.update_keyframe(track, track.keyframes[0].id, time=5.0)

        with pytest.raises(UnsortedKeyframesError) as exc_info:
            evaluate_track(moved, 1.5)
        assert exc_info.value.track_id == track.id

    def test_binary_search_matches_linear_scan(self):
        rng = random.Random(7)
        times = sorted(round(rng.uniform(0, 20), 2) for _ in range(60))
        keyframes = effective_keyframes([_keyframe(t, float(i)) for i, t in enumerate(times)])

        for _ in range(500):
            query = rng.uniform(keyframes[0].time, keyframes[-1].time)
            if query >= keyframes[-1].time:
                continue
            expected = next(
                i for i in range(len(keyframes) - 1)
                if keyframes[i].time <= query < keyframes[i + 1].time
            )
            assert find_bracket([k.time for k in keyframes], query) == expected

    def test_nan_time_holds_first_keyframe(self, opacity_track):
        result = evaluate_track(opacity_track, math.nan)

        assert result.value == 0.0
        assert result.is_keyframe is True
        assert result.keyframe_id == opacity_track.keyframes[0].id

    def test_infinite_times_hold_boundaries(self, opacity_track):
        assert evaluate_track(opacity_track, -math.inf).value == 0.0
        assert evaluate_track(opacity_track, math.inf).value == 10.0

    def test_search_index_collapses_duplicate_times(self):
        track = _track([(0.0, 0.0), (1.0, 5.0), (1.0, 7.0), (2.0, 10.0)])

        keyframes, times = track.search_index()

        assert times == (0.0, 1.0, 2.0)
        assert [k.value for k in keyframes] == [0.0, 7.0, 10.0]

    def test_search_index_is_built_once_per_track(self):
        track = _track([(0.0, 0.0), (2.0, 10.0)])

        assert track.search_index()[1] is track.search_index()[1]
