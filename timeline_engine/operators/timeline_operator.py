"""
Timeline Operator - exceptions and the copy-on-write snapshot store.

Timelines are immutable snapshots. A TimelineStore holds the "current"
snapshot for a host application:
- Readers take ``store.snapshot`` without locking and keep a consistent view
- Writers build a new snapshot and commit it; the reference swap is atomic
- Optional optimistic locking via ``expected_version``

There is a single writer lock; readers never block.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from timeline_engine.models.animation_models import Timeline


logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TimelineError(Exception):
    """Base exception for timeline operations."""
    pass


class UnsortedKeyframesError(TimelineError):
    """Raised when a track is evaluated with keyframes out of time order."""
    def __init__(self, track_id: str, index: int):
        self.track_id = track_id
        self.index = index
        super().__init__(
            f"Track {track_id} has keyframes out of time order at index {index}. "
            f"Re-sort the track before evaluating it."
        )


class VersionConflictError(TimelineError):
    """
    Raised when optimistic locking fails.

    This occurs when the expected_version doesn't match the current version,
    indicating that another writer committed a snapshot in between.
    """
    def __init__(self, expected_version: int, current_version: int):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Version conflict: expected {expected_version}, "
            f"but current version is {current_version}. "
            f"Please refresh and retry."
        )


class InvalidOperationError(TimelineError):
    """Raised when an operation is invalid."""
    pass


# =============================================================================
# SNAPSHOT STORE
# =============================================================================


Subscriber = Callable[[Timeline], None]


class TimelineStore:
    """Holds the current Timeline snapshot and swaps it atomically on commit."""

    def __init__(self, timeline: Timeline):
        if not isinstance(timeline, Timeline):
            raise InvalidOperationError(
                f"TimelineStore requires a Timeline, got {type(timeline).__name__}"
            )
        self._snapshot = timeline
        self._version = 0
        self._write_lock = threading.Lock()
        self._subscribers: list[Subscriber] = []

    @property
    def snapshot(self) -> Timeline:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._version

    def commit(
        self,
        timeline: Timeline,
        expected_version: int | None = None,
    ) -> int:
        """
        Replace the current snapshot.

        Args:
            timeline: New snapshot
            expected_version: If given, must equal the current version

        Returns:
            The new version number

        Raises:
            VersionConflictError: If expected_version is stale
            InvalidOperationError: If timeline is not a Timeline
        """
        if not isinstance(timeline, Timeline):
            raise InvalidOperationError(
                f"Cannot commit {type(timeline).__name__}, expected Timeline"
            )
        with self._write_lock:
            self._check_version(expected_version)
            if timeline is self._snapshot:
                return self._version
            self._snapshot = timeline
            self._version += 1
            version = self._version
            subscribers = list(self._subscribers)

        logger.debug(f"Committed timeline {timeline.id} at version {version}")
        for callback in subscribers:
            callback(timeline)
        return version

    def apply(
        self,
        operation: Callable[..., Timeline],
        *args: Any,
        expected_version: int | None = None,
        **kwargs: Any,
    ) -> Timeline:
        """
        Run ``operation(snapshot, *args, **kwargs)`` and commit its result.

        The operation runs under the writer lock so two writers cannot
        both derive from the same snapshot.
        """
        with self._write_lock:
            self._check_version(expected_version)
            current = self._snapshot
            updated = operation(current, *args, **kwargs)
            if not isinstance(updated, Timeline):
                raise InvalidOperationError(
                    f"Operation {getattr(operation, '__name__', operation)} "
                    f"returned {type(updated).__name__}, expected Timeline"
                )
            if updated is current:
                return current
            self._snapshot = updated
            self._version += 1
            version = self._version
            subscribers = list(self._subscribers)

        logger.debug(
            f"Applied {getattr(operation, '__name__', 'operation')} "
            f"to timeline {updated.id}, version {version}"
        )
        for callback in subscribers:
            callback(updated)
        return updated

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for new snapshots. Returns an unsubscribe callable."""
        with self._write_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._write_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _check_version(self, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != self._version:
            raise VersionConflictError(expected_version, self._version)
