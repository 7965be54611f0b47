"""Type dependency tracking.

Records which schema types are referenced while selection sets are built, so
callers can find out which parts of a type bundle their queries depend on.

Example usage:
    from gql_pyclient.core.tracker import start_tracking, tracked_types

    start_tracking()
    Query(bundle, lambda root: root.add("shop", lambda shop: shop.add("name")))
    tracked_types()  # ['QueryRoot', 'Shop', 'String']

Builders use the process-wide ``DEFAULT_TRACKER`` unless given another
tracker, so concurrent tracked builds share one record. Pass a private
``TypeTracker`` (or a ``NullTracker``) to keep builds apart.
"""

import sys
from typing import Protocol, TextIO, runtime_checkable


@runtime_checkable
class Tracker(Protocol):
    """Protocol for type dependency recorders used by the builders."""

    def track(self, type_name: str) -> None:
        """Record that ``type_name`` was referenced."""
        ...


class TypeTracker:
    """Accumulates type names while tracking is enabled."""

    def __init__(self):
        self._types: set[str] = set()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self):
        """Enable recording. Calling it while active is a no-op."""
        self._active = True

    def pause(self):
        """Disable recording, keeping what has been recorded so far."""
        self._active = False

    def reset(self):
        """Forget everything and disable recording."""
        self._types.clear()
        self._active = False

    def track(self, type_name: str) -> None:
        if self._active:
            self._types.add(type_name)

    def tracked_types(self) -> list[str]:
        """Return the recorded type names, deduplicated and sorted."""
        return sorted(self._types)

    def print_types(self, file: TextIO | None = None):
        """Write the recorded type names as one comma-joined line."""
        print(",".join(self.tracked_types()), file=file if file is not None else sys.stderr)


class NullTracker:
    """Tracker that records nothing."""

    def track(self, type_name: str) -> None:
        pass


DEFAULT_TRACKER = TypeTracker()


def start_tracking():
    DEFAULT_TRACKER.start()


def pause_tracking():
    DEFAULT_TRACKER.pause()


def reset_tracker():
    DEFAULT_TRACKER.reset()


def tracked_types() -> list[str]:
    return DEFAULT_TRACKER.tracked_types()


def print_types(file: TextIO | None = None):
    DEFAULT_TRACKER.print_types(file)
