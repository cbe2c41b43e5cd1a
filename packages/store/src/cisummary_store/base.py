"""Abstract versioned text resource.

The update coordinator depends on this interface, not on GitHub, so the
retry and conflict logic runs against an in-memory resource in tests and in
dry runs. Backends are swappable without touching the coordinator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cisummary_store.models import Snapshot


class VersionedTextResource(ABC):
    """A shared text document with optimistic, version-checked writes.

    The resource never locks. write_if_version() re-reads the current
    version immediately before writing and refuses to write when it no
    longer matches; a small window between that check and the write remains.
    """

    @abstractmethod
    def read(self) -> Snapshot:
        """Return the current body and version.

        Raises SummaryNotFoundError when the resource does not exist yet.
        """

    @abstractmethod
    def write_if_version(self, body: str, expected_version: str | None) -> bool:
        """Write ``body`` only if the current version equals ``expected_version``.

        Returns True when written, False on a version conflict.
        """

    @abstractmethod
    def create(self, body: str) -> None:
        """Create the resource with ``body``, replacing any existing content."""

    def describe(self) -> str:
        """Human-readable location, used in log and console messages."""
        return self.__class__.__name__
