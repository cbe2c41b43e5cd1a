"""In-memory resource: used by --dry-run and by tests.

Behaves like the GitHub comment resource, including version conflicts, but
keeps the body in a plain attribute so nothing leaves the process.
"""

from __future__ import annotations

import logging
from typing import Callable

from cisummary_core.errors import SummaryNotFoundError
from cisummary_core.markup import SENTINEL_MARKER
from cisummary_core.parser import parse_datetime
from cisummary_store.base import VersionedTextResource
from cisummary_store.models import Snapshot

logger = logging.getLogger(__name__)


class InMemoryResource(VersionedTextResource):
    """Holds the comment body in memory.

    ``writes`` records every body written, in order, so callers can inspect
    what would have been posted.
    """

    def __init__(
        self,
        body: str | None = None,
        marker: str = SENTINEL_MARKER,
        version_of: Callable[[str], str | None] = parse_datetime,
    ):
        self.body = body
        self.writes: list[str] = []
        self._marker = marker
        self._version_of = version_of

    def read(self) -> Snapshot:
        if self.body is None or self._marker not in self.body:
            raise SummaryNotFoundError()
        return Snapshot(body=self.body, version=self._version_of(self.body))

    def write_if_version(self, body: str, expected_version: str | None) -> bool:
        current = self._version_of(self.body or "")
        if current != expected_version:
            logger.debug("Version conflict: expected %s, found %s", expected_version, current)
            return False
        self._write(body)
        return True

    def create(self, body: str) -> None:
        self._write(body)

    def _write(self, body: str) -> None:
        self.body = body
        self.writes.append(body)

    def describe(self) -> str:
        return "in-memory comment"
