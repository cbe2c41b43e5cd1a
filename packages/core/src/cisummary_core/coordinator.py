"""Optimistic-concurrency update of the shared summary comment.

Many CI jobs finish at about the same time and each one merges its own result
into the same comment. There is no conditional update for comments, so every
attempt runs:

    FETCH -> MERGE_RENDER -> JITTER_DELAY -> RE-VERIFY -> WRITE

FETCH reads the comment and its timestamp (the version token). The new body
is stamped with a fresh timestamp, a random delay spreads out writers that
finished together, and RE-VERIFY re-reads the same comment by id. If its
timestamp still equals the one seen at FETCH, nobody else has written and the
body is written. Otherwise the attempt is discarded and, after a backoff that
grows with the attempt number, the whole cycle starts over from the newer
state. A lost race is never written over.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from cisummary_core.errors import ConcurrentUpdateError
from cisummary_core.merger import merge_job
from cisummary_core.parser import parse_summary
from cisummary_core.render import DEFAULT_TITLE, format_timestamp, render_summary

if TYPE_CHECKING:
    from cisummary_core.models import JobResult, Summary
    from cisummary_store.base import VersionedTextResource

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
RETRY_DELAY = 5.0  # seconds
MAX_JITTER = 30.0  # seconds


@dataclass
class UpdateResult:
    """What a successful update wrote."""

    summary: Summary
    body: str
    attempts: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UpdateCoordinator:
    """Merges one job result into the summary stored in ``resource``.

    ``sleep``, ``clock`` and ``rng`` are injectable so tests can drive the
    protocol deterministically and interleave other writers during a delay.
    """

    def __init__(
        self,
        resource: VersionedTextResource,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        max_jitter: float = MAX_JITTER,
        title: str = DEFAULT_TITLE,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.resource = resource
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.max_jitter = max_jitter
        self.title = title
        self._sleep = sleep
        self._clock = clock
        self._rng = rng or random.Random()

    def run(self, job: JobResult) -> UpdateResult:
        """Merge ``job`` into the comment, retrying on concurrent updates.

        Raises SummaryNotFoundError if the comment does not exist (never
        retried) and ConcurrentUpdateError once every attempt has lost.
        """
        for attempt in range(1, self.max_attempts + 1):
            # FETCH
            snapshot = self.resource.read()
            current = parse_summary(snapshot.body)

            # MERGE_RENDER
            updated = merge_job(current, job)
            updated.datetime = format_timestamp(self._clock())
            body = render_summary(updated, title=self.title)
            logger.debug("Current data: %s", current)
            logger.debug("New data: %s", updated)

            # JITTER_DELAY
            jitter = self._rng.uniform(0, self.max_jitter) if self.max_jitter > 0 else 0.0
            logger.info(
                "Adding random delay of %.1fs before updating %s to reduce collision probability",
                jitter,
                self.resource.describe(),
            )
            self._sleep(jitter)

            # RE-VERIFY + WRITE, against the token read before this attempt's merge
            if self.resource.write_if_version(body, snapshot.version):
                logger.info("Successfully updated CI Summary comment (attempt %d/%d)", attempt, self.max_attempts)
                return UpdateResult(summary=updated, body=body, attempts=attempt)

            logger.info(
                "Detected concurrent update right before committing changes (attempt %d/%d)",
                attempt,
                self.max_attempts,
            )
            if attempt < self.max_attempts:
                backoff = self.retry_delay * attempt
                logger.info("Retrying in %.1fs...", backoff)
                self._sleep(backoff)

        logger.error("Giving up after %d attempts: the summary kept changing underneath", self.max_attempts)
        raise ConcurrentUpdateError(self.max_attempts)


def initialize_summary(
    resource: VersionedTextResource,
    summary: Summary,
    title: str = DEFAULT_TITLE,
    clock: Callable[[], datetime] = _utcnow,
) -> str:
    """Write the initial summary and return the rendered body."""
    body = render_summary(summary, title=title, timestamp=format_timestamp(clock()))
    resource.create(body)
    logger.info("Initialized CI Summary with %d item(s) in %s", len(summary.items), resource.describe())
    return body
