"""PullRequestCommentResource: the CI summary comment on a GitHub pull request.

The issue comments API has no conditional update, so the check-then-write is
emulated. The version is the last-update timestamp carried in the rendered
body itself.

The comment is located once by its sentinel marker (a paginated search) and
afterwards always addressed by id, so re-verification reads exactly the
comment that was searched.
"""

from __future__ import annotations

import logging
from typing import Callable

from cisummary_core.errors import SummaryNotFoundError
from cisummary_core.gh.comments import (
    create_comment,
    find_comment_by_marker,
    get_comment_by_id,
    update_comment,
)
from cisummary_core.markup import SENTINEL_MARKER
from cisummary_core.parser import parse_datetime
from cisummary_store.base import VersionedTextResource
from cisummary_store.models import Snapshot

logger = logging.getLogger(__name__)


class PullRequestCommentResource(VersionedTextResource):
    """The single marked comment in a pull request's conversation.

    ``issue`` is a PyGithub Issue for the pull request number (see
    cisummary_core.gh.comments.get_issue).
    """

    def __init__(
        self,
        issue,
        marker: str = SENTINEL_MARKER,
        version_of: Callable[[str], str | None] = parse_datetime,
    ):
        self._issue = issue
        self._marker = marker
        self._version_of = version_of
        self._comment_id: int | None = None

    def read(self) -> Snapshot:
        comment = find_comment_by_marker(self._issue, self._marker)
        if comment is None:
            raise SummaryNotFoundError()
        self._comment_id = comment.id
        body = comment.body or ""
        return Snapshot(body=body, version=self._version_of(body), resource_id=comment.id)

    def write_if_version(self, body: str, expected_version: str | None) -> bool:
        if self._comment_id is None:
            self.read()
        # Fetch by id rather than searching again: the check must be against
        # the same comment the caller read.
        latest = get_comment_by_id(self._issue, self._comment_id)
        current = self._version_of(latest.body or "")
        if current != expected_version:
            logger.debug("Comment %s changed: expected %s, found %s", self._comment_id, expected_version, current)
            return False
        update_comment(latest, body)
        return True

    def create(self, body: str) -> None:
        existing = find_comment_by_marker(self._issue, self._marker)
        if existing is not None:
            logger.info("Summary comment %s already exists; re-initializing it.", existing.id)
            update_comment(existing, body)
            self._comment_id = existing.id
            return
        comment = create_comment(self._issue, body)
        self._comment_id = comment.id

    def describe(self) -> str:
        return f"comment on #{self._issue.number}"
