"""CI summary data models.

These are the typed shapes the parser produces, the merger transforms and the
renderer consumes. Untyped input (JSON files, action inputs) is converted into
them at the boundary by cisummary_core.loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Status(str, Enum):
    """Outcome of one CI job as shown in the summary comment."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    PENDING = "pending"
    UNKNOWN = "unknown"


@dataclass
class ErrorCode:
    value: str = ""


@dataclass
class ErrorLocation:
    path: str


@dataclass
class ErrorEntry:
    """A single finding attached to a failing job."""

    message: str
    severity: str
    code: ErrorCode = field(default_factory=ErrorCode)
    approvals: list[str] = field(default_factory=list)
    location: ErrorLocation | None = None  # omitted when the finding has no file


@dataclass
class SummaryItem:
    """One CI job's recorded state inside the summary comment.

    ``required`` is never written into the comment as a field; it is recovered
    from which section ("Required" or "Optional") the item is rendered in.
    """

    name: str
    required: bool
    status: Status = Status.UNKNOWN
    reference: str | None = None
    errors: list[ErrorEntry] | None = None  # None when the job reported no findings


@dataclass
class Summary:
    """The whole-comment state for one pull request."""

    items: list[SummaryItem] = field(default_factory=list)
    datetime: str | None = None  # ISO-8601, doubles as the concurrency token

    def get(self, name: str) -> SummaryItem | None:
        for item in self.items:
            if item.name == name:
                return item
        return None

    @property
    def required_items(self) -> list[SummaryItem]:
        return [i for i in self.items if i.required]

    @property
    def optional_items(self) -> list[SummaryItem]:
        return [i for i in self.items if not i.required]


@dataclass
class JobResult:
    """A single job's report, as passed to the update command."""

    name: str
    required: bool
    status: Status
    url: str | None = None
    errors: list[ErrorEntry] | None = None
