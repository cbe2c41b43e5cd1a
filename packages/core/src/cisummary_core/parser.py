"""Recover structured state from a rendered summary comment.

parse_summary() is total: it never raises on unexpected text. Every rule
below has a default that applies when its pattern does not match, so a
hand-edited comment or one rendered by an older release still parses and
never blocks a legitimate update.

Grammar (applied in this order):

  sections   first "<h2>Required:</h2>" / "<h2>Optional:</h2>" offsets, -1 if absent
  item       "<!-- ci-item-NAME-start -->" ... "<!-- ci-item-NAME-end -->"
  required   start offset after the Required header and before the Optional
             header (no Optional header = no upper bound); False without a
             Required header
  status     STATUS_RULES, first match wins, else "unknown"
  reference  first href target, else None
  errors     "Errors details (N)" table, one entry per <tbody> row, else None
  datetime   "<p>This comment is created or updated at: X</p>", else None
"""

from __future__ import annotations

import logging
import re

from cisummary_core.markup import (
    OPTIONAL_HEADER,
    REQUIRED_HEADER,
    decode_approvals,
    decode_optional,
    decode_text,
)
from cisummary_core.models import ErrorCode, ErrorEntry, ErrorLocation, Status, Summary, SummaryItem

logger = logging.getLogger(__name__)

_ITEM_RE = re.compile(r"<!-- ci-item-(?P<name>.+?)-start -->(?P<content>[\s\S]*?)<!-- ci-item-(?P=name)-end -->")
_DATETIME_RE = re.compile(r"<p>This comment is created or updated at: `?(.*?)`?</p>", re.IGNORECASE)
_REFERENCE_RE = re.compile(r"href=['\"](.*?)['\"]")
_ERRORS_RE = re.compile(
    r"<details[^>]*><summary>Errors details \((\d+)\)</summary><table><thead>[\s\S]*?</thead>"
    r"<tbody>([\s\S]*?)</tbody></table></details>"
)
_ROW_RE = re.compile(r"<tr>([\s\S]*?)</tr>")
_CELL_RE = re.compile(r"<td>([\s\S]*?)</td>")

# Precedence matters: glyphs can also appear inside error messages, so the
# first rule that matches anywhere in the item wins.
STATUS_RULES: tuple[tuple[Status, re.Pattern[str]], ...] = (
    (Status.SUCCESS, re.compile(r"✅.*Success", re.IGNORECASE)),
    (Status.FAILURE, re.compile(r"❌.*Failure", re.IGNORECASE)),
    (Status.CANCELLED, re.compile(r"⏹.*Cancelled", re.IGNORECASE)),
    (Status.SKIPPED, re.compile(r"➡.*Skipped", re.IGNORECASE)),
    (Status.PENDING, re.compile(r"⏳.*Pending", re.IGNORECASE)),
)


def parse_summary(text: str | None) -> Summary:
    """Parse a rendered comment body into a Summary."""
    text = text or ""
    required_start = text.find(REQUIRED_HEADER)
    optional_start = text.find(OPTIONAL_HEADER)

    items: list[SummaryItem] = []
    seen: set[str] = set()
    for match in _ITEM_RE.finditer(text):
        name = match.group("name")
        if name in seen:
            # A duplicated block can only come from a hand edit; the first one wins.
            logger.debug("Ignoring duplicate item block for %r", name)
            continue
        seen.add(name)
        content = match.group("content")
        items.append(
            SummaryItem(
                name=name,
                required=_is_required(match.start(), required_start, optional_start),
                status=parse_status(content),
                reference=_parse_reference(content),
                errors=_parse_errors(content),
            )
        )

    return Summary(items=items, datetime=parse_datetime(text))


def parse_datetime(text: str | None) -> str | None:
    """Return only the last-update timestamp, the comment's concurrency token."""
    match = _DATETIME_RE.search(text or "")
    if match and match.group(1):
        return match.group(1)
    return None


def parse_status(content: str) -> Status:
    for status, pattern in STATUS_RULES:
        if pattern.search(content):
            return status
    return Status.UNKNOWN


def _is_required(position: int, required_start: int, optional_start: int) -> bool:
    if required_start == -1:
        return False
    return position > required_start and (optional_start == -1 or position < optional_start)


def _parse_reference(content: str) -> str | None:
    match = _REFERENCE_RE.search(content)
    return decode_text(match.group(1)) if match else None


def _parse_errors(content: str) -> list[ErrorEntry] | None:
    match = _ERRORS_RE.search(content)
    if not match:
        return None
    errors = [_parse_error_row(row) for row in _ROW_RE.findall(match.group(2))]
    return errors or None


def _parse_error_row(row: str) -> ErrorEntry:
    cells = _CELL_RE.findall(row)
    # Short rows come from hand edits; missing cells read as empty.
    cells += [""] * (5 - len(cells))
    path_cell, message_cell, severity_cell, code_cell, approvals_cell = cells[:5]

    path = decode_optional(path_cell)
    return ErrorEntry(
        message=decode_text(message_cell),
        severity=decode_text(severity_cell),
        code=ErrorCode(value=decode_optional(code_cell)),
        approvals=decode_approvals(approvals_cell),
        location=ErrorLocation(path=path) if path else None,
    )
