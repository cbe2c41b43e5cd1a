"""Render a Summary into the comment body that parse_summary() reads back."""

from __future__ import annotations

import html
from datetime import datetime, timezone

from cisummary_core.markup import (
    DATETIME_PREFIX,
    ERROR_COLUMNS,
    OPTIONAL_HEADER,
    REQUIRED_HEADER,
    SENTINEL_MARKER,
    STATUS_LABELS,
    encode_approvals,
    encode_optional,
    encode_text,
    item_end,
    item_start,
)
from cisummary_core.models import ErrorEntry, Summary, SummaryItem

DEFAULT_TITLE = "CI Summary"
_INDENT = "      "


def format_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp, e.g. ``2025-07-06T08:27:50.807123Z``.

    Microsecond precision keeps two writers that render in the same
    millisecond from producing the same concurrency token.
    """
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def render_summary(summary: Summary, title: str = DEFAULT_TITLE, timestamp: str | None = None) -> str:
    """Render the full comment body.

    Required items are listed under the Required header and the rest under
    Optional, each group in its original relative order. ``timestamp``
    overrides ``summary.datetime``; with neither, the datetime sentence is
    left out.
    """
    stamp = timestamp if timestamp is not None else summary.datetime

    lines = [SENTINEL_MARKER, f"<h1>{html.escape(title)}</h1>", ""]
    lines += _render_section(REQUIRED_HEADER, summary.required_items)
    lines.append("")
    lines += _render_section(OPTIONAL_HEADER, summary.optional_items)

    if stamp:
        lines.append("")
        lines.append(f"<p>{DATETIME_PREFIX}{stamp}</p>")

    return "\n".join(lines) + "\n"


def _render_section(header: str, items: list[SummaryItem]) -> list[str]:
    lines = [header, "<ul>"]
    for item in items:
        lines.append(_INDENT + item_start(item.name))
        lines.append(_INDENT + render_item(item))
        lines.append(_INDENT + item_end(item.name))
    lines.append("</ul>")
    return lines


def render_item(item: SummaryItem) -> str:
    glyph, label = STATUS_LABELS[item.status]
    parts = [f"<li><code>{encode_text(item.name)}</code>{glyph} <strong>{label}</strong>"]
    if item.reference:
        parts.append(f' <a href="{encode_text(item.reference)}">Ref</a>')
    if item.errors:
        parts.append(" " + _render_errors(item.errors))
    parts.append("</li>")
    return "".join(parts)


def _render_errors(errors: list[ErrorEntry]) -> str:
    head = "".join(f"<th>{column}</th>" for column in ERROR_COLUMNS)
    rows = "".join(_render_error_row(error) for error in errors)
    return (
        f'<details style="display:inline;"><summary>Errors details ({len(errors)})</summary>'
        f"<table><thead><tr>{head}</tr></thead><tbody>{rows}</tbody></table></details>"
    )


def _render_error_row(error: ErrorEntry) -> str:
    cells = (
        encode_optional(error.location.path if error.location else None),
        encode_text(error.message),
        encode_text(error.severity),
        encode_optional(error.code.value),
        encode_approvals(error.approvals),
    )
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"
