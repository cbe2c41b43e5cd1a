"""Fixed text fragments of the summary comment body.

The renderer writes these and the parser searches for them, so both sides
import them from here. Changing any of them breaks parsing of comments that
were rendered by an earlier release.
"""

from __future__ import annotations

import html
import re

from cisummary_core.models import Status

SENTINEL_MARKER = "<!-- ci-summary-sticky -->"
REQUIRED_HEADER = "<h2>Required:</h2>"
OPTIONAL_HEADER = "<h2>Optional:</h2>"
DATETIME_PREFIX = "This comment is created or updated at: "
PLACEHOLDER = "-"

ERROR_COLUMNS = ("Path", "Message", "Severity", "Code", "Approvals")

# Glyph and keyword per status. The parser matches "<glyph>.*<keyword>".
STATUS_LABELS: dict[Status, tuple[str, str]] = {
    Status.SUCCESS: ("✅", "Success"),
    Status.FAILURE: ("❌", "Failure"),
    Status.CANCELLED: ("⏹️", "Cancelled"),
    Status.SKIPPED: ("➡️", "Skipped"),
    Status.PENDING: ("⏳", "Pending"),
    Status.UNKNOWN: ("❔", "Unknown"),
}

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

# Status glyphs inside free text would otherwise be read as the item's status.
_GLYPH_ENTITIES = str.maketrans({glyph[0]: f"&#x{ord(glyph[0]):x};" for glyph, _ in STATUS_LABELS.values()})


def item_start(name: str) -> str:
    return f"<!-- ci-item-{name}-start -->"


def item_end(name: str) -> str:
    return f"<!-- ci-item-{name}-end -->"


def encode_text(text: str) -> str:
    """Escape free text for a table cell; newlines become <br>."""
    return html.escape(text).translate(_GLYPH_ENTITIES).replace("\n", "<br>")
def encode_optional(text: str | None) -> str:
    """Encode a cell whose empty value is shown as the placeholder.

    A value that reads as "-" is written with an entity so it is not read
    back as empty. Surrounding whitespace is kept.
    """
    if not text:
        return PLACEHOLDER
    if text.strip() == PLACEHOLDER:
        return encode_text(text).replace(PLACEHOLDER, "&#45;")
    return encode_text(text)


def decode_text(raw: str) -> str:
    return html.unescape(_BR_RE.sub("\n", raw))


def decode_optional(raw: str) -> str:
    if raw.strip() == PLACEHOLDER:
        return ""
    return decode_text(raw)


def encode_approvals(approvals: list[str]) -> str:
    if not approvals:
        return PLACEHOLDER
    return ", ".join(encode_optional(a).replace(",", "&#44;") for a in approvals)


def decode_approvals(raw: str) -> list[str]:
    if raw.strip() in ("", PLACEHOLDER):
        return []
    approvals: list[str] = []
    for part in raw.split(","):
        # Approvals are stripped on input; the padding is the ", " separator.
        value = decode_optional(part.strip())
        if value and value not in approvals:
            approvals.append(value)
    return approvals
