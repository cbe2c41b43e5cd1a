"""Convert untyped input (JSON files, action inputs) into the typed models.

Everything coming from outside the process passes through here. Anything
that does not fit the model raises ConfigurationError before a single
network call is made.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from cisummary_core.errors import ConfigurationError
from cisummary_core.models import ErrorCode, ErrorEntry, ErrorLocation, JobResult, Status, Summary, SummaryItem

# Names end up inside HTML comments and a <code> tag.
_INVALID_NAME_RE = re.compile(r"[<>\r\n]")

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off", ""}


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("Job name must be a non-empty string.")
    name = name.strip()
    if _INVALID_NAME_RE.search(name):
        raise ConfigurationError(f"Job name {name!r} must not contain '<', '>' or line breaks.")
    return name


def coerce_bool(value: Any, field_name: str = "required") -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigurationError(f"{field_name} must be true or false, got {value!r}.")


def coerce_status(value: Any) -> Status:
    if isinstance(value, Status):
        return value
    if not isinstance(value, str):
        raise ConfigurationError(f"Status must be a string, got {value!r}.")
    try:
        return Status(value.strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in Status)
        raise ConfigurationError(f"Unknown status {value!r}. Expected one of: {choices}.") from None


def error_from_dict(data: Any) -> ErrorEntry:
    """Build an ErrorEntry from its structured JSON form.

    Plain strings are rejected: only the structured shape
    ``{"message", "severity", "code": {"value"}, "approvals", "location": {"path"}}``
    is accepted.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Each error must be an object with message and severity, got {data!r}.")

    message = data.get("message")
    if not isinstance(message, str):
        raise ConfigurationError("Error entry is missing a string 'message'.")
    severity = data.get("severity", "")
    if not isinstance(severity, str):
        raise ConfigurationError("Error entry 'severity' must be a string.")

    code = data.get("code") or {}
    if not isinstance(code, dict) or not isinstance(code.get("value", ""), str):
        raise ConfigurationError("Error entry 'code' must be an object with a string 'value'.")

    approvals = data.get("approvals") or []
    if not isinstance(approvals, list) or not all(isinstance(a, str) for a in approvals):
        raise ConfigurationError("Error entry 'approvals' must be a list of strings.")
    unique_approvals: list[str] = []
    for approval in approvals:
        approval = approval.strip()
        if approval and approval not in unique_approvals:
            unique_approvals.append(approval)

    location = data.get("location")
    path = None
    if location is not None:
        if not isinstance(location, dict) or not isinstance(location.get("path", ""), str):
            raise ConfigurationError("Error entry 'location' must be an object with a string 'path'.")
        path = location.get("path") or None

    return ErrorEntry(
        message=message,
        severity=severity,
        code=ErrorCode(value=code.get("value", "")),
        approvals=unique_approvals,
        location=ErrorLocation(path=path) if path else None,
    )


def errors_from_list(data: Any) -> list[ErrorEntry] | None:
    if data is None:
        return None
    if not isinstance(data, list):
        raise ConfigurationError("errors must be a JSON array.")
    errors = [error_from_dict(entry) for entry in data]
    return errors or None


def errors_from_json(text: str | None) -> list[ErrorEntry] | None:
    """Parse the ``errors`` action input (a JSON array) into ErrorEntry records."""
    if not text or not text.strip():
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"errors input is not valid JSON: {e}") from e
    return errors_from_list(data)


def job_from_inputs(
    name: str | None,
    required: Any,
    status: str | None,
    url: str | None,
    errors: str | None = None,
) -> JobResult:
    return JobResult(
        name=validate_name(name),
        required=coerce_bool(required),
        status=coerce_status(status),
        url=url or None,
        errors=errors_from_json(errors),
    )


def item_from_dict(data: Any) -> SummaryItem:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Each item must be an object, got {data!r}.")
    reference = data.get("reference") or data.get("url") or data.get("htmlURL")
    if reference is not None and not isinstance(reference, str):
        raise ConfigurationError("Item reference must be a string URL.")
    return SummaryItem(
        name=validate_name(data.get("name")),
        required=coerce_bool(data.get("required", False)),
        status=coerce_status(data.get("status", Status.PENDING.value)),
        reference=reference or None,
        errors=errors_from_list(data.get("errors")),
    )


def summary_from_dict(data: Any) -> Summary:
    if not isinstance(data, dict):
        raise ConfigurationError("Initial state must be a JSON object with an 'items' array.")
    raw_items = data.get("items", [])
    if not isinstance(raw_items, list):
        raise ConfigurationError("'items' must be a JSON array.")

    items: list[SummaryItem] = []
    for raw in raw_items:
        item = item_from_dict(raw)
        if any(existing.name == item.name for existing in items):
            raise ConfigurationError(f"Duplicate item name {item.name!r} in initial state.")
        items.append(item)
    return Summary(items=items)


def load_initial_summary(path: str) -> Summary:
    """Read the JSON file given to initialize mode."""
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Initial state file not found: {path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Initial state file {path} is not valid JSON: {e}") from e
    return summary_from_dict(data)
