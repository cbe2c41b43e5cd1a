"""Read the GitHub Actions run context from the environment."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_pull_request_number() -> int | None:
    """Return the pull request number of the triggering event, or None.

    Only pull_request / pull_request_target events carry one; for any other
    event (push, schedule, ...) there is no summary comment to maintain.
    """
    event_name = os.environ.get("GITHUB_EVENT_NAME", "")
    if event_name not in ("pull_request", "pull_request_target"):
        return None

    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if not event_path or not Path(event_path).exists():
        return None
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read event payload %s: %s", event_path, e)
        return None

    number = (payload.get("pull_request") or {}).get("number") or payload.get("number")
    return number if isinstance(number, int) else None
