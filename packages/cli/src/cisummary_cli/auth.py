"""GitHub token for the summary comment.

Sources, first non-empty wins:
  1. The action's repo-token input or --token
  2. GITHUB_TOKEN, as exported to a workflow step
  3. `gh auth token`, so `cisummary show` works from a developer shell
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GH_TIMEOUT = 5  # seconds


def _gh_cli_token() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=_GH_TIMEOUT)
    except FileNotFoundError:
        logger.debug("gh CLI not installed; no session token.")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("gh auth token timed out after %ss.", _GH_TIMEOUT)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token(explicit: str | None = None) -> str | None:
    """Return the first available token, or None.

    Commands that talk to GitHub turn None into a UsageError.
    """
    for source, token in (("token input", explicit), ("GITHUB_TOKEN", os.environ.get("GITHUB_TOKEN"))):
        if token:
            logger.debug("Using GitHub token from %s.", source)
            return token

    token = _gh_cli_token()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token
