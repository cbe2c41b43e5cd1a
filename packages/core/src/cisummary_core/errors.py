"""Exceptions raised by cisummary.

Library code raises these; only the CLI turns them into exit codes.
"""

from __future__ import annotations


class CISummaryError(Exception):
    """Base class for all cisummary failures."""


class ConfigurationError(CISummaryError):
    """Inputs are missing, conflicting or malformed. Raised before any network call."""


class SummaryNotFoundError(CISummaryError):
    """No CI summary comment exists on the pull request yet."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No CI Summary comment found. Please initialize a CI Summary first by running "
            "this action with init-json-file-path input."
        )


class ConcurrentUpdateError(CISummaryError):
    """Every attempt lost the race against another writer."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Maximum retry attempts reached due to concurrent updates ({attempts} attempts)")
