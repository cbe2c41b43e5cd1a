"""Resource data models.

Kept free of any summary semantics: a snapshot is just text plus the opaque
version token the resource derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Snapshot:
    """The body of a versioned text resource as read at one moment."""

    body: str
    version: str | None  # None when the body carries no token
    resource_id: int | None = None
