"""Domain errors surfaced to API callers."""

from __future__ import annotations


class EmptySelectionError(ValueError):
    """Raised when no units remain to route after filtering or selection."""


class UnknownGroupError(ValueError):
    """Raised when a requested group key is not present in the unit catalog."""

    def __init__(self, group: str) -> None:
        super().__init__(f"Group '{group}' not found in the unit catalog.")
        self.group = group
