"""
Exceptions and warning records for roster synchronization.
"""

from dataclasses import dataclass


class RosterSyncError(Exception):
    """Base exception for roster synchronization failures."""
    pass


class StructureError(RosterSyncError):
    """Raised when the roster document does not have the expected table layout."""
    pass


class ConfigError(RosterSyncError):
    """Raised when settings cannot be loaded or validated."""
    pass


@dataclass(frozen=True)
class ApplicationWarning:
    """
    Non-fatal note produced while applying an instruction.

    Attributes:
        message: Human-readable description
        source: Raw chat line of the instruction that produced it ('' if none)
    """
    message: str
    source: str = ""

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} (from {self.source!r})"
        return self.message
