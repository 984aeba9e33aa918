"""
Roster model: snapshot of the clergy roster and the edits applied to it.
"""

from .snapshot import (
    HighPriestSlot,
    Occurrence,
    RosterSnapshot,
    empty_cells,
)
from .editor import (
    RosterEditor,
    apply_batch,
)

__all__ = [
    "HighPriestSlot",
    "Occurrence",
    "RosterSnapshot",
    "empty_cells",
    "RosterEditor",
    "apply_batch",
]
