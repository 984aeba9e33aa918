"""
In-memory roster snapshot.

A snapshot holds one ordered list of member entries per (Divine, base rank) pair plus
the roster-wide High Priest(ess) slot. It is created by parsing a document, mutated by
one batch, and handed to one regeneration.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..names import display_name, is_loth, normalize
from ..vocabulary import BASE_RANKS, DIVINES


Cells = Dict[str, Dict[str, List[str]]]


def empty_cells() -> Cells:
    return {divine: {rank: [] for rank in BASE_RANKS} for divine in DIVINES}


@dataclass
class HighPriestSlot:
    """The single High Priest(ess) entry and its title."""
    entry: str
    title: str

    @property
    def loth(self) -> bool:
        return is_loth(self.entry)

    @property
    def name(self) -> str:
        return display_name(self.entry)


@dataclass(frozen=True)
class Occurrence:
    """
    Where a member entry lives in a snapshot.

    ``divine``/``rank``/``index`` are None for the High Priest slot.
    """
    entry: str
    divine: Optional[str] = None
    rank: Optional[str] = None
    index: Optional[int] = None

    @property
    def is_high_priest(self) -> bool:
        return self.divine is None


@dataclass
class RosterSnapshot:
    """Divine -> base rank -> member entries, plus the High Priest slot."""
    cells: Cells = field(default_factory=empty_cells)
    high_priest: Optional[HighPriestSlot] = None

    def members(self, divine: str, rank: str) -> List[str]:
        return self.cells[divine][rank]

    def iter_entries(self) -> Iterator[Tuple[str, str, str]]:
        """Yield (divine, rank, entry) in document order."""
        for divine in DIVINES:
            for rank in BASE_RANKS:
                for entry in self.cells[divine][rank]:
                    yield divine, rank, entry

    def occurrences(self) -> List[Occurrence]:
        """Every entry as an Occurrence, High Priest slot first."""
        found: List[Occurrence] = []
        if self.high_priest is not None:
            found.append(Occurrence(entry=self.high_priest.entry))
        for divine in DIVINES:
            for rank in BASE_RANKS:
                for i, entry in enumerate(self.cells[divine][rank]):
                    found.append(Occurrence(entry=entry, divine=divine, rank=rank, index=i))
        return found

    def sort_lists(self) -> None:
        """Sort every base-rank list by normalized name (stable)."""
        for ranks in self.cells.values():
            for entries in ranks.values():
                entries.sort(key=normalize)

    def is_sorted(self) -> bool:
        return all(
            [normalize(e) for e in entries] == sorted(normalize(e) for e in entries)
            for ranks in self.cells.values()
            for entries in ranks.values()
        )

    def member_count(self) -> int:
        return sum(1 for _ in self.iter_entries())

    def copy(self) -> "RosterSnapshot":
        return copy.deepcopy(self)
