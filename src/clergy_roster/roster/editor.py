"""
Roster mutations.

Applies parsed instructions to a RosterSnapshot. Problems with a single instruction
(unknown target, ambiguous target, no-op) are recorded as ApplicationWarnings and the
batch carries on.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Set

from ..errors import ApplicationWarning
from ..names import (
    edit_distance,
    ensure_loth_marker,
    is_loth,
    names_match,
    normalize,
    to_markup,
)
from ..parsing.instructions import (
    Add,
    Error,
    Ignore,
    Instruction,
    Remove,
    Rename,
    SetHighPriest,
    UpdateLoth,
)
from ..vocabulary import (
    BASE_RANKS,
    DIVINES,
    HIGH_PRIEST_TITLES,
    OCCURRENCE_MAX_DISTANCE,
    canonical_base_rank,
    canonical_divine,
)
from .snapshot import HighPriestSlot, Occurrence, RosterSnapshot

logger = logging.getLogger(__name__)


class RosterEditor:
    """
    Mutation operations over one snapshot.

    All operations are synchronous and only touch the snapshot passed in.
    Warnings accumulate in ``self.warnings``.
    """

    def __init__(self, snapshot: RosterSnapshot):
        self.snapshot = snapshot
        self.warnings: List[ApplicationWarning] = []
        self._handlers: Dict[type, Callable[[Instruction], None]] = {
            Add: lambda i: self.add(i.name, i.divine, i.rank, i.loth, source=i.source),
            Remove: lambda i: self.remove(i.name, source=i.source),
            Rename: lambda i: self.rename(i.old_name, i.new_name, source=i.source),
            SetHighPriest: lambda i: self.set_high_priest(i.name, i.title, i.loth, source=i.source),
            UpdateLoth: lambda i: self.update_loth(i.name, i.make_loth, source=i.source),
        }

    def _warn(self, message: str, source: str = "") -> None:
        warning = ApplicationWarning(message=message, source=source)
        self.warnings.append(warning)
        logger.warning(str(warning))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def apply(self, instruction: Instruction) -> None:
        """Apply one instruction; Ignore and Error are skipped."""
        if isinstance(instruction, (Ignore, Error)):
            logger.debug(f"Skipping {instruction.kind.value} instruction: {instruction.reason}")
            return
        handler = self._handlers.get(type(instruction))
        if handler is None:
            self._warn(f"Unsupported instruction type {type(instruction).__name__}")
            return
        handler(instruction)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_occurrences(self, name: str) -> List[Occurrence]:
        """
        Locate a member by name.

        Exact normalized matches win. Otherwise every entry tied at the smallest edit
        distance (at most OCCURRENCE_MAX_DISTANCE) is returned.
        """
        target = normalize(name)
        if not target:
            return []

        pool = self.snapshot.occurrences()
        exact = [o for o in pool if normalize(o.entry) == target]
        if exact:
            return exact

        best_dist = OCCURRENCE_MAX_DISTANCE + 1
        hits: List[Occurrence] = []
        for occurrence in pool:
            dist = edit_distance(target, normalize(occurrence.entry))
            if dist < best_dist:
                best_dist, hits = dist, [occurrence]
            elif dist == best_dist and dist <= OCCURRENCE_MAX_DISTANCE:
                hits.append(occurrence)
        if hits:
            logger.debug(
                f"Fuzzy-resolved {name!r} to {[o.entry for o in hits]} (distance {best_dist})"
            )
        return hits

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, name: str, divine: str, rank: str, loth: bool, source: str = "") -> bool:
        """
        Put ``name`` into (divine, rank), moving it out of any other base-rank list.

        Returns:
            True if the snapshot was changed
        """
        divine_key = canonical_divine(divine)
        rank_key = canonical_base_rank(rank)
        if not divine_key or not rank_key:
            self._warn(f"Cannot add {name!r}: unknown divine {divine!r} or rank {rank!r}", source)
            return False

        entry = ensure_loth_marker(to_markup(name), loth)
        identity = normalize(entry)
        if not identity:
            self._warn("Cannot add an empty name", source)
            return False

        moved_from = self._purge_identity(identity, keep=(divine_key, rank_key))
        for divine_name, rank_name in moved_from:
            logger.info(f"Moved {name!r} out of {rank_name} of {divine_name}")

        hp = self.snapshot.high_priest
        if hp is not None and normalize(hp.entry) == identity:
            logger.info(f"{name!r} leaves the {hp.title} slot for {rank_key} of {divine_key}")
            self.snapshot.high_priest = None

        destination = self.snapshot.members(divine_key, rank_key)
        matches = [i for i, existing in enumerate(destination) if normalize(existing) == identity]
        if matches:
            first = matches[0]
            changed = destination[first] != entry or len(matches) > 1
            destination[first] = entry
            for i in reversed(matches[1:]):
                del destination[i]
            if changed:
                logger.info(f"Updated {name!r} in {rank_key} of {divine_key}")
            return changed or bool(moved_from)

        destination.append(entry)
        logger.info(f"Added {name!r} to {rank_key} of {divine_key}")
        return True

    def remove(self, name: str, source: str = "") -> bool:
        """Remove every occurrence of ``name``."""
        occurrences = self.find_occurrences(name)
        if not occurrences:
            self._warn(f"Cannot remove {name!r}: no matching member", source)
            return False
        if len(occurrences) > 1:
            self._warn(
                f"{name!r} matched {len(occurrences)} entries; removing all of them", source
            )

        # Highest index first so earlier indices stay valid
        for occurrence in sorted(occurrences, key=lambda o: o.index or 0, reverse=True):
            if occurrence.is_high_priest:
                logger.info(f"Vacated the {self.snapshot.high_priest.title} slot ({name!r})")
                self.snapshot.high_priest = None
            else:
                del self.snapshot.members(occurrence.divine, occurrence.rank)[occurrence.index]
                logger.info(f"Removed {occurrence.entry!r} from {occurrence.rank} of {occurrence.divine}")
        return True

    def rename(self, old_name: str, new_name: str, source: str = "") -> bool:
        """Replace the display name of every occurrence of ``old_name`` in place, keeping LOTH."""
        if names_match(old_name, new_name):
            self._warn(f"Rename of {old_name!r} to the same name ignored", source)
            return False
        occurrences = self.find_occurrences(old_name)
        if not occurrences:
            self._warn(f"Cannot rename {old_name!r}: no matching member", source)
            return False

        new_identity = normalize(new_name)
        renamed = {(o.divine, o.rank, o.index) for o in occurrences}
        clash = [
            o for o in self.snapshot.occurrences()
            if normalize(o.entry) == new_identity and (o.divine, o.rank, o.index) not in renamed
        ]
        if clash:
            self._warn(f"Cannot rename {old_name!r}: {new_name!r} is already on the roster", source)
            return False

        for occurrence in occurrences:
            entry = ensure_loth_marker(to_markup(new_name), is_loth(occurrence.entry))
            self._replace(occurrence, entry)
            logger.info(f"Renamed {occurrence.entry!r} to {entry!r}")
        return True

    def update_loth(self, name: str, make_loth: bool, source: str = "") -> bool:
        """Set or clear the LOTH marker on every occurrence of ``name``."""
        occurrences = self.find_occurrences(name)
        if not occurrences:
            self._warn(f"Cannot update LOTH for {name!r}: no matching member", source)
            return False

        changed = False
        for occurrence in occurrences:
            if is_loth(occurrence.entry) == make_loth:
                continue
            self._replace(occurrence, ensure_loth_marker(occurrence.entry, make_loth))
            logger.info(f"Set LOTH={make_loth} for {occurrence.entry!r}")
            changed = True
        if not changed:
            logger.debug(f"LOTH for {name!r} already {make_loth}")
        return changed

    def set_high_priest(self, name: str, title: str, loth: bool, source: str = "") -> bool:
        """Fill the High Priest slot and purge that member from every base-rank list."""
        if title not in HIGH_PRIEST_TITLES:
            self._warn(f"Unknown high priest title {title!r}", source)
            return False

        entry = ensure_loth_marker(to_markup(name), loth)
        identity = normalize(entry)
        if not identity:
            self._warn("Cannot set an empty high priest name", source)
            return False

        changed = False
        current = self.snapshot.high_priest
        if current is None or normalize(current.entry) != identity or current.title != title:
            self.snapshot.high_priest = HighPriestSlot(entry=entry, title=title)
            logger.info(f"{title} is now {name!r}")
            changed = True
        else:
            logger.debug(f"{title} already {name!r}")

        for divine_name, rank_name in self._purge_identity(identity):
            logger.info(f"Removed new {title} {name!r} from {rank_name} of {divine_name}")
            changed = True
        return changed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _replace(self, occurrence: Occurrence, entry: str) -> None:
        if occurrence.is_high_priest:
            self.snapshot.high_priest.entry = entry
        else:
            self.snapshot.members(occurrence.divine, occurrence.rank)[occurrence.index] = entry

    def _purge_identity(self, identity: str, keep: Optional[tuple] = None) -> List[tuple]:
        """Drop ``identity`` from every base-rank list except ``keep``; return where it was."""
        purged: Set[tuple] = set()
        for divine in DIVINES:
            for rank in BASE_RANKS:
                if keep == (divine, rank):
                    continue
                entries = self.snapshot.members(divine, rank)
                kept = [e for e in entries if normalize(e) != identity]
                if len(kept) != len(entries):
                    entries[:] = kept
                    purged.add((divine, rank))
        return sorted(purged)


def apply_batch(
    snapshot: RosterSnapshot,
    instructions: Sequence[Instruction],
) -> List[ApplicationWarning]:
    """
    Apply instructions in order, then sort every base-rank list.

    Args:
        snapshot: Snapshot to mutate in place
        instructions: Parsed instructions; Ignore/Error entries are skipped

    Returns:
        Warnings raised while applying
    """
    editor = RosterEditor(snapshot)
    for instruction in instructions:
        editor.apply(instruction)
    snapshot.sort_lists()
    logger.info(
        f"Applied batch of {len(instructions)} instructions "
        f"({len(editor.warnings)} warnings)"
    )
    return editor.warnings
