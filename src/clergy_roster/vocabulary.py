# -*- coding: utf-8 -*-
"""
Fixed roster vocabulary.

Everything here is compiled in on purpose: the roster post has one layout and one
set of Divines, and chat instructions are resolved against these lists only.
"""

from typing import Dict, Tuple


DIVINES: Tuple[str, ...] = (
    "Akatosh", "Arkay", "Dibella", "Julianos",
    "Kynareth", "Mara", "Stendarr", "Zenithar",
)

# Ranks stored per Divine, in the order their headers appear inside a cell
BASE_RANKS: Tuple[str, ...] = ("Priest", "Curate", "Prior", "Acolyte")

PRIEST_RANK = "Priest"
PRIESTESS_RANK = "Priestess"
CURATE_RANK = "Curate"

HIGH_PRIEST_TITLE = "High Priest"
HIGH_PRIESTESS_TITLE = "High Priestess"
HIGH_PRIEST_TITLES: Tuple[str, ...] = (HIGH_PRIEST_TITLE, HIGH_PRIESTESS_TITLE)

# Order matters for fuzzy ties: the first candidate at the best distance wins
KNOWN_RANKS: Tuple[str, ...] = (
    PRIEST_RANK, PRIESTESS_RANK, CURATE_RANK, "Prior", "Acolyte",
    HIGH_PRIESTESS_TITLE, HIGH_PRIEST_TITLE,
)

# Collapses rank aliases onto the single base rank they are stored under
RANK_ALIASES: Dict[str, str] = {
    PRIESTESS_RANK: PRIEST_RANK,
}

REMOVE_SYNONYMS: Tuple[str, ...] = (
    "remove", "delete", "purge", "clear", "expunge", "rm", "rem",
)

# Compared case-insensitively against a trimmed member line
PLACEHOLDER_TOKENS: Tuple[str, ...] = (
    "vacant", "-", "—", "–", "&mdash;", "&#8212;", "â€”",
)
VACANT_PLACEHOLDER = "Vacant"

# LOTH encodings accepted on input; all of them collapse to LOTH_CANONICAL on output
LOTH_ENCODINGS: Tuple[str, ...] = ("(LOTH)", "&#42;", "&#x2a;", "&ast;", "*")
LOTH_CANONICAL = " &#42;"

# Vocabulary lookups (ranks, divines) tolerate more typos than name lookups
VOCABULARY_MAX_DISTANCE = 3
OCCURRENCE_MAX_DISTANCE = 2
# Loose rank words picked out of free text must be closer than a full vocabulary match
RANK_WORD_MAX_DISTANCE = 2


def canonical_divine(value: str) -> str:
    """Return the compiled-in spelling of a Divine, or '' if it is not one."""
    lowered = (value or "").strip().lower()
    for divine in DIVINES:
        if divine.lower() == lowered:
            return divine
    return ""


def canonical_base_rank(value: str) -> str:
    """Return the base rank a rank word is stored under, or '' for non-base ranks."""
    lowered = (value or "").strip().lower()
    for rank in BASE_RANKS + tuple(RANK_ALIASES):
        if rank.lower() == lowered:
            return RANK_ALIASES.get(rank, rank)
    return ""
