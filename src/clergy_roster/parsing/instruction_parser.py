# -*- coding: utf-8 -*-
"""
Chat line -> Instruction.

A line is tried against ordered pattern families and the first family that matches
decides the result:

1. blank / comment / quest-start lines           -> Ignore
2. "<old> > <new>"                                -> Rename
3. "<name> no longer LOTH" / "<name> is now LOTH" -> UpdateLoth
4. "<remove-synonym> <name>"                      -> Remove
5. trailing "(LOTH)" / "LOTH" / "*" / "&#42;" is split off into a flag for the families below
6. "High Priest[ess] - <name>" / "HP <name>"      -> SetHighPriest
7. "<name> - <Rank> of <Divine>" and variants     -> Add
8. anything else                                  -> Error

Every call returns exactly one instruction and never raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..names import edit_distance, fuzzy_resolve, is_loth, names_match, strip_loth_markers
from ..vocabulary import (
    BASE_RANKS,
    CURATE_RANK,
    DIVINES,
    HIGH_PRIEST_TITLE,
    HIGH_PRIESTESS_TITLE,
    KNOWN_RANKS,
    RANK_ALIASES,
    RANK_WORD_MAX_DISTANCE,
    REMOVE_SYNONYMS,
    VOCABULARY_MAX_DISTANCE,
)
from .instructions import (
    Add,
    Error,
    Ignore,
    Instruction,
    Remove,
    Rename,
    SetHighPriest,
    UpdateLoth,
)

logger = logging.getLogger(__name__)


def _alternation(terms) -> str:
    # Longest first so "High Priestess" wins over "High Priest" and "Priest"
    ordered = sorted(terms, key=len, reverse=True)
    return "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in ordered)


# --------------------------- Line-level patterns ---------------------------

_SEPARATOR_RE = re.compile(r"[,:]+| [-–—]+ ")
_MENTION_RE = re.compile(r"<[@#][!&]?\d+>|@\s*\S+")
_WS_RE = re.compile(r"\s+")

_QUEST_START_RE = re.compile(
    r"^\s*(?:Beginning|Starting|Began|Started)\s+(?:the\s+)?Curate\s+Quest\b",
    re.IGNORECASE,
)
_QUEST_FINISH_RE = re.compile(
    r"\b(?:Completing|Finishing|Finished|Completed)\s+(?:the\s+)?Curate\s+Quest\b"
    r"(?:\s+for\s+(?P<divine>[A-Za-z]+))?",
    re.IGNORECASE,
)

_RENAME_RE = re.compile(r"^(?P<old>.+?)\s+(?:->|=>|→|>)\s+(?P<new>.+)$")

_LOTH_OFF_RE = re.compile(
    r"^(?P<name>.+?)\s+(?:is\s+)?no\s+longer\s+(?:a\s+)?LOTH\.?\s*$", re.IGNORECASE
)
_LOTH_ON_RE = re.compile(
    r"^(?P<name>.+?)\s+(?:is\s+)?now\s+(?:a\s+)?LOTH\.?\s*$", re.IGNORECASE
)

_LOTH_SUFFIX_RE = re.compile(
    r"(?:\s-)?\s*(?:\(\s*LOTH\s*\)|\bLOTH|&#0*42;|&#[xX]0*2[aA];|&ast;|\*)\s*$", re.IGNORECASE
)

_HIGH_PRIEST_LEADING_RE = re.compile(
    r"^(?P<phrase>High\s+Priest(?:ess)?|HP)\s*[:\s-]+\s*(?P<name>(?!of\s).+)$",
    re.IGNORECASE,
)
_HIGH_PRIEST_TRAILING_RE = re.compile(
    r"^(?P<name>.+?)\s*[:\s-]+\s*(?P<phrase>High\s+Priest(?:ess)?)$",
    re.IGNORECASE,
)

# --------------------------- Add/move patterns ---------------------------

_RANK_OF_DIVINE_RE = re.compile(
    rf"\b(?P<rank>{_alternation(KNOWN_RANKS)})\s+of\s+(?P<divine>{_alternation(DIVINES)})\b",
    re.IGNORECASE,
)
# Typo-tolerant form: up to two words before "of", one word after it
_LOOSE_RANK_OF_DIVINE_RE = re.compile(
    r"\b(?P<first>[A-Za-z]+)(?:\s+(?P<second>[A-Za-z]+))?\s+of\s+(?P<divine>[A-Za-z]+)\b",
    re.IGNORECASE,
)
_OF_DIVINE_RE = re.compile(r"\bof\s+(?P<divine>[A-Za-z]+)\b", re.IGNORECASE)
_PROMOTED_RE = re.compile(
    r"\bPromoted\s+to\s+Curate\s+of\s+(?P<divine>\S+)", re.IGNORECASE
)

_NAME_TRIM = " -–—:;,|"


@dataclass
class AddMoveParse:
    """Partial result of the add/move family."""
    name: str = ""
    rank: Optional[str] = None
    divine: Optional[str] = None
    loth: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.rank and self.divine)


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _clean_name(text: str) -> str:
    return _collapse(text).strip(_NAME_TRIM).strip()


def _cut(text: str, start: int, end: int) -> str:
    return _collapse(text[:start] + " " + text[end:])


def prepare_line(line: str) -> str:
    """Normalize separators, collapse whitespace and drop chat mentions."""
    candidate = _SEPARATOR_RE.sub(" - ", line.strip())
    candidate = _collapse(candidate)
    return _collapse(_MENTION_RE.sub("", candidate))


def is_quest_start(line: str) -> bool:
    return _QUEST_START_RE.search(line or "") is not None


class InstructionParser:
    """
    Deterministic, pattern-based classifier for roster chat lines.

    Stateless: a single instance can parse any number of lines.
    """

    def parse(self, line: Optional[str]) -> Instruction:
        """
        Classify one raw chat line.

        Args:
            line: Raw line text as typed in chat

        Returns:
            Exactly one Instruction; the raw line is kept as ``source``
        """
        source = line if line is not None else ""
        if not source.strip():
            return Ignore(reason="empty line", source=source)

        stripped = source.strip()
        if stripped.startswith("//") or stripped.startswith("#"):
            return Ignore(reason="comment line", source=source)
        if is_quest_start(stripped):
            return Ignore(reason="quest start line", source=source)

        candidate = prepare_line(stripped)
        if not candidate:
            logger.warning(f"Nothing left after dropping mentions: {source!r}")
            return Error(reason="unrecognized format", source=source)

        for family in (self._parse_rename, self._parse_loth_toggle, self._parse_remove):
            result = family(candidate, source)
            if result is not None:
                return result

        candidate, loth = self._split_loth_suffix(candidate)

        result = self._parse_high_priest(candidate, loth, source)
        if result is not None:
            return result

        return self._parse_add_move(candidate, loth, source)

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def _parse_rename(self, candidate: str, source: str) -> Optional[Instruction]:
        m = _RENAME_RE.match(candidate)
        if not m:
            return None
        old_name = _clean_name(m.group("old"))
        new_name = _clean_name(m.group("new"))
        if not old_name or not new_name or names_match(old_name, new_name):
            logger.warning(f"Invalid rename or identical names: {source!r}")
            return Error(reason="invalid rename: names are empty or the same", source=source)
        logger.debug(f"Parsed RENAME: {old_name!r} -> {new_name!r}")
        return Rename(old_name=old_name, new_name=new_name, source=source)

    def _parse_loth_toggle(self, candidate: str, source: str) -> Optional[Instruction]:
        for pattern, make_loth in ((_LOTH_OFF_RE, False), (_LOTH_ON_RE, True)):
            m = pattern.match(candidate)
            if m:
                name = _clean_name(m.group("name"))
                if name:
                    logger.debug(f"Parsed LOTH update: {name!r} -> {make_loth}")
                    return UpdateLoth(name=name, make_loth=make_loth, source=source)
        return None

    def _parse_remove(self, candidate: str, source: str) -> Optional[Instruction]:
        tokens = candidate.split()
        if not tokens or tokens[0].lower() not in REMOVE_SYNONYMS:
            return None
        name = _clean_name(" ".join(tokens[1:]))
        if not name:
            logger.warning(f"Remove command without a name: {source!r}")
            return Error(reason="remove command without name", source=source)
        logger.debug(f"Parsed REMOVE: {name!r}")
        return Remove(name=name, source=source)

    @staticmethod
    def _split_loth_suffix(candidate: str) -> Tuple[str, bool]:
        m = _LOTH_SUFFIX_RE.search(candidate)
        if not m:
            return candidate, False
        remaining = candidate[:m.start()].strip()
        logger.debug(f"Detected LOTH suffix, remaining line: {remaining!r}")
        return remaining, True

    def _parse_high_priest(
        self, candidate: str, loth: bool, source: str
    ) -> Optional[Instruction]:
        m = _HIGH_PRIEST_LEADING_RE.match(candidate) or _HIGH_PRIEST_TRAILING_RE.match(candidate)
        if not m:
            return None
        name = _clean_name(m.group("name"))
        if not name:
            return None
        phrase = m.group("phrase")
        title = HIGH_PRIESTESS_TITLE if "priestess" in phrase.lower() else HIGH_PRIEST_TITLE
        logger.debug(f"Parsed SET HIGH PRIEST: {name!r} ({title}), LOTH={loth}")
        return SetHighPriest(name=name, title=title, loth=loth, source=source)

    def _parse_add_move(self, candidate: str, loth: bool, source: str) -> Instruction:
        parsed = self.resolve_add_move(candidate)
        loth = loth or parsed.loth

        if parsed.is_complete:
            if parsed.rank not in BASE_RANKS:
                logger.warning(
                    f"Line targets rank {parsed.rank!r}, which is not a table rank: {source!r}"
                )
                return Error(
                    reason=f"cannot add/move to non-base rank {parsed.rank}", source=source
                )
            logger.debug(
                f"Parsed ADD/MOVE: name={parsed.name!r}, rank={parsed.rank}, "
                f"divine={parsed.divine}, LOTH={loth}"
            )
            return Add(
                name=parsed.name,
                divine=parsed.divine,
                rank=parsed.rank,
                loth=loth,
                source=source,
            )

        if parsed.name and (parsed.rank or parsed.divine):
            logger.warning(
                f"Partially parsed line: name={parsed.name!r}, rank={parsed.rank or 'N/A'}, "
                f"divine={parsed.divine or 'N/A'}"
            )
            return Error(reason="missing rank or divine", source=source)
        if parsed.name:
            logger.warning(f"Line parsed down to only a name: {parsed.name!r}")
            return Error(reason="ambiguous instruction, name only", source=source)

        logger.warning(f"Could not parse line into a known instruction: {source!r}")
        return Error(reason="unrecognized format", source=source)

    # ------------------------------------------------------------------
    # Add/move resolution
    # ------------------------------------------------------------------

    def resolve_add_move(self, text: str) -> AddMoveParse:
        """
        Pull (name, rank, divine) out of an add/move line.

        Priority: "Promoted to Curate of X" overrides everything; otherwise an explicit
        "<Rank> of <Divine>" phrase; otherwise "of <Divine>" plus a loose rank word.
        A quest-completion phrase supplies a divine hint and defaults the rank to Curate.
        """
        remaining = text
        finishing_quest = False
        divine_hint: Optional[str] = None

        quest = _QUEST_FINISH_RE.search(remaining)
        if quest:
            finishing_quest = True
            if quest.group("divine"):
                divine_hint = fuzzy_resolve(quest.group("divine"), DIVINES, VOCABULARY_MAX_DISTANCE)
            remaining = _cut(remaining, quest.start(), quest.end())

        result = AddMoveParse()

        promoted = _PROMOTED_RE.search(remaining)
        forced = (
            fuzzy_resolve(promoted.group("divine").strip(".,;!"), DIVINES, VOCABULARY_MAX_DISTANCE)
            if promoted else None
        )
        if forced:
            logger.debug(f"'Promoted to Curate' overrides rank/divine: Curate of {forced}")
            result.rank, result.divine = CURATE_RANK, forced
            remaining = remaining[:promoted.start()]
        else:
            remaining = self._resolve_rank_and_divine(remaining, result)

        if result.divine is None and divine_hint:
            result.divine = divine_hint
        if finishing_quest and result.divine and not result.rank:
            logger.debug(f"Quest completion context: defaulting to Curate of {result.divine}")
            result.rank = CURATE_RANK
        if result.rank:
            result.rank = RANK_ALIASES.get(result.rank, result.rank)

        if is_loth(remaining):
            # Marker written inside the name, e.g. "Cid * - Prior of Arkay"
            result.loth = True
            remaining = strip_loth_markers(remaining)
        result.name = _clean_name(remaining)
        return result

    def _resolve_rank_and_divine(self, text: str, result: AddMoveParse) -> str:
        found = self._find_rank_of_divine(text)
        if found is not None:
            start, end, result.rank, result.divine = found
            return _cut(text, start, end)

        for m in _OF_DIVINE_RE.finditer(text):
            divine = fuzzy_resolve(m.group("divine"), DIVINES, VOCABULARY_MAX_DISTANCE)
            if divine:
                result.divine = divine
                text = _cut(text, m.start(), m.end())
                break
        else:
            return text

        word, rank = self._find_rank_word(text)
        if rank:
            result.rank = rank
            text = _collapse(
                re.sub(rf"\b{re.escape(word)}\b", " ", text, count=1, flags=re.IGNORECASE)
            )
        return text

    @staticmethod
    def _find_rank_of_divine(text: str) -> Optional[Tuple[int, int, str, str]]:
        m = _RANK_OF_DIVINE_RE.search(text)
        if m:
            rank = fuzzy_resolve(_collapse(m.group("rank")), KNOWN_RANKS, VOCABULARY_MAX_DISTANCE)
            divine = fuzzy_resolve(m.group("divine"), DIVINES, VOCABULARY_MAX_DISTANCE)
            return m.start(), m.end(), rank, divine

        for m in _LOOSE_RANK_OF_DIVINE_RE.finditer(text):
            divine = fuzzy_resolve(m.group("divine"), DIVINES, VOCABULARY_MAX_DISTANCE)
            if not divine:
                continue
            if m.group("second"):
                attempts = [
                    (m.start("first"), f"{m.group('first')} {m.group('second')}"),
                    (m.start("second"), m.group("second")),
                ]
            else:
                attempts = [(m.start("first"), m.group("first"))]
            for start, words in attempts:
                rank = fuzzy_resolve(words, KNOWN_RANKS, VOCABULARY_MAX_DISTANCE)
                if rank:
                    return start, m.end(), rank, divine
        return None

    @staticmethod
    def _find_rank_word(text: str) -> Tuple[str, Optional[str]]:
        best_word, best_rank = "", None
        best_dist = RANK_WORD_MAX_DISTANCE + 1
        words: List[str] = [w for w in re.split(r"[\s\-]+", text) if w]
        for word in words:
            rank = fuzzy_resolve(word, KNOWN_RANKS, RANK_WORD_MAX_DISTANCE)
            if rank is None:
                continue
            dist = edit_distance(word, rank)
            if dist < best_dist:
                best_word, best_rank, best_dist = word, rank, dist
        return best_word, best_rank


_default_parser = InstructionParser()


def parse_instruction(line: Optional[str]) -> Instruction:
    """Parse one line with the shared stateless parser."""
    return _default_parser.parse(line)


def parse_lines(lines) -> List[Instruction]:
    """Parse each line independently, preserving order."""
    return [_default_parser.parse(line) for line in lines]
