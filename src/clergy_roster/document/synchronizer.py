# -*- coding: utf-8 -*-
"""
Roster document <-> RosterSnapshot.

``parse_document`` reads the eight Divine cells and the "Current High Priest" sentence
into a snapshot. ``regenerate_document`` writes a snapshot back, rewriting only the
member runs and the sentence fragments whose content changed; every other byte of the
document is copied through unchanged.

Cell convention::

    <span><u>Priest</u></span>
    Name One
    Name Two &#42;<br>
    <span><u>Curate</u></span>
    ...

Member lines are separated by line breaks (newlines or <br>). Each rank header
(<span> with a <u> child) owns the sibling content up to the next header.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..names import canonicalize_entry, display_name
from ..roster.snapshot import HighPriestSlot, RosterSnapshot
from ..vocabulary import (
    BASE_RANKS,
    DIVINES,
    HIGH_PRIEST_TITLE,
    HIGH_PRIESTESS_TITLE,
    PLACEHOLDER_TOKENS,
    PRIEST_RANK,
    VACANT_PLACEHOLDER,
    canonical_base_rank,
)
from .arena import ROOT, DocumentArena
from .layout import locate_roster_cells

logger = logging.getLogger(__name__)


_BR_RE = re.compile(r"<br\s*/?\s*>", re.IGNORECASE)
_LINE_SPLIT_RE = re.compile(r"<br\s*/?\s*>|\r\n|\r|\n", re.IGNORECASE)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")

_HIGH_PRIEST_SENTENCE_RE = re.compile(
    r"^(?P<prefix>[ \t]*#?[ \t]*Current\s+)(?P<title>High\s+Priest(?:ess)?)"
    r"(?P<sep>[ \t]*[:|\-]?[ \t]*)(?P<name>.*?)(?P<trail>[ \t]*)$",
    re.IGNORECASE | re.MULTILINE,
)
_SENTENCE_PARENTS = frozenset({"p", "div", "h1", "h2", "h3", "h4", "body"})

DEFAULT_BR = "<br>"


@dataclass
class RankRun:
    """One rank header and the member lines that follow it."""
    header: int
    label: str
    rank: str  # base rank this header feeds, '' for other labels
    nodes: List[int]
    lines: List[str]

    @property
    def entries(self) -> List[str]:
        return [canonicalize_entry(line) for line in self.lines]


@dataclass
class CellLayout:
    divine: str
    cell: int
    br: str
    runs: List[RankRun] = field(default_factory=list)


@dataclass
class HighPriestSentence:
    """The "Current High Priest(ess): <name>" text and where its name lives."""
    node: int
    raw: str
    match: "re.Match"
    name_nodes: List[int]
    name_raw: str

    @property
    def title(self) -> str:
        return _canonical_title(self.match.group("title"))


@dataclass
class DocumentLayout:
    arena: DocumentArena
    cells: List[CellLayout]
    high_priest: Optional[HighPriestSentence]


def _canonical_title(text: str) -> str:
    return HIGH_PRIESTESS_TITLE if "priestess" in text.lower() else HIGH_PRIEST_TITLE


def is_placeholder(line: str) -> bool:
    """True for empty lines and the accepted 'vacant' spellings."""
    raw = line.strip().lower()
    plain = html.unescape(_TAG_RE.sub("", line)).strip().lower()
    return not plain or raw in PLACEHOLDER_TOKENS or plain in PLACEHOLDER_TOKENS


def split_member_lines(markup: str) -> List[str]:
    """Member lines of a run's markup, placeholders removed."""
    markup = _COMMENT_RE.sub("", markup)
    lines = (part.strip() for part in _LINE_SPLIT_RE.split(markup))
    return [line for line in lines if line and not is_placeholder(line)]


def format_block(entries: List[str], rank: str, br: str, placeholder: bool = True) -> str:
    """Markup written after a rank header."""
    if entries:
        return "\n" + "\n".join(entries) + br + "\n"
    if rank == PRIEST_RANK and placeholder:
        return f"\n{VACANT_PLACEHOLDER}{br}\n"
    return f"\n{br}\n"


def _cell_br(arena: DocumentArena, cell: int) -> str:
    m = _BR_RE.search(arena.source(cell))
    return m.group(0) if m else DEFAULT_BR


def _read_cell(arena: DocumentArena, divine: str, cell: int) -> CellLayout:
    layout = CellLayout(divine=divine, cell=cell, br=_cell_br(arena, cell))
    headers = arena.find_headers(cell)
    if not headers:
        logger.warning(f"No rank headers found in the {divine} cell")
    for header in headers:
        label = arena.header_label(header)
        nodes = arena.collect_run_after(header, scope=cell)
        markup = "".join(arena.source(i) for i in nodes if arena.nodes[i].kind != "comment")
        layout.runs.append(RankRun(
            header=header,
            label=label,
            rank=canonical_base_rank(label),
            nodes=nodes,
            lines=split_member_lines(markup),
        ))
    return layout


def _find_sentence(arena: DocumentArena) -> Optional[HighPriestSentence]:
    for index in arena.descendants(ROOT):
        node = arena.nodes[index]
        if node.kind != "text":
            continue
        parent = arena.nodes[node.parent]
        if parent.kind != "root" and parent.tag not in _SENTENCE_PARENTS:
            continue
        raw = arena.source(index)
        m = _HIGH_PRIEST_SENTENCE_RE.search(raw)
        if not m:
            continue

        name_nodes: List[int] = []
        name_raw = m.group("name")
        if not name_raw.strip() and not raw[m.end():].strip():
            # Name is in markup after the text node, up to the next line break
            for sibling in arena.following_siblings(index):
                sib = arena.nodes[sibling]
                if sib.kind == "element" and sib.tag == "br":
                    break
                if sib.kind == "text" and "\n" in arena.source(sibling):
                    break
                name_nodes.append(sibling)
            name_raw = "".join(arena.source(i) for i in name_nodes)
        return HighPriestSentence(
            node=index, raw=raw, match=m, name_nodes=name_nodes, name_raw=name_raw.strip(),
        )
    return None


def read_layout(document_text: str) -> DocumentLayout:
    """
    Locate every editable region of a roster document.

    Raises:
        StructureError: If the two roster tables cannot be found
    """
    arena = DocumentArena(document_text)
    cells = [
        _read_cell(arena, divine, cell)
        for divine, cell in zip(DIVINES, locate_roster_cells(arena))
    ]
    sentence = _find_sentence(arena)
    if sentence is None:
        logger.warning("No 'Current High Priest' sentence found in the document")
    return DocumentLayout(arena=arena, cells=cells, high_priest=sentence)


def _slot_from_sentence(sentence: Optional[HighPriestSentence]) -> Optional[HighPriestSlot]:
    if sentence is None or is_placeholder(sentence.name_raw):
        return None
    return HighPriestSlot(entry=canonicalize_entry(sentence.name_raw), title=sentence.title)


def snapshot_from_layout(layout: DocumentLayout) -> RosterSnapshot:
    snapshot = RosterSnapshot()
    for cell in layout.cells:
        for run in cell.runs:
            if not run.rank:
                logger.debug(f"Skipping non-base header {run.label!r} in the {cell.divine} cell")
                continue
            snapshot.members(cell.divine, run.rank).extend(run.entries)
    snapshot.high_priest = _slot_from_sentence(layout.high_priest)
    return snapshot


def parse_document(document_text: str) -> RosterSnapshot:
    """
    Read a roster document into a snapshot.

    Args:
        document_text: Full HTML of the roster post

    Returns:
        RosterSnapshot with every Divine cell and the High Priest slot

    Raises:
        StructureError: If the document does not have the roster table layout
    """
    snapshot = snapshot_from_layout(read_layout(document_text))
    logger.info(
        f"Parsed roster: {snapshot.member_count()} members, "
        f"high priest {display_name(snapshot.high_priest.entry) if snapshot.high_priest else 'vacant'}"
    )
    return snapshot


def _rewrite_cell(arena: DocumentArena, cell: CellLayout, snapshot: RosterSnapshot) -> int:
    written = set()
    rewrites = 0
    for run in cell.runs:
        if not run.rank:
            continue
        duplicate = run.rank in written
        desired = [] if duplicate else snapshot.members(cell.divine, run.rank)
        written.add(run.rank)
        if run.entries == desired:
            continue
        block = format_block(desired, run.rank, cell.br, placeholder=not duplicate)
        arena.splice_run(run.header, run.nodes, block, scope=cell.cell)
        rewrites += 1
        logger.debug(f"Rewrote {run.rank} of {cell.divine}: {len(desired)} member(s)")

    for rank in BASE_RANKS:
        if rank not in written and snapshot.members(cell.divine, rank):
            logger.warning(
                f"{cell.divine} cell has no {rank} header; "
                f"{len(snapshot.members(cell.divine, rank))} member(s) not written"
            )
    return rewrites


def _rewrite_sentence(
    arena: DocumentArena,
    sentence: Optional[HighPriestSentence],
    desired: Optional[HighPriestSlot],
) -> bool:
    if _slot_from_sentence(sentence) == desired:
        return False
    if sentence is None:
        logger.warning("High priest changed but the document has no 'Current High Priest' sentence")
        return False

    m = sentence.match
    title = desired.title if desired else sentence.title
    title_text = m.group("title") if _canonical_title(m.group("title")) == title else title
    name = desired.entry if desired else VACANT_PLACEHOLDER
    raw = sentence.raw

    if sentence.name_nodes:
        new_raw = raw[:m.start("title")] + title_text + raw[m.end("title"):]
        if new_raw != raw:
            arena.replace_markup(sentence.node, new_raw)
        arena.splice_run(sentence.node, sentence.name_nodes, name)
    else:
        sep = m.group("sep")
        if not sep.endswith((" ", "\t")):
            sep += " "
        new_raw = (
            raw[:m.start("title")] + title_text + sep + name + raw[m.end("name"):]
        )
        arena.replace_markup(sentence.node, new_raw)
    logger.debug(f"Rewrote high priest sentence: {title} {name!r}")
    return True


def regenerate_document(document_text: str, snapshot: RosterSnapshot) -> str:
    """
    Write ``snapshot`` into ``document_text``.

    Only runs whose members differ from the snapshot (and the high priest sentence, if
    it differs) are rewritten. A snapshot equal to ``parse_document(document_text)``
    returns the input unchanged.

    Raises:
        StructureError: If the document does not have the roster table layout
    """
    layout = read_layout(document_text)
    arena = layout.arena

    rewrites = sum(_rewrite_cell(arena, cell, snapshot) for cell in layout.cells)
    if _rewrite_sentence(arena, layout.high_priest, snapshot.high_priest):
        rewrites += 1

    if not rewrites:
        logger.info("Document already matches the roster; no changes")
        return document_text
    logger.info(f"Regenerated document: {rewrites} region(s) rewritten")
    return arena.serialize()
