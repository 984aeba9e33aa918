"""
Roster table detection.

``is_roster_table`` is a pure predicate over any object with the small NodeView
surface (``descendants``, ``element_children``, ``get``), so it can be tested without
building a document.
"""

import logging
from typing import List, Optional

from ..errors import StructureError
from ..vocabulary import DIVINES
from .arena import DocumentArena

logger = logging.getLogger(__name__)

ROSTER_TABLE_COUNT = 2
CELLS_PER_TABLE = 4
DATA_ROW_VALIGN = "top"


def _data_rows(view) -> list:
    return [
        row for row in view.descendants("tr")
        if (row.get("valign") or "").strip().lower() == DATA_ROW_VALIGN
    ]


def describe_mismatch(view) -> Optional[str]:
    """Why ``view`` is not a roster table, or None if it is one."""
    rows = view.descendants("tr")
    if len(rows) < 2:
        return f"table has {len(rows)} row(s), expected at least 2"
    data_rows = _data_rows(view)
    if len(data_rows) < 2:
        return f'table has {len(data_rows)} row(s) with valign="top", expected at least 2'
    cells = data_rows[1].element_children("td")
    if len(cells) < CELLS_PER_TABLE:
        return f"data row has {len(cells)} cell(s), expected at least {CELLS_PER_TABLE}"
    return None


def is_roster_table(view) -> bool:
    """At least two rows, and the second valign=top row has at least four cells."""
    return describe_mismatch(view) is None


def data_cells(view) -> list:
    """The first four cells of a roster table's data row."""
    return _data_rows(view)[1].element_children("td")[:CELLS_PER_TABLE]


def locate_roster_cells(arena: DocumentArena) -> List[int]:
    """
    Find the eight Divine cells, in document order.

    Raises:
        StructureError: If fewer than two roster tables are present
    """
    tables = [arena.view(i) for i in arena.descendants(0, "table")]
    matching = [t for t in tables if is_roster_table(t)]

    # A layout table wrapping a roster table also matches by descendants; keep the inner one
    matching_indices = {t.index for t in matching}
    candidates = [
        t for t in matching
        if not any(d.index in matching_indices for d in t.descendants("table"))
    ]

    if len(candidates) < ROSTER_TABLE_COUNT:
        reasons = [f"table #{n + 1}: {describe_mismatch(t)}" for n, t in enumerate(tables)
                   if describe_mismatch(t)]
        detail = "; ".join(reasons) if reasons else "no tables found"
        raise StructureError(
            f"Expected {ROSTER_TABLE_COUNT} roster tables, found {len(candidates)} ({detail})"
        )
    if len(candidates) > ROSTER_TABLE_COUNT:
        logger.warning(
            f"Found {len(candidates)} roster-shaped tables; using the first {ROSTER_TABLE_COUNT}"
        )

    cells = [cell.index for table in candidates[:ROSTER_TABLE_COUNT] for cell in data_cells(table)]
    if len(cells) != len(DIVINES):
        raise StructureError(f"Expected {len(DIVINES)} roster cells, found {len(cells)}")
    logger.debug(f"Located roster cells at nodes {cells}")
    return cells
