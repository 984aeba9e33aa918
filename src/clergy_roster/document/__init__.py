"""
Roster document handling: node arena, table detection and synchronization.
"""

from .arena import DocumentArena, Node, NodeView
from .layout import describe_mismatch, is_roster_table, locate_roster_cells
from .synchronizer import (
    DocumentLayout,
    format_block,
    parse_document,
    read_layout,
    regenerate_document,
    split_member_lines,
)

__all__ = [
    "DocumentArena",
    "Node",
    "NodeView",
    "describe_mismatch",
    "is_roster_table",
    "locate_roster_cells",
    "DocumentLayout",
    "format_block",
    "parse_document",
    "read_layout",
    "regenerate_document",
    "split_member_lines",
]
