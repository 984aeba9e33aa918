"""
Chat instruction parsing.

Turns free-form roster chat lines into typed instructions.
"""

from .instructions import (
    ACTIONABLE,
    Add,
    Error,
    Ignore,
    Instruction,
    InstructionKind,
    Remove,
    Rename,
    SetHighPriest,
    UpdateLoth,
    is_actionable,
)
from .instruction_parser import (
    InstructionParser,
    is_quest_start,
    parse_instruction,
    parse_lines,
    prepare_line,
)

__all__ = [
    "ACTIONABLE",
    "Add",
    "Error",
    "Ignore",
    "Instruction",
    "InstructionKind",
    "Remove",
    "Rename",
    "SetHighPriest",
    "UpdateLoth",
    "is_actionable",
    "InstructionParser",
    "is_quest_start",
    "parse_instruction",
    "parse_lines",
    "prepare_line",
]
