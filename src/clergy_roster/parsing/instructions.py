"""
Instruction variants produced by the instruction parser.

One frozen dataclass per instruction kind, each carrying only the fields that kind
needs plus the raw chat line it came from.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class InstructionKind(Enum):
    """Which roster edit a chat line asks for."""
    ADD = "add"
    REMOVE = "remove"
    RENAME = "rename"
    SET_HIGH_PRIEST = "set_high_priest"
    UPDATE_LOTH = "update_loth"
    IGNORE = "ignore"
    ERROR = "error"


@dataclass(frozen=True)
class Add:
    """Add a member to a base-rank list, moving them if already listed."""
    name: str
    divine: str
    rank: str
    loth: bool
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.ADD


@dataclass(frozen=True)
class Remove:
    name: str
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.REMOVE


@dataclass(frozen=True)
class Rename:
    old_name: str
    new_name: str
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.RENAME


@dataclass(frozen=True)
class SetHighPriest:
    """Fill the roster-wide High Priest(ess) slot."""
    name: str
    title: str
    loth: bool
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.SET_HIGH_PRIEST


@dataclass(frozen=True)
class UpdateLoth:
    name: str
    make_loth: bool
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.UPDATE_LOTH


@dataclass(frozen=True)
class Ignore:
    reason: str
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.IGNORE


@dataclass(frozen=True)
class Error:
    """A line that could not be turned into an instruction."""
    reason: str
    source: str
    kind: ClassVar[InstructionKind] = InstructionKind.ERROR


Instruction = Union[Add, Remove, Rename, SetHighPriest, UpdateLoth, Ignore, Error]

ACTIONABLE = (Add, Remove, Rename, SetHighPriest, UpdateLoth)


def is_actionable(instruction: Instruction) -> bool:
    """True for instructions that edit the roster (not Ignore/Error)."""
    return isinstance(instruction, ACTIONABLE)
