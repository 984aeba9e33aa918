"""
Clergy roster sync.

Parses roster chat instructions and applies them to the roster HTML document,
rewriting only the parts of the document that change.
"""

from .batching import BatchConfig, BatchManager, BatchReport, process_messages
from .document import parse_document, regenerate_document
from .errors import ApplicationWarning, ConfigError, RosterSyncError, StructureError
from .parsing import Instruction, InstructionParser, parse_instruction
from .roster import RosterEditor, RosterSnapshot, apply_batch

__version__ = "0.1.0"

__all__ = [
    "BatchConfig",
    "BatchManager",
    "BatchReport",
    "process_messages",
    "parse_document",
    "regenerate_document",
    "ApplicationWarning",
    "ConfigError",
    "RosterSyncError",
    "StructureError",
    "Instruction",
    "InstructionParser",
    "parse_instruction",
    "RosterEditor",
    "RosterSnapshot",
    "apply_batch",
]
