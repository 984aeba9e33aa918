"""
Batch manager for roster chat messages.

Turns a batch of chat messages into one roster update: split messages into lines,
parse each line, apply the actionable instructions to a snapshot of the document and
regenerate it once. Every line gets an Applied / Ignored / Error outcome.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ..document.synchronizer import parse_document, regenerate_document
from ..errors import ApplicationWarning, StructureError
from ..parsing.instruction_parser import InstructionParser
from ..parsing.instructions import Error, Ignore, Instruction, is_actionable
from ..roster.editor import apply_batch

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class LineStatus(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    ERROR = "error"


class MessageStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    IGNORED = "ignored"


@dataclass
class BatchConfig:
    """Configuration for batching."""
    ignore_message_prefix: str = "ignore"


@dataclass
class LineOutcome:
    """What happened to one chat line."""
    message_index: int
    line: str
    status: LineStatus
    reason: str = ""
    instruction: Optional[Instruction] = None


@dataclass
class MessageSummary:
    """Per-message result, for success/failure feedback to the sender."""
    message_index: int
    status: MessageStatus
    reason: str = ""


@dataclass
class BatchReport:
    """Result of one processing cycle."""
    document: str
    changed: bool = False
    lines: List[LineOutcome] = field(default_factory=list)
    messages: List[MessageSummary] = field(default_factory=list)
    warnings: List[ApplicationWarning] = field(default_factory=list)
    structure_error: Optional[str] = None

    @property
    def instructions(self) -> List[Instruction]:
        return [o.instruction for o in self.lines if o.status == LineStatus.APPLIED]

    @property
    def has_errors(self) -> bool:
        return any(o.status == LineStatus.ERROR for o in self.lines)

    def count(self, status: LineStatus) -> int:
        return sum(1 for o in self.lines if o.status == status)


class BatchManager:
    """
    Runs one parse -> apply -> regenerate cycle for a batch of messages.

    Holds no state between calls; the same document and messages always give the
    same report.
    """

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        parser: Optional[InstructionParser] = None,
    ):
        """
        Initialize batch manager.

        Args:
            config: Batch configuration (uses defaults if None)
            parser: Instruction parser (uses a fresh one if None)
        """
        self.config = config or BatchConfig()
        self.parser = parser or InstructionParser()

    def split_message(self, message: str) -> List[str]:
        """Non-blank lines of a chat message."""
        return [line for line in _LINE_BREAK_RE.split(message or "") if line.strip()]

    def is_ignored_message(self, lines: Sequence[str]) -> bool:
        prefix = self.config.ignore_message_prefix.strip().lower()
        return bool(prefix) and bool(lines) and lines[0].strip().lower().startswith(prefix)

    def classify(self, messages: Sequence[str]) -> List[LineOutcome]:
        """Parse every line of every message into an outcome."""
        outcomes = []
        for message_index, message in enumerate(messages):
            lines = self.split_message(message)
            if self.is_ignored_message(lines):
                logger.info(f"Message {message_index} marked ignore; skipping {len(lines)} line(s)")
                outcomes.extend(
                    LineOutcome(message_index, line, LineStatus.IGNORED, "message marked ignore")
                    for line in lines
                )
                continue

            for line in lines:
                instruction = self.parser.parse(line)
                if isinstance(instruction, Error):
                    status, reason = LineStatus.ERROR, instruction.reason
                elif isinstance(instruction, Ignore):
                    status, reason = LineStatus.IGNORED, instruction.reason
                else:
                    status, reason = LineStatus.APPLIED, ""
                outcomes.append(LineOutcome(message_index, line, status, reason, instruction))
        return outcomes

    def summarize(self, message_count: int, outcomes: Sequence[LineOutcome]) -> List[MessageSummary]:
        """Success if a message had an actionable line and no errors; failure on any error."""
        summaries = []
        for message_index in range(message_count):
            mine = [o for o in outcomes if o.message_index == message_index]
            errors = [o for o in mine if o.status == LineStatus.ERROR]
            if errors:
                summaries.append(MessageSummary(message_index, MessageStatus.FAILURE, errors[0].reason))
            elif any(o.status == LineStatus.APPLIED for o in mine):
                summaries.append(MessageSummary(message_index, MessageStatus.SUCCESS))
            else:
                summaries.append(MessageSummary(message_index, MessageStatus.IGNORED))
        return summaries

    def process(self, document_text: str, messages: Sequence[str]) -> BatchReport:
        """
        Apply a batch of chat messages to a roster document.

        Args:
            document_text: Current HTML of the roster document
            messages: Chat messages in arrival order

        Returns:
            BatchReport with the (possibly unchanged) document and per-line outcomes
        """
        outcomes = self.classify(messages)
        report = BatchReport(
            document=document_text,
            lines=outcomes,
            messages=self.summarize(len(messages), outcomes),
        )

        instructions = [o.instruction for o in outcomes if o.instruction is not None and is_actionable(o.instruction)]
        logger.info(
            f"Batch: {len(messages)} message(s), {len(outcomes)} line(s), "
            f"{len(instructions)} actionable, {report.count(LineStatus.ERROR)} error(s)"
        )
        if not instructions:
            logger.info("No actionable instructions; document left untouched")
            return report

        try:
            snapshot = parse_document(document_text)
            report.warnings = apply_batch(snapshot, instructions)
            updated = regenerate_document(document_text, snapshot)
        except StructureError as e:
            logger.error(f"Roster document has an unexpected structure: {e}")
            report.structure_error = str(e)
            return report

        report.document = updated
        report.changed = updated != document_text
        return report


def process_messages(
    document_text: str,
    messages: Sequence[str],
    config: Optional[BatchConfig] = None,
) -> BatchReport:
    """
    Convenience function to process one batch.

    Args:
        document_text: Current HTML of the roster document
        messages: Chat messages in arrival order
        config: Batch configuration

    Returns:
        BatchReport
    """
    return BatchManager(config).process(document_text, messages)
