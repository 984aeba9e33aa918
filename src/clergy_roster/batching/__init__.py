"""
Batching of roster chat messages.

Groups a cycle's chat messages into one roster update.
"""

from .batch_manager import (
    BatchConfig,
    BatchManager,
    BatchReport,
    LineOutcome,
    LineStatus,
    MessageStatus,
    MessageSummary,
    process_messages,
)

__all__ = [
    "BatchConfig",
    "BatchManager",
    "BatchReport",
    "LineOutcome",
    "LineStatus",
    "MessageStatus",
    "MessageSummary",
    "process_messages",
]
