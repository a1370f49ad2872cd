"""
Durable resume marker for multi-set runs.

Holds at most one set name: the set currently (or last) in flight. It is
written before any work on a set starts and cleared only once that set's
ledger is saved and appended to the combined log.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class Checkpoint:
    """Single-slot checkpoint stored as a plain text file."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> str | None:
        """Return the checkpointed set name, or None if no run is in progress."""
        if not self.path.exists():
            return None
        value = self.path.read_text(encoding="utf-8").strip()
        return value or None

    def write(self, set_name: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(set_name, encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
