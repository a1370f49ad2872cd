"""
Per-set price ledger files.

Each ledger is a headerless CSV with one row per card in a fixed 9-column
layout consumed by the downstream price importer:

    item code, name, <blank>, 0, 0.0, 0, 0, 0, price

Only the item code, name, and price carry data. The placeholder columns
must stay byte-for-byte constant.
"""

import csv
import logging
from pathlib import Path

from pricekeeper.models.card import Card
from pricekeeper.models.failure import FailureKind

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = 9
# Columns 2-7 are fixed placeholders
PLACEHOLDER_COLUMNS = ",,0,0.0,0,0,0,"


def escape_csv_field(value: str) -> str:
    """
    Escape a value for a delimited row.

    Embedded quotes are doubled; the field is wrapped in quotes if it
    contains a comma or a quote.
    """
    if '"' in value:
        value = value.replace('"', '""')
    if "," in value or '"' in value:
        value = f'"{value}"'
    return value


def format_ledger_row(card: Card) -> str:
    """Format one ledger row (without line terminator)."""
    return f"{card.item_code},{escape_csv_field(card.name)}{PLACEHOLDER_COLUMNS}{card.price}"


def load_ledger(path: Path) -> list[Card]:
    """
    Load a set's ledger.

    Args:
        path: Ledger CSV file

    Returns:
        Cards in file order. Empty if the file does not exist.
        Malformed rows are skipped with a warning.
    """
    cards: list[Card] = []

    if not path.exists():
        logger.info("Ledger file not found: %s", path)
        return cards

    logger.info("Reading ledger file: %s", path)

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        for row in reader:
            if not row:
                continue

            if len(row) < LEDGER_COLUMNS:
                logger.warning(
                    "Skipping malformed line %d in %s: Not enough fields",
                    reader.line_num,
                    path.name,
                    extra={"failure_kind": FailureKind.MALFORMED_ROW},
                )
                continue

            full_code = row[0].strip()
            code_parts = full_code.split(" ")
            if len(code_parts) < 2:
                logger.warning(
                    "Skipping invalid card code on line %d: %s",
                    reader.line_num,
                    full_code,
                    extra={"failure_kind": FailureKind.MALFORMED_ROW},
                )
                continue

            set_code, collector_raw = code_parts[0], code_parts[1]
            cards.append(
                Card(
                    name=row[1],
                    collector_code=collector_raw.rstrip("F"),
                    price=row[8].strip(),
                    is_foil=collector_raw.endswith("F"),
                    set_code=set_code,
                )
            )

    logger.info("Loaded %d cards from %s", len(cards), path)
    return cards


def save_ledger(cards: list[Card], path: Path) -> None:
    """
    Write a set's ledger, replacing any existing file.

    Args:
        cards: Cards to write, in order
        path: Ledger CSV file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing ledger: %s", path)

    with open(path, "w", encoding="utf-8", newline="") as f:
        for card in cards:
            f.write(format_ledger_row(card) + "\n")

    logger.info("Saved %d cards to %s", len(cards), path)


def truncate_file(path: Path) -> None:
    """Create or empty a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")


def append_to_combined(source: Path, combined: Path) -> int:
    """
    Append a ledger file's lines verbatim to the combined change log.

    Args:
        source: Ledger file just written
        combined: Run-wide combined log

    Returns:
        Number of lines appended (0 if the source does not exist)
    """
    if not source.exists():
        return 0

    lines = source.read_text(encoding="utf-8").splitlines()
    with open(combined, "a", encoding="utf-8", newline="") as f:
        for line in lines:
            f.write(line + "\n")

    logger.info("Appended %d lines from %s to combined CSV", len(lines), source.name)
    return len(lines)
