"""
Merge freshly scraped cards into an existing ledger.

Cards are matched on (name, collector code, foil). The key does not
include the set code, so both sides must belong to a single set.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pricekeeper.models.card import Card
from pricekeeper.models.failure import LedgerScopeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Counts from a reconciliation pass."""

    updated: int
    added: int


def _check_single_set(cards: Iterable[Card]) -> None:
    set_codes = {card.set_code for card in cards}
    if len(set_codes) > 1:
        raise LedgerScopeError(
            "Cannot reconcile cards from more than one set",
            detail=", ".join(sorted(set_codes)),
        )


def reconcile(existing: list[Card], fetched: list[Card]) -> ReconcileResult:
    """
    Update prices of matching cards and append new ones, in place.

    Existing entries with no fetched counterpart are left untouched.

    Args:
        existing: Ledger entries, mutated in place
        fetched: Cards scraped for the same set

    Returns:
        ReconcileResult with updated and added counts

    Raises:
        LedgerScopeError: If the cards span more than one set code
    """
    _check_single_set([*existing, *fetched])

    updated = 0
    added = 0
    for card in fetched:
        match = next((c for c in existing if c.key == card.key), None)
        if match is not None:
            match.price = card.price
            updated += 1
        else:
            existing.append(card)
            added += 1

    logger.info("Updated %d prices. Added %d new cards.", updated, added)
    return ReconcileResult(updated=updated, added=added)
