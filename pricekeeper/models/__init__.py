from pricekeeper.models.card import UNKNOWN, Card
from pricekeeper.models.failure import (
    FailureKind,
    FetchError,
    FetchExhaustedError,
    LedgerScopeError,
    RateLimitedError,
    ScrapeError,
)

__all__ = [
    "Card",
    "FailureKind",
    "FetchError",
    "FetchExhaustedError",
    "LedgerScopeError",
    "RateLimitedError",
    "ScrapeError",
    "UNKNOWN",
]
