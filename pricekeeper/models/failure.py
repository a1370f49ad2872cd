"""
Failure classification for the price update pipeline.

Two families of failure exist:

- Skip failures (malformed ledger rows, malformed listing items, sets with
  no listings, sets with no code) are logged and absorbed by the loop that
  detected them. They never become exceptions.
- Fatal failures (fetch errors, exhausted rate-limit retries, anything
  unexpected) unwind out of set processing and halt the run. The
  checkpoint is left pointing at the failed set.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Absorbed where detected
    MALFORMED_ROW = "malformed_row"
    MALFORMED_LISTING_ITEM = "malformed_listing_item"
    NO_LISTING_DATA = "no_listing_data"
    UNKNOWN_SET_CODE = "unknown_set_code"

    # Retried
    RATE_LIMITED = "rate_limited"

    # Fatal
    FETCH_FAILED = "fetch_failed"
    FETCH_EXHAUSTED = "fetch_exhausted"
    LEDGER_SCOPE = "ledger_scope"
    UNHANDLED = "unhandled"


class ScrapeError(Exception):
    """
    Base class for exceptions raised by the price update pipeline.

    Subclasses fix `kind`; callers switch on it instead of the type when
    they only need the classification.
    """

    kind: FailureKind = FailureKind.UNHANDLED

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class FetchError(ScrapeError):
    """Raised when a storefront request fails with a non-success status."""

    kind = FailureKind.FETCH_FAILED

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        detail: str | None = None,
        message: str | None = None,
    ):
        self.url = url
        self.status_code = status_code
        if message is None:
            message = f"Request to {url} failed"
            if status_code is not None:
                message += f" with HTTP {status_code}"
        super().__init__(message, detail)


class RateLimitedError(FetchError):
    """Raised when the storefront answers HTTP 429. Retried with backoff."""

    kind = FailureKind.RATE_LIMITED

    def __init__(self, url: str):
        super().__init__(url, status_code=429)


class FetchExhaustedError(FetchError):
    """Raised when every retry attempt was rate limited."""

    kind = FailureKind.FETCH_EXHAUSTED

    def __init__(self, url: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            url,
            status_code=429,
            detail=f"rate limited on all {attempts} attempts",
            message=f"Exceeded retry attempts due to rate limiting: {url}",
        )


class LedgerScopeError(ScrapeError):
    """Raised when cards from different sets are merged into one ledger."""

    kind = FailureKind.LEDGER_SCOPE
