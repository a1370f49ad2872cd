"""
Card Kingdom set listing scraper.

Fetches paginated set listings (regular and /foils), parses each product
tile into a Card, and applies the price policy.

Note: Web scraping is inherently fragile. Page structure may change.
Every DOM lookup is treated as optional; a tile missing any required node
is skipped rather than failing the page.
"""

import logging
import random
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import replace
from decimal import Decimal, InvalidOperation

import httpx
from bs4 import BeautifulSoup, Tag
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
)

from pricekeeper.config import (
    BASE_RETRY_DELAY_MS,
    MAX_FETCH_ATTEMPTS,
    MAX_RETRY_DELAY_MS,
    RETRY_JITTER_MS,
    settings,
)
from pricekeeper.models.card import UNKNOWN, Card
from pricekeeper.models.failure import (
    FailureKind,
    FetchError,
    FetchExhaustedError,
    RateLimitedError,
)
from pricekeeper.scrapers.user_agents import get_random_user_agent
from pricekeeper.services.price_policy import adjust_price, format_price

logger = logging.getLogger(__name__)

# Matches: "Showing 1 - 25 of 37 results" -> 37
RESULTS_COUNT_PATTERN = re.compile(r"of\s+(\d+)\s+results")
DIGITS_PATTERN = re.compile(r"\d+")
# Matches: "Foundations (M)" -> M
RARITY_PATTERN = re.compile(r"\((.*?)\)")

# Nesting of the product grid; each step must exist
LISTING_PATH = (
    "div#appWrapper",
    "div#ckmain.container.mainWrapper",
    "div#main.shopMain",
    "div.col-sm-9.mainListing",
)
ITEM_SELECTOR = "div.productItemWrapper.productCardWrapper"
# Price of the EX condition tier
PRICE_INPUT_PATH = (
    "div.addToCartWrapper",
    "ul.addToCartByType",
    "li.EX",
    "input[name*=price]",
)


def build_set_url(
    set_name: str,
    foil: bool = False,
    page: int | None = None,
    base_url: str | None = None,
) -> str:
    """
    Build the listing URL for a set.

    Args:
        set_name: Display name of the set as used in storefront paths
        foil: Whether to target the /foils listing
        page: Optional 1-based page number
        base_url: Storefront root; defaults to settings.base_url

    Returns:
        Full listing URL (e.g., "https://www.cardkingdom.com/mtg/Foundations/foils?page=2")
    """
    url = f"{(base_url or settings.base_url).rstrip('/')}/{set_name}"
    if foil:
        url += "/foils"
    if page is not None:
        url += f"?page={page}"
    return url


def _select_path(node: Tag | None, selectors: Iterable[str]) -> Tag | None:
    """Walk nested selectors, returning None as soon as one step is missing."""
    for selector in selectors:
        if node is None:
            return None
        node = node.select_one(selector)
    return node


def parse_listing_count(html: str) -> int:
    """
    Parse the total number of listings from a listing page.

    Args:
        html: Raw HTML content from a listing page

    Returns:
        Total listing count, or 0 if the summary is missing or unreadable
    """
    soup = BeautifulSoup(html, "html.parser")
    node = soup.select_one("div.resultsCount")
    results_text = node.get_text(" ", strip=True) if node else ""

    if not results_text:
        logger.info(
            "No results text found on listing page",
            extra={"failure_kind": FailureKind.NO_LISTING_DATA},
        )
        return 0

    match = RESULTS_COUNT_PATTERN.search(results_text)
    if not match:
        logger.info(
            "Could not parse total card count from: %r",
            results_text,
            extra={"failure_kind": FailureKind.NO_LISTING_DATA},
        )
        return 0

    return int(match.group(1))


def _parse_collector_code(text: str) -> str:
    """First run of digits with leading zeros stripped, or "Unknown"."""
    match = DIGITS_PATTERN.search(text)
    if not match:
        return UNKNOWN
    return str(int(match.group()))


def _parse_rarity(text: str) -> str:
    match = RARITY_PATTERN.search(text)
    if not match or not match.group(1).strip():
        return UNKNOWN
    return match.group(1).strip()


def _parse_raw_price(text: str) -> Decimal | None:
    try:
        price = Decimal(text.replace(",", "").strip())
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def _parse_item(item: Tag, is_foil: bool, set_code: str) -> Card | None:
    """
    Parse one product tile.

    Returns:
        Card with its adjusted price, or None if a required node is missing
    """
    info = item.select_one("div.itemContentWrapper")
    if info is None:
        return None

    title = info.select_one("span.productDetailTitle")
    if title is None:
        return None
    title_link = title.select_one("a")
    name = title_link.get_text().strip() if title_link else UNKNOWN

    detail_set = info.select_one("div.productDetailSet")
    collector_node = _select_path(detail_set, ("div.collector-number",))
    if collector_node is None:
        return None
    collector_code = _parse_collector_code(collector_node.get_text())

    set_link = _select_path(detail_set, ("a",))
    if set_link is None:
        return None
    rarity = _parse_rarity(set_link.get_text())

    price_input = _select_path(info, PRICE_INPUT_PATH)
    if price_input is None:
        return None

    price_text = str(price_input.get("value", "0.00"))
    raw_price = _parse_raw_price(price_text)
    if raw_price is None:
        logger.warning(
            "Invalid price %r for card %r",
            price_text,
            name,
            extra={"failure_kind": FailureKind.MALFORMED_LISTING_ITEM},
        )
        return None

    return Card(
        name=name,
        collector_code=collector_code,
        rarity=rarity,
        price=format_price(adjust_price(raw_price, rarity)),
        is_foil=is_foil,
        set_code=set_code,
    )


def parse_listing_page(html: str, is_foil: bool, set_code: str) -> list[Card]:
    """
    Parse product tiles from a listing page into cards.

    When parsing a foils page, a foil whose collector number does not
    appear earlier on the same page is preceded by a non-foil copy with the
    same name, rarity and price. Only this page is checked, so the copy is
    made even when the regular listing carries that card; reconciliation
    then gives the non-foil entry the foil price.

    Args:
        html: Raw HTML content from a listing page
        is_foil: Whether these tiles are foil printings
        set_code: Internal set code assigned to every card

    Returns:
        List of Card objects in page order
    """
    cards: list[Card] = []
    soup = BeautifulSoup(html, "html.parser")

    listing = _select_path(soup, LISTING_PATH)
    if listing is None:
        logger.info("No card listing found on page")
        return cards

    seen_codes: set[str] = set()
    skipped = 0

    for item in listing.select(ITEM_SELECTOR):
        card = _parse_item(item, is_foil, set_code)
        if card is None:
            skipped += 1
            continue

        if is_foil and card.collector_code not in seen_codes:
            logger.info(
                "Creating duplicate NON-FOIL variant for %s %sF - %s",
                set_code,
                card.collector_code,
                card.name,
            )
            cards.append(replace(card, is_foil=False))

        cards.append(card)
        seen_codes.add(card.collector_code)

    if skipped:
        logger.debug(
            "Skipped %d malformed listing items",
            skipped,
            extra={"failure_kind": FailureKind.MALFORMED_LISTING_ITEM},
        )

    return cards


def backoff_delay_ms(attempt: int, jitter_ms: int = 0) -> int:
    """
    Delay before retrying after the given failed attempt.

    Args:
        attempt: 1-based number of the attempt that was rate limited
        jitter_ms: Random jitter added before capping

    Returns:
        min(base * 2^(attempt-1) + jitter, max) in milliseconds
    """
    return min(BASE_RETRY_DELAY_MS * 2 ** (attempt - 1) + jitter_ms, MAX_RETRY_DELAY_MS)


class CardCatalogFetcher:
    """
    Fetches listing pages over HTTP with rate-limit backoff.

    HTTP 429 responses are retried up to `max_attempts` times with capped
    exponential backoff. Any other non-success status is fatal.

    Sleep and randomness are injectable so tests run instantly and
    deterministically.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        max_attempts: int = MAX_FETCH_ATTEMPTS,
        user_agent_provider: Callable[[random.Random], str] = get_random_user_agent,
        timeout: float | None = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            follow_redirects=True,
            timeout=timeout or settings.http_timeout,
        )
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.max_attempts = max_attempts
        self._user_agent_provider = user_agent_provider

    def __enter__(self) -> "CardCatalogFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            self.client.close()

    def rotate_user_agent(self) -> str:
        """Replace the client's User-Agent header and return the new value."""
        user_agent = self._user_agent_provider(self._rng)
        self.client.headers["User-Agent"] = user_agent
        return user_agent

    def _get(self, url: str) -> str:
        try:
            response = self.client.get(url)
        except httpx.RequestError as e:
            raise FetchError(url, detail=str(e)) from e

        if response.status_code == 429:
            raise RateLimitedError(url)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, status_code=response.status_code) from e

        return response.text

    def _backoff_seconds(self, attempt: int) -> float:
        jitter_ms = self._rng.randrange(*RETRY_JITTER_MS)
        return backoff_delay_ms(attempt, jitter_ms) / 1000

    def _wait(self, retry_state: RetryCallState) -> float:
        return self._backoff_seconds(retry_state.attempt_number)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Rate limit hit (attempt %d). Retrying in %dms...",
            retry_state.attempt_number,
            delay * 1000,
        )

    def fetch_html(self, url: str) -> str:
        """
        GET a page, retrying on rate limiting.

        Args:
            url: Page URL

        Returns:
            Raw HTML content

        Raises:
            FetchExhaustedError: If every attempt was rate limited
            FetchError: On any other non-success response or transport error
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(RateLimitedError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )
        try:
            return retrying(self._get, url)
        except RetryError as e:
            # The final rate-limited attempt backs off too before giving up
            delay = self._backoff_seconds(e.last_attempt.attempt_number)
            logger.warning(
                "Rate limit hit (attempt %d). Waiting %dms before giving up...",
                e.last_attempt.attempt_number,
                delay * 1000,
            )
            self._sleep(delay)
            raise FetchExhaustedError(url, self.max_attempts) from e.last_attempt.exception()

    def get_listing_count(self, url: str) -> int:
        """Fetch a listing page and return its total listing count (0 if none)."""
        count = parse_listing_count(self.fetch_html(url))
        if count == 0:
            logger.info("No listings reported at %s", url)
        return count

    def fetch_page(self, url: str, is_foil: bool, set_code: str) -> list[Card]:
        """
        Fetch one listing page and parse it into cards.

        Args:
            url: Page URL
            is_foil: Whether the page lists foil printings
            set_code: Internal set code assigned to every card

        Returns:
            List of Card objects

        Raises:
            FetchExhaustedError: If every attempt was rate limited
            FetchError: On any other request failure
        """
        cards = parse_listing_page(self.fetch_html(url), is_foil, set_code)
        logger.info("Fetched %d cards from %s (foil: %s)", len(cards), url, is_foil)
        return cards
