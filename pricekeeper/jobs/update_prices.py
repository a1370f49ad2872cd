"""
Price update job.

Walks the set worklist one set at a time: scrapes regular and foil
listings, reconciles them into the set's ledger, saves it, and appends it
to the run's combined change log.

A checkpoint records the set in flight. It is written before a set starts
and cleared after the set is saved, so a crashed or halted run resumes at
the start of the set that failed.

Usage:
    python -m pricekeeper.jobs.update_prices --sets "Foundations" "Aetherdrift"
    python -m pricekeeper.jobs.update_prices --all
"""

import argparse
import logging
import math
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pricekeeper.config import (
    PAGE_DELAY_MS,
    PAGE_SIZE,
    SET_DELAY_MS,
    Settings,
    ensure_directories,
    settings,
)
from pricekeeper.models.card import Card
from pricekeeper.models.failure import FailureKind, ScrapeError
from pricekeeper.scrapers.cardkingdom import CardCatalogFetcher, build_set_url
from pricekeeper.services.checkpoint import Checkpoint
from pricekeeper.services.ledger import (
    append_to_combined,
    load_ledger,
    save_ledger,
    truncate_file,
)
from pricekeeper.services.reconciler import reconcile
from pricekeeper.services.set_registry import (
    SetRegistry,
    list_available_sets,
    save_selected_sets,
)

logger = logging.getLogger(__name__)


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    """Number of listing pages needed for `total` listings."""
    return math.ceil(total / page_size)


@dataclass
class RunResult:
    """Outcome of a price update run."""

    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    skip_reasons: dict[str, FailureKind] = field(default_factory=dict)
    failed_set: str | None = None
    failure_kind: FailureKind | None = None

    @property
    def completed(self) -> bool:
        return self.failed_set is None

    def skip(self, set_name: str, kind: FailureKind) -> None:
        self.skipped.append(set_name)
        self.skip_reasons[set_name] = kind


class PriceUpdateJob:
    """
    Sequential, resumable price update over a set worklist.

    Args:
        fetcher: Listing fetcher
        registry: Worklist and set-code lookup
        config: Settings supplying file locations and the storefront URL
        sleep: Blocking sleep in seconds; injectable for tests
        rng: Random source for pacing delays
    """

    def __init__(
        self,
        fetcher: CardCatalogFetcher,
        registry: SetRegistry,
        *,
        config: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ):
        self.fetcher = fetcher
        self.registry = registry
        self.config = config or settings
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.checkpoint = Checkpoint(self.config.progress_path)

    def ledger_path(self, set_name: str) -> Path:
        return self.config.prices_dir / f"{set_name}.csv"

    def _pause(self, delay_range_ms: tuple[int, int]) -> None:
        self._sleep(self._rng.uniform(*delay_range_ms) / 1000)

    def _remaining_sets(self) -> list[str]:
        """Worklist entries from the checkpointed set onward."""
        set_names = self.registry.set_names
        resume_from = self.checkpoint.read()
        if resume_from is None:
            return list(set_names)

        if resume_from not in set_names:
            logger.warning("Checkpoint %r is not in the worklist; nothing to resume", resume_from)
            return []

        index = set_names.index(resume_from)
        for set_name in set_names[:index]:
            logger.info("Skipping %s...", set_name)
        logger.info("Resuming from %s", resume_from)
        return list(set_names[index:])

    def fetch_listing(
        self,
        set_name: str,
        set_code: str,
        is_foil: bool,
        total: int,
        accumulated: list[Card],
    ) -> None:
        """
        Fetch every page of one listing and append its cards to `accumulated`.

        Each page is preceded by a User-Agent rotation and followed by a
        randomized pause.
        """
        pages = page_count(total)
        for page in range(1, pages + 1):
            url = build_set_url(set_name, foil=is_foil, page=page, base_url=self.config.base_url)
            user_agent = self.fetcher.rotate_user_agent()
            logger.info("Fetching page %d/%d with user agent: %s", page, pages, user_agent)

            accumulated.extend(self.fetcher.fetch_page(url, is_foil, set_code))
            self._pause(PAGE_DELAY_MS)

    def process_set(self, set_name: str, set_code: str) -> bool:
        """
        Scrape, reconcile, and persist one set.

        Returns:
            True if the set was saved, False if it had no listings

        Raises:
            FetchExhaustedError, FetchError, or anything unexpected; the
            ledger file is left untouched in that case
        """
        base_url = build_set_url(set_name, base_url=self.config.base_url)
        ledger_path = self.ledger_path(set_name)

        existing = load_ledger(ledger_path)
        logger.info("Loaded %d existing cards for %s.", len(existing), set_name)

        total = self.fetcher.get_listing_count(base_url)
        if total == 0:
            logger.info(
                "No cards found on regular page. Skipping set.",
                extra={"failure_kind": FailureKind.NO_LISTING_DATA},
            )
            return False

        fetched: list[Card] = []
        self.fetch_listing(set_name, set_code, False, total, fetched)

        logger.info("Fetching foils...")
        foil_url = build_set_url(set_name, foil=True, base_url=self.config.base_url)
        total_foils = self.fetcher.get_listing_count(foil_url)
        if total_foils > 0:
            self.fetch_listing(set_name, set_code, True, total_foils, fetched)

        logger.info("Fetched %d total cards (including foils). Updating prices...", len(fetched))
        reconcile(existing, fetched)
        save_ledger(existing, ledger_path)
        append_to_combined(ledger_path, self.config.combined_path)
        return True

    def run(self) -> RunResult:
        """
        Process every remaining set in the worklist.

        Stops at the first fatal error, leaving the checkpoint on that set.
        """
        result = RunResult()

        truncate_file(self.config.combined_path)
        logger.info("Initialized %s", self.config.combined_file_name)

        if not self.registry.set_names:
            logger.info("No sets found. Exiting.")
            return result

        for set_name in self._remaining_sets():
            self.checkpoint.write(set_name)

            set_code = self.registry.resolve_code(set_name)
            if set_code is None:
                logger.warning(
                    "No set code for %s. Skipping.",
                    set_name,
                    extra={"failure_kind": FailureKind.UNKNOWN_SET_CODE},
                )
                result.skip(set_name, FailureKind.UNKNOWN_SET_CODE)
                continue

            logger.info("Processing %s...", set_name)
            try:
                saved = self.process_set(set_name, set_code)
                if not saved:
                    result.skip(set_name, FailureKind.NO_LISTING_DATA)
                    continue

                self.checkpoint.clear()
                logger.info("Finished processing %s.", set_name)
            except Exception as e:
                kind = e.kind if isinstance(e, ScrapeError) else FailureKind.UNHANDLED
                logger.exception(
                    "Error processing %s: %s",
                    set_name,
                    e,
                    extra={"failure_kind": kind},
                )
                logger.error("Processing stopped. Will resume from %s.", set_name)
                result.failed_set = set_name
                result.failure_kind = kind
                return result

            result.processed.append(set_name)
            self._pause(SET_DELAY_MS)

        return result


def run_price_update(config: Settings | None = None) -> RunResult:
    """Run a price update over the worklist stored in the data directory."""
    config = config or settings
    ensure_directories(config)
    registry = SetRegistry.load(config.worklist_path, config.set_codes_path)

    with CardCatalogFetcher(timeout=config.http_timeout) as fetcher:
        return PriceUpdateJob(fetcher, registry, config=config).run()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for running a price update."""
    parser = argparse.ArgumentParser(description="Update set price ledgers from Card Kingdom")
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--sets",
        nargs="+",
        help="Set names to update (replaces the saved worklist)",
    )
    selection.add_argument(
        "--all",
        action="store_true",
        help="Update every set listed in the set code file",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=f"Data directory (default: {settings.data_dir})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose or settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = settings
    if args.data_dir is not None:
        config = settings.model_copy(update={"data_dir": args.data_dir})
    ensure_directories(config)

    if args.all:
        save_selected_sets(list_available_sets(config.set_codes_path), config.worklist_path)
        logger.info("All sets selected. Starting scraper...")
    elif args.sets:
        save_selected_sets(args.sets, config.worklist_path)

    result = run_price_update(config)
    logger.info(
        "Price update finished: %d processed, %d skipped",
        len(result.processed),
        len(result.skipped),
    )
    if not result.completed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
