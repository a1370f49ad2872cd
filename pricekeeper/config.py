import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="PRICEKEEPER_")

    app_name: str = "pricekeeper"
    debug: bool = False

    # Storefront listing root; a set lives at {base_url}/{set name}
    base_url: str = "https://www.cardkingdom.com/mtg"
    http_timeout: float = 30.0

    data_dir: Path = Path("data")
    worklist_file_name: str = "update_sets.txt"
    set_codes_file_name: str = "set_codes.csv"
    progress_file_name: str = "progress.txt"
    combined_file_name: str = "00_combined_list_changes.csv"

    @property
    def prices_dir(self) -> Path:
        return self.data_dir / "prices"

    @property
    def worklist_path(self) -> Path:
        return self.data_dir / self.worklist_file_name

    @property
    def set_codes_path(self) -> Path:
        return self.data_dir / self.set_codes_file_name

    @property
    def progress_path(self) -> Path:
        return self.data_dir / self.progress_file_name

    @property
    def combined_path(self) -> Path:
        return self.prices_dir / self.combined_file_name


settings = Settings()


def ensure_directories(config: Settings | None = None) -> None:
    """Create the data and prices directories if they are missing."""
    config = config or settings
    for directory in (config.data_dir, config.prices_dir):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created missing directory: %s", directory)


# =============================================================================
# LISTING PAGINATION
# =============================================================================

# The storefront always pages listings in blocks of 25
PAGE_SIZE = 25


# =============================================================================
# REQUEST PACING (milliseconds)
# =============================================================================

PAGE_DELAY_MS = (1250, 2000)
SET_DELAY_MS = (6000, 10000)


# =============================================================================
# RATE LIMIT BACKOFF (milliseconds)
# =============================================================================

MAX_FETCH_ATTEMPTS = 5
BASE_RETRY_DELAY_MS = 10_000
MAX_RETRY_DELAY_MS = 180_000

# Jitter is drawn from [low, high)
RETRY_JITTER_MS = (1000, 3000)
