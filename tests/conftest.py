from pathlib import Path

import pytest

from pricekeeper.config import Settings
from pricekeeper.models.card import Card

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def listing_html() -> str:
    """Regular listing page: 37 results, 5 parseable tiles, 2 malformed."""
    return (FIXTURES / "cardkingdom_listing.html").read_text(encoding="utf-8")


@pytest.fixture
def foils_html() -> str:
    """Foil listing page: 2 results."""
    return (FIXTURES / "cardkingdom_foils.html").read_text(encoding="utf-8")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary data directory."""
    return Settings(data_dir=tmp_path / "data", base_url="https://ck.test/mtg")


@pytest.fixture
def sample_cards() -> list[Card]:
    return [
        Card(name="Lightning Bolt", collector_code="141", rarity="C", price="0.25", set_code="TST"),
        Card(
            name="Lightning Bolt",
            collector_code="141",
            rarity="C",
            price="2.50",
            is_foil=True,
            set_code="TST",
        ),
        Card(name="Jace, the Mind Sculptor", collector_code="55", price="13.00", set_code="TST"),
        Card(name='Kongming, "Sleeping Dragon"', collector_code="7", price="1.50", set_code="TST"),
    ]
