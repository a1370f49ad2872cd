"""
Price normalization policy.

Raw storefront prices are floored by rarity and then rounded to the
buylist grid used downstream:

- Commons/uncommons under 0.35 become 0.25
- Rares/mythics under 0.50 become 0.50
- Anything else under 10.00 rounds to the nearest 0.50
- 10.00 and up rounds to the nearest whole unit

Ties round away from zero. The policy is idempotent.
"""

from decimal import ROUND_HALF_UP, Decimal

# Storefront prints the short codes; long names accepted for convenience
LOW_RARITIES = frozenset({"C", "UC", "Common", "Uncommon"})
HIGH_RARITIES = frozenset({"R", "M", "Rare", "Mythic"})

LOW_RARITY_THRESHOLD = Decimal("0.35")
LOW_RARITY_FLOOR = Decimal("0.25")
HIGH_RARITY_FLOOR = Decimal("0.50")
WHOLE_UNIT_THRESHOLD = Decimal("10")

_WHOLE = Decimal("1")
_CENTS = Decimal("0.01")


def adjust_price(price: Decimal, rarity: str) -> Decimal:
    """
    Apply rarity floors and grid rounding to a raw price.

    Args:
        price: Raw price scraped from the listing
        rarity: Rarity code (C, UC, R, M) or "Unknown"

    Returns:
        Adjusted price. Not quantized; use format_price for display.
    """
    if rarity in LOW_RARITIES and price < LOW_RARITY_THRESHOLD:
        return LOW_RARITY_FLOOR
    if rarity in HIGH_RARITIES and price < HIGH_RARITY_FLOOR:
        return HIGH_RARITY_FLOOR

    if price < WHOLE_UNIT_THRESHOLD:
        # Nearest half: double, round to whole, halve
        return (price * 2).quantize(_WHOLE, rounding=ROUND_HALF_UP) / 2
    return price.quantize(_WHOLE, rounding=ROUND_HALF_UP)


def format_price(price: Decimal) -> str:
    """Format a price with exactly two fractional digits (e.g., "10.00")."""
    return str(price.quantize(_CENTS, rounding=ROUND_HALF_UP))
