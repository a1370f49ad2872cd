from dataclasses import dataclass

UNKNOWN = "Unknown"


@dataclass(slots=True)
class Card:
    """
    One priced printing of a card within a set.

    Attributes:
        name: Display name, HTML-decoded (e.g., "Lightning Bolt")
        collector_code: Collector number without leading zeros, or "Unknown"
        rarity: Storefront rarity code (C, UC, R, M), or "Unknown"
        price: Price formatted with exactly two decimals (e.g., "2.50")
        is_foil: Whether this is the foil printing
        set_code: Internal short code of the set (e.g., "TDM")
    """

    name: str
    collector_code: str = UNKNOWN
    rarity: str = UNKNOWN
    price: str = "0.00"
    is_foil: bool = False
    set_code: str = ""

    @property
    def item_code(self) -> str:
        """Row identity used in ledger files: "SETCODE 123" or "SETCODE 123F"."""
        suffix = "F" if self.is_foil else ""
        return f"{self.set_code} {self.collector_code}{suffix}"

    @property
    def key(self) -> tuple[str, str, bool]:
        """Identity used when merging fetched cards into a ledger."""
        return (self.name, self.collector_code, self.is_foil)
