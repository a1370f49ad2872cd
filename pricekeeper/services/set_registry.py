"""
Set worklist and set-code mapping.

The worklist is a line-per-entry text file of set display names, in the
order they should be processed. The code map is a two-column CSV of
display name and internal set code.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


def load_set_names(path: Path) -> list[str]:
    """
    Load the ordered worklist of set names.

    Returns:
        Non-blank, trimmed lines. Empty if the file does not exist.
    """
    if not path.exists():
        logger.warning("Set list file not found: %s", path)
        return []

    set_names = [
        line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()
    ]
    logger.info("Loaded %d sets from %s", len(set_names), path)
    return set_names


def _iter_code_rows(path: Path):
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip() or "," not in line:
            continue
        yield line, line.split(",")


def load_set_code_map(path: Path) -> dict[str, str]:
    """
    Load the display name -> set code mapping.

    Lines without a comma are ignored; lines with more than two columns
    are skipped with a warning.

    Returns:
        Mapping in file order, keyed by display name. Empty if the file
        does not exist.
    """
    codes: dict[str, str] = {}

    if not path.exists():
        logger.warning("Set code file not found: %s", path)
        return codes

    for line, parts in _iter_code_rows(path):
        if len(parts) != 2:
            logger.warning("Skipping invalid line: %s", line)
            continue
        codes[parts[0].strip()] = parts[1].strip()

    logger.info("Loaded %d set codes from %s", len(codes), path)
    return codes


def list_available_sets(path: Path) -> list[str]:
    """Set display names offered for selection, in code map file order."""
    if not path.exists():
        return []
    return [parts[0].strip() for _, parts in _iter_code_rows(path)]


def save_selected_sets(set_names: list[str], path: Path) -> None:
    """Write a selection of sets as the worklist for the next run."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{name}\n" for name in set_names), encoding="utf-8")
    logger.info("Saved %d sets to %s", len(set_names), path.name)


@dataclass
class SetRegistry:
    """
    Worklist of set names plus case-insensitive set-code lookup.

    Attributes:
        set_names: Sets to process, in order
        set_codes: Display name -> internal set code
    """

    set_names: list[str] = field(default_factory=list)
    set_codes: dict[str, str] = field(default_factory=dict)
    _lookup: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._lookup = {name.casefold(): code for name, code in self.set_codes.items()}

    def resolve_code(self, set_name: str) -> str | None:
        """Internal set code for a display name, ignoring case."""
        return self._lookup.get(set_name.casefold())

    @classmethod
    def load(cls, worklist_path: Path, set_codes_path: Path) -> "SetRegistry":
        return cls(
            set_names=load_set_names(worklist_path),
            set_codes=load_set_code_map(set_codes_path),
        )
