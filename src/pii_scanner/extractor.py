"""Extractor — the per-cell API.  One matcher+validator pair per category.

Usage:
    from pii_scanner import Configuration, Extractor

    extractor = Extractor(Configuration())
    found = extractor.extract("电话13812345678")
    print(found.phone_numbers)   # [Match(value='13812345678', is_valid=True, position=(6, 17))]

Categories run in a fixed order so that a category can be told to skip
spans already claimed by a *valid* match of an earlier one.  Bank cards
skip valid ID numbers: an 18-digit resident ID also fits the 16-19 digit
card shape.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from .config import Configuration
from .name_service import NameExtractor
from .patterns import Candidate, scan_bank_cards, scan_id_cards, scan_phones
from .types import CellMatches, Match
from .validators import validate_bank_card, validate_id_card, validate_phone


@dataclass(frozen=True)
class Category:
    """A scanner and a validator for one kind of identifier."""
    name: str
    scan: Callable[[str], list[Candidate]]
    validate: Callable[[str], bool]
    excluded_by: str | None = None      # skip spans of valid matches of this category

    def extract(self, text: str, exclude: list[tuple[int, int]] | None = None) -> list[Match]:
        exclude = exclude or []
        matches: list[Match] = []
        for value, start, end in self.scan(text):
            # Overlap test uses the same half-open intervals as Match.overlaps
            if any(start < e and end > s for s, e in exclude):
                continue
            matches.append(Match(value, self.validate(value), (start, end)))
        return matches


CATEGORIES: list[Category] = [
    Category("phone", scan_phones, validate_phone),
    Category("id_card", scan_id_cards, validate_id_card),
    Category("bank_card", scan_bank_cards, validate_bank_card, excluded_by="id_card"),
]


class Extractor:
    """Runs every enabled category over one text cell.

    Disabled categories come back as empty lists.  Thread-safe as long as
    the NameExtractor is; one Extractor per worker is the usual setup.
    """

    def __init__(
        self,
        config: Configuration | None = None,
        *,
        name_extractor: NameExtractor | None = None,
    ) -> None:
        self.config = config or Configuration()
        enabled = set(self.config.enabled_categories())
        self.categories = [c for c in CATEGORIES if c.name in enabled]
        if "name" in enabled and name_extractor is None:
            name_extractor = NameExtractor.for_host(
                self.config.api_host,
                threshold=self.config.name_confidence_threshold,
            )
        self.name_extractor = name_extractor if "name" in enabled else None

    @property
    def name_failures(self) -> int:
        return self.name_extractor.failed_count if self.name_extractor else 0

    def extract(self, text: str) -> CellMatches:
        found: dict[str, list[Match]] = {}
        for category in self.categories:
            exclude = None
            if category.excluded_by:
                exclude = [m.position for m in found.get(category.excluded_by, []) if m.is_valid]
            found[category.name] = category.extract(text, exclude)

        names = self.name_extractor.extract(text) if self.name_extractor else []

        return CellMatches(
            phone_numbers=found.get("phone", []),
            id_cards=found.get("id_card", []),
            bank_cards=found.get("bank_card", []),
            names=names,
        )

    def close(self) -> None:
        if self.name_extractor:
            self.name_extractor.close()
