"""
Normalized deck model shared by every stage of the converter.

A Deck is produced by a deck-list parser (outside this package) or loaded from
a normalized deck JSON file with load_decks(). Template generation attaches an
AtlasAssignment to each deck; the table object builder only reads it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import AtlasLookupError


# ----------------------------
# Cards and decks
# ----------------------------

class CardSize(str, Enum):
    # Magic or Pokemon cards (poker size)
    STANDARD = "standard"
    # Yu-Gi-Oh or Cardfight!! Vanguard cards
    SMALL = "small"


@dataclass
class Card:
    name: str
    image_url: str
    description: str = ""
    count: int = 1
    # Planes, schemes or meld results in MTG
    oversized: bool = False
    # Back face of a double-faced card, shown as a second state of the card
    alternative_state: Optional[Card] = None

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"Card {self.name!r} has an invalid count: {self.count}")
        alt = self.alternative_state
        if alt is not None and alt.alternative_state is not None:
            raise ValueError(f"Alternative state of {self.name!r} cannot have its own alternative state")


@dataclass
class Deck:
    name: str
    cards: List[Card]
    back_url: str = ""
    card_size: CardSize = CardSize.STANDARD
    atlas: Optional[AtlasAssignment] = None


# ----------------------------
# Templates
# ----------------------------

@dataclass
class AtlasSheet:
    url: str
    num_cols: int
    num_rows: int


@dataclass
class AtlasAssignment:
    """
    Card image reference -> card ID, and template index -> AtlasSheet.

    A card ID belongs to template ``card_id // 100``. One assignment is shared
    by every deck generated from the same source, so identical artwork found in
    related decks points at the same template slot.
    """

    card_ids: Dict[str, int] = field(default_factory=dict)
    sheets: Dict[int, AtlasSheet] = field(default_factory=dict)

    def card_id_for(self, image_url: str) -> int:
        try:
            return self.card_ids[image_url]
        except KeyError:
            raise AtlasLookupError(f"no card ID found for image {image_url}") from None

    def sheet_for(self, card_id: int) -> Tuple[AtlasSheet, int]:
        sheet_index = card_id // 100
        sheet = self.sheets.get(sheet_index)
        if sheet is None:
            raise AtlasLookupError(f"template {sheet_index} not found (card ID {card_id})")
        return sheet, sheet_index


# ----------------------------
# Normalized deck JSON
# ----------------------------

def card_from_dict(data: Dict[str, Any]) -> Card:
    alt = data.get("alternative_state")
    return Card(
        name=data["name"],
        image_url=data["image_url"],
        description=data.get("description", ""),
        count=int(data.get("count", 1)),
        oversized=bool(data.get("oversized", False)),
        alternative_state=card_from_dict(alt) if alt else None,
    )


def deck_from_dict(data: Dict[str, Any]) -> Deck:
    cards = [card_from_dict(c) for c in data.get("cards", [])]
    if not cards:
        raise ValueError(f"Deck {data.get('name')!r} has no cards")
    return Deck(
        name=data["name"],
        cards=cards,
        back_url=data.get("back_url", ""),
        card_size=CardSize(data.get("card_size", CardSize.STANDARD.value)),
    )


def load_decks(path: Path) -> List[Deck]:
    """Read one deck object, or a list of related deck objects, from a JSON file."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"{path} doesn't contain any deck")
    return [deck_from_dict(d) for d in raw]
