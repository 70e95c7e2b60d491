"""
Tabletop Simulator object graph for a deck.

See https://kb.tabletopsimulator.com/custom-content/save-file-format/ for the
meaning of the fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from .exceptions import DeckConverterError
from .models import Card, CardSize, Deck

# Default cards are approximately 56×80mm, so they need to be scaled to get
# the correct size (63.5×88.9mm)
STANDARD_SCALE_X = 63.5 / 56
STANDARD_SCALE_Z = 88.9 / 80
# Oversized cards (MTG planes, schemes, vanguards) are approximately 88×124mm
STANDARD_OVERSIZED_SCALE = 88.9 / 63.5
# With scale 1.0, small cards are 58×80mm, but should be 59×86mm
SMALL_SCALE_X = 59.0 / 58
SMALL_SCALE_Z = 86.0 / 80

# Key of the back face in the States of a double-faced card
ALTERNATE_STATE_KEY = "2"


# ----------------------------
# Graph nodes
# ----------------------------

class ObjectType(str, Enum):
    DECK = "Deck"
    DECK_CUSTOM = "DeckCustom"
    CARD = "Card"
    CARD_CUSTOM = "CardCustom"


class DeckShape(IntEnum):
    RECTANGLE_ROUNDED = 0
    RECTANGLE = 1
    HEX_ROUNDED = 2
    HEX = 3
    CIRCLE = 4


@dataclass
class Transform:
    pos_x: float = 0.0
    pos_y: float = 0.0
    pos_z: float = 0.0
    rot_x: float = 0.0
    rot_y: float = 180.0
    rot_z: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    scale_z: float = 1.0


@dataclass
class ColorDiffuse:
    r: float = 0.713239133
    g: float = 0.713239133
    b: float = 0.713239133


@dataclass
class CustomDeck:
    face_url: str
    back_url: str
    num_width: int = 1
    num_height: int = 1
    # Use back_url instead of the last image of the face template as the back
    back_is_hidden: bool = True
    unique_back: bool = False
    shape: DeckShape = DeckShape.RECTANGLE_ROUNDED


@dataclass
class TableObject:
    object_type: ObjectType
    transform: Transform = field(default_factory=Transform)
    nickname: str = ""
    description: str = ""
    gm_notes: str = ""
    color_diffuse: ColorDiffuse = field(default_factory=ColorDiffuse)
    locked: bool = False
    grid: bool = True
    snap: bool = True
    ignore_fow: bool = False
    measure_movement: bool = False
    drag_selectable: bool = False
    autoraise: bool = True
    sticky: bool = True
    tooltip: bool = True
    grid_projection: bool = False
    hide_when_face_down: bool = True
    hands: bool = False
    card_id: int = 0
    sideways_card: bool = False
    deck_ids: List[int] = field(default_factory=list)
    # Keys are template indexes (atlas mode) or card positions, as strings
    custom_deck: Dict[str, CustomDeck] = field(default_factory=dict)
    xml_ui: str = ""
    lua_script: str = ""
    lua_script_state: str = ""
    contained_objects: List[TableObject] = field(default_factory=list)
    states: Dict[str, TableObject] = field(default_factory=dict)
    guid: str = ""


@dataclass
class SaveDocument:
    object_states: List[TableObject]
    save_name: str = ""
    game_mode: str = ""
    gravity: float = 0.5
    play_area: float = 0.5
    date: str = ""
    table: str = ""
    sky: str = ""
    note: str = ""
    rules: str = ""
    lua_script: str = ""
    lua_script_state: str = ""
    xml_ui: str = ""
    version_number: str = ""


# ----------------------------
# Building
# ----------------------------

def scale_for(card_size: CardSize, oversized: bool) -> Tuple[float, float, float]:
    if card_size is CardSize.SMALL:
        return SMALL_SCALE_X, 1.0, SMALL_SCALE_Z

    x, y, z = STANDARD_SCALE_X, 1.0, STANDARD_SCALE_Z
    if oversized:
        x *= STANDARD_OVERSIZED_SCALE
        y *= STANDARD_OVERSIZED_SCALE
        z *= STANDARD_OVERSIZED_SCALE
    return x, y, z


def thumbnail_source(deck: Deck) -> Optional[Card]:
    return deck.cards[0] if deck.cards else None


class TableObjectBuilder:
    """
    Turn a Deck into a SaveDocument.

    Without an attached atlas, every card copy refers to its own image and gets
    the card ID ``100 * position``. With one, card IDs and templates come from
    the atlas; a missing image raises AtlasLookupError.
    """

    def build(self, deck: Deck) -> SaveDocument:
        if not deck.cards:
            raise DeckConverterError(f"deck {deck.name!r} has no cards")
        if len(deck.cards) == 1:
            # Don't create a deck, only a single card
            card = deck.cards[0]
            card_id, key, custom_deck = self._locate(card, deck, 1)
            return SaveDocument([self._card_object(card, card_id, key, custom_deck, deck)])
        return SaveDocument([self._deck_object(deck)])

    def _locate(self, card: Card, deck: Deck, position: int) -> Tuple[int, str, CustomDeck]:
        if deck.atlas is None:
            return 100 * position, str(position), CustomDeck(face_url=card.image_url, back_url=deck.back_url)

        card_id = deck.atlas.card_id_for(card.image_url)
        sheet, sheet_index = deck.atlas.sheet_for(card_id)
        custom_deck = CustomDeck(
            face_url=sheet.url,
            back_url=deck.back_url,
            num_width=sheet.num_cols,
            num_height=sheet.num_rows,
        )
        return card_id, str(sheet_index), custom_deck

    def _card_object(
        self,
        card: Card,
        card_id: int,
        custom_deck_key: str,
        custom_deck: CustomDeck,
        deck: Deck,
    ) -> TableObject:
        states: Dict[str, TableObject] = {}
        alt = card.alternative_state
        if alt is not None:
            alt_id, alt_key, alt_deck = self._locate(alt, deck, 1)
            states[ALTERNATE_STATE_KEY] = self._card_object(alt, alt_id, alt_key, alt_deck, deck)

        scale_x, scale_y, scale_z = scale_for(deck.card_size, card.oversized)
        return TableObject(
            object_type=ObjectType.CARD,
            transform=Transform(scale_x=scale_x, scale_y=scale_y, scale_z=scale_z),
            nickname=card.name,
            description=card.description,
            hands=True,
            card_id=card_id,
            custom_deck={custom_deck_key: custom_deck},
            states=states,
        )

    def _deck_object(self, deck: Deck) -> TableObject:
        obj = TableObject(
            object_type=ObjectType.DECK,
            transform=Transform(rot_z=180.0),
            nickname=deck.name,
            drag_selectable=True,
        )
        position = 1
        all_oversized = True

        for card in deck.cards:
            if deck.atlas is not None:
                card_id, key, custom_deck = self._locate(card, deck, position)
                obj.custom_deck[key] = custom_deck

            for _ in range(card.count):
                if deck.atlas is None:
                    card_id, key, custom_deck = self._locate(card, deck, position)
                    obj.custom_deck[key] = custom_deck
                    position += 1
                obj.deck_ids.append(card_id)
                obj.contained_objects.append(self._card_object(card, card_id, key, custom_deck, deck))

            all_oversized = all_oversized and card.oversized

        obj.transform.scale_x, obj.transform.scale_y, obj.transform.scale_z = scale_for(
            deck.card_size, all_oversized
        )
        return obj
