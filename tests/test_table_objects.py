import pytest

from tts_deck.exceptions import AtlasLookupError, DeckConverterError
from tts_deck.models import AtlasAssignment, AtlasSheet, Card, CardSize, Deck
from tts_deck.table_objects import (
    ALTERNATE_STATE_KEY,
    SMALL_SCALE_X,
    SMALL_SCALE_Z,
    STANDARD_OVERSIZED_SCALE,
    STANDARD_SCALE_X,
    STANDARD_SCALE_Z,
    ObjectType,
    TableObjectBuilder,
    thumbnail_source,
)

BACK = "https://example.com/back.jpg"


def _dfc() -> Card:
    return Card(
        "Delver of Secrets",
        "https://img/delver.jpg",
        count=2,
        alternative_state=Card("Insectile Aberration", "https://img/aberration.jpg"),
    )


def _atlas() -> AtlasAssignment:
    return AtlasAssignment(
        card_ids={
            "https://img/bolt.jpg": 100,
            "https://img/delver.jpg": 101,
            "https://img/aberration.jpg": 102,
            "https://img/island.jpg": 200,
        },
        sheets={
            1: AtlasSheet("https://img/template1.jpg", 2, 2),
            2: AtlasSheet("https://img/template2.jpg", 1, 1),
        },
    )


class TestSingleCard:
    def test_single_card_is_not_a_deck(self) -> None:
        deck = Deck("Commander", [Card("Atraxa", "https://img/atraxa.jpg", description="Flying")], back_url=BACK)

        doc = TableObjectBuilder().build(deck)

        assert len(doc.object_states) == 1
        obj = doc.object_states[0]
        assert obj.object_type is ObjectType.CARD
        assert obj.nickname == "Atraxa"
        assert obj.description == "Flying"
        assert obj.card_id == 100
        assert obj.hands is True
        assert obj.custom_deck["1"].face_url == "https://img/atraxa.jpg"
        assert obj.custom_deck["1"].back_url == BACK
        assert not obj.contained_objects

    def test_oversized_single_card(self) -> None:
        deck = Deck("Plane", [Card("Tazeem", "https://img/tazeem.jpg", oversized=True)])

        t = TableObjectBuilder().build(deck).object_states[0].transform

        assert t.scale_x == pytest.approx(STANDARD_SCALE_X * STANDARD_OVERSIZED_SCALE)
        assert t.scale_y == pytest.approx(STANDARD_OVERSIZED_SCALE)
        assert t.scale_z == pytest.approx(STANDARD_SCALE_Z * STANDARD_OVERSIZED_SCALE)


class TestDeckWithoutTemplate:
    def test_every_copy_has_its_own_id(self) -> None:
        deck = Deck(
            "Burn",
            [Card("Lightning Bolt", "https://img/bolt.jpg", count=2), Card("Mountain", "https://img/mountain.jpg")],
            back_url=BACK,
        )

        obj = TableObjectBuilder().build(deck).object_states[0]

        assert obj.object_type is ObjectType.DECK
        assert obj.deck_ids == [100, 200, 300]
        assert list(obj.custom_deck) == ["1", "2", "3"]
        assert obj.custom_deck["3"].face_url == "https://img/mountain.jpg"
        assert [c.card_id for c in obj.contained_objects] == [100, 200, 300]
        assert [c.nickname for c in obj.contained_objects] == ["Lightning Bolt", "Lightning Bolt", "Mountain"]
        assert obj.transform.rot_z == 180.0

    def test_double_faced_card(self) -> None:
        deck = Deck("Tempo", [_dfc(), Card("Island", "https://img/island.jpg")], back_url=BACK)

        obj = TableObjectBuilder().build(deck).object_states[0]

        first = obj.contained_objects[0]
        assert list(first.states) == [ALTERNATE_STATE_KEY]
        back = first.states[ALTERNATE_STATE_KEY]
        assert back.nickname == "Insectile Aberration"
        assert back.object_type is ObjectType.CARD
        assert back.custom_deck["1"].face_url == "https://img/aberration.jpg"
        assert back.custom_deck["1"].back_url == BACK
        assert not back.states
        assert not obj.contained_objects[2].states


class TestDeckWithTemplate:
    def test_ids_come_from_the_atlas(self) -> None:
        deck = Deck(
            "Tempo",
            [Card("Lightning Bolt", "https://img/bolt.jpg", count=3), _dfc(), Card("Island", "https://img/island.jpg")],
            back_url=BACK,
            atlas=_atlas(),
        )

        obj = TableObjectBuilder().build(deck).object_states[0]

        assert obj.deck_ids == [100, 100, 100, 101, 101, 200]
        assert set(obj.custom_deck) == {"1", "2"}
        assert obj.custom_deck["1"].face_url == "https://img/template1.jpg"
        assert (obj.custom_deck["1"].num_width, obj.custom_deck["1"].num_height) == (2, 2)
        assert obj.custom_deck["2"].face_url == "https://img/template2.jpg"
        assert len(obj.contained_objects) == 6

        delver = obj.contained_objects[3]
        assert delver.card_id == 101
        back = delver.states[ALTERNATE_STATE_KEY]
        assert back.card_id == 102
        assert list(back.custom_deck) == ["1"]
        assert not back.states

    def test_single_card_with_atlas(self) -> None:
        deck = Deck("Island", [Card("Island", "https://img/island.jpg")], atlas=_atlas())

        obj = TableObjectBuilder().build(deck).object_states[0]

        assert obj.card_id == 200
        assert obj.custom_deck["2"].face_url == "https://img/template2.jpg"

    def test_missing_image_is_an_error(self) -> None:
        deck = Deck("Broken", [Card("Unknown", "https://img/unknown.jpg"), Card("Island", "https://img/island.jpg")], atlas=_atlas())

        with pytest.raises(AtlasLookupError):
            TableObjectBuilder().build(deck)

    def test_missing_template_is_an_error(self) -> None:
        atlas = _atlas()
        del atlas.sheets[2]
        deck = Deck("Broken", [Card("Island", "https://img/island.jpg")], atlas=atlas)

        with pytest.raises(AtlasLookupError):
            TableObjectBuilder().build(deck)


class TestScale:
    def _deck(self, oversized: list, size: CardSize = CardSize.STANDARD) -> Deck:
        cards = [Card(f"c{i}", f"https://img/{i}.jpg", oversized=o) for i, o in enumerate(oversized)]
        return Deck("Scale", cards, card_size=size)

    def test_standard_deck(self) -> None:
        t = TableObjectBuilder().build(self._deck([False, False])).object_states[0].transform

        assert (t.scale_x, t.scale_y, t.scale_z) == pytest.approx((STANDARD_SCALE_X, 1.0, STANDARD_SCALE_Z))

    def test_all_oversized_deck_is_larger(self) -> None:
        builder = TableObjectBuilder()
        oversized = builder.build(self._deck([True, True])).object_states[0].transform
        mixed = builder.build(self._deck([True, False])).object_states[0].transform

        assert oversized.scale_x > mixed.scale_x
        assert oversized.scale_y > mixed.scale_y
        assert oversized.scale_z > mixed.scale_z
        assert oversized.scale_x == pytest.approx(STANDARD_SCALE_X * STANDARD_OVERSIZED_SCALE)

    def test_oversize_is_per_card_inside_a_mixed_deck(self) -> None:
        obj = TableObjectBuilder().build(self._deck([True, False])).object_states[0]

        assert obj.contained_objects[0].transform.scale_x == pytest.approx(STANDARD_SCALE_X * STANDARD_OVERSIZED_SCALE)
        assert obj.contained_objects[1].transform.scale_x == pytest.approx(STANDARD_SCALE_X)

    def test_small_cards_ignore_oversize(self) -> None:
        obj = TableObjectBuilder().build(self._deck([True, True], CardSize.SMALL)).object_states[0]

        assert (obj.transform.scale_x, obj.transform.scale_y, obj.transform.scale_z) == pytest.approx(
            (SMALL_SCALE_X, 1.0, SMALL_SCALE_Z)
        )
        assert obj.contained_objects[0].transform.scale_z == pytest.approx(SMALL_SCALE_Z)


def test_thumbnail_source_is_first_card() -> None:
    deck = Deck("Tempo", [_dfc(), Card("Island", "https://img/island.jpg")])

    assert thumbnail_source(deck).name == "Delver of Secrets"


def test_empty_deck_has_no_thumbnail_source() -> None:
    assert thumbnail_source(Deck("Empty", [])) is None


def test_empty_deck_is_rejected() -> None:
    with pytest.raises(DeckConverterError, match="no cards"):
        TableObjectBuilder().build(Deck("Empty", [], back_url=BACK))
