"""JSON rendering of a SaveDocument, with the field names and order TTS writes."""

from __future__ import annotations

import json
import struct
from typing import Any, Dict, List, Tuple

from .table_objects import ColorDiffuse, CustomDeck, SaveDocument, TableObject, Transform


def ordered_custom_decks(custom_deck: Dict[str, CustomDeck]) -> List[Tuple[int, CustomDeck]]:
    """
    CustomDeck entries sorted by their integer key.

    The keys are strings holding integers, and TTS expects them in numeric
    order ("2" before "10").
    """
    pairs = []
    for key, value in custom_deck.items():
        try:
            pairs.append((int(key), value))
        except ValueError:
            raise ValueError(f"CustomDeck key is not an integer: {key!r}") from None
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def single_precision(value: float) -> float:
    """
    The shortest decimal that reads back as the same 32-bit float.

    TTS stores transforms and colors as 32-bit floats, so 63.5 / 56 is written
    as 1.1339285 rather than 1.1339285714285714.
    """
    packed = struct.pack("<f", value)
    single = struct.unpack("<f", packed)[0]
    for digits in range(1, 10):
        candidate = float(f"{single:.{digits}g}")
        if struct.pack("<f", candidate) == packed:
            return candidate
    return single


def transform_to_dict(t: Transform) -> Dict[str, float]:
    return {
        "posX": single_precision(t.pos_x),
        "posY": single_precision(t.pos_y),
        "posZ": single_precision(t.pos_z),
        "rotX": single_precision(t.rot_x),
        "rotY": single_precision(t.rot_y),
        "rotZ": single_precision(t.rot_z),
        "scaleX": single_precision(t.scale_x),
        "scaleY": single_precision(t.scale_y),
        "scaleZ": single_precision(t.scale_z),
    }


def color_to_dict(c: ColorDiffuse) -> Dict[str, float]:
    return {"r": single_precision(c.r), "g": single_precision(c.g), "b": single_precision(c.b)}


def custom_deck_to_dict(cd: CustomDeck) -> Dict[str, Any]:
    return {
        "FaceURL": cd.face_url,
        "BackURL": cd.back_url,
        "NumWidth": cd.num_width,
        "NumHeight": cd.num_height,
        "BackIsHidden": cd.back_is_hidden,
        "UniqueBack": cd.unique_back,
        "Type": int(cd.shape),
    }


def object_to_dict(obj: TableObject) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "Name": obj.object_type.value,
        "Transform": transform_to_dict(obj.transform),
        "Nickname": obj.nickname,
        "Description": obj.description,
        "GMNotes": obj.gm_notes,
        "ColorDiffuse": color_to_dict(obj.color_diffuse),
        "Locked": obj.locked,
        "Grid": obj.grid,
        "Snap": obj.snap,
        "IgnoreFoW": obj.ignore_fow,
        "MeasureMovement": obj.measure_movement,
        "DragSelectable": obj.drag_selectable,
        "Autoraise": obj.autoraise,
        "Sticky": obj.sticky,
        "Tooltip": obj.tooltip,
        "GridProjection": obj.grid_projection,
        "HideWhenFaceDown": obj.hide_when_face_down,
        "Hands": obj.hands,
    }
    # Empty values are left out, like TTS does
    if obj.card_id:
        out["CardID"] = obj.card_id
    out["SidewaysCard"] = obj.sideways_card
    if obj.deck_ids:
        out["DeckIDs"] = list(obj.deck_ids)
    if obj.custom_deck:
        out["CustomDeck"] = {
            str(key): custom_deck_to_dict(value) for key, value in ordered_custom_decks(obj.custom_deck)
        }
    out["XmlUI"] = obj.xml_ui
    out["LuaScript"] = obj.lua_script
    out["LuaScriptState"] = obj.lua_script_state
    if obj.contained_objects:
        out["ContainedObjects"] = [object_to_dict(o) for o in obj.contained_objects]
    if obj.states:
        out["States"] = {key: object_to_dict(state) for key, state in obj.states.items()}
    out["GUID"] = obj.guid
    return out


def document_to_dict(doc: SaveDocument) -> Dict[str, Any]:
    return {
        "SaveName": doc.save_name,
        "GameMode": doc.game_mode,
        "Gravity": single_precision(doc.gravity),
        "PlayArea": single_precision(doc.play_area),
        "Date": doc.date,
        "Table": doc.table,
        "Sky": doc.sky,
        "Note": doc.note,
        "Rules": doc.rules,
        "LuaScript": doc.lua_script,
        "LuaScriptState": doc.lua_script_state,
        "XmlUI": doc.xml_ui,
        "ObjectStates": [object_to_dict(o) for o in doc.object_states],
        "TabStates": {},
        "VersionNumber": doc.version_number,
    }


def serialize(doc: SaveDocument, indent: bool = True) -> bytes:
    if indent:
        text = json.dumps(document_to_dict(doc), indent=2, ensure_ascii=False)
    else:
        text = json.dumps(document_to_dict(doc), separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8")
