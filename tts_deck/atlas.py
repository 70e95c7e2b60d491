"""
Template (sprite sheet) packing.

All the images required to display a group of related decks are laid out in
rows and columns on one or more JPEG templates, like the files produced by the
TTS Deck Editor. Each distinct image gets a card ID: template N holds the IDs
100*N, 100*N + 1, ... in row-major order.
See https://kb.tabletopsimulator.com/custom-content/custom-deck/.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

from .exceptions import CapacityError, RatioMismatchError, RetrievalError
from .image_cache import ImageCache, sanitize_filename
from .models import AtlasAssignment, AtlasSheet, Card, Deck

logger = logging.getLogger(__name__)

STARTING_ID = 100
MAX_TEMPLATE_COLS = 10
MAX_TEMPLATE_ROWS = 7
MAX_TEMPLATE_COUNT = MAX_TEMPLATE_COLS * MAX_TEMPLATE_ROWS


# ----------------------------
# Grid geometry
# ----------------------------

def grid_size(count: int) -> Tuple[int, int]:
    """
    Columns and rows of a template holding ``count`` images.

    Close to a square, but wider than tall when it has to choose.
    """
    if count > MAX_TEMPLATE_COUNT:
        raise CapacityError(
            f"too many elements in template: {count} (should be at most {MAX_TEMPLATE_COUNT})"
        )

    if count > MAX_TEMPLATE_COUNT - MAX_TEMPLATE_ROWS:
        return MAX_TEMPLATE_COLS, MAX_TEMPLATE_ROWS

    root = math.sqrt(count)
    integer = math.floor(root)
    fraction = root - integer
    if fraction == 0:
        return integer, integer
    if fraction > 0.5:
        return math.ceil(root) + 1, integer
    return math.ceil(root), integer


# ----------------------------
# Planning
# ----------------------------

@dataclass(frozen=True)
class SheetEntry:
    card_id: int
    image_url: str
    path: Path


@dataclass
class SheetPlan:
    index: int
    name: str
    entries: List[SheetEntry]
    num_cols: int
    num_rows: int
    cell_width: int
    cell_height: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.num_cols * self.cell_width, self.num_rows * self.cell_height


def image_size(path: Path) -> Tuple[int, int]:
    # Only the header is read here
    with Image.open(path) as im:
        return im.size


class AtlasPlanner:
    def __init__(self, cache: ImageCache, ratio_tolerance: float = 0.0):
        # 0 requires the exact same width/height ratio; a relative tolerance
        # lets near-identical scans share a template, stretched to the cell
        self.cache = cache
        self.ratio_tolerance = ratio_tolerance

    def plan(self, decks: List[Deck]) -> List[SheetPlan]:
        """
        Split the distinct images of related decks into templates.

        Card images are fetched through the cache, in deck and card order.
        A card and its alternative state always end up on the same template.
        """
        units = self._collect_units(decks)
        groups = self._cut(units)
        if not groups:
            return []

        base_name = sanitize_filename(decks[0].name) + " - Template"
        plans: List[SheetPlan] = []
        for index, cards in enumerate(groups, start=1):
            entries = [
                SheetEntry(STARTING_ID * index + offset, card.image_url, self.cache.resolve(card))
                for offset, card in enumerate(cards)
            ]
            cell_width, cell_height = self._cell_size(entries)
            num_cols, num_rows = grid_size(len(entries))
            name = base_name if index == 1 else f"{base_name} {index}"
            plans.append(SheetPlan(index, name, entries, num_cols, num_rows, cell_width, cell_height))

        logger.debug("Planned %d template(s) for %d image(s)", len(plans), sum(len(g) for g in groups))
        return plans

    @staticmethod
    def _collect_units(decks: List[Deck]) -> List[List[Card]]:
        # A unit is a card plus its alternative state, minus images already seen
        seen = set()
        units: List[List[Card]] = []
        for deck in decks:
            for card in deck.cards:
                unit: List[Card] = []
                for face in (card, card.alternative_state):
                    if face is None or face.image_url in seen:
                        continue
                    seen.add(face.image_url)
                    unit.append(face)
                if unit:
                    units.append(unit)
        return units

    @staticmethod
    def _cut(units: List[List[Card]]) -> List[List[Card]]:
        groups: List[List[Card]] = []
        current: List[Card] = []
        for unit in units:
            if len(unit) > MAX_TEMPLATE_COUNT:
                raise CapacityError(f"{len(unit)} linked images cannot fit in a single template")
            if len(current) + len(unit) > MAX_TEMPLATE_COUNT:
                logger.debug("Cut template number %d at %d images", len(groups) + 1, len(current))
                groups.append(current)
                current = []
            current.extend(unit)
        if current:
            groups.append(current)
        return groups

    def _cell_size(self, entries: List[SheetEntry]) -> Tuple[int, int]:
        max_width = max_height = 0
        ratio: Optional[float] = None

        for entry in entries:
            try:
                width, height = image_size(entry.path)
            except OSError as e:
                raise RetrievalError(entry.image_url, f"couldn't decode image {entry.path}: {e}") from e

            if ratio is None:
                max_width, max_height = width, height
                ratio = width / height
            elif (width, height) != (max_width, max_height):
                if not math.isclose(width / height, ratio, rel_tol=self.ratio_tolerance):
                    raise RatioMismatchError(
                        f"the images don't all have the same ratio "
                        f"({entry.image_url} is {width}x{height}, expected ratio {ratio:.4f})"
                    )
                if width > max_width or height > max_height:
                    max_width, max_height = width, height

        logger.debug("Image parsing done: %dx%d cells, ratio %s, %d images", max_width, max_height, ratio, len(entries))
        return max_width, max_height


def build_assignment(plans: List[SheetPlan], urls: Dict[int, str]) -> AtlasAssignment:
    """Card IDs and template descriptors for planned templates, given their final URLs."""
    assignment = AtlasAssignment()
    for plan in plans:
        for entry in plan.entries:
            assignment.card_ids[entry.image_url] = entry.card_id
        assignment.sheets[plan.index] = AtlasSheet(urls.get(plan.index, ""), plan.num_cols, plan.num_rows)
    return assignment


# ----------------------------
# Rasterizing
# ----------------------------

def flatten_to_rgb(im: Image.Image) -> Image.Image:
    if im.mode in ("RGBA", "LA", "P"):
        im = im.convert("RGBA")
        bg = Image.new("RGBA", im.size, (255, 255, 255, 255))
        bg.alpha_composite(im)
        return bg.convert("RGB")
    return im.convert("RGB")


def rasterize_sheet(plan: SheetPlan, output_path: Path) -> Path:
    width, height = plan.size
    logger.info(
        "We have %d items, so create a %d×%d template (%d×%d pixels)",
        len(plan.entries), plan.num_cols, plan.num_rows, width, height,
    )

    sheet = Image.new("RGB", (width, height), (255, 255, 255))
    cell = (plan.cell_width, plan.cell_height)

    for j, entry in enumerate(plan.entries):
        with Image.open(entry.path) as source:
            im = flatten_to_rgb(source)
        if im.size != cell:
            # Resize the image so it fits the template
            im = im.resize(cell, resample=Image.LANCZOS)
        x = (j % plan.num_cols) * plan.cell_width
        y = (j // plan.num_cols) * plan.cell_height
        sheet.paste(im, (x, y))

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet.save(output_path, format="JPEG", quality=100)
    return output_path
