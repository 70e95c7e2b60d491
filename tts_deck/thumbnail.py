"""Deck preview images, as shown by TTS in the saved objects chest."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from .exceptions import RetrievalError
from .image_cache import ImageCache
from .models import Card

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 256
# 11 pixel margins on the top and bottom
TOP_BOTTOM_MARGIN = 11
INNER_IMAGE_HEIGHT = THUMBNAIL_SIZE - TOP_BOTTOM_MARGIN * 2


def render_thumbnail(source: Path, out_path: Path) -> None:
    with Image.open(source) as im:
        im = im.convert("RGBA")
    w, h = im.size
    width = max(1, round(w * INNER_IMAGE_HEIGHT / h))
    im = im.resize((width, INNER_IMAGE_HEIGHT), resample=Image.LANCZOS)

    # Landscape images end up wider than the canvas and get cropped on both sides
    background = Image.new("RGBA", (THUMBNAIL_SIZE, THUMBNAIL_SIZE), (0, 0, 0, 0))
    background.paste(im, (THUMBNAIL_SIZE // 2 - width // 2, (THUMBNAIL_SIZE - INNER_IMAGE_HEIGHT) // 2))
    background.save(out_path, format="PNG")


def generate_thumbnail(cache: ImageCache, card: Card, out_path: Path) -> bool:
    """Write the preview image of a deck; failures are logged, never raised."""
    try:
        source = cache.resolve(card)
        render_thumbnail(source, Path(out_path))
    except (RetrievalError, OSError) as e:
        logger.warning("Couldn't create thumbnail %s from %s: %s", out_path, card.image_url, e)
        return False
    logger.info("Generated %s", out_path)
    return True
