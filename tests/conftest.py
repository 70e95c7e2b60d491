from pathlib import Path
from typing import Callable, Tuple

import pytest
from PIL import Image

from tts_deck.image_cache import ImageCache, IntervalGate


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Create a solid-color card image and return its path."""
    images = tmp_path / "images"
    images.mkdir()

    def _make(
        name: str,
        size: Tuple[int, int] = (40, 56),
        color: Tuple[int, int, int] = (200, 30, 30),
        fmt: str = "PNG",
    ) -> Path:
        path = images / name
        Image.new("RGB", size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def cache(tmp_path: Path) -> ImageCache:
    return ImageCache(tmp_path / "cache", gate=IntervalGate(0))
