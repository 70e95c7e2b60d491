"""
Deck file generation.

generate_templates() packs the images of related decks into templates and
attaches the resulting AtlasAssignment to each deck; generate() then writes one
TTS saved object (JSON) and one thumbnail (PNG) per deck.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import requests

from .atlas import AtlasPlanner, build_assignment, rasterize_sheet
from .config import DEFAULT_TIMEOUT
from .exceptions import DeckConverterError, UploadError
from .image_cache import ImageCache, IntervalGate, sanitize_filename
from .models import Deck
from .serializer import serialize
from .table_objects import TableObjectBuilder, thumbnail_source
from .thumbnail import generate_thumbnail
from .upload import ManualUploader, Uploader

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def scratch_cache(
    session: Optional[requests.Session] = None,
    gate: Optional[IntervalGate] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Iterator[ImageCache]:
    """Image cache over a temporary folder, removed when the run is done."""
    with tempfile.TemporaryDirectory(prefix="template") as tmp_dir:
        logger.debug("Created temporary directory %s", tmp_dir)
        yield ImageCache(Path(tmp_dir), session=session, gate=gate, timeout=timeout)


def template_output_path(name: str, output_folder: Path, uploader: Uploader) -> Path:
    if uploader.uploader_id != ManualUploader.uploader_id:
        return Path(tempfile.gettempdir()) / f"{name}.jpg"
    return Path(output_folder) / f"{name}.jpg"


def generate_templates(
    decks: List[Deck],
    output_folder: Path,
    cache: ImageCache,
    uploader: Optional[Uploader] = None,
) -> List[Exception]:
    """
    Build, save and publish the templates of a group of related decks.

    Planning errors (RetrievalError, RatioMismatchError, CapacityError) are
    raised. A template that can't be written is reported and left out of the
    assignment; one that can't be uploaded is reported and referenced by its
    local path instead. Returns the reported errors.
    """
    uploader = uploader or ManualUploader()
    errors: List[Exception] = []

    plans = AtlasPlanner(cache).plan(decks)
    urls: Dict[int, str] = {}

    for plan in plans:
        output_path = template_output_path(plan.name, output_folder, uploader)
        logger.debug("Generating template %s (%d images)", output_path, len(plan.entries))
        try:
            rasterize_sheet(plan, output_path)
        except OSError as e:
            logger.error("Couldn't save template to %s: %s", output_path, e)
            errors.append(e)
            continue

        try:
            urls[plan.index] = uploader.upload(output_path, plan.name)
        except UploadError as e:
            logger.error(
                "Couldn't upload %s: %s. Try to upload it manually, and update the URL in the deck file(s)",
                output_path, e,
            )
            errors.append(e)
            urls[plan.index] = ManualUploader().upload(output_path, plan.name)
            continue

        if uploader.uploader_id != ManualUploader.uploader_id:
            logger.debug("Deleting template file %s", output_path)
            try:
                output_path.unlink()
            except OSError as e:
                errors.append(e)

    assignment = build_assignment([p for p in plans if p.index in urls], urls)
    for deck in decks:
        deck.atlas = assignment
    return errors


def write_document(path: Path, data: bytes) -> None:
    """Write the whole file or nothing."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


def generate(
    decks: List[Deck],
    output_folder: Path,
    cache: ImageCache,
    back_url: str = "",
    indent: bool = True,
) -> Tuple[List[Path], List[Exception]]:
    """
    Write ``<deck name>.json`` and ``<deck name>.png`` for each deck.

    A deck that can't be built is reported and skipped; file system errors
    are raised.
    """
    output_folder = Path(output_folder)
    builder = TableObjectBuilder()
    written: List[Path] = []
    errors: List[Exception] = []

    for deck in decks:
        if back_url:
            deck.back_url = back_url

        try:
            data = serialize(builder.build(deck), indent=indent)
        except DeckConverterError as e:
            logger.error("Couldn't build deck %s: %s", deck.name, e)
            errors.append(e)
            continue

        name = sanitize_filename(deck.name)
        path = output_folder / f"{name}.json"
        logger.info("Generating %s", path)
        write_document(path, data)
        written.append(path)

        source = thumbnail_source(deck)
        if source is not None:
            generate_thumbnail(cache, source, output_folder / f"{name}.png")

    logger.info("Generated %d decks", len(written))
    return written, errors
