"""
Card image cache.

Remote card images are downloaded at most once per run into a scratch folder;
local image files are used in place.
"""

from __future__ import annotations

import hashlib
import logging
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

import requests

from .config import DEFAULT_TIMEOUT, USER_AGENT
from .exceptions import RetrievalError
from .models import Card

logger = logging.getLogger(__name__)

_FILENAME_TABLE = str.maketrans({
    # Illegal on Linux/Unix and Windows
    "/": "-",
    # Illegal on Windows
    "\\": "-",
    ":": "-",
    "*": "-",
    "?": "-",
    '"': "-",
    "<": "(",
    ">": ")",
    "|": "-",
})

_IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp"}


def sanitize_filename(name: str) -> str:
    """Make a name usable as a file name on every platform TTS runs on."""
    return name.translate(_FILENAME_TABLE)


def safe_cache_key(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:12]


def is_remote(reference: str) -> bool:
    return urlparse(reference).scheme in ("http", "https")


def local_path(reference: str) -> Path:
    parsed = urlparse(reference)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(reference)


# ----------------------------
# Request pacing
# ----------------------------

class IntervalGate:
    """
    Keep at least ``interval`` seconds between two permitted calls.

    Passed explicitly to whatever performs remote requests, so that tests can
    use ``IntervalGate(0)``.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def wait(self) -> None:
        if self.interval > 0 and self._last is not None:
            remaining = self.interval - (self._clock() - self._last)
            if remaining > 0:
                self._sleep(remaining)
        self._last = self._clock()


# ----------------------------
# Cache
# ----------------------------

class ImageCache:
    def __init__(
        self,
        cache_dir: Path,
        session: Optional[requests.Session] = None,
        gate: Optional[IntervalGate] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.cache_dir = Path(cache_dir)
        self.session = session or requests.Session()
        self.gate = gate or IntervalGate(0)
        self.timeout = timeout

    def cache_path(self, card: Card) -> Path:
        suffix = Path(urlparse(card.image_url).path).suffix.lower()
        if suffix not in _IMAGE_SUFFIXES:
            suffix = ""
        stem = sanitize_filename(card.name).strip(" .") or "card"
        return self.cache_dir / f"{stem}-{safe_cache_key(card.image_url)}{suffix}"

    def resolve(self, card: Card) -> Path:
        """Return a local file holding the card image, downloading it on a cache miss."""
        ref = card.image_url
        if not is_remote(ref):
            path = local_path(ref)
            if not path.is_file():
                raise RetrievalError(ref, "file not found")
            return path

        path = self.cache_path(card)
        if path.exists():
            logger.debug("File %s already exists, reusing it (card %s)", path, card.name)
            return path

        data = self._download(ref)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(path.name + ".part")
        try:
            partial.write_bytes(data)
            partial.replace(path)
        except OSError as e:
            raise RetrievalError(ref, str(e)) from e

        logger.debug("Downloaded file %s to %s (%d bytes)", ref, path, len(data))
        return path

    def _download(self, url: str) -> bytes:
        self.gate.wait()
        try:
            r = self.session.get(url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            r.raise_for_status()
        except requests.RequestException as e:
            raise RetrievalError(url, str(e)) from e
        return r.content
