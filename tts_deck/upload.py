"""
Publishing of generated templates.

TTS loads template images from URLs. Uploaders take a local template file and
return the URL to write in the deck files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Protocol


class Uploader(Protocol):
    uploader_id: str
    name: str
    description: str

    def upload(self, path: Path, name: str) -> str:
        """Publish ``path`` and return its URL; raise UploadError on failure."""
        ...


class ManualUploader:
    """Leave the template where it is; the user uploads it and fixes the URL by hand."""

    uploader_id = "manual"
    name = "Manual"
    description = "Let the user manually upload the template."

    def upload(self, path: Path, name: str) -> str:
        return "{{ " + str(path) + " }}"


def available_uploaders(*extra: Uploader) -> Dict[str, Uploader]:
    uploaders: Dict[str, Uploader] = {ManualUploader.uploader_id: ManualUploader()}
    for uploader in extra:
        uploaders[uploader.uploader_id] = uploader
    return uploaders
