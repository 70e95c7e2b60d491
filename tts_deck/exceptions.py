"""Errors raised while packing templates and assembling TTS documents."""

from __future__ import annotations


class DeckConverterError(Exception):
    pass


class RetrievalError(DeckConverterError):
    """A card image couldn't be fetched (remote) or found (local)."""

    def __init__(self, reference: str, reason: str):
        super().__init__(f"couldn't retrieve {reference}: {reason}")
        self.reference = reference
        self.reason = reason


class RatioMismatchError(DeckConverterError):
    """Images destined for the same template don't share an aspect ratio."""


class CapacityError(DeckConverterError):
    """More images than a single template can hold."""


class AtlasLookupError(DeckConverterError):
    """A card image or card ID has no location in the attached templates."""


class UploadError(DeckConverterError):
    pass
