"""Build Tabletop Simulator saved objects and card templates from decks."""

from .exceptions import (
    AtlasLookupError,
    CapacityError,
    DeckConverterError,
    RatioMismatchError,
    RetrievalError,
    UploadError,
)
from .generate import generate, generate_templates, scratch_cache
from .models import AtlasAssignment, AtlasSheet, Card, CardSize, Deck, load_decks

__version__ = "0.1.0"

__all__ = [
    "AtlasAssignment",
    "AtlasLookupError",
    "AtlasSheet",
    "CapacityError",
    "Card",
    "CardSize",
    "Deck",
    "DeckConverterError",
    "RatioMismatchError",
    "RetrievalError",
    "UploadError",
    "generate",
    "generate_templates",
    "load_decks",
    "scratch_cache",
]
