"""Run settings and output-folder helpers."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

USER_AGENT = "tts-deck-assembler/1.0"
DEFAULT_TIMEOUT = 25
# Scryfall asks for 50-100 ms between requests
DEFAULT_REQUEST_INTERVAL = 0.1


@dataclass(frozen=True)
class BuildOptions:
    output_folder: Path
    back_url: str = ""
    template: bool = False
    indent: bool = True
    timeout: float = DEFAULT_TIMEOUT
    request_interval: float = DEFAULT_REQUEST_INTERVAL


def check_create_dir(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        logger.info("Output folder %s doesn't exist, creating it", path)
        path.mkdir(parents=True, exist_ok=True)
    elif not path.is_dir():
        raise NotADirectoryError(f"output folder {path} is not a directory")
    return path


def find_chest_path(platform: Optional[str] = None) -> Path:
    """Locate the Tabletop Simulator chest folder (where saved objects live)."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        home = os.environ.get("USERPROFILE", "")
        if not home:
            raise FileNotFoundError("%USERPROFILE% is not set")
        chest = Path(home) / "Documents" / "My Games" / "Tabletop Simulator" / "Saves" / "Saved Objects"
    else:
        home = os.environ.get("HOME", "")
        if not home:
            raise FileNotFoundError("$HOME is not set")
        chest = Path(home) / ".local" / "share" / "Tabletop Simulator" / "Saves" / "Saved Objects"

    logger.debug("Chest path: %s", chest)

    if not chest.exists():
        raise FileNotFoundError(f'chest path "{chest}" doesn\'t exist')
    if not chest.is_dir():
        raise NotADirectoryError(f'chest path "{chest}" is not a directory')
    return chest
