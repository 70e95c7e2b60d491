#!/usr/bin/env python3
"""
make_tts_deck.py

Normalized deck JSON -> Tabletop Simulator saved objects:
1) Load one deck, or a list of related decks (e.g. main deck + sideboard)
2) Optionally download every card image and pack them into JPEG templates
   (at most 10x7 cards each), shared by the related decks
3) Write <deck name>.json (the saved object) and <deck name>.png (thumbnail)
   for each deck

Deck file shape:
  {
    "name": "Burn",
    "back_url": "https://example.com/back.jpg",
    "card_size": "standard",            # or "small"
    "cards": [
      {"name": "Lightning Bolt", "image_url": "https://...", "count": 4},
      {"name": "Delver of Secrets", "image_url": "...", "count": 1,
       "alternative_state": {"name": "Insectile Aberration", "image_url": "..."}}
    ]
  }

TEMPLATES
- Without --template, each card refers to its own image URL.
- With --template, the templates are written next to the deck files and
  referenced as "{{ <path> }}": upload them somewhere public, then replace
  the placeholders with their URLs.

Example:
  python make_tts_deck.py burn.json --output build_tts --template

Dependencies:
  pip install pillow requests
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tts_deck.config import (
    DEFAULT_REQUEST_INTERVAL,
    DEFAULT_TIMEOUT,
    BuildOptions,
    check_create_dir,
    find_chest_path,
)
from tts_deck.exceptions import DeckConverterError
from tts_deck.generate import generate, generate_templates, scratch_cache
from tts_deck.image_cache import IntervalGate
from tts_deck.models import load_decks
from tts_deck.upload import available_uploaders


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Convert normalized deck files to Tabletop Simulator saved objects")
    ap.add_argument("deck_file", type=str, help="Normalized deck JSON file")

    dest = ap.add_mutually_exclusive_group()
    dest.add_argument("--output", type=str, default="", help="Destination folder (defaults to the current folder)")
    dest.add_argument(
        "--chest",
        type=str,
        default=None,
        help='Save to the Tabletop Simulator chest folder (use "/" for the root folder)',
    )

    ap.add_argument("--back-url", type=str, default="", help="Custom URL for the card backs (overrides the deck's)")
    ap.add_argument(
        "--template",
        action="store_true",
        help="Download each image and create deck templates instead of referring to each image individually",
    )
    ap.add_argument(
        "--uploader",
        type=str,
        default="manual",
        choices=sorted(available_uploaders()),
        help="How templates get published",
    )
    ap.add_argument("--no-indent", action="store_true", help="Write compact JSON instead of 2-space indented JSON")
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")
    ap.add_argument(
        "--request-interval",
        type=float,
        default=DEFAULT_REQUEST_INTERVAL,
        help="Minimum delay between two image downloads, in seconds",
    )
    ap.add_argument("--debug", action="store_true", help="Enable debug logging")
    return ap.parse_args(argv)


def resolve_output_folder(args: argparse.Namespace) -> Path:
    if args.chest is not None:
        return check_create_dir(find_chest_path() / args.chest.strip("/"))
    if args.output:
        return check_create_dir(Path(args.output))
    return Path.cwd()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        output_folder = resolve_output_folder(args)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    options = BuildOptions(
        output_folder=output_folder,
        back_url=args.back_url.strip(),
        template=args.template,
        indent=not args.no_indent,
        timeout=args.timeout,
        request_interval=args.request_interval,
    )
    logging.getLogger(__name__).info("Generated files will go in %s", options.output_folder)

    try:
        decks = load_decks(Path(args.deck_file))
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: couldn't load {args.deck_file}: {e}", file=sys.stderr)
        return 1

    uploader = available_uploaders()[args.uploader]
    errors: List[Exception] = []

    with scratch_cache(gate=IntervalGate(options.request_interval), timeout=options.timeout) as cache:
        if options.template:
            try:
                errors += generate_templates(decks, options.output_folder, cache, uploader)
            except DeckConverterError as e:
                print(f"Error: couldn't generate template: {e}", file=sys.stderr)
                return 1

        written, deck_errors = generate(
            decks,
            options.output_folder,
            cache,
            back_url=options.back_url,
            indent=options.indent,
        )
        errors += deck_errors

    for path in written:
        print(f"Wrote: {path}")
    if options.template:
        for deck in decks[:1]:
            for index, sheet in sorted(deck.atlas.sheets.items()):
                print(f"Template {index}: {sheet.url} ({sheet.num_cols}x{sheet.num_rows})")
    for e in errors:
        print(f"Error: {e}", file=sys.stderr)

    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
