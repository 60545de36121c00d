"""
Read gas-meter photos from the command line.

Usage:
    python -m gasmeter.cli photo1.jpg photo2.jpg --last 123.4 --out readings.jsonl

Images are read in order; each confirmed reading becomes the hint for
resolving uncertain digits in the next one. One JSON object is printed per
image.

Env: OPENAI_API_KEY (and SUPABASE_URL / SUPABASE_KEY with GASMETER_STAGER=supabase)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from gasmeter.config import get_settings
from gasmeter.errors import MeterReaderError
from gasmeter.main import configure_logging
from gasmeter.media.models import ReadingSession
from gasmeter.media.pipeline import GasMeterReader


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gasmeter", description="Read analog gas meters from photos.")
    ap.add_argument("images", nargs="+", help="JPEG photos of the meter, oldest first")
    ap.add_argument("--last", default="", help="previously confirmed reading used as a hint")
    ap.add_argument("--inline", action="store_true", help="send images inline instead of staging in Supabase")
    ap.add_argument("--out", default=None, help="also append JSON lines to this file")
    ap.add_argument("--timeout", type=float, default=None, help="per-call timeout in seconds")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    if args.inline:
        settings = replace(settings, stager="inline")

    reader = GasMeterReader.from_settings(settings)
    reader.session = ReadingSession(last_reading=args.last)

    for image in args.images:
        path = Path(image)
        if not path.is_file():
            print(f"No file at: {path}", file=sys.stderr)
            return 2

        try:
            result = reader.read(path.read_bytes(), timeout=args.timeout)
        except MeterReaderError as e:
            logging.error("[READ ERROR %s] %s: %s", e.stage, path, e)
            return 1

        line = json.dumps({"image": str(path), **result.to_dict()}, ensure_ascii=False)
        print(line)
        # Appended per image so earlier readings survive a later failure.
        if args.out:
            with open(args.out, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
