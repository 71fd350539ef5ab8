#!/usr/bin/env python3
"""
Flatten a saved JSON-stat response into chart-ready JSON.

Reads a PXWeb JSON-stat payload from disk (no network access), flattens it
with the configuration of the given dataset and prints the result wrapped
in the {success, data} envelope.

Usage:
    python scripts/flatten_jsonstat.py response.json --dataset municipal-waste --lang en
    python scripts/flatten_jsonstat.py --list
"""

import os
import sys
import json
import argparse
import logging
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geostat.config.datasets import list_datasets
from geostat.config.settings import EngineSettings
from geostat.cube.jsonstat import JsonStatCube
from geostat.errors import GeostatError, error_envelope
from geostat.flatten.engine import Flattener


def print_catalogue():
    """Print the dataset catalogue."""
    print(f"{'id':36} {'category':12} name")
    print("-" * 72)
    for entry in list_datasets():
        print(f"{entry['id']:36} {entry['category'] or '':12} {entry['name']}")


def main():
    parser = argparse.ArgumentParser(description="Flatten a JSON-stat file")
    parser.add_argument("path", nargs="?", help="JSON-stat file to read")
    parser.add_argument("--dataset", default=None, help="Dataset id selecting the configuration")
    parser.add_argument("--lang", choices=["ka", "en"], default=None,
                        help="Language of the payload and of calculated-field labels")
    parser.add_argument("--frame", action="store_true",
                        help="Print the rows as a table instead of JSON")
    parser.add_argument("--list", action="store_true", help="List configured datasets and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        print_catalogue()
        return 0

    if not args.path:
        parser.error("a JSON-stat file is required unless --list is given")

    settings = EngineSettings.from_env()
    lang = args.lang or settings.default_language
    payload = json.loads(Path(args.path).read_text(encoding="utf-8"))

    try:
        cube = JsonStatCube.from_payload(payload, language=lang)
        result = Flattener(settings).flatten(cube, args.dataset, lang)
    except GeostatError as e:
        print(json.dumps(error_envelope(e), ensure_ascii=False, indent=2))
        return 1

    if args.frame:
        print(result.to_frame(labels=True).to_string())
    else:
        print(json.dumps(result.to_envelope(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
