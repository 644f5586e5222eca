"""
Job to export rarity rankings.

Loads the collection, computes OpenRarity scores and writes them as JSON
ordered by rank:

    {"1234": {"rank": 1, "score": 0.91, "traits": {"body": "Red", ...}}, ...}

Can be run as a standalone script or called from a scheduler.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from kamigallery.models.failure import CorpusLoadError
from kamigallery.services.data_source import (
    CorpusSource,
    HttpCorpusSource,
    LocalCorpusSource,
    source_from_settings,
)
from kamigallery.services.gallery_store import GallerySnapshot, GalleryStore

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("rankings.json")


def rankings_payload(snapshot: GallerySnapshot) -> dict[str, dict[str, Any]]:
    """Rank-ordered {id: {rank, score, traits}} for a snapshot."""
    ordered = sorted(snapshot.rarity.items(), key=lambda entry: entry[1].rank)

    payload: dict[str, dict[str, Any]] = {}
    for item_id, record in ordered:
        item = snapshot.corpus.get(item_id)
        payload[item_id] = {
            "rank": record.rank,
            "score": round(record.score, 6),
            "traits": (
                {category: value.name for category, value in item.traits.items()}
                if item is not None
                else {}
            ),
        }
    return payload


async def export_rankings(source: CorpusSource, output: Path) -> int:
    """
    Load the collection and write its rankings.

    Args:
        source: Where to fetch the collection files
        output: Destination JSON file

    Returns:
        Number of items written

    Raises:
        CorpusLoadError: If the collection cannot be loaded
    """
    store = GalleryStore(source)
    snapshot = await store.load()
    if snapshot is None:
        return 0

    payload = rankings_payload(snapshot)

    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info("Wrote %d rankings to %s", len(payload), output)
    return len(payload)


def main() -> None:
    """CLI entrypoint for exporting rarity rankings."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Export Kamigotchi rarity rankings")
    location = parser.add_mutually_exclusive_group()
    location.add_argument(
        "--data-dir",
        type=Path,
        help="Directory containing the collection JSON files",
    )
    location.add_argument(
        "--url",
        help="Base URL serving the collection JSON files",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Output file (default: {DEFAULT_OUTPUT})",
    )

    args = parser.parse_args()

    source: CorpusSource
    if args.url:
        source = HttpCorpusSource(args.url)
    elif args.data_dir:
        source = LocalCorpusSource(args.data_dir)
    else:
        source = source_from_settings()

    try:
        count = asyncio.run(export_rankings(source, args.output))
    except CorpusLoadError as e:
        logger.error("Export failed: %s", e.message)
        sys.exit(1)

    print(f"Exported {count} rankings to {args.output}")


if __name__ == "__main__":
    main()
