#!/usr/bin/env python3
"""
Seed the music_recommendations collection with the default records.

Not idempotent: every run adds another copy of each record.
"""
import logging
import sys

from dotenv import load_dotenv
from google.cloud import firestore

from mindspace.services.music_service import MusicRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)


def main() -> int:
    load_dotenv()
    try:
        added = MusicRepository(firestore.Client()).seed_music_recommendations()
    except Exception as e:
        logging.error(f"❌ Error initializing music recommendations: {e}", exc_info=True)
        return 1
    logging.info(f"Added {added} recommendations")
    return 0


if __name__ == "__main__":
    sys.exit(main())
