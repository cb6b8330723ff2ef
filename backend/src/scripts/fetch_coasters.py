#!/usr/bin/env python3
"""
Coaster Stats - Coaster Scrape Script
Walks the RCDB ID range, downloads each coaster's main picture and records
the allow-listed statistics into the JSON files read by the lookup API.

IDs are processed in consecutive groups of --concurrency; every coaster in a
group is fetched concurrently and the whole group finishes before the next
one starts, so at most that many requests are ever in flight.

Usage:
    python -m scripts.fetch_coasters [--start N] [--end N] [--concurrency N]

Progress markers:
    -  not found / upstream error
    .  record has no name or no picture
    +  picture downloaded
    =  picture already on disk (skipped)
    !  failed (see logs/error.log)

Environment:
    PYTHONPATH should include backend/src
"""

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import requests

from collector.image_fetcher import ImageFetcher, ImageDownloadError
from collector.rcdb_client import RcdbClient
from collector.stat_extractor import extract_stats
from collector.stat_store import StatStore
from storage.stat_files import StatFileRepository
from utils.config import (
    SCRAPE_START_ID,
    SCRAPE_END_ID,
    CONCURRENT_LIMIT,
    DATA_DIR,
    IMAGE_DIR,
    LOG_DIR,
)
from utils.logger import logger, RunLogFiles, log_scrape_start, log_scrape_complete

PROGRESS_EVERY = 100

# Outcome -> console marker
MARKERS = {
    'not_found': '-',
    'upstream_error': '-',
    'no_image': '.',
    'downloaded': '+',
    'skipped': '=',
    'failed': '!',
}


def id_groups(start_id: int, end_id: int, width: int) -> Iterator[List[int]]:
    """
    Split the inclusive range [start_id, end_id] into consecutive groups.

        >>> list(id_groups(1, 5, 2))
        [[1, 2], [3, 4], [5]]
    """
    if width < 1:
        raise ValueError("width must be at least 1")
    for first in range(start_id, end_id + 1, width):
        yield list(range(first, min(first + width, end_id + 1)))


class CoasterScraper:
    """
    Batch driver for one scrape run.

    Usage:
        ```python
        scraper = CoasterScraper()
        counts = scraper.run(1, 23211, concurrency=15)
        ```
    """

    def __init__(
        self,
        client: Optional[RcdbClient] = None,
        data_dir: Path = DATA_DIR,
        image_dir: Path = IMAGE_DIR,
        log_dir: Path = LOG_DIR,
        out=None
    ):
        self.client = client or RcdbClient()
        self.repository = StatFileRepository(data_dir)
        self.image_fetcher = ImageFetcher(image_dir, client=self.client)
        self.run_logs = RunLogFiles(log_dir)
        self.store = StatStore(on_insert=self._log_insert)
        self.out = out or sys.stdout
        self.counts = self._empty_counts()

    @staticmethod
    def _empty_counts() -> Dict[str, int]:
        counts = {'processed': 0}
        counts.update({outcome: 0 for outcome in MARKERS})
        return counts

    def run(self, start_id: int, end_id: int, concurrency: int = CONCURRENT_LIMIT) -> Dict[str, int]:
        """
        Scrape [start_id, end_id] and persist the results.

        Returns:
            Outcome counts for the run
        """
        started = time.monotonic()
        self.store = StatStore(on_insert=self._log_insert)
        self.counts = self._empty_counts()

        self.run_logs.start_session()
        self.repository.reset()
        self.image_fetcher.image_dir.mkdir(parents=True, exist_ok=True)
        log_scrape_start(start_id, end_id, concurrency)

        self._print(f"Fetching IDs from {start_id} to {end_id}.\n")
        self._print("Progress: [-: Not Found, .: No Image, +: Downloaded, =: Image Skipped, !: Failed]\n")

        try:
            with ThreadPoolExecutor(max_workers=concurrency) as executor:
                for group in id_groups(start_id, end_id, concurrency):
                    futures = [executor.submit(self.process_coaster, coaster_id) for coaster_id in group]
                    # Barrier: the next group waits for this one
                    wait(futures)
                    for future in futures:
                        self._record(future.result())

            self._print("\n\nSaving all collected data to files...\n")
            self.run_logs.data("--- Starting final save process ---")
            failures = self.repository.save_all(self.store)
            for filename in failures:
                self.run_logs.error(f"Failed during final save process: {filename}")
            if not failures:
                self._print("   -> All data files saved successfully.\n")
        finally:
            self.run_logs.close()

        log_scrape_complete(time.monotonic() - started, self.counts)
        return dict(self.counts)

    def process_coaster(self, coaster_id: int) -> str:
        """
        Full pipeline for one ID: fetch -> gate on name+picture -> image -> stats.

        Never raises; every failure is turned into an outcome string.
        """
        if coaster_id > 0 and coaster_id % PROGRESS_EVERY == 0:
            self._print(f"\n[Progress] Processing coaster ID: {coaster_id}...\n")

        try:
            try:
                record = self.client.get_coaster(coaster_id)
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else 'unknown'
                self.run_logs.error(f"API Warning for ID {coaster_id}: status {status}")
                return 'upstream_error'

            if record is None:
                return 'not_found'

            picture = record.get('mainPicture') or {}
            if not record.get('name') or not picture.get('url'):
                return 'no_image'

            record_id = record.get('id', coaster_id)
            result = self.image_fetcher.fetch(picture['url'], record_id)
            self.store.set_image(record_id, result.filename)

            if picture.get('copyName'):
                self.store.set_credit(record_id, picture['copyName'])

            self.store.add_stats(record_id, extract_stats(record))

            self.run_logs.success(f"Processed Coaster ID {coaster_id} ({record['name']})")
            return 'skipped' if result.skipped else 'downloaded'

        except ImageDownloadError as e:
            # Already reported by the fetcher
            self.run_logs.error(str(e), echo=False)
            return 'failed'
        except Exception as e:
            # Continue-on-error policy: one coaster never aborts the run
            self.run_logs.error(f"Coaster ID {coaster_id}: {type(e).__name__}: {e}")
            return 'failed'

    def _record(self, outcome: str) -> None:
        self.counts['processed'] += 1
        self.counts[outcome] += 1
        self._print(MARKERS[outcome])

    def _log_insert(self, coaster_id: str, stat_name: str, value) -> None:
        self.run_logs.data(f"Coaster ID {coaster_id}: Found '{stat_name}' with value \"{value}\"")

    def _print(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Scrape coaster pictures and statistics from the RCDB API'
    )
    parser.add_argument('--start', type=int, default=SCRAPE_START_ID, help='First coaster ID (inclusive)')
    parser.add_argument('--end', type=int, default=SCRAPE_END_ID, help='Last coaster ID (inclusive)')
    parser.add_argument(
        '--concurrency',
        type=int,
        default=CONCURRENT_LIMIT,
        help='Number of coasters fetched concurrently per group'
    )
    args = parser.parse_args()

    if args.concurrency < 1 or args.end < args.start:
        parser.error("--concurrency must be >= 1 and --end must be >= --start")

    logger.info("=" * 60)
    logger.info("COASTER SCRAPE - Starting")
    logger.info("=" * 60)

    try:
        scraper = CoasterScraper()
        counts = scraper.run(args.start, args.end, args.concurrency)
    except Exception as e:
        logger.error(f"Fatal error during scrape: {e}", exc_info=True)
        sys.exit(1)

    logger.info(
        f"Scrape summary: {counts['downloaded']} downloaded, {counts['skipped']} skipped, "
        f"{counts['no_image']} without picture, {counts['not_found']} not found, "
        f"{counts['upstream_error']} upstream errors, {counts['failed']} failed"
    )
    logger.info("=" * 60)
    logger.info("COASTER SCRAPE - Complete. Check the public, data and logs directories.")
    logger.info("=" * 60)


if __name__ == '__main__':
    main()
