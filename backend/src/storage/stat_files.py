"""
Coaster Stats - Stat File Repository
Reads and writes the JSON files shared by the scraper and the lookup API.

Files under DATA_DIR:
    coaster-<stat>.json        coaster id -> value, one per allow-listed stat
    image-manifest.json        coaster id -> image filename
    photographer-credits.json  coaster id -> credit
"""

import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List

from collector.stat_extractor import ALLOWED_STATS
from collector.stat_store import StatStore
from utils.logger import logger

IMAGE_MANIFEST_FILE = 'image-manifest.json'
PHOTOGRAPHER_CREDITS_FILE = 'photographer-credits.json'


def stat_filename(stat_name: str) -> str:
    return f"coaster-{stat_name}.json"


def write_json(path: Path, data: Dict) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding='utf-8')


def load_json_data(data_dir: Path, filename: str) -> Dict[str, Any]:
    """
    Load one JSON mapping, returning {} when the file is missing or unreadable.
    """
    path = Path(data_dir) / filename
    if not path.exists():
        logger.warning(f"Data file not found: {filename}")
        return {}
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading {filename}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"Error loading {filename}: expected a JSON object")
        return {}
    return data


class StatFileRepository:
    """
    Persistence for one data directory.

    Usage:
        ```python
        repo = StatFileRepository(DATA_DIR)
        repo.reset()            # start of a scrape run
        failures = repo.save_all(store)   # end of the run
        tables = repo.load_stat_tables()  # lookup API startup
        ```
    """

    def __init__(self, data_dir: Path, max_workers: int = 8):
        self.data_dir = Path(data_dir)
        self.max_workers = max_workers

    def reset(self) -> None:
        """Create the directory and blank every stat file to ``{}``."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for stat_name in ALLOWED_STATS:
            (self.data_dir / stat_filename(stat_name)).write_text('{}', encoding='utf-8')
        logger.info(f"Empty data files created in {self.data_dir}")

    def save_all(self, store: StatStore) -> List[str]:
        """
        Write every non-empty stat table plus the manifest and credits files.

        All writes are dispatched together and joined; one failing write is
        logged and does not stop the others.

        Returns:
            Filenames whose write failed (empty on full success)
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)

        pending: Dict[str, Dict] = {}
        for stat_name in ALLOWED_STATS:
            table = store.table(stat_name)
            if table:
                pending[stat_filename(stat_name)] = table
        pending[IMAGE_MANIFEST_FILE] = store.image_manifest
        pending[PHOTOGRAPHER_CREDITS_FILE] = store.photographer_credits

        failures: List[str] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {
                executor.submit(write_json, self.data_dir / filename, data): filename
                for filename, data in pending.items()
            }
            for future in as_completed(future_to_file):
                filename = future_to_file[future]
                try:
                    future.result()
                except (OSError, TypeError, ValueError) as e:
                    logger.error(f"Failed to save {filename}: {e}")
                    failures.append(filename)

        logger.info("Data files saved", extra={
            "files_written": len(pending) - len(failures),
            "files_failed": len(failures)
        })
        return sorted(failures)

    def load_stat_tables(self) -> Dict[str, Dict[str, Any]]:
        """Load every allow-listed stat table (missing files load as empty)."""
        return {
            stat_name: load_json_data(self.data_dir, stat_filename(stat_name))
            for stat_name in ALLOWED_STATS
        }

    def load_image_manifest(self) -> Dict[str, str]:
        return load_json_data(self.data_dir, IMAGE_MANIFEST_FILE)

    def load_photographer_credits(self) -> Dict[str, str]:
        return load_json_data(self.data_dir, PHOTOGRAPHER_CREDITS_FILE)
