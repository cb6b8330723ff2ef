"""
Coaster Stats - Coaster Lookup Service
Resolves a coaster ID for a request, re-fetches the live record from RCDB and
merges in the locally scraped statistics and picture.

The local files are loaded once per process. Non-stat fields always come from
the live record; the local data never stands in for it.
"""

import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from collector.rcdb_client import RcdbClient
from storage.stat_files import StatFileRepository
from utils.config import IMAGE_URL_PREFIX
from utils.logger import logger


class LookupServiceError(Exception):
    """Base class for lookup failures; carries the HTTP status to return."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class DatasetNotLoadedError(LookupServiceError):
    status_code = 500


class CoasterNotFoundError(LookupServiceError):
    status_code = 404


class InvalidLookupRequestError(LookupServiceError):
    status_code = 400


class UpstreamFetchError(LookupServiceError):
    """Live fetch failed; status_code mirrors the upstream response."""
    status_code = 502


@dataclass
class CoasterDataset:
    """
    Scraped data held in memory by the lookup API.

    Attributes:
        stats: statistic name -> {coaster id -> value}
        image_manifest: coaster id -> image filename
        photographer_credits: coaster id -> credit
        known_ids: union of keys across all stat tables
    """
    stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    image_manifest: Dict[str, str] = field(default_factory=dict)
    photographer_credits: Dict[str, str] = field(default_factory=dict)
    known_ids: List[str] = field(init=False)

    def __post_init__(self):
        ids = set()
        for table in self.stats.values():
            ids.update(str(key) for key in table)
        self.known_ids = sorted(ids)
        self._known_set = ids
        self._stat_ids = {name: sorted(str(key) for key in table) for name, table in self.stats.items()}

    @classmethod
    def load(cls, data_dir: Path) -> 'CoasterDataset':
        repository = StatFileRepository(data_dir)
        dataset = cls(
            stats=repository.load_stat_tables(),
            image_manifest=repository.load_image_manifest(),
            photographer_credits=repository.load_photographer_credits(),
        )
        logger.info("Coaster dataset loaded", extra={
            "data_dir": str(data_dir),
            "coaster_count": len(dataset.known_ids),
            "images": len(dataset.image_manifest),
            "stats_loaded": [name for name, table in dataset.stats.items() if table]
        })
        return dataset

    @property
    def is_empty(self) -> bool:
        return not self.known_ids

    def has_coaster(self, coaster_id) -> bool:
        return str(coaster_id) in self._known_set

    def stat_ids(self, stat_name: str) -> List[str]:
        return self._stat_ids.get(stat_name, [])

    def stats_for(self, coaster_id) -> Dict[str, Any]:
        """Every locally known statistic for one coaster (absent stats omitted)."""
        key = str(coaster_id)
        return {
            stat_name: table[key]
            for stat_name, table in self.stats.items()
            if key in table
        }


def resolve_coaster_id(
    dataset: CoasterDataset,
    random_route: bool = False,
    stat: Optional[str] = None,
    coaster_id: Optional[str] = None,
    rng: Optional[random.Random] = None
) -> str:
    """
    Pick the coaster to serve. Checked in order: random route, stat, explicit id.

    Raises:
        DatasetNotLoadedError: Nothing was loaded at startup
        CoasterNotFoundError: Unknown stat or ID
        InvalidLookupRequestError: Request matched no recognised shape
    """
    rng = rng or random

    if dataset.is_empty:
        raise DatasetNotLoadedError(
            "No coaster data found. Did you place the JSON files in the data directory?"
        )

    if random_route:
        return rng.choice(dataset.known_ids)

    if stat:
        candidates = dataset.stat_ids(stat)
        if not candidates:
            raise CoasterNotFoundError(f"No data found for the stat: '{stat}'")
        return rng.choice(candidates)

    if coaster_id:
        if not dataset.has_coaster(coaster_id):
            raise CoasterNotFoundError(f"Coaster with ID {coaster_id} not found in our dataset.")
        return str(coaster_id)

    raise InvalidLookupRequestError("Invalid request. Please use a valid endpoint.")


def resolve_image_url(dataset: CoasterDataset, coaster_id, live_record: Dict) -> Optional[str]:
    """Local picture path if one was scraped, else the live picture URL, else None."""
    filename = dataset.image_manifest.get(str(coaster_id))
    if filename:
        return f"{IMAGE_URL_PREFIX}{filename}"
    picture = live_record.get('mainPicture') or {}
    return picture.get('url') or None


def merge_coaster(dataset: CoasterDataset, coaster_id, live_record: Dict) -> Dict:
    """Live record fields plus ``imageUrl`` and ``stats``."""
    return {
        **live_record,
        'imageUrl': resolve_image_url(dataset, coaster_id, live_record),
        'stats': dataset.stats_for(coaster_id),
    }


class CoasterLookupService:
    """
    Request-time lookup over a loaded dataset.

    Usage:
        ```python
        service = CoasterLookupService(CoasterDataset.load(DATA_DIR), RcdbClient())
        coaster = service.lookup(stat='height')
        ```
    """

    def __init__(self, dataset: CoasterDataset, client: RcdbClient, rng: Optional[random.Random] = None):
        self.dataset = dataset
        self.client = client
        self.rng = rng or random.Random()

    def lookup(
        self,
        random_route: bool = False,
        stat: Optional[str] = None,
        coaster_id: Optional[str] = None
    ) -> Dict:
        """
        Resolve, re-fetch and merge one coaster.

        Raises:
            LookupServiceError: Any failure, with the HTTP status to report
        """
        resolved = resolve_coaster_id(
            self.dataset,
            random_route=random_route,
            stat=stat,
            coaster_id=coaster_id,
            rng=self.rng
        )
        return merge_coaster(self.dataset, resolved, self.fetch_live(resolved))

    def fetch_live(self, coaster_id: str) -> Dict:
        """
        Fetch the live record, mapping failures to lookup errors.

        Raises:
            UpstreamFetchError: Upstream returned an error status (mirrored)
            LookupServiceError: Transport or decoding failure (500)
        """
        message = f"Failed to fetch from RCDB API for ID {coaster_id}."
        try:
            record = self.client.get_coaster(coaster_id)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 502
            logger.warning(message, extra={"coaster_id": coaster_id, "upstream_status": status})
            raise UpstreamFetchError(message, status_code=status) from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Internal server error for ID {coaster_id}: {e}", exc_info=True)
            raise LookupServiceError("An internal server error occurred.") from e

        if record is None:
            raise UpstreamFetchError(message, status_code=404)
        return record
