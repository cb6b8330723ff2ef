"""
Coaster Stats - Scrape Accumulator
In-memory stat tables, image manifest and photographer credits built by one run.
"""

from threading import Lock
from typing import Any, Callable, Dict, Optional, Set

from collector.stat_extractor import ALLOWED_STATS


class StatStore:
    """
    Mutable accumulator passed to every per-coaster pipeline of a run.

    Each pipeline only writes keys for its own coaster ID, and IDs are
    partitioned disjointly across concurrent workers. The lock serialises
    the dict mutations themselves since workers are real threads.

    Attributes:
        stats: statistic name -> {coaster id -> value}
        image_manifest: coaster id -> stored image filename
        photographer_credits: coaster id -> credit string
    """

    def __init__(self, on_insert: Optional[Callable[[str, str, Any], None]] = None):
        """
        Args:
            on_insert: Called with (coaster_id, stat_name, value) after every
                       stat insertion, used for the data audit log
        """
        self.stats: Dict[str, Dict[str, Any]] = {}
        self.image_manifest: Dict[str, str] = {}
        self.photographer_credits: Dict[str, str] = {}
        self._on_insert = on_insert
        self._lock = Lock()

    def add_stat(self, coaster_id, stat_name: str, value: Any) -> None:
        if stat_name not in ALLOWED_STATS:
            raise ValueError(f"'{stat_name}' is not an allow-listed statistic")
        key = str(coaster_id)
        with self._lock:
            self.stats.setdefault(stat_name, {})[key] = value
        if self._on_insert is not None:
            self._on_insert(key, stat_name, value)

    def add_stats(self, coaster_id, values: Dict[str, Any]) -> None:
        for stat_name, value in values.items():
            self.add_stat(coaster_id, stat_name, value)

    def set_image(self, coaster_id, filename: str) -> None:
        with self._lock:
            self.image_manifest[str(coaster_id)] = filename

    def set_credit(self, coaster_id, credit: str) -> None:
        with self._lock:
            self.photographer_credits[str(coaster_id)] = credit

    def table(self, stat_name: str) -> Dict[str, Any]:
        return self.stats.get(stat_name, {})

    def coaster_ids(self) -> Set[str]:
        """Union of keys across every stat table."""
        ids: Set[str] = set()
        for table in self.stats.values():
            ids.update(table)
        return ids
