"""
Coaster Stats - Stat Extractor
Pulls the allow-listed statistics out of a raw RCDB coaster record.
"""

import math
import re
from typing import Any, Dict, Optional

# Fields this system is willing to extract or serve
ALLOWED_STATS = (
    'height', 'length', 'speed', 'inversions', 'drop', 'duration',
    'verticalAngle', 'capacity', 'cost', 'year', 'country', 'closed',
    'name', 'park',
)

# Kept as given by the API (e.g. "2:10" or 130)
PASSTHROUGH_STATS = {'duration'}

_LEADING_FLOAT = re.compile(r'^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')
_LEADING_INT = re.compile(r'^\s*[-+]?\d+')


def parse_float(value: Any) -> Optional[float]:
    """
    Parse the leading number of a value, as loose API data requires.

        >>> parse_float('55 mph')
        55.0
        >>> parse_float('fast') is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value)
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_year(date_value: Any) -> Optional[int]:
    """Year from the first four characters of an RCDB date ("1999-05-01")."""
    if not isinstance(date_value, str) or not date_value:
        return None
    match = _LEADING_INT.match(date_value[:4])
    if not match:
        return None
    return int(match.group(0))


def extract_stats(record: Dict) -> Dict[str, Any]:
    """
    Extract allow-listed statistics from a coaster record.

    Rules:
    - name and park.name are recorded verbatim
    - stats entries that are lists (dueling coasters) keep only the first value
    - null values are skipped; duration passes through untouched; every other
      stat must parse as a number or it is dropped
    - year/closed come from status.date.opened/closed and override the stats loop
    - top-level country is recorded verbatim

    Args:
        record: Coaster record as returned by the API

    Returns:
        Mapping of statistic name to value, in insertion order
    """
    found: Dict[str, Any] = {}

    if record.get('name'):
        found['name'] = record['name']

    park = record.get('park')
    if isinstance(park, dict) and park.get('name'):
        found['park'] = park['name']

    stats = record.get('stats')
    if isinstance(stats, dict):
        for stat_name, value in stats.items():
            if stat_name not in ALLOWED_STATS:
                continue
            if isinstance(value, list):
                value = value[0] if value else None
            if value is None:
                continue

            if stat_name in PASSTHROUGH_STATS:
                found[stat_name] = value
            else:
                number = parse_float(value)
                if number is not None:
                    found[stat_name] = number

    status = record.get('status')
    dates = status.get('date') if isinstance(status, dict) else None
    if isinstance(dates, dict):
        opened = parse_year(dates.get('opened'))
        if opened is not None:
            found['year'] = opened
        closed = parse_year(dates.get('closed'))
        if closed is not None:
            found['closed'] = closed

    if record.get('country'):
        found['country'] = record['country']

    return found
