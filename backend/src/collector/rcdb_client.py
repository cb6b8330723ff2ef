"""
Coaster Stats - RCDB API Client
Fetches single coaster records from the roller-coaster database API.

Transport failures pass through a tenacity policy; with the default
MAX_RETRY_ATTEMPTS=1 every request is attempted exactly once.
"""

import requests
from typing import Dict, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from utils.config import (
    RCDB_API_BASE_URL,
    REQUEST_TIMEOUT_SECONDS,
    MAX_RETRY_ATTEMPTS,
    RETRY_BACKOFF_MULTIPLIER,
)
from utils.logger import logger


class RcdbClient:
    """
    Client for the RCDB coaster API.

    One GET per coaster ID against ``<base_url>/<id>``.
    """

    def __init__(self, base_url: str = RCDB_API_BASE_URL, timeout: int = REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'CoasterStats/1.0 (Data Collection Bot)',
            'Accept': 'application/json'
        })

    def coaster_url(self, coaster_id) -> str:
        return f"{self.base_url}/{coaster_id}"

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, min=4, max=60),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError)),
        reraise=True
    )
    def get_coaster(self, coaster_id) -> Optional[Dict]:
        """
        Fetch one coaster record.

        Args:
            coaster_id: RCDB coaster ID

        Returns:
            Parsed coaster record, or None if the API has no coaster with that ID

        Raises:
            requests.HTTPError: If API returns any other error status
            requests.RequestException: On transport failure
        """
        url = self.coaster_url(coaster_id)
        logger.debug(f"Fetching coaster {coaster_id} from {url}")

        response = self.session.get(url, timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()

        return response.json()

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, min=4, max=60),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError)),
        reraise=True
    )
    def download(self, url: str) -> bytes:
        """
        Download raw bytes from an arbitrary URL (coaster pictures).

        Raises:
            requests.HTTPError: If the server returns an error status
            requests.RequestException: On transport failure
        """
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def close(self):
        """Close the HTTP session."""
        self.session.close()


# Singleton instance
_client: Optional[RcdbClient] = None


def get_rcdb_client() -> RcdbClient:
    """
    Get or create singleton RCDB API client.

    Returns:
        RcdbClient instance
    """
    global _client
    if _client is None:
        _client = RcdbClient()
    return _client
