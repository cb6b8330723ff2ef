"""
Coaster Stats - Image Fetcher
Downloads each coaster's main picture once into the public image directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from collector.rcdb_client import RcdbClient, get_rcdb_client
from utils.logger import logger

DEFAULT_EXTENSION = '.jpg'


class ImageDownloadError(Exception):
    """Raised when a coaster picture cannot be downloaded or written."""

    def __init__(self, coaster_id, url: str, cause: Exception):
        super().__init__(f"Downloading image for ID {coaster_id}: {cause}")
        self.coaster_id = coaster_id
        self.url = url
        self.cause = cause


@dataclass
class ImageResult:
    """Outcome of fetching one coaster picture."""
    filename: str
    skipped: bool


def image_filename(url: str, coaster_id) -> str:
    """
    Derive the local filename for a coaster picture.

    The extension comes from the URL path, defaulting to .jpg:

        >>> image_filename('https://rcdb.com/pics/123.png?x=1', 7)
        '7.png'
        >>> image_filename('https://rcdb.com/pics/123', 7)
        '7.jpg'
    """
    extension = os.path.splitext(urlparse(url).path)[1] or DEFAULT_EXTENSION
    return f"{coaster_id}{extension}"


class ImageFetcher:
    """
    Stores pictures as ``<image_dir>/<id><ext>``.

    An existing non-empty file is treated as cached and never re-downloaded.
    Zero-byte files left by an interrupted run are re-fetched. Bytes are
    written to a ``.part`` file and renamed into place so a failed write
    never leaves a truncated image under the final name.
    """

    def __init__(self, image_dir: Path, client: Optional[RcdbClient] = None):
        self.image_dir = Path(image_dir)
        self.client = client or get_rcdb_client()

    def is_cached(self, path: Path) -> bool:
        return path.is_file() and path.stat().st_size > 0

    def fetch(self, url: str, coaster_id) -> ImageResult:
        """
        Download the picture for one coaster unless it is already on disk.

        Args:
            url: Picture URL from the coaster record
            coaster_id: Coaster ID used to name the file

        Returns:
            ImageResult with the stored filename and whether the download was skipped

        Raises:
            ImageDownloadError: On HTTP error, transport error, or write failure
        """
        filename = image_filename(url, coaster_id)
        path = self.image_dir / filename

        if self.is_cached(path):
            return ImageResult(filename=filename, skipped=True)

        partial = path.with_name(path.name + '.part')
        try:
            content = self.client.download(url)
            self.image_dir.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(content)
            os.replace(partial, path)
        except (requests.RequestException, OSError) as e:
            logger.error(f"Image download failed for coaster {coaster_id}", extra={
                "coaster_id": coaster_id,
                "url": url,
                "error_type": type(e).__name__,
                "error_message": str(e)
            })
            raise ImageDownloadError(coaster_id, url, e) from e

        logger.debug(f"Saved image {filename} ({len(content)} bytes)")
        return ImageResult(filename=filename, skipped=False)
