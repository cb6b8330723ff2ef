"""
Coaster Stats - Image Fetcher Unit Tests

Tests:
- Filename derivation from URL extension (default .jpg)
- Existing pictures are skipped and never overwritten
- Zero-byte leftovers are re-downloaded
- Download failures are raised as ImageDownloadError, leaving no file behind
"""

import pytest
import requests
from unittest.mock import Mock

from collector.image_fetcher import ImageFetcher, ImageDownloadError, image_filename


class TestImageFilename:
    """Test image_filename()."""

    def test_uses_url_extension(self):
        assert image_filename('https://rcdb.com/pictures/abc.png', 12) == '12.png'

    def test_ignores_query_string(self):
        assert image_filename('https://rcdb.com/pictures/abc.jpeg?size=large', 12) == '12.jpeg'

    def test_defaults_to_jpg(self):
        assert image_filename('https://rcdb.com/pictures/abc', 12) == '12.jpg'


class TestImageFetcher:
    """Test ImageFetcher.fetch()."""

    def test_downloads_new_image(self, tmp_path):
        """fetch() should write the downloaded bytes under <id><ext>."""
        client = Mock()
        client.download.return_value = b'image-bytes'
        fetcher = ImageFetcher(tmp_path / 'img', client=client)

        result = fetcher.fetch('https://rcdb.com/pictures/1.jpg', 1)

        assert result.filename == '1.jpg'
        assert result.skipped is False
        assert (tmp_path / 'img' / '1.jpg').read_bytes() == b'image-bytes'
        assert not (tmp_path / 'img' / '1.jpg.part').exists()

    def test_existing_image_is_skipped(self, tmp_path):
        """fetch() should not download or overwrite an image already on disk."""
        image_dir = tmp_path / 'img'
        image_dir.mkdir()
        (image_dir / '5.png').write_bytes(b'original')
        client = Mock()
        fetcher = ImageFetcher(image_dir, client=client)

        result = fetcher.fetch('https://rcdb.com/pictures/5.png', 5)

        assert result.skipped is True
        assert result.filename == '5.png'
        client.download.assert_not_called()
        assert (image_dir / '5.png').read_bytes() == b'original'

    def test_zero_byte_image_is_refetched(self, tmp_path):
        """fetch() should replace an empty file left by an interrupted run."""
        image_dir = tmp_path / 'img'
        image_dir.mkdir()
        (image_dir / '6.jpg').write_bytes(b'')
        client = Mock()
        client.download.return_value = b'fresh'
        fetcher = ImageFetcher(image_dir, client=client)

        result = fetcher.fetch('https://rcdb.com/pictures/6.jpg', 6)

        assert result.skipped is False
        assert (image_dir / '6.jpg').read_bytes() == b'fresh'

    def test_http_error_raises_image_download_error(self, tmp_path):
        """fetch() should raise ImageDownloadError and write nothing on failure."""
        client = Mock()
        client.download.side_effect = requests.HTTPError("403 Forbidden")
        fetcher = ImageFetcher(tmp_path / 'img', client=client)

        with pytest.raises(ImageDownloadError) as exc_info:
            fetcher.fetch('https://rcdb.com/pictures/9.jpg', 9)

        assert exc_info.value.coaster_id == 9
        assert isinstance(exc_info.value.cause, requests.HTTPError)
        assert not (tmp_path / 'img' / '9.jpg').exists()

    def test_transport_error_raises_image_download_error(self, tmp_path):
        client = Mock()
        client.download.side_effect = requests.ConnectionError("refused")
        fetcher = ImageFetcher(tmp_path / 'img', client=client)

        with pytest.raises(ImageDownloadError):
            fetcher.fetch('https://rcdb.com/pictures/9.jpg', 9)
