"""
Coaster Stats - pytest Configuration and Fixtures

Provides shared test fixtures for:
- Sample RCDB coaster records (regular and dueling)
- Mock HTTP responses
- Temporary data / image / log directories
"""

import json
import pytest
import requests
from unittest.mock import Mock


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_coaster_record():
    """
    Sample coaster record as returned by the RCDB API.

    Returns:
        Dictionary shaped like GET /api/coasters/<id>
    """
    return {
        'id': 1234,
        'name': 'Steel Vengeance',
        'park': {'id': 4529, 'name': 'Cedar Point'},
        'country': 'United States',
        'status': {
            'state': 'Operating',
            'date': {'opened': '2018-05-05'}
        },
        'stats': {
            'height': '205',
            'length': 5740,
            'speed': 74,
            'inversions': 4,
            'drop': 200,
            'duration': '2:30',
            'verticalAngle': 90,
            'capacity': None,
            'elements': ['Airtime hill'],
        },
        'mainPicture': {
            'url': 'https://rcdb.com/pictures/1234.jpg',
            'copyName': 'Jane Photographer'
        }
    }


@pytest.fixture
def dueling_coaster_record():
    """
    Sample dueling coaster with array-valued stats (one value per track).

    Returns:
        Dictionary shaped like GET /api/coasters/<id>
    """
    return {
        'id': 77,
        'name': 'Gemini',
        'park': {'name': 'Cedar Point'},
        'status': {'date': {'opened': '1978', 'closed': '2099-01-01'}},
        'stats': {
            'speed': [55, 53],
            'height': [125, 'n/a'],
            'duration': ['2:20', '2:25'],
        },
        'mainPicture': {'url': 'https://rcdb.com/pictures/77'}
    }


@pytest.fixture
def make_response():
    """
    Factory for mocked requests.Response objects.

    Usage:
        response = make_response(200, json_data={...})
        response = make_response(500)
    """
    def _make(status_code=200, json_data=None, content=b''):
        response = Mock()
        response.status_code = status_code
        response.content = content
        response.json.return_value = json_data
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(
                f"{status_code} Error", response=response
            )
        else:
            response.raise_for_status.return_value = None
        return response
    return _make


@pytest.fixture
def data_dirs(tmp_path):
    """Temporary data, image and log directories."""
    dirs = {
        'data': tmp_path / 'data',
        'images': tmp_path / 'public' / 'img',
        'logs': tmp_path / 'logs',
    }
    return dirs


@pytest.fixture
def write_data_file():
    """Helper to write a JSON data file into a directory."""
    def _write(directory, filename, data):
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_text(json.dumps(data), encoding='utf-8')
    return _write
