"""
Coaster Stats - Coaster Lookup Service Unit Tests

Tests:
- CoasterDataset known-ID universe and per-coaster stats
- resolve_coaster_id() route order and failures
- resolve_image_url() local path > live URL > None
- CoasterLookupService live fetch and error mapping
"""

import random

import pytest
import requests
from unittest.mock import Mock

from processor.coaster_lookup import (
    CoasterDataset,
    CoasterLookupService,
    CoasterNotFoundError,
    DatasetNotLoadedError,
    InvalidLookupRequestError,
    LookupServiceError,
    UpstreamFetchError,
    resolve_coaster_id,
    resolve_image_url,
)


@pytest.fixture
def dataset():
    return CoasterDataset(
        stats={
            'height': {'1': 100.0, '2': 205.0},
            'speed': {'2': 74.0, '3': 55.0},
            'name': {'1': 'Alpha', '2': 'Bravo', '3': 'Charlie'},
            'cost': {},
        },
        image_manifest={'1': '1.jpg'},
    )


class TestCoasterDataset:
    """Test CoasterDataset."""

    def test_known_ids_is_union_of_tables(self, dataset):
        assert dataset.known_ids == ['1', '2', '3']
        assert dataset.has_coaster('3')
        assert dataset.has_coaster(3)
        assert not dataset.has_coaster('4')

    def test_stats_for_only_includes_present_stats(self, dataset):
        assert dataset.stats_for('3') == {'speed': 55.0, 'name': 'Charlie'}

    def test_stat_ids_are_sorted_once(self, dataset):
        first = dataset.stat_ids('height')

        assert first == ['1', '2']
        assert dataset.stat_ids('height') is first
        assert dataset.stat_ids('cost') == []
        assert dataset.stat_ids('elements') == []

    def test_empty_dataset(self):
        assert CoasterDataset().is_empty

    def test_load_from_files(self, tmp_path, write_data_file):
        write_data_file(tmp_path, 'coaster-height.json', {'9': 10})
        write_data_file(tmp_path, 'image-manifest.json', {'9': '9.png'})

        loaded = CoasterDataset.load(tmp_path)

        assert loaded.known_ids == ['9']
        assert loaded.image_manifest == {'9': '9.png'}
        assert loaded.photographer_credits == {}

    def test_manifest_does_not_extend_known_ids(self):
        loaded = CoasterDataset(stats={'height': {'1': 1.0}}, image_manifest={'2': '2.jpg'})

        assert loaded.known_ids == ['1']


class TestResolveCoasterId:
    """Test resolve_coaster_id()."""

    def test_empty_dataset_fails_for_every_route(self):
        empty = CoasterDataset()

        for kwargs in ({'random_route': True}, {'stat': 'height'}, {'coaster_id': '1'}, {}):
            with pytest.raises(DatasetNotLoadedError) as exc_info:
                resolve_coaster_id(empty, **kwargs)
            assert exc_info.value.status_code == 500

    def test_random_route_draws_from_all_ids(self, dataset):
        rng = random.Random(7)
        drawn = {resolve_coaster_id(dataset, random_route=True, rng=rng) for _ in range(200)}

        assert drawn == {'1', '2', '3'}

    def test_random_route_wins_over_parameters(self, dataset):
        rng = Mock()
        rng.choice.return_value = '3'

        assert resolve_coaster_id(dataset, random_route=True, stat='height', rng=rng) == '3'
        rng.choice.assert_called_once_with(['1', '2', '3'])

    def test_stat_draws_only_coasters_with_that_stat(self, dataset):
        rng = random.Random(1)
        for _ in range(200):
            chosen = resolve_coaster_id(dataset, stat='height', rng=rng)
            assert chosen in dataset.stats['height']

    def test_stat_wins_over_id(self, dataset):
        rng = Mock()
        rng.choice.return_value = '2'

        assert resolve_coaster_id(dataset, stat='speed', coaster_id='1', rng=rng) == '2'

    @pytest.mark.parametrize('stat', ['cost', 'elements', 'closed'])
    def test_stat_without_data_is_not_found(self, dataset, stat):
        with pytest.raises(CoasterNotFoundError) as exc_info:
            resolve_coaster_id(dataset, stat=stat)

        assert exc_info.value.status_code == 404
        assert stat in exc_info.value.message

    def test_known_id(self, dataset):
        assert resolve_coaster_id(dataset, coaster_id='2') == '2'

    def test_unknown_id_is_not_found(self, dataset):
        with pytest.raises(CoasterNotFoundError):
            resolve_coaster_id(dataset, coaster_id='999')

    def test_no_route_is_invalid(self, dataset):
        with pytest.raises(InvalidLookupRequestError) as exc_info:
            resolve_coaster_id(dataset)

        assert exc_info.value.status_code == 400


class TestResolveImageUrl:
    """Test resolve_image_url()."""

    def test_local_image_preferred(self, dataset):
        live = {'mainPicture': {'url': 'https://rcdb.com/pictures/1.jpg'}}

        assert resolve_image_url(dataset, '1', live) == '/img/1.jpg'

    def test_falls_back_to_live_picture(self, dataset):
        live = {'mainPicture': {'url': 'https://rcdb.com/pictures/2.jpg'}}

        assert resolve_image_url(dataset, '2', live) == 'https://rcdb.com/pictures/2.jpg'

    def test_none_when_no_picture(self, dataset):
        assert resolve_image_url(dataset, '2', {}) is None
        assert resolve_image_url(dataset, '2', {'mainPicture': None}) is None


class TestCoasterLookupService:
    """Test CoasterLookupService.lookup()."""

    def test_lookup_merges_live_record(self, dataset):
        client = Mock()
        client.get_coaster.return_value = {'id': 1, 'name': 'Alpha (live)', 'stats': {'height': 999}}
        service = CoasterLookupService(dataset, client)

        coaster = service.lookup(coaster_id='1')

        client.get_coaster.assert_called_once_with('1')
        assert coaster['name'] == 'Alpha (live)'
        assert coaster['imageUrl'] == '/img/1.jpg'
        assert coaster['stats'] == {'height': 100.0, 'name': 'Alpha'}

    def test_unknown_id_never_calls_upstream(self, dataset):
        client = Mock()
        service = CoasterLookupService(dataset, client)

        with pytest.raises(CoasterNotFoundError):
            service.lookup(coaster_id='404')

        client.get_coaster.assert_not_called()

    def test_upstream_status_passed_through(self, dataset):
        client = Mock()
        client.get_coaster.side_effect = requests.HTTPError("503", response=Mock(status_code=503))
        service = CoasterLookupService(dataset, client)

        with pytest.raises(UpstreamFetchError) as exc_info:
            service.lookup(coaster_id='2')

        assert exc_info.value.status_code == 503

    def test_upstream_not_found_is_404(self, dataset):
        client = Mock()
        client.get_coaster.return_value = None
        service = CoasterLookupService(dataset, client)

        with pytest.raises(UpstreamFetchError) as exc_info:
            service.lookup(coaster_id='2')

        assert exc_info.value.status_code == 404

    def test_transport_error_is_internal_error(self, dataset):
        client = Mock()
        client.get_coaster.side_effect = requests.ConnectionError("refused")
        service = CoasterLookupService(dataset, client)

        with pytest.raises(LookupServiceError) as exc_info:
            service.lookup(coaster_id='2')

        assert exc_info.value.status_code == 500
