"""
Coaster Stats - Coaster Lookup Routes
=====================================

Random or explicit coaster lookups merged with locally scraped statistics.

Endpoints
---------
GET /coasters/random        -> any scraped coaster
GET /coasters?stat=<name>   -> random coaster that has a value for <name>
GET /coasters?id=<id>       -> one specific coaster

Every successful response is the live RCDB record plus:
- imageUrl: local picture path, else the live picture URL, else null
- stats: locally known statistic values for that coaster
"""

from flask import Blueprint, current_app, jsonify, request

from processor.coaster_lookup import CoasterLookupService
from utils.config import CACHE_MAX_AGE_SECONDS

coasters_bp = Blueprint('coasters', __name__)


def get_lookup_service() -> CoasterLookupService:
    return current_app.extensions['coaster_lookup']


@coasters_bp.after_request
def add_cache_headers(response):
    """Let any origin and shared caches reuse lookups, including error responses."""
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Cache-Control'] = f's-maxage={CACHE_MAX_AGE_SECONDS}, stale-while-revalidate'
    return response


@coasters_bp.route('/coasters/random', methods=['GET'])
def random_coaster():
    """Any coaster from the scraped dataset."""
    return jsonify(get_lookup_service().lookup(random_route=True))


@coasters_bp.route('/coasters', methods=['GET'])
def lookup_coaster():
    """
    Coaster selected by ``stat`` or ``id`` query parameter (stat wins).

    Response:
        200 OK: merged coaster
        400 Bad Request: neither parameter given
        404 Not Found: unknown stat or ID
        500 Internal Server Error: no data loaded, or upstream unreachable
        other: upstream error status passed through
    """
    coaster = get_lookup_service().lookup(
        stat=request.args.get('stat'),
        coaster_id=request.args.get('id')
    )
    return jsonify(coaster)
