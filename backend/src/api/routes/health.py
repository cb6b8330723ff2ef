"""
Coaster Stats - Health Check Endpoint
Reports whether scraped coaster data was loaded at startup.
"""

from flask import Blueprint, current_app, jsonify
from datetime import datetime, timezone

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint.

    Response:
        200 OK: Coaster data loaded
        503 Service Unavailable: No coaster data; every lookup will fail
    """
    dataset = current_app.extensions['coaster_lookup'].dataset

    health_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "api_version": "1.0.0",
        "checks": {
            "dataset": {
                "coaster_count": len(dataset.known_ids),
                "image_count": len(dataset.image_manifest),
                "credit_count": len(dataset.photographer_credits),
                "stats": {name: len(table) for name, table in dataset.stats.items() if table}
            }
        }
    }

    if dataset.is_empty:
        health_data["status"] = "unhealthy"
        health_data["checks"]["dataset"]["status"] = "no_data"
        health_data["checks"]["dataset"]["message"] = "No coaster data loaded. Run scripts.fetch_coasters first."
        return jsonify(health_data), 503

    health_data["checks"]["dataset"]["status"] = "healthy"
    return jsonify(health_data), 200
