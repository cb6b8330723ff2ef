"""
Coaster Stats - Flask API Application
Main API application with Blueprints, CORS, and middleware.
"""

import random
import time
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from collector.rcdb_client import RcdbClient, get_rcdb_client
from processor.coaster_lookup import CoasterDataset, CoasterLookupService
from utils.config import FLASK_ENV, FLASK_DEBUG, SECRET_KEY, DATA_DIR, PUBLIC_DIR
from utils.logger import logger, log_api_request
from api.routes.health import health_bp
from api.routes.coasters import coasters_bp
from api.middleware.error_handler import register_error_handlers


def create_app(
    dataset: Optional[CoasterDataset] = None,
    client: Optional[RcdbClient] = None,
    rng: Optional[random.Random] = None
) -> Flask:
    """
    Create and configure Flask application.

    The coaster dataset is loaded once here and shared by every request.

    Args:
        dataset: Preloaded dataset (defaults to the files in DATA_DIR)
        client: RCDB client for live fetches (defaults to singleton)
        rng: Random source for random lookups

    Returns:
        Configured Flask app instance
    """
    # Scraped pictures are served from /img/<file>
    app = Flask(__name__, static_folder=str(PUBLIC_DIR), static_url_path='')

    # Configuration
    app.config['ENV'] = FLASK_ENV
    app.config['DEBUG'] = FLASK_DEBUG
    app.config['SECRET_KEY'] = SECRET_KEY
    app.json.sort_keys = False  # Preserve upstream key order

    # CORS configuration
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "send_wildcard": True,
            "methods": ["GET", "OPTIONS"],
            "allow_headers": ["Content-Type"]
        }
    })

    if dataset is None:
        dataset = CoasterDataset.load(DATA_DIR)
    if dataset.is_empty:
        logger.warning("No coaster data loaded; every lookup will return 500")

    app.extensions['coaster_lookup'] = CoasterLookupService(
        dataset,
        client or get_rcdb_client(),
        rng=rng
    )

    # Register blueprints
    app.register_blueprint(health_bp, url_prefix='/api')
    app.register_blueprint(coasters_bp, url_prefix='/api')

    # Register error handlers
    register_error_handlers(app)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get('request_started')
        if started is not None and request.path.startswith('/api/'):
            duration_ms = (time.perf_counter() - started) * 1000
            log_api_request(request.method, request.path, response.status_code, round(duration_ms, 2))
        return response

    logger.info(f"Flask app created (env={FLASK_ENV}, debug={FLASK_DEBUG})")

    # Root endpoint
    @app.route('/')
    def index():
        """Root endpoint with API information."""
        return jsonify({
            "name": "Coaster Stats API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "random": "/api/coasters/random",
                "by_stat": "/api/coasters?stat=<name>",
                "by_id": "/api/coasters?id=<id>"
            }
        })

    return app


if __name__ == '__main__':
    # Development server
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=FLASK_DEBUG
    )
