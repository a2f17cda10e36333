"""
Catalog admin backend application.
"""

import logging
import os
from datetime import datetime, timezone

import redis
from flask import Flask, jsonify
from flask_cors import CORS
from marshmallow import ValidationError

from .config import config
from .exceptions import CatalogError
from .logging_config import setup_app_logging
from .services.cache_proxy import CacheProxy
from .services.crawl_trigger import CrawlTrigger
from .services.supabase_auth import init_auth
from .services.supabase_database import init_supabase_db


def register_blueprints(app):
    """Register all API blueprints under /api."""
    from .auth_api import auth_bp
    from .cache_api import cache_bp
    from .categories_api import categories_bp
    from .home_categories_api import home_categories_bp
    from .product_sets_api import product_sets_bp
    from .products_api import products_bp
    from .trigger_api import trigger_bp

    for blueprint in (categories_bp, products_bp, product_sets_bp, home_categories_bp,
                      trigger_bp, cache_bp, auth_bp):
        app.register_blueprint(blueprint, url_prefix='/api')


def register_error_handlers(app):
    @app.errorhandler(CatalogError)
    def handle_catalog_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.__class__.__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({'success': False, 'error': 'Validation failed', 'errors': error.messages}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500


def create_app(config_name=None, supabase_client=None, redis_client=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)

    config_name = config_name or os.getenv('FLASK_ENV', 'default')
    app.config.from_object(config.get(config_name, config['default']))

    setup_app_logging(app, app.config.get('LOG_PATH'), app.config.get('LOG_TO_FILES', True))

    CORS(app, origins=app.config['CORS_ORIGINS'])

    init_supabase_db(app, client=supabase_client)
    init_auth(app)
    app.extensions['redis'] = redis_client or redis.from_url(app.config['REDIS_URL'], decode_responses=True)
    app.extensions['crawl_trigger'] = CrawlTrigger(
        url=app.config['CRAWL_WORKFLOW_URL'],
        token=app.config['GITHUB_PAT'],
        ref=app.config['CRAWL_WORKFLOW_REF'],
        timeout=app.config['HTTP_TIMEOUT'],
    )
    app.extensions['cache_proxy'] = CacheProxy(
        target=app.config['CACHE_PROXY_TARGET'],
        timeout=app.config['HTTP_TIMEOUT'],
    )

    register_blueprints(app)
    register_error_handlers(app)

    @app.route('/health')
    @app.route('/api/health')
    def health_check():
        """Store health check endpoint."""
        store = app.extensions['supabase_db'].health_check()
        status_code = 200 if store['status'] == 'healthy' else 503
        return jsonify({
            'status': store['status'],
            'database': store,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }), status_code

    logging.getLogger(__name__).info(f"Catalog admin started with '{config_name}' configuration")
    return app
