# app.py
from flask import Flask
from flask_cors import CORS
import logging
import os
import sys

from app.config.environment import Config


def create_app(config_overrides=None):
    """Application factory pattern"""
    app = Flask(__name__)

    app.config.update(Config().get_config())
    if config_overrides:
        app.config.update(config_overrides)
    app.config['UPLOAD_FOLDER'] = os.path.abspath(app.config['UPLOAD_FOLDER'])

    setup_logging(app)

    CORS(app,
         origins=app.config['CORS_ORIGINS'],
         allow_headers=['Content-Type', 'Authorization'],
         methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
         supports_credentials=True)

    init_database(app)

    from app.security.rate_limiting import limiter
    limiter.init_app(app)

    from app.api.route_registry import register_routes
    register_routes(app)

    from app.api.middleware.error_handler import error_handler
    error_handler.init_app(app)

    app.logger.info(f"Application created ({len(list(app.url_map.iter_rules()))} routes)")
    return app


def init_database(app):
    """Connect and create the indexes that writes rely on for idempotency"""
    from app.config.database import get_db_connection
    from app.utils.database_helpers import init_database_indexes

    try:
        db = get_db_connection(app.config.get('MONGODB_URI'), app.config.get('DATABASE_NAME'))
        init_database_indexes(db)
        app.logger.info("Database connection established")
    except Exception as e:
        app.logger.error(f"Database initialization failed: {e}")
        raise


def setup_logging(app):
    """Setup application logging"""
    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if not app.config.get('TESTING'):
        os.makedirs('logs', exist_ok=True)
        handlers.append(logging.FileHandler('logs/app.log'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # Quiet down noisy loggers
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('pymongo').setLevel(logging.WARNING)
