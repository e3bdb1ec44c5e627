"""
API Route Registry
Central registration of all API routes
"""
import logging
import os
from flask import Flask, current_app, send_from_directory

logger = logging.getLogger(__name__)

API_PREFIX = '/api/v1'


def register_routes(app: Flask):
    """Register all API routes with the Flask app"""

    from app.api.v1.auth_routes import auth_bp
    from app.api.v1.produce_routes import produce_bp
    from app.api.v1.transaction_routes import transaction_bp
    from app.api.v1.wallet_routes import wallet_bp
    from app.monitoring.health import health_bp

    app.register_blueprint(auth_bp, url_prefix=f'{API_PREFIX}/users')
    app.register_blueprint(produce_bp, url_prefix=f'{API_PREFIX}/produce')
    app.register_blueprint(transaction_bp, url_prefix=f'{API_PREFIX}/transactions')
    app.register_blueprint(wallet_bp, url_prefix=f'{API_PREFIX}/wallet')
    app.register_blueprint(health_bp)

    # Locally stored produce images and QR codes
    @app.route('/uploads/<path:filename>', methods=['GET'])
    def uploaded_file(filename):
        return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)

    logger.info(f"Registered: {API_PREFIX}/users, /produce, /transactions, /wallet, /health, /uploads")
    return True


def list_routes(app: Flask):
    """List all registered routes (for debugging)"""
    routes = []
    for rule in app.url_map.iter_rules():
        routes.append({
            'endpoint': rule.endpoint,
            'methods': sorted(rule.methods - {'HEAD', 'OPTIONS'}),
            'path': str(rule)
        })
    return sorted(routes, key=lambda x: x['path'])
