"""
Error Handler Middleware
Centralized error handling for the application
"""

import logging
import traceback
from flask import request
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from app.api.middleware.response_middleware import response_middleware
from app.core.exceptions import MarketplaceError

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling"""

    @staticmethod
    def init_app(app):
        """Initialize error handlers for Flask app"""

        # Domain errors carry their own status code
        @app.errorhandler(MarketplaceError)
        def handle_marketplace_error(error):
            if error.status_code >= 500:
                logger.error(f"{error.error_type}: {error.message} - {request.path}")
                return response_middleware.create_error_response("Internal server error", error.status_code)
            logger.warning(f"{error.error_type}: {error.message} - {request.path}")
            return response_middleware.create_error_response(error.message, error.status_code, error.details)

        # Persistence failures
        @app.errorhandler(PyMongoError)
        def handle_database_error(error):
            logger.error(f"Database error on {request.method} {request.path}: {error}")
            return response_middleware.create_error_response("Internal server error", 500)

        # HTTP exceptions (404, 405, 413, 429 ...)
        @app.errorhandler(HTTPException)
        def handle_http_exception(error):
            logger.info(f"HTTP {error.code}: {request.path}")
            return response_middleware.create_error_response(error.description or error.name, error.code)

        # Generic exception handler
        @app.errorhandler(Exception)
        def handle_unexpected_error(error):
            logger.error(f"Unexpected error: {str(error)}")
            logger.error(traceback.format_exc())

            if app.config.get('DEBUG'):
                return response_middleware.create_error_response(
                    'Unexpected error', 500, {'message': str(error), 'type': type(error).__name__}
                )
            return response_middleware.create_error_response('An unexpected error occurred', 500)


error_handler = ErrorHandler()
