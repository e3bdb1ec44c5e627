#middleware/response_middleware
from flask import request, jsonify, make_response
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResponseMiddleware:
    """Builds the JSON envelopes every endpoint returns"""

    @staticmethod
    def create_error_response(message: str, status_code: int = 400, details: Optional[Dict] = None):
        """
        Error envelope: status, error, timestamp, path, method and optional details
        """
        body = {
            'status': 'error',
            'error': message,
            'timestamp': _now(),
            'path': request.path,
            'method': request.method
        }
        if details:
            body['details'] = details

        level = logging.ERROR if status_code >= 500 else logging.INFO
        logger.log(level, f"{status_code} {request.method} {request.path}: {message}")
        return make_response(jsonify(body), status_code)

    @staticmethod
    def create_success_response(data: Any = None, message: str = "Success", status_code: int = 200):
        body = {
            'status': 'success',
            'message': message,
            'data': data,
            'timestamp': _now()
        }
        return make_response(jsonify(body), status_code)


response_middleware = ResponseMiddleware()
