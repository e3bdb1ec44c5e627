# config/environment.py
import os
from enum import Enum
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class Config:
    """Environment-based configuration"""

    def __init__(self):
        self.env = Environment(os.getenv('FLASK_ENV', 'development'))

    def get_config(self) -> Dict[str, Any]:
        base_config = {
            'SECRET_KEY': os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production'),
            'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-jwt-secret-change-in-production'),
            'TOKEN_EXPIRY_HOURS': int(os.getenv('TOKEN_EXPIRY_HOURS', '24')),
            'DATABASE_NAME': os.getenv('DATABASE_NAME', 'farm_marketplace'),
            'CORS_ORIGINS': os.getenv('CORS_ORIGINS', 'http://localhost:3001,http://127.0.0.1:3001').split(','),
            'UPLOAD_FOLDER': os.getenv('UPLOAD_FOLDER', os.path.join('public', 'uploads')),
            'ASSET_BASE_URL': os.getenv('ASSET_BASE_URL', 'http://localhost:8000/uploads'),
            'FRONTEND_URL': os.getenv('FRONTEND_URL', 'http://localhost:3000'),
            'DEFAULT_PAGE_SIZE': int(os.getenv('DEFAULT_PAGE_SIZE', '12')),
            'MAX_PAGE_SIZE': int(os.getenv('MAX_PAGE_SIZE', '100')),
            'MAX_CONTENT_LENGTH': 5 * 1024 * 1024,
            'RATELIMIT_STORAGE_URI': os.getenv('RATELIMIT_STORAGE_URI', 'memory://'),
            'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
        }

        if self.env == Environment.DEVELOPMENT:
            return {**base_config, **self._development_config()}
        elif self.env == Environment.TESTING:
            return {**base_config, **self._testing_config()}
        else:
            return {**base_config, **self._production_config()}

    def _development_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': True,
            'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/farm_marketplace_dev'),
            'SESSION_COOKIE_SECURE': False,
            'RATELIMIT_ENABLED': True,
        }

    def _testing_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': False,
            'TESTING': True,
            'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/farm_marketplace_test'),
            'SESSION_COOKIE_SECURE': False,
            'RATELIMIT_ENABLED': False,
        }

    def _production_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': False,
            'MONGODB_URI': os.getenv('MONGODB_URI'),
            'SESSION_COOKIE_SECURE': True,
            'RATELIMIT_ENABLED': True,
            'RATELIMIT_STORAGE_URI': os.getenv('RATELIMIT_STORAGE_URI', 'redis://localhost:6379'),
            'LOG_LEVEL': os.getenv('LOG_LEVEL', 'WARNING'),
        }


