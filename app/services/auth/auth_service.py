# services/auth/auth_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from app.config.database import get_db_connection
from app.core.exceptions import AuthError, ConflictError, NotFoundError
from app.models.enums import UserRole
from app.models.user import CurrentUser, User
from app.utils.database_helpers import USER_COLLECTION
from app.utils.formatters import format_user_response
from app.utils.password_utils import hash_password, verify_password
from app.utils.token_utils import generate_token, verify_token
from app.validators.auth_validator import AuthValidator

logger = logging.getLogger(__name__)


class AuthService:
    """Service for handling account and authentication operations"""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db_connection()

    @property
    def users(self):
        return self.db[USER_COLLECTION]

    def register_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a farmer or consumer account

        Args:
            data: full_name, email, username, password, role

        Returns:
            Formatted user
        """
        cleaned = AuthValidator.validate_registration_data(data)

        if self.users.find_one({'$or': [{'email': cleaned['email']}, {'username': cleaned['username']}]}):
            raise ConflictError("User with this email or username already exists")

        user = User(
            username=cleaned['username'],
            email=cleaned['email'],
            full_name=cleaned['full_name'],
            password_hash=hash_password(cleaned['password']),
            role=cleaned['role'],
        )
        doc = user.to_dict()
        try:
            self.users.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("User with this email or username already exists")

        logger.info(f"User registered: {user.username} ({user.role.value})")
        return format_user_response(doc)

    def login(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Authenticate by username or email

        Returns:
            Dict with the signed token and the formatted user
        """
        credentials = AuthValidator.validate_login_data(data)
        identifier = credentials['identifier']

        user = self.users.find_one({'$or': [{'username': identifier.lower()}, {'email': identifier}]})
        if not user or not verify_password(user.get('password_hash'), credentials['password']):
            logger.warning(f"Failed login attempt for {identifier}")
            raise AuthError("Invalid credentials")

        now = datetime.now(timezone.utc)
        self.users.update_one({'_id': user['_id']}, {'$set': {'last_login': now}})
        user['last_login'] = now

        token = generate_token(str(user['_id']), user['role'], user['username'])
        logger.info(f"User logged in: {user['username']}")

        return {
            'token': token,
            'user': format_user_response(user)
        }

    def resolve_current_user(self, token: str) -> CurrentUser:
        """Decode a token and load the identity it refers to"""
        payload = verify_token(token)

        user_id = payload.get('sub')
        if not user_id or not ObjectId.is_valid(user_id):
            raise AuthError("Invalid token")

        user = self.users.find_one({'_id': ObjectId(user_id)}, {'role': 1, 'username': 1})
        if not user:
            raise AuthError("User not found")

        return CurrentUser(id=user['_id'], role=UserRole.parse(user['role']), username=user['username'])

    def get_user_profile(self, user_id: ObjectId) -> Dict[str, Any]:
        user = self.users.find_one({'_id': user_id})
        if not user:
            raise NotFoundError("User not found")
        return format_user_response(user)


auth_service = AuthService()
