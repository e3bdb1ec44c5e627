# validators/auth_validator.py
"""
Authentication Input Validation
Business-level validation for account operations
"""

import re
from typing import Any, Dict

from email_validator import EmailNotValidError, validate_email

from app.core.exceptions import ValidationError
from app.models.enums import UserRole

USERNAME_PATTERN = re.compile(r'^[a-z0-9_.-]{3,30}$')
MIN_PASSWORD_LENGTH = 8


class AuthValidator:
    """Validator for authentication-related operations"""

    @staticmethod
    def validate_registration_data(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate user registration data

        Args:
            data: Registration data

        Returns:
            Cleaned registration data with a parsed role
        """
        if not data:
            raise ValidationError("No data provided")

        errors = []
        for field in ('full_name', 'email', 'username', 'password', 'role'):
            if not str(data.get(field) or '').strip():
                errors.append(f"{field} is required")
        if errors:
            raise ValidationError("All fields are required", details={'errors': errors})

        username = data['username'].strip().lower()
        if not USERNAME_PATTERN.match(username):
            errors.append("Username must be 3-30 characters of letters, numbers, '.', '_' or '-'")

        email = data['email'].strip()
        try:
            email = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError:
            errors.append("Please enter a valid email address")

        if len(data['password']) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        role = UserRole.parse(data['role'].strip().lower())
        if role is UserRole.ADMIN:
            errors.append("Role must be farmer or consumer")

        if errors:
            raise ValidationError("Validation failed", details={'errors': errors})

        return {
            'full_name': data['full_name'].strip(),
            'email': email,
            'username': username,
            'password': data['password'],
            'role': role,
        }

    @staticmethod
    def validate_login_data(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate login credentials

        Args:
            data: Login data containing username or email and a password

        Returns:
            Cleaned login data
        """
        if not data:
            raise ValidationError("No data provided")

        identifier = str(data.get('username') or data.get('email') or '').strip()
        if not identifier:
            raise ValidationError("username or email is required")
        if not data.get('password'):
            raise ValidationError("password is required")

        return {'identifier': identifier, 'password': data['password']}


auth_validator = AuthValidator()
