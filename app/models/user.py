# models/user.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId

from app.models.enums import UserRole


@dataclass
class User:
    """Marketplace account for farmers, consumers and admins"""
    _id: Optional[ObjectId] = None
    username: str = ""
    email: str = ""
    full_name: str = ""
    password_hash: str = ""
    role: UserRole = UserRole.CONSUMER

    created_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for database storage"""
        doc = {
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "last_login": self.last_login,
        }
        if self._id is not None:
            doc["_id"] = self._id
        return doc


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated identity handed to services by the auth middleware"""
    id: ObjectId
    role: UserRole
    username: str
