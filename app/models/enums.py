# models/enums.py
from enum import Enum

from app.core.exceptions import ValidationError


class _ParsableEnum(Enum):

    @classmethod
    def parse(cls, value):
        """Parse a raw value into a member, raising ValidationError on unknown values"""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        allowed = ', '.join(member.value for member in cls)
        raise ValidationError(f"Invalid {cls.__name__} '{value}'. Must be one of: {allowed}")


class ProduceStatus(_ParsableEnum):
    HARVESTED = "Harvested"
    IN_TRANSIT = "In Transit"
    READY_FOR_SALE = "Ready for Sale"
    SOLD = "Sold"

    @classmethod
    def parse(cls, value):
        """Accept stored values as well as compact spellings such as 'InTransit' or 'ready_for_sale'"""
        if isinstance(value, str):
            compact = value.replace(' ', '').replace('_', '').lower()
            for member in cls:
                if member.value.replace(' ', '').lower() == compact:
                    return member
        return super().parse(value)

    @property
    def is_available(self) -> bool:
        return self is not ProduceStatus.SOLD


class TransactionKind(_ParsableEnum):
    REGISTRATION = "registration"
    SALE = "sale"
    PRICE_UPDATE = "price_update"
    STATUS_UPDATE = "status_update"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionKind.SALE, TransactionKind.REGISTRATION)


class ConfirmationState(_ParsableEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class UserRole(_ParsableEnum):
    FARMER = "farmer"
    CONSUMER = "consumer"
    ADMIN = "admin"
