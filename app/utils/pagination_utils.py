"""
Pagination Utilities
Pure functions for handling pagination
"""

import math
from typing import Any, Dict

from app.core.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

# skip is encoded as a BSON int64
MAX_SKIP = 2 ** 63 - 1


def _positive_int(value: Any, default: int, field_name: str) -> int:
    if value is None or value == '':
        return default
    try:
        number = int(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a positive integer")
    if number < 1:
        raise ValidationError(f"{field_name} must be a positive integer")
    return number


def validate_pagination_params(
    page: Any = 1,
    page_size: Any = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
    default_page_size: int = DEFAULT_PAGE_SIZE
) -> Dict[str, int]:
    """
    Validate and normalize pagination parameters

    Args:
        page: Page number (can be string or int), defaults to 1
        page_size: Items per page (can be string or int)
        max_page_size: Upper bound applied to page_size
        default_page_size: Used when page_size is missing

    Returns:
        Dict with validated page, page_size, and skip values

    Raises:
        ValidationError: If either value is not a positive integer, or the page lies past the int64 skip limit
    """
    page = _positive_int(page, 1, 'page')
    page_size = min(_positive_int(page_size, default_page_size, 'page_size'), max_page_size)
    skip = (page - 1) * page_size
    if skip > MAX_SKIP:
        raise ValidationError("page is out of range")

    return {
        'page': page,
        'page_size': page_size,
        'skip': skip
    }


def create_pagination_metadata(total_count: int, page: int, page_size: int) -> Dict[str, Any]:
    """
    Create pagination metadata for API response

    Args:
        total_count: Total number of items
        page: Current page number
        page_size: Items per page

    Returns:
        Dict with pagination metadata
    """
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0

    return {
        'page': page,
        'page_size': page_size,
        'total_items': total_count,
        'total_pages': total_pages,
        'has_next': page < total_pages,
        'has_prev': page > 1
    }


class Paginator:
    """Pagination helper for MongoDB cursors"""

    def __init__(self, page: Any = 1, page_size: Any = DEFAULT_PAGE_SIZE, max_page_size: int = MAX_PAGE_SIZE,
                 default_page_size: int = DEFAULT_PAGE_SIZE):
        params = validate_pagination_params(page, page_size, max_page_size, default_page_size)
        self.page = params['page']
        self.page_size = params['page_size']
        self.skip = params['skip']

    def apply_to_query(self, cursor):
        """Apply pagination to MongoDB cursor"""
        return cursor.skip(self.skip).limit(self.page_size)

    def create_response(self, items: list, total_count: int, items_key: str = 'items') -> Dict[str, Any]:
        """Create paginated response"""
        return {
            items_key: items,
            'pagination': create_pagination_metadata(total_count, self.page, self.page_size)
        }
