"""
Pydantic schemas for API request/response validation.

This package contains schema definitions for different domain entities
used in API endpoints.
"""

# Re-export schemas for convenient imports.
from .client import ClientResponse as ClientResponse
from .game import GameResponse as GameResponse
from .keyset_pagination import CursorDirection as CursorDirection
from .keyset_pagination import KeysetPaginatedResponse as KeysetPaginatedResponse
from .keyset_pagination import SortOrder as SortOrder
from .profile import ProfileResponse as ProfileResponse
from .run import RunResponse as RunResponse
