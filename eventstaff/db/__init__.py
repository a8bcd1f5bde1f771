"""Database package initialization.

This module exposes the public interface of the database package.
"""

from .db_core import (
    Database,
    DatabaseConfig,
    DatabaseError,
    ConnectionError,
    SessionError,
    db
)
from .repository import StaffingRepository, DuplicateRegistrationError

__all__ = [
    # Core database classes
    'Database',
    'DatabaseConfig',
    
    # Exceptions
    'DatabaseError',
    'ConnectionError',
    'SessionError',
    'DuplicateRegistrationError',
    
    # Global instance
    'db',
    
    # Repositories
    'StaffingRepository',
]
