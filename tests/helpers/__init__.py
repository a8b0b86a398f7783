"""
Test helpers for the DynamoDB access layer.

Recording doubles for metrics and logging, a ClientError factory and the
item models used across unit and integration tests.
"""

from .doubles import RecordingLog, RecordingMetrics, client_error
from .models import (
    PROFILE_TABLE,
    PROFILE_USERNAME_INDEX,
    USER_TABLE,
    Profile,
    User,
    VersionedUser,
)

__all__ = [
    'RecordingLog',
    'RecordingMetrics',
    'client_error',
    'PROFILE_TABLE',
    'PROFILE_USERNAME_INDEX',
    'USER_TABLE',
    'Profile',
    'User',
    'VersionedUser',
]
