"""
Repository layer:

- Repository: CRUD, query, batch and conditional operations on the primary key
- GlobalIndex: read operations through a global secondary index
- ScanIterator: paginated full table scan
"""

from .base import BaseRepository, ResourceProvider, create_dynamodb_resource
from .global_index import GlobalIndex
from .iterator import ScanIterator
from .repository import Repository

__all__ = [
    "BaseRepository",
    "GlobalIndex",
    "Repository",
    "ResourceProvider",
    "ScanIterator",
    "create_dynamodb_resource",
]
