"""
Versioned item capability used by optimistic locking.

Items passed to ``Repository.optimistic_lock_save`` must satisfy
``ModelInterface``. ``VersionedModel`` is a ready-made pydantic base that
stores the version and timestamps as ``Version``, ``CreatedAt`` and
``UpdatedAt``.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

VERSION_ATTRIBUTE = "Version"
CREATED_AT_ATTRIBUTE = "CreatedAt"
UPDATED_AT_ATTRIBUTE = "UpdatedAt"


@runtime_checkable
class ModelInterface(Protocol):
    """Capability required for optimistic locking."""

    def get_version(self) -> int: ...

    def increase_version(self) -> None: ...

    def init_created_at(self) -> None: ...

    def init_updated_at(self) -> None: ...


class VersionedModel(BaseModel):
    """Pydantic base carrying a version counter and audit timestamps.

    Example:
        class User(VersionedModel):
            UUID: str
            UserName: str

        user = User(UUID="uuid", UserName="name")
        saved = repository.optimistic_lock_save(key, user)
    """

    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(default=0, alias=VERSION_ATTRIBUTE)
    created_at: Optional[datetime] = Field(default=None, alias=CREATED_AT_ATTRIBUTE)
    updated_at: Optional[datetime] = Field(default=None, alias=UPDATED_AT_ATTRIBUTE)

    def get_version(self) -> int:
        return self.version

    def increase_version(self) -> None:
        self.version += 1

    def init_created_at(self) -> None:
        """Stamp the creation time unless the item already has one."""
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    def init_updated_at(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
