"""
Item models shared by the tests.
"""

from typing import Any, Dict, Optional, Set

from pydantic import BaseModel

from dynamodb_access import VersionedModel

USER_TABLE = "UserTable"
PROFILE_TABLE = "ProfileTable"
PROFILE_USERNAME_INDEX = "UserNameIndex"


class User(BaseModel):
    UUID: str
    UserName: str = ""
    Tags: Optional[Set[str]] = None
    Meta: Optional[Dict[str, Any]] = None
    Count: int = 0


class Profile(BaseModel):
    UUID: str
    Email: str
    UserName: str = ""


class VersionedUser(VersionedModel):
    UUID: str
    UserName: str = ""
