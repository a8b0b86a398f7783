from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

import pytest

from dynamodb_access.exceptions import InvalidSequenceError
from dynamodb_access.utils import assign_item, item_to_model, model_to_item, to_attribute_value, to_sequence
from tests.helpers import User, VersionedUser


class Color(Enum):
    RED = "red"


class TestToAttributeValue:
    """Test conversion of Python values for boto3."""

    def test_scalars(self):
        assert to_attribute_value(1.25) == Decimal("1.25")
        assert to_attribute_value(True) is True
        assert to_attribute_value(3) == 3
        assert to_attribute_value("s") == "s"
        assert to_attribute_value(None) is None
        assert to_attribute_value(Color.RED) == "red"

    def test_datetime(self):
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert to_attribute_value(value) == "2024-01-02T03:04:05+00:00"

    def test_containers(self):
        converted = to_attribute_value({"a": [1.5, (2, 3)], "b": {"x"}})

        assert converted == {"a": [Decimal("1.5"), [2, 3]], "b": {"x"}}


class TestItemConversion:
    """Test item encoding and decoding."""

    def test_model_to_item_excludes_none(self):
        item = model_to_item(User(UUID="u", UserName="name"))

        assert item == {"UUID": "u", "UserName": "name", "Count": 0}

    def test_model_to_item_uses_aliases(self):
        item = model_to_item(VersionedUser(UUID="u", version=2))

        assert item["Version"] == 2
        assert "version" not in item
        assert "CreatedAt" not in item

    def test_mapping_passes_through(self):
        assert model_to_item({"UUID": "u", "Score": 0.5}) == {"UUID": "u", "Score": Decimal("0.5")}

    def test_unsupported_item(self):
        with pytest.raises(TypeError, match="Unsupported item type"):
            model_to_item(["not", "an", "item"])

    def test_item_to_model(self):
        raw = {"UUID": "u", "UserName": "name", "Count": Decimal("4")}

        assert item_to_model(raw) == raw
        user = item_to_model(raw, User)
        assert isinstance(user, User)
        assert user.Count == 4


class TestAssignItem:
    """Test in-place output filling."""

    def test_assign_dict_replaces_content(self):
        target = {"stale": True}

        assign_item(target, {"UUID": "u"})

        assert target == {"UUID": "u"}

    def test_assign_model(self):
        target = User(UUID="old")

        assign_item(target, {"UUID": "new", "UserName": "name", "Tags": {"a"}})

        assert target.UUID == "new"
        assert target.UserName == "name"
        assert target.Tags == {"a"}

    def test_assign_versioned_model_from_aliases(self):
        target = VersionedUser(UUID="u")

        assign_item(target, {"UUID": "u", "Version": Decimal("3"), "CreatedAt": "2024-01-01T00:00:00+00:00"})

        assert target.version == 3
        assert target.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_assign_unsupported_target(self):
        with pytest.raises(TypeError):
            assign_item([], {"UUID": "u"})


class TestToSequence:
    def test_list_and_tuple(self):
        assert to_sequence([1, 2]) == [1, 2]
        assert to_sequence((1, 2)) == [1, 2]

    @pytest.mark.parametrize("value", ["abc", {"a": 1}, 5, None])
    def test_non_sequence(self, value):
        with pytest.raises(InvalidSequenceError):
            to_sequence(value)
