"""
Tests for GlobalIndex (repositories/global_index.py) against a mocked boto3 table.
"""

import pytest
from boto3.dynamodb.conditions import Key as KeyCondition
from botocore.exceptions import ClientError

from dynamodb_access import Key, Operator, Query
from dynamodb_access.exceptions import InvalidHashKeyNameError, InvalidQueryTargetError
from dynamodb_access.observability import OP_READ
from tests.helpers import PROFILE_TABLE, PROFILE_USERNAME_INDEX, Profile, RecordingLog, client_error


@pytest.fixture
def index(repository):
    return repository.gindex(PROFILE_USERNAME_INDEX)


@pytest.fixture
def index_key():
    return (
        Key()
        .with_table_name(PROFILE_TABLE)
        .with_hash_key_name("UserName")
        .with_hash_key("name")
        .with_range_key_name("Email")
        .with_range_key("a@example.com")
    )


class TestGlobalIndexGetItem:
    """Test single item reads through the index."""

    def test_found(self, index, mock_table, index_key, recording_metrics):
        mock_table.query.return_value = {'Items': [{'UUID': 'uuid', 'Email': 'a@example.com', 'UserName': 'name'}]}
        profile = Profile(UUID="", Email="")

        assert index.get_item(index_key, profile) is True

        mock_table.query.assert_called_once_with(
            IndexName=PROFILE_USERNAME_INDEX,
            KeyConditionExpression=KeyCondition('UserName').eq('name') & KeyCondition('Email').eq('a@example.com'),
            Limit=1
        )
        assert profile.UUID == "uuid"
        assert recording_metrics.last['operation'] == OP_READ
        assert recording_metrics.last['success'] is True

    def test_not_found(self, index, index_key, recording_metrics, recording_log):
        item = {}

        assert index.get_item(index_key, item) is False

        assert item == {}
        assert recording_metrics.last['success'] is True
        assert recording_log.lines[-1]['message'] == 'no item found'
        assert recording_log.lines[-1]['fields'] == {'table_name': PROFILE_TABLE}

    def test_invalid_key(self, index, mock_table):
        with pytest.raises(InvalidHashKeyNameError):
            index.get_item(Key().with_table_name(PROFILE_TABLE).with_hash_key("name"), {})

        mock_table.query.assert_not_called()

    def test_error(self, index, mock_table, index_key, recording_metrics):
        mock_table.query.side_effect = client_error("ResourceNotFoundException", "Query")

        with pytest.raises(ClientError):
            index.get_item(index_key, {})
        assert recording_metrics.last['success'] is False


class TestGlobalIndexGetItems:
    """Test multi item reads through the index."""

    def test_get_items_ignores_range(self, index, mock_table, index_key):
        mock_table.query.return_value = {'Items': [{'UUID': 'a', 'Email': 'x'}, {'UUID': 'b', 'Email': 'y'}]}
        items = []

        assert index.get_items(index_key, items, model=Profile) is True

        mock_table.query.assert_called_once_with(
            IndexName=PROFILE_USERNAME_INDEX,
            KeyConditionExpression=KeyCondition('UserName').eq('name')
        )
        assert [profile.UUID for profile in items] == ['a', 'b']

    def test_get_items_with_range(self, index, mock_table, index_key):
        mock_table.query.return_value = {'Items': [{'UUID': 'a'}]}
        items = []

        assert index.get_items_with_range(index_key, items) is True

        condition = mock_table.query.call_args.kwargs['KeyConditionExpression']
        assert condition == KeyCondition('UserName').eq('name') & KeyCondition('Email').eq('a@example.com')

    def test_get_items_empty(self, index, index_key):
        items = []

        assert index.get_items(index_key, items) is False
        assert index.get_items_with_range(index_key, items) is False
        assert items == []


class TestGlobalIndexQuery:
    """Test index queries."""

    def test_query(self, index, mock_table):
        mock_table.query.return_value = {'Items': [{'UUID': 'a'}]}
        query = (
            Query()
            .with_table_name(PROFILE_TABLE)
            .with_hash_key_name("UserName")
            .with_hash_key("name")
            .with_range_key_name("Email")
            .with_range_key("a")
            .with_range_op(Operator.BEGINS_WITH)
            .with_descending()
        )
        items = []

        index.query(query, items)

        mock_table.query.assert_called_once_with(
            IndexName=PROFILE_USERNAME_INDEX,
            KeyConditionExpression=KeyCondition('UserName').eq('name') & KeyCondition('Email').begins_with('a'),
            ScanIndexForward=False
        )
        assert items == [{'UUID': 'a'}]

    def test_invalid_target(self, index):
        with pytest.raises(InvalidQueryTargetError):
            index.query(Query(), "not-a-list")


class TestGlobalIndexWiring:
    def test_with_log_is_local_to_index(self, repository, recording_log):
        index = repository.gindex(PROFILE_USERNAME_INDEX)
        index_log = RecordingLog()

        index.with_log(index_log)

        assert index.log is index_log
        assert repository.log is recording_log

    def test_metrics_sink_added_on_index_is_shared(self, repository, mock_table, recording_metrics):
        from tests.helpers import RecordingMetrics

        extra = RecordingMetrics()
        repository.gindex(PROFILE_USERNAME_INDEX).with_metrics(extra)

        repository.delete_item(Key().with_table_name(PROFILE_TABLE).with_hash_key_name("UUID").with_hash_key("u"))

        assert len(extra.records) == 1
