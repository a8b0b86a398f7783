"""
Test configuration and fixtures for the DynamoDB access layer.

Provides:
- moto-backed DynamoDB tables (UserTable, ProfileTable with a global index)
- Mock table/resource doubles for unit tests
- Recording metrics and log doubles wired into a Repository
"""

import os
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from dynamodb_access import Key, Repository
from tests.helpers import (
    PROFILE_TABLE,
    PROFILE_USERNAME_INDEX,
    USER_TABLE,
    RecordingLog,
    RecordingMetrics,
)


# =============================================================================
# Keys
# =============================================================================

@pytest.fixture
def user_key():
    return Key().with_table_name(USER_TABLE).with_hash_key_name("UUID").with_hash_key("uuid")


@pytest.fixture
def profile_key():
    return (
        Key()
        .with_table_name(PROFILE_TABLE)
        .with_hash_key_name("UUID")
        .with_hash_key("uuid")
        .with_range_key_name("Email")
        .with_range_key("a@example.com")
    )


# =============================================================================
# Unit test doubles
# =============================================================================

@pytest.fixture
def recording_metrics():
    return RecordingMetrics()


@pytest.fixture
def recording_log():
    return RecordingLog()


@pytest.fixture
def mock_table():
    """Mock DynamoDB table resource."""
    table = MagicMock()
    table.get_item.return_value = {}
    table.query.return_value = {'Items': []}
    table.scan.return_value = {'Items': []}
    table.put_item.return_value = {}
    table.update_item.return_value = {'Attributes': {}}
    table.delete_item.return_value = {}
    return table


@pytest.fixture
def mock_dynamodb(mock_table):
    """Mock DynamoDB service resource handing out ``mock_table``."""
    dynamodb = MagicMock()
    dynamodb.Table.return_value = mock_table
    dynamodb.batch_get_item.return_value = {'Responses': {}, 'UnprocessedKeys': {}}
    return dynamodb


@pytest.fixture
def repository(mock_dynamodb, recording_metrics, recording_log):
    """Repository over mocked DynamoDB with recording metrics and log."""
    return Repository(dynamodb=mock_dynamodb).with_metrics(recording_metrics).with_log(recording_log)


# =============================================================================
# moto fixtures
# =============================================================================

@pytest.fixture
def aws_credentials():
    """Fake credentials so no real AWS account can be reached."""
    env = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1',
    }
    previous = {name: os.environ.get(name) for name in env}
    os.environ.update(env)
    yield
    for name, value in previous.items():
        if value is None:
            os.environ.pop(name, None)
        else:
            os.environ[name] = value


@pytest.fixture
def mock_dynamodb_resource(aws_credentials):
    """In-memory DynamoDB resource."""
    with mock_aws():
        yield boto3.resource('dynamodb', region_name='us-east-1')


@pytest.fixture
def user_table(mock_dynamodb_resource):
    """Create UserTable (hash key UUID)."""
    return mock_dynamodb_resource.create_table(
        TableName=USER_TABLE,
        KeySchema=[
            {'AttributeName': 'UUID', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'UUID', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def profile_table(mock_dynamodb_resource):
    """Create ProfileTable (hash key UUID, range key Email) with a UserName index."""
    return mock_dynamodb_resource.create_table(
        TableName=PROFILE_TABLE,
        KeySchema=[
            {'AttributeName': 'UUID', 'KeyType': 'HASH'},
            {'AttributeName': 'Email', 'KeyType': 'RANGE'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'UUID', 'AttributeType': 'S'},
            {'AttributeName': 'Email', 'AttributeType': 'S'},
            {'AttributeName': 'UserName', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': PROFILE_USERNAME_INDEX,
                'KeySchema': [
                    {'AttributeName': 'UserName', 'KeyType': 'HASH'},
                    {'AttributeName': 'Email', 'KeyType': 'RANGE'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def moto_repository(mock_dynamodb_resource, user_table, profile_table, recording_metrics, recording_log):
    """Repository over moto DynamoDB with both tables created."""
    return Repository(dynamodb=mock_dynamodb_resource).with_metrics(recording_metrics).with_log(recording_log)
