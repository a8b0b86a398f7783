import logging
from unittest.mock import Mock

import pytest

from dynamodb_access.core import with_source_label
from dynamodb_access.models import Key
from dynamodb_access.observability import OP_DELETE, OP_READ, CloudWatchMetrics
from tests.helpers import client_error


@pytest.fixture
def key():
    return Key().with_table_name("UserTable").with_hash_key_name("UUID").with_hash_key("u")


@pytest.fixture
def cloudwatch_client():
    return Mock()


class TestCloudWatchMetrics:
    """Test the CloudWatch sink."""

    def test_put_metric_data(self, cloudwatch_client, key):
        sink = CloudWatchMetrics(cloudwatch_client, namespace="Test")

        sink.record(None, OP_READ, key, 0.25, True)

        cloudwatch_client.put_metric_data.assert_called_once()
        kwargs = cloudwatch_client.put_metric_data.call_args.kwargs
        assert kwargs['Namespace'] == "Test"

        count, duration = kwargs['MetricData']
        expected_dimensions = [
            {'Name': 'Operation', 'Value': 'read'},
            {'Name': 'Status', 'Value': 'success'},
            {'Name': 'Table', 'Value': 'UserTable'},
        ]
        assert count == {'MetricName': 'Count', 'Dimensions': expected_dimensions, 'Value': 1, 'Unit': 'Count'}
        assert duration['MetricName'] == 'Duration'
        assert duration['Unit'] == 'Milliseconds'
        assert duration['Value'] == pytest.approx(250.0)

    def test_context_labels_become_dimensions(self, cloudwatch_client, key):
        sink = CloudWatchMetrics(cloudwatch_client)

        sink.record(with_source_label(None, "cleanup"), OP_DELETE, key, 0.1, False)

        dimensions = cloudwatch_client.put_metric_data.call_args.kwargs['MetricData'][0]['Dimensions']
        assert {'Name': 'Status', 'Value': 'failure'} in dimensions
        assert dimensions[-1] == {'Name': 'source', 'Value': 'cleanup'}

    def test_publish_failure_is_logged(self, cloudwatch_client, key, caplog):
        cloudwatch_client.put_metric_data.side_effect = client_error("ThrottlingException", "PutMetricData")
        sink = CloudWatchMetrics(cloudwatch_client)

        with caplog.at_level(logging.WARNING, logger="dynamodb_access.observability.cloudwatch"):
            sink.record(None, OP_READ, key, 0.1, True)

        assert "Failed to publish read metrics for table 'UserTable'" in caplog.text
