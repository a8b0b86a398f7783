"""
CloudWatch metrics sink.

Each record becomes one ``PutMetricData`` call with two data points sharing
the same dimensions:

- ``Count``: 1 (Unit Count)
- ``Duration``: operation duration (Unit Milliseconds)

Dimensions are ``Operation``, ``Status``, ``Table`` and the context's metric
labels.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.context import Context, labels_from_context
from ..models import Key
from .metrics import MetricsInterface, status_label

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "DynamoDBAccess"


class CloudWatchMetrics(MetricsInterface):
    """MetricsInterface publishing to Amazon CloudWatch."""

    def __init__(self, client: Any = None, namespace: str = DEFAULT_NAMESPACE, region_name: Optional[str] = None):
        """Initialize the sink.

        Args:
            client: boto3 CloudWatch client; created from the default session when omitted
            namespace: CloudWatch metric namespace
            region_name: Region used when the client is created here
        """
        self.client = client or boto3.client('cloudwatch', region_name=region_name)
        self.namespace = namespace

    def build_dimensions(self, ctx: Optional[Context], operation: str, key: Key, success: bool) -> List[Dict[str, str]]:
        dimensions = [
            {'Name': 'Operation', 'Value': operation},
            {'Name': 'Status', 'Value': status_label(success)},
            {'Name': 'Table', 'Value': key.table_name},
        ]
        for name, value in sorted(labels_from_context(ctx).items()):
            dimensions.append({'Name': name, 'Value': value})
        return dimensions

    def record(self, ctx: Optional[Context], operation: str, key: Key, duration: float, success: bool) -> None:
        dimensions = self.build_dimensions(ctx, operation, key, success)
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[
                    {
                        'MetricName': 'Count',
                        'Dimensions': dimensions,
                        'Value': 1,
                        'Unit': 'Count',
                    },
                    {
                        'MetricName': 'Duration',
                        'Dimensions': dimensions,
                        'Value': duration * 1000.0,
                        'Unit': 'Milliseconds',
                    },
                ],
            )
        except (ClientError, BotoCoreError) as e:
            # Metrics delivery never fails the data operation
            logger.warning(f"Failed to publish {operation} metrics for table '{key.table_name}': {e}")
