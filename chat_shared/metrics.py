"""
CloudWatch metrics for Chat Service operations.

Emits custom CloudWatch metrics for operation count, error count and latency.
Metrics are buffered per operation and sent in one publish() call; a failed
publish never fails the operation that produced the metrics.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import boto3


# Metric namespace for all chat service metrics
METRIC_NAMESPACE = 'ChatService'

# CloudWatch PutMetricData limit per request
PUBLISH_BATCH_SIZE = 20


class MetricsClient:
    """
    CloudWatch metrics client for one operation.

    Usage:
        metrics = MetricsClient(operation='rooms-list')
        metrics.emit_request_count()
        metrics.emit_latency(latency_ms=12)
        metrics.publish()
    """

    def __init__(
        self,
        operation: str,
        region_name: Optional[str] = None,
        cloudwatch: Any = None
    ):
        """
        Args:
            operation: Operation name (e.g., 'messages-post', 'rooms-list')
            region_name: Region for the CloudWatch client (optional)
            cloudwatch: Pre-built CloudWatch client (optional); created on
                first publish otherwise
        """
        if not operation or not operation.strip():
            raise ValueError('Operation name is required for metrics')

        self.operation = operation
        self.region_name = region_name
        self._cloudwatch = cloudwatch
        self._metric_data: List[Dict[str, Any]] = []

    @property
    def cloudwatch(self):
        if self._cloudwatch is None:
            self._cloudwatch = boto3.client('cloudwatch', region_name=self.region_name)
        return self._cloudwatch

    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: Optional[List[Dict[str, str]]] = None
    ) -> None:
        all_dimensions = [{'Name': 'Operation', 'Value': self.operation}]
        if dimensions:
            all_dimensions.extend(dimensions)

        self._metric_data.append({
            'MetricName': metric_name,
            'Value': value,
            'Unit': unit,
            'Timestamp': datetime.now(timezone.utc),
            'Dimensions': all_dimensions
        })

    def emit_request_count(self, count: int = 1) -> None:
        self._add_metric('RequestCount', float(count), 'Count')

    def emit_error(self, error_code: Optional[str] = None) -> None:
        """
        Emit an error metric, with the error code as an extra dimension when
        given.

        Example:
            metrics.emit_error(error_code='STORAGE_ERROR')
        """
        dimensions = []
        if error_code:
            dimensions.append({'Name': 'ErrorCode', 'Value': error_code})

        self._add_metric('ErrorCount', 1.0, 'Count', dimensions or None)

    def emit_latency(self, latency_ms: int) -> None:
        if latency_ms < 0:
            raise ValueError('Latency must be non-negative')

        self._add_metric('Latency', float(latency_ms), 'Milliseconds')

    def publish(self) -> None:
        """
        Send all buffered metrics to CloudWatch in batches of
        PUBLISH_BATCH_SIZE, then clear the buffer.

        Failures are printed and dropped: metrics are not critical to the
        operation's success.
        """
        if not self._metric_data:
            return

        try:
            for i in range(0, len(self._metric_data), PUBLISH_BATCH_SIZE):
                self.cloudwatch.put_metric_data(
                    Namespace=METRIC_NAMESPACE,
                    MetricData=self._metric_data[i:i + PUBLISH_BATCH_SIZE]
                )
        except Exception as error:
            print(f'Failed to publish metrics: {error}')
        finally:
            self._metric_data = []


def create_metrics_client(operation: str, region_name: Optional[str] = None) -> MetricsClient:
    return MetricsClient(operation, region_name=region_name)
