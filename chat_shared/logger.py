"""
Structured logging for Chat Service operations.

One JSON object per line on stdout (collected by CloudWatch Logs), each
carrying the correlation id of the operation. Completion and error events
also feed the operation's CloudWatch metrics.
"""

import json
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from ulid import ULID

from chat_shared.metrics import MetricsClient, create_metrics_client


# Field names that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'token',
    'secret',
    'authorization',
    'auth',
    'credentials',
    'accesstoken',
    'access_token',
    'sessionid',
    'session_id',
    'aws_secret_access_key',
    'aws_session_token',
}


class StructuredLogger:
    """
    Structured logger for one chat operation.

    Usage:
        logger = create_logger('messages-post')
        logger.log_operation_start(roomId='42')
        # ... process request ...
        logger.log_operation_complete(roomId='42')
        logger.publish_metrics()
    """

    def __init__(
        self,
        correlation_id: str,
        operation: str,
        metrics: Optional[MetricsClient] = None
    ):
        """
        Args:
            correlation_id: Unique identifier for request tracing
            operation: Operation name for logs and metrics
            metrics: Metrics client (default: a new MetricsClient)
        """
        self.correlation_id = correlation_id
        self.operation = operation
        self.start_time = time.time()
        self.metrics = metrics or create_metrics_client(operation)

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Redact sensitive fields, recursing into nested dicts and lists."""
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                sanitized[key] = '[REDACTED]'
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized

    def _latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def _log(self, event: str, **kwargs: Any) -> None:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'correlationId': self.correlation_id,
            'operation': self.operation,
            'event': event,
            **self._sanitize_data(kwargs)
        }

        # Use print for CloudWatch Logs
        print(json.dumps(log_entry, default=str))

    def log_operation_start(self, **additional_fields: Any) -> None:
        self._log('operation_start', **additional_fields)

    def log_operation_complete(self, **additional_fields: Any) -> None:
        """
        Log successful completion with latency and emit request count and
        latency metrics.
        """
        latency_ms = self._latency_ms()

        self._log('operation_complete', latencyMs=latency_ms, **additional_fields)

        self.metrics.emit_request_count()
        self.metrics.emit_latency(latency_ms)

    def log_validation_error(self, errors: Any, **additional_fields: Any) -> None:
        """
        Log rejected input with the field-level issues. Emits no error
        metric.

        Example:
            logger.log_validation_error(
                errors=[{'field': 'name', 'message': 'Field is required'}]
            )
        """
        self._log(
            'validation_error',
            errors=errors,
            latencyMs=self._latency_ms(),
            **additional_fields
        )

    def log_domain_error(
        self,
        error_code: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log an expected business error (not found, conflict, ...) and emit
        the error metric.

        Example:
            logger.log_domain_error(
                error_code='NOT_FOUND',
                error_message="User with ID '7' not found"
            )
        """
        latency_ms = self._latency_ms()

        self._log(
            'domain_error',
            errorCode=error_code,
            errorMessage=error_message,
            latencyMs=latency_ms,
            **additional_fields
        )

        self.metrics.emit_error(error_code=error_code)
        self.metrics.emit_latency(latency_ms)

    def log_unexpected_error(
        self,
        error_type: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log a system error (DynamoDB failure, corrupt item, bug).

        The detailed message goes only to the log; callers show users the
        generic message instead.
        """
        latency_ms = self._latency_ms()

        self._log(
            'unexpected_error',
            errorType=error_type,
            errorMessage=error_message,
            latencyMs=latency_ms,
            **additional_fields
        )

        self.metrics.emit_error(error_code=additional_fields.get('errorCode', 'INTERNAL_ERROR'))
        self.metrics.emit_latency(latency_ms)

    def publish_metrics(self) -> None:
        self.metrics.publish()


def create_logger(
    operation: str,
    correlation_id: Optional[str] = None,
    metrics: Optional[MetricsClient] = None
) -> StructuredLogger:
    """
    Create a structured logger for an operation.

    Args:
        operation: Operation name (e.g., 'rooms-open')
        correlation_id: Id from the caller's request; a new ULID otherwise
        metrics: Metrics client to use (optional)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(correlation_id or str(ULID()), operation, metrics)
