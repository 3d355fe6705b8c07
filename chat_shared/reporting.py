"""
Error reporting at the boundary between the core and its callers.

Turns any exception raised by a chat operation into a presentable
ErrorResponse. Caller-facing errors (validation, not found, conflict,
ambiguous name) keep their code and message. Storage failures, corrupt items
and unexpected exceptions collapse into a generic message with an incident
id; the detailed diagnostic is logged under that id and never returned.
"""

from ulid import ULID

from chat_shared.errors import (
    DomainError,
    FieldMissingError,
    INTERNAL_MESSAGE,
    StorageError,
    TypeMismatchError,
    ValidationError,
)
from chat_shared.logger import StructuredLogger
from chat_shared.types import ErrorResponse


def report_error(error: Exception, logger: StructuredLogger) -> ErrorResponse:
    """
    Log an error and build the response shown to the caller.

    Args:
        error: Exception raised by a chat operation
        logger: Logger of the failing operation

    Returns:
        ErrorResponse with code, message and details
    """
    if isinstance(error, ValidationError):
        logger.log_validation_error(errors=error.details.get('errors', []))
        return {'code': error.code, 'message': error.message, 'details': error.details}

    if isinstance(error, DomainError) and not isinstance(
        error, (StorageError, FieldMissingError, TypeMismatchError)
    ):
        logger.log_domain_error(error_code=error.code, error_message=error.message)
        return {'code': error.code, 'message': error.message, 'details': error.details}

    incident_id = str(ULID())

    if isinstance(error, StorageError):
        code = 'STORAGE_ERROR'
        debug = error.debug or repr(error)
    elif isinstance(error, DomainError):
        # Codec failures mean corrupt data or a schema mismatch
        code = 'STORAGE_ERROR'
        debug = f'{error.message}: {error.details}'
    else:
        code = 'INTERNAL_ERROR'
        debug = repr(error)

    logger.log_unexpected_error(
        error_type=type(error).__name__,
        error_message=debug,
        errorCode=code,
        incidentId=incident_id
    )

    return {
        'code': code,
        'message': f'{INTERNAL_MESSAGE} ({incident_id})',
        'details': {'incidentId': incident_id},
    }
