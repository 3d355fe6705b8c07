"""
Domain error classes for the Chat Service.

These error classes provide explicit, typed exceptions that the caller can
inspect by class or by ``code``. Storage and codec failures carry a detailed
diagnostic in ``debug`` that is logged, never shown to the end user.
"""

from typing import Dict, Any, Optional


# Message shown to end users for anything that is not their fault
INTERNAL_MESSAGE = 'Internal server error'


class DomainError(Exception):
    """
    Base class for all domain errors.

    Domain errors are explicit business logic errors that the boundary
    layer maps to presentable responses.
    """

    def __init__(self, code: str, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """
    Raised when caller-supplied input is invalid (empty name, empty message,
    malformed id).

    Details should contain field-level validation errors.
    """

    def __init__(self, message: str, details: Dict[str, Any]):
        super().__init__('VALIDATION_ERROR', message, details)


class NotFoundError(DomainError):
    """Raised when a point lookup misses."""

    def __init__(self, message: str):
        super().__init__('NOT_FOUND', message, {})


class ConflictError(DomainError):
    """
    Raised when an operation conflicts with existing state.

    Example: signing up with a name that is already registered.
    """

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('CONFLICT', message, details or {})


class AmbiguousResultError(DomainError):
    """
    Raised when a unique-name index lookup returns more than one row.

    Name uniqueness is an invariant, so this means the users table is in a
    state the service does not support.
    """

    def __init__(self, message: str, matches: int):
        super().__init__('AMBIGUOUS_RESULT', message, {'matches': matches})


class FieldMissingError(DomainError):
    """Raised when decoding an item that lacks a required attribute."""

    def __init__(self, field: str, source: Dict[str, Any]):
        super().__init__(
            'FIELD_MISSING',
            f"Could not index item by '{field}'",
            {'field': field, 'source': source}
        )
        self.field = field
        self.source = source


class TypeMismatchError(DomainError):
    """Raised when an attribute exists but carries the wrong type tag."""

    def __init__(self, field: str, expected: str, found: Any):
        super().__init__(
            'TYPE_MISMATCH',
            f"Attribute '{field}' is not of type {expected}",
            {'field': field, 'expected': expected, 'found': found}
        )
        self.field = field
        self.expected = expected
        self.found = found


class StorageError(DomainError):
    """
    Raised when a DynamoDB call fails for any transport or server reason.

    ``message`` is safe to show to users; ``debug`` holds the underlying
    botocore error text and is only ever logged.
    """

    def __init__(self, operation: str, debug: Optional[str] = None):
        super().__init__('STORAGE_ERROR', INTERNAL_MESSAGE, {'operation': operation})
        self.operation = operation
        self.debug = debug
