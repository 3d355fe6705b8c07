"""Shared core of the Chat Service: codec, ledger, repository and service."""

from .types import (
    Room,
    Message,
    User,
    ErrorResponse
)

from .errors import (
    DomainError,
    ValidationError,
    NotFoundError,
    ConflictError,
    AmbiguousResultError,
    FieldMissingError,
    TypeMismatchError,
    StorageError
)

from .ledger import RoomRankingLedger
from .repository import ChatRepository
from .service import ChatService
from .config import load_config

__all__ = [
    # Types
    'Room',
    'Message',
    'User',
    'ErrorResponse',
    # Errors
    'DomainError',
    'ValidationError',
    'NotFoundError',
    'ConflictError',
    'AmbiguousResultError',
    'FieldMissingError',
    'TypeMismatchError',
    'StorageError',
    # Components
    'RoomRankingLedger',
    'ChatRepository',
    'ChatService',
    'load_config',
]
