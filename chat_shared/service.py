"""
Chat service.

Business flows on top of the repository: sign-up and sign-in by name,
opening rooms, sending and reading messages, listing active rooms.

Every public method:
1. Validates its input before touching DynamoDB (ValidationError)
2. Runs with a structured logger bound to a correlation id
3. On failure, logs the error once. A DomainError also carries the
   presentable ErrorResponse as `report`; other exceptions propagate
   unchanged after being logged under an incident id
"""

import functools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ulid import ULID

from chat_shared.errors import ConflictError, DomainError, ValidationError
from chat_shared.logger import StructuredLogger, create_logger
from chat_shared.metrics import MetricsClient
from chat_shared.reporting import report_error
from chat_shared.repository import ChatRepository
from chat_shared.store import DynamoDBStore, create_dynamodb_client
from chat_shared.types import Message, Room, User, ValidationIssue
from chat_shared import validation


def new_id() -> str:
    """
    Generate a numeric id.

    The first 15 bytes of a ULID (48-bit timestamp + 72 random bits) as a
    decimal integer: at most 37 digits, within DynamoDB's 38-digit number
    precision, and roughly ordered by creation time.
    """
    return str(int.from_bytes(ULID().bytes[:15], 'big'))


def utc_timestamp(now: datetime) -> str:
    """RFC3339 UTC timestamp with fixed microsecond precision, so string
    order matches time order."""
    return now.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require(issues: List[ValidationIssue]) -> None:
    if issues:
        raise ValidationError('Invalid request data', {'errors': issues})


def operation(name: str) -> Callable:
    """
    Wrap a service method with lifecycle logging and error reporting.

    The wrapped method accepts an extra keyword argument `correlation_id`.
    """
    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self: 'ChatService', *args: Any, correlation_id: Optional[str] = None, **kwargs: Any):
            logger = self.create_logger(name, correlation_id)
            logger.log_operation_start()
            try:
                result = method(self, *args, **kwargs)
            except DomainError as error:
                error.report = report_error(error, logger)
                logger.publish_metrics()
                raise
            except Exception as error:
                report_error(error, logger)
                logger.publish_metrics()
                raise

            logger.log_operation_complete()
            logger.publish_metrics()
            return result
        return wrapper
    return decorator


class ChatService:
    """
    Service class for chat operations.

    Holds the repository and configuration only; no per-request state.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        repository: Optional[ChatRepository] = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = new_id,
        metrics_factory: Optional[Callable[[str], MetricsClient]] = None
    ):
        """
        Args:
            config: Output of chat_shared.config.load_config
            repository: Repository to use (default: one over a new boto3 client)
            clock: Source of the current time for message timestamps
            id_factory: Source of new user and room ids
            metrics_factory: Builds the metrics client of each operation
        """
        self.config = config
        if repository is None:
            repository = ChatRepository(DynamoDBStore(create_dynamodb_client(config)), config)
        self.repository = repository
        self.clock = clock
        self.id_factory = id_factory
        self.metrics_factory = metrics_factory or (
            lambda op: MetricsClient(op, region_name=config.get('aws_region'))
        )

    def create_logger(self, operation_name: str, correlation_id: Optional[str]) -> StructuredLogger:
        return create_logger(operation_name, correlation_id, self.metrics_factory(operation_name))

    # Users

    @operation('users-sign-up')
    def sign_up(self, name: str) -> User:
        """
        Register a new user under a unique name.

        Raises:
            ValidationError: If the name is empty or too long
            ConflictError: If the name is already registered
        """
        _require(validation.validate_name(name))

        # Check-then-write is not atomic; two concurrent sign-ups can both pass
        if self.repository.user_exists(name):
            raise ConflictError(f"Name '{name}' is already registered", {'name': name})

        return self.repository.create_user(self.id_factory(), name)

    @operation('users-sign-in')
    def sign_in(self, name: str) -> User:
        _require(validation.validate_name(name))
        return self.repository.get_user_by_name(name)

    @operation('users-get')
    def get_user(self, user_id: str) -> User:
        _require(validation.validate_id('userId', user_id))
        return self.repository.get_user_by_id(user_id)

    # Rooms

    @operation('rooms-open')
    def open_room(self, name: str) -> Room:
        """Create a room and put it at the top of the active-room listing."""
        _require(validation.validate_name(name))

        room = self.repository.create_room(self.id_factory(), name)
        self.repository.bump_room(room['roomId'])
        return room

    @operation('rooms-list')
    def active_rooms(self) -> List[Room]:
        return self.repository.list_active_rooms()

    # Messages

    @operation('messages-post')
    def send_message(self, room_id: str, sender_id: str, body: str) -> Message:
        """
        Post a message as an existing user.

        The sender's current name is copied onto the message.

        Raises:
            ValidationError: If an id is malformed or the body is empty
            NotFoundError: If the sender does not exist
        """
        _require(
            validation.validate_id('roomId', room_id)
            + validation.validate_id('senderId', sender_id)
            + validation.validate_message_body(body)
        )

        sender = self.repository.get_user_by_id(sender_id)
        return self.repository.post_message(
            room_id,
            body,
            sender['userId'],
            sender['name'],
            utc_timestamp(self.clock())
        )

    @operation('messages-list')
    def latest_messages(self, room_id: str, limit: Optional[int] = None) -> List[Message]:
        if limit is None:
            limit = self.config.get('message_page_limit', 50)

        _require(validation.validate_id('roomId', room_id) + validation.validate_limit(limit))
        return self.repository.list_messages(room_id, limit)

    @operation('messages-get')
    def get_message(self, room_id: str, message_id: str) -> Message:
        _require(
            validation.validate_id('roomId', room_id)
            + validation.validate_message_id(message_id)
        )
        return self.repository.get_message_by_id(room_id, message_id)
