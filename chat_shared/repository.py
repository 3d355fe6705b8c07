"""
Chat repository.

Data-access operations for messages, rooms and users, built on the store
adapter, the entity codec and the room ranking ledger. Every store failure
propagates as StorageError without retries; codec failures propagate as
FieldMissingError / TypeMismatchError.
"""

from typing import Dict, List

from chat_shared import codec
from chat_shared.errors import AmbiguousResultError, NotFoundError
from chat_shared.ledger import RoomRankingLedger, require_room_id
from chat_shared.store import DynamoDBStore
from chat_shared.types import Message, Room, User


MESSAGE_FIELDS = ['room_id', 'sort', 'sender_id', 'sender_name', 'message']
ROOM_FIELDS = ['room_id', 'name']
USER_FIELDS = ['user_id', 'name']


class ChatRepository:
    """
    Repository over the messages and users tables.

    Holds no per-request state; the only shared object is the store's boto3
    client.
    """

    def __init__(self, store: DynamoDBStore, config: Dict[str, str]):
        """
        Args:
            store: DynamoDB store adapter
            config: Dictionary containing:
                - messages_table_name: Table for rooms, messages and the ledger
                - users_table_name: Table for users
                - users_name_index: GSI on users.name
        """
        self.store = store
        self.messages_table = config['messages_table_name']
        self.users_table = config['users_table_name']
        self.users_name_index = config.get('users_name_index', 'name-index')
        self.ledger = RoomRankingLedger(store, self.messages_table)

    # Messages

    def post_message(
        self,
        room_id: str,
        body: str,
        sender_id: str,
        sender_name: str,
        timestamp: str
    ) -> Message:
        """
        Store a message and bump its room in the ledger.

        The two writes are not transactional. If the bump fails the message
        is still stored and the room resurfaces on its next bump. A room id
        the ledger would refuse is rejected before either write.
        """
        require_room_id(room_id)
        item = codec.encode_message(room_id, timestamp, sender_id, sender_name, body)
        self.store.put_item(self.messages_table, item)
        self.ledger.bump(room_id)
        return codec.decode_message(item)

    def get_message_by_id(self, room_id: str, message_id: str) -> Message:
        item = self.store.get_item(
            self.messages_table,
            codec.message_key(room_id, message_id),
            projection=MESSAGE_FIELDS
        )
        if not item:
            raise NotFoundError(f"Message '{message_id}' not found in room '{room_id}'")
        return codec.decode_message(item)

    def list_messages(self, room_id: str, limit: int) -> List[Message]:
        """Latest `limit` messages of a room, newest first."""
        items = self.store.query_prefix(
            self.messages_table,
            'room_id',
            codec.number(room_id),
            'sort',
            codec.MESSAGE_PREFIX,
            limit,
            descending=True
        )
        return [codec.decode_message(item) for item in items[:limit]]

    # Rooms

    def create_room(self, room_id: str, name: str) -> Room:
        """Store a room. The caller bumps the ledger if the room should be
        listed."""
        require_room_id(room_id)
        item = codec.encode_room(room_id, name)
        self.store.put_item(self.messages_table, item)
        return codec.decode_room(item)

    def bump_room(self, room_id: str) -> str:
        return self.ledger.bump(room_id)

    def list_active_rooms(self) -> List[Room]:
        """
        Rooms recorded in the ledger, most recently bumped first.

        Issues a single batch get for all ledger ids and no batch call at all
        when the ledger is empty. Ids whose room item is missing are skipped.
        """
        room_ids = self.ledger.most_recent_first()
        if not room_ids:
            return []

        items = self.store.batch_get(
            self.messages_table,
            [codec.room_key(room_id) for room_id in room_ids],
            projection=ROOM_FIELDS
        )

        rooms = {}
        for item in items:
            room = codec.decode_room(item)
            rooms[room['roomId']] = room

        return [rooms[room_id] for room_id in room_ids if room_id in rooms]

    # Users

    def create_user(self, user_id: str, name: str) -> User:
        item = codec.encode_user(user_id, name)
        self.store.put_item(self.users_table, item)
        return codec.decode_user(item)

    def get_user_by_id(self, user_id: str) -> User:
        item = self.store.get_item(
            self.users_table,
            codec.user_key(user_id),
            projection=USER_FIELDS
        )
        if not item:
            raise NotFoundError(f"User with ID '{user_id}' not found")
        return codec.decode_user(item)

    def get_user_by_name(self, name: str) -> User:
        """
        Look a user up through the name index.

        Raises:
            NotFoundError: If no user has this name
            AmbiguousResultError: If more than one user has this name
        """
        items = self.store.query_index(
            self.users_table,
            self.users_name_index,
            'name',
            codec.string(name),
            projection=USER_FIELDS
        )
        if not items:
            raise NotFoundError(f"User with name '{name}' not found")
        if len(items) > 1:
            raise AmbiguousResultError(
                f"Name '{name}' matches {len(items)} users",
                len(items)
            )
        return codec.decode_user(items[0])

    def user_exists(self, name: str) -> bool:
        """True when at least one user has this name. Storage failures are not
        swallowed."""
        try:
            self.get_user_by_name(name)
        except NotFoundError:
            return False
        except AmbiguousResultError:
            # Duplicates already exist; the name is certainly taken
            return True
        return True
