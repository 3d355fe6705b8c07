"""
Entity codec for the Chat Service.

Translates typed records (Room, Message, User) to and from DynamoDB's
low-level attribute-value maps and owns the compound-key scheme of the
messages table:

    Room:    room_id=N(<room id>), sort=S('room')
    Message: room_id=N(<room id>), sort=S('message.<timestamp>')
    Ledger:  room_id=N('1'),       sort=S('active_rooms')

Identifiers are tagged N, every other string is tagged S. Decoding never
coerces: a missing attribute raises FieldMissingError, a wrong tag raises
TypeMismatchError.
"""

from typing import Any, Dict

from chat_shared.errors import FieldMissingError, TypeMismatchError
from chat_shared.types import Item, Message, Room, User


ROOM_SORT = 'room'
MESSAGE_PREFIX = 'message.'
LEDGER_PARTITION = '1'
LEDGER_SORT = 'active_rooms'


def number(value: str) -> Dict[str, str]:
    return {'N': str(value)}


def string(value: str) -> Dict[str, str]:
    return {'S': value}


def _read(item: Item, field: str, tag: str) -> str:
    """
    Read one attribute with a strict type tag.

    Raises:
        FieldMissingError: If the attribute is absent
        TypeMismatchError: If the attribute is present with another tag
    """
    if field not in item:
        raise FieldMissingError(field, item)

    value = item[field]
    if not isinstance(value, dict) or tag not in value:
        found = sorted(value.keys()) if isinstance(value, dict) else type(value).__name__
        raise TypeMismatchError(field, tag, found)

    return value[tag]


def read_number(item: Item, field: str) -> str:
    return _read(item, field, 'N')


def read_string(item: Item, field: str) -> str:
    return _read(item, field, 'S')


# Keys

def room_key(room_id: str) -> Item:
    return {'room_id': number(room_id), 'sort': string(ROOM_SORT)}


def message_sort_key(message_id: str) -> str:
    return f'{MESSAGE_PREFIX}{message_id}'


def message_key(room_id: str, message_id: str) -> Item:
    return {'room_id': number(room_id), 'sort': string(message_sort_key(message_id))}


def ledger_key() -> Item:
    return {'room_id': number(LEDGER_PARTITION), 'sort': string(LEDGER_SORT)}


def user_key(user_id: str) -> Item:
    return {'user_id': number(user_id)}


# Rooms

def encode_room(room_id: str, name: str) -> Item:
    return {**room_key(room_id), 'name': string(name)}


def decode_room(item: Item) -> Room:
    """Decode a Room item. Only room_id and name are required, so projected
    batch-get results decode as well."""
    return {
        'roomId': read_number(item, 'room_id'),
        'name': read_string(item, 'name'),
    }


# Messages

def encode_message(
    room_id: str,
    timestamp: str,
    sender_id: str,
    sender_name: str,
    body: str
) -> Item:
    return {
        **message_key(room_id, timestamp),
        'sender_id': number(sender_id),
        'sender_name': string(sender_name),
        'message': string(body),
    }


def decode_message(item: Item) -> Message:
    """
    Decode a Message item.

    The timestamp is recovered from the sort key by stripping the
    'message.' prefix. A sort key without the prefix means the item is not
    a message at all and is reported as a type mismatch on 'sort'.
    """
    sort = read_string(item, 'sort')
    if not sort.startswith(MESSAGE_PREFIX) or len(sort) == len(MESSAGE_PREFIX):
        raise TypeMismatchError('sort', f'S({MESSAGE_PREFIX}<timestamp>)', sort)

    date_time = sort[len(MESSAGE_PREFIX):]
    return {
        'roomId': read_number(item, 'room_id'),
        'messageId': date_time,
        'dateTime': date_time,
        'senderId': read_number(item, 'sender_id'),
        'senderName': read_string(item, 'sender_name'),
        'body': read_string(item, 'message'),
    }


# Users

def encode_user(user_id: str, name: str) -> Item:
    return {**user_key(user_id), 'name': string(name)}


def decode_user(item: Item) -> User:
    return {
        'userId': read_number(item, 'user_id'),
        'name': read_string(item, 'name'),
    }


def describe_key(key: Dict[str, Any]) -> str:
    """Render a key for log lines, e.g. 'room_id=42,sort=room'."""
    parts = []
    for field, value in key.items():
        scalar = next(iter(value.values())) if isinstance(value, dict) and value else value
        parts.append(f'{field}={scalar}')
    return ','.join(parts)
