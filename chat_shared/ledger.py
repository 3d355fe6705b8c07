"""
Active-room ranking ledger.

The ledger is a single item in the messages table
(room_id=1, sort='active_rooms') whose 'room_ids' attribute is a
comma-separated string of room ids. Storage order is oldest bump first:
a bump moves the room id to the END of the string. This keeps the stored
value compatible with existing data; most_recent_first() is the one place
that turns it into newest-first order for listings.

bump() is a plain read-modify-write with an unconditional overwrite, so two
concurrent bumps can race and the loser's bump is lost. That is accepted for
a "recently active" hint and is not reported as an error. All parsing and
serializing of the scalar lives in this module.
"""

from typing import List, Optional

from chat_shared.codec import ledger_key, read_string, string
from chat_shared.errors import ValidationError
from chat_shared.store import DynamoDBStore
from chat_shared.validation import validate_id


SEPARATOR = ','
LEDGER_ATTRIBUTE = 'room_ids'


def parse_room_ids(raw: str) -> List[str]:
    """
    Split a stored ledger value into room ids.

    Parsing is tolerant: empty tokens from leading, trailing or doubled
    separators are dropped, surrounding whitespace is stripped, and repeated
    ids keep only their first occurrence.

    Examples:
        >>> parse_room_ids('')
        []

        >>> parse_room_ids(',1,,2,1,')
        ['1', '2']
    """
    room_ids: List[str] = []
    seen = set()
    for token in raw.split(SEPARATOR):
        token = token.strip()
        if not token or token in seen:
            continue
        seen.add(token)
        room_ids.append(token)
    return room_ids


def serialize_room_ids(room_ids: List[str]) -> str:
    return SEPARATOR.join(room_ids)


def require_room_id(room_id: str) -> None:
    """
    Reject ids that are not in the canonical form DynamoDB stores them in.

    Bumps match tokens by exact string and listings look rooms up by the
    ledger token, so '01' or '1 ' would never line up with the stored '1'.

    Raises:
        ValidationError: If room_id is not a canonical numeric id
    """
    issues = validate_id('roomId', room_id)
    if issues:
        raise ValidationError('Invalid room id', {'errors': issues})


def bump_room_ids(raw: str, room_id: str) -> str:
    """
    Move room_id to the end of a stored ledger value.

    Removal works on whole tokens, so bumping '1' never touches '11'.

    Examples:
        >>> bump_room_ids('', 'a')
        'a'

        >>> bump_room_ids('a,b,c,d', 'b')
        'a,c,d,b'

        >>> bump_room_ids('a,b,c,d', 'd')
        'a,b,c,d'
    """
    remaining = [token for token in parse_room_ids(raw) if token != room_id]
    remaining.append(room_id)
    return serialize_room_ids(remaining)


class RoomRankingLedger:
    """
    Owner of the active-room ordering.

    Callers only see bump() and the listing methods; a stricter backend
    (for example one using a conditional write on the previous value) can
    replace _write without touching them.
    """

    def __init__(self, store: DynamoDBStore, table_name: str):
        self.store = store
        self.table_name = table_name

    def _read(self) -> str:
        item = self.store.get_item(
            self.table_name,
            ledger_key(),
            projection=[LEDGER_ATTRIBUTE]
        )
        if not item:
            return ''
        return read_string(item, LEDGER_ATTRIBUTE)

    def _write(self, value: str, previous: Optional[str]) -> None:
        # Last writer wins; previous is unused by this backend
        self.store.put_item(
            self.table_name,
            {**ledger_key(), LEDGER_ATTRIBUTE: string(value)}
        )

    def bump(self, room_id: str) -> str:
        """
        Move room_id to the most-recent position, creating the ledger if it
        does not exist yet.

        Args:
            room_id: Numeric room id string

        Returns:
            The value written to the ledger

        Raises:
            ValidationError: If room_id is not a canonical numeric id
        """
        require_room_id(room_id)

        current = self._read()
        bumped = bump_room_ids(current, room_id)
        self._write(bumped, current)
        return bumped

    def list(self) -> List[str]:
        """Room ids in storage order (oldest bump first). Empty if the ledger
        has never been written."""
        return parse_room_ids(self._read())

    def most_recent_first(self) -> List[str]:
        return list(reversed(self.list()))
