"""
Unit tests for the entity codec.
"""

import pytest

from chat_shared import codec
from chat_shared.errors import FieldMissingError, TypeMismatchError


class TestKeys:

    def test_room_key(self):
        assert codec.room_key('42') == {'room_id': {'N': '42'}, 'sort': {'S': 'room'}}

    def test_message_key_prefixes_sort(self):
        key = codec.message_key('42', '2023-01-01T00:00:00Z')
        assert key['sort'] == {'S': 'message.2023-01-01T00:00:00Z'}
        assert key['sort']['S'][:8] == 'message.'

    def test_ledger_key_is_fixed_sentinel(self):
        assert codec.ledger_key() == {'room_id': {'N': '1'}, 'sort': {'S': 'active_rooms'}}

    def test_user_key(self):
        assert codec.user_key('7') == {'user_id': {'N': '7'}}

    def test_describe_key(self):
        assert codec.describe_key(codec.room_key('42')) == 'room_id=42,sort=room'


class TestRoundTrip:
    """Encoding then decoding returns the same fields."""

    def test_room(self):
        item = codec.encode_room('42', 'general')

        assert item['room_id'] == {'N': '42'}
        assert item['name'] == {'S': 'general'}
        assert codec.decode_room(item) == {'roomId': '42', 'name': 'general'}

    def test_message(self):
        item = codec.encode_message('42', '2023-01-01T00:00:00Z', '7', 'ada', 'hello')

        assert item['sender_id'] == {'N': '7'}
        assert item['sender_name'] == {'S': 'ada'}
        assert item['message'] == {'S': 'hello'}
        assert codec.decode_message(item) == {
            'roomId': '42',
            'messageId': '2023-01-01T00:00:00Z',
            'dateTime': '2023-01-01T00:00:00Z',
            'senderId': '7',
            'senderName': 'ada',
            'body': 'hello',
        }

    def test_user(self):
        item = codec.encode_user('7', 'ada')

        assert item == {'user_id': {'N': '7'}, 'name': {'S': 'ada'}}
        assert codec.decode_user(item) == {'userId': '7', 'name': 'ada'}


class TestDecodeFailures:

    def test_missing_field_names_field_and_source(self):
        item = {'room_id': {'N': '42'}, 'sort': {'S': 'room'}}

        with pytest.raises(FieldMissingError) as excinfo:
            codec.decode_room(item)

        assert excinfo.value.field == 'name'
        assert excinfo.value.source is item
        assert excinfo.value.code == 'FIELD_MISSING'

    def test_string_where_number_expected(self):
        item = {'user_id': {'S': '7'}, 'name': {'S': 'ada'}}

        with pytest.raises(TypeMismatchError) as excinfo:
            codec.decode_user(item)

        assert excinfo.value.field == 'user_id'
        assert excinfo.value.expected == 'N'
        assert excinfo.value.found == ['S']

    def test_number_where_string_expected(self):
        item = {'user_id': {'N': '7'}, 'name': {'N': '12'}}

        with pytest.raises(TypeMismatchError):
            codec.decode_user(item)

    def test_untagged_value_is_rejected(self):
        item = {'user_id': '7', 'name': {'S': 'ada'}}

        with pytest.raises(TypeMismatchError) as excinfo:
            codec.decode_user(item)

        assert excinfo.value.found == 'str'

    @pytest.mark.parametrize('sort', ['room', 'active_rooms', 'message.'])
    def test_message_decode_requires_message_sort_key(self, sort):
        item = codec.encode_message('42', 'x', '7', 'ada', 'hi')
        item['sort'] = {'S': sort}

        with pytest.raises(TypeMismatchError) as excinfo:
            codec.decode_message(item)

        assert excinfo.value.field == 'sort'

    def test_message_missing_body(self):
        item = codec.encode_message('42', '2023-01-01T00:00:00Z', '7', 'ada', 'hi')
        del item['message']

        with pytest.raises(FieldMissingError) as excinfo:
            codec.decode_message(item)

        assert excinfo.value.field == 'message'
