"""
Input validation for Chat Service operations.

Validators return a list of field-level issues; an empty list means the input
is valid. The service layer raises ValidationError when any issue is found,
before touching DynamoDB.
"""

import re
from typing import Any, List

from chat_shared.config import MAX_PAGE_LIMIT
from chat_shared.types import ValidationIssue


MAX_NAME_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000

# DynamoDB numbers carry up to 38 significant digits and drop leading zeros
ID_PATTERN = re.compile(r'0|[1-9][0-9]{0,37}')


def _validate_text(field: str, value: Any, max_length: int) -> List[ValidationIssue]:
    if value is None:
        return [{'field': field, 'message': 'Field is required'}]

    if not isinstance(value, str):
        return [{'field': field, 'message': f'{field.capitalize()} must be a string'}]

    if not value.strip():
        return [{'field': field, 'message': f'{field.capitalize()} cannot be empty'}]

    if len(value) > max_length:
        return [{
            'field': field,
            'message': f'{field.capitalize()} must be at most {max_length} characters'
        }]

    return []


def validate_name(name: Any) -> List[ValidationIssue]:
    """
    Validate a user or room name.

    Examples:
        >>> validate_name('general')
        []

        >>> validate_name('  ')
        [{'field': 'name', 'message': 'Name cannot be empty'}]
    """
    return _validate_text('name', name, MAX_NAME_LENGTH)


def validate_message_body(body: Any) -> List[ValidationIssue]:
    return _validate_text('message', body, MAX_MESSAGE_LENGTH)


def validate_id(field: str, value: Any) -> List[ValidationIssue]:
    """
    Validate a numeric identifier (room, user or sender id).

    Ids are decimal strings so they can be stored with DynamoDB's N tag.
    """
    if value is None or value == '':
        return [{'field': field, 'message': 'Field is required'}]

    if not isinstance(value, str) or not ID_PATTERN.fullmatch(value):
        return [{'field': field, 'message': 'Must be a numeric id of at most 38 digits'}]

    return []


def validate_limit(limit: Any) -> List[ValidationIssue]:
    # bool is an int subclass; reject it explicitly
    if isinstance(limit, bool) or not isinstance(limit, int):
        return [{'field': 'limit', 'message': 'Limit must be an integer'}]

    if not 1 <= limit <= MAX_PAGE_LIMIT:
        return [{'field': 'limit', 'message': f'Limit must be between 1 and {MAX_PAGE_LIMIT}'}]

    return []


def validate_message_id(message_id: Any) -> List[ValidationIssue]:
    """A message id is the message timestamp; it only has to be non-empty."""
    if not isinstance(message_id, str) or not message_id.strip():
        return [{'field': 'messageId', 'message': 'Field is required'}]
    return []
