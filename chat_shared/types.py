"""
Shared type definitions for the Chat Service.

This module defines TypedDict classes for domain records and the low-level
DynamoDB shapes the codec translates to and from.
"""

from typing import TypedDict, Dict, Any

# A single DynamoDB attribute value, e.g. {'N': '42'} or {'S': 'general'}
AttributeValue = Dict[str, Any]

# A whole item or key as returned by the low-level client
Item = Dict[str, AttributeValue]


class Room(TypedDict):
    """Room record stored under (room_id, 'room')."""
    roomId: str
    name: str


class Message(TypedDict):
    """Message record stored under (room_id, 'message.<timestamp>')."""
    roomId: str
    messageId: str
    dateTime: str
    senderId: str
    senderName: str
    body: str


class User(TypedDict):
    """User record stored in the users table."""
    userId: str
    name: str


class ValidationIssue(TypedDict):
    """One field-level validation problem."""
    field: str
    message: str


class ErrorResponse(TypedDict):
    """Presentable error structure produced at the boundary."""
    code: str
    message: str
    details: Dict[str, Any]

