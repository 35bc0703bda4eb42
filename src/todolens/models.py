from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


class Person(TypedDict):
    """Author reference carried on messages and todos."""

    id: str
    displayName: Optional[str]


class LensPayload(TypedDict, total=False):
    """Data stored on the 'Todo' lens decoration; empty when it could not be recovered."""

    phrase: str


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A todo created from an annotated chat message.

    Fields:
    - id: Opaque unique identifier (32 hex chars), immutable
    - created: Timestamp of the originating message
    - createdBy: Author of the originating message; the only user allowed to toggle completion
    - messageId: Source message id (traceability only)
    - content: Original message text
    - payload: Lens payload holding the detected phrase
    - completed: Completion flag, flipped by the owner
    - spaceId: Conversation the todo was accepted in
    """

    id: str
    created: Optional[datetime]
    createdBy: Person
    messageId: str
    content: str
    payload: LensPayload
    completed: bool
    spaceId: str
