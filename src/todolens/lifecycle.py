"""
Todo lifecycle: building todos from annotated messages, toggling completion,
and rendering a user's or a space's list into cards.

A todo moves absent -> active(completed=False) <-> active(completed=True).
There is no removed state; the store has no delete.
"""
from __future__ import annotations

import json
import logging
import secrets
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .actions import (
    ACCEPT_ACTION_ID,
    COMPLETE_ACTION,
    LENS,
    REMOVE_LABEL,
    VIEW_ACTION_ID,
    encode_complete,
    encode_inert,
)
from .models import LensPayload, TodoEntity
from .repositories import Repository
from .schemas import ButtonStyle, Card, CardButton, FocusRequest, Message, Prompt, PromptButton

logger = logging.getLogger(__name__)

OFFER_TITLE = "Would you like to do?"
OFFER_BUTTON_LABEL = "Add to List"


def new_todo_id() -> str:
    return secrets.token_hex(16)


# PUBLIC_INTERFACE
def lens_focus(message: Message, phrase: str) -> FocusRequest:
    """
    Build the 'Todo' lens decoration for a message whose phrase was detected
    as actionable. The decoration offers the View action and stores the phrase
    so a later event referencing the same message can recover it.
    """
    start = message.content.find(phrase) if phrase else -1
    if start < 0:
        start, end = 0, 0
    else:
        end = start + len(phrase)

    payload: LensPayload = {"phrase": phrase}
    return FocusRequest(
        message_id=message.id,
        phrase=phrase,
        lens=LENS,
        category="",
        actions=[VIEW_ACTION_ID],
        payload=json.dumps(payload),
        start=start,
        end=end,
    )


# PUBLIC_INTERFACE
def lens_payload(message: Message) -> LensPayload:
    """
    Return the payload of the first 'Todo' lens annotation on the message.
    An empty payload is returned (and logged) when the lens is missing or unreadable.
    """
    logger.debug("Finding '%s' lens in message '%s' annotations", LENS, message.id)

    annotation = next((a for a in message.annotations if a.get("lens") == LENS), None)
    if annotation is None:
        logger.warning("Failed to find the '%s' lens in message %s", LENS, message.id)
        return {}

    raw = annotation.get("payload")
    try:
        decoded = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        logger.warning("Unreadable '%s' lens payload in message %s: %r", LENS, message.id, raw)
        return {}

    if not isinstance(decoded, dict):
        logger.warning("Unexpected '%s' lens payload in message %s: %r", LENS, message.id, raw)
        return {}

    logger.debug("Found '%s' lens with payload %s", LENS, decoded)
    payload: LensPayload = {}
    if isinstance(decoded.get("phrase"), str):
        payload["phrase"] = decoded["phrase"]
    return payload


# PUBLIC_INTERFACE
def offer_prompt(payload: LensPayload) -> Prompt:
    """Confirmation dialog asking the user to add the phrase to their list."""
    return Prompt(
        title=OFFER_TITLE,
        text=payload.get("phrase", ""),
        buttons=[PromptButton(id=ACCEPT_ACTION_ID, title=OFFER_BUTTON_LABEL)],
    )


# PUBLIC_INTERFACE
def build_todo(message: Message, space_id: str, id_factory: Callable[[], str] = new_todo_id) -> TodoEntity:
    """
    Build a new, not yet completed todo owned by the author of the message.

    Args:
        message: The referral message carrying the 'Todo' lens.
        space_id: Conversation in which the accept action happened.
        id_factory: Source of fresh todo ids.
    """
    logger.debug("Building a todo from message '%s' in space '%s'", message.id, space_id)

    return {
        "id": id_factory(),
        "created": message.created,
        "createdBy": {
            "id": message.created_by.id,
            "displayName": message.created_by.display_name,
        },
        "messageId": message.id,
        "content": message.content,
        "payload": lens_payload(message),
        "completed": False,
        "spaceId": space_id,
    }


def _flip(todo: TodoEntity) -> TodoEntity:
    todo["completed"] = not todo["completed"]
    return todo


# PUBLIC_INTERFACE
def toggle_todo(store: Repository, todo_id: str, user_id: str) -> Optional[TodoEntity]:
    """
    Flip completion of a todo owned by user_id.
    Returns the updated todo, or None when user_id owns no todo with that id.
    """
    updated = store.update(todo_id, _flip, user_id=user_id)
    if updated is None:
        logger.warning("Failed to find todo %s for user %s", todo_id, user_id)
    else:
        logger.debug("User '%s' set todo '%s' completed=%s", user_id, todo_id, updated["completed"])
    return updated


# PUBLIC_INTERFACE
def todos_for(store: Repository, user_id: str, space_id: Optional[str] = None) -> List[TodoEntity]:
    """The todos to show: the space's list when space_id is given, else the user's own."""
    if space_id:
        logger.debug("Showing todo list for space %s", space_id)
        return store.list_space(space_id)
    logger.debug("Showing todo list for user %s", user_id)
    return store.list(user_id)


def _epoch_millis(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


# PUBLIC_INTERFACE
def render_card(todo: TodoEntity, viewer_id: str) -> Card:
    """
    Render one todo as a card for viewer_id.

    Only the creator gets a working button; everyone else sees the same
    label on a button whose payload decodes to no action.
    """
    completed = todo["completed"]
    if todo["createdBy"]["id"] == viewer_id:
        payload = encode_complete(todo["id"])
    else:
        payload = encode_inert()

    button = CardButton(
        text=REMOVE_LABEL if completed else COMPLETE_ACTION,
        payload=payload,
        style=ButtonStyle.SECONDARY if completed else ButtonStyle.PRIMARY,
    )
    return Card(
        title=todo["payload"].get("phrase", ""),
        subtitle=todo["createdBy"].get("displayName") or "",
        text=todo["content"],
        date=_epoch_millis(todo["created"]),
        buttons=[button],
    )


# PUBLIC_INTERFACE
def render_cards(todos: Iterable[TodoEntity], viewer_id: str) -> List[Card]:
    """Render todos in the order given, one card each."""
    return [render_card(todo, viewer_id) for todo in todos]
