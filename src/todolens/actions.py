"""
Action identifiers understood by the bot, decoded once into a tagged variant.

The platform reports every click and slash command as an opaque ``actionId``
string. Well-known ids name dialog buttons and lens actions; card buttons carry
a JSON object such as ``{"action": "Complete", "todoId": "..."}``; slash
commands arrive as ``/todos [me|space]``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

LENS = "Todo"
FOCUS_LENSES = ("ActionRequest", "Commitment")

VIEW_ACTION_ID = "View"
LIST_ACTION_ID = "List"
ACCEPT_ACTION_ID = "submit-action"
COMPLETE_ACTION = "Complete"
REMOVE_LABEL = "Remove"
SLASH_COMMAND = "/todos"


@dataclass(frozen=True)
class View:
    pass


@dataclass(frozen=True)
class ListTodos:
    pass


@dataclass(frozen=True)
class Accept:
    pass


@dataclass(frozen=True)
class Complete:
    todo_id: str


@dataclass(frozen=True)
class SlashMe:
    pass


@dataclass(frozen=True)
class SlashSpace:
    pass


Action = Union[View, ListTodos, Accept, Complete, SlashMe, SlashSpace]

_WELL_KNOWN = {
    VIEW_ACTION_ID: View(),
    LIST_ACTION_ID: ListTodos(),
    ACCEPT_ACTION_ID: Accept(),
}


# PUBLIC_INTERFACE
def encode_complete(todo_id: str) -> str:
    """Return the card button action id that toggles completion of todo_id."""
    return json.dumps({"action": COMPLETE_ACTION, "todoId": todo_id})


# PUBLIC_INTERFACE
def encode_inert() -> str:
    """Return an action id that decodes to nothing (a button with no effect)."""
    return json.dumps({})


def _decode_slash(action_id: str) -> Optional[Action]:
    parts = action_id.split()
    if not parts or parts[0] != SLASH_COMMAND:
        logger.info("Ignoring unknown slash command '%s'", action_id)
        return None

    option = parts[1].lower() if len(parts) > 1 else "space"
    if option == "space":
        return SlashSpace()
    if option == "me":
        return SlashMe()

    logger.info("Ignoring unknown %s option '%s'", SLASH_COMMAND, option)
    return None


def _decode_json(action_id: str) -> Optional[Action]:
    try:
        payload = json.loads(action_id)
    except ValueError:
        logger.info("Ignoring malformed action payload %r", action_id)
        return None

    if not isinstance(payload, dict):
        logger.info("Ignoring non-object action payload %r", action_id)
        return None

    action = payload.get("action")
    logger.debug("User selected '%s' action", action)

    if action == COMPLETE_ACTION:
        todo_id = payload.get("todoId")
        if isinstance(todo_id, str) and todo_id:
            return Complete(todo_id=todo_id)
        logger.info("Ignoring '%s' action without a todoId", COMPLETE_ACTION)
        return None

    logger.debug("Ignoring action payload without a recognized action: %r", action_id)
    return None


# PUBLIC_INTERFACE
def decode_action(action_id: Optional[str]) -> Optional[Action]:
    """
    Decode an actionId reported by the platform.

    Returns:
        The matching Action, or None when the id is not one this bot handles.
        Malformed JSON and unknown actions are logged and ignored, never raised.
    """
    if not action_id:
        return None

    known = _WELL_KNOWN.get(action_id)
    if known is not None:
        return known

    stripped = action_id.strip()
    if stripped.startswith("/"):
        return _decode_slash(stripped)
    if stripped.startswith("{"):
        return _decode_json(stripped)

    logger.debug("Ignoring action id '%s'", action_id)
    return None
