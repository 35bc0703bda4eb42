"""Fakes and builders shared by the test modules."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from todolens.client import MessagingClient, MessagingError
from todolens.schemas import FocusRequest, Message, TargetContext


def make_message(
    message_id="msg-1",
    content="I will buy milk on the way home",
    user_id="user-a",
    display_name="Ada",
    annotations=None,
    created=datetime(2017, 5, 4, 13, 20, 11, tzinfo=timezone.utc),
) -> Message:
    return Message.model_validate(
        {
            "id": message_id,
            "created": created,
            "createdBy": {"id": user_id, "displayName": display_name},
            "content": content,
            "annotations": annotations or [],
        }
    )


def lens_annotation(phrase="buy milk") -> str:
    # The platform hands annotations back as JSON strings
    return json.dumps(
        {
            "type": "message-focus",
            "lens": "Todo",
            "phrase": phrase,
            "payload": json.dumps({"phrase": phrase}),
        }
    )


def make_todo(todo_id="t1", user_id="user-a", space_id="space-1", phrase="buy milk", completed=False):
    return {
        "id": todo_id,
        "created": datetime(2017, 5, 4, 13, 20, 11, tzinfo=timezone.utc),
        "createdBy": {"id": user_id, "displayName": user_id.title()},
        "messageId": f"msg-{todo_id}",
        "content": f"please {phrase}",
        "payload": {"phrase": phrase},
        "completed": completed,
        "spaceId": space_id,
    }


class FakeClient(MessagingClient):
    """In-process stand-in for the chat platform recording everything sent to it."""

    def __init__(self) -> None:
        self.messages: Dict[str, Message] = {}
        self.sent: List[Tuple[str, TargetContext, Any]] = []
        self.focuses: List[FocusRequest] = []
        self.fail_fetch = False
        self.closed = False

    def add(self, message: Message) -> Message:
        self.messages[message.id] = message
        return message

    async def get_message(self, message_id: str) -> Message:
        if self.fail_fetch or message_id not in self.messages:
            raise MessagingError(f"Message {message_id} not found")
        return self.messages[message_id].model_copy(deep=True)

    async def send_targeted_message(self, user_id, context, content) -> None:
        self.sent.append((user_id, context, content))

    async def add_message_focus(self, focus: FocusRequest) -> None:
        self.focuses.append(focus)
        message = self.messages[focus.message_id]
        decoration = {"type": "message-focus", "lens": focus.lens, "phrase": focus.phrase, "payload": focus.payload}
        self.messages[focus.message_id] = message.model_copy(
            update={"annotations": [*message.annotations, decoration]}
        )

    async def aclose(self) -> None:
        self.closed = True

    def last_sent(self) -> Optional[Tuple[str, TargetContext, Any]]:
        return self.sent[-1] if self.sent else None


