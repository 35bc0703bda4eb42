from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _PlatformModel(BaseModel):
    """Base for payloads exchanged with the chat platform (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# PUBLIC_INTERFACE
class Author(_PlatformModel):
    """Message author as returned by the platform."""

    id: str = Field(..., description="Platform user id")
    display_name: Optional[str] = Field(default=None, alias="displayName", description="User display name")


# PUBLIC_INTERFACE
class Message(_PlatformModel):
    """
    A chat message fetched from the platform with the fields the bot needs:
    id, created, createdBy{id, displayName}, content and annotations.
    """

    id: str
    created: Optional[datetime] = None
    created_by: Author = Field(..., alias="createdBy")
    content: str = ""
    annotations: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def default_content(cls, v: Optional[str]) -> str:
        """Messages without text (e.g. file shares) come back with null content."""
        return v or ""

    @field_validator("annotations", mode="before")
    @classmethod
    def decode_annotations(cls, v: Any) -> List[Dict[str, Any]]:
        """
        The platform returns each annotation as a JSON-encoded string.
        Decode those; entries that are already objects pass through.
        """
        if v is None:
            return []
        decoded: List[Dict[str, Any]] = []
        for item in v:
            if isinstance(item, str):
                item = json.loads(item)
            if isinstance(item, dict):
                decoded.append(item)
        return decoded


# PUBLIC_INTERFACE
class WebhookEvent(_PlatformModel):
    """Envelope of every request the platform posts to the webhook."""

    type: str
    challenge: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    space_id: Optional[str] = Field(default=None, alias="spaceId")
    message_id: Optional[str] = Field(default=None, alias="messageId")
    content: Optional[str] = None
    annotation_type: Optional[str] = Field(default=None, alias="annotationType")
    annotation_payload: Optional[str] = Field(default=None, alias="annotationPayload")

    def decoded_annotation(self) -> Dict[str, Any]:
        """Return annotationPayload as a dict; raises ValueError when it is not a JSON object."""
        if not self.annotation_payload:
            raise ValueError("event carries no annotationPayload")
        decoded = json.loads(self.annotation_payload)
        if not isinstance(decoded, dict):
            raise ValueError("annotationPayload is not a JSON object")
        return decoded


# PUBLIC_INTERFACE
class FocusAnnotation(_PlatformModel):
    """A message-focus annotation produced by the platform's annotator."""

    lens: str
    phrase: str = ""
    category: Optional[str] = None
    payload: Optional[str] = None


# PUBLIC_INTERFACE
class ActionAnnotation(_PlatformModel):
    """An actionSelected annotation: a user clicked a focus, button or typed a slash command."""

    action_id: str = Field(..., alias="actionId")
    referral_message_id: Optional[str] = Field(default=None, alias="referralMessageId")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    target_dialog_id: Optional[str] = Field(default=None, alias="targetDialogId")


# PUBLIC_INTERFACE
class TargetContext(BaseModel):
    """Where a targeted reply goes: the conversation and dialog of the triggering action."""

    conversation_id: Optional[str] = None
    target_dialog_id: Optional[str] = None

    @classmethod
    def from_annotation(cls, annotation: ActionAnnotation) -> "TargetContext":
        return cls(conversation_id=annotation.conversation_id, target_dialog_id=annotation.target_dialog_id)


class ButtonStyle(str, Enum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"


# PUBLIC_INTERFACE
class PromptButton(BaseModel):
    """A postback button on a dialog prompt; id is the action id reported back when clicked."""

    id: str
    title: str
    style: ButtonStyle = ButtonStyle.PRIMARY


# PUBLIC_INTERFACE
class Prompt(BaseModel):
    """A dialog shown to a single user."""

    title: str
    text: str = ""
    buttons: List[PromptButton] = Field(default_factory=list)


# PUBLIC_INTERFACE
class CardButton(BaseModel):
    """A card button; payload is the JSON string reported back as the action id."""

    text: str
    payload: str
    style: ButtonStyle = ButtonStyle.PRIMARY


# PUBLIC_INTERFACE
class Card(BaseModel):
    """An information card rendered for a single todo."""

    title: str
    subtitle: str = ""
    text: str = ""
    date: Optional[int] = Field(default=None, description="Epoch milliseconds shown on the card")
    buttons: List[CardButton] = Field(default_factory=list)


# PUBLIC_INTERFACE
class FocusRequest(BaseModel):
    """A lens decoration to attach to a message, with the action it offers."""

    message_id: str
    phrase: str
    lens: str
    category: str = ""
    actions: List[str] = Field(default_factory=list)
    payload: str = "{}"
    start: int = 0
    end: int = 0


class PersonOut(BaseModel):
    id: str
    displayName: Optional[str] = None


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the inspection API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "4f1c2b7e9a0d4c6e8b3a5f7d9e1c3b5a",
                "created": "2017-05-04T13:20:11.000Z",
                "createdBy": {"id": "user-a", "displayName": "Ada"},
                "messageId": "msg-1",
                "content": "I will buy milk on the way home",
                "payload": {"phrase": "buy milk"},
                "completed": False,
                "spaceId": "space-1",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo")
    created: Optional[datetime] = Field(default=None, description="Timestamp of the source message")
    createdBy: PersonOut = Field(..., description="Author of the source message")
    messageId: str = Field(..., description="Id of the source message")
    content: str = Field(..., description="Text of the source message")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Lens payload holding the phrase")
    completed: bool = Field(..., description="Completion status flag")
    spaceId: str = Field(..., description="Space the todo was accepted in")
