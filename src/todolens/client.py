from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from .schemas import Card, FocusRequest, Message, Prompt, TargetContext
from .settings import Settings

logger = logging.getLogger(__name__)

Content = Union[Prompt, Sequence[Card]]

_MESSAGE_QUERY = """
query getMessage($id: ID!) {
  message(id: $id) {
    id
    created
    annotations
    content
    createdBy { id displayName }
  }
}
"""

_ADD_FOCUS_MUTATION = """
mutation addMessageFocus($input: AddFocusInput!) {
  addMessageFocus(input: $input) { message { id } }
}
"""

_TARGETED_MESSAGE_MUTATION = """
mutation createTargetedMessage($input: CreateTargetedMessageInput!) {
  createTargetedMessage(input: $input) { successful }
}
"""

# Refresh the token this many seconds before the platform expires it
_TOKEN_SLACK_S = 60.0


class MessagingError(Exception):
    """Raised when the chat platform cannot be reached or rejects a request."""


# PUBLIC_INTERFACE
class MessagingClient(ABC):
    """Contract of the chat platform as seen by the dispatcher."""

    @abstractmethod
    async def get_message(self, message_id: str) -> Message:
        """Fetch a message with id, created, createdBy, content and annotations."""

    @abstractmethod
    async def send_targeted_message(self, user_id: str, context: TargetContext, content: Content) -> None:
        """Send a prompt or a list of cards visible only to user_id."""

    @abstractmethod
    async def add_message_focus(self, focus: FocusRequest) -> None:
        """Attach a lens decoration and its action to a message."""

    async def aclose(self) -> None:
        """Release network resources."""
        return None


def _prompt_annotation(prompt: Prompt) -> Dict[str, Any]:
    return {
        "genericAnnotation": {
            "title": prompt.title,
            "text": prompt.text,
            "buttons": [
                {"postbackButton": {"title": b.title, "id": b.id, "style": b.style.value}}
                for b in prompt.buttons
            ],
        }
    }


def _card_attachment(card: Card) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "title": card.title,
        "subtitle": card.subtitle,
        "text": card.text,
        "buttons": [{"text": b.text, "payload": b.payload, "style": b.style.value} for b in card.buttons],
    }
    if card.date is not None:
        info["date"] = str(card.date)
    return {"type": "CARD", "cardInput": {"type": "INFORMATION", "informationCardInput": info}}


class WorkspaceClient(MessagingClient):
    """
    Chat platform client over HTTPS: OAuth client-credentials tokens and
    GraphQL queries/mutations against the configured API base URL.
    """

    def __init__(self, settings: Settings, http: Optional[httpx.AsyncClient] = None) -> None:
        self._settings = settings
        self._http = http or httpx.AsyncClient(base_url=settings.api_url, timeout=settings.http_timeout)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _access_token(self) -> str:
        if self._token is not None and time.monotonic() < self._token_expires_at:
            return self._token

        if not self._settings.app_id or not self._settings.app_secret:
            raise MessagingError("TODO_APP_ID and TODO_APP_SECRET must be set to call the platform")

        logger.info("Authenticating app %s", self._settings.app_id)
        try:
            res = await self._http.post(
                "/oauth/token",
                auth=(self._settings.app_id, self._settings.app_secret),
                data={"grant_type": "client_credentials"},
            )
            res.raise_for_status()
            body = res.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MessagingError(f"Authentication failed: {e}") from e

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise MessagingError("Authentication response carried no access_token")

        expires_in = float(body.get("expires_in") or 0)
        self._token = token
        self._token_expires_at = time.monotonic() + max(expires_in - _TOKEN_SLACK_S, 0.0)
        return token

    async def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        token = await self._access_token()
        try:
            res = await self._http.post(
                "/graphql",
                json={"query": query, "variables": variables},
                headers={"Authorization": f"Bearer {token}", "x-graphql-view": "PUBLIC, BETA"},
            )
            res.raise_for_status()
            body = res.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MessagingError(f"GraphQL request failed: {e}") from e

        if not isinstance(body, dict):
            raise MessagingError("GraphQL response is not an object")
        if body.get("errors"):
            raise MessagingError(f"GraphQL errors: {body['errors']}")
        return body.get("data") or {}

    async def get_message(self, message_id: str) -> Message:
        logger.debug("Retrieving more complete message data from message '%s'", message_id)
        data = await self._graphql(_MESSAGE_QUERY, {"id": message_id})
        raw = data.get("message")
        if raw is None:
            raise MessagingError(f"Message {message_id} not found")
        try:
            return Message.model_validate(raw)
        except ValidationError as e:
            raise MessagingError(f"Malformed message {message_id}: {e}") from e

    async def send_targeted_message(self, user_id: str, context: TargetContext, content: Content) -> None:
        payload: Dict[str, Any] = {
            "conversationId": context.conversation_id,
            "targetUserId": user_id,
            "targetDialogId": context.target_dialog_id,
        }
        if isinstance(content, Prompt):
            payload["annotations"] = [_prompt_annotation(content)]
        else:
            cards: List[Card] = list(content)
            payload["attachments"] = [_card_attachment(c) for c in cards]

        await self._graphql(_TARGETED_MESSAGE_MUTATION, {"input": payload})

    async def add_message_focus(self, focus: FocusRequest) -> None:
        await self._graphql(
            _ADD_FOCUS_MUTATION,
            {
                "input": {
                    "messageId": focus.message_id,
                    "messageFocus": {
                        "phrase": focus.phrase,
                        "lens": focus.lens,
                        "category": focus.category,
                        "actions": focus.actions,
                        "confidence": 0.99,
                        "payload": focus.payload,
                        "start": focus.start,
                        "end": focus.end,
                        "version": 1,
                        "hidden": False,
                    },
                }
            },
        )
