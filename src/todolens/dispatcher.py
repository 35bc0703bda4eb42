from __future__ import annotations

import logging
from typing import Optional

from . import lifecycle
from .actions import Accept, Action, Complete, ListTodos, SlashMe, SlashSpace, View
from .client import MessagingClient, MessagingError
from .models import TodoEntity
from .repositories import Repository
from .schemas import ActionAnnotation, FocusAnnotation, TargetContext, WebhookEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Routes decoded platform events to the todo lifecycle.

    Each handler is a short async chain (fetch message, compute, respond).
    Failures of the platform are logged and end the chain; they never
    propagate to the webhook that scheduled it.
    """

    def __init__(self, store: Repository, client: MessagingClient) -> None:
        self.store = store
        self.client = client

    async def handle_focus(self, event: WebhookEvent, annotation: FocusAnnotation) -> None:
        """Decorate a message whose phrase the annotator found actionable."""
        message_id = event.message_id
        if not message_id:
            logger.warning("Focus event without a messageId ignored")
            return

        logger.debug("Adding lens to message %s for phrase '%s'", message_id, annotation.phrase)
        try:
            message = await self.client.get_message(message_id)
            await self.client.add_message_focus(lifecycle.lens_focus(message, annotation.phrase))
        except MessagingError as e:
            logger.error("Failed to add lens to message %s: %s", message_id, e)

    async def handle_action(self, event: WebhookEvent, annotation: ActionAnnotation, action: Action) -> None:
        """Run the lifecycle operation behind a selected action."""
        user_id = event.user_id
        if not user_id:
            logger.warning("Action '%s' without a userId ignored", annotation.action_id)
            return

        logger.info(
            "%s selected from message %s by user %s", annotation.action_id, annotation.referral_message_id, user_id
        )
        logger.debug("event=%s annotation=%s", event, annotation)

        try:
            if isinstance(action, View):
                await self.offer(user_id, annotation)
            elif isinstance(action, Accept):
                await self.accept(user_id, annotation, space_id=annotation.conversation_id or event.space_id)
            elif isinstance(action, Complete):
                await self.complete(user_id, annotation, action.todo_id)
            elif isinstance(action, (ListTodos, SlashMe)):
                await self.show_list(user_id, annotation)
            elif isinstance(action, SlashSpace):
                await self.show_list(user_id, annotation, space_id=annotation.conversation_id or event.space_id)
        except MessagingError as e:
            logger.error("Action '%s' for user %s failed: %s", annotation.action_id, user_id, e)

    async def offer(self, user_id: str, annotation: ActionAnnotation) -> None:
        """Ask the user to confirm adding the phrase from the referral message."""
        if not annotation.referral_message_id:
            logger.error("View action without a referral message for user %s", user_id)
            return

        message = await self.client.get_message(annotation.referral_message_id)
        prompt = lifecycle.offer_prompt(lifecycle.lens_payload(message))
        await self.client.send_targeted_message(user_id, TargetContext.from_annotation(annotation), prompt)

    async def accept(self, user_id: str, annotation: ActionAnnotation, space_id: Optional[str]) -> Optional[TodoEntity]:
        """Create a todo from the referral message and show the user's list."""
        logger.debug("User '%s' accepting a todo", user_id)
        if not annotation.referral_message_id or not space_id:
            logger.error("Accept by user %s lacks a referral message or conversation", user_id)
            return None

        message = await self.client.get_message(annotation.referral_message_id)
        todo = self.store.create(lifecycle.build_todo(message, space_id))
        logger.info("Added todo '%s' for user %s in space %s", todo["id"], todo["createdBy"]["id"], space_id)

        await self.show_list(user_id, annotation)
        return todo

    async def complete(self, user_id: str, annotation: ActionAnnotation, todo_id: str) -> Optional[TodoEntity]:
        """Toggle completion of one of the user's todos and show the user's list."""
        todo = lifecycle.toggle_todo(self.store, todo_id, user_id)
        if todo is None:
            return None

        await self.show_list(user_id, annotation)
        return todo

    async def show_list(self, user_id: str, annotation: ActionAnnotation, space_id: Optional[str] = None) -> None:
        """Send the user's own list, or the space's list when space_id is given."""
        todos = lifecycle.todos_for(self.store, user_id, space_id)
        cards = lifecycle.render_cards(todos, viewer_id=user_id)
        await self.client.send_targeted_message(user_id, TargetContext.from_annotation(annotation), cards)
