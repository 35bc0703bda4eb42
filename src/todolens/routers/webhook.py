from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from pydantic import ValidationError

from ..actions import FOCUS_LENSES, decode_action
from ..auth import OUTBOUND_TOKEN_HEADER, get_webhook_signature_dependency, sign
from ..dispatcher import EventDispatcher
from ..schemas import ActionAnnotation, FocusAnnotation, WebhookEvent
from ..settings import Settings

logger = logging.getLogger(__name__)

ANNOTATION_ADDED = "message-annotation-added"
FOCUS_ANNOTATION = "message-focus"
ACTION_SELECTED_ANNOTATION = "actionSelected"

_OK = {"status": "ok"}
_IGNORED = {"status": "ignored"}


def _get_dispatcher(request: Request) -> EventDispatcher:
    """
    Dependency returning the dispatcher constructed at application start.
    """
    return request.app.state.dispatcher


def _verification_response(settings: Settings, challenge: str) -> Response:
    body = json.dumps({"response": challenge}).encode("utf-8")
    headers = {}
    if settings.webhook_secret:
        headers[OUTBOUND_TOKEN_HEADER] = sign(settings.webhook_secret, body)
    return Response(content=body, media_type="application/json", headers=headers)


def _schedule_focus(event: WebhookEvent, dispatcher: EventDispatcher, tasks: BackgroundTasks) -> Dict[str, str]:
    try:
        annotation = FocusAnnotation.model_validate(event.decoded_annotation())
    except (ValueError, ValidationError) as e:
        logger.info("Ignoring unreadable message-focus annotation on %s: %s", event.message_id, e)
        return _IGNORED

    if annotation.lens not in FOCUS_LENSES:
        return _IGNORED

    tasks.add_task(dispatcher.handle_focus, event, annotation)
    return _OK


def _schedule_action(event: WebhookEvent, dispatcher: EventDispatcher, tasks: BackgroundTasks) -> Dict[str, str]:
    try:
        annotation = ActionAnnotation.model_validate(event.decoded_annotation())
    except (ValueError, ValidationError) as e:
        logger.info("Ignoring unreadable actionSelected annotation from %s: %s", event.user_id, e)
        return _IGNORED

    action = decode_action(annotation.action_id)
    if action is None:
        return _IGNORED

    tasks.add_task(dispatcher.handle_action, event, annotation, action)
    return _OK


# PUBLIC_INTERFACE
def create_router(settings: Settings) -> APIRouter:
    """
    Build the webhook router. Signature verification is bound to the
    settings the application was created with.
    """
    router = APIRouter(tags=["webhook"])
    verify_signature = get_webhook_signature_dependency(settings)

    # PUBLIC_INTERFACE
    @router.post(
        "/webhook",
        summary="Platform webhook",
        description=(
            "Receives platform events. Answers the verification challenge and "
            "schedules todo handling for annotation events; other events are ignored."
        ),
        responses={
            200: {"description": "Event accepted or ignored"},
            400: {"description": "Unreadable event"},
            401: {"description": "Missing or invalid webhook signature"},
        },
        dependencies=[Depends(verify_signature)],
    )
    async def receive_event(
        request: Request,
        background_tasks: BackgroundTasks,
        dispatcher: EventDispatcher = Depends(_get_dispatcher),
    ) -> Any:
        """
        Acknowledge the event right away; the todo handling chain runs after
        the response is sent.
        """
        try:
            event = WebhookEvent.model_validate(json.loads(await request.body()))
        except (ValueError, ValidationError) as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed event") from e

        if event.type == "verification":
            if not event.challenge:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing challenge")
            logger.info("Answering webhook verification challenge")
            return _verification_response(settings, event.challenge)

        if settings.app_id and event.user_id == settings.app_id:
            return _IGNORED

        if event.type != ANNOTATION_ADDED:
            return _IGNORED

        if event.annotation_type == FOCUS_ANNOTATION:
            return _schedule_focus(event, dispatcher, background_tasks)
        if event.annotation_type == ACTION_SELECTED_ANNOTATION:
            return _schedule_action(event, dispatcher, background_tasks)
        return _IGNORED

    return router
