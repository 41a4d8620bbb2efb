"""Routes: POST /webhook, GET /groups, GET /health."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from jellyzap.api.ingress import parse_event
from jellyzap.bus.events import OutboundMessage
from jellyzap.channels.supervisor import ConnectionSupervisor
from jellyzap.config.schema import Config
from jellyzap.errors import ChannelUnavailable, DeliveryFailure, NotifierError, PayloadError
from jellyzap.notify.translator import translate

router = APIRouter()


def get_supervisor(request: Request) -> ConnectionSupervisor:
    return request.app.state.supervisor


def get_config(request: Request) -> Config:
    return request.app.state.config


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.get("/health")
def health(supervisor: ConnectionSupervisor = Depends(get_supervisor)):
    return {"status": "ok", "session": supervisor.state.value, "usable": supervisor.is_usable()}


@router.get("/groups")
async def list_groups(supervisor: ConnectionSupervisor = Depends(get_supervisor)):
    """Group chats visible to the WhatsApp session (name + id)."""
    try:
        groups = await supervisor.list_groups()
    except Exception as e:
        logger.error(f"Error fetching groups: {e}")
        return _error(500, "Failed to fetch groups", str(e))
    return [g.to_dict() for g in groups]


@router.post("/webhook")
async def webhook(
    request: Request,
    supervisor: ConnectionSupervisor = Depends(get_supervisor),
    config: Config = Depends(get_config),
):
    """Translate a Jellyfin webhook and deliver it to the configured group."""
    logger.info("Received webhook request")
    logger.debug(f"Headers: {json.dumps(dict(request.headers), indent=2)}")

    body = await request.body()
    try:
        event = parse_event(body, request.headers.get("content-type", ""))
        logger.debug(f"Parsed body: {json.dumps(event, indent=2, default=str)}")
        text = translate(event)
    except PayloadError as e:
        logger.info(f"Rejected webhook: {e.error}")
        return _error(e.status_code, e.error)

    try:
        if not supervisor.is_usable():
            raise ChannelUnavailable()
        if not config.group_id:
            raise DeliveryFailure("Target WhatsApp group is not configured (WHATSAPP_GROUP_ID)")

        msg = OutboundMessage(
            chat_id=config.group_id,
            content=text,
            notification_type=event["NotificationType"],
        )
        logger.info(f"Attempting to send {msg.notification_type} notification to: {msg.chat_id}")
        logger.debug(f"Message content: {msg.content}")
        message_id = await supervisor.send(msg.chat_id, msg.content)
    except NotifierError as e:
        logger.error(f"Failed to send notification: {e}")
        return _error(500, "Failed to send notification", str(e))

    logger.info(f"Message sent successfully: {message_id}")
    return {"success": True, "message": "Notification sent"}
