"""Webhook payload decoding and validation."""

import json
from typing import Any

from jellyzap.errors import EmptyPayload, MalformedPayload, MissingRequiredField
from jellyzap.notify.translator import NOTIFICATION_TYPE_FIELD


def decode_payload(body: bytes, content_type: str = "") -> dict[str, Any]:
    """
    Decode a webhook body into an event mapping.

    text/plain bodies carry JSON as text (sometimes a JSON-encoded string of
    JSON); anything else is parsed as JSON directly. An empty body decodes to
    an empty mapping so it is reported as an empty payload.
    """
    is_text = content_type.split(";", 1)[0].strip().lower() == "text/plain"
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return {}

    error = "Invalid JSON in text/plain body" if is_text else "Invalid JSON body"
    try:
        data = json.loads(text)
        if is_text and isinstance(data, str):
            data = json.loads(data)
    except json.JSONDecodeError as e:
        raise MalformedPayload(error) from e

    if not isinstance(data, dict):
        raise MalformedPayload("Invalid payload: expected a JSON object")
    return data


def validate_event(data: dict[str, Any]) -> dict[str, Any]:
    """Reject empty payloads and payloads without a NotificationType."""
    if not data:
        raise EmptyPayload()
    if not data.get(NOTIFICATION_TYPE_FIELD):
        raise MissingRequiredField()
    return data


def parse_event(body: bytes, content_type: str = "") -> dict[str, Any]:
    return validate_event(decode_payload(body, content_type))
