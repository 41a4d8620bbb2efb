"""Error taxonomy shared by the webhook ingress and the chat session layer.

PayloadError subclasses are client errors (HTTP 400) and carry the text returned
in the ``error`` field. Everything else maps to HTTP 500 or stays in the logs.
"""


class NotifierError(Exception):
    """Base class for jellyzap errors."""


class PayloadError(NotifierError):
    """The webhook payload was rejected before anything was sent."""

    status_code = 400
    default_error = "Invalid payload"

    def __init__(self, error: str | None = None):
        self.error = error or self.default_error
        super().__init__(self.error)


class MalformedPayload(PayloadError):
    default_error = "Invalid JSON body"


class EmptyPayload(PayloadError):
    default_error = "Empty payload received"


class MissingRequiredField(PayloadError):
    default_error = "Invalid payload: NotificationType is required"


class UnsupportedNotificationKind(PayloadError):
    default_error = "Unsupported notification type"

    def __init__(self, kind: object = None):
        self.kind = kind
        super().__init__()


class ChannelUnavailable(NotifierError):
    """No usable WhatsApp session exists right now."""

    def __init__(self, message: str = "WhatsApp client not initialized or not connected"):
        super().__init__(message)


class DeliveryFailure(NotifierError):
    """The transport rejected or failed to deliver a message."""


class ConnectFailure(NotifierError):
    """A session handle could not be established."""


class BridgeError(NotifierError):
    """A request to the WhatsApp bridge failed or timed out."""
