"""Notification data models."""

from pydantic import BaseModel


class RenderedNotification(BaseModel):
    """Subject and HTML body ready for delivery."""

    subject: str
    html_body: str


class MailMessage(BaseModel):
    """Message handed to the mail transport."""

    sender: str
    recipient: str
    subject: str
    # Bytes, so the transport never re-wraps long unbroken lines
    html_body: bytes
