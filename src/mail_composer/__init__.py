"""Structured outgoing mail composition and MIME serialization.

This package models an outgoing message (sender, recipients, subject, body,
attachments, threading metadata) and serializes it into a single
RFC 2822 / MIME text blob ready to be handed to a delivery mechanism.

- ``MailAddress``: display name plus validated email address
- ``MimePart``: a single MIME leaf with type, charset and transfer encoding
- ``MailMessage``: the mutable message being composed
- ``MessageSerializer``: decides the multipart layout and renders headers/body
- Transports: local ``sendmail`` binary, SMTP through aiosmtplib, in-memory

Example:
    Composing and sending a message::

        from mail_composer import SmtpTransport

        transport = SmtpTransport(host="smtp.example.com", port=587, use_tls=True)
        message = transport.create_message()
        message.from_address = "Alerts <alerts@example.com>"
        message.set_to("ops@example.com")
        message.subject = "Disk almost full"
        message.message = "Volume /data is at 93%."
        transport.send(message)

Authors:
    Softwell S.r.l.
    Giovanni Porcari
"""

from .address import MailAddress, parse_addresses
from .exceptions import (
    DeliveryRejected,
    InvalidAddress,
    InvalidAutoSubmitted,
    InvalidSubject,
    MailError,
    NoRecipients,
    UnknownPart,
)
from .message import AutoSubmitted, MailMessage
from .mime_part import MimePart, TransferEncoding
from .serializer import MessageSerializer, SerializedMessage, generate_boundary, serialize_message
from .transport import (
    AbstractTransport,
    FunctionTransport,
    MemoryTransport,
    SendmailTransport,
    SmtpTransport,
    Transport,
    create_transport,
)

__all__ = [
    "AbstractTransport",
    "AutoSubmitted",
    "DeliveryRejected",
    "FunctionTransport",
    "InvalidAddress",
    "InvalidAutoSubmitted",
    "InvalidSubject",
    "MailAddress",
    "MailError",
    "MailMessage",
    "MemoryTransport",
    "MessageSerializer",
    "MimePart",
    "NoRecipients",
    "SendmailTransport",
    "SerializedMessage",
    "SmtpTransport",
    "TransferEncoding",
    "Transport",
    "UnknownPart",
    "create_transport",
    "generate_boundary",
    "parse_addresses",
    "serialize_message",
]
