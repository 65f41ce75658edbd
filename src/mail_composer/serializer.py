# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Serialization of a ``MailMessage`` into RFC 2822 / MIME text.

The serializer turns the structured message into three things: the subject,
an ordered mapping of header lines and the MIME body. The MIME layout depends
on which parts the message carries:

- body only: the part's Content-Type and Content-Transfer-Encoding become
  message headers and the body is the raw part content
- body and alternative: ``multipart/alternative`` with the plain-text
  alternative first and the HTML body second
- any attachment: ``multipart/mixed`` whose first section is the body (or a
  nested ``multipart/alternative``) followed by one section per attachment

Header lines are emitted in a fixed order: From, To/Cc/Bcc (or the debug
To), Reply-To, MIME-Version, Message-Id, In-Reply-To, References,
Auto-Submitted, then Content-Type/Content-Transfer-Encoding.

Example:
    >>> message = MailMessage()
    >>> message.set_to("a@x.com")
    >>> message.subject = "Hi"
    >>> message.message = "Hello"
    >>> result = MessageSerializer().serialize(message)
    >>> result.headers["To"]
    'To: a <a@x.com>'
    >>> result.body
    'Hello\\n\\n'
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .address import MailAddress, parse_addresses
from .exceptions import NoRecipients
from .message import MailMessage
from .mime_part import MimePart

HEADER_SUBJECT = "Subject"
HEADER_MIME_VERSION = "MIME-Version"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_DISPOSITION = "Content-Disposition"
HEADER_CONTENT_TRANSFER_ENCODING = "Content-Transfer-Encoding"
HEADER_FROM = "From"
HEADER_TO = "To"
HEADER_CC = "Cc"
HEADER_BCC = "Bcc"
HEADER_REPLY_TO = "Reply-To"
HEADER_MESSAGE_ID = "Message-Id"
HEADER_IN_REPLY_TO = "In-Reply-To"
HEADER_REFERENCES = "References"
HEADER_AUTO_SUBMITTED = "Auto-Submitted"

MIME_MULTIPART_MIXED = "multipart/mixed"
MIME_MULTIPART_ALTERNATIVE = "multipart/alternative"

DEFAULT_LINE_BREAK = "\n"

# MIME body lines always use LF; the configurable line break only joins headers
BODY_LINE_BREAK = "\n"


def generate_boundary(discriminator: str = "") -> str:
    """Return a random 128-bit multipart boundary token.

    Args:
        discriminator: Optional label prefixed to the token, e.g.
            ``"message"`` for nested boundaries.
    """
    token = secrets.token_hex(16)
    if discriminator:
        return f"{discriminator}_{token}"
    return token


def apply_default_bcc(message: MailMessage, default_bcc: Any) -> bool:
    """Write ``default_bcc`` onto ``message`` when it has no Bcc at all.

    This is the explicit pre-processing step transports run once before
    serializing.

    Returns:
        True if the message was modified.
    """
    if not default_bcc or message.get_bcc():
        return False
    message.set_bcc(default_bcc)
    return True


@dataclass
class SerializedMessage:
    """Result of serializing a message.

    Attributes:
        subject: Message subject (never empty).
        headers: Ordered header lines keyed by header name; each value is
            the full ``"Name: value"`` line.
        body: Fully serialized MIME body.
        recipients: Effective envelope recipient addresses.
        line_break: Separator used to join header lines.
    """

    subject: str
    headers: dict[str, str]
    body: str
    recipients: list[str] = field(default_factory=list)
    line_break: str = DEFAULT_LINE_BREAK

    def header_block(self, include_bcc: bool = True) -> str:
        """Header lines joined with the configured line break."""
        lines = [line for name, line in self.headers.items() if include_bcc or name != HEADER_BCC]
        return self.line_break.join(lines)

    def as_string(self, include_bcc: bool = True) -> str:
        """Complete RFC 2822 message: Subject, headers, blank line, body."""
        head = f"{HEADER_SUBJECT}: {self.subject}{self.line_break}{self.header_block(include_bcc)}"
        return f"{head}{self.line_break}{self.line_break}{self.body}"


class MessageSerializer:
    """Render ``MailMessage`` instances into headers and a MIME body.

    The serializer never mutates the message it reads, so serializing the
    same message twice produces the same headers (boundaries aside).

    Attributes:
        default_from: Sender used when the message has none.
        default_bcc: Bcc recipients used when the message has none.
        debug_to: When set, replaces every recipient with this address (or
            list of addresses); Cc, Bcc and Reply-To are not emitted.
        line_break: Separator used to join header lines.
    """

    def __init__(
        self,
        default_from: MailAddress | str | None = None,
        default_bcc: Any = None,
        debug_to: Any = None,
        line_break: str = DEFAULT_LINE_BREAK,
        boundary_factory: Callable[[str], str] = generate_boundary,
    ):
        self.default_from = MailAddress.coerce(default_from) if default_from else None
        self.default_bcc = parse_addresses(default_bcc)
        self.debug_to = parse_addresses(debug_to)
        self.line_break = line_break or DEFAULT_LINE_BREAK
        self._boundary = boundary_factory

    def serialize(self, message: MailMessage) -> SerializedMessage:
        """Serialize ``message``.

        Raises:
            NoRecipients: If there is no To, Cc or (effective) Bcc recipient
                and no debug recipient is configured.
        """
        headers: dict[str, str] = {}
        recipients = self._add_addresses(message, headers)
        self._add_headers(message, headers)
        body = self._add_parts(message, headers)
        return SerializedMessage(
            subject=message.subject,
            headers=headers,
            body=body,
            recipients=recipients,
            line_break=self.line_break,
        )

    # ------------------------------------------------------------ addresses
    def _add_addresses(self, message: MailMessage, headers: dict[str, str]) -> list[str]:
        sender = message.from_address or self.default_from
        to = message.get_to()
        cc = message.get_cc()
        bcc = message.get_bcc() or dict(self.default_bcc)

        if not to and not cc and not bcc and not self.debug_to:
            raise NoRecipients()

        if sender:
            headers[HEADER_FROM] = f"{HEADER_FROM}: {sender}"

        if self.debug_to:
            _set_address_header(headers, HEADER_TO, self.debug_to)
            return list(self.debug_to)

        _set_address_header(headers, HEADER_TO, to)
        _set_address_header(headers, HEADER_CC, cc)
        _set_address_header(headers, HEADER_BCC, bcc)
        if message.reply_to:
            headers[HEADER_REPLY_TO] = f"{HEADER_REPLY_TO}: {message.reply_to}"
        return list(dict.fromkeys([*to, *cc, *bcc]))

    # ------------------------------------------------------------ headers
    def _add_headers(self, message: MailMessage, headers: dict[str, str]) -> None:
        headers[HEADER_MIME_VERSION] = f"{HEADER_MIME_VERSION}: 1.0"
        if message.message_id:
            headers[HEADER_MESSAGE_ID] = f"{HEADER_MESSAGE_ID}: {message.message_id}"
        if message.in_reply_to:
            headers[HEADER_IN_REPLY_TO] = f"{HEADER_IN_REPLY_TO}: {message.in_reply_to}"
        if message.references:
            headers[HEADER_REFERENCES] = f"{HEADER_REFERENCES}: {' '.join(message.references)}"
        if message.auto_submitted:
            headers[HEADER_AUTO_SUBMITTED] = f"{HEADER_AUTO_SUBMITTED}: {message.auto_submitted.value}"

    # ------------------------------------------------------------ body
    def _add_parts(self, message: MailMessage, headers: dict[str, str]) -> str:
        body = message.body_part
        alternative = message.alternative_part
        attachments = message.attachments

        if alternative is None and not attachments:
            headers[HEADER_CONTENT_TYPE] = f"{HEADER_CONTENT_TYPE}: {_content_type(body)}"
            headers[HEADER_CONTENT_TRANSFER_ENCODING] = (
                f"{HEADER_CONTENT_TRANSFER_ENCODING}: {body.transfer_encoding.value}"
            )
            return _render_part(body, skip_headers=True)

        boundary = self._boundary("")
        if not attachments:
            headers[HEADER_CONTENT_TYPE] = f"{HEADER_CONTENT_TYPE}: {MIME_MULTIPART_ALTERNATIVE}; boundary={boundary}"
            return _render_alternative(body, alternative, boundary)

        headers[HEADER_CONTENT_TYPE] = f"{HEADER_CONTENT_TYPE}: {MIME_MULTIPART_MIXED}; boundary={boundary}"
        chunks: list[str] = [f"--{boundary}{BODY_LINE_BREAK}"]
        if alternative is not None:
            nested = self._boundary("message")
            chunks.append(
                f"{HEADER_CONTENT_TYPE}: {MIME_MULTIPART_ALTERNATIVE}; boundary={nested}"
                f"{BODY_LINE_BREAK}{BODY_LINE_BREAK}"
            )
            chunks.append(_render_alternative(body, alternative, nested))
        else:
            chunks.append(_render_part(body))
        for name, attachment in attachments.items():
            chunks.append(f"--{boundary}{BODY_LINE_BREAK}")
            chunks.append(_render_attachment(attachment, name))
        chunks.append(f"--{boundary}--{BODY_LINE_BREAK}")
        return "".join(chunks)


def serialize_message(message: MailMessage, **kwargs: Any) -> SerializedMessage:
    """Serialize ``message`` with a one-off ``MessageSerializer``."""
    return MessageSerializer(**kwargs).serialize(message)


def _set_address_header(headers: dict[str, str], name: str, addresses: dict[str, MailAddress]) -> None:
    if not addresses:
        return
    headers[name] = f"{name}: {', '.join(str(address) for address in addresses.values())}"


def _content_type(part: MimePart) -> str:
    if part.charset:
        return f"{part.mime_type}; charset={part.charset}"
    return part.mime_type


def _render_part(part: MimePart, skip_headers: bool = False) -> str:
    chunks: list[str] = []
    if not skip_headers:
        chunks.append(f"{HEADER_CONTENT_TYPE}: {_content_type(part)}{BODY_LINE_BREAK}")
        chunks.append(
            f"{HEADER_CONTENT_TRANSFER_ENCODING}: {part.transfer_encoding.value}{BODY_LINE_BREAK}{BODY_LINE_BREAK}"
        )
    chunks.append(f"{part.body}{BODY_LINE_BREAK}{BODY_LINE_BREAK}")
    return "".join(chunks)


def _render_alternative(body: MimePart, alternative: MimePart, boundary: str) -> str:
    return "".join(
        [
            f"--{boundary}{BODY_LINE_BREAK}",
            _render_part(alternative),
            f"--{boundary}{BODY_LINE_BREAK}",
            _render_part(body),
            f"--{boundary}--{BODY_LINE_BREAK}",
        ]
    )


def _render_attachment(part: MimePart, name: str) -> str:
    return "".join(
        [
            f'{HEADER_CONTENT_TYPE}: {part.mime_type}; name="{name}"{BODY_LINE_BREAK}',
            f'{HEADER_CONTENT_DISPOSITION}: attachment; filename="{name}"{BODY_LINE_BREAK}',
            f"{HEADER_CONTENT_TRANSFER_ENCODING}: {part.transfer_encoding.value}{BODY_LINE_BREAK}{BODY_LINE_BREAK}",
            f"{part.body}{BODY_LINE_BREAK}{BODY_LINE_BREAK}",
        ]
    )
