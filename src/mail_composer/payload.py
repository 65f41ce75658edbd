# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models describing a message as plain data.

These models validate JSON (or dict) message descriptions before they are
turned into a :class:`~mail_composer.message.MailMessage`. Address syntax is
not checked here; it is validated when the message is built, so bad
addresses surface as :class:`~mail_composer.exceptions.InvalidAddress`.

Models:
    - AttachmentPayload: inline (base64) or file attachment
    - MessagePayload: complete message description
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .message import AutoSubmitted, MailMessage


class AttachmentPayload(BaseModel):
    """Attachment specification.

    Attributes:
        filename: Attachment filename, also used as the part name.
        content: Base64 encoded file content.
        path: Path of a local file to attach.
        mime_type: Optional MIME type override.
    """

    model_config = ConfigDict(extra="forbid")

    filename: Annotated[
        str | None,
        Field(default=None, min_length=1, max_length=255, description="Attachment filename")
    ]
    content: Annotated[
        str | None,
        Field(default=None, description="Base64 encoded content")
    ]
    path: Annotated[
        str | None,
        Field(default=None, min_length=1, description="Local file path")
    ]
    mime_type: Annotated[
        str | None,
        Field(default=None, pattern=r"^[\w.+-]+/[\w.+-]+$", description="MIME type override")
    ]

    @model_validator(mode="after")
    def content_or_path(self) -> AttachmentPayload:
        """Validate that exactly one source is given and a name can be derived."""
        if (self.content is None) == (self.path is None):
            raise ValueError("exactly one of 'content' or 'path' is required")
        if self.content is not None and not self.filename:
            raise ValueError("'filename' is required for inline content")
        if self.content is not None:
            try:
                base64.b64decode(self.content, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError("'content' is not valid base64") from exc
        return self

    def attach_to(self, message: MailMessage) -> str:
        """Add this attachment to ``message`` and return the part name."""
        if self.path is not None:
            path = Path(self.path)
            name = self.filename or path.name
            return message.add_attachment(name, content=path.read_bytes(), mime_type=self.mime_type)
        return message.add_attachment(
            self.filename, content=base64.b64decode(self.content), mime_type=self.mime_type
        )


class MessagePayload(BaseModel):
    """Description of an outgoing message.

    Attributes:
        from_addr: Sender address.
        to: Recipient address(es).
        cc: Cc address(es).
        bcc: Bcc address(es).
        reply_to: Reply-To address.
        return_path: Envelope sender address.
        subject: Message subject.
        body: Body text (HTML when content_type is "html").
        content_type: Body content type (plain or html).
        message_id: Message-Id header value.
        in_reply_to: In-Reply-To header value.
        references: Message ids for the References header.
        auto_submitted: RFC 3834 Auto-Submitted keyword.
        attachments: List of attachments.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_addr: Annotated[
        str | None,
        Field(default=None, alias="from", description="Sender address")
    ]
    to: Annotated[
        list[str] | str | None,
        Field(default=None, description="Recipient address(es)")
    ]
    cc: Annotated[
        list[str] | str | None,
        Field(default=None, description="CC address(es)")
    ]
    bcc: Annotated[
        list[str] | str | None,
        Field(default=None, description="BCC address(es)")
    ]
    reply_to: Annotated[
        str | None,
        Field(default=None, description="Reply-To address")
    ]
    return_path: Annotated[
        str | None,
        Field(default=None, description="Return-Path (envelope sender) address")
    ]
    subject: Annotated[
        str,
        Field(default="", description="Message subject")
    ]
    body: Annotated[
        str,
        Field(default="", description="Message body")
    ]
    content_type: Annotated[
        Literal["plain", "html"],
        Field(default="plain", description="Body content type")
    ]
    message_id: Annotated[
        str | None,
        Field(default=None, description="Message-Id header")
    ]
    in_reply_to: Annotated[
        str | None,
        Field(default=None, description="In-Reply-To header")
    ]
    references: Annotated[
        list[str],
        Field(default_factory=list, description="References header message ids")
    ]
    auto_submitted: Annotated[
        AutoSubmitted | None,
        Field(default=None, description="Auto-Submitted keyword")
    ]
    attachments: Annotated[
        list[AttachmentPayload] | None,
        Field(default=None, description="List of attachments")
    ]

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def normalize_recipients(cls, v: list[str] | str | None) -> list[str] | None:
        """Convert string recipients to list."""
        if v is None:
            return None
        if isinstance(v, str):
            return [addr.strip() for addr in v.split(",") if addr.strip()]
        return v

    def to_message(self, message: MailMessage | None = None) -> MailMessage:
        """Populate ``message`` (or a new one) from this payload.

        Raises:
            InvalidAddress: If any address is invalid.
        """
        message = message if message is not None else MailMessage()
        message.from_address = self.from_addr
        message.set_to(self.to)
        message.set_cc(self.cc)
        message.set_bcc(self.bcc)
        message.reply_to = self.reply_to
        message.return_path = self.return_path
        message.subject = self.subject
        if self.content_type == "html":
            message.set_html(True)
        message.message = self.body
        message.message_id = self.message_id
        message.in_reply_to = self.in_reply_to
        message.references = list(self.references)
        message.auto_submitted = self.auto_submitted
        for attachment in self.attachments or []:
            attachment.attach_to(message)
        return message
