# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""In-memory representation of an outgoing mail message.

A ``MailMessage`` is created empty, filled in incrementally by the caller and
then read by the serializer. Content is held in three places:

- the ``body`` slot: always present, created as an empty ``text/plain`` part
- the ``alternative`` slot: the plain-text fallback, present in HTML mode
- an ordered mapping of named attachment parts

The reserved names ``"body"`` and ``"alternative"`` are still accepted by
the name-based part accessors and route to the matching slot.

Example:
    Building an HTML message with an attachment::

        message = MailMessage()
        message.from_address = "Reports <reports@example.com>"
        message.set_to(["alice@example.com", "Bob <bob@example.com>"])
        message.subject = "Monthly report"
        message.set_html(True)
        message.message = "<p>See the <b>attached</b> report.</p>"
        message.add_attachment("report.pdf", content=pdf_bytes)
"""

from __future__ import annotations

import html
import mimetypes
import re
import secrets
from enum import Enum
from pathlib import Path
from typing import Any

from .address import MailAddress, parse_addresses
from .exceptions import InvalidAutoSubmitted, InvalidSubject, UnknownPart
from .mime_part import MIME_OCTET_STREAM, MIME_TEXT_HTML, MIME_TEXT_PLAIN, MimePart

NO_SUBJECT = "no subject"
PART_BODY = "body"
PART_ALTERNATIVE = "alternative"

_BREAK_TAGS = re.compile(r"<\s*br\s*/?\s*>|</\s*(?:p|div|li|tr|h[1-6])\s*>", re.IGNORECASE)
_HIDDEN_BLOCKS = re.compile(r"<\s*(script|style)[^>]*>.*?<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]*>")


class AutoSubmitted(str, Enum):
    """RFC 3834 Auto-Submitted header keywords.

    Attributes:
        NO: Message was written by a human.
        AUTO_GENERATED: Message was generated by an automatic process.
        AUTO_REPLIED: Message is an automatic response to another message.
    """

    NO = "no"
    AUTO_GENERATED = "auto-generated"
    AUTO_REPLIED = "auto-replied"


def strip_line_breaks(value: str) -> str:
    """Remove CR and LF so a value can not start a new header line."""
    return value.replace("\r", "").replace("\n", "")


def strip_tags(markup: str) -> str:
    """Reduce an HTML fragment to its text content."""
    text = _HIDDEN_BLOCKS.sub("", markup)
    text = _BREAK_TAGS.sub("\n", text)
    text = _TAGS.sub("", text)
    return html.unescape(text)


class MailMessage:
    """Structured outgoing mail message.

    Not safe for concurrent mutation: a message is owned by the single send
    operation that builds it.

    Attributes:
        message_id: Value of the Message-Id header.
        in_reply_to: Value of the In-Reply-To header.
        references: Message ids for the References header, in order.
    """

    def __init__(self, wrap_html: bool = True):
        """Create an empty plain-text message.

        Args:
            wrap_html: Whether HTML bodies are word-wrapped at 78 columns like
                plain text bodies.
        """
        self.wrap_html = wrap_html
        self._from: MailAddress | None = None
        self._to: dict[str, MailAddress] = {}
        self._cc: dict[str, MailAddress] = {}
        self._bcc: dict[str, MailAddress] = {}
        self._reply_to: MailAddress | None = None
        self._return_path: MailAddress | None = None
        self._subject = NO_SUBJECT
        self._is_html = False
        self._body = MimePart("", MIME_TEXT_PLAIN)
        self._alternative: MimePart | None = None
        self._alternative_derived = False
        self._attachments: dict[str, MimePart] = {}
        self._message_id: str | None = None
        self._in_reply_to: str | None = None
        self._references: list[str] = []
        self._auto_submitted: AutoSubmitted | None = None

    # ------------------------------------------------------------ addresses
    @property
    def from_address(self) -> MailAddress | None:
        return self._from

    @from_address.setter
    def from_address(self, value: MailAddress | str | None) -> None:
        self._from = MailAddress.coerce(value) if value else None

    def set_to(self, to: Any) -> None:
        self._to = parse_addresses(to)

    def add_to(self, to: Any) -> None:
        self._to.update(parse_addresses(to))

    def get_to(self) -> dict[str, MailAddress]:
        return dict(self._to)

    def set_cc(self, cc: Any) -> None:
        self._cc = parse_addresses(cc)

    def add_cc(self, cc: Any) -> None:
        self._cc.update(parse_addresses(cc))

    def get_cc(self) -> dict[str, MailAddress]:
        return dict(self._cc)

    def set_bcc(self, bcc: Any) -> None:
        self._bcc = parse_addresses(bcc)

    def add_bcc(self, bcc: Any) -> None:
        self._bcc.update(parse_addresses(bcc))

    def get_bcc(self) -> dict[str, MailAddress]:
        return dict(self._bcc)

    @property
    def reply_to(self) -> MailAddress | None:
        return self._reply_to

    @reply_to.setter
    def reply_to(self, value: MailAddress | str | None) -> None:
        self._reply_to = MailAddress.coerce(value) if value else None

    @property
    def return_path(self) -> MailAddress | None:
        """Envelope sender address, falls back to the From address."""
        return self._return_path or self._from

    @return_path.setter
    def return_path(self, value: MailAddress | str | None) -> None:
        self._return_path = MailAddress.coerce(value) if value else None

    def recipients(self) -> list[str]:
        """Every distinct To, Cc and Bcc email address."""
        seen: dict[str, None] = {}
        for collection in (self._to, self._cc, self._bcc):
            for email in collection:
                seen.setdefault(email, None)
        return list(seen)

    # ------------------------------------------------------------ subject
    @property
    def subject(self) -> str:
        return self._subject

    @subject.setter
    def subject(self, value: str) -> None:
        if not isinstance(value, str):
            raise InvalidSubject("Provided subject is not a string")
        value = value.strip()
        if not value:
            self._subject = NO_SUBJECT
            return
        self._subject = strip_line_breaks(value)

    # ------------------------------------------------------------ content
    @property
    def is_html(self) -> bool:
        return self._is_html

    @is_html.setter
    def is_html(self, value: bool) -> None:
        self.set_html(value)

    def set_html(self, is_html: bool) -> None:
        """Switch between plain text and HTML mode.

        Turning HTML on keeps the current text as the ``text/html`` body and
        moves its markup-stripped version into the alternative part. Turning
        it off makes the alternative the body again and drops the HTML.
        """
        is_html = bool(is_html)
        self._is_html = is_html
        if is_html and self._alternative is None:
            markup = self._body.body
            alternative = self._body.copy()
            alternative.set_body(strip_tags(markup))
            self._alternative = alternative
            self._alternative_derived = True
            self._body = MimePart(markup, MIME_TEXT_HTML, wrap=self.wrap_html)
        elif not is_html and self._alternative is not None:
            self._body = self._alternative
            self._alternative = None
            self._alternative_derived = False

    @property
    def message(self) -> str:
        """Text of the primary body part."""
        return self._body.body

    @message.setter
    def message(self, text: str) -> None:
        if not self._is_html:
            self._body.set_body(text)
            return
        self._body.set_body(text, wrap=self.wrap_html)
        if self._alternative is None or self._alternative_derived:
            self._alternative = MimePart(strip_tags(text or ""), MIME_TEXT_PLAIN)
            self._alternative_derived = True

    @property
    def body_part(self) -> MimePart:
        return self._body

    @property
    def alternative_part(self) -> MimePart | None:
        return self._alternative

    @property
    def attachments(self) -> dict[str, MimePart]:
        return dict(self._attachments)

    def add_attachment(
        self,
        attachment: str | Path,
        content: bytes | None = None,
        mime_type: str | None = None,
    ) -> str:
        """Attach a file, base64 encoded.

        Args:
            attachment: Path of the file to read, or the attachment file name
                when ``content`` is given.
            content: In-memory file content.
            mime_type: MIME type, guessed from the file name when omitted.

        Returns:
            The part name, i.e. the file name.
        """
        path = Path(attachment)
        if content is None:
            content = path.read_bytes()
        if not mime_type:
            mime_type = mimetypes.guess_type(path.name)[0] or MIME_OCTET_STREAM
        return self.add_part(MimePart.from_bytes(content, mime_type), path.name)

    def add_part(self, part: MimePart, name: str | None = None) -> str:
        """Store ``part`` under ``name``, generating a random name if missing."""
        name = strip_line_breaks(name or "").replace('"', "")
        if not name:
            name = secrets.token_hex(16)
        if name == PART_BODY:
            self._body = part
        elif name == PART_ALTERNATIVE:
            self._alternative = part
            self._alternative_derived = False
        else:
            self._attachments[name] = part
        return name

    def has_part(self, name: str) -> bool:
        if name == PART_BODY:
            return True
        if name == PART_ALTERNATIVE:
            return self._alternative is not None
        return name in self._attachments

    def get_part(self, name: str) -> MimePart:
        if not self.has_part(name):
            raise UnknownPart(f"Could not get part: no part with name {name}", name=name)
        if name == PART_BODY:
            return self._body
        if name == PART_ALTERNATIVE:
            return self._alternative
        return self._attachments[name]

    def remove_part(self, name: str) -> None:
        """Remove a part; removing the body resets it to an empty text part."""
        if not self.has_part(name):
            raise UnknownPart(f"Could not delete part: no part with name {name}", name=name)
        if name == PART_BODY:
            self._body = MimePart("", MIME_TEXT_PLAIN)
        elif name == PART_ALTERNATIVE:
            self._alternative = None
            self._alternative_derived = False
        else:
            del self._attachments[name]

    @property
    def parts(self) -> dict[str, MimePart]:
        """All parts in serialization order: body, alternative, attachments."""
        result = {PART_BODY: self._body}
        if self._alternative is not None:
            result[PART_ALTERNATIVE] = self._alternative
        result.update(self._attachments)
        return result

    # ------------------------------------------------------------ threading
    @property
    def message_id(self) -> str | None:
        return self._message_id

    @message_id.setter
    def message_id(self, value: str | None) -> None:
        self._message_id = strip_line_breaks(value) if value else None

    @property
    def in_reply_to(self) -> str | None:
        return self._in_reply_to

    @in_reply_to.setter
    def in_reply_to(self, value: str | None) -> None:
        self._in_reply_to = strip_line_breaks(value) if value else None

    @property
    def references(self) -> list[str]:
        return list(self._references)

    @references.setter
    def references(self, value: list[str] | None) -> None:
        self._references = []
        for message_id in value or []:
            self.add_reference(message_id)

    def add_reference(self, message_id: str) -> None:
        message_id = strip_line_breaks(message_id)
        if message_id:
            self._references.append(message_id)

    @property
    def auto_submitted(self) -> AutoSubmitted | None:
        return self._auto_submitted

    @auto_submitted.setter
    def auto_submitted(self, value: AutoSubmitted | str | None) -> None:
        if value is None:
            self._auto_submitted = None
            return
        try:
            self._auto_submitted = AutoSubmitted(value)
        except ValueError as exc:
            raise InvalidAutoSubmitted(
                "Could not set the auto submitted flag: use either no, auto-generated or auto-replied"
            ) from exc

    def __repr__(self) -> str:
        return (
            f"MailMessage(subject={self._subject!r}, to={list(self._to)!r}, "
            f"html={self._is_html}, attachments={list(self._attachments)!r})"
        )
