# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""A single MIME leaf of a mail message.

A ``MimePart`` holds an already transfer-encoded body together with its MIME
type, charset and transfer encoding. Text bodies are word-wrapped at 78
columns unless wrapping is disabled; encoded binary content (base64) must be
stored with ``wrap=False`` so the encoded lines are not re-flowed.
"""

from __future__ import annotations

import base64
import quopri
import textwrap
from enum import Enum

CHARSET_UTF8 = "utf-8"
LINE_LENGTH = 78
LINE_BREAK = "\n"
BASE64_LINE_LENGTH = 76

MIME_TEXT_PLAIN = "text/plain"
MIME_TEXT_HTML = "text/html"
MIME_OCTET_STREAM = "application/octet-stream"


class TransferEncoding(str, Enum):
    """Content-Transfer-Encoding values supported for parts.

    Attributes:
        SEVEN_BIT: 7bit clean text (default).
        EIGHT_BIT: 8bit text.
        BINARY: Raw binary content.
        BASE64: Base64 encoded content.
        QUOTED_PRINTABLE: Quoted-printable encoded content.
    """

    SEVEN_BIT = "7bit"
    EIGHT_BIT = "8bit"
    BINARY = "binary"
    BASE64 = "base64"
    QUOTED_PRINTABLE = "quoted-printable"


def wrap_text(text: str, width: int = LINE_LENGTH, line_break: str = LINE_BREAK) -> str:
    """Word-wrap ``text`` at ``width`` columns.

    Existing line breaks are kept and words longer than ``width`` are never
    split.
    """
    lines: list[str] = []
    for line in text.split("\n"):
        if len(line) <= width:
            lines.append(line)
            continue
        wrapped = textwrap.wrap(
            line,
            width=width,
            expand_tabs=False,
            replace_whitespace=False,
            break_long_words=False,
            break_on_hyphens=False,
        )
        lines.extend(wrapped or [""])
    return line_break.join(lines)


class MimePart:
    """A MIME part of a mail message.

    Attributes are free-form encoding parameters (``charset`` among them)
    stored with lowercased keys.
    """

    def __init__(
        self,
        body: str | None = "",
        mime_type: str | None = None,
        charset: str | None = None,
        encoding: TransferEncoding | str | None = None,
        wrap: bool = True,
    ):
        """Initialize a part.

        Args:
            body: Encoded body of the part.
            mime_type: MIME type, defaults to ``text/plain``.
            charset: Character set, defaults to ``utf-8``.
            encoding: Transfer encoding, defaults to ``7bit``.
            wrap: Whether to word-wrap the body at 78 columns.
        """
        self._attributes: dict[str, str] = {}
        self._body = ""
        self.set_body(body, wrap=wrap)
        self.charset = charset if charset is not None else CHARSET_UTF8
        self.mime_type = mime_type or MIME_TEXT_PLAIN
        self.transfer_encoding = encoding if encoding is not None else TransferEncoding.SEVEN_BIT

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = MIME_OCTET_STREAM) -> MimePart:
        """Build a base64 encoded part from raw bytes.

        The payload is split into 76 character lines and the part carries no
        charset.
        """
        encoded = base64.encodebytes(data).decode("ascii").rstrip("\n")
        part = cls(encoded, mime_type, encoding=TransferEncoding.BASE64, wrap=False)
        part.charset = None
        return part

    def set_body(self, body: str | None, wrap: bool = True) -> None:
        """Set the body, optionally wrapping it to the maximum line length."""
        body = body or ""
        if wrap:
            body = wrap_text(body)
        self._body = body

    @property
    def body(self) -> str:
        return self._body

    @property
    def mime_type(self) -> str:
        return self._mime_type

    @mime_type.setter
    def mime_type(self, value: str) -> None:
        self._mime_type = value

    @property
    def transfer_encoding(self) -> TransferEncoding:
        return self._encoding

    @transfer_encoding.setter
    def transfer_encoding(self, value: TransferEncoding | str) -> None:
        self._encoding = TransferEncoding(value)

    @property
    def charset(self) -> str | None:
        return self._attributes.get("charset")

    @charset.setter
    def charset(self, value: str | None) -> None:
        if value is None:
            self._attributes.pop("charset", None)
        else:
            self._attributes["charset"] = value

    def set_attribute(self, name: str, value: str) -> None:
        """Set an encoding attribute, the name is case-insensitive."""
        self._attributes[name.lower()] = value

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        return self._attributes.get(name.lower(), default)

    @property
    def attributes(self) -> dict[str, str]:
        return dict(self._attributes)

    def decoded_body(self) -> str | bytes:
        """Return the body with the transfer encoding reversed.

        Base64 and quoted-printable bodies decode to ``bytes``; every other
        encoding returns the stored text unchanged.
        """
        if self._encoding is TransferEncoding.BASE64:
            return base64.b64decode(self._body)
        if self._encoding is TransferEncoding.QUOTED_PRINTABLE:
            return quopri.decodestring(self._body.encode("ascii", errors="replace"))
        return self._body

    @property
    def size(self) -> int:
        """Byte length of the stored (encoded) body."""
        return len(self._body.encode("utf-8"))

    def copy(self) -> MimePart:
        clone = MimePart(self._body, self._mime_type, encoding=self._encoding, wrap=False)
        clone._attributes = dict(self._attributes)
        return clone

    def __repr__(self) -> str:
        return f"MimePart(mime_type={self._mime_type!r}, encoding={self._encoding.value!r}, size={self.size})"
