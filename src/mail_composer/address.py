# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Mail address value object.

Partial implementation of the RFC 2822 address specification: an address is
either a bare ``addr-spec`` (``name@domain.com``) or a ``display-name
<addr-spec>`` pair. Syntax validation of the ``addr-spec`` is delegated to
the ``email-validator`` package.

Example:
    >>> address = MailAddress("Jane Doe <jane@example.com>")
    >>> address.display_name
    'Jane Doe'
    >>> str(MailAddress("john@example.com"))
    'john <john@example.com>'
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from email_validator import EmailNotValidError, validate_email

from .exceptions import InvalidAddress

ADDRESS_PATTERN = re.compile(r"^(.*) <(.*@.*)>$")


class MailAddress:
    """Immutable mail address made of a display name and an email address.

    Equality and hashing use the email address only, so collections keyed by
    address deduplicate recipients regardless of display name.

    Attributes:
        display_name: Human readable name, defaults to the local part.
        email_address: Validated ``local@domain`` address.
    """

    __slots__ = ("_display_name", "_email_address")

    def __init__(self, address: MailAddress | str):
        """Parse ``address`` into display name and email address.

        Args:
            address: Another ``MailAddress`` (copied) or a string in the
                ``name@domain`` or ``Name <name@domain>`` form.

        Raises:
            InvalidAddress: If the input is empty, not a string or the
                extracted email address is not valid.
        """
        if isinstance(address, MailAddress):
            self._display_name = address.display_name
            self._email_address = address.email_address
            return

        if not isinstance(address, str) or not address:
            raise InvalidAddress(
                "Could not create new mail address: address is empty or not a string",
                address=address,
            )

        value = address.strip().replace("\r", "").replace("\n", "")
        display_name = ""
        match = ADDRESS_PATTERN.match(value)
        if match:
            display_name = match.group(1).strip()
            value = match.group(2)

        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise InvalidAddress(f"Provided address {value} is invalid: {exc}", address=address) from exc

        if not display_name:
            display_name = value.split("@", 1)[0]
        self._display_name = display_name
        self._email_address = value

    @classmethod
    def coerce(cls, value: MailAddress | str) -> MailAddress:
        """Return ``value`` unchanged when already an address, else parse it."""
        if isinstance(value, cls):
            return value
        return cls(value)

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def email_address(self) -> str:
        return self._email_address

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_email_address"):
            raise AttributeError("MailAddress is immutable")
        object.__setattr__(self, name, value)

    def __str__(self) -> str:
        return f"{self._display_name} <{self._email_address}>"

    def __repr__(self) -> str:
        return f"MailAddress({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MailAddress):
            return NotImplemented
        return self._email_address == other._email_address

    def __hash__(self) -> int:
        return hash(self._email_address)


def parse_addresses(value: Any) -> dict[str, MailAddress]:
    """Normalise one or many addresses into a mapping keyed by email address.

    Falsy entries are skipped, later duplicates replace earlier ones.

    Args:
        value: ``None``, a single address (string or ``MailAddress``) or an
            iterable of them.

    Returns:
        Ordered dictionary of ``email_address -> MailAddress``.
    """
    if not value:
        return {}
    if isinstance(value, (str, MailAddress)) or not isinstance(value, Iterable):
        items: Iterable[Any] = [value]
    else:
        items = value
    result: dict[str, MailAddress] = {}
    for item in items:
        if not item:
            continue
        address = MailAddress.coerce(item)
        result[address.email_address] = address
    return result
