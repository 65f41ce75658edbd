# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for message composition and delivery.

Every error carries a stable ``code`` attribute so callers (and the CLI) can
report failures without matching on message text.
"""

from __future__ import annotations


class MailError(RuntimeError):
    """Base class for all mail composition and delivery errors."""

    code = "mail_error"

    def __init__(self, message: str = "Mail error"):
        super().__init__(message)


class InvalidAddress(MailError):
    """Raised when an address is empty, not a string or syntactically invalid."""

    code = "invalid_address"

    def __init__(self, message: str = "Invalid mail address", address: object = None):
        super().__init__(message)
        self.address = address


class InvalidSubject(MailError):
    """Raised when a subject is not a string."""

    code = "invalid_subject"


class InvalidAutoSubmitted(MailError, ValueError):
    """Raised when the Auto-Submitted flag is not one of the RFC 3834 keywords."""

    code = "invalid_auto_submitted"


class UnknownPart(MailError, KeyError):
    """Raised when fetching or removing a MIME part name that does not exist."""

    code = "unknown_part"

    def __init__(self, message: str = "Unknown part", name: str | None = None):
        super().__init__(message)
        self.name = name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class NoRecipients(MailError):
    """Raised when a message has no effective To, Cc or Bcc recipient."""

    code = "no_recipients"

    def __init__(self, message: str = "No recipients set"):
        super().__init__(message)


class DeliveryRejected(MailError):
    """Raised when the platform mailer or SMTP server refuses the message."""

    code = "delivery_rejected"

    def __init__(
        self,
        message: str = "The message is not accepted for delivery. Check your mail configuration.",
        subject: str | None = None,
    ):
        super().__init__(message)
        self.subject = subject
