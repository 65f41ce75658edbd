# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Delivery transports for composed messages.

A transport creates messages, serializes them and hands the result to a
delivery mechanism. All transports share the same flow implemented by
:class:`AbstractTransport`:

1. apply the default Bcc to a message that has none
2. serialize the message (subject, header lines, MIME body)
3. call :meth:`AbstractTransport.deliver` with the envelope sender
4. log the subject and header block, then raise ``DeliveryRejected`` if the
   mechanism refused the message

Available transports:

- :class:`FunctionTransport`: calls a ``mail(subject, body, headers,
  parameters)`` style function, the classic OS mailer boundary
- :class:`SendmailTransport`: pipes the message into a local
  ``sendmail``-compatible binary
- :class:`SmtpTransport`: delivers over SMTP with aiosmtplib
- :class:`MemoryTransport`: keeps sent messages in an in-memory outbox

Example:
    Redirecting all mail to a developer mailbox::

        transport = SendmailTransport(debug_to="dev@example.com")
        message = transport.create_message()
        ...
        transport.send(message)
"""

from __future__ import annotations

import asyncio
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiosmtplib

from .address import MailAddress
from .exceptions import DeliveryRejected
from .logger import get_logger
from .message import MailMessage
from .serializer import DEFAULT_LINE_BREAK, MessageSerializer, SerializedMessage, apply_default_bcc

if TYPE_CHECKING:
    from .config_loader import TransportConfig

DEFAULT_SENDMAIL_PATH = "/usr/sbin/sendmail"
DEFAULT_SMTP_TIMEOUT = 30.0

MailFunction = Callable[[str, str, str, "str | None"], bool]


def format_envelope_parameter(address: MailAddress | str | None) -> str | None:
    """Return the ``-f <address>`` mailer parameter for an envelope sender."""
    if not address:
        return None
    if isinstance(address, MailAddress):
        address = address.email_address
    return f"-f {address}"


class Transport(ABC):
    """Interface of a mail transport."""

    @abstractmethod
    def create_message(self) -> MailMessage:
        """Create a new, empty message."""

    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Deliver ``message``.

        Raises:
            NoRecipients: If the message has no recipient.
            DeliveryRejected: If the delivery mechanism refused the message.
        """


class AbstractTransport(Transport):
    """Shared serialization, logging and error handling for transports.

    Attributes:
        default_from: Sender used for messages without a From address.
        default_bcc: Bcc recipients applied to messages without any Bcc.
        debug_to: Address (or list) that replaces all recipients.
        line_break: Separator for header lines.
        logger: Logger receiving a record for every sent or refused message.
    """

    def __init__(
        self,
        default_from: MailAddress | str | None = None,
        default_bcc: Any = None,
        debug_to: Any = None,
        line_break: str | None = None,
        logger=None,
    ):
        self.default_from = default_from
        self.default_bcc = default_bcc
        self.debug_to = debug_to
        self.line_break = line_break or DEFAULT_LINE_BREAK
        self.logger = logger or get_logger("mail")

    def create_message(self) -> MailMessage:
        return MailMessage()

    def serializer(self) -> MessageSerializer:
        return MessageSerializer(
            default_from=self.default_from,
            default_bcc=self.default_bcc,
            debug_to=self.debug_to,
            line_break=self.line_break,
        )

    def build(self, message: MailMessage) -> SerializedMessage:
        """Apply the default Bcc to ``message`` and serialize it."""
        apply_default_bcc(message, self.default_bcc)
        return self.serializer().serialize(message)

    def envelope_sender(self, message: MailMessage) -> str | None:
        """Envelope sender address: the return path, else the default sender."""
        return_path = message.return_path
        if return_path:
            return return_path.email_address
        if self.default_from:
            return MailAddress.coerce(self.default_from).email_address
        return None

    def send(self, message: MailMessage) -> None:
        serialized = self.build(message)
        accepted = self.deliver(serialized, self.envelope_sender(message))
        self.log_mail(serialized.subject, serialized.header_block(), is_error=not accepted)
        if not accepted:
            raise DeliveryRejected(subject=serialized.subject)

    @abstractmethod
    def deliver(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        """Hand a serialized message to the delivery mechanism.

        Returns:
            True if the message was accepted for delivery.
        """

    def log_mail(self, subject: str, headers: str, is_error: bool) -> None:
        title = f"{'Could not send' if is_error else 'Send'} mail with subject '{subject}'"
        if is_error:
            self.logger.error("%s\nHeaders:\n%s", title, headers)
        else:
            self.logger.info("%s\nHeaders:\n%s", title, headers)


class FunctionTransport(AbstractTransport):
    """Transport delegating to a ``mail()``-style function.

    The function receives ``(subject, body, headers, parameters)`` where
    ``headers`` is the joined header block and ``parameters`` is the
    ``-f <address>`` envelope option or None, and returns a success flag.
    """

    def __init__(self, mail_function: MailFunction, **kwargs: Any):
        super().__init__(**kwargs)
        self.mail_function = mail_function

    def deliver(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        return bool(
            self.mail_function(
                serialized.subject,
                serialized.body,
                serialized.header_block(),
                format_envelope_parameter(envelope_sender),
            )
        )


class SendmailTransport(AbstractTransport):
    """Transport piping messages into a local sendmail-compatible binary.

    The binary is called with ``-t -i`` so recipients are read from the
    headers (and Bcc lines stripped by the mailer), plus ``-f`` for the
    envelope sender.
    """

    def __init__(self, sendmail_path: str = DEFAULT_SENDMAIL_PATH, timeout: float | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.sendmail_path = sendmail_path
        self.timeout = timeout

    def command(self, envelope_sender: str | None) -> list[str]:
        command = [self.sendmail_path, "-t", "-i"]
        parameter = format_envelope_parameter(envelope_sender)
        if parameter:
            command.extend(parameter.split(" ", 1))
        return command

    def deliver(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        command = self.command(envelope_sender)
        try:
            completed = subprocess.run(
                command,
                input=serialized.as_string().encode("utf-8"),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            self.logger.error("Could not run %s: %s", self.sendmail_path, exc)
            return False
        if completed.returncode != 0:
            self.logger.error(
                "%s exited with status %d: %s",
                self.sendmail_path,
                completed.returncode,
                completed.stderr.decode("utf-8", errors="replace").strip(),
            )
            return False
        return True


class SmtpTransport(AbstractTransport):
    """Transport delivering over SMTP with aiosmtplib.

    TLS behavior based on port and ``use_tls``:

    - port 465 with ``use_tls``: direct TLS (implicit TLS)
    - other ports with ``use_tls``: STARTTLS
    - ``use_tls=False``: plain SMTP

    Bcc lines are never transmitted; every recipient travels on the
    envelope instead. :meth:`send` runs the delivery coroutine with
    ``asyncio.run`` and must not be called from a running event loop; use
    :meth:`send_async` there.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 25,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: float = DEFAULT_SMTP_TIMEOUT,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _client(self) -> aiosmtplib.SMTP:
        if self.use_tls and self.port == 465:
            return aiosmtplib.SMTP(
                hostname=self.host, port=self.port, start_tls=False, use_tls=True, timeout=self.timeout
            )
        if self.use_tls:
            return aiosmtplib.SMTP(
                hostname=self.host, port=self.port, start_tls=True, use_tls=False, timeout=self.timeout
            )
        return aiosmtplib.SMTP(hostname=self.host, port=self.port, start_tls=False, use_tls=False, timeout=self.timeout)

    async def deliver_async(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        smtp = self._client()
        try:
            await smtp.connect()
            if self.user and self.password:
                await smtp.login(self.user, self.password)
            await smtp.sendmail(
                envelope_sender or "",
                serialized.recipients,
                serialized.as_string(include_bcc=False).encode("utf-8"),
            )
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
            smtp_code = getattr(exc, "code", None)
            error_info = f"{exc} (SMTP {smtp_code})" if smtp_code else str(exc)
            self.logger.error("SMTP delivery to %s:%d failed: %s", self.host, self.port, error_info)
            return False
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException:
                    smtp.close()
        return True

    def deliver(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        return asyncio.run(self.deliver_async(serialized, envelope_sender))

    async def send_async(self, message: MailMessage) -> None:
        """Coroutine variant of :meth:`send`."""
        serialized = self.build(message)
        accepted = await self.deliver_async(serialized, self.envelope_sender(message))
        self.log_mail(serialized.subject, serialized.header_block(), is_error=not accepted)
        if not accepted:
            raise DeliveryRejected(subject=serialized.subject)


@dataclass
class OutboxEntry:
    """A message recorded by :class:`MemoryTransport`."""

    serialized: SerializedMessage
    envelope_sender: str | None


class MemoryTransport(AbstractTransport):
    """Transport storing messages in :attr:`outbox` instead of sending them.

    Attributes:
        accept: When False every delivery is refused.
        outbox: Accepted messages in delivery order.
    """

    def __init__(self, accept: bool = True, **kwargs: Any):
        super().__init__(**kwargs)
        self.accept = accept
        self.outbox: list[OutboxEntry] = []

    def deliver(self, serialized: SerializedMessage, envelope_sender: str | None) -> bool:
        if not self.accept:
            return False
        self.outbox.append(OutboxEntry(serialized, envelope_sender))
        return True


def create_transport(config: TransportConfig) -> AbstractTransport:
    """Build the transport described by ``config``.

    Raises:
        ValueError: If ``config.transport`` names an unknown transport.
    """
    common = {
        "default_from": config.default_from,
        "default_bcc": config.default_bcc,
        "debug_to": config.debug_to,
        "line_break": config.line_break,
    }
    if config.transport == "sendmail":
        return SendmailTransport(sendmail_path=config.sendmail_path, **common)
    if config.transport == "smtp":
        return SmtpTransport(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            timeout=config.smtp_timeout,
            **common,
        )
    if config.transport == "memory":
        return MemoryTransport(**common)
    raise ValueError(f"Unknown transport '{config.transport}'")
