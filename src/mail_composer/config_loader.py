# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Transport configuration loader.

Settings are read from an INI file (default: ``mail.ini``) with environment
variables as fallbacks.

Environment variables (all prefixed with ``MC_``):
    MC_CONFIG - Path to the INI file (default: mail.ini)
    MC_TRANSPORT - sendmail, smtp or memory (default: sendmail)
    MC_DEFAULT_FROM - Sender for messages without a From address
    MC_DEFAULT_BCC - Comma separated Bcc list for messages without Bcc
    MC_DEBUG_TO - Comma separated list replacing every recipient
    MC_LINE_BREAK - Header line separator, escapes allowed (default: \\n)
    MC_SENDMAIL_PATH - Path of the sendmail binary
    MC_SMTP_HOST / MC_SMTP_PORT / MC_SMTP_USER / MC_SMTP_PASSWORD
    MC_SMTP_USE_TLS - Enable TLS (implicit on 465, STARTTLS otherwise)
    MC_SMTP_TIMEOUT - SMTP timeout in seconds (default: 30)
    MC_LOG_LEVEL - Logging level (default: INFO)

Example:
    Configuration file format (mail.ini)::

        [transport]
        type = smtp
        default_from = Alerts <alerts@example.com>
        default_bcc = archive@example.com
        debug_to = dev@example.com
        line_break = \\r\\n

        [smtp]
        host = smtp.example.com
        port = 587
        user = alerts
        password = secret
        use_tls = yes

        [sendmail]
        path = /usr/sbin/sendmail

        [logging]
        level = DEBUG
"""

from __future__ import annotations

import codecs
import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from .logger import get_logger

DEFAULT_CONFIG_PATH = "mail.ini"
TRANSPORTS = ("sendmail", "smtp", "memory")

logger = get_logger("TransportConfigLoader")


@dataclass
class TransportConfig:
    """Configuration for building a transport.

    Attributes:
        transport: Transport type (sendmail, smtp, memory).
        default_from: Sender used when a message has none.
        default_bcc: Bcc recipients used when a message has none.
        debug_to: Recipients replacing every To, Cc and Bcc.
        line_break: Separator for header lines.
        sendmail_path: Path of the sendmail-compatible binary.
        smtp_host: SMTP server hostname.
        smtp_port: SMTP server port.
        smtp_user: SMTP username, None for no authentication.
        smtp_password: SMTP password.
        smtp_use_tls: Whether to use TLS.
        smtp_timeout: SMTP timeout in seconds.
        log_level: Logging level name.
    """

    transport: str = "sendmail"
    default_from: str | None = None
    default_bcc: list[str] | None = None
    debug_to: list[str] | None = None
    line_break: str = "\n"

    # Sendmail
    sendmail_path: str = "/usr/sbin/sendmail"

    # SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False
    smtp_timeout: float = 30.0

    log_level: str = "INFO"


def _split_addresses(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [part.strip() for part in value.split(",") if part.strip()]
    return items or None


def _decode_line_break(value: str) -> str:
    return codecs.decode(value, "unicode_escape")


def load_transport_config(path: str | Path | None = None) -> TransportConfig:
    """Load transport settings from an INI file and ``MC_*`` variables.

    Options present in the file win over environment variables; missing
    files are ignored.

    Args:
        path: INI file path, defaults to ``$MC_CONFIG`` or ``mail.ini``.

    Returns:
        The resolved ``TransportConfig``.

    Raises:
        ValueError: If the transport type is unknown or a number is invalid.
    """
    config_path = Path(path or os.getenv("MC_CONFIG", DEFAULT_CONFIG_PATH))
    parser = configparser.ConfigParser(interpolation=None)
    if parser.read(config_path):
        logger.debug("Loaded transport configuration from %s", config_path)

    def get(section: str, option: str, fallback: str | None = None) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return fallback

    def get_int(section: str, option: str, fallback: str | None = None, default: int | None = None) -> int | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        return int(value)

    def get_float(section: str, option: str, fallback: str | None = None, default: float | None = None) -> float | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        return float(value)

    def get_bool(section: str, option: str, fallback: str | None = None, default: bool | None = None) -> bool | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        normalized = str(value).strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        return default

    defaults = TransportConfig()
    transport = (get("transport", "type", os.getenv("MC_TRANSPORT")) or defaults.transport).strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"Unknown transport '{transport}', expected one of {', '.join(TRANSPORTS)}")

    line_break = get("transport", "line_break", os.getenv("MC_LINE_BREAK"))
    default_from = get("transport", "default_from", os.getenv("MC_DEFAULT_FROM"))

    return TransportConfig(
        transport=transport,
        default_from=(default_from.strip() or None) if default_from else None,
        default_bcc=_split_addresses(get("transport", "default_bcc", os.getenv("MC_DEFAULT_BCC"))),
        debug_to=_split_addresses(get("transport", "debug_to", os.getenv("MC_DEBUG_TO"))),
        line_break=_decode_line_break(line_break) if line_break else defaults.line_break,
        sendmail_path=get("sendmail", "path", os.getenv("MC_SENDMAIL_PATH")) or defaults.sendmail_path,
        smtp_host=get("smtp", "host", os.getenv("MC_SMTP_HOST")) or defaults.smtp_host,
        smtp_port=get_int("smtp", "port", os.getenv("MC_SMTP_PORT"), default=defaults.smtp_port),
        smtp_user=get("smtp", "user", os.getenv("MC_SMTP_USER")),
        smtp_password=get("smtp", "password", os.getenv("MC_SMTP_PASSWORD")),
        smtp_use_tls=get_bool("smtp", "use_tls", os.getenv("MC_SMTP_USE_TLS"), default=defaults.smtp_use_tls),
        smtp_timeout=get_float("smtp", "timeout", os.getenv("MC_SMTP_TIMEOUT"), default=defaults.smtp_timeout),
        log_level=(get("logging", "level", os.getenv("MC_LOG_LEVEL")) or defaults.log_level).upper(),
    )
