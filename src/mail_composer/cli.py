# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for composing and sending messages.

Messages are described as JSON files matching
:class:`~mail_composer.payload.MessagePayload`.

Usage:
    mail-composer preview message.json --debug-to dev@example.com
    mail-composer send message.json --config /etc/mail-composer/mail.ini

Example payload::

    {
        "from": "Alerts <alerts@example.com>",
        "to": ["ops@example.com"],
        "subject": "Disk almost full",
        "body": "<p>Volume <b>/data</b> is at 93%.</p>",
        "content_type": "html"
    }
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config_loader import load_transport_config
from .exceptions import MailError
from .logger import configure_logging
from .payload import MessagePayload
from .serializer import MessageSerializer
from .transport import create_transport

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def load_payload(path: str) -> MessagePayload:
    """Read and validate a JSON message description."""
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    return MessagePayload.model_validate(data)


@click.group()
@click.version_option(package_name="mail-composer")
def main() -> None:
    """mail-composer: compose MIME messages and hand them to a transport."""


@main.command("preview")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--default-from", default=None, help="Sender used when the message has none.")
@click.option("--default-bcc", multiple=True, help="Bcc used when the message has none (repeatable).")
@click.option("--debug-to", multiple=True, help="Replace every recipient with this address (repeatable).")
@click.option("--crlf", is_flag=True, help="Join header lines with CRLF.")
def preview(
    payload_file: str,
    default_from: str | None,
    default_bcc: tuple[str, ...],
    debug_to: tuple[str, ...],
    crlf: bool,
) -> None:
    """Print the serialized message without sending it."""
    try:
        message = load_payload(payload_file).to_message()
        serializer = MessageSerializer(
            default_from=default_from,
            default_bcc=list(default_bcc),
            debug_to=list(debug_to),
            line_break="\r\n" if crlf else "\n",
        )
        serialized = serializer.serialize(message)
    except (ValidationError, json.JSONDecodeError) as exc:
        print_error(f"Invalid message payload: {exc}")
        sys.exit(1)
    except MailError as exc:
        print_error(f"{exc} ({exc.code})")
        sys.exit(1)
    except OSError as exc:
        print_error(f"Could not read attachment: {exc}")
        sys.exit(1)

    console.print(serialized.as_string(), markup=False, highlight=False, soft_wrap=True)


@main.command("send")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", default=None, help="Path to the INI configuration file.")
def send(payload_file: str, config_path: str | None) -> None:
    """Send a message through the configured transport."""
    try:
        config = load_transport_config(config_path)
    except ValueError as exc:
        print_error(f"Invalid configuration: {exc}")
        sys.exit(1)
    configure_logging(config.log_level)

    transport = create_transport(config)
    try:
        message = load_payload(payload_file).to_message(transport.create_message())
        transport.send(message)
    except (ValidationError, json.JSONDecodeError) as exc:
        print_error(f"Invalid message payload: {exc}")
        sys.exit(1)
    except MailError as exc:
        print_error(f"{exc} ({exc.code})")
        sys.exit(1)
    except OSError as exc:
        print_error(f"Could not read attachment: {exc}")
        sys.exit(1)

    print_success(f"Message '{message.subject}' sent via {config.transport}")


if __name__ == "__main__":
    main()
