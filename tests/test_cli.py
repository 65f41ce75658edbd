"""Tests for CLI commands and helper functions."""

import json

import pytest
from click.testing import CliRunner

from mail_composer.cli import load_payload, main, print_error, print_success


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def payload_file(tmp_path):
    def write(data):
        path = tmp_path / "message.json"
        path.write_text(json.dumps(data))
        return str(path)

    return write


class TestHelperFunctions:

    def test_load_payload(self, payload_file):
        payload = load_payload(payload_file({"to": "a@x.com", "subject": "Hi"}))
        assert payload.to == ["a@x.com"]
        assert payload.subject == "Hi"

    def test_print_error_escapes_markup(self, capsys):
        print_error("bad [red]value[/red]")
        assert "bad [red]value[/red]" in capsys.readouterr().err

    def test_print_success(self, capsys):
        print_success("done")
        assert "done" in capsys.readouterr().out


class TestPreviewCommand:

    def test_preview_plain_message(self, runner, payload_file):
        path = payload_file({"from": "me@x.com", "to": ["a@x.com"], "subject": "Hi", "body": "Hello"})
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 0, result.output
        assert "Subject: Hi" in result.output
        assert "From: me <me@x.com>" in result.output
        assert "To: a <a@x.com>" in result.output
        assert "Content-Type: text/plain; charset=utf-8" in result.output
        assert "Hello" in result.output

    def test_preview_html_with_attachment(self, runner, payload_file):
        path = payload_file(
            {
                "to": "a@x.com",
                "body": "<p>Hi</p>",
                "content_type": "html",
                "attachments": [{"filename": "a.txt", "content": "aGk="}],
            }
        )
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 0, result.output
        assert "Content-Type: multipart/mixed; boundary=" in result.output
        assert "Content-Type: multipart/alternative; boundary=message_" in result.output
        assert 'Content-Disposition: attachment; filename="a.txt"' in result.output

    def test_preview_debug_to(self, runner, payload_file):
        path = payload_file({"to": "a@x.com", "cc": "c@x.com"})
        result = runner.invoke(main, ["preview", path, "--debug-to", "dev@x.com"])

        assert result.exit_code == 0, result.output
        assert "To: dev <dev@x.com>" in result.output
        assert "c@x.com" not in result.output

    def test_preview_default_bcc(self, runner, payload_file):
        path = payload_file({"to": "a@x.com"})
        result = runner.invoke(main, ["preview", path, "--default-bcc", "archive@x.com"])

        assert result.exit_code == 0, result.output
        assert "Bcc: archive <archive@x.com>" in result.output

    def test_preview_without_recipients_fails(self, runner, payload_file):
        path = payload_file({"subject": "Hi"})
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 1
        assert "no_recipients" in result.output

    def test_preview_invalid_payload(self, runner, payload_file):
        path = payload_file({"to": "a@x.com", "priority": "high"})
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 1
        assert "Invalid message payload" in result.output

    def test_preview_invalid_address(self, runner, payload_file):
        path = payload_file({"to": "nobody"})
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 1
        assert "invalid_address" in result.output

    def test_preview_missing_attachment(self, runner, payload_file, tmp_path):
        path = payload_file({"to": "a@x.com", "attachments": [{"path": str(tmp_path / "nope.bin")}]})
        result = runner.invoke(main, ["preview", path])

        assert result.exit_code == 1
        assert not isinstance(result.exception, FileNotFoundError)
        assert "Could not read attachment" in result.output


class TestSendCommand:

    def test_send_with_memory_transport(self, runner, payload_file, tmp_path):
        config = tmp_path / "mail.ini"
        config.write_text("[transport]\ntype = memory\ndefault_from = me@x.com\n")
        path = payload_file({"to": "a@x.com", "subject": "Hi"})

        result = runner.invoke(main, ["send", path, "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "Message 'Hi' sent via memory" in result.output

    def test_send_with_unknown_transport(self, runner, payload_file, tmp_path):
        config = tmp_path / "mail.ini"
        config.write_text("[transport]\ntype = fax\n")
        path = payload_file({"to": "a@x.com"})

        result = runner.invoke(main, ["send", path, "-c", str(config)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_send_without_recipients(self, runner, payload_file, tmp_path):
        config = tmp_path / "mail.ini"
        config.write_text("[transport]\ntype = memory\n")
        path = payload_file({"subject": "Hi"})

        result = runner.invoke(main, ["send", path, "-c", str(config)])

        assert result.exit_code == 1
        assert "no_recipients" in result.output

    def test_send_with_missing_attachment(self, runner, payload_file, tmp_path):
        config = tmp_path / "mail.ini"
        config.write_text("[transport]\ntype = memory\n")
        path = payload_file({"to": "a@x.com", "attachments": [{"path": str(tmp_path / "nope.bin")}]})

        result = runner.invoke(main, ["send", path, "-c", str(config)])

        assert result.exit_code == 1
        assert not isinstance(result.exception, FileNotFoundError)
        assert "Could not read attachment" in result.output

    def test_missing_payload_file(self, runner, tmp_path):
        result = runner.invoke(main, ["send", str(tmp_path / "missing.json")])
        assert result.exit_code == 2
