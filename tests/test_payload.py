"""Tests for the Pydantic message payload models."""

import base64

import pytest
from pydantic import ValidationError

from mail_composer.exceptions import InvalidAddress
from mail_composer.message import AutoSubmitted
from mail_composer.payload import AttachmentPayload, MessagePayload


class TestAttachmentPayload:

    def test_inline_content(self):
        payload = AttachmentPayload(filename="a.txt", content=base64.b64encode(b"hi").decode())
        assert payload.path is None

    def test_requires_exactly_one_source(self):
        with pytest.raises(ValidationError):
            AttachmentPayload(filename="a.txt")
        with pytest.raises(ValidationError):
            AttachmentPayload(filename="a.txt", content="aGk=", path="/tmp/a.txt")

    def test_inline_content_requires_filename(self):
        with pytest.raises(ValidationError):
            AttachmentPayload(content="aGk=")

    def test_invalid_base64(self):
        with pytest.raises(ValidationError) as exc_info:
            AttachmentPayload(filename="a.txt", content="not base64!")
        assert "not valid base64" in str(exc_info.value)

    def test_invalid_mime_type(self):
        with pytest.raises(ValidationError):
            AttachmentPayload(filename="a.txt", content="aGk=", mime_type="text")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            AttachmentPayload(filename="a.txt", content="aGk=", size=2)


class TestMessagePayload:

    def test_string_recipients_are_split(self):
        payload = MessagePayload(to="a@x.com, b@x.com")
        assert payload.to == ["a@x.com", "b@x.com"]

    def test_from_alias(self):
        payload = MessagePayload.model_validate({"from": "me@x.com", "to": "a@x.com"})
        assert payload.from_addr == "me@x.com"

    def test_to_message(self, tmp_path):
        path = tmp_path / "report.csv"
        path.write_bytes(b"a,b")
        payload = MessagePayload.model_validate(
            {
                "from": "Me <me@x.com>",
                "to": ["a@x.com"],
                "cc": "c@x.com",
                "bcc": ["b@x.com"],
                "reply_to": "r@x.com",
                "return_path": "bounce@x.com",
                "subject": "Report",
                "body": "<p>See attached</p>",
                "content_type": "html",
                "message_id": "<2@x.com>",
                "in_reply_to": "<1@x.com>",
                "references": ["<1@x.com>"],
                "auto_submitted": "auto-generated",
                "attachments": [
                    {"filename": "notes.txt", "content": base64.b64encode(b"hi").decode()},
                    {"path": str(path)},
                ],
            }
        )
        message = payload.to_message()

        assert str(message.from_address) == "Me <me@x.com>"
        assert list(message.get_to()) == ["a@x.com"]
        assert list(message.get_cc()) == ["c@x.com"]
        assert list(message.get_bcc()) == ["b@x.com"]
        assert message.reply_to.email_address == "r@x.com"
        assert message.return_path.email_address == "bounce@x.com"
        assert message.subject == "Report"
        assert message.is_html is True
        assert message.body_part.mime_type == "text/html"
        assert message.alternative_part.body == "See attached\n"
        assert message.message_id == "<2@x.com>"
        assert message.in_reply_to == "<1@x.com>"
        assert message.references == ["<1@x.com>"]
        assert message.auto_submitted is AutoSubmitted.AUTO_GENERATED
        assert list(message.attachments) == ["notes.txt", "report.csv"]
        assert message.get_part("notes.txt").decoded_body() == b"hi"
        assert message.get_part("report.csv").mime_type == "text/csv"

    def test_empty_subject_uses_sentinel(self):
        message = MessagePayload(to="a@x.com").to_message()
        assert message.subject == "no subject"

    def test_invalid_address_surfaces_as_domain_error(self):
        with pytest.raises(InvalidAddress):
            MessagePayload(to="not-an-address").to_message()

    def test_invalid_auto_submitted(self):
        with pytest.raises(ValidationError):
            MessagePayload(to="a@x.com", auto_submitted="sometimes")

    def test_invalid_content_type(self):
        with pytest.raises(ValidationError):
            MessagePayload(to="a@x.com", content_type="markdown")

    def test_message_id_line_breaks_are_removed(self):
        message = MessagePayload(
            to="a@x.com",
            message_id="<1@x.com>\nBcc: victim@evil.com",
            references=["<0@x.com>\r\nBcc: victim@evil.com"],
        ).to_message()
        assert message.message_id == "<1@x.com>Bcc: victim@evil.com"
        assert message.references == ["<0@x.com>Bcc: victim@evil.com"]
