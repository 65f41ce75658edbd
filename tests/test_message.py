"""Tests for MailMessage."""

import pytest

from mail_composer.address import MailAddress
from mail_composer.exceptions import InvalidAutoSubmitted, InvalidSubject, UnknownPart
from mail_composer.message import NO_SUBJECT, AutoSubmitted, MailMessage, strip_tags
from mail_composer.mime_part import MimePart, TransferEncoding


class TestAddresses:

    def test_new_message_is_empty(self):
        message = MailMessage()
        assert message.from_address is None
        assert message.get_to() == {}
        assert message.get_cc() == {}
        assert message.get_bcc() == {}
        assert message.subject == NO_SUBJECT
        assert message.is_html is False
        assert list(message.parts) == ["body"]

    def test_set_to_replaces_and_add_merges(self):
        message = MailMessage()
        message.set_to(["a@x.com", "b@x.com"])
        message.set_to("c@x.com")
        assert list(message.get_to()) == ["c@x.com"]
        message.add_to(["c@x.com", "d@x.com"])
        assert list(message.get_to()) == ["c@x.com", "d@x.com"]

    def test_cc_and_bcc_deduplicate(self):
        message = MailMessage()
        message.add_cc("a@x.com")
        message.add_cc("Alice <a@x.com>")
        message.add_bcc(["b@x.com", "b@x.com"])
        assert list(message.get_cc()) == ["a@x.com"]
        assert list(message.get_bcc()) == ["b@x.com"]

    def test_getters_return_copies(self):
        message = MailMessage()
        message.set_to("a@x.com")
        message.get_to().clear()
        assert list(message.get_to()) == ["a@x.com"]

    def test_return_path_falls_back_to_from(self):
        message = MailMessage()
        message.from_address = "Sender <sender@x.com>"
        assert message.return_path == MailAddress("sender@x.com")
        message.return_path = "bounces@x.com"
        assert message.return_path.email_address == "bounces@x.com"

    def test_reply_to_and_clearing(self):
        message = MailMessage()
        message.reply_to = "help@x.com"
        assert str(message.reply_to) == "help <help@x.com>"
        message.reply_to = None
        assert message.reply_to is None

    def test_recipients_are_distinct(self):
        message = MailMessage()
        message.set_to("a@x.com")
        message.set_cc(["a@x.com", "b@x.com"])
        message.set_bcc("c@x.com")
        assert message.recipients() == ["a@x.com", "b@x.com", "c@x.com"]


class TestSubject:

    def test_subject_is_trimmed(self):
        message = MailMessage()
        message.subject = "  Hello  "
        assert message.subject == "Hello"

    def test_empty_subject_uses_sentinel(self):
        message = MailMessage()
        message.subject = "   "
        assert message.subject == NO_SUBJECT

    def test_newlines_are_removed(self):
        message = MailMessage()
        message.subject = "Hello\r\nBcc: victim@x.com"
        assert message.subject == "HelloBcc: victim@x.com"

    def test_non_string_subject_raises(self):
        message = MailMessage()
        with pytest.raises(InvalidSubject):
            message.subject = 42


class TestHtmlMode:

    def test_enabling_html_creates_alternative(self):
        message = MailMessage()
        message.message = "<p>Hello <b>World</b></p>"
        message.set_html(True)
        assert message.is_html is True
        assert message.body_part.mime_type == "text/html"
        assert message.body_part.body == "<p>Hello <b>World</b></p>"
        assert message.alternative_part.mime_type == "text/plain"
        assert message.alternative_part.body == "Hello World\n"
        assert list(message.parts) == ["body", "alternative"]

    def test_html_round_trip_restores_plain_body(self):
        message = MailMessage()
        message.message = "<p>Hello</p>"
        message.is_html = True
        message.is_html = False
        assert message.body_part.mime_type == "text/plain"
        assert message.alternative_part is None
        assert not message.has_part("alternative")

    def test_setting_message_in_html_mode_refreshes_alternative(self):
        message = MailMessage()
        message.set_html(True)
        message.message = "<h1>Title</h1><p>Body &amp; more</p>"
        assert message.body_part.mime_type == "text/html"
        assert message.alternative_part.body == "Title\nBody & more\n"

    def test_explicit_alternative_is_kept(self):
        message = MailMessage()
        message.set_html(True)
        message.add_part(MimePart("Hand written fallback"), "alternative")
        message.message = "<p>Generated</p>"
        assert message.alternative_part.body == "Hand written fallback"

    def test_html_wrapping_can_be_disabled(self):
        markup = "<p>" + " ".join(["word"] * 40) + "</p>"
        message = MailMessage(wrap_html=False)
        message.set_html(True)
        message.message = markup
        assert message.message == markup

    def test_plain_message_is_wrapped(self):
        message = MailMessage()
        message.message = " ".join(["word"] * 40)
        assert "\n" in message.message


class TestParts:

    def test_add_part_with_generated_name(self):
        message = MailMessage()
        name = message.add_part(MimePart("data"))
        assert len(name) == 32
        assert message.get_part(name).body == "data"

    def test_add_attachment_from_content(self):
        message = MailMessage()
        name = message.add_attachment("report.pdf", content=b"%PDF-1.4")
        part = message.get_part(name)
        assert name == "report.pdf"
        assert part.mime_type == "application/pdf"
        assert part.transfer_encoding is TransferEncoding.BASE64
        assert part.decoded_body() == b"%PDF-1.4"

    def test_add_attachment_from_file(self, tmp_path):
        path = tmp_path / "data.unknownext"
        path.write_bytes(b"\x00\x01")
        message = MailMessage()
        name = message.add_attachment(path)
        assert name == "data.unknownext"
        assert message.get_part(name).mime_type == "application/octet-stream"

    def test_explicit_mime_type(self):
        message = MailMessage()
        message.add_attachment("a.bin", content=b"x", mime_type="image/png")
        assert message.attachments["a.bin"].mime_type == "image/png"

    def test_parts_order(self):
        message = MailMessage()
        message.add_attachment("b.txt", content=b"b")
        message.set_html(True)
        message.add_attachment("a.txt", content=b"a")
        assert list(message.parts) == ["body", "alternative", "b.txt", "a.txt"]

    def test_get_unknown_part_raises(self):
        message = MailMessage()
        with pytest.raises(UnknownPart) as exc_info:
            message.get_part("missing")
        assert exc_info.value.code == "unknown_part"
        assert "missing" in str(exc_info.value)

    def test_remove_unknown_part_raises(self):
        message = MailMessage()
        with pytest.raises(UnknownPart):
            message.remove_part("alternative")

    def test_remove_attachment(self):
        message = MailMessage()
        message.add_attachment("a.txt", content=b"a")
        message.remove_part("a.txt")
        assert not message.has_part("a.txt")

    def test_remove_body_resets_it(self):
        message = MailMessage()
        message.message = "text"
        message.remove_part("body")
        assert message.has_part("body")
        assert message.message == ""


class TestThreading:

    def test_references_and_in_reply_to(self):
        message = MailMessage()
        message.in_reply_to = "<1@x.com>"
        message.add_reference("<0@x.com>")
        message.add_reference("<1@x.com>")
        assert message.references == ["<0@x.com>", "<1@x.com>"]

    @pytest.mark.parametrize("value", ["no", "auto-generated", "auto-replied"])
    def test_auto_submitted_values(self, value):
        message = MailMessage()
        message.auto_submitted = value
        assert message.auto_submitted is AutoSubmitted(value)

    def test_invalid_auto_submitted_raises(self):
        message = MailMessage()
        with pytest.raises(InvalidAutoSubmitted):
            message.auto_submitted = "yes"

    def test_auto_submitted_can_be_cleared(self):
        message = MailMessage()
        message.auto_submitted = AutoSubmitted.AUTO_REPLIED
        message.auto_submitted = None
        assert message.auto_submitted is None


def test_strip_tags_removes_scripts_and_unescapes():
    markup = "<style>p{}</style><p>a &lt; b</p><script>x()</script>c<br/>d"
    assert strip_tags(markup) == "a < b\nc\nd"
