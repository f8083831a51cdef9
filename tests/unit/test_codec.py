"""Unit tests for the RFC 2822 codec and header helpers."""

import base64

import pytest

from gmail_mcp.exceptions import ValidationFailure
from gmail_mcp.mail.codec import (
    build_raw,
    decode_base64url,
    decode_base64url_text,
    decode_raw,
    encode_base64url,
    get_header,
    parse_list_unsubscribe,
    sender_domain,
)


@pytest.mark.unit
class TestBase64Url:
    """Tests for URL-safe, unpadded base64."""

    def test_should_strip_padding(self) -> None:
        """Verify trailing '=' is removed."""
        encoded = encode_base64url(b"ab")
        assert encoded == "YWI"
        assert not encoded.endswith("=")

    def test_should_use_url_safe_alphabet(self) -> None:
        """Verify '+' and '/' are replaced by '-' and '_'."""
        data = bytes([0xFB, 0xFF, 0xBF])
        assert base64.b64encode(data) == b"+/+/"
        assert encode_base64url(data) == "-_-_"

    def test_should_decode_unpadded_and_padded_input(self) -> None:
        """Verify decoding re-pads as needed."""
        assert decode_base64url("YWI") == b"ab"
        assert decode_base64url("YWI=") == b"ab"
        assert decode_base64url("-_-_") == bytes([0xFB, 0xFF, 0xBF])

    def test_should_decode_text_as_utf8(self) -> None:
        """Verify non-ASCII text survives the round trip."""
        assert decode_base64url_text(encode_base64url("héllo ✓".encode())) == "héllo ✓"


@pytest.mark.unit
class TestGetHeader:
    """Tests for case-insensitive header lookup."""

    def test_should_match_case_insensitively(self) -> None:
        """Verify 'message-id' finds 'Message-ID'."""
        headers = [{"name": "Message-ID", "value": "<abc@x.com>"}]
        assert get_header(headers, "message-id") == "<abc@x.com>"

    def test_should_return_first_match(self) -> None:
        """Verify the first of repeated headers wins."""
        headers = [{"name": "Received", "value": "first"}, {"name": "received", "value": "second"}]
        assert get_header(headers, "Received") == "first"

    def test_should_return_empty_string_when_absent(self) -> None:
        """Verify absent headers and missing lists give ''."""
        assert get_header([{"name": "To", "value": "a@x.com"}], "Cc") == ""
        assert get_header(None, "To") == ""


@pytest.mark.unit
class TestBuildRaw:
    """Tests for outbound message construction."""

    def test_should_emit_headers_in_fixed_order(self) -> None:
        """Verify To, Subject, Content-Type, Cc, Bcc, References, In-Reply-To order."""
        raw = build_raw(
            "a@x.com",
            "Hi",
            "Body",
            cc="c@x.com",
            bcc="d@x.com",
            references="<r1@x> <r2@x>",
            in_reply_to="<r2@x>",
        )

        decoded = decode_raw(raw)
        assert [name for name, _ in decoded.headers] == [
            "To",
            "Subject",
            "Content-Type",
            "Cc",
            "Bcc",
            "References",
            "In-Reply-To",
        ]
        assert decoded.header("Content-Type") == "text/plain; charset=utf-8"

    def test_should_omit_absent_optional_headers(self) -> None:
        """Verify Cc/Bcc/threading headers only appear when given."""
        decoded = decode_raw(build_raw("a@x.com", "Hi", "Body"))
        assert [name for name, _ in decoded.headers] == ["To", "Subject", "Content-Type"]

    def test_should_join_lines_with_crlf_and_blank_line(self) -> None:
        """Verify the wire text uses CRLF and separates body with a blank line."""
        text = decode_base64url_text(build_raw("a@x.com", "Hi", "Line 1\nLine 2"))
        assert text == (
            "To: a@x.com\r\n"
            "Subject: Hi\r\n"
            "Content-Type: text/plain; charset=utf-8\r\n"
            "\r\n"
            "Line 1\nLine 2"
        )

    def test_should_produce_unpadded_url_safe_output(self) -> None:
        """Verify output never contains '+', '/' or '='."""
        raw = build_raw("a@x.com", "??>>", "~~~???>>>" * 7)
        assert not set(raw) & {"+", "/", "="}

    def test_should_round_trip_header_values_and_body(self) -> None:
        """Verify decode(build_raw(...)) gives back the exact values."""
        raw = build_raw("Ann <ann@x.com>, bob@y.org", "Über: café ✓", "Hello,\r\n\r\nSee you.\n")
        decoded = decode_raw(raw)

        assert decoded.header("To") == "Ann <ann@x.com>, bob@y.org"
        assert decoded.header("Subject") == "Über: café ✓"
        assert decoded.body == "Hello,\r\n\r\nSee you.\n"

    def test_should_reject_line_breaks_in_header_values(self) -> None:
        """Verify CR/LF in a header value cannot inject extra headers."""
        with pytest.raises(ValidationFailure, match="Subject"):
            build_raw("a@x.com", "Hi\r\nBcc: evil@x.com", "Body")
        with pytest.raises(ValidationFailure, match="To"):
            build_raw("a@x.com\nBcc: evil@x.com", "Hi", "Body")

    def test_should_leave_body_line_breaks_untouched(self) -> None:
        """Verify the body is emitted verbatim."""
        decoded = decode_raw(build_raw("a@x.com", "Hi", "To: not a header\n"))
        assert decoded.body == "To: not a header\n"


@pytest.mark.unit
class TestListUnsubscribe:
    """Tests for List-Unsubscribe parsing and sender domains."""

    def test_should_extract_http_and_mailto_targets(self) -> None:
        """Verify both target kinds are found."""
        targets = parse_list_unsubscribe(
            "<mailto:unsub@news.shop.com?subject=unsubscribe>, <https://shop.com/u/123>"
        )
        assert targets.http_url == "https://shop.com/u/123"
        assert targets.mailto == "mailto:unsub@news.shop.com?subject=unsubscribe"
        assert targets.found

    def test_should_report_nothing_for_empty_header(self) -> None:
        """Verify an absent header yields no targets."""
        targets = parse_list_unsubscribe("")
        assert targets.http_url is None
        assert targets.mailto is None
        assert not targets.found

    def test_should_extract_sender_domain(self) -> None:
        """Verify display names and case are ignored."""
        assert sender_domain("Shop News <News@Mail.Shop.com>") == "mail.shop.com"
        assert sender_domain("alerts@bank.example") == "bank.example"
