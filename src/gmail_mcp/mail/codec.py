"""RFC 2822 encoding and header helpers for the Gmail wire format.

Gmail accepts and returns message bytes as URL-safe base64 without
padding. Outbound messages are plain-text only and are built line by line
so the header order is fixed:

    To, Subject, Content-Type, [Cc], [Bcc], [References], [In-Reply-To]

followed by a blank line and the body, all joined with CRLF.
"""

import base64
import re
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from gmail_mcp.exceptions import ValidationFailure

CRLF = "\r\n"
PLAIN_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

_HTTP_UNSUBSCRIBE = re.compile(r"<(https?://[^>]+)>")
_MAILTO_UNSUBSCRIBE = re.compile(r"<(mailto:[^>]+)>")
_ANGLE_ADDRESS = re.compile(r"<(.+?)>")
_BARE_ADDRESS = re.compile(r"(\S+@\S+)")


def encode_base64url(data: bytes) -> str:
    """Encode bytes as URL-safe base64 with the trailing ``=`` padding stripped."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def decode_base64url(data: str) -> bytes:
    """Decode URL-safe base64, padded or not."""
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def decode_base64url_text(data: str) -> str:
    """Decode URL-safe base64 into UTF-8 text, replacing undecodable bytes."""
    return decode_base64url(data).decode("utf-8", errors="replace")


def get_header(headers: Iterable[Mapping[str, Any]] | None, name: str) -> str:
    """Return the first header value matching ``name`` case-insensitively.

    Args:
        headers: Gmail ``payload.headers`` list of ``{name, value}`` pairs.
        name: Header name to look up.

    Returns:
        The header value, or an empty string when absent.
    """
    wanted = name.lower()
    for header in headers or ():
        if str(header.get("name", "")).lower() == wanted:
            return str(header.get("value") or "")
    return ""


def _header_line(name: str, value: str) -> str:
    if "\r" in value or "\n" in value:
        raise ValidationFailure(f"{name} header must not contain line breaks")
    return f"{name}: {value}"


def build_raw(
    to: str,
    subject: str,
    body: str,
    cc: str | None = None,
    bcc: str | None = None,
    references: str | None = None,
    in_reply_to: str | None = None,
) -> str:
    """Build a plain-text RFC 2822 message and encode it for the Gmail API.

    Args:
        to: Recipient address list.
        subject: Subject line.
        body: Body text, emitted verbatim.
        cc: Optional Cc address list.
        bcc: Optional Bcc address list.
        references: Optional References header for threading.
        in_reply_to: Optional In-Reply-To header for threading.

    Returns:
        The message as unpadded URL-safe base64.

    Raises:
        ValidationFailure: If a header value contains CR or LF.
    """
    lines = [
        _header_line("To", to),
        _header_line("Subject", subject),
        f"Content-Type: {PLAIN_TEXT_CONTENT_TYPE}",
    ]
    if cc:
        lines.append(_header_line("Cc", cc))
    if bcc:
        lines.append(_header_line("Bcc", bcc))
    if references:
        lines.append(_header_line("References", references))
    if in_reply_to:
        lines.append(_header_line("In-Reply-To", in_reply_to))

    lines.extend(["", body])
    return encode_base64url(CRLF.join(lines).encode("utf-8"))


class RawMessage(NamedTuple):
    """A decoded outbound message: ordered header pairs and the body."""

    headers: list[tuple[str, str]]
    body: str

    def header(self, name: str) -> str:
        return get_header(({"name": n, "value": v} for n, v in self.headers), name)


def decode_raw(raw: str) -> RawMessage:
    """Inverse of :func:`build_raw`."""
    text = decode_base64url_text(raw)
    head, _, body = text.partition(CRLF + CRLF)

    headers = []
    for line in head.split(CRLF):
        name, _, value = line.partition(": ")
        headers.append((name, value))
    return RawMessage(headers=headers, body=body)


class UnsubscribeTargets(NamedTuple):
    """Targets advertised by a List-Unsubscribe header."""

    http_url: str | None
    mailto: str | None

    @property
    def found(self) -> bool:
        return bool(self.http_url or self.mailto)


def parse_list_unsubscribe(value: str) -> UnsubscribeTargets:
    """Extract the first HTTP(S) and mailto targets from a List-Unsubscribe value."""
    http_match = _HTTP_UNSUBSCRIBE.search(value or "")
    mailto_match = _MAILTO_UNSUBSCRIBE.search(value or "")
    return UnsubscribeTargets(
        http_url=http_match.group(1) if http_match else None,
        mailto=mailto_match.group(1) if mailto_match else None,
    )


def sender_domain(from_header: str) -> str:
    """Lower-cased domain of the address in a From header.

    ``"Shop <news@mail.shop.com>"`` gives ``"mail.shop.com"``. When no
    address can be found the lower-cased header itself is returned.
    """
    match = _ANGLE_ADDRESS.search(from_header) or _BARE_ADDRESS.search(from_header)
    address = (match.group(1) if match else from_header).strip().lower()
    _, _, domain = address.partition("@")
    return domain or address
