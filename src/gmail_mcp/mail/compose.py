"""Reply and forward composition from an original message's headers."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from gmail_mcp.mail.codec import build_raw, get_header

REPLY_PREFIX = "Re:"
FORWARD_PREFIX = "Fwd:"
FORWARD_BANNER = "---------- Forwarded message ----------"

Headers = Iterable[Mapping[str, Any]]


@dataclass(frozen=True)
class ReplyDraft:
    to: str
    subject: str
    raw: str
    references: str
    in_reply_to: str


@dataclass(frozen=True)
class ForwardDraft:
    to: str
    subject: str
    body: str
    raw: str


def prefixed_subject(subject: str, prefix: str) -> str:
    """Prefix ``subject`` unless it already starts with ``prefix`` (case-sensitive)."""
    if subject.startswith(prefix):
        return subject
    return f"{prefix} {subject}"


def split_addresses(*fields: str) -> list[str]:
    """Comma-split address fields, trimming entries and dropping blanks.

    Repeated addresses are kept.
    """
    addresses = []
    for value in fields:
        for entry in value.split(","):
            entry = entry.strip()
            if entry:
                addresses.append(entry)
    return addresses


def reply_recipients(headers: Headers, reply_all: bool) -> str:
    headers = list(headers)
    sender = get_header(headers, "From")
    if not reply_all:
        return sender
    return ",".join(
        split_addresses(sender, get_header(headers, "To"), get_header(headers, "Cc"))
    )


def threading_headers(headers: Headers) -> tuple[str, str]:
    """Compute ``(References, In-Reply-To)`` for a reply.

    References is the original References chain with the original
    Message-ID appended; both are empty when the original has no Message-ID
    and no chain.
    """
    headers = list(headers)
    message_id = get_header(headers, "Message-ID")
    previous = get_header(headers, "References")
    references = " ".join(part for part in (previous, message_id) if part)
    return references, message_id


def compose_reply(headers: Headers, body: str, reply_all: bool = False) -> ReplyDraft:
    """Compose a threaded reply to the message carrying ``headers``.

    Args:
        headers: Original message's ``payload.headers``.
        body: Reply body text.
        reply_all: Address the sender plus every To and Cc recipient.

    Returns:
        The reply with its encoded raw message. The caller sends it bound to
        the original thread id.
    """
    headers = list(headers)
    to = reply_recipients(headers, reply_all)
    subject = prefixed_subject(get_header(headers, "Subject"), REPLY_PREFIX)
    references, in_reply_to = threading_headers(headers)

    raw = build_raw(
        to,
        subject,
        body,
        references=references or None,
        in_reply_to=in_reply_to or None,
    )
    return ReplyDraft(
        to=to, subject=subject, raw=raw, references=references, in_reply_to=in_reply_to
    )


def forward_body(headers: Headers, original_body: str, additional_message: str | None = None) -> str:
    headers = list(headers)
    quoted = (
        f"{FORWARD_BANNER}\n"
        f"From: {get_header(headers, 'From')}\n"
        f"Date: {get_header(headers, 'Date')}\n"
        f"Subject: {get_header(headers, 'Subject')}\n"
        f"\n"
        f"{original_body}"
    )
    if additional_message:
        return f"{additional_message}\n\n{quoted}"
    return quoted


def compose_forward(
    headers: Headers,
    original_body: str,
    to: str,
    additional_message: str | None = None,
) -> ForwardDraft:
    """Compose a forward of the message carrying ``headers``.

    A forward starts a new thread: no References or In-Reply-To.
    """
    headers = list(headers)
    subject = prefixed_subject(get_header(headers, "Subject"), FORWARD_PREFIX)
    body = forward_body(headers, original_body, additional_message)
    return ForwardDraft(to=to, subject=subject, body=body, raw=build_raw(to, subject, body))
