"""Mail domain logic: MIME codec, part tree, reply/forward composition, labels."""

from gmail_mcp.mail.codec import (
    build_raw,
    decode_base64url,
    decode_raw,
    encode_base64url,
    get_header,
)
from gmail_mcp.mail.compose import compose_forward, compose_reply
from gmail_mcp.mail.labels import LabelDelta
from gmail_mcp.mail.parts import PartTree, collect_attachments, resolve_body

__all__ = [
    "LabelDelta",
    "PartTree",
    "build_raw",
    "collect_attachments",
    "compose_forward",
    "compose_reply",
    "decode_base64url",
    "decode_raw",
    "encode_base64url",
    "get_header",
    "resolve_body",
]
