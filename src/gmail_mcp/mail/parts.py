"""MIME part tree of a Gmail message.

The API returns ``payload`` as a nested dict. ``PartTree`` flattens it
once into a list of ``MessagePart`` nodes addressed by index (root at 0,
pre-order), and the two read policies work on that arena:

- body resolution: own inline data, else first ``text/plain`` child with
  data, else first ``text/html`` child with data, else the first
  non-empty resolution of each child depth-first;
- attachment enumeration: every part with both an attachment id and a
  filename, in pre-order, whether or not its parent qualified.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gmail_mcp.mail.codec import decode_base64url_text

DEFAULT_ATTACHMENT_MIME_TYPE = "application/octet-stream"

# Child mime types tried, in order, before descending into nested parts
BODY_PREFERENCE = ("text/plain", "text/html")


@dataclass
class MessagePart:
    """One node of the MIME tree."""

    index: int
    mime_type: str = ""
    filename: str = ""
    headers: list[dict[str, Any]] = field(default_factory=list)
    body_data: str | None = None
    attachment_id: str | None = None
    size: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def is_attachment(self) -> bool:
        return bool(self.attachment_id and self.filename)


@dataclass(frozen=True)
class Attachment:
    """Attachment metadata; content is fetched separately by id."""

    id: str
    filename: str
    mime_type: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "size": self.size,
        }


class PartTree:
    """Arena of message parts; ``parts[0]`` is the payload root."""

    def __init__(self, parts: list[MessagePart]) -> None:
        self.parts = parts

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "PartTree":
        """Flatten a Gmail ``payload`` dict (None gives an empty tree)."""
        parts: list[MessagePart] = []
        if not payload:
            return cls(parts)

        stack: list[tuple[Mapping[str, Any], int | None]] = [(payload, None)]
        while stack:
            node, parent = stack.pop()
            body = node.get("body") or {}
            index = len(parts)
            parts.append(
                MessagePart(
                    index=index,
                    mime_type=node.get("mimeType") or "",
                    filename=node.get("filename") or "",
                    headers=list(node.get("headers") or []),
                    body_data=body.get("data") or None,
                    attachment_id=body.get("attachmentId") or None,
                    size=body.get("size"),
                )
            )
            if parent is not None:
                parts[parent].children.append(index)
            # Reversed so the first child is popped (and numbered) first
            for child in reversed(node.get("parts") or []):
                stack.append((child, index))

        return cls(parts)

    def __len__(self) -> int:
        return len(self.parts)

    @property
    def root(self) -> MessagePart | None:
        return self.parts[0] if self.parts else None

    def children(self, index: int) -> list[MessagePart]:
        return [self.parts[i] for i in self.parts[index].children]


def _resolve(tree: PartTree, index: int) -> str:
    part = tree.parts[index]
    if part.body_data:
        return decode_base64url_text(part.body_data)

    children = tree.children(index)
    for mime_type in BODY_PREFERENCE:
        for child in children:
            if child.mime_type == mime_type and child.body_data:
                return decode_base64url_text(child.body_data)

    for child in children:
        nested = _resolve(tree, child.index)
        if nested:
            return nested

    return ""


def resolve_body(tree: PartTree) -> str:
    """Resolve the display body of a message (empty string if there is none)."""
    root = tree.root
    if root is None:
        return ""
    return _resolve(tree, root.index)


def collect_attachments(tree: PartTree) -> list[Attachment]:
    """Enumerate attachments in pre-order."""
    attachments: list[Attachment] = []
    root = tree.root
    stack = [root.index] if root is not None else []
    while stack:
        part = tree.parts[stack.pop()]
        if part.is_attachment:
            attachments.append(
                Attachment(
                    id=str(part.attachment_id),
                    filename=part.filename,
                    mime_type=part.mime_type or DEFAULT_ATTACHMENT_MIME_TYPE,
                    size=part.size or 0,
                )
            )
        stack.extend(reversed(part.children))
    return attachments


def message_body(payload: Mapping[str, Any] | None) -> str:
    """Shortcut: resolve the body straight from a Gmail payload dict."""
    return resolve_body(PartTree.from_payload(payload))


def message_attachments(payload: Mapping[str, Any] | None) -> list[Attachment]:
    """Shortcut: enumerate attachments straight from a Gmail payload dict."""
    return collect_attachments(PartTree.from_payload(payload))
