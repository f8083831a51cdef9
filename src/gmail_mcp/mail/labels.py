"""Label/state projection.

Read, starred and archived state are not separate properties in Gmail;
they are the presence of system labels on a message. Each semantic action
is a fixed ``LabelDelta`` over the generic add/remove primitive.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

INBOX = "INBOX"
UNREAD = "UNREAD"
STARRED = "STARRED"
TRASH = "TRASH"

# Provider-reserved label ids: toggled on messages, never created or deleted
SYSTEM_LABEL_IDS = frozenset(
    {
        INBOX,
        UNREAD,
        STARRED,
        TRASH,
        "SPAM",
        "SENT",
        "DRAFT",
        "IMPORTANT",
        "CHAT",
    }
)

# Gmail batchModify/batchDelete accept at most this many ids per request
BATCH_LIMIT = 1000


def is_system_label(label: str) -> bool:
    """True for reserved label ids (and their names, which match the ids)."""
    normalized = label.strip().upper()
    return normalized in SYSTEM_LABEL_IDS or normalized.startswith("CATEGORY_")


@dataclass(frozen=True)
class LabelDelta:
    """Labels to add to and remove from a message's label set."""

    add: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()

    @classmethod
    def of(cls, add: Iterable[str] | None = None, remove: Iterable[str] | None = None) -> "LabelDelta":
        return cls(add=tuple(add or ()), remove=tuple(remove or ()))

    def __bool__(self) -> bool:
        return bool(self.add or self.remove)

    def apply(self, label_ids: Iterable[str]) -> frozenset[str]:
        """Apply to a label set: additions first, then removals.

        A label named on both sides therefore ends up absent. Removing an
        absent label and adding a present one are no-ops.
        """
        return (frozenset(label_ids) | frozenset(self.add)) - frozenset(self.remove)

    def to_request_body(self) -> dict[str, Any]:
        """Render the ``addLabelIds``/``removeLabelIds`` request fields."""
        body: dict[str, Any] = {}
        if self.add:
            body["addLabelIds"] = list(self.add)
        if self.remove:
            body["removeLabelIds"] = list(self.remove)
        return body


MARK_READ = LabelDelta(remove=(UNREAD,))
MARK_UNREAD = LabelDelta(add=(UNREAD,))
ARCHIVE = LabelDelta(remove=(INBOX,))
UNARCHIVE = LabelDelta(add=(INBOX,))
STAR = LabelDelta(add=(STARRED,))
UNSTAR = LabelDelta(remove=(STARRED,))


def chunked(ids: Sequence[str], size: int = BATCH_LIMIT) -> Iterator[list[str]]:
    """Split an id list into request-sized chunks, preserving order."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(ids), size):
        yield list(ids[start : start + size])
