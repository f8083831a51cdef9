"""Tool catalog: the fixed list of operations advertised to clients.

Each ``ToolDefinition`` ties a wire name to its description, its typed
argument model and its handler. The JSON schema a client sees is derived
from the argument model, so the advertised shape and the validation the
dispatcher performs cannot drift apart.
"""

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from mcp.types import Tool
from pydantic import ValidationError

from gmail_mcp.auth.session import GmailSession
from gmail_mcp.exceptions import UnknownOperation, ValidationFailure
from gmail_mcp.tools import arguments as a
from gmail_mcp.tools import gmail, photos

Handler = Callable[[GmailSession, Any], Awaitable[Any]]


def _clean_schema(node: Any) -> Any:
    """Drop pydantic's ``title`` keys and collapse ``anyOf [X, null]`` to X."""
    if isinstance(node, list):
        return [_clean_schema(item) for item in node]
    if not isinstance(node, dict):
        return node

    cleaned: dict[str, Any] = {}
    for key, value in node.items():
        if key == "title":
            continue
        if key == "properties":
            cleaned[key] = {name: _clean_schema(prop) for name, prop in value.items()}
        else:
            cleaned[key] = _clean_schema(value)

    variants = cleaned.get("anyOf")
    if isinstance(variants, list):
        concrete = [v for v in variants if v.get("type") != "null"]
        if len(concrete) == 1 and len(concrete) < len(variants):
            del cleaned["anyOf"]
            cleaned = {**concrete[0], **cleaned}
            if "default" in cleaned and cleaned["default"] is None:
                del cleaned["default"]

    return cleaned


def input_schema(model: type[a.ToolArguments]) -> dict[str, Any]:
    """JSON schema of an argument model, keyed by wire (camelCase) names."""
    schema: dict[str, Any] = _clean_schema(model.model_json_schema(by_alias=True))
    schema.setdefault("properties", {})
    return schema


@dataclass(frozen=True)
class ToolDefinition:
    """One callable operation.

    Attributes:
        name: Stable wire name.
        description: Human-readable summary shown to the client.
        arguments: Typed argument model.
        handler: Coroutine taking ``(session, arguments)``.
    """

    name: str
    description: str
    arguments: type[a.ToolArguments]
    handler: Handler

    def to_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=input_schema(self.arguments))

    def parse(self, arguments: Mapping[str, Any] | None) -> a.ToolArguments:
        """Validate a raw argument bag into the typed payload.

        Raises:
            ValidationFailure: If a required argument is missing or a value
                has the wrong type or range.
        """
        try:
            return self.arguments.model_validate(dict(arguments or {}))
        except ValidationError as e:
            raise ValidationFailure.from_validation_error(self.name, e) from e


class ToolCatalog:
    """Ordered, name-indexed collection of tool definitions."""

    def __init__(self, definitions: tuple[ToolDefinition, ...]) -> None:
        self._definitions = definitions
        self._by_name = {definition.name: definition for definition in definitions}
        if len(self._by_name) != len(definitions):
            raise ValueError("duplicate tool names in catalog")

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> list[str]:
        return [definition.name for definition in self._definitions]

    def get_tool(self, name: str) -> ToolDefinition:
        """Look up a tool by wire name.

        Raises:
            UnknownOperation: If no tool has that name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownOperation(name) from None

    def list_tools(self) -> list[Tool]:
        """Protocol ``Tool`` objects in catalog order."""
        return [definition.to_tool() for definition in self._definitions]


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    # Messages
    ToolDefinition(
        "gmail_list_messages",
        "List emails from Gmail inbox with optional filters",
        a.ListMessagesArgs,
        gmail.list_messages,
    ),
    ToolDefinition(
        "gmail_get_message",
        "Get a specific email by ID with full content",
        a.MessageArgs,
        gmail.get_message,
    ),
    ToolDefinition("gmail_send_message", "Send an email", a.ComposeArgs, gmail.send_message),
    ToolDefinition(
        "gmail_search",
        "Search emails using Gmail search syntax",
        a.SearchArgs,
        gmail.search_messages,
    ),
    ToolDefinition(
        "gmail_get_thread",
        "Get all messages in a thread",
        a.ThreadArgs,
        gmail.get_thread,
    ),
    ToolDefinition(
        "gmail_reply",
        "Reply to an existing email thread",
        a.ReplyArgs,
        gmail.reply,
    ),
    ToolDefinition(
        "gmail_forward_message",
        "Forward an email to another recipient",
        a.ForwardArgs,
        gmail.forward_message,
    ),
    ToolDefinition(
        "gmail_trash_message",
        "Move a message to trash",
        a.MessageArgs,
        gmail.trash_message,
    ),
    ToolDefinition(
        "gmail_untrash_message",
        "Remove a message from trash",
        a.MessageArgs,
        gmail.untrash_message,
    ),
    ToolDefinition(
        "gmail_delete_message",
        "Permanently delete a message (cannot be undone)",
        a.MessageArgs,
        gmail.delete_message,
    ),
    # Label state
    ToolDefinition(
        "gmail_modify_labels",
        "Add or remove labels from a message",
        a.ModifyLabelsArgs,
        gmail.modify_labels,
    ),
    ToolDefinition("gmail_mark_as_read", "Mark a message as read", a.MessageArgs, gmail.mark_as_read),
    ToolDefinition(
        "gmail_mark_as_unread",
        "Mark a message as unread",
        a.MessageArgs,
        gmail.mark_as_unread,
    ),
    ToolDefinition("gmail_star_message", "Star a message", a.MessageArgs, gmail.star_message),
    ToolDefinition(
        "gmail_unstar_message",
        "Remove star from a message",
        a.MessageArgs,
        gmail.unstar_message,
    ),
    ToolDefinition(
        "gmail_archive_message",
        "Archive a message (remove from inbox)",
        a.MessageArgs,
        gmail.archive_message,
    ),
    ToolDefinition(
        "gmail_unarchive_message",
        "Unarchive a message (move back to inbox)",
        a.MessageArgs,
        gmail.unarchive_message,
    ),
    # Drafts
    ToolDefinition("gmail_create_draft", "Create a draft email", a.ComposeArgs, gmail.create_draft),
    ToolDefinition("gmail_list_drafts", "List all draft emails", a.ListDraftsArgs, gmail.list_drafts),
    ToolDefinition("gmail_get_draft", "Get a specific draft by ID", a.DraftArgs, gmail.get_draft),
    ToolDefinition(
        "gmail_update_draft",
        "Update an existing draft",
        a.UpdateDraftArgs,
        gmail.update_draft,
    ),
    ToolDefinition("gmail_send_draft", "Send an existing draft", a.DraftArgs, gmail.send_draft),
    ToolDefinition(
        "gmail_delete_draft",
        "Delete a draft permanently",
        a.DraftArgs,
        gmail.delete_draft,
    ),
    # Attachments
    ToolDefinition(
        "gmail_list_attachments",
        "List all attachments in a message",
        a.MessageArgs,
        gmail.list_attachments,
    ),
    ToolDefinition(
        "gmail_get_attachment",
        "Get attachment content from a message (base64url-encoded)",
        a.AttachmentArgs,
        gmail.get_attachment,
    ),
    # Labels
    ToolDefinition(
        "gmail_list_labels",
        "List all labels in the Gmail account",
        a.NoArguments,
        gmail.list_labels,
    ),
    ToolDefinition("gmail_create_label", "Create a new label", a.CreateLabelArgs, gmail.create_label),
    ToolDefinition(
        "gmail_update_label",
        "Update an existing label",
        a.UpdateLabelArgs,
        gmail.update_label,
    ),
    ToolDefinition("gmail_delete_label", "Delete a label", a.LabelArgs, gmail.delete_label),
    # Account
    ToolDefinition(
        "gmail_get_profile",
        "Get the user's Gmail profile (email address, etc.)",
        a.NoArguments,
        gmail.get_profile,
    ),
    # Batch and bulk
    ToolDefinition(
        "gmail_batch_modify",
        "Modify labels on multiple messages at once",
        a.BatchModifyArgs,
        gmail.batch_modify,
    ),
    ToolDefinition(
        "gmail_batch_delete",
        "Permanently delete multiple messages at once",
        a.BatchDeleteArgs,
        gmail.batch_delete,
    ),
    ToolDefinition(
        "gmail_trash_by_query",
        "Move every message matching a search query to trash",
        a.TrashByQueryArgs,
        gmail.trash_by_query,
    ),
    ToolDefinition(
        "gmail_find_unsubscribe_links",
        "Find List-Unsubscribe links for mailing lists, one per sender domain",
        a.FindUnsubscribeArgs,
        gmail.find_unsubscribe_links,
    ),
    # Photos
    ToolDefinition(
        "photos_list_albums",
        "List all albums in Google Photos",
        a.ListAlbumsArgs,
        photos.list_albums,
    ),
    ToolDefinition(
        "photos_get_album",
        "Get details of a specific album",
        a.AlbumArgs,
        photos.get_album,
    ),
    ToolDefinition(
        "photos_list_media",
        "List media items (photos/videos) in Google Photos",
        a.ListMediaArgs,
        photos.list_media,
    ),
    ToolDefinition(
        "photos_get_media",
        "Get details of a specific media item",
        a.MediaArgs,
        photos.get_media,
    ),
    ToolDefinition(
        "photos_search",
        "Search for photos and videos by filename or content",
        a.PhotoSearchArgs,
        photos.search_media,
    ),
    ToolDefinition(
        "photos_create_album",
        "Create a new album",
        a.CreateAlbumArgs,
        photos.create_album,
    ),
    ToolDefinition(
        "photos_add_to_album",
        "Add media items to an album",
        a.AddToAlbumArgs,
        photos.add_to_album,
    ),
    ToolDefinition(
        "photos_share_album",
        "Share an album and get a shareable link",
        a.ShareAlbumArgs,
        photos.share_album,
    ),
    ToolDefinition(
        "photos_list_shared_albums",
        "List albums shared with you",
        a.ListAlbumsArgs,
        photos.list_shared_albums,
    ),
)

CATALOG = ToolCatalog(TOOL_DEFINITIONS)


def list_tools() -> list[Tool]:
    return CATALOG.list_tools()


def get_tool(name: str) -> ToolDefinition:
    return CATALOG.get_tool(name)
