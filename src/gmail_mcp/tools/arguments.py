"""Typed argument payloads, one model per tool.

Field names are snake_case in Python and camelCase on the wire
(``message_id`` <-> ``messageId``). The catalog derives each tool's JSON
schema from its model, and the dispatcher validates incoming argument
bags into these models before any handler runs.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LabelListVisibility = Literal["labelShow", "labelShowIfUnread", "labelHide"]
MessageListVisibility = Literal["show", "hide"]


class ToolArguments(BaseModel):
    """Base for every tool's arguments."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class NoArguments(ToolArguments):
    pass


# =============================================================================
# Messages
# =============================================================================


class ListMessagesArgs(ToolArguments):
    max_results: int = Field(
        10, ge=1, le=500, description="Maximum number of messages to return (default: 10)"
    )
    query: str | None = Field(
        None, description="Gmail search query (e.g., 'is:unread', 'from:example@gmail.com')"
    )
    label_ids: list[str] | None = Field(
        None, description="Filter by label IDs (e.g., ['INBOX', 'UNREAD'])"
    )


class SearchArgs(ToolArguments):
    query: str = Field(description="Gmail search query")
    max_results: int = Field(
        10, ge=1, le=500, description="Maximum number of results (default: 10)"
    )


class MessageArgs(ToolArguments):
    message_id: str = Field(min_length=1, description="The ID of the message")


class ThreadArgs(ToolArguments):
    thread_id: str = Field(min_length=1, description="The ID of the thread")


class ComposeArgs(ToolArguments):
    to: str = Field(min_length=1, description="Recipient email address(es), comma-separated")
    subject: str = Field(description="Email subject")
    body: str = Field(description="Email body (plain text)")
    cc: str | None = Field(None, description="CC recipients (comma-separated)")
    bcc: str | None = Field(None, description="BCC recipients (comma-separated)")


class ModifyLabelsArgs(MessageArgs):
    add_label_ids: list[str] = Field(default_factory=list, description="Label IDs to add")
    remove_label_ids: list[str] = Field(default_factory=list, description="Label IDs to remove")


class ReplyArgs(MessageArgs):
    body: str = Field(description="Reply body (plain text)")
    reply_all: bool = Field(False, description="Reply to all recipients (default: false)")


class ForwardArgs(MessageArgs):
    to: str = Field(min_length=1, description="Recipient email address")
    additional_message: str | None = Field(
        None, description="Additional message to include above the forwarded message"
    )


# =============================================================================
# Drafts
# =============================================================================


class ListDraftsArgs(ToolArguments):
    max_results: int = Field(
        10, ge=1, le=500, description="Maximum number of drafts to return (default: 10)"
    )


class DraftArgs(ToolArguments):
    draft_id: str = Field(min_length=1, description="The ID of the draft")


class UpdateDraftArgs(DraftArgs):
    to: str = Field(min_length=1, description="Recipient email address")
    subject: str = Field(description="Email subject")
    body: str = Field(description="Email body (plain text)")


# =============================================================================
# Attachments
# =============================================================================


class AttachmentArgs(MessageArgs):
    attachment_id: str = Field(min_length=1, description="The ID of the attachment")


# =============================================================================
# Labels
# =============================================================================


class CreateLabelArgs(ToolArguments):
    name: str = Field(min_length=1, description="The name of the label")
    label_list_visibility: LabelListVisibility = Field(
        "labelShow", description="Visibility in label list (default: labelShow)"
    )
    message_list_visibility: MessageListVisibility = Field(
        "show", description="Visibility in message list (default: show)"
    )


class LabelArgs(ToolArguments):
    label_id: str = Field(min_length=1, description="The ID of the label")


class UpdateLabelArgs(LabelArgs):
    name: str = Field(min_length=1, description="New name for the label")
    label_list_visibility: LabelListVisibility | None = Field(
        None, description="New visibility in label list (optional)"
    )
    message_list_visibility: MessageListVisibility | None = Field(
        None, description="New visibility in message list (optional)"
    )


# =============================================================================
# Batch and bulk operations
# =============================================================================


class BatchModifyArgs(ToolArguments):
    message_ids: list[str] = Field(description="List of message IDs to modify")
    add_label_ids: list[str] = Field(default_factory=list, description="Label IDs to add")
    remove_label_ids: list[str] = Field(default_factory=list, description="Label IDs to remove")


class BatchDeleteArgs(ToolArguments):
    message_ids: list[str] = Field(description="List of message IDs to delete permanently")


class TrashByQueryArgs(ToolArguments):
    query: str = Field(min_length=1, description="Gmail search query selecting messages to trash")
    max_messages: int = Field(
        500, ge=1, le=5000, description="Stop after this many messages (default: 500)"
    )


class FindUnsubscribeArgs(ToolArguments):
    query: str = Field(
        "unsubscribe", description="Gmail search query to scan (default: 'unsubscribe')"
    )
    max_results: int = Field(
        50, ge=1, le=500, description="Maximum number of messages to scan (default: 50)"
    )


# =============================================================================
# Photos (Drive-backed)
# =============================================================================


class ListAlbumsArgs(ToolArguments):
    page_size: int = Field(20, ge=1, le=50, description="Number of albums per page (default: 20, max: 50)")
    page_token: str | None = Field(None, description="Token from a previous page")


class AlbumArgs(ToolArguments):
    album_id: str = Field(min_length=1, description="The ID of the album (Drive folder)")


class ListMediaArgs(ToolArguments):
    page_size: int = Field(25, ge=1, le=100, description="Number of items per page (default: 25, max: 100)")
    page_token: str | None = Field(None, description="Token from a previous page")
    album_id: str | None = Field(None, description="Only list items inside this album")


class MediaArgs(ToolArguments):
    media_item_id: str = Field(min_length=1, description="The ID of the media item (Drive file)")


class PhotoSearchArgs(ToolArguments):
    query: str | None = Field(None, description="Full-text search terms")
    mime_type: str | None = Field(
        None, description="Restrict to a MIME type prefix (e.g., 'image/jpeg', 'video/')"
    )
    page_size: int = Field(25, ge=1, le=100, description="Number of items to return (default: 25, max: 100)")


class CreateAlbumArgs(ToolArguments):
    title: str = Field(min_length=1, description="Title of the album")


class AddToAlbumArgs(AlbumArgs):
    media_item_ids: list[str] = Field(min_length=1, description="List of media item IDs to add")


class ShareAlbumArgs(AlbumArgs):
    is_collaborative: bool = Field(False, description="Allow others to add photos (default: false)")
    is_commentable: bool = Field(False, description="Allow comments (default: false)")
