"""Unit tests for typed tool argument payloads."""

import pytest
from pydantic import ValidationError

from gmail_mcp.exceptions import ValidationFailure
from gmail_mcp.tools.arguments import (
    AddToAlbumArgs,
    CreateLabelArgs,
    FindUnsubscribeArgs,
    ListMessagesArgs,
    ModifyLabelsArgs,
    ReplyArgs,
    ShareAlbumArgs,
    TrashByQueryArgs,
)


@pytest.mark.unit
class TestWireNames:
    """Tests for camelCase wire names."""

    def test_should_accept_camel_case_arguments(self) -> None:
        """Verify wire names populate snake_case fields."""
        args = ReplyArgs.model_validate({"messageId": "m1", "body": "hi", "replyAll": True})

        assert args.message_id == "m1"
        assert args.reply_all is True

    def test_should_accept_field_names(self) -> None:
        """Verify Python names work too."""
        args = ModifyLabelsArgs(message_id="m1", add_label_ids=["STARRED"])
        assert args.add_label_ids == ["STARRED"]
        assert args.remove_label_ids == []

    def test_should_ignore_unknown_arguments(self) -> None:
        """Verify extra keys from clients are dropped."""
        args = ListMessagesArgs.model_validate({"maxResults": 3, "pretty": True})
        assert args.max_results == 3


@pytest.mark.unit
class TestDefaults:
    """Tests for argument defaults."""

    def test_should_default_list_arguments(self) -> None:
        """Verify maxResults=10 with no query or label filter."""
        args = ListMessagesArgs.model_validate({})
        assert args.max_results == 10
        assert args.query is None
        assert args.label_ids is None

    def test_should_default_reply_all_to_false(self) -> None:
        """Verify plain reply is the default."""
        assert ReplyArgs.model_validate({"messageId": "m1", "body": "x"}).reply_all is False

    def test_should_default_label_visibility(self) -> None:
        """Verify labelShow/show defaults."""
        args = CreateLabelArgs.model_validate({"name": "Receipts"})
        assert args.label_list_visibility == "labelShow"
        assert args.message_list_visibility == "show"

    def test_should_default_bulk_arguments(self) -> None:
        """Verify maxMessages=500 and the unsubscribe query defaults."""
        assert TrashByQueryArgs.model_validate({"query": "from:spam"}).max_messages == 500
        scan = FindUnsubscribeArgs.model_validate({})
        assert scan.query == "unsubscribe"
        assert scan.max_results == 50

    def test_should_default_share_album_to_read_only(self) -> None:
        """Verify sharing is neither collaborative nor commentable unless asked."""
        args = ShareAlbumArgs.model_validate({"albumId": "f1"})
        assert args.is_collaborative is False
        assert args.is_commentable is False


@pytest.mark.unit
class TestValidation:
    """Tests for rejected payloads."""

    def test_should_reject_out_of_range_page_size(self) -> None:
        """Verify maxResults must be 1..500."""
        with pytest.raises(ValidationError):
            ListMessagesArgs.model_validate({"maxResults": 0})
        with pytest.raises(ValidationError):
            ListMessagesArgs.model_validate({"maxResults": 501})

    def test_should_reject_unknown_visibility(self) -> None:
        """Verify visibility is an enum."""
        with pytest.raises(ValidationError):
            CreateLabelArgs.model_validate({"name": "x", "labelListVisibility": "sometimes"})

    def test_should_name_missing_arguments_by_wire_name(self) -> None:
        """Verify the failure message lists camelCase names."""
        with pytest.raises(ValidationError) as exc_info:
            ReplyArgs.model_validate({"body": "x"})

        failure = ValidationFailure.from_validation_error("gmail_reply", exc_info.value)

        assert str(failure) == "Invalid arguments for gmail_reply: missing required argument 'messageId'"

    def test_should_reject_empty_media_item_list(self) -> None:
        """Verify adding to an album needs at least one media item."""
        with pytest.raises(ValidationError):
            AddToAlbumArgs.model_validate({"albumId": "f1", "mediaItemIds": []})
