"""Gmail operation handlers.

Every handler takes the shared ``GmailSession`` and its typed argument
payload and returns a JSON-serializable result. Handlers raise; the
dispatcher turns failures into error envelopes.
"""

import logging
from typing import Any

from gmail_mcp.auth.session import GmailSession
from gmail_mcp.config import GMAIL_API_BASE
from gmail_mcp.exceptions import UpstreamFailure, ValidationFailure
from gmail_mcp.mail import labels as label_deltas
from gmail_mcp.mail.codec import build_raw, get_header, parse_list_unsubscribe, sender_domain
from gmail_mcp.mail.compose import compose_forward, compose_reply
from gmail_mcp.mail.labels import LabelDelta, chunked, is_system_label
from gmail_mcp.mail.parts import message_attachments, message_body
from gmail_mcp.tools.arguments import (
    AttachmentArgs,
    BatchDeleteArgs,
    BatchModifyArgs,
    ComposeArgs,
    CreateLabelArgs,
    DraftArgs,
    FindUnsubscribeArgs,
    ForwardArgs,
    LabelArgs,
    ListDraftsArgs,
    ListMessagesArgs,
    MessageArgs,
    ModifyLabelsArgs,
    NoArguments,
    ReplyArgs,
    SearchArgs,
    ThreadArgs,
    TrashByQueryArgs,
    UpdateDraftArgs,
    UpdateLabelArgs,
)

logger = logging.getLogger(__name__)

USER_BASE = f"{GMAIL_API_BASE}/users/me"

SUMMARY_HEADERS = ["From", "To", "Subject", "Date"]
REPLY_HEADERS = ["From", "To", "Cc", "Subject", "Message-ID", "References"]
UNSUBSCRIBE_HEADERS = ["From", "List-Unsubscribe"]

# Page size used when walking a query for bulk trashing
TRASH_PAGE_SIZE = 100


async def _get_message(
    session: GmailSession,
    message_id: str,
    fmt: str = "full",
    headers: list[str] | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {"format": fmt}
    if headers:
        params["metadataHeaders"] = headers
    return await session.request("GET", f"{USER_BASE}/messages/{message_id}", params=params)


def _summary(message: dict[str, Any]) -> dict[str, Any]:
    headers = message.get("payload", {}).get("headers", [])
    return {
        "id": message.get("id"),
        "threadId": message.get("threadId"),
        "from": get_header(headers, "From"),
        "to": get_header(headers, "To"),
        "subject": get_header(headers, "Subject"),
        "date": get_header(headers, "Date"),
        "snippet": message.get("snippet", ""),
        "labelIds": message.get("labelIds", []),
    }


async def _list_summaries(
    session: GmailSession,
    max_results: int,
    query: str | None = None,
    label_ids: list[str] | None = None,
) -> list[dict[str, Any]]:
    """List message ids, then fetch each one's metadata in turn."""
    response = await session.request(
        "GET",
        f"{USER_BASE}/messages",
        params={"maxResults": max_results, "q": query, "labelIds": label_ids},
    )

    summaries = []
    for ref in response.get("messages", [])[:max_results]:
        detail = await _get_message(session, ref["id"], "metadata", SUMMARY_HEADERS)
        summaries.append(_summary(detail))
    return summaries


async def _modify(session: GmailSession, message_id: str, delta: LabelDelta) -> dict[str, Any]:
    response = await session.request(
        "POST",
        f"{USER_BASE}/messages/{message_id}/modify",
        json_data=delta.to_request_body(),
    )
    return {
        "success": True,
        "messageId": response.get("id", message_id),
        "labelIds": response.get("labelIds", []),
    }


async def _send_raw(session: GmailSession, raw: str, thread_id: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"raw": raw}
    if thread_id:
        body["threadId"] = thread_id
    return await session.request("POST", f"{USER_BASE}/messages/send", json_data=body)


def _reject_system_label(label: str, action: str) -> None:
    if is_system_label(label):
        raise ValidationFailure(f"Cannot {action} system label '{label}'")


# =============================================================================
# Messages
# =============================================================================


async def list_messages(session: GmailSession, args: ListMessagesArgs) -> list[dict[str, Any]]:
    """List messages with sender, subject, date and snippet.

    Args:
        session: Authenticated session.
        args: Page size, optional search query and label filter.

    Returns:
        One summary per message, in the order the API listed them.
    """
    return await _list_summaries(session, args.max_results, args.query, args.label_ids)


async def search_messages(session: GmailSession, args: SearchArgs) -> list[dict[str, Any]]:
    return await _list_summaries(session, args.max_results, query=args.query)


async def get_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    """Get a message with its resolved body.

    Args:
        session: Authenticated session.
        args: Message id.

    Returns:
        Headers, decoded body and label ids of the message.
    """
    message = await _get_message(session, args.message_id)
    payload = message.get("payload", {})
    headers = payload.get("headers", [])

    return {
        "id": message.get("id"),
        "threadId": message.get("threadId"),
        "from": get_header(headers, "From"),
        "to": get_header(headers, "To"),
        "cc": get_header(headers, "Cc"),
        "subject": get_header(headers, "Subject"),
        "date": get_header(headers, "Date"),
        "body": message_body(payload),
        "labelIds": message.get("labelIds", []),
    }


async def get_thread(session: GmailSession, args: ThreadArgs) -> dict[str, Any]:
    """Get every message of a thread with resolved bodies."""
    thread = await session.request(
        "GET", f"{USER_BASE}/threads/{args.thread_id}", params={"format": "full"}
    )

    messages = []
    for message in thread.get("messages", []):
        payload = message.get("payload", {})
        headers = payload.get("headers", [])
        messages.append(
            {
                "id": message.get("id"),
                "from": get_header(headers, "From"),
                "to": get_header(headers, "To"),
                "subject": get_header(headers, "Subject"),
                "date": get_header(headers, "Date"),
                "body": message_body(payload),
            }
        )

    return {"threadId": thread.get("id", args.thread_id), "messages": messages}


async def send_message(session: GmailSession, args: ComposeArgs) -> dict[str, Any]:
    """Send a plain-text email.

    Args:
        session: Authenticated session.
        args: Recipients, subject and body.

    Returns:
        Id and thread id of the sent message.
    """
    raw = build_raw(args.to, args.subject, args.body, cc=args.cc, bcc=args.bcc)
    response = await _send_raw(session, raw)
    return {"success": True, "messageId": response.get("id"), "threadId": response.get("threadId")}


async def reply(session: GmailSession, args: ReplyArgs) -> dict[str, Any]:
    """Reply to a message, threaded onto the original conversation.

    Args:
        session: Authenticated session.
        args: Original message id, reply body and reply-all flag.

    Returns:
        Id and thread id of the sent reply plus the computed recipients.
    """
    original = await _get_message(session, args.message_id, "metadata", REPLY_HEADERS)
    headers = original.get("payload", {}).get("headers", [])

    draft = compose_reply(headers, args.body, reply_all=args.reply_all)
    response = await _send_raw(session, draft.raw, thread_id=original.get("threadId"))

    return {
        "success": True,
        "messageId": response.get("id"),
        "threadId": response.get("threadId"),
        "to": draft.to,
        "subject": draft.subject,
    }


async def forward_message(session: GmailSession, args: ForwardArgs) -> dict[str, Any]:
    original = await _get_message(session, args.message_id)
    payload = original.get("payload", {})

    draft = compose_forward(
        payload.get("headers", []),
        message_body(payload),
        args.to,
        additional_message=args.additional_message,
    )
    response = await _send_raw(session, draft.raw)

    return {
        "success": True,
        "messageId": response.get("id"),
        "threadId": response.get("threadId"),
        "to": draft.to,
        "subject": draft.subject,
    }


async def trash_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    response = await session.request("POST", f"{USER_BASE}/messages/{args.message_id}/trash")
    return {"success": True, "messageId": args.message_id, "labelIds": response.get("labelIds", [])}


async def untrash_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    response = await session.request("POST", f"{USER_BASE}/messages/{args.message_id}/untrash")
    return {"success": True, "messageId": args.message_id, "labelIds": response.get("labelIds", [])}


async def delete_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    """Permanently delete a message, bypassing the trash."""
    await session.request("DELETE", f"{USER_BASE}/messages/{args.message_id}")
    return {"success": True, "messageId": args.message_id, "deleted": True}


# =============================================================================
# Label state
# =============================================================================


async def modify_labels(session: GmailSession, args: ModifyLabelsArgs) -> dict[str, Any]:
    delta = LabelDelta.of(add=args.add_label_ids, remove=args.remove_label_ids)
    return await _modify(session, args.message_id, delta)


async def mark_as_read(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.MARK_READ)


async def mark_as_unread(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.MARK_UNREAD)


async def star_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.STAR)


async def unstar_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.UNSTAR)


async def archive_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.ARCHIVE)


async def unarchive_message(session: GmailSession, args: MessageArgs) -> dict[str, Any]:
    return await _modify(session, args.message_id, label_deltas.UNARCHIVE)


# =============================================================================
# Drafts
# =============================================================================


async def create_draft(session: GmailSession, args: ComposeArgs) -> dict[str, Any]:
    raw = build_raw(args.to, args.subject, args.body, cc=args.cc, bcc=args.bcc)
    response = await session.request(
        "POST", f"{USER_BASE}/drafts", json_data={"message": {"raw": raw}}
    )
    return {
        "success": True,
        "draftId": response.get("id"),
        "messageId": response.get("message", {}).get("id"),
    }


async def list_drafts(session: GmailSession, args: ListDraftsArgs) -> list[dict[str, Any]]:
    """List drafts with recipient, subject and snippet.

    Args:
        session: Authenticated session.
        args: Page size.

    Returns:
        One entry per draft.
    """
    response = await session.request(
        "GET", f"{USER_BASE}/drafts", params={"maxResults": args.max_results}
    )

    drafts = []
    for ref in response.get("drafts", [])[: args.max_results]:
        draft = await session.request(
            "GET", f"{USER_BASE}/drafts/{ref['id']}", params={"format": "metadata"}
        )
        message = draft.get("message", {})
        headers = message.get("payload", {}).get("headers", [])
        drafts.append(
            {
                "id": draft.get("id"),
                "messageId": message.get("id"),
                "to": get_header(headers, "To"),
                "subject": get_header(headers, "Subject"),
                "snippet": message.get("snippet", ""),
            }
        )
    return drafts


async def get_draft(session: GmailSession, args: DraftArgs) -> dict[str, Any]:
    draft = await session.request(
        "GET", f"{USER_BASE}/drafts/{args.draft_id}", params={"format": "full"}
    )
    message = draft.get("message", {})
    payload = message.get("payload", {})
    headers = payload.get("headers", [])

    return {
        "id": draft.get("id"),
        "messageId": message.get("id"),
        "to": get_header(headers, "To"),
        "cc": get_header(headers, "Cc"),
        "subject": get_header(headers, "Subject"),
        "body": message_body(payload),
    }


async def update_draft(session: GmailSession, args: UpdateDraftArgs) -> dict[str, Any]:
    """Replace a draft's content wholesale."""
    raw = build_raw(args.to, args.subject, args.body)
    response = await session.request(
        "PUT",
        f"{USER_BASE}/drafts/{args.draft_id}",
        json_data={"id": args.draft_id, "message": {"raw": raw}},
    )
    return {"success": True, "draftId": response.get("id", args.draft_id)}


async def send_draft(session: GmailSession, args: DraftArgs) -> dict[str, Any]:
    response = await session.request("POST", f"{USER_BASE}/drafts/send", json_data={"id": args.draft_id})
    return {"success": True, "messageId": response.get("id"), "threadId": response.get("threadId")}


async def delete_draft(session: GmailSession, args: DraftArgs) -> dict[str, Any]:
    await session.request("DELETE", f"{USER_BASE}/drafts/{args.draft_id}")
    return {"success": True, "draftId": args.draft_id, "deleted": True}


# =============================================================================
# Attachments
# =============================================================================


async def list_attachments(session: GmailSession, args: MessageArgs) -> list[dict[str, Any]]:
    message = await _get_message(session, args.message_id)
    return [attachment.to_dict() for attachment in message_attachments(message.get("payload"))]


async def get_attachment(session: GmailSession, args: AttachmentArgs) -> dict[str, Any]:
    """Fetch attachment content.

    Returns:
        The content as the API delivers it: URL-safe base64 in ``data``.
    """
    response = await session.request(
        "GET", f"{USER_BASE}/messages/{args.message_id}/attachments/{args.attachment_id}"
    )
    return {
        "attachmentId": args.attachment_id,
        "size": response.get("size", 0),
        "data": response.get("data", ""),
    }


# =============================================================================
# Labels
# =============================================================================


async def list_labels(session: GmailSession, args: NoArguments) -> list[dict[str, Any]]:
    response = await session.request("GET", f"{USER_BASE}/labels")
    return [
        {
            "id": label.get("id"),
            "name": label.get("name"),
            "type": label.get("type"),
            "labelListVisibility": label.get("labelListVisibility"),
            "messageListVisibility": label.get("messageListVisibility"),
        }
        for label in response.get("labels", [])
    ]


async def create_label(session: GmailSession, args: CreateLabelArgs) -> dict[str, Any]:
    """Create a user label.

    Raises:
        ValidationFailure: If the name collides with a system label.
    """
    _reject_system_label(args.name, "create")
    response = await session.request(
        "POST",
        f"{USER_BASE}/labels",
        json_data={
            "name": args.name,
            "labelListVisibility": args.label_list_visibility,
            "messageListVisibility": args.message_list_visibility,
        },
    )
    return {"success": True, "labelId": response.get("id"), "name": response.get("name", args.name)}


async def update_label(session: GmailSession, args: UpdateLabelArgs) -> dict[str, Any]:
    _reject_system_label(args.label_id, "update")

    body: dict[str, Any] = {"name": args.name}
    if args.label_list_visibility:
        body["labelListVisibility"] = args.label_list_visibility
    if args.message_list_visibility:
        body["messageListVisibility"] = args.message_list_visibility

    response = await session.request("PATCH", f"{USER_BASE}/labels/{args.label_id}", json_data=body)
    return {"success": True, "labelId": args.label_id, "name": response.get("name", args.name)}


async def delete_label(session: GmailSession, args: LabelArgs) -> dict[str, Any]:
    _reject_system_label(args.label_id, "delete")
    await session.request("DELETE", f"{USER_BASE}/labels/{args.label_id}")
    return {"success": True, "labelId": args.label_id, "deleted": True}


# =============================================================================
# Account
# =============================================================================


async def get_profile(session: GmailSession, args: NoArguments) -> dict[str, Any]:
    profile = await session.request("GET", f"{USER_BASE}/profile")
    return {
        "emailAddress": profile.get("emailAddress"),
        "messagesTotal": profile.get("messagesTotal"),
        "threadsTotal": profile.get("threadsTotal"),
        "historyId": profile.get("historyId"),
    }


# =============================================================================
# Batch and bulk operations
# =============================================================================


async def batch_modify(session: GmailSession, args: BatchModifyArgs) -> dict[str, Any]:
    """Apply one label delta to many messages.

    Args:
        session: Authenticated session.
        args: Message ids plus labels to add and remove.

    Returns:
        Number of messages covered and number of upstream requests made.
        Each request is atomic upstream; the batch as a whole is not.
    """
    delta = LabelDelta.of(add=args.add_label_ids, remove=args.remove_label_ids)

    requests = 0
    for chunk in chunked(args.message_ids):
        await session.request(
            "POST",
            f"{USER_BASE}/messages/batchModify",
            json_data={"ids": chunk, **delta.to_request_body()},
        )
        requests += 1

    return {"success": True, "modifiedCount": len(args.message_ids), "requests": requests}


async def batch_delete(session: GmailSession, args: BatchDeleteArgs) -> dict[str, Any]:
    requests = 0
    for chunk in chunked(args.message_ids):
        await session.request("POST", f"{USER_BASE}/messages/batchDelete", json_data={"ids": chunk})
        requests += 1

    return {"success": True, "deletedCount": len(args.message_ids), "requests": requests}


async def trash_by_query(session: GmailSession, args: TrashByQueryArgs) -> dict[str, Any]:
    """Move every message matching a query to the trash, one at a time.

    A message that fails to trash is logged and recorded; the loop goes on.

    Args:
        session: Authenticated session.
        args: Search query and the maximum number of messages to process.

    Returns:
        Counts of trashed and failed messages plus the per-item failures.
    """
    trashed = 0
    failures: list[dict[str, Any]] = []
    processed = 0
    page_token: str | None = None

    while processed < args.max_messages:
        page = await session.request(
            "GET",
            f"{USER_BASE}/messages",
            params={
                "q": args.query,
                "maxResults": min(TRASH_PAGE_SIZE, args.max_messages - processed),
                "pageToken": page_token,
            },
        )
        refs = page.get("messages", [])
        if not refs:
            break

        for ref in refs[: args.max_messages - processed]:
            processed += 1
            try:
                await session.request("POST", f"{USER_BASE}/messages/{ref['id']}/trash")
                trashed += 1
            except UpstreamFailure as e:
                logger.warning("Failed to trash message %s: %s", ref["id"], e)
                failures.append({"messageId": ref["id"], "error": str(e)})

        page_token = page.get("nextPageToken")
        if not page_token:
            break

    logger.info("Trashed %d of %d messages matching %r", trashed, processed, args.query)
    return {
        "query": args.query,
        "trashedCount": trashed,
        "failedCount": len(failures),
        "failures": failures,
    }


async def find_unsubscribe_links(session: GmailSession, args: FindUnsubscribeArgs) -> dict[str, Any]:
    """Collect List-Unsubscribe targets, one entry per sender domain.

    Read-only: the links are reported, never followed.
    """
    response = await session.request(
        "GET", f"{USER_BASE}/messages", params={"q": args.query, "maxResults": args.max_results}
    )

    seen: set[str] = set()
    subscriptions = []
    for ref in response.get("messages", [])[: args.max_results]:
        message = await _get_message(session, ref["id"], "metadata", UNSUBSCRIBE_HEADERS)
        headers = message.get("payload", {}).get("headers", [])

        targets = parse_list_unsubscribe(get_header(headers, "List-Unsubscribe"))
        if not targets.found:
            continue

        sender = get_header(headers, "From")
        domain = sender_domain(sender)
        if domain in seen:
            continue
        seen.add(domain)

        subscriptions.append(
            {
                "sender": sender,
                "domain": domain,
                "messageId": ref["id"],
                "httpUrl": targets.http_url,
                "mailto": targets.mailto,
            }
        )

    return {"query": args.query, "count": len(subscriptions), "subscriptions": subscriptions}
