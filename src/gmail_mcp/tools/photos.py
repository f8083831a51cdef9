"""Photo library handlers.

Photos and videos are read through the Drive API: albums are Drive
folders and media items are image or video files. Calls are
read-only except album create, add and share, which need the
drive.file scope.
"""

import logging
from typing import Any

from gmail_mcp.auth.session import GmailSession
from gmail_mcp.config import DRIVE_API_BASE
from gmail_mcp.exceptions import UpstreamFailure
from gmail_mcp.tools.arguments import (
    AddToAlbumArgs,
    AlbumArgs,
    CreateAlbumArgs,
    ListAlbumsArgs,
    ListMediaArgs,
    MediaArgs,
    PhotoSearchArgs,
    ShareAlbumArgs,
)

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
MEDIA_FILTER = "(mimeType contains 'image/' or mimeType contains 'video/')"

MEDIA_FIELDS = (
    "id,name,mimeType,createdTime,modifiedTime,size,thumbnailLink,"
    "webContentLink,webViewLink,imageMediaMetadata,videoMediaMetadata"
)


def quote(value: str) -> str:
    """Render ``value`` as a Drive query string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _media_item(file: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": file.get("id"),
        "filename": file.get("name"),
        "mimeType": file.get("mimeType"),
        "createdTime": file.get("createdTime"),
        "modifiedTime": file.get("modifiedTime"),
        "size": file.get("size"),
        "thumbnailLink": file.get("thumbnailLink"),
        "webContentLink": file.get("webContentLink"),
        "webViewLink": file.get("webViewLink"),
        "imageMetadata": file.get("imageMediaMetadata"),
        "videoMetadata": file.get("videoMediaMetadata"),
    }


def _album(folder: dict[str, Any]) -> dict[str, Any]:
    album = {
        "id": folder.get("id"),
        "title": folder.get("name"),
        "createdTime": folder.get("createdTime"),
        "modifiedTime": folder.get("modifiedTime"),
        "webViewLink": folder.get("webViewLink"),
    }
    if "sharingUser" in folder:
        album["sharedBy"] = folder["sharingUser"]
    return album


async def _list_files(
    session: GmailSession,
    query: str,
    page_size: int,
    fields: str,
    page_token: str | None = None,
    order_by: str | None = None,
) -> dict[str, Any]:
    return await session.request(
        "GET",
        f"{DRIVE_API_BASE}/files",
        params={
            "q": query,
            "pageSize": page_size,
            "pageToken": page_token,
            "orderBy": order_by,
            "fields": f"nextPageToken,files({fields})",
        },
    )


async def list_albums(session: GmailSession, args: ListAlbumsArgs) -> dict[str, Any]:
    """List top-level folders of the Drive as albums.

    Args:
        session: Authenticated session.
        args: Page size and continuation token.

    Returns:
        Albums on this page and the token for the next one, if any.
    """
    response = await _list_files(
        session,
        f"mimeType={quote(FOLDER_MIME_TYPE)} and 'root' in parents and trashed=false",
        args.page_size,
        "id,name,createdTime,modifiedTime,webViewLink",
        page_token=args.page_token,
    )
    return {
        "albums": [_album(folder) for folder in response.get("files", [])],
        "nextPageToken": response.get("nextPageToken"),
    }


async def get_album(session: GmailSession, args: AlbumArgs) -> dict[str, Any]:
    folder = await session.request(
        "GET",
        f"{DRIVE_API_BASE}/files/{args.album_id}",
        params={"fields": "id,name,createdTime,modifiedTime,webViewLink"},
    )
    return _album(folder)


async def list_media(session: GmailSession, args: ListMediaArgs) -> dict[str, Any]:
    """List photos and videos, newest first, optionally inside one album."""
    query = f"{MEDIA_FILTER} and trashed=false"
    if args.album_id:
        query += f" and {quote(args.album_id)} in parents"

    response = await _list_files(
        session,
        query,
        args.page_size,
        MEDIA_FIELDS,
        page_token=args.page_token,
        order_by="createdTime desc",
    )
    return {
        "mediaItems": [_media_item(file) for file in response.get("files", [])],
        "nextPageToken": response.get("nextPageToken"),
    }


async def get_media(session: GmailSession, args: MediaArgs) -> dict[str, Any]:
    file = await session.request(
        "GET",
        f"{DRIVE_API_BASE}/files/{args.media_item_id}",
        params={"fields": MEDIA_FIELDS},
    )
    return _media_item(file)


async def search_media(session: GmailSession, args: PhotoSearchArgs) -> dict[str, Any]:
    """Search photos and videos by full text and/or MIME type prefix.

    Args:
        session: Authenticated session.
        args: Search terms, MIME type filter and page size.

    Returns:
        Matching media items, newest first.
    """
    clauses = [f"mimeType contains {quote(args.mime_type)}" if args.mime_type else MEDIA_FILTER]
    if args.query:
        clauses.append(f"fullText contains {quote(args.query)}")
    clauses.append("trashed=false")

    response = await _list_files(
        session,
        " and ".join(clauses),
        args.page_size,
        MEDIA_FIELDS,
        order_by="createdTime desc",
    )
    return {
        "mediaItems": [_media_item(file) for file in response.get("files", [])],
        "nextPageToken": response.get("nextPageToken"),
    }


async def list_shared_albums(session: GmailSession, args: ListAlbumsArgs) -> dict[str, Any]:
    response = await _list_files(
        session,
        f"mimeType={quote(FOLDER_MIME_TYPE)} and sharedWithMe=true",
        args.page_size,
        "id,name,createdTime,modifiedTime,webViewLink,sharingUser",
        page_token=args.page_token,
    )
    return {
        "albums": [_album(folder) for folder in response.get("files", [])],
        "nextPageToken": response.get("nextPageToken"),
    }


async def create_album(session: GmailSession, args: CreateAlbumArgs) -> dict[str, Any]:
    folder = await session.request(
        "POST",
        f"{DRIVE_API_BASE}/files",
        params={"fields": "id,name,createdTime,modifiedTime,webViewLink"},
        json_data={"name": args.title, "mimeType": FOLDER_MIME_TYPE},
    )
    return {"success": True, **_album(folder)}


async def add_to_album(session: GmailSession, args: AddToAlbumArgs) -> dict[str, Any]:
    """Add media items to an album, one file at a time.

    Items keep their existing parents. An item that fails is logged and
    recorded; the rest are still added.

    Args:
        session: Authenticated session.
        args: Album id and the media item ids to add.

    Returns:
        Counts of added and failed items plus the per-item failures.
    """
    added = 0
    failures: list[dict[str, Any]] = []

    for media_item_id in args.media_item_ids:
        try:
            await session.request(
                "PATCH",
                f"{DRIVE_API_BASE}/files/{media_item_id}",
                params={"addParents": args.album_id, "fields": "id,parents"},
                json_data={},
            )
            added += 1
        except UpstreamFailure as e:
            logger.warning("Failed to add %s to album %s: %s", media_item_id, args.album_id, e)
            failures.append({"mediaItemId": media_item_id, "error": str(e)})

    return {
        "success": not failures,
        "albumId": args.album_id,
        "addedCount": added,
        "failedCount": len(failures),
        "failures": failures,
    }


async def share_album(session: GmailSession, args: ShareAlbumArgs) -> dict[str, Any]:
    """Grant anyone with the link access to an album and return the link.

    Access is read-only unless the album is collaborative (writer) or
    commentable (commenter).
    """
    if args.is_collaborative:
        role = "writer"
    elif args.is_commentable:
        role = "commenter"
    else:
        role = "reader"

    await session.request(
        "POST",
        f"{DRIVE_API_BASE}/files/{args.album_id}/permissions",
        json_data={"role": role, "type": "anyone"},
    )
    folder = await session.request(
        "GET", f"{DRIVE_API_BASE}/files/{args.album_id}", params={"fields": "webViewLink"}
    )
    return {
        "success": True,
        "albumId": args.album_id,
        "role": role,
        "shareUrl": folder.get("webViewLink"),
    }
