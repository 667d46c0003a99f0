# finder/api/router.py
"""
File-manager endpoint.

One path serves every command, selected by the `q` query parameter:
GET for read-only commands, POST (JSON body, multipart for upload) for
mutating ones. `adapter` and `path` select the storage backend and the
directory the command works in.
"""
import json
from http import HTTPStatus
from typing import Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.status import HTTP_400_BAD_REQUEST

from finder.api.deps import get_finder
from finder.api.errors import error_response
from finder.api.schemas import (
    ArchiveRequest,
    DeleteRequest,
    MoveRequest,
    NewFileRequest,
    NewFolderRequest,
    RenameRequest,
    SaveRequest,
    UnarchiveRequest,
)
from finder.core.operations import Finder, Preview

router = APIRouter(tags=["finder"])

T = TypeVar("T", bound=BaseModel)


class BadPayload(Exception):
    status_code = HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PayloadTooLarge(BadPayload):
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE

    def __init__(self, limit: int):
        super().__init__(f"Request body exceeds the {limit} byte limit")


def _check_content_length(request: Request, limit: int) -> None:
    """Reject oversized bodies up front when the client declares their length."""
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > limit:
        raise PayloadTooLarge(limit)


def _preview_response(preview: Preview, attachment: bool = False) -> Response:
    headers = {}
    if attachment:
        headers["Content-Disposition"] = f'attachment; filename="{preview.filename}"'
    return Response(content=preview.content, media_type=preview.mime_type, headers=headers)


async def _json_payload(request: Request, model: Type[T]) -> T:
    limit = request.app.state.settings.MAX_JSON_SIZE
    _check_content_length(request, limit)
    raw = await request.body()
    if len(raw) > limit:
        raise PayloadTooLarge(limit)
    try:
        body = json.loads(raw)
    except ValueError:
        raise BadPayload("Expected JSON payload") from None
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        raise BadPayload(str(exc)) from None


@router.get("")
async def handle_get(
    q: str,
    adapter: Optional[str] = None,
    path: Optional[str] = None,
    filter_: Optional[str] = Query(None, alias="filter"),
    finder: Finder = Depends(get_finder),
) -> Response:
    if q == "index":
        listing = await finder.index(adapter, path)
        return JSONResponse(listing.to_dict())
    if q == "subfolders":
        folders = await finder.subfolders(adapter, path)
        return JSONResponse({"folders": folders})
    if q == "search":
        listing = await finder.search(adapter, path, filter_)
        return JSONResponse(listing.to_dict())
    if q == "download":
        return _preview_response(await finder.download(adapter, path or ""), attachment=True)
    if q == "preview":
        return _preview_response(await finder.preview(adapter, path or ""))
    return error_response(HTTP_400_BAD_REQUEST, f"Unknown command: {q}")


@router.post("")
async def handle_post(
    request: Request,
    q: str,
    adapter: Optional[str] = None,
    path: Optional[str] = None,
    finder: Finder = Depends(get_finder),
) -> Response:
    try:
        if q == "upload":
            return await _upload(request, finder, adapter, path)

        if q == "newfolder":
            payload = await _json_payload(request, NewFolderRequest)
            listing = await finder.new_folder(adapter, path, payload.name)
        elif q == "newfile":
            payload = await _json_payload(request, NewFileRequest)
            listing = await finder.new_file(adapter, path, payload.name)
        elif q == "rename":
            payload = await _json_payload(request, RenameRequest)
            listing = await finder.rename(adapter, path, payload.item, payload.name)
        elif q == "move":
            payload = await _json_payload(request, MoveRequest)
            listing = await finder.move(adapter, path, payload.item, [i.path for i in payload.items])
        elif q == "delete":
            payload = await _json_payload(request, DeleteRequest)
            listing = await finder.delete_many(adapter, path, [i.path for i in payload.items])
        elif q == "archive":
            payload = await _json_payload(request, ArchiveRequest)
            listing = await finder.archive(adapter, path, payload.name, [i.path for i in payload.items])
        elif q == "unarchive":
            payload = await _json_payload(request, UnarchiveRequest)
            listing = await finder.unarchive(adapter, path, payload.item)
        elif q == "save":
            payload = await _json_payload(request, SaveRequest)
            return _preview_response(await finder.save(adapter, path or "", payload.content))
        else:
            return error_response(HTTP_400_BAD_REQUEST, f"Unknown command: {q}")
    except BadPayload as exc:
        return error_response(exc.status_code, exc.message)

    return JSONResponse(listing.to_dict())


async def _upload(request: Request, finder: Finder, adapter: Optional[str], path: Optional[str]) -> Response:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("multipart/form-data"):
        raise BadPayload("Upload requests should use multipart/form-data")

    limit = request.app.state.settings.MAX_UPLOAD_SIZE
    _check_content_length(request, limit)

    form = await request.form()
    filename = form.get("name") or ""
    upload = form.get("file")
    data = b""
    if upload is not None and not isinstance(upload, str):
        data = await upload.read()
        if len(data) > limit:
            raise PayloadTooLarge(limit)
        filename = filename or (upload.filename or "")

    listing = await finder.upload(adapter, path, str(filename), data)
    return JSONResponse(listing.to_dict())
