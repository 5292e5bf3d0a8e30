"""
Notice board endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.db import DocumentStore
from backend.dependencies import get_document_store
from backend.routes.common import (
    find_user,
    local_part,
    nickname_map,
    require_user,
    requester_role,
    utc_now,
    with_id,
)
from backend.schemas import (
    CreateNoticeRequest,
    CreateNoticeResponse,
    MessageResponse,
    NoticeDeleteRequest,
    NoticePatchRequest,
)
from lobby import permissions
from lobby.errors import BadRequestError, NotFoundError, PermissionDeniedError
from shared.firebase_constants import NOTICES_COLLECTION

router = APIRouter()


def _load(store: DocumentStore, notice_id: str) -> dict:
    data = store.get(NOTICES_COLLECTION, notice_id)
    if data is None:
        raise NotFoundError("Notice not found.")
    return data


def _check_editor(store: DocumentStore, email: str, notice: dict) -> None:
    if not permissions.can_edit_notice(
        requester_role(store, email), email, notice.get("authorEmail")
    ):
        raise PermissionDeniedError("You cannot edit this notice.")


@router.get("/notices")
def list_notices(store: DocumentStore = Depends(get_document_store)):
    nicknames = nickname_map(store)
    notices = []
    for doc_id, data in store.list(
        NOTICES_COLLECTION, order_by="createdAt", descending=True
    ):
        author = data.get("authorEmail") or ""
        notice = with_id("noticeId", doc_id, data)
        notice["authorNickname"] = nicknames.get(author) or local_part(author)
        notices.append(notice)
    return notices


@router.post("/notices", response_model=CreateNoticeResponse)
def create_notice(
    payload: CreateNoticeRequest, store: DocumentStore = Depends(get_document_store)
):
    _, author = require_user(store, payload.author_email)
    if not permissions.is_admin(permissions.role_of(author)):
        raise PermissionDeniedError("Only admins can write notices.")
    notice_id = store.add(
        NOTICES_COLLECTION,
        {
            "title": payload.title,
            "content": payload.content,
            "authorEmail": payload.author_email,
            "imageUrls": payload.image_urls,
            "createdAt": utc_now(),
        },
    )
    return CreateNoticeResponse(message="Notice created.", notice_id=notice_id)


@router.get("/notices/{notice_id}")
def get_notice(notice_id: str, store: DocumentStore = Depends(get_document_store)):
    data = _load(store, notice_id)
    author = data.get("authorEmail")
    found = find_user(store, author)
    notice = with_id("noticeId", notice_id, data)
    notice["authorNickname"] = (found[1].get("nickname") if found else None) or author
    return notice


@router.patch("/notices/{notice_id}", response_model=MessageResponse)
def update_notice(
    notice_id: str,
    payload: NoticePatchRequest,
    store: DocumentStore = Depends(get_document_store),
):
    notice = _load(store, notice_id)
    _check_editor(store, payload.user_email, notice)
    updates = {
        key: value
        for key, value in (
            ("title", payload.title),
            ("content", payload.content),
            ("imageUrls", payload.image_urls),
        )
        if value is not None
    }
    if not updates:
        raise BadRequestError("Nothing to update.")
    store.update(NOTICES_COLLECTION, notice_id, updates)
    return MessageResponse(message="Notice updated.")


@router.delete("/notices/{notice_id}", response_model=MessageResponse)
def delete_notice(
    notice_id: str,
    payload: NoticeDeleteRequest,
    store: DocumentStore = Depends(get_document_store),
):
    notice = _load(store, notice_id)
    _check_editor(store, payload.user_email, notice)
    store.delete(NOTICES_COLLECTION, notice_id)
    return MessageResponse(message="Notice deleted.")
