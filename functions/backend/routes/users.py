"""
User profiles and the admin user-management endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from backend.auth import AuthClient
from backend.db import DocumentStore
from backend.dependencies import get_auth_client, get_document_store
from backend.routes.common import (
    find_user,
    local_part,
    require_user,
    requester_role,
    with_id,
)
from backend.schemas import (
    AdminCreateUserRequest,
    AdminDeleteUserRequest,
    AdminNicknameRequest,
    AdminRoleRequest,
    MessageResponse,
    ProfileRequest,
    UserSummary,
)
from lobby import permissions
from lobby.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from shared.firebase_constants import (
    MATCHES_COLLECTION,
    SCRIMS_COLLECTION,
    USERS_COLLECTION,
)
from shared.types import Role
from stats.player_stats import player_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_nickname_free(store: DocumentStore, nickname: str, user_id: str | None) -> None:
    for doc_id, _ in store.find(USERS_COLLECTION, "nickname", nickname):
        if doc_id != user_id:
            raise ConflictError("That nickname is already taken.")


@router.get("/users", response_model=list[UserSummary])
def list_users(store: DocumentStore = Depends(get_document_store)):
    """Users with a complete profile (email and nickname)."""
    return [
        UserSummary(email=data["email"], nickname=data["nickname"])
        for _, data in store.list(USERS_COLLECTION)
        if data.get("email") and data.get("nickname")
    ]


@router.get("/users/{email}")
def get_user(email: str, store: DocumentStore = Depends(get_document_store)):
    found = find_user(store, email)
    if found is None:
        # Signed-in users without a profile yet.
        return {"email": email, "nickname": local_part(email), "role": Role.MEMBER}
    return with_id("id", *found)


@router.post("/users/{email}", response_model=MessageResponse)
def save_profile(
    email: str,
    payload: ProfileRequest,
    store: DocumentStore = Depends(get_document_store),
):
    nickname = payload.nickname.strip()
    found = find_user(store, email)
    _check_nickname_free(store, nickname, found[0] if found else None)
    if found is None:
        store.add(
            USERS_COLLECTION, {"email": email, "nickname": nickname, "role": Role.MEMBER}
        )
        return MessageResponse(message="Profile created.")
    store.update(USERS_COLLECTION, found[0], {"nickname": nickname})
    return MessageResponse(message="Nickname updated.")


@router.get("/users/{email}/stats")
def get_user_stats(email: str, store: DocumentStore = Depends(get_document_store)):
    scrims = dict(store.list(SCRIMS_COLLECTION))
    users = [data for _, data in store.list(USERS_COLLECTION)]
    return player_stats(email, store.list(MATCHES_COLLECTION), scrims, users)


@router.get("/admin/users")
def admin_list_users(
    requester_email: str = Query(..., alias="requesterEmail"),
    store: DocumentStore = Depends(get_document_store),
):
    if not permissions.is_admin(requester_role(store, requester_email)):
        raise PermissionDeniedError("Permission denied.")
    return [with_id("id", doc_id, data) for doc_id, data in store.list(USERS_COLLECTION)]


@router.post("/admin/users", response_model=MessageResponse)
def admin_create_user(
    payload: AdminCreateUserRequest,
    store: DocumentStore = Depends(get_document_store),
    auth: AuthClient = Depends(get_auth_client),
):
    role = requester_role(store, payload.requester_email)
    if not permissions.is_admin(role):
        raise PermissionDeniedError("Permission denied.")
    permissions.check_role_change(role, None, payload.role)

    nickname = payload.nickname.strip()
    _check_nickname_free(store, nickname, None)
    if find_user(store, payload.email):
        raise ConflictError(f"A user with email {payload.email} already exists.")

    uid = auth.create_user(payload.email, payload.password)
    # The auth uid doubles as the user document id.
    store.set(
        USERS_COLLECTION,
        uid,
        {"email": payload.email, "nickname": nickname, "role": payload.role},
    )
    logger.info("Created user %s with role %s", payload.email, payload.role)
    return MessageResponse(message="User created.")


@router.put("/admin/users", response_model=MessageResponse)
def admin_change_role(
    payload: AdminRoleRequest, store: DocumentStore = Depends(get_document_store)
):
    _, requester = require_user(store, payload.requester_email, forbidden=True)
    target = store.get(USERS_COLLECTION, payload.user_id)
    if target is None:
        raise NotFoundError("Target user not found.")

    permissions.check_role_change(
        permissions.role_of(requester), target.get("role"), payload.new_role
    )
    store.update(USERS_COLLECTION, payload.user_id, {"role": payload.new_role})
    logger.info(
        "%s changed the role of %s to %s",
        payload.requester_email,
        target.get("email"),
        payload.new_role,
    )
    return MessageResponse(message="Role updated.")


@router.patch("/admin/users", response_model=MessageResponse)
def admin_change_nickname(
    payload: AdminNicknameRequest, store: DocumentStore = Depends(get_document_store)
):
    if not permissions.is_super_admin(requester_role(store, payload.requester_email)):
        raise PermissionDeniedError("Permission denied.")
    if store.get(USERS_COLLECTION, payload.user_id) is None:
        raise NotFoundError("Target user not found.")

    nickname = payload.new_nickname.strip()
    _check_nickname_free(store, nickname, payload.user_id)
    store.update(USERS_COLLECTION, payload.user_id, {"nickname": nickname})
    return MessageResponse(message="Nickname updated.")


@router.delete("/admin/users", response_model=MessageResponse)
def admin_delete_user(
    payload: AdminDeleteUserRequest,
    store: DocumentStore = Depends(get_document_store),
    auth: AuthClient = Depends(get_auth_client),
):
    if not permissions.is_super_admin(requester_role(store, payload.requester_email)):
        raise PermissionDeniedError("Permission denied.")
    target = store.get(USERS_COLLECTION, payload.user_id)
    if target is None:
        raise NotFoundError("Target user not found.")
    if permissions.is_super_admin(target.get("role")):
        raise PermissionDeniedError("The super admin cannot be deleted.")
    email = target.get("email")
    if email != payload.user_email:
        raise BadRequestError("userEmail does not belong to userId.")

    auth.delete_user_by_email(email)
    store.delete(USERS_COLLECTION, payload.user_id)
    logger.info("Deleted user %s", email)
    return MessageResponse(message="User deleted.")
