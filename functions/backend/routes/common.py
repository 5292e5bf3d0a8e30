"""
Helpers shared by the route modules.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from backend.db import DocumentStore
from lobby.errors import NotFoundError, PermissionDeniedError
from shared.firebase_constants import USERS_COLLECTION


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def with_id(key: str, doc_id: str, data: dict) -> dict:
    """Document data with its id under `key`, the way the client expects it."""
    return {key: doc_id, **data}


def find_user(store: DocumentStore, email: Optional[str]) -> Optional[tuple[str, dict]]:
    if not email:
        return None
    return store.find_one(USERS_COLLECTION, "email", email)


def require_user(
    store: DocumentStore, email: Optional[str], *, forbidden: bool = False
) -> tuple[str, dict]:
    """
    Looks up the requesting user.

    Raises:
        NotFoundError: If there is no such user.
        PermissionDeniedError: Instead of NotFoundError when `forbidden`.
    """
    found = find_user(store, email)
    if found is None:
        if forbidden:
            raise PermissionDeniedError("Requesting user not found.")
        raise NotFoundError("User not found.")
    return found


def requester_role(store: DocumentStore, email: Optional[str]) -> Optional[str]:
    found = find_user(store, email)
    return found[1].get("role") if found else None


def nickname_map(store: DocumentStore) -> dict[str, str]:
    return {
        data["email"]: data["nickname"]
        for _, data in store.list(USERS_COLLECTION)
        if data.get("email") and data.get("nickname")
    }


def local_part(email: str) -> str:
    return (email or "").split("@")[0]
