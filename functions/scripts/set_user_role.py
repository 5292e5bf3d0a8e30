"""
Create or update a user document with a given role.

The API never grants the super admin role, so the first super admin is
bootstrapped with this script against the configured document store:

    python scripts/set_user_role.py admin@example.com --role 총관리자 --nickname 운영진
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.db import DocumentStore, InMemoryDocumentStore
from backend.dependencies import get_document_store
from shared.firebase_constants import USERS_COLLECTION
from shared.types import Role


logger = logging.getLogger(__name__)


def set_user_role(
    store: DocumentStore,
    email: str,
    role: Role,
    nickname: Optional[str] = None,
    *,
    dry_run: bool = False,
) -> str:
    """
    Returns the id of the updated or created user document.

    A new document needs a nickname; an existing one keeps its nickname
    unless a new one is given.
    """
    found = store.find_one(USERS_COLLECTION, "email", email)
    if found:
        doc_id, data = found
        updates = {"role": role}
        if nickname:
            updates["nickname"] = nickname
        logger.info("%s: %s -> %s", email, data.get("role"), role)
        if not dry_run:
            store.update(USERS_COLLECTION, doc_id, updates)
        return doc_id

    if not nickname:
        raise ValueError(f"No user document for {email}; pass --nickname to create one")
    logger.info("%s: new user with role %s", email, role)
    if dry_run:
        return ""
    return store.add(
        USERS_COLLECTION, {"email": email, "nickname": nickname, "role": role}
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or update a user's role")
    parser.add_argument("email", help="Email of the user")
    parser.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.SUPER_ADMIN.value,
        help="Role to assign (default: super admin)",
    )
    parser.add_argument(
        "--nickname",
        default=None,
        help="Nickname; required when the user has no document yet",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the change without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    store = get_document_store()
    if isinstance(store, InMemoryDocumentStore):
        logger.error("No persistent store configured (set DATABASE_URL or Firebase)")
        return 1

    try:
        doc_id = set_user_role(
            store, args.email, Role(args.role), args.nickname, dry_run=args.dry_run
        )
    except ValueError as e:
        logger.error("%s", e)
        return 1

    logger.info("Done (%s)", doc_id or "dry run")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
