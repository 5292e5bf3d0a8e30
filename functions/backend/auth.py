"""
Account management for Firebase Authentication and an in-memory test double.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol

from firebase_admin import auth

from lobby.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class AuthClient(Protocol):
    """Defines the account operations the admin API needs."""

    def create_user(self, email: str, password: str) -> str:
        """Creates a sign-in account and returns its uid."""
        ...

    def delete_user_by_email(self, email: str) -> None:
        ...


@dataclass
class InMemoryAuthClient:
    """Test double for account interactions."""

    accounts: dict = field(default_factory=dict)

    def create_user(self, email: str, password: str) -> str:
        if any(a["email"] == email for a in self.accounts.values()):
            raise ConflictError(f"An account already exists for {email}.")
        uid = uuid.uuid4().hex
        self.accounts[uid] = {"email": email, "password": password}
        return uid

    def delete_user_by_email(self, email: str) -> None:
        for uid, account in list(self.accounts.items()):
            if account["email"] == email:
                del self.accounts[uid]
                return
        raise NotFoundError(f"No account for {email}.")


class FirebaseAuthClient:
    """Firebase Authentication on top of the initialized firebase_admin app."""

    def create_user(self, email: str, password: str) -> str:
        try:
            record = auth.create_user(email=email, password=password)
        except auth.EmailAlreadyExistsError:
            raise ConflictError(f"An account already exists for {email}.")
        logger.info("Created auth account %s", record.uid)
        return record.uid

    def delete_user_by_email(self, email: str) -> None:
        try:
            record = auth.get_user_by_email(email)
        except auth.UserNotFoundError:
            raise NotFoundError(f"No account for {email}.")
        auth.delete_user(record.uid)
        logger.info("Deleted auth account %s", record.uid)
