import unittest

from backend.db import InMemoryDocumentStore
from scripts.set_user_role import set_user_role
from shared.firebase_constants import USERS_COLLECTION
from shared.types import Role


class SetUserRoleTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()

    def test_creates_missing_user(self):
        doc_id = set_user_role(self.store, "boss@x.com", Role.SUPER_ADMIN, "boss")
        self.assertEqual(
            self.store.get(USERS_COLLECTION, doc_id),
            {"email": "boss@x.com", "nickname": "boss", "role": Role.SUPER_ADMIN},
        )

    def test_missing_user_needs_nickname(self):
        with self.assertRaises(ValueError):
            set_user_role(self.store, "boss@x.com", Role.SUPER_ADMIN)

    def test_updates_existing_user(self):
        self.store.set(
            USERS_COLLECTION, "u1", {"email": "a@x.com", "nickname": "a", "role": Role.MEMBER}
        )

        doc_id = set_user_role(self.store, "a@x.com", Role.ADMIN)

        self.assertEqual(doc_id, "u1")
        user = self.store.get(USERS_COLLECTION, "u1")
        self.assertEqual(user["role"], Role.ADMIN)
        self.assertEqual(user["nickname"], "a")

    def test_dry_run_writes_nothing(self):
        self.store.set(USERS_COLLECTION, "u1", {"email": "a@x.com", "role": Role.MEMBER})

        set_user_role(self.store, "a@x.com", Role.ADMIN, dry_run=True)
        self.assertEqual(set_user_role(self.store, "b@x.com", Role.ADMIN, "b", dry_run=True), "")

        self.assertEqual(self.store.get(USERS_COLLECTION, "u1")["role"], Role.MEMBER)
        self.assertEqual(len(self.store.list(USERS_COLLECTION)), 1)


if __name__ == "__main__":
    unittest.main()
