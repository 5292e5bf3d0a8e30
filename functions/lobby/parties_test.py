# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import json
import unittest

from lobby import parties
from lobby.errors import BadRequestError, PermissionDeniedError
from lobby.parties import MembershipAction
from shared.types import PartyMember, PartyType


def _member(email, positions=None):
    return PartyMember(email=email, positions=positions or ["MID"])


class NewPartyTest(unittest.TestCase):

    def test_capacity_follows_party_type(self):
        duo = parties.new_party(
            party_name="duo",
            creator_email="a@x.com",
            party_type=PartyType.DUO_RANK,
            required_tier="Gold",
        )
        other = parties.new_party(
            party_name="aram",
            creator_email="a@x.com",
            party_type=PartyType.OTHER,
        )
        self.assertEqual(duo.max_members, 2)
        self.assertEqual(other.max_members, 10)

    def test_creator_is_leader_with_any_position(self):
        party = parties.new_party(
            party_name="p", creator_email="lead@x.com", party_type=PartyType.OTHER
        )
        self.assertEqual(parties.leader_email(party), "lead@x.com")
        self.assertEqual(party.members_data[0].positions, ["ALL"])

    def test_ranked_party_requires_tier(self):
        with self.assertRaises(BadRequestError):
            parties.new_party(
                party_name="flex",
                creator_email="a@x.com",
                party_type=PartyType.FLEX_RANK,
                required_tier="  ",
            )

    def test_other_party_never_stores_tier(self):
        party = parties.new_party(
            party_name="p",
            creator_email="a@x.com",
            party_type=PartyType.OTHER,
            required_tier="Diamond",
        )
        self.assertIsNone(party.required_tier)

    def test_blank_start_time_means_now(self):
        party = parties.new_party(
            party_name="p",
            creator_email="a@x.com",
            party_type=PartyType.OTHER,
            start_time="   ",
        )
        self.assertIsNone(party.start_time)

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(BadRequestError):
            parties.new_party(
                party_name="p", creator_email="a@x.com", party_type="솔로랭크"
            )


class MembershipTest(unittest.TestCase):

    def setUp(self):
        self.party = parties.new_party(
            party_name="duo",
            creator_email="lead@x.com",
            party_type=PartyType.DUO_RANK,
            required_tier="Silver",
        )

    def test_join_until_full(self):
        parties.apply_membership_action(self.party, "join", _member("b@x.com"))
        with self.assertRaises(BadRequestError):
            parties.apply_membership_action(self.party, "join", _member("c@x.com"))

    def test_join_is_idempotent(self):
        parties.apply_membership_action(self.party, "join", _member("b@x.com"))
        parties.apply_membership_action(self.party, "leave", _member("b@x.com"))
        parties.apply_membership_action(self.party, "join", _member("b@x.com"))
        emails = [m.email for m in self.party.members_data]
        self.assertEqual(emails.count("b@x.com"), 1)

    def test_leave_promotes_waitlist_head_in_order(self):
        parties.apply_membership_action(self.party, "join", _member("b@x.com"))
        parties.apply_membership_action(
            self.party, MembershipAction.JOIN_WAITLIST, _member("w1@x.com")
        )
        parties.apply_membership_action(
            self.party, MembershipAction.JOIN_WAITLIST, _member("w2@x.com")
        )

        promoted = parties.apply_membership_action(
            self.party, "leave", _member("b@x.com")
        )

        self.assertEqual(promoted.email, "w1@x.com")
        self.assertEqual(
            [m.email for m in self.party.members_data], ["lead@x.com", "w1@x.com"]
        )
        self.assertEqual([m.email for m in self.party.waiting_data], ["w2@x.com"])

    def test_waitlist_capacity(self):
        for i in range(5):
            parties.apply_membership_action(
                self.party, "join_waitlist", _member(f"w{i}@x.com")
            )
        with self.assertRaises(BadRequestError):
            parties.apply_membership_action(
                self.party, "join_waitlist", _member("late@x.com")
            )

    def test_member_cannot_also_wait(self):
        parties.apply_membership_action(
            self.party, "join_waitlist", _member("lead@x.com")
        )
        self.assertEqual(self.party.waiting_data, [])

    def test_last_leave_empties_party(self):
        parties.apply_membership_action(self.party, "leave", _member("lead@x.com"))
        self.assertEqual(self.party.members_data, [])

    def test_unknown_action(self):
        with self.assertRaises(BadRequestError):
            parties.apply_membership_action(self.party, "kick", _member("b@x.com"))


class EditTest(unittest.TestCase):

    def setUp(self):
        self.party = parties.new_party(
            party_name="flex",
            creator_email="lead@x.com",
            party_type=PartyType.FLEX_RANK,
            required_tier="Gold",
        )

    def test_only_members_update_positions(self):
        parties.update_positions(self.party, "lead@x.com", ["TOP (1순위)"])
        self.assertEqual(self.party.members_data[0].positions, ["TOP (1순위)"])
        with self.assertRaises(PermissionDeniedError):
            parties.update_positions(self.party, "stranger@x.com", ["MID"])

    def test_update_details_keeps_tier_when_not_given(self):
        changed = parties.update_details(self.party, party_name="renamed")
        self.assertTrue(changed)
        self.assertEqual(self.party.party_name, "renamed")
        self.assertEqual(self.party.required_tier, "Gold")

    def test_update_details_rejects_clearing_ranked_tier(self):
        with self.assertRaises(BadRequestError):
            parties.update_details(self.party, required_tier="")

    def test_other_party_ignores_new_tier(self):
        party = parties.new_party(
            party_name="aram", creator_email="lead@x.com", party_type=PartyType.OTHER
        )
        self.assertTrue(parties.update_details(party, required_tier="Diamond"))
        self.assertIsNone(party.required_tier)
        self.assertIsNone(parties.party_to_document(party)["requiredTier"])

    def test_update_details_without_fields(self):
        self.assertFalse(parties.update_details(self.party))


class DocumentTest(unittest.TestCase):

    def test_reads_json_encoded_member_lists(self):
        party = parties.party_from_document(
            {
                "partyType": "기타",
                "partyName": "legacy",
                "maxMembers": "10",
                "membersData": json.dumps([{"email": "a@x.com", "positions": ["ALL"]}]),
                "waitingData": "not json",
            }
        )
        self.assertEqual(party.max_members, 10)
        self.assertEqual(party.members_data[0].email, "a@x.com")
        self.assertEqual(party.waiting_data, [])

    def test_invalid_capacity_falls_back_to_five(self):
        party = parties.party_from_document({"maxMembers": "many"})
        self.assertEqual(party.max_members, 5)

    def test_document_uses_camel_case(self):
        party = parties.new_party(
            party_name="p", creator_email="a@x.com", party_type=PartyType.OTHER
        )
        doc = parties.party_to_document(party)
        self.assertEqual(doc["partyName"], "p")
        self.assertEqual(doc["membersData"], [{"email": "a@x.com", "positions": ["ALL"]}])
        self.assertIn("waitingData", doc)


if __name__ == "__main__":
    unittest.main()
