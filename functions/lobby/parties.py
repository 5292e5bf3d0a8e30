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
import logging
from dataclasses import asdict
from enum import StrEnum
from typing import Any, List, Optional

from lobby.errors import BadRequestError, PermissionDeniedError
from shared.constants import (
    ANY_POSITION,
    DEFAULT_PARTY_CAPACITY,
    PARTY_CAPACITY,
    PARTY_WAITLIST_CAPACITY,
    RANKED_PARTY_TYPES,
)
from shared.json_utils import convert_keys
from shared.types import Party, PartyMember, PartyType

logger = logging.getLogger(__name__)


class MembershipAction(StrEnum):
    JOIN = "join"
    LEAVE = "leave"
    JOIN_WAITLIST = "join_waitlist"
    LEAVE_WAITLIST = "leave_waitlist"


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_members(raw: Any) -> List[PartyMember]:
    """
    Reads a stored member list.

    Older party documents hold the list as a JSON-encoded string; anything
    that is neither a list nor a decodable string yields an empty list.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    members = []
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("email"), str):
            members.append(
                PartyMember(
                    email=item["email"], positions=list(item.get("positions") or [])
                )
            )
    return members


def party_from_document(data: dict) -> Party:
    try:
        max_members = int(data.get("maxMembers") or 0) or DEFAULT_PARTY_CAPACITY
    except (TypeError, ValueError):
        max_members = DEFAULT_PARTY_CAPACITY
    return Party(
        party_type=data.get("partyType", PartyType.OTHER),
        party_name=data.get("partyName", ""),
        max_members=max_members,
        members_data=parse_members(data.get("membersData")),
        waiting_data=parse_members(data.get("waitingData")),
        created_at=data.get("createdAt"),
        required_tier=data.get("requiredTier"),
        start_time=data.get("startTime"),
    )


def party_to_document(party: Party) -> dict:
    return convert_keys(asdict(party), "snake_to_camel")


def is_ranked(party_type: str) -> bool:
    return party_type in RANKED_PARTY_TYPES


def new_party(
    *,
    party_name: str,
    creator_email: str,
    party_type: str,
    required_tier: Optional[str] = None,
    start_time: Optional[str] = None,
    created_at: Any = None,
) -> Party:
    """
    Builds a new party with the creator as its leader.

    Raises:
        BadRequestError: On unknown party types, or a ranked party without a
            required tier.
    """
    if party_type not in PARTY_CAPACITY:
        raise BadRequestError(f"Unknown party type: {party_type}")
    tier = _clean_text(required_tier)
    if is_ranked(party_type) and not tier:
        raise BadRequestError(f"A {party_type} party requires a minimum tier.")
    return Party(
        party_type=party_type,
        party_name=party_name,
        max_members=PARTY_CAPACITY[PartyType(party_type)],
        members_data=[PartyMember(email=creator_email, positions=[ANY_POSITION])],
        waiting_data=[],
        created_at=created_at,
        required_tier=tier if is_ranked(party_type) else None,
        start_time=_clean_text(start_time),
    )


def leader_email(party: Party) -> Optional[str]:
    return party.members_data[0].email if party.members_data else None


def is_member(party: Party, email: str) -> bool:
    return any(m.email == email for m in party.members_data)


def is_waiting(party: Party, email: str) -> bool:
    return any(m.email == email for m in party.waiting_data)


def apply_membership_action(
    party: Party, action: str, member: PartyMember
) -> Optional[PartyMember]:
    """
    Applies a join/leave/waitlist action in place.

    Returns the waitlisted member promoted into the party, if any. The caller
    deletes the party when no members remain.

    Raises:
        BadRequestError: When the party or its waitlist is full, or the
            action is unknown.
    """
    email = member.email
    promoted = None

    if action == MembershipAction.JOIN:
        if len(party.members_data) >= party.max_members:
            raise BadRequestError("The party is full.")
        if not is_member(party, email):
            party.members_data.append(member)
    elif action == MembershipAction.LEAVE:
        party.members_data = [m for m in party.members_data if m.email != email]
        if len(party.members_data) < party.max_members and party.waiting_data:
            promoted = party.waiting_data.pop(0)
            party.members_data.append(promoted)
            logger.info("Promoted %s from the party waitlist", promoted.email)
    elif action == MembershipAction.JOIN_WAITLIST:
        if len(party.waiting_data) >= PARTY_WAITLIST_CAPACITY:
            raise BadRequestError("The waitlist is full.")
        if not is_waiting(party, email) and not is_member(party, email):
            party.waiting_data.append(member)
    elif action == MembershipAction.LEAVE_WAITLIST:
        party.waiting_data = [m for m in party.waiting_data if m.email != email]
    else:
        raise BadRequestError(f"Unknown party action: {action}")
    return promoted


def update_positions(party: Party, email: str, positions: List[str]) -> None:
    for member in party.members_data:
        if member.email == email:
            member.positions = list(positions)
            return
    raise PermissionDeniedError("Only party members can change their positions.")


def update_details(
    party: Party,
    *,
    party_name: Optional[str] = None,
    required_tier: Optional[str] = None,
    start_time: Optional[str] = None,
) -> bool:
    """
    Updates name, tier and start time; `None` leaves a field unchanged and an
    empty start time means "start now". Returns whether anything was given.

    Raises:
        BadRequestError: If a ranked party would be left without a tier.
    """
    if party_name is None and required_tier is None and start_time is None:
        return False
    tier = party.required_tier if required_tier is None else _clean_text(required_tier)
    if is_ranked(party.party_type) and not tier:
        raise BadRequestError(f"A {party.party_type} party requires a minimum tier.")
    if party_name is not None:
        party.party_name = party_name
    if not is_ranked(party.party_type):
        party.required_tier = None
    elif required_tier is not None:
        party.required_tier = tier
    if start_time is not None:
        party.start_time = _clean_text(start_time)
    return True
