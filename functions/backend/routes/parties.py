"""
Party endpoints: listing, creation, membership, edits and disbanding.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.db import DocumentStore, Transaction
from backend.dependencies import get_document_store
from backend.routes.common import require_user, requester_role, utc_now, with_id
from backend.schemas import (
    CreatePartyRequest,
    CreatePartyResponse,
    MessageResponse,
    PartyDeleteRequest,
    PartyMembershipRequest,
    PartyPatchRequest,
)
from lobby import parties, permissions
from lobby.errors import BadRequestError, NotFoundError, PermissionDeniedError
from shared.firebase_constants import PARTIES_COLLECTION
from shared.types import PartyMember

logger = logging.getLogger(__name__)

router = APIRouter()


def _load(tx_or_store, party_id: str):
    data = tx_or_store.get(PARTIES_COLLECTION, party_id)
    if data is None:
        raise NotFoundError("Party not found.")
    return parties.party_from_document(data)


@router.get("/parties")
def list_parties(store: DocumentStore = Depends(get_document_store)):
    """All parties, newest first."""
    return [
        with_id("partyId", doc_id, data)
        for doc_id, data in store.list(
            PARTIES_COLLECTION, order_by="createdAt", descending=True
        )
    ]


@router.post("/parties", response_model=CreatePartyResponse)
def create_party(
    payload: CreatePartyRequest, store: DocumentStore = Depends(get_document_store)
):
    party = parties.new_party(
        party_name=payload.party_name,
        creator_email=payload.creator_email,
        party_type=payload.party_type,
        required_tier=payload.required_tier,
        start_time=payload.start_time,
        created_at=utc_now(),
    )
    party_id = store.add(PARTIES_COLLECTION, parties.party_to_document(party))
    return CreatePartyResponse(message="Party created.", party_id=party_id)


@router.put("/parties", response_model=MessageResponse)
def update_membership(
    payload: PartyMembershipRequest,
    store: DocumentStore = Depends(get_document_store),
):
    member = PartyMember(
        email=payload.user_data.email, positions=list(payload.user_data.positions)
    )

    def _apply(tx: Transaction) -> bool:
        party = _load(tx, payload.party_id)
        parties.apply_membership_action(party, payload.action, member)
        if not party.members_data:
            tx.delete(PARTIES_COLLECTION, payload.party_id)
            return True
        doc = parties.party_to_document(party)
        tx.update(
            PARTIES_COLLECTION,
            payload.party_id,
            {"membersData": doc["membersData"], "waitingData": doc["waitingData"]},
        )
        return False

    if store.run_transaction(_apply):
        logger.info("Deleted empty party %s", payload.party_id)
        return MessageResponse(message="The party was empty and has been deleted.")
    return MessageResponse(message="Party updated.")


@router.patch("/parties", response_model=MessageResponse)
def patch_party(
    payload: PartyPatchRequest, store: DocumentStore = Depends(get_document_store)
):
    party = _load(store, payload.party_id)
    is_member = parties.is_member(party, payload.user_email)

    if payload.action == "update_positions":
        if payload.new_positions is None:
            raise BadRequestError("newPositions is required.")
        parties.update_positions(party, payload.user_email, payload.new_positions)
        doc = parties.party_to_document(party)
        store.update(
            PARTIES_COLLECTION, payload.party_id, {"membersData": doc["membersData"]}
        )
        return MessageResponse(message="Positions updated.")

    if payload.action not in ("update_name", "update_details"):
        raise BadRequestError(f"Unknown party action: {payload.action}")

    if not is_member and not permissions.is_admin(
        requester_role(store, payload.user_email)
    ):
        raise PermissionDeniedError("Only party members or admins can edit the party.")

    if payload.action == "update_name":
        if not payload.new_party_name:
            raise BadRequestError("newPartyName is required.")
        store.update(
            PARTIES_COLLECTION, payload.party_id, {"partyName": payload.new_party_name}
        )
        return MessageResponse(message="Party name updated.")

    changed = parties.update_details(
        party,
        party_name=payload.new_party_name,
        required_tier=payload.new_required_tier,
        start_time=payload.new_start_time,
    )
    if not changed:
        return MessageResponse(message="Nothing to update.")
    store.update(
        PARTIES_COLLECTION,
        payload.party_id,
        {
            "partyName": party.party_name,
            "requiredTier": party.required_tier,
            "startTime": party.start_time,
        },
    )
    return MessageResponse(message="Party details updated.")


@router.delete("/parties", response_model=MessageResponse)
def disband_party(
    payload: PartyDeleteRequest, store: DocumentStore = Depends(get_document_store)
):
    _, requester = require_user(store, payload.requester_email)
    party = _load(store, payload.party_id)
    if not permissions.can_disband_party(
        permissions.role_of(requester),
        payload.requester_email,
        parties.leader_email(party),
    ):
        raise PermissionDeniedError("Only the party leader or an admin can disband it.")
    store.delete(PARTIES_COLLECTION, payload.party_id)
    logger.info("Party %s disbanded by %s", payload.party_id, payload.requester_email)
    return MessageResponse(message="Party disbanded.")
