"""
Scrim endpoints. Every state change runs in a store transaction.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.config import get_settings
from backend.db import DELETE_FIELD, DocumentStore, Transaction
from backend.dependencies import get_document_store
from backend.routes.common import require_user, requester_role, utc_now, with_id
from backend.schemas import (
    ApplicantData,
    CreateScrimRequest,
    CreateScrimResponse,
    MessageResponse,
    ScrimActionRequest,
    ScrimDeleteRequest,
    ScrimRenameRequest,
    TeamsPayload,
)
from lobby import permissions, scrims
from lobby.errors import BadRequestError, NotFoundError, PermissionDeniedError
from lobby.scrims import ScrimAction
from shared.firebase_constants import (
    MATCHES_COLLECTION,
    SCRIMS_COLLECTION,
    USERS_COLLECTION,
)
from shared.types import Applicant, Scrim

logger = logging.getLogger(__name__)

router = APIRouter()


def _applicant(data: ApplicantData) -> Applicant:
    return Applicant(**data.model_dump())


def _team(players: List[ApplicantData]) -> List[Applicant]:
    return [_applicant(p) for p in players]


def _require_applicant(payload: ScrimActionRequest) -> Applicant:
    if payload.applicant_data is None:
        raise BadRequestError("applicantData is required.")
    return _applicant(payload.applicant_data)


def _require_teams(teams: Optional[TeamsPayload], name: str) -> TeamsPayload:
    if teams is None:
        raise BadRequestError(f"{name} is required.")
    return teams


def _leaving_email(payload: ScrimActionRequest) -> Optional[str]:
    if payload.applicant_data is not None:
        return payload.applicant_data.email
    return payload.user_email


def _scrim_updates(scrim: Scrim) -> dict:
    """Fields to write back; unset winner and start time are removed."""
    doc = scrims.scrim_to_document(scrim)
    doc.pop("createdAt", None)
    for key in ("winningTeam", "startTime"):
        if doc[key] is None:
            doc[key] = DELETE_FIELD
    return doc


def _apply_action(scrim: Scrim, action: ScrimAction, payload: ScrimActionRequest) -> None:
    if action == ScrimAction.APPLY:
        scrims.apply(scrim, _require_applicant(payload))
    elif action == ScrimAction.LEAVE:
        scrims.leave(scrim, _leaving_email(payload))
    elif action == ScrimAction.APPLY_WAITLIST:
        scrims.apply_waitlist(scrim, _require_applicant(payload))
    elif action == ScrimAction.LEAVE_WAITLIST:
        scrims.leave_waitlist(scrim, _leaving_email(payload))
    elif action == ScrimAction.START_TEAM_BUILDING:
        scrims.start_team_building(scrim)
    elif action == ScrimAction.UPDATE_TEAMS:
        teams = _require_teams(payload.teams, "teams")
        scrims.update_teams(scrim, _team(teams.blue_team), _team(teams.red_team))
    elif action == ScrimAction.START_GAME:
        teams = _require_teams(payload.teams, "teams")
        scrims.start_game(
            scrim, _team(teams.blue_team), _team(teams.red_team), utc_now()
        )
    elif action == ScrimAction.RESET_TO_TEAM_BUILDING:
        scrims.reset_to_team_building(scrim)
    elif action == ScrimAction.RESET_TO_RECRUITING:
        scrims.reset_to_recruiting(scrim)
    elif action == ScrimAction.REMOVE_MEMBER:
        scrims.remove_member(scrim, payload.member_email_to_remove)
    elif action == ScrimAction.RESET_FEARLESS:
        scrims.reset_fearless(scrim)
    else:
        raise BadRequestError(f"Unknown scrim action: {action}")


def _end_game(
    tx: Transaction, scrim_id: str, scrim: Scrim, payload: ScrimActionRequest
) -> None:
    """
    Records the result, updates every registered player's totals and, for a
    game with a start time, stores the match and its champion picks.
    """
    champion_data = _require_teams(payload.champion_data, "championData")
    blue = _team(champion_data.blue_team)
    red = _team(champion_data.red_team)

    # All reads happen before the first write.
    user_docs = {}
    for player in blue + red:
        found = tx.find_one(USERS_COLLECTION, "email", player.email)
        if found:
            user_docs[player.email] = found

    scrims.end_game(scrim, payload.winning_team, blue, red)

    for player in scrim.blue_team + scrim.red_team:
        if player.email not in user_docs:
            continue
        user_id, user = user_docs[player.email]
        tx.update(
            USERS_COLLECTION,
            user_id,
            scrims.player_result_updates(
                user, player, player.team == scrim.winning_team, scrim.scrim_type
            ),
        )

    if scrim.start_time:
        match_id = tx.add(
            MATCHES_COLLECTION,
            {
                "scrimId": scrim_id,
                "scrimType": scrim.scrim_type,
                "winningTeam": scrim.winning_team,
                "matchDate": scrim.start_time,
                "blueTeam": [scrims.player_to_document(p) for p in scrim.blue_team],
                "redTeam": [scrims.player_to_document(p) for p in scrim.red_team],
            },
        )
        scrims.record_match(scrim, match_id, scrim.start_time)
        logger.info("Recorded match %s for scrim %s", match_id, scrim_id)

    tx.update(SCRIMS_COLLECTION, scrim_id, _scrim_updates(scrim))
    logger.info("Scrim %s ended, %s team won", scrim_id, scrim.winning_team)


def _load(store: DocumentStore, scrim_id: str) -> Scrim:
    data = store.get(SCRIMS_COLLECTION, scrim_id)
    if data is None:
        raise NotFoundError("Scrim not found.")
    return scrims.scrim_from_document(data)


def _check_manager(store: DocumentStore, scrim: Scrim, email: str) -> None:
    _, requester = require_user(store, email, forbidden=True)
    if not permissions.can_manage_scrim(
        permissions.role_of(requester), email, scrim.creator_email
    ):
        raise PermissionDeniedError("Only the scrim creator or an admin can do this.")


@router.get("/scrims")
def list_scrims(store: DocumentStore = Depends(get_document_store)):
    """All scrims, newest first."""
    return [
        with_id("scrimId", doc_id, data)
        for doc_id, data in store.list(
            SCRIMS_COLLECTION, order_by="createdAt", descending=True
        )
    ]


@router.post("/scrims", response_model=CreateScrimResponse)
def create_scrim(
    payload: CreateScrimRequest, store: DocumentStore = Depends(get_document_store)
):
    settings = get_settings()
    _, creator = require_user(store, payload.creator_email, forbidden=True)
    if not permissions.can_create_scrim(creator, settings.scrim_creation_min_games):
        raise PermissionDeniedError(
            "Only admins or members with "
            f"{settings.scrim_creation_min_games}+ scrims can create a scrim."
        )
    scrim = scrims.new_scrim(
        scrim_name=payload.scrim_name,
        creator_email=payload.creator_email,
        scrim_type=payload.scrim_type,
        created_at=utc_now(),
    )
    doc = scrims.scrim_to_document(scrim)
    doc.pop("winningTeam")
    scrim_id = store.add(SCRIMS_COLLECTION, doc)
    return CreateScrimResponse(message="Scrim created.", scrim_id=scrim_id)


@router.get("/scrims/{scrim_id}")
def get_scrim(scrim_id: str, store: DocumentStore = Depends(get_document_store)):
    data = store.get(SCRIMS_COLLECTION, scrim_id)
    if data is None:
        raise NotFoundError("Scrim not found.")
    return with_id("scrimId", scrim_id, data)


@router.put("/scrims/{scrim_id}", response_model=MessageResponse)
def scrim_action(
    scrim_id: str,
    payload: ScrimActionRequest,
    store: DocumentStore = Depends(get_document_store),
):
    action = scrims.parse_action(payload.action)
    role = (
        requester_role(store, payload.user_email)
        if action in scrims.MANAGEMENT_ACTIONS
        else None
    )

    def _run(tx: Transaction) -> None:
        data = tx.get(SCRIMS_COLLECTION, scrim_id)
        if data is None:
            raise NotFoundError("Scrim not found.")
        scrim = scrims.scrim_from_document(data)

        if action in scrims.MANAGEMENT_ACTIONS and not permissions.can_manage_scrim(
            role, payload.user_email, scrim.creator_email
        ):
            raise PermissionDeniedError("Only the scrim creator or an admin can do this.")
        scrims.check_transition(scrim, action)

        if action == ScrimAction.END_GAME:
            _end_game(tx, scrim_id, scrim, payload)
            return
        _apply_action(scrim, action, payload)
        tx.update(SCRIMS_COLLECTION, scrim_id, _scrim_updates(scrim))

    store.run_transaction(_run)
    return MessageResponse(message="Done.")


@router.patch("/scrims/{scrim_id}", response_model=MessageResponse)
def rename_scrim(
    scrim_id: str,
    payload: ScrimRenameRequest,
    store: DocumentStore = Depends(get_document_store),
):
    scrim = _load(store, scrim_id)
    _check_manager(store, scrim, payload.user_email)
    store.update(SCRIMS_COLLECTION, scrim_id, {"scrimName": payload.new_scrim_name})
    return MessageResponse(message="Scrim renamed.")


@router.delete("/scrims/{scrim_id}", response_model=MessageResponse)
def disband_scrim(
    scrim_id: str,
    payload: ScrimDeleteRequest,
    store: DocumentStore = Depends(get_document_store),
):
    scrim = _load(store, scrim_id)
    _check_manager(store, scrim, payload.user_email)
    store.delete(SCRIMS_COLLECTION, scrim_id)
    logger.info("Scrim %s disbanded by %s", scrim_id, payload.user_email)
    return MessageResponse(message="Scrim disbanded.")
