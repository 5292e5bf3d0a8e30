"""
Match history endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.champions import ChampionCatalog
from backend.db import DocumentStore, Transaction
from backend.dependencies import get_champion_catalog, get_document_store
from backend.routes.common import requester_role, with_id
from backend.schemas import MatchChampionPatch, MessageResponse
from lobby import permissions
from lobby.errors import NotFoundError, PermissionDeniedError
from shared.firebase_constants import MATCHES_COLLECTION, SCRIMS_COLLECTION
from shared.types import ScrimType, TeamColor

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_SCRIM_NAME = "내전 경기"


@router.get("/matches")
def list_matches(store: DocumentStore = Depends(get_document_store)):
    """All matches, most recent first."""
    return [
        with_id("matchId", doc_id, data)
        for doc_id, data in store.list(
            MATCHES_COLLECTION, order_by="matchDate", descending=True
        )
    ]


@router.get("/matches/{match_id}")
def get_match(
    match_id: str,
    store: DocumentStore = Depends(get_document_store),
    catalog: ChampionCatalog = Depends(get_champion_catalog),
):
    """A match with champion portraits and the name and type of its scrim."""
    data = store.get(MATCHES_COLLECTION, match_id)
    if data is None:
        raise NotFoundError("Match not found.")

    images = catalog.image_urls()
    for key in ("blueTeam", "redTeam"):
        data[key] = [
            {**player, "championImageUrl": images.get(player.get("champion"))}
            for player in data.get(key) or []
        ]

    scrim = store.get(SCRIMS_COLLECTION, data["scrimId"]) if data.get("scrimId") else None
    scrim = scrim or {}
    data["scrimName"] = scrim.get("scrimName") or DEFAULT_SCRIM_NAME
    data["scrimType"] = (
        scrim.get("scrimType") or data.get("scrimType") or ScrimType.NORMAL
    )
    return with_id("matchId", match_id, data)


@router.patch("/matches/{match_id}", response_model=MessageResponse)
def change_champion(
    match_id: str,
    payload: MatchChampionPatch,
    store: DocumentStore = Depends(get_document_store),
):
    """
    Corrects the champion a player used. The scrim's champion history for the
    match is corrected too, so fearless bans and player stats follow.
    """
    if not permissions.is_admin(requester_role(store, payload.requester_email)):
        raise PermissionDeniedError("Only admins can edit matches.")

    team_key = "blueTeam" if payload.team == TeamColor.BLUE else "redTeam"
    history_key = (
        "blueTeamChampions" if payload.team == TeamColor.BLUE else "redTeamChampions"
    )

    def _run(tx: Transaction) -> None:
        match = tx.get(MATCHES_COLLECTION, match_id)
        if match is None:
            raise NotFoundError("Match not found.")
        scrim_id = match.get("scrimId")
        scrim = tx.get(SCRIMS_COLLECTION, scrim_id) if scrim_id else None

        team = [dict(p) for p in match.get(team_key) or []]
        player = next((p for p in team if p.get("email") == payload.player_email), None)
        if player is None:
            raise NotFoundError("Player not found in that team.")
        player["champion"] = payload.new_champion
        tx.update(MATCHES_COLLECTION, match_id, {team_key: team})

        if not scrim:
            return
        history = scrim.get("matchChampionHistory") or []
        for record in history:
            if record.get("matchId") != match_id:
                continue
            for pick in record.get(history_key) or []:
                if pick.get("email") == payload.player_email:
                    pick["champion"] = payload.new_champion
            tx.update(SCRIMS_COLLECTION, scrim_id, {"matchChampionHistory": history})
            break

    store.run_transaction(_run)
    logger.info(
        "Match %s: champion of %s changed to %s",
        match_id,
        payload.player_email,
        payload.new_champion,
    )
    return MessageResponse(message="Champion updated.")
