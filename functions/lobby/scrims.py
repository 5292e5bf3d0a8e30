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

"""
Scrim lifecycle: applications, waitlist, team building and game results.

A scrim moves RECRUITING -> TEAM_BUILDING -> IN_GAME -> FINISHED, and can be
stepped back (FINISHED/IN_GAME -> TEAM_BUILDING -> RECRUITING) to play
another game with the same group. Each action below mutates a `Scrim` in
place and raises a `LobbyError` when the action is not allowed.
"""

import logging
from dataclasses import asdict, replace
from enum import StrEnum
from typing import Any, Iterable, List, Optional

from dacite import Config, from_dict

from lobby import team_builder
from lobby.errors import BadRequestError, ConflictError
from shared.constants import (
    POSITIONS,
    SCRIM_APPLICANT_CAPACITY,
    SCRIM_TEAM_SIZE,
    SCRIM_WAITLIST_CAPACITY,
    UNKNOWN_CHAMPION,
)
from shared.json_utils import convert_keys, drop_none
from shared.types import (
    Applicant,
    ChampionPick,
    MatchChampionRecord,
    Scrim,
    ScrimStatus,
    ScrimType,
    TeamColor,
)

logger = logging.getLogger(__name__)


class ScrimAction(StrEnum):
    APPLY = "apply"
    LEAVE = "leave"
    APPLY_WAITLIST = "apply_waitlist"
    LEAVE_WAITLIST = "leave_waitlist"
    START_TEAM_BUILDING = "start_team_building"
    UPDATE_TEAMS = "update_teams"
    START_GAME = "start_game"
    END_GAME = "end_game"
    RESET_TO_TEAM_BUILDING = "reset_to_team_building"
    RESET_TO_RECRUITING = "reset_to_recruiting"
    REMOVE_MEMBER = "remove_member"
    RESET_FEARLESS = "reset_fearless"


# Actions only an admin or the scrim creator may perform.
MANAGEMENT_ACTIONS = frozenset(
    {
        ScrimAction.START_TEAM_BUILDING,
        ScrimAction.UPDATE_TEAMS,
        ScrimAction.START_GAME,
        ScrimAction.END_GAME,
        ScrimAction.RESET_TO_TEAM_BUILDING,
        ScrimAction.RESET_TO_RECRUITING,
        ScrimAction.REMOVE_MEMBER,
        ScrimAction.RESET_FEARLESS,
    }
)

# Statuses each action may start from; unlisted actions are always allowed.
ALLOWED_STATUSES = {
    ScrimAction.APPLY: {ScrimStatus.RECRUITING, ScrimStatus.TEAM_BUILDING},
    ScrimAction.APPLY_WAITLIST: {ScrimStatus.RECRUITING, ScrimStatus.TEAM_BUILDING},
    ScrimAction.START_TEAM_BUILDING: {ScrimStatus.RECRUITING},
    ScrimAction.UPDATE_TEAMS: {ScrimStatus.TEAM_BUILDING},
    ScrimAction.START_GAME: {ScrimStatus.TEAM_BUILDING},
    ScrimAction.END_GAME: {ScrimStatus.IN_GAME},
    ScrimAction.RESET_TO_TEAM_BUILDING: {ScrimStatus.IN_GAME, ScrimStatus.FINISHED},
    ScrimAction.RESET_TO_RECRUITING: {ScrimStatus.TEAM_BUILDING},
}


def parse_action(value: str) -> ScrimAction:
    if value == "reset_peerless":
        # Older clients use this name.
        return ScrimAction.RESET_FEARLESS
    try:
        return ScrimAction(value)
    except ValueError:
        raise BadRequestError(f"Unknown scrim action: {value}")


def check_transition(scrim: Scrim, action: ScrimAction) -> None:
    allowed = ALLOWED_STATUSES.get(action)
    if allowed is not None and scrim.status not in allowed:
        raise BadRequestError(
            f"'{action}' is not allowed while the scrim is '{scrim.status}'."
        )


def _valid_players(raw: Any) -> list[dict]:
    """Drops stored entries that are not objects with an email string."""
    if not isinstance(raw, list):
        return []
    return [p for p in raw if isinstance(p, dict) and isinstance(p.get("email"), str)]


def _valid_history(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    history = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        record = dict(entry)
        for key in ("blueTeamChampions", "redTeamChampions"):
            picks = []
            for pick in record.get(key) or []:
                if not isinstance(pick, dict):
                    continue
                email = pick.get("email") or pick.get("playerEmail")
                if isinstance(email, str):
                    picks.append(
                        {
                            "email": email,
                            "champion": pick.get("champion") or UNKNOWN_CHAMPION,
                            "position": pick.get("position"),
                        }
                    )
            record[key] = picks
        record.setdefault("matchId", "")
        record.setdefault("matchDate", None)
        history.append(record)
    return history


def scrim_from_document(data: dict) -> Scrim:
    doc = {
        "scrimName": data.get("scrimName", ""),
        "creatorEmail": data.get("creatorEmail", ""),
        "scrimType": data.get("scrimType", ScrimType.NORMAL),
        "status": data.get("status", ScrimStatus.RECRUITING),
        "createdAt": data.get("createdAt"),
        "startTime": data.get("startTime"),
        "winningTeam": data.get("winningTeam"),
        "applicants": _valid_players(data.get("applicants")),
        "waitlist": _valid_players(data.get("waitlist")),
        "blueTeam": _valid_players(data.get("blueTeam")),
        "redTeam": _valid_players(data.get("redTeam")),
        "matchChampionHistory": _valid_history(data.get("matchChampionHistory")),
    }
    return from_dict(
        data_class=Scrim,
        data=convert_keys(doc, "camel_to_snake"),
        config=Config(check_types=False),
    )


def player_to_document(player: Applicant) -> dict:
    return drop_none(convert_keys(asdict(player), "snake_to_camel"))


def scrim_to_document(scrim: Scrim) -> dict:
    doc = convert_keys(asdict(scrim), "snake_to_camel")
    doc["applicants"] = [player_to_document(p) for p in scrim.applicants]
    doc["waitlist"] = [player_to_document(p) for p in scrim.waitlist]
    doc["blueTeam"] = [player_to_document(p) for p in scrim.blue_team]
    doc["redTeam"] = [player_to_document(p) for p in scrim.red_team]
    return doc


def new_scrim(
    *, scrim_name: str, creator_email: str, scrim_type: str, created_at: Any = None
) -> Scrim:
    return Scrim(
        scrim_name=scrim_name,
        creator_email=creator_email,
        scrim_type=scrim_type,
        status=ScrimStatus.RECRUITING,
        created_at=created_at,
        start_time=None,
    )


def _emails(players: Iterable[Applicant]) -> set[str]:
    return {p.email for p in players}


def _without(players: List[Applicant], email: str) -> List[Applicant]:
    return [p for p in players if p.email != email]


def _promote_from_waitlist(scrim: Scrim) -> Optional[Applicant]:
    if not scrim.waitlist:
        return None
    promoted = scrim.waitlist.pop(0)
    scrim.applicants.append(promoted)
    logger.info("Promoted %s from the scrim waitlist", promoted.email)
    return promoted


def apply(scrim: Scrim, applicant: Applicant) -> None:
    if len(scrim.applicants) >= SCRIM_APPLICANT_CAPACITY:
        raise BadRequestError("The scrim is full.")
    if applicant.email in _emails(scrim.applicants + scrim.blue_team + scrim.red_team):
        raise ConflictError("You have already applied to this scrim.")
    scrim.waitlist = _without(scrim.waitlist, applicant.email)
    scrim.applicants.append(applicant)


def leave(scrim: Scrim, email: str) -> Optional[Applicant]:
    """Removes an applicant; the waitlist head takes a freed slot."""
    if not email:
        raise BadRequestError("An applicant email is required.")
    scrim.applicants = _without(scrim.applicants, email)
    if scrim.status in (ScrimStatus.RECRUITING, ScrimStatus.TEAM_BUILDING) and (
        len(scrim.applicants) < SCRIM_APPLICANT_CAPACITY
    ):
        return _promote_from_waitlist(scrim)
    return None


def apply_waitlist(scrim: Scrim, applicant: Applicant) -> None:
    if len(scrim.waitlist) >= SCRIM_WAITLIST_CAPACITY:
        raise BadRequestError("The waitlist is full.")
    if applicant.email in _emails(
        scrim.applicants + scrim.waitlist + scrim.blue_team + scrim.red_team
    ):
        raise ConflictError("You have already applied or are waiting.")
    scrim.waitlist.append(applicant)


def leave_waitlist(scrim: Scrim, email: str) -> None:
    scrim.waitlist = _without(scrim.waitlist, email)


def start_team_building(scrim: Scrim) -> None:
    if len(scrim.applicants) < SCRIM_APPLICANT_CAPACITY:
        raise BadRequestError(
            f"Team building needs at least {SCRIM_APPLICANT_CAPACITY} applicants."
        )
    scrim.status = ScrimStatus.TEAM_BUILDING


def _check_teams(blue: List[Applicant], red: List[Applicant], exact: bool) -> None:
    for name, team in (("blue", blue), ("red", red)):
        if len(_emails(team)) != len(team):
            raise BadRequestError(f"The {name} team lists a player twice.")
        if exact and len(team) != SCRIM_TEAM_SIZE:
            raise BadRequestError(
                f"Each team needs exactly {SCRIM_TEAM_SIZE} players."
            )
        if len(team) > SCRIM_TEAM_SIZE:
            raise BadRequestError(
                f"A team cannot have more than {SCRIM_TEAM_SIZE} players."
            )
    if _emails(blue) & _emails(red):
        raise BadRequestError("A player cannot be on both teams.")


def update_teams(scrim: Scrim, blue: List[Applicant], red: List[Applicant]) -> None:
    _check_teams(blue, red, exact=False)
    scrim.blue_team = list(blue)
    scrim.red_team = list(red)


def start_game(scrim: Scrim, blue: List[Applicant], red: List[Applicant], now: Any) -> None:
    _check_teams(blue, red, exact=True)
    scrim.blue_team = [
        replace(p, team=TeamColor.BLUE) for p in team_builder.assign_positions(blue)
    ]
    scrim.red_team = [
        replace(p, team=TeamColor.RED) for p in team_builder.assign_positions(red)
    ]
    scrim.status = ScrimStatus.IN_GAME
    scrim.start_time = now
    scrim.applicants = []


def used_fearless_champions(scrim: Scrim) -> set[str]:
    """Champions already played in earlier games of this scrim."""
    used = set()
    for record in scrim.match_champion_history:
        for pick in record.blue_team_champions + record.red_team_champions:
            if pick.champion and pick.champion != UNKNOWN_CHAMPION:
                used.add(pick.champion)
    return used


def parse_winning_team(value: Optional[str]) -> TeamColor:
    try:
        return TeamColor(value)
    except ValueError:
        raise BadRequestError("The winning team must be 'blue' or 'red'.")


def end_game(
    scrim: Scrim, winning_team: Optional[str], blue: List[Applicant], red: List[Applicant]
) -> None:
    """
    Records the final rosters (with champions) and the winner.

    In a fearless scrim no champion may repeat one picked in an earlier game.
    """
    winner = parse_winning_team(winning_team)
    if not blue and not red:
        raise BadRequestError("Champion data for both teams is required.")
    _check_teams(blue, red, exact=False)

    if scrim.scrim_type == ScrimType.FEARLESS:
        used = used_fearless_champions(scrim)
        repeated = sorted(
            {p.champion for p in blue + red if p.champion in used}
        )
        if repeated:
            raise BadRequestError(
                "Already played in this fearless scrim: " + ", ".join(repeated)
            )

    scrim.blue_team = [replace(p, team=TeamColor.BLUE) for p in blue]
    scrim.red_team = [replace(p, team=TeamColor.RED) for p in red]
    scrim.winning_team = winner
    scrim.status = ScrimStatus.FINISHED


def _picks(team: List[Applicant]) -> List[ChampionPick]:
    return [
        ChampionPick(
            email=p.email,
            champion=p.champion or UNKNOWN_CHAMPION,
            position=p.assigned_position,
        )
        for p in team
    ]


def record_match(scrim: Scrim, match_id: str, match_date: Any) -> MatchChampionRecord:
    record = MatchChampionRecord(
        match_id=match_id,
        match_date=match_date,
        blue_team_champions=_picks(scrim.blue_team),
        red_team_champions=_picks(scrim.red_team),
    )
    scrim.match_champion_history.append(record)
    return record


def reset_to_team_building(scrim: Scrim) -> None:
    scrim.blue_team = [replace(p, champion=None) for p in scrim.blue_team]
    scrim.red_team = [replace(p, champion=None) for p in scrim.red_team]
    scrim.applicants = []
    scrim.winning_team = None
    scrim.start_time = None
    scrim.status = ScrimStatus.TEAM_BUILDING


def reset_to_recruiting(scrim: Scrim) -> None:
    # Later entries replace earlier ones with the same email.
    unique = {}
    for player in scrim.applicants + scrim.blue_team + scrim.red_team:
        unique[player.email] = player
    scrim.applicants = list(unique.values())
    scrim.blue_team = []
    scrim.red_team = []
    scrim.status = ScrimStatus.RECRUITING


def remove_member(scrim: Scrim, email: Optional[str]) -> Optional[Applicant]:
    """
    Kicks a player from every list and refills from the waitlist.

    While recruiting, a waitlisted player is promoted when applicants drop
    below capacity; while team building, when either team is short. The
    promoted player always lands in the applicants list.
    """
    if not email or not isinstance(email, str):
        raise BadRequestError("A valid member email is required.")
    scrim.applicants = _without(scrim.applicants, email)
    scrim.blue_team = _without(scrim.blue_team, email)
    scrim.red_team = _without(scrim.red_team, email)
    scrim.waitlist = _without(scrim.waitlist, email)

    if scrim.status == ScrimStatus.RECRUITING:
        if len(scrim.applicants) < SCRIM_APPLICANT_CAPACITY:
            return _promote_from_waitlist(scrim)
    elif scrim.status == ScrimStatus.TEAM_BUILDING:
        if (
            len(scrim.blue_team) < SCRIM_TEAM_SIZE
            or len(scrim.red_team) < SCRIM_TEAM_SIZE
        ):
            return _promote_from_waitlist(scrim)
    return None


def reset_fearless(scrim: Scrim) -> None:
    scrim.match_champion_history = []


def player_result_updates(
    user: dict, player: Applicant, won: bool, scrim_type: str
) -> dict:
    """
    Field updates for a user document after a finished game.

    Every player gets a scrim counted. Champion records skip the placeholder
    champion; lane records are kept for everything except ARAM.
    """
    result_key = "wins" if won else "losses"
    updates = {"totalScrimsPlayed": int(user.get("totalScrimsPlayed") or 0) + 1}

    champion = (player.champion or "").strip()
    if champion and champion != UNKNOWN_CHAMPION:
        champion_stats = {
            k: dict(v) for k, v in (user.get("championStats") or {}).items()
        }
        entry = champion_stats.setdefault(champion, {"wins": 0, "losses": 0})
        entry[result_key] = int(entry.get(result_key) or 0) + 1
        updates["championStats"] = champion_stats

    position = player.assigned_position
    if scrim_type != ScrimType.ARAM and position in POSITIONS:
        position_stats = {
            k: dict(v) for k, v in (user.get("positionStats") or {}).items()
        }
        entry = position_stats.setdefault(position, {"wins": 0, "losses": 0})
        entry[result_key] = int(entry.get(result_key) or 0) + 1
        updates["positionStats"] = position_stats

    return updates
