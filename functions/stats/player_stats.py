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

from typing import Dict, Iterable, Optional, Tuple

from shared.constants import POSITIONS, UNKNOWN_CHAMPION
from shared.types import ScrimType, TeamColor

UNKNOWN_NICKNAME = "알 수 없음"


def _record() -> dict:
    return {"wins": 0, "losses": 0}


def _tally(record: dict, won: bool) -> None:
    record["wins" if won else "losses"] += 1


def _team_of(match: dict, email: str) -> Optional[TeamColor]:
    for color, key in ((TeamColor.BLUE, "blueTeam"), (TeamColor.RED, "redTeam")):
        if any(p.get("email") == email for p in match.get(key) or []):
            return color
    return None


def _find(picks: Iterable[dict], **fields) -> Optional[dict]:
    for pick in picks or []:
        if all(pick.get(k) == v for k, v in fields.items()):
            return pick
    return None


def player_stats(
    email: str,
    matches: Iterable[Tuple[str, dict]],
    scrims: Dict[str, dict],
    users: Iterable[dict],
) -> dict:
    """
    Aggregates one player's record over every stored match.

    Args:
        email: The player.
        matches: (match id, match document) pairs.
        scrims: Scrim documents by id; a match whose scrim no longer exists
            is skipped.
        users: User documents, used for opponent nicknames.

    Returns:
        Totals for normal and fearless games, separate ARAM totals, and
        per-position, per-champion and lane-opponent records. Everything but
        the ARAM totals is read from the scrim's champion history, so a game
        without a history entry only counts towards ARAM.
    """
    nicknames = {u.get("email"): u.get("nickname") for u in users}
    stats = {
        "totalGames": 0,
        "totalWins": 0,
        "totalLosses": 0,
        "aramGames": 0,
        "aramWins": 0,
        "aramLosses": 0,
        "positions": {position: _record() for position in POSITIONS},
        "championStats": {},
        "matchups": {},
    }

    for match_id, match in matches:
        scrim = scrims.get(match.get("scrimId"))
        if not scrim:
            continue
        color = _team_of(match, email)
        if color is None:
            continue
        won = match.get("winningTeam") == color

        if scrim.get("scrimType") == ScrimType.ARAM:
            stats["aramGames"] += 1
            stats["aramWins" if won else "aramLosses"] += 1
            continue

        history = _find(scrim.get("matchChampionHistory"), matchId=match_id)
        if history is None:
            continue
        own_key, other_key = (
            ("blueTeamChampions", "redTeamChampions")
            if color == TeamColor.BLUE
            else ("redTeamChampions", "blueTeamChampions")
        )
        pick = _find(history.get(own_key), email=email)
        if pick is None:
            continue

        stats["totalGames"] += 1
        stats["totalWins" if won else "totalLosses"] += 1

        champion = pick.get("champion")
        if champion and champion != UNKNOWN_CHAMPION:
            _tally(stats["championStats"].setdefault(champion, _record()), won)

        position = pick.get("position")
        if position not in POSITIONS:
            continue
        _tally(stats["positions"][position], won)

        opponent = _find(history.get(other_key), position=position)
        if opponent is None:
            continue
        opponent_email = opponent.get("email")
        matchup = stats["matchups"].setdefault(position, {}).setdefault(
            opponent_email,
            {
                "nickname": nicknames.get(opponent_email) or UNKNOWN_NICKNAME,
                "wins": 0,
                "losses": 0,
            },
        )
        _tally(matchup, won)

    return stats
