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

"""Community-wide aggregates: the hall of fame and the rankings board."""

from typing import Callable, Dict, Iterable, List, Tuple

from shared.constants import POSITIONS
from shared.types import ScrimType, TeamColor

TOP_N = 3
WIN_RATE_MIN_GAMES = 5

# Ranking board keys, as the client displays them.
MOST_GAMES_KEY = "꾸준왕"
MOST_WINS_KEY = "다승"
WIN_RATE_KEY = "승률"
NICKNAME_KEY = "닉네임"


def _top(rows: List[dict], value: Callable[[dict], float]) -> List[dict]:
    # sorted() is stable, so ties keep the input order.
    return sorted(rows, key=value, reverse=True)[:TOP_N]


def _new_user_stats(email: str, nickname: str) -> dict:
    return {
        "email": email,
        "nickname": nickname,
        "totalGames": 0,
        "totalWins": 0,
        "aramGames": 0,
        "aramWins": 0,
        "positions": {},
        "championStats": {},
    }


def all_stats(matches: Iterable[dict], users: Iterable[dict]) -> dict:
    """
    Per-user game counts from match documents, plus the hall of fame.

    Matches without a winner are ignored, as are players without a user
    document. ARAM games are counted separately and never by position.
    """
    nicknames = {u["email"]: u.get("nickname") for u in users if u.get("email")}
    by_email: Dict[str, dict] = {}

    for match in matches:
        winner = match.get("winningTeam")
        if not winner:
            continue
        is_aram = match.get("scrimType") == ScrimType.ARAM
        for color, key in ((TeamColor.BLUE, "blueTeam"), (TeamColor.RED, "redTeam")):
            won = winner == color
            for player in match.get(key) or []:
                email = player.get("email")
                if not email or email not in nicknames:
                    continue
                stats = by_email.setdefault(
                    email, _new_user_stats(email, nicknames[email])
                )
                if is_aram:
                    stats["aramGames"] += 1
                    stats["aramWins"] += int(won)
                    continue
                stats["totalGames"] += 1
                stats["totalWins"] += int(won)
                position = player.get("assignedPosition")
                if position:
                    entry = stats["positions"].setdefault(
                        position, {"games": 0, "wins": 0}
                    )
                    entry["games"] += 1
                    entry["wins"] += int(won)

    rows = list(by_email.values())

    def ranked(value: Callable[[dict], int], candidates: List[dict]) -> List[dict]:
        return [
            {"email": s["email"], "nickname": s["nickname"], "value": value(s)}
            for s in _top(candidates, value)
        ]

    def position_wins(position: str) -> Callable[[dict], int]:
        return lambda s: s["positions"].get(position, {}).get("wins", 0)

    hall_of_fame = {
        "mostWins": ranked(lambda s: s["totalWins"], rows),
        "mostGames": ranked(lambda s: s["totalGames"], rows),
        "positions": {
            position: ranked(
                position_wins(position),
                [s for s in rows if position_wins(position)(s) > 0],
            )
            for position in POSITIONS
        },
    }
    return {"hallOfFame": hall_of_fame, "allStats": rows}


def rankings(users: Iterable[Tuple[str, dict]]) -> dict:
    """
    Top three boards built from each user's stored `positionStats`.

    Args:
        users: (document id, user document) pairs; the id stands in for a
            missing nickname.
    """
    rows = []
    for doc_id, user in users:
        position_stats = user.get("positionStats") or {}
        wins = sum(int(p.get("wins") or 0) for p in position_stats.values())
        losses = sum(int(p.get("losses") or 0) for p in position_stats.values())
        games = wins + losses
        row = {
            NICKNAME_KEY: user.get("nickname") or doc_id,
            "games": games,
            "wins": wins,
            "winRate": wins / games if games else 0,
        }
        for position in POSITIONS:
            row[position] = int((position_stats.get(position) or {}).get("wins") or 0)
        rows.append(row)

    def board(key: str, candidates: List[dict]) -> List[dict]:
        return [
            {NICKNAME_KEY: r[NICKNAME_KEY], "value": r[key]}
            for r in _top(candidates, lambda r: r[key])
        ]

    result = {
        MOST_GAMES_KEY: board("games", rows),
        MOST_WINS_KEY: board("wins", rows),
        WIN_RATE_KEY: board(
            "winRate", [r for r in rows if r["games"] >= WIN_RATE_MIN_GAMES]
        ),
    }
    for position in POSITIONS:
        result[position] = board(position, rows)
    return result
