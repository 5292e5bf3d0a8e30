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

import unittest

from shared.types import ScrimType
from stats.player_stats import player_stats

USERS = [
    {"email": "me@x.com", "nickname": "me"},
    {"email": "rival@x.com", "nickname": "rival"},
]


def _match(scrim_id, winner, blue, red):
    return {
        "scrimId": scrim_id,
        "winningTeam": winner,
        "blueTeam": [{"email": e} for e in blue],
        "redTeam": [{"email": e} for e in red],
    }


def _history(match_id, blue, red):
    return {
        "matchId": match_id,
        "blueTeamChampions": [
            {"email": e, "champion": c, "position": p} for e, c, p in blue
        ],
        "redTeamChampions": [
            {"email": e, "champion": c, "position": p} for e, c, p in red
        ],
    }


class PlayerStatsTest(unittest.TestCase):

    def setUp(self):
        self.scrims = {
            "s1": {
                "scrimType": ScrimType.NORMAL,
                "matchChampionHistory": [
                    _history(
                        "m1",
                        [("me@x.com", "Ahri", "MID")],
                        [("rival@x.com", "Zed", "MID")],
                    ),
                    _history(
                        "m2",
                        [("rival@x.com", "Yasuo", "MID")],
                        [("me@x.com", "Ahri", "MID")],
                    ),
                    _history(
                        "m3",
                        [("me@x.com", "미입력", "MID")],
                        [("ghost@x.com", "Lux", "MID")],
                    ),
                ],
            },
            "aram": {"scrimType": ScrimType.ARAM},
        }
        self.matches = [
            ("m1", _match("s1", "blue", ["me@x.com"], ["rival@x.com"])),
            ("m2", _match("s1", "blue", ["rival@x.com"], ["me@x.com"])),
            ("m3", _match("s1", "red", ["me@x.com"], ["ghost@x.com"])),
            ("m4", _match("aram", "red", ["rival@x.com"], ["me@x.com"])),
            ("m5", _match("deleted", "blue", ["me@x.com"], [])),
        ]

    def test_totals(self):
        stats = player_stats("me@x.com", self.matches, self.scrims, USERS)

        self.assertEqual(stats["totalGames"], 3)
        self.assertEqual(stats["totalWins"], 1)
        self.assertEqual(stats["totalLosses"], 2)
        self.assertEqual(
            (stats["aramGames"], stats["aramWins"], stats["aramLosses"]), (1, 1, 0)
        )

    def test_positions_and_champions(self):
        stats = player_stats("me@x.com", self.matches, self.scrims, USERS)

        self.assertEqual(stats["positions"]["MID"], {"wins": 1, "losses": 2})
        self.assertEqual(stats["positions"]["TOP"], {"wins": 0, "losses": 0})
        # Unentered picks never show up as a champion.
        self.assertEqual(stats["championStats"], {"Ahri": {"wins": 1, "losses": 1}})

    def test_matchups(self):
        stats = player_stats("me@x.com", self.matches, self.scrims, USERS)

        mid = stats["matchups"]["MID"]
        self.assertEqual(mid["rival@x.com"], {"nickname": "rival", "wins": 1, "losses": 1})
        self.assertEqual(mid["ghost@x.com"]["nickname"], "알 수 없음")

    def test_player_without_games(self):
        stats = player_stats("nobody@x.com", self.matches, self.scrims, USERS)
        self.assertEqual(stats["totalGames"], 0)
        self.assertEqual(stats["matchups"], {})


if __name__ == "__main__":
    unittest.main()
