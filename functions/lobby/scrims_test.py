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
from datetime import datetime, timezone

from lobby import scrims
from lobby.errors import BadRequestError, ConflictError
from lobby.scrims import ScrimAction
from shared.types import Applicant, ScrimStatus, ScrimType, TeamColor

NOW = datetime(2025, 5, 1, 20, 0, tzinfo=timezone.utc)
LANES = ["TOP", "JG", "MID", "AD", "SUP"]


def _player(i, **kwargs):
    fields = {
        "email": f"p{i}@x.com",
        "nickname": f"p{i}",
        "tier": "Gold",
        "positions": [f"{LANES[i % 5]} (1순위)"],
    }
    return Applicant(**{**fields, **kwargs})


def _scrim(scrim_type=ScrimType.NORMAL, applicants=0):
    scrim = scrims.new_scrim(
        scrim_name="friday", creator_email="host@x.com", scrim_type=scrim_type
    )
    for i in range(applicants):
        scrims.apply(scrim, _player(i))
    return scrim


def _in_game(scrim_type=ScrimType.NORMAL):
    scrim = _scrim(scrim_type, applicants=10)
    scrims.start_team_building(scrim)
    players = [_player(i) for i in range(10)]
    scrims.start_game(scrim, players[:5], players[5:], NOW)
    return scrim


class ApplicationTest(unittest.TestCase):

    def test_apply_until_full(self):
        scrim = _scrim(applicants=10)
        with self.assertRaises(BadRequestError):
            scrims.apply(scrim, _player(10))

    def test_duplicate_application(self):
        scrim = _scrim(applicants=1)
        with self.assertRaises(ConflictError):
            scrims.apply(scrim, _player(0))

    def test_leave_promotes_waitlist_head(self):
        scrim = _scrim(applicants=10)
        scrims.apply_waitlist(scrim, _player(10))
        scrims.apply_waitlist(scrim, _player(11))

        promoted = scrims.leave(scrim, "p3@x.com")

        self.assertEqual(promoted.email, "p10@x.com")
        self.assertEqual(len(scrim.applicants), 10)
        self.assertEqual([w.email for w in scrim.waitlist], ["p11@x.com"])

    def test_waitlist_rejects_applicants(self):
        scrim = _scrim(applicants=1)
        with self.assertRaises(ConflictError):
            scrims.apply_waitlist(scrim, _player(0))

    def test_waitlist_rejects_team_members(self):
        scrim = _in_game()
        scrims.reset_to_team_building(scrim)
        with self.assertRaises(ConflictError):
            scrims.apply_waitlist(scrim, _player(0))

        scrims.remove_member(scrim, "p9@x.com")

        rostered = [p.email for p in scrim.applicants + scrim.blue_team + scrim.red_team]
        self.assertEqual(rostered.count("p0@x.com"), 1)

    def test_waitlist_capacity(self):
        scrim = _scrim()
        for i in range(10):
            scrims.apply_waitlist(scrim, _player(i))
        with self.assertRaises(BadRequestError):
            scrims.apply_waitlist(scrim, _player(10))

    def test_apply_moves_player_off_waitlist(self):
        scrim = _scrim()
        scrims.apply_waitlist(scrim, _player(0))
        scrims.apply(scrim, _player(0))
        self.assertEqual(scrim.waitlist, [])
        self.assertEqual([a.email for a in scrim.applicants], ["p0@x.com"])


class TransitionTest(unittest.TestCase):

    def test_team_building_needs_ten_applicants(self):
        scrim = _scrim(applicants=9)
        with self.assertRaises(BadRequestError):
            scrims.start_team_building(scrim)
        scrims.apply(scrim, _player(9))
        scrims.start_team_building(scrim)
        self.assertEqual(scrim.status, ScrimStatus.TEAM_BUILDING)

    def test_actions_are_checked_against_status(self):
        scrim = _scrim()
        with self.assertRaises(BadRequestError):
            scrims.check_transition(scrim, ScrimAction.START_GAME)
        with self.assertRaises(BadRequestError):
            scrims.check_transition(scrim, ScrimAction.END_GAME)
        scrims.check_transition(scrim, ScrimAction.APPLY)
        scrims.check_transition(scrim, ScrimAction.REMOVE_MEMBER)

    def test_apply_rejected_in_game(self):
        scrim = _in_game()
        with self.assertRaises(BadRequestError):
            scrims.check_transition(scrim, ScrimAction.APPLY)

    def test_update_teams_rejects_overlap(self):
        scrim = _scrim(applicants=10)
        scrims.start_team_building(scrim)
        with self.assertRaises(BadRequestError):
            scrims.update_teams(scrim, [_player(0)], [_player(0)])

    def test_update_teams_allows_partial_teams(self):
        scrim = _scrim(applicants=10)
        scrims.start_team_building(scrim)
        scrims.update_teams(scrim, [_player(0), _player(1)], [_player(2)])
        self.assertEqual(len(scrim.blue_team), 2)

    def test_start_game_needs_five_each(self):
        scrim = _scrim(applicants=10)
        scrims.start_team_building(scrim)
        players = [_player(i) for i in range(10)]
        with self.assertRaises(BadRequestError):
            scrims.start_game(scrim, players[:4], players[4:], NOW)

    def test_start_game_assigns_positions_and_clears_applicants(self):
        scrim = _in_game()
        self.assertEqual(scrim.status, ScrimStatus.IN_GAME)
        self.assertEqual(scrim.start_time, NOW)
        self.assertEqual(scrim.applicants, [])
        self.assertEqual([p.assigned_position for p in scrim.blue_team], LANES)
        self.assertTrue(all(p.team == TeamColor.RED for p in scrim.red_team))

    def test_reset_to_team_building_strips_result(self):
        scrim = _in_game()
        blue = [_player(i, champion="Ahri") for i in range(5)]
        red = [_player(i, champion="Zed") for i in range(5, 10)]
        scrims.end_game(scrim, "blue", blue, red)

        scrims.reset_to_team_building(scrim)

        self.assertEqual(scrim.status, ScrimStatus.TEAM_BUILDING)
        self.assertIsNone(scrim.winning_team)
        self.assertIsNone(scrim.start_time)
        self.assertTrue(all(p.champion is None for p in scrim.blue_team + scrim.red_team))

    def test_reset_to_recruiting_merges_players(self):
        scrim = _scrim(applicants=10)
        scrims.start_team_building(scrim)
        moved = _player(0, nickname="renamed")
        scrims.update_teams(scrim, [moved], [_player(5)])

        scrims.reset_to_recruiting(scrim)

        self.assertEqual(scrim.status, ScrimStatus.RECRUITING)
        self.assertEqual(len(scrim.applicants), 10)
        self.assertEqual(scrim.blue_team, [])
        # The later (team) entry wins.
        self.assertEqual(scrim.applicants[0].nickname, "renamed")


class RemoveMemberTest(unittest.TestCase):

    def test_recruiting_refills_applicants(self):
        scrim = _scrim(applicants=10)
        scrims.apply_waitlist(scrim, _player(10))
        promoted = scrims.remove_member(scrim, "p0@x.com")
        self.assertEqual(promoted.email, "p10@x.com")
        self.assertNotIn("p0@x.com", [a.email for a in scrim.applicants])

    def test_team_building_refills_short_team(self):
        scrim = _scrim(applicants=10)
        scrims.apply_waitlist(scrim, _player(10))
        scrims.start_team_building(scrim)
        players = [_player(i) for i in range(10)]
        scrims.update_teams(scrim, players[:5], players[5:])

        promoted = scrims.remove_member(scrim, "p1@x.com")

        self.assertEqual(promoted.email, "p10@x.com")
        self.assertEqual(len(scrim.blue_team), 4)
        self.assertIn("p10@x.com", [a.email for a in scrim.applicants])

    def test_in_game_does_not_promote(self):
        scrim = _in_game()
        scrims.apply_waitlist(scrim, _player(10))
        self.assertIsNone(scrims.remove_member(scrim, "p1@x.com"))

    def test_requires_email(self):
        with self.assertRaises(BadRequestError):
            scrims.remove_member(_scrim(), "")


class EndGameTest(unittest.TestCase):

    def test_rejects_unknown_winner(self):
        scrim = _in_game()
        with self.assertRaises(BadRequestError):
            scrims.end_game(scrim, "green", scrim.blue_team, scrim.red_team)

    def test_records_result_and_history(self):
        scrim = _in_game()
        blue = [_player(i, champion="Ahri", assigned_position=LANES[i]) for i in range(5)]
        red = [
            _player(i, champion="미입력", assigned_position=LANES[i - 5])
            for i in range(5, 10)
        ]
        scrims.end_game(scrim, "red", blue, red)
        record = scrims.record_match(scrim, "m1", scrim.start_time)

        self.assertEqual(scrim.status, ScrimStatus.FINISHED)
        self.assertEqual(scrim.winning_team, TeamColor.RED)
        self.assertEqual(record.match_id, "m1")
        self.assertEqual(record.blue_team_champions[0].champion, "Ahri")
        self.assertEqual(record.blue_team_champions[0].position, "TOP")
        self.assertEqual(len(scrim.match_champion_history), 1)

    def test_fearless_blocks_repeated_champions(self):
        scrim = _in_game(ScrimType.FEARLESS)
        blue = [_player(i, champion=f"B{i}") for i in range(5)]
        red = [_player(i, champion=f"R{i}") for i in range(5, 10)]
        scrims.end_game(scrim, "blue", blue, red)
        scrims.record_match(scrim, "m1", NOW)

        scrims.reset_to_team_building(scrim)
        players = [_player(i) for i in range(10)]
        scrims.start_game(scrim, players[:5], players[5:], NOW)
        with self.assertRaises(BadRequestError):
            scrims.end_game(
                scrim,
                "blue",
                [_player(0, champion="R5")] + blue[1:],
                red,
            )

        scrims.reset_fearless(scrim)
        self.assertEqual(scrim.match_champion_history, [])


class PlayerResultTest(unittest.TestCase):

    def test_counts_game_champion_and_position(self):
        user = {"totalScrimsPlayed": 3, "championStats": {"Ahri": {"wins": 1, "losses": 0}}}
        player = _player(0, champion="Ahri", assigned_position="MID")

        updates = scrims.player_result_updates(user, player, True, ScrimType.NORMAL)

        self.assertEqual(updates["totalScrimsPlayed"], 4)
        self.assertEqual(updates["championStats"]["Ahri"], {"wins": 2, "losses": 0})
        self.assertEqual(updates["positionStats"]["MID"], {"wins": 1, "losses": 0})
        # The stored document is left untouched.
        self.assertEqual(user["championStats"]["Ahri"]["wins"], 1)

    def test_aram_and_placeholder_champion(self):
        player = _player(0, champion="미입력", assigned_position="MID")
        updates = scrims.player_result_updates({}, player, False, ScrimType.ARAM)
        self.assertEqual(updates, {"totalScrimsPlayed": 1})


class DocumentTest(unittest.TestCase):

    def test_invalid_players_are_dropped(self):
        scrim = scrims.scrim_from_document(
            {
                "scrimName": "s",
                "creatorEmail": "host@x.com",
                "scrimType": "일반",
                "status": "모집중",
                "applicants": [
                    None,
                    "p1@x.com",
                    {"nickname": "no email"},
                    {"email": "p2@x.com", "positions": ["MID (1순위)"], "assignedPosition": "MID"},
                ],
                "matchChampionHistory": [
                    {
                        "matchId": "m1",
                        "blueTeamChampions": [{"playerEmail": "p2@x.com", "champion": "Ahri"}],
                    }
                ],
            }
        )
        self.assertEqual([a.email for a in scrim.applicants], ["p2@x.com"])
        self.assertEqual(scrim.applicants[0].assigned_position, "MID")
        self.assertEqual(
            scrim.match_champion_history[0].blue_team_champions[0].email, "p2@x.com"
        )

    def test_document_round_trip_keeps_camel_case(self):
        scrim = _in_game()
        doc = scrims.scrim_to_document(scrim)
        self.assertEqual(doc["status"], ScrimStatus.IN_GAME)
        self.assertEqual(doc["blueTeam"][0]["assignedPosition"], "TOP")
        self.assertNotIn("champion", doc["blueTeam"][0])
        self.assertEqual(scrims.scrim_from_document(doc), scrim)

    def test_parse_action(self):
        self.assertEqual(scrims.parse_action("reset_peerless"), ScrimAction.RESET_FEARLESS)
        with self.assertRaises(BadRequestError):
            scrims.parse_action("dance")


if __name__ == "__main__":
    unittest.main()
