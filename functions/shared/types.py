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

from enum import StrEnum
from dataclasses import dataclass, field
from typing import Any, List, Optional


class Role(StrEnum):
    """User roles as stored in the `users` collection."""

    SUPER_ADMIN = "총관리자"
    ADMIN = "관리자"
    MEMBER = "일반유저"


class PartyType(StrEnum):
    FLEX_RANK = "자유랭크"
    DUO_RANK = "듀오랭크"
    OTHER = "기타"


class ScrimStatus(StrEnum):
    RECRUITING = "모집중"
    TEAM_BUILDING = "팀 구성중"
    IN_GAME = "경기중"
    FINISHED = "종료"


class ScrimType(StrEnum):
    NORMAL = "일반"
    FEARLESS = "피어리스"
    ARAM = "칼바람"


class TeamColor(StrEnum):
    BLUE = "blue"
    RED = "red"


@dataclass
class PartyMember:
    email: str
    positions: List[str] = field(default_factory=list)


@dataclass
class Party:
    """A queue-together group. The first member is the party leader."""

    party_type: str
    party_name: str
    max_members: int
    members_data: List[PartyMember] = field(default_factory=list)
    waiting_data: List[PartyMember] = field(default_factory=list)
    created_at: Any = None
    required_tier: Optional[str] = None
    start_time: Optional[str] = None


@dataclass
class Applicant:
    """A scrim participant, as applicant, waitlisted player or team member."""

    email: str
    nickname: str = ""
    tier: str = ""
    positions: List[str] = field(default_factory=list)
    champion: Optional[str] = None
    assigned_position: Optional[str] = None
    team: Optional[str] = None


@dataclass
class ChampionPick:
    email: str
    champion: str
    position: Optional[str] = None


@dataclass
class MatchChampionRecord:
    """Champions used in one game of a scrim (drives fearless bans)."""

    match_id: str
    match_date: Any
    blue_team_champions: List[ChampionPick] = field(default_factory=list)
    red_team_champions: List[ChampionPick] = field(default_factory=list)


@dataclass
class Scrim:
    scrim_name: str
    creator_email: str
    scrim_type: str
    status: str = ScrimStatus.RECRUITING
    created_at: Any = None
    start_time: Any = None
    applicants: List[Applicant] = field(default_factory=list)
    waitlist: List[Applicant] = field(default_factory=list)
    blue_team: List[Applicant] = field(default_factory=list)
    red_team: List[Applicant] = field(default_factory=list)
    winning_team: Optional[str] = None
    match_champion_history: List[MatchChampionRecord] = field(default_factory=list)
