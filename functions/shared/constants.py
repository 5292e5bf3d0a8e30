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

from shared.types import PartyType

# Lane slots, in the order teams are laid out.
POSITIONS = ("TOP", "JG", "MID", "AD", "SUP")
ANY_POSITION = "ALL"

PARTY_CAPACITY = {
    PartyType.FLEX_RANK: 5,
    PartyType.DUO_RANK: 2,
    PartyType.OTHER: 10,
}
RANKED_PARTY_TYPES = (PartyType.FLEX_RANK, PartyType.DUO_RANK)
DEFAULT_PARTY_CAPACITY = 5
PARTY_WAITLIST_CAPACITY = 5

SCRIM_APPLICANT_CAPACITY = 10
SCRIM_WAITLIST_CAPACITY = 10
SCRIM_TEAM_SIZE = 5
SCRIM_CREATION_MIN_GAMES = 15

# Entered by the client when no champion was picked.
UNKNOWN_CHAMPION = "미입력"

MAX_NICKNAME_LENGTH = 32
MAX_NOTICE_TITLE_LENGTH = 200
