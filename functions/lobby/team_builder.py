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

import re
from dataclasses import replace
from typing import Dict, List, Optional

from shared.constants import POSITIONS
from shared.types import Applicant

# Matches e.g. "MID (1순위)" -> ("MID", "1").
_PREFERENCE_PATTERN = re.compile(r"^\s*([A-Za-z]+)\s*(?:\((\d+)[^)]*\))?\s*$")


def parse_preference(value: str) -> tuple[str, Optional[int]]:
    """Splits a stored preference like "MID (1순위)" into ("MID", 1)."""
    match = _PREFERENCE_PATTERN.match(value or "")
    if not match:
        return (value or "").split("(")[0].strip().upper(), None
    rank = int(match.group(2)) if match.group(2) else None
    return match.group(1).upper(), rank


def preferred_positions(player: Applicant) -> List[str]:
    """
    Lane positions a player listed, best-ranked first.

    "ALL" is not a lane and is dropped; unranked entries keep their order
    after the ranked ones.
    """
    ranked = []
    for index, value in enumerate(player.positions):
        name, rank = parse_preference(value)
        if name in POSITIONS:
            ranked.append((rank if rank is not None else len(POSITIONS) + index, name))
    ranked.sort(key=lambda item: item[0])
    seen = []
    for _, name in ranked:
        if name not in seen:
            seen.append(name)
    return seen


def assign_positions(team: List[Applicant]) -> List[Applicant]:
    """
    Places each player of a team into a lane slot.

    Existing `assigned_position` values win when the slot is still free. Then
    each slot, in lane order, goes to the first unplaced player who listed
    it; whoever is left fills the remaining slots in order. Returns copies
    ordered by lane, with `assigned_position` set.
    """
    slots: Dict[str, Applicant] = {}
    unplaced: List[Applicant] = []

    for player in team:
        wanted = player.assigned_position
        if wanted in POSITIONS and wanted not in slots:
            slots[wanted] = player
        else:
            unplaced.append(player)

    for position in POSITIONS:
        if position in slots:
            continue
        for player in unplaced:
            if position in preferred_positions(player):
                slots[position] = player
                unplaced.remove(player)
                break

    for player in list(unplaced):
        free = next((p for p in POSITIONS if p not in slots), None)
        if free is None:
            break
        slots[free] = player
        unplaced.remove(player)

    assigned = [
        replace(slots[position], assigned_position=position)
        for position in POSITIONS
        if position in slots
    ]
    # More players than slots only happens on malformed input; keep them.
    assigned.extend(replace(p, assigned_position=None) for p in unplaced)
    return assigned
