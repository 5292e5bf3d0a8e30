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

"""Role hierarchy and the permission rules shared by all handlers."""

from typing import Optional

from lobby.errors import PermissionDeniedError
from shared.constants import SCRIM_CREATION_MIN_GAMES
from shared.types import Role


def role_of(user: Optional[dict]) -> Optional[str]:
    if not user:
        return None
    return user.get("role")


def is_super_admin(role: Optional[str]) -> bool:
    return role == Role.SUPER_ADMIN


def is_admin(role: Optional[str]) -> bool:
    """True for admins and super admins."""
    return role in (Role.SUPER_ADMIN, Role.ADMIN)


def check_role_change(
    requester_role: Optional[str], target_role: Optional[str], new_role: str
) -> None:
    """
    Validates a role change against the hierarchy.

    A super admin may change anyone but another super admin and may not hand
    out the super admin role. An admin may only change members, and only to
    the member role. Nobody else may change roles.

    Raises:
        PermissionDeniedError: If the change is not allowed.
    """
    if is_super_admin(requester_role):
        if is_super_admin(target_role):
            raise PermissionDeniedError("The super admin's role cannot be changed.")
        if is_super_admin(new_role):
            raise PermissionDeniedError("The super admin role cannot be granted.")
        return
    if requester_role == Role.ADMIN:
        if is_admin(target_role):
            raise PermissionDeniedError(
                "Cannot modify a user with an equal or higher role."
            )
        if is_admin(new_role):
            raise PermissionDeniedError("Cannot grant the admin role or above.")
        return
    raise PermissionDeniedError("Permission denied.")


def can_create_scrim(
    user: Optional[dict], min_games: int = SCRIM_CREATION_MIN_GAMES
) -> bool:
    """Admins, or members with enough scrims played."""
    if not user:
        return False
    if is_admin(role_of(user)):
        return True
    return int(user.get("totalScrimsPlayed") or 0) >= min_games


def can_manage_scrim(
    role: Optional[str], email: Optional[str], creator_email: Optional[str]
) -> bool:
    return is_admin(role) or (email is not None and email == creator_email)


def can_disband_party(
    role: Optional[str], email: Optional[str], leader_email: Optional[str]
) -> bool:
    return is_admin(role) or (email is not None and email == leader_email)


def can_edit_notice(
    role: Optional[str], email: Optional[str], author_email: Optional[str]
) -> bool:
    """Super admins edit any notice; admins only their own."""
    if is_super_admin(role):
        return True
    return role == Role.ADMIN and email == author_email
