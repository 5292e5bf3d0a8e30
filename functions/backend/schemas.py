"""
Pydantic schemas for the community API.

Request and response bodies use camelCase on the wire, matching the stored
documents; Python code uses the snake_case field names.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.constants import MAX_NICKNAME_LENGTH, MAX_NOTICE_TITLE_LENGTH
from shared.types import Role, ScrimType, TeamColor


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    message: str


# Users


class ProfileRequest(CamelModel):
    nickname: str = Field(..., min_length=1, max_length=MAX_NICKNAME_LENGTH)


class UserSummary(CamelModel):
    email: str
    nickname: str


class AdminCreateUserRequest(CamelModel):
    email: str
    password: str = Field(..., min_length=6)
    nickname: str = Field(..., min_length=1, max_length=MAX_NICKNAME_LENGTH)
    role: Role = Role.MEMBER
    requester_email: str


class AdminRoleRequest(CamelModel):
    user_id: str
    new_role: Role
    requester_email: str


class AdminNicknameRequest(CamelModel):
    user_id: str
    new_nickname: str = Field(..., min_length=1, max_length=MAX_NICKNAME_LENGTH)
    requester_email: str


class AdminDeleteUserRequest(CamelModel):
    user_id: str
    user_email: str
    requester_email: str


# Parties


class PartyMemberData(CamelModel):
    email: str
    positions: List[str] = Field(default_factory=list)


class CreatePartyRequest(CamelModel):
    party_name: str = Field(..., min_length=1)
    creator_email: str = Field(..., min_length=1)
    party_type: str = Field(..., min_length=1)
    required_tier: Optional[str] = None
    start_time: Optional[str] = None


class CreatePartyResponse(MessageResponse):
    party_id: str


class PartyMembershipRequest(CamelModel):
    party_id: str
    user_data: PartyMemberData
    action: str


class PartyPatchRequest(CamelModel):
    party_id: str
    user_email: str
    action: str
    new_positions: Optional[List[str]] = None
    new_party_name: Optional[str] = None
    new_required_tier: Optional[str] = None
    new_start_time: Optional[str] = None


class PartyDeleteRequest(CamelModel):
    party_id: str
    requester_email: str


# Scrims


class ApplicantData(CamelModel):
    email: str
    nickname: str = ""
    tier: str = ""
    positions: List[str] = Field(default_factory=list)
    champion: Optional[str] = None
    assigned_position: Optional[str] = None
    team: Optional[str] = None


class TeamsPayload(CamelModel):
    blue_team: List[ApplicantData] = Field(default_factory=list)
    red_team: List[ApplicantData] = Field(default_factory=list)


class CreateScrimRequest(CamelModel):
    scrim_name: str = Field(..., min_length=1)
    creator_email: str = Field(..., min_length=1)
    scrim_type: ScrimType


class CreateScrimResponse(MessageResponse):
    scrim_id: str


class ScrimActionRequest(CamelModel):
    action: str
    user_email: Optional[str] = None
    applicant_data: Optional[ApplicantData] = None
    teams: Optional[TeamsPayload] = None
    winning_team: Optional[str] = None
    champion_data: Optional[TeamsPayload] = None
    member_email_to_remove: Optional[str] = None


class ScrimRenameRequest(CamelModel):
    new_scrim_name: str = Field(..., min_length=1)
    user_email: str


class ScrimDeleteRequest(CamelModel):
    user_email: str


# Matches


class MatchChampionPatch(CamelModel):
    team: TeamColor
    player_email: str
    new_champion: str = Field(..., min_length=1)
    requester_email: str


# Notices


class CreateNoticeRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=MAX_NOTICE_TITLE_LENGTH)
    content: str = Field(..., min_length=1)
    author_email: str
    image_urls: List[str] = Field(default_factory=list)


class CreateNoticeResponse(MessageResponse):
    notice_id: str


class NoticePatchRequest(CamelModel):
    user_email: str
    title: Optional[str] = Field(default=None, min_length=1, max_length=MAX_NOTICE_TITLE_LENGTH)
    content: Optional[str] = None
    image_urls: Optional[List[str]] = None


class NoticeDeleteRequest(CamelModel):
    user_email: str
