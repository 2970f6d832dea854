"""
Club Models

동아리/회원 도메인 타입 및 Pydantic 요청/응답 모델
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================
# Enums
# =============================================

class ClubRole(str, Enum):
    """동아리 내 역할"""
    president = "president"   # 회장
    officer = "officer"       # 임원
    member = "member"         # 일반 회원


class MemberStatus(str, Enum):
    """회원 상태"""
    pending = "pending"       # 초대 대기
    active = "active"         # 가입 완료


class InvitationAction(str, Enum):
    """초대 응답"""
    accept = "accept"
    reject = "reject"


# =============================================
# 직책 (회장 / 임원(직함) / 일반)
# =============================================

PRESIDENT_LABEL = "회장"
MEMBER_LABEL = "일반"
GRADUATED_LABEL = "졸업"
ENROLLED_LABEL = "재학"


@dataclass(frozen=True)
class PresidentPosition:
    role = ClubRole.president
    officer_title = None

    @property
    def label(self) -> str:
        return PRESIDENT_LABEL


@dataclass(frozen=True)
class OfficerPosition:
    title: str
    role = ClubRole.officer

    @property
    def officer_title(self) -> str:
        return self.title

    @property
    def label(self) -> str:
        return self.title


@dataclass(frozen=True)
class MemberPosition:
    role = ClubRole.member
    officer_title = None

    @property
    def label(self) -> str:
        return MEMBER_LABEL


Position = Union[PresidentPosition, OfficerPosition, MemberPosition]


def parse_position_label(label: str) -> Position:
    """
    화면의 직책 라벨을 직책으로 변환

    "회장" → 회장, "일반" → 일반 회원, 그 외 문자열은 해당 직함의 임원
    """
    label = label.strip()
    if label == PRESIDENT_LABEL:
        return PresidentPosition()
    if label == MEMBER_LABEL:
        return MemberPosition()
    return OfficerPosition(title=label)


def position_from_row(role: Optional[str], officer_title: Optional[str]) -> Position:
    """club_members 행의 role/officer_title 조합을 직책으로 변환"""
    if role == ClubRole.president.value:
        return PresidentPosition()
    if role == ClubRole.officer.value and officer_title:
        return OfficerPosition(title=officer_title)
    return MemberPosition()


def parse_graduation_label(label: str) -> bool:
    return label.strip() == GRADUATED_LABEL


def graduation_label(graduate: Optional[bool]) -> str:
    return GRADUATED_LABEL if graduate else ENROLLED_LABEL


# =============================================
# Request Models
# =============================================

class InviteRequest(BaseModel):
    """초대 생성"""
    model_config = ConfigDict(populate_by_name=True)

    club_id: Optional[Union[int, str]] = Field(default=None, alias="clubId")
    profile_id: Optional[Union[int, str]] = Field(default=None, alias="profileId")


class InvitationResponseRequest(BaseModel):
    """초대 수락/거절"""
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[str] = None  # accept | reject
    profile_id: Optional[Union[int, str]] = Field(default=None, alias="profileId")


class PositionGraduationUpdate(BaseModel):
    """직책/졸업 여부 변경"""
    model_config = ConfigDict(populate_by_name=True)

    club_id: Optional[Union[int, str]] = Field(default=None, alias="clubId")
    profile_id: Optional[Union[int, str]] = Field(default=None, alias="profileId")
    position: Optional[str] = None      # "회장" | "일반" | 임원 직함
    graduation: Optional[str] = None    # "졸업" | 그 외


# =============================================
# Response Models
# =============================================

class ClubSummary(BaseModel):
    """내 동아리 목록 항목"""
    id: Union[int, str]
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    thumbnail_url: Optional[str] = None
    members: int = 0
    ord: Optional[int] = None


class ClubInfo(BaseModel):
    """동아리 기본 정보"""
    id: Union[int, str]
    name: str
    thumbnail_url: Optional[str] = None


class RosterMember(BaseModel):
    """회원 명단 항목"""
    id: Union[int, str]
    name: Optional[str] = None
    position: str
    graduation: str
    phone: Optional[str] = None
    email: Optional[str] = None
    is_me: bool = False
    is_president: bool = False


class ClubRoster(BaseModel):
    """회원 명단 (임원 / 일반 / 졸업)"""
    officers: List[RosterMember] = []
    members: List[RosterMember] = []
    graduates: List[RosterMember] = []


class CandidateUser(BaseModel):
    """초대 후보 사용자"""
    id: Union[int, str]
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    invited: bool = False
    status: Optional[MemberStatus] = None


class InvitationSummary(BaseModel):
    """받은 초대 목록 항목"""
    id: Union[int, str]
    club_id: Union[int, str]
    club_name: Optional[str] = None
    club_thumbnail_url: Optional[str] = None
    invited_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """오류 응답"""
    error: str
