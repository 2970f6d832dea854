"""
Club Management Module

동아리 회원 관리 백엔드
- 동아리 생성 (썸네일 업로드 + 실패 시 롤백), 내 동아리 목록
- 회원 명단, 직책/졸업 관리
- 초대 생성/수락/거절
"""

from .router import router as club_router
from .models import (
    ClubRole,
    MemberStatus,
    InvitationAction
)
from .dependencies import CallerContext
from .errors import register_error_handlers
from .service import ClubService

__all__ = [
    "club_router",
    "ClubRole",
    "MemberStatus",
    "InvitationAction",
    "CallerContext",
    "register_error_handlers",
    "ClubService"
]
