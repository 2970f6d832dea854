"""
Club Router

동아리 관리 API
- 내 동아리 목록 / 동아리 생성 (썸네일 업로드)
- 동아리 정보 / 회원 명단
- 초대 (후보 검색, 생성, 목록, 수락/거절)
- 임원 직함 / 직책·졸업 변경
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from .dependencies import (
    CallerContext,
    get_caller,
    get_club_service,
    resolve_profile_id
)
from .errors import ValidationError, backend_errors
from .models import (
    CandidateUser,
    ClubInfo,
    ClubRoster,
    ClubSummary,
    ErrorResponse,
    InvitationResponseRequest,
    InvitationSummary,
    InviteRequest,
    PositionGraduationUpdate,
    RosterMember
)
from .service import ClubService
from .storage import ThumbnailUpload

router = APIRouter(
    prefix="/club",
    tags=["Club"],
    dependencies=[Depends(get_caller)],
    responses={
        400: {"model": ErrorResponse, "description": "요청 값 오류"},
        401: {"model": ErrorResponse, "description": "인증 필요"},
        500: {"model": ErrorResponse, "description": "백엔드 오류"},
    }
)


# =============================================
# 내 동아리 / 동아리 생성
# =============================================

async def read_thumbnail(
    thumbnail: Optional[UploadFile],
    service: ClubService
) -> Optional[ThumbnailUpload]:
    """
    업로드된 썸네일 읽기

    크기를 먼저 확인한 뒤 내용을 읽습니다.
    이름도 내용도 없는 파트(파일을 고르지 않은 폼)는 썸네일 없음으로 처리하고,
    내용이 있는데 파일 이름이 없으면 400을 반환합니다.
    """
    if thumbnail is None:
        return None

    filename = (thumbnail.filename or "").strip()
    if not filename:
        if thumbnail.size == 0:
            return None
        raise ValidationError("썸네일 파일 이름이 필요합니다.")

    if thumbnail.size is not None:
        service.ensure_thumbnail_size(thumbnail.size)

    content = await thumbnail.read()
    return ThumbnailUpload(content, thumbnail.content_type, filename)


@router.get("", response_model=List[ClubSummary])
async def get_clubs(
    profile_id: Optional[str] = Query(None, description="인증 없는 요청에서만 사용"),
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """
    내 동아리 목록

    가입 완료(active)된 동아리를 ord 순서로 조회합니다.
    """
    with backend_errors("GET /api/club"):
        return service.list_clubs(resolve_profile_id(caller, profile_id))


@router.post("", status_code=201)
async def create_club(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    profile_id: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """
    동아리 생성 (multipart)

    썸네일(thumbnail)은 선택입니다. 생성자는 회장으로 등록됩니다.
    중간 단계가 실패하면 생성된 동아리는 삭제됩니다.
    """
    with backend_errors("POST /api/club"):
        upload = await read_thumbnail(thumbnail, service)
        return service.create_club(
            resolve_profile_id(caller, profile_id),
            name,
            description=description,
            location=location,
            thumbnail=upload
        )


# =============================================
# 동아리 정보 / 회원 명단
# =============================================

@router.get(
    "/info",
    response_model=ClubInfo,
    responses={404: {"model": ErrorResponse, "description": "동아리 없음"}}
)
async def get_club_info(
    club_id: Optional[str] = Query(None, alias="clubId"),
    service: ClubService = Depends(get_club_service)
):
    """동아리 이름/썸네일"""
    with backend_errors("GET /api/club/info"):
        return service.get_club_info(club_id)


@router.get("/members", response_model=ClubRoster)
async def get_club_members(
    club_id: Optional[str] = Query(None, alias="clubId"),
    profile_id: Optional[str] = Query(None, description="본인 표시용 (인증 없는 요청)"),
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """
    회원 명단

    임원(회장 포함) / 일반 / 졸업 회원으로 나누어 반환합니다.
    """
    with backend_errors("GET /api/club/members"):
        return service.list_members(club_id, resolve_profile_id(caller, profile_id))


# =============================================
# 초대
# =============================================

@router.get("/search-users", response_model=List[CandidateUser])
async def search_users(
    email: Optional[str] = Query(None),
    club_id: Optional[str] = Query(None, alias="clubId"),
    service: ClubService = Depends(get_club_service)
):
    """이메일로 초대 후보 검색 (최대 10명, 이미 초대/가입 여부 표시)"""
    with backend_errors("GET /api/club/search-users"):
        return service.search_candidates(email, club_id)


@router.post("/invite", status_code=201)
async def invite_member(
    body: InviteRequest,
    service: ClubService = Depends(get_club_service)
):
    """동아리 초대"""
    with backend_errors("POST /api/club/invite"):
        invitation = service.invite(body.club_id, body.profile_id)
        return {"message": "초대를 보냈습니다.", "invitation": invitation}


@router.get("/invitations", response_model=List[InvitationSummary])
async def get_invitations(
    profile_id: Optional[str] = Query(None, description="인증 없는 요청에서만 사용"),
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """받은 초대 목록 (최신순)"""
    with backend_errors("GET /api/club/invitations"):
        return service.list_invitations(resolve_profile_id(caller, profile_id))


@router.patch(
    "/invitations/{invitation_id}",
    responses={404: {"model": ErrorResponse, "description": "초대 없음"}}
)
async def respond_to_invitation(
    invitation_id: str,
    body: InvitationResponseRequest,
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """
    초대 수락/거절

    action: accept (가입 완료) | reject (초대 삭제)
    """
    with backend_errors(f"PATCH /api/club/invitations/{invitation_id}"):
        return service.respond_to_invitation(
            invitation_id,
            body.action,
            resolve_profile_id(caller, body.profile_id)
        )


# =============================================
# 임원 직함 / 직책·졸업 변경
# =============================================

@router.get("/officers", response_model=List[str])
async def get_officer_titles(
    club_id: Optional[str] = Query(None, alias="clubId"),
    service: ClubService = Depends(get_club_service)
):
    """동아리 임원 직함 목록"""
    with backend_errors("GET /api/club/officers"):
        return service.list_officer_titles(club_id)


@router.patch(
    "/positions-graduation",
    response_model=RosterMember,
    responses={404: {"model": ErrorResponse, "description": "회원 없음"}}
)
async def update_position_graduation(
    body: PositionGraduationUpdate,
    caller: Optional[CallerContext] = Depends(get_caller),
    service: ClubService = Depends(get_club_service)
):
    """
    회원 직책/졸업 여부 변경

    position: "회장" | "일반" | 임원 직함
    graduation: "졸업" | "재학"
    """
    with backend_errors("PATCH /api/club/positions-graduation"):
        return service.update_position_graduation(
            body.club_id,
            body.profile_id,
            position=body.position,
            graduation=body.graduation,
            viewer_id=caller.profile_id if caller else None
        )
