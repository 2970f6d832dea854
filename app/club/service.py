"""
Club Service

동아리/회원 관리 서비스
clubs, club_members, club_officers, profiles 테이블과 썸네일 Storage 사용
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from supabase import Client

from .config import ClubSettings, get_club_settings
from .errors import (
    BackendError,
    ConflictError,
    NotFoundError,
    ThumbnailUploadError,
    ValidationError,
)
from .models import (
    ClubRole,
    InvitationAction,
    MemberPosition,
    MemberStatus,
    graduation_label,
    parse_graduation_label,
    parse_position_label,
    position_from_row,
)
from .saga import Compensations
from .storage import ThumbnailStorage, ThumbnailUpload

MEMBER_PROFILE_COLUMNS = (
    "profile_id, role, officer_title, graduate, ord, "
    "profile:profiles(id, name, email, phone)"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require(value: Any, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(message)


def _escape_like(value: str) -> str:
    """ilike 패턴에서 %, _ 를 문자 그대로 검색하도록 이스케이프"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ClubService:
    """동아리 관리 서비스"""

    def __init__(
        self,
        client: Client,
        storage: Optional[ThumbnailStorage] = None,
        settings: Optional[ClubSettings] = None
    ):
        self.supabase = client
        self.settings = settings or get_club_settings()
        self.storage = storage or ThumbnailStorage(client, self.settings.CLUB_THUMBNAIL_BUCKET)

    # =============================================
    # 내 동아리 목록
    # =============================================

    def list_clubs(self, profile_id) -> List[Dict[str, Any]]:
        """가입(active)된 동아리 목록 - ord 오름차순, 회원 수는 active 회원만"""
        _require(profile_id, "profile_id가 필요합니다.")

        response = self.supabase.table("club_members").select(
            "club_id, ord, "
            "club:clubs(id, name, description, location, thumbnail_url, "
            "members:club_members(count))"
        ).eq("profile_id", profile_id).eq(
            "status", MemberStatus.active.value
        ).eq(
            "club.members.status", MemberStatus.active.value
        ).order("ord").execute()

        rows = []
        for item in response.data or []:
            club = item.get("club") or {}
            counts = club.get("members") or []
            rows.append({
                "id": item["club_id"],
                "name": club.get("name"),
                "description": club.get("description"),
                "location": club.get("location"),
                "thumbnail_url": club.get("thumbnail_url"),
                "members": (counts[0].get("count") or 0) if counts else 0,
                "ord": item.get("ord"),
            })
        return rows

    # =============================================
    # 동아리 생성
    # =============================================

    def create_club(
        self,
        profile_id,
        name: Optional[str],
        description: Optional[str] = None,
        location: Optional[str] = None,
        thumbnail: Optional[ThumbnailUpload] = None
    ) -> Dict[str, Any]:
        """
        동아리 생성

        1. clubs 행 추가
        2. 썸네일이 있으면 Storage 업로드 후 thumbnail_url 갱신
        3. 생성자를 회장(active, ord=1)으로 등록

        단계가 실패하면 앞서 만든 행/파일을 역순으로 삭제하고 원래 오류를 전파합니다.
        """
        if not _blank_to_none(name) or not profile_id:
            raise ValidationError("name과 profile_id가 필요합니다.")

        if thumbnail is not None:
            self.ensure_thumbnail_size(thumbnail.size)

        with Compensations("동아리 생성") as undo:
            club_response = self.supabase.table("clubs").insert({
                "name": name.strip(),
                "description": _blank_to_none(description),
                "location": _blank_to_none(location),
                "created_by": profile_id,
            }).execute()

            if not club_response.data:
                raise BackendError("동아리 생성에 실패했습니다.")

            club = club_response.data[0]
            club_id = club["id"]
            undo.add(f"동아리 {club_id} 삭제", self._delete_club, club_id)

            if thumbnail is not None:
                club = self._attach_thumbnail(club, thumbnail, undo)

            membership_response = self.supabase.table("club_members").insert({
                "club_id": club_id,
                "profile_id": profile_id,
                "role": ClubRole.president.value,
                "status": MemberStatus.active.value,
                "officer_title": None,
                "graduate": False,
                "joined_at": _now(),
                "ord": 1,
            }).execute()

            if not membership_response.data:
                raise BackendError("회장 등록에 실패했습니다.")

        logger.info(f"동아리 생성: {club_id} ({club.get('name')}) by {profile_id}")
        return {"club": club, "membership": membership_response.data[0]}

    def ensure_thumbnail_size(self, size: int) -> None:
        max_bytes = self.settings.CLUB_THUMBNAIL_MAX_BYTES
        if size > max_bytes:
            raise ValidationError(
                f"썸네일 파일 크기는 {max_bytes // (1024 * 1024)}MB 이하여야 합니다."
            )

    def _attach_thumbnail(
        self,
        club: Dict[str, Any],
        thumbnail: ThumbnailUpload,
        undo: Compensations
    ) -> Dict[str, Any]:
        club_id = club["id"]
        try:
            path = self.storage.upload(club_id, thumbnail.content, thumbnail.content_type)
        except Exception as e:
            logger.error(f"썸네일 업로드 오류 (club {club_id}): {e}")
            raise ThumbnailUploadError(f"썸네일 업로드에 실패했습니다: {e}") from e

        undo.add(f"썸네일 {path} 삭제", self.storage.remove, path)

        public_url = self.storage.public_url(path)
        response = self.supabase.table("clubs").update({
            "thumbnail_url": public_url,
            "thumbnail_updated_at": _now(),
        }).eq("id", club_id).execute()

        if not response.data:
            raise BackendError("썸네일 정보 저장에 실패했습니다.")
        return response.data[0]

    def _delete_club(self, club_id) -> None:
        """동아리와 소속 회원 행 삭제 (이미 없으면 아무 일도 없음)"""
        self.supabase.table("club_members").delete().eq("club_id", club_id).execute()
        self.supabase.table("clubs").delete().eq("id", club_id).execute()

    # =============================================
    # 동아리 정보 / 회원 명단
    # =============================================

    def get_club_info(self, club_id) -> Dict[str, Any]:
        _require(club_id, "clubId가 필요합니다.")

        response = self.supabase.table("clubs").select(
            "id, name, thumbnail_url"
        ).eq("id", club_id).limit(1).execute()

        if not response.data:
            raise NotFoundError("동아리를 찾을 수 없습니다.")

        club = response.data[0]
        return {
            "id": club["id"],
            "name": club.get("name"),
            "thumbnail_url": club.get("thumbnail_url"),
        }

    def list_members(self, club_id, viewer_id=None) -> Dict[str, List[Dict[str, Any]]]:
        """
        회원 명단

        - officers: 회장 + 임원 (회장 먼저)
        - members: 일반 회원 (재학)
        - graduates: 일반 회원 (졸업)
        """
        _require(club_id, "clubId가 필요합니다.")

        response = self.supabase.table("club_members").select(
            MEMBER_PROFILE_COLUMNS
        ).eq("club_id", club_id).eq(
            "status", MemberStatus.active.value
        ).order("ord").execute()

        officers, members, graduates = [], [], []
        for row in response.data or []:
            projected = self._project_member(row, viewer_id)
            if row.get("role") in (ClubRole.president.value, ClubRole.officer.value):
                officers.append(projected)
            elif row.get("graduate"):
                graduates.append(projected)
            else:
                members.append(projected)

        officers.sort(key=lambda m: not m["is_president"])
        return {"officers": officers, "members": members, "graduates": graduates}

    @staticmethod
    def _project_member(row: Dict[str, Any], viewer_id=None) -> Dict[str, Any]:
        profile = row.get("profile") or {}
        profile_id = row.get("profile_id") or profile.get("id")
        position = position_from_row(row.get("role"), row.get("officer_title"))
        return {
            "id": profile_id,
            "name": profile.get("name"),
            "position": position.label,
            "graduation": graduation_label(row.get("graduate")),
            "phone": profile.get("phone"),
            "email": profile.get("email"),
            "is_me": viewer_id is not None and str(profile_id) == str(viewer_id),
            "is_president": position.role == ClubRole.president,
        }

    # =============================================
    # 초대
    # =============================================

    def search_candidates(self, email: Optional[str], club_id) -> List[Dict[str, Any]]:
        """이메일 부분 일치로 초대 후보 검색 (대소문자 무시)"""
        _require(email, "email이 필요합니다.")
        _require(club_id, "clubId가 필요합니다.")

        profiles = self.supabase.table("profiles").select(
            "id, name, email, phone"
        ).ilike("email", f"%{_escape_like(email.strip())}%").limit(
            self.settings.CLUB_SEARCH_LIMIT
        ).execute()

        candidates = profiles.data or []
        if not candidates:
            return []

        existing = self.supabase.table("club_members").select(
            "profile_id, status"
        ).eq("club_id", club_id).in_(
            "profile_id", [p["id"] for p in candidates]
        ).execute()

        status_by_profile = {
            str(row["profile_id"]): row.get("status")
            for row in existing.data or []
        }

        results = []
        for profile in candidates:
            status = status_by_profile.get(str(profile["id"]))
            results.append({
                "id": profile["id"],
                "name": profile.get("name"),
                "email": profile.get("email"),
                "phone": profile.get("phone"),
                "invited": str(profile["id"]) in status_by_profile,
                "status": status,
            })
        return results

    def invite(self, club_id, profile_id) -> Dict[str, Any]:
        """
        동아리 초대 (pending 회원 행 추가)

        ord는 동아리 내 최대값 + 1 (회원이 없으면 1)
        """
        _require(club_id, "clubId가 필요합니다.")
        _require(profile_id, "profileId가 필요합니다.")

        existing = self.supabase.table("club_members").select(
            "id, status"
        ).eq("club_id", club_id).eq("profile_id", profile_id).limit(1).execute()

        if existing.data:
            status = existing.data[0].get("status")
            if status == MemberStatus.pending.value:
                raise ConflictError("이미 초대된 사용자입니다.")
            if status == MemberStatus.active.value:
                raise ConflictError("이미 가입된 회원입니다.")

        # TODO: 동시 초대 시 같은 ord가 계산될 수 있음 - DB 함수(RPC)로 옮겨 원자적으로 처리
        response = self.supabase.table("club_members").insert({
            "club_id": club_id,
            "profile_id": profile_id,
            "role": ClubRole.member.value,
            "status": MemberStatus.pending.value,
            "graduate": False,
            "ord": self._next_ord(club_id),
            "invited_at": _now(),
        }).execute()

        if not response.data:
            raise BackendError("초대 생성에 실패했습니다.")

        logger.info(f"동아리 초대: club {club_id} → profile {profile_id}")
        return response.data[0]

    def _next_ord(self, club_id) -> int:
        response = self.supabase.table("club_members").select(
            "ord"
        ).eq("club_id", club_id).execute()

        ords = [row["ord"] for row in response.data or [] if row.get("ord") is not None]
        return max(ords, default=0) + 1

    def list_invitations(self, profile_id) -> List[Dict[str, Any]]:
        """받은 초대 목록 (최신순)"""
        _require(profile_id, "profile_id가 필요합니다.")

        response = self.supabase.table("club_members").select(
            "id, club_id, invited_at, club:clubs(name, thumbnail_url)"
        ).eq("profile_id", profile_id).eq(
            "status", MemberStatus.pending.value
        ).order("invited_at", desc=True).execute()

        invitations = []
        for row in response.data or []:
            club = row.get("club") or {}
            invitations.append({
                "id": row["id"],
                "club_id": row["club_id"],
                "club_name": club.get("name"),
                "club_thumbnail_url": club.get("thumbnail_url"),
                "invited_at": row.get("invited_at"),
            })
        return invitations

    def respond_to_invitation(self, invitation_id, action: Optional[str], profile_id) -> Dict[str, Any]:
        """초대 수락(active 전환) 또는 거절(행 삭제)"""
        _require(invitation_id, "invitationId가 필요합니다.")
        _require(action, "action이 필요합니다.")
        _require(profile_id, "profile_id가 필요합니다.")

        try:
            choice = InvitationAction(action.strip().lower())
        except ValueError:
            raise ValidationError("action은 accept 또는 reject여야 합니다.")

        found = self.supabase.table("club_members").select("*").eq(
            "id", invitation_id
        ).eq("profile_id", profile_id).eq(
            "status", MemberStatus.pending.value
        ).limit(1).execute()

        if not found.data:
            raise NotFoundError("초대를 찾을 수 없습니다.")
        invitation = found.data[0]

        if choice == InvitationAction.accept:
            response = self.supabase.table("club_members").update({
                "status": MemberStatus.active.value,
                "joined_at": _now(),
            }).eq("id", invitation_id).eq(
                "status", MemberStatus.pending.value
            ).execute()

            if not response.data:
                raise NotFoundError("초대를 찾을 수 없습니다.")

            logger.info(f"초대 수락: {invitation_id} (profile {profile_id})")
            return {"message": "초대를 수락했습니다.", "membership": response.data[0]}

        self.supabase.table("club_members").delete().eq("id", invitation_id).execute()
        logger.info(f"초대 거절: {invitation_id} (profile {profile_id})")
        return {"message": "초대를 거절했습니다.", "invitation": invitation}

    # =============================================
    # 임원 직함 / 직책·졸업 변경
    # =============================================

    def list_officer_titles(self, club_id) -> List[str]:
        _require(club_id, "clubId가 필요합니다.")

        response = self.supabase.table("club_officers").select(
            "title"
        ).eq("club_id", club_id).order("id").execute()

        return [row["title"] for row in response.data or [] if row.get("title")]

    def update_position_graduation(
        self,
        club_id,
        profile_id,
        position: Optional[str] = None,
        graduation: Optional[str] = None,
        viewer_id=None
    ) -> Dict[str, Any]:
        """
        회원 직책/졸업 여부 변경

        position: "회장" → president, "일반" → member, 그 외 → officer(직함)
        graduation: "졸업" → graduate=True, 그 외 → False
        회장을 "일반"으로 내리는 변경은 거부합니다.
        """
        _require(club_id, "clubId가 필요합니다.")
        _require(profile_id, "profileId가 필요합니다.")

        position = _blank_to_none(position)
        graduation = _blank_to_none(graduation)
        if position is None and graduation is None:
            raise ValidationError("변경할 항목이 없습니다.")

        found = self.supabase.table("club_members").select(
            MEMBER_PROFILE_COLUMNS
        ).eq("club_id", club_id).eq("profile_id", profile_id).eq(
            "status", MemberStatus.active.value
        ).limit(1).execute()

        if not found.data:
            raise NotFoundError("회원을 찾을 수 없습니다.")
        row = found.data[0]

        updates: Dict[str, Any] = {}
        if position is not None:
            new_position = parse_position_label(position)
            if row.get("role") == ClubRole.president.value and isinstance(new_position, MemberPosition):
                raise ConflictError("회장은 일반 회원으로 변경할 수 없습니다.")
            updates["role"] = new_position.role.value
            updates["officer_title"] = new_position.officer_title
        if graduation is not None:
            updates["graduate"] = parse_graduation_label(graduation)

        response = self.supabase.table("club_members").update(updates).eq(
            "club_id", club_id
        ).eq("profile_id", profile_id).execute()

        if not response.data:
            raise BackendError("회원 정보 변경에 실패했습니다.")

        logger.info(f"직책/졸업 변경: club {club_id}, profile {profile_id} → {updates}")
        updated = {**row, **response.data[0], "profile": row.get("profile")}
        return self._project_member(updated, viewer_id)
