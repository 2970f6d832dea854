"""
Club Dependencies

인증 및 호출자(profile) 식별 의존성
"""

from typing import Optional

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt
from loguru import logger

from database.supabase_client import get_supabase_client
from .config import ClubSettings, get_club_settings
from .service import ClubService
from .storage import ThumbnailStorage


class CallerContext:
    """인증된 호출자"""

    def __init__(self, profile_id: str, email: Optional[str] = None, test_mode: bool = False):
        self.profile_id = profile_id
        self.email = email
        self.test_mode = test_mode


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _verify_token(token: str, settings: ClubSettings) -> CallerContext:
    """
    액세스 토큰 검증

    SUPABASE_JWT_SECRET이 있으면 로컬에서 서명 검증(sub = profile id),
    없으면 Supabase Auth API로 사용자 조회
    """
    if settings.SUPABASE_JWT_SECRET:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False}
        )
        profile_id = payload.get("sub")
        if not profile_id:
            raise JWTError("sub 클레임이 없습니다")
        return CallerContext(profile_id=profile_id, email=payload.get("email"))

    user_response = get_supabase_client().auth.get_user(token)
    if not user_response or not user_response.user:
        raise JWTError("사용자를 찾을 수 없습니다")
    user = user_response.user
    return CallerContext(profile_id=user.id, email=getattr(user, "email", None))


async def get_caller(request: Request) -> Optional[CallerContext]:
    """
    현재 호출자 조회

    테스트 모드:
    - 환경변수 CLUB_TEST_MODE=1 (서버 설정으로만 켤 수 있음)
    - CLUB_TEST_PROFILE_ID 사용자로 자동 로그인

    CLUB_REQUIRE_AUTH=0 이면 토큰 없는 요청은 호출자 없이 통과합니다.
    """
    settings = get_club_settings()

    if settings.CLUB_TEST_MODE:
        logger.warning(f"테스트 모드 로그인: {settings.CLUB_TEST_PROFILE_ID}")
        return CallerContext(profile_id=settings.CLUB_TEST_PROFILE_ID, test_mode=True)

    token = _bearer_token(request)
    if not token:
        if settings.CLUB_REQUIRE_AUTH:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="인증이 필요합니다"
            )
        return None

    try:
        return _verify_token(token, settings)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="유효하지 않은 토큰입니다"
        )
    except Exception as e:
        logger.error(f"토큰 검증 오류: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"인증 오류: {str(e)}"
        )


def resolve_profile_id(caller: Optional[CallerContext], *fallbacks) -> Optional[str]:
    """
    호출자 profile id 결정

    인증된 호출자가 있으면 항상 그 값을 사용하고, 클라이언트가 보낸
    profile_id는 인증 없이 허용된 요청(CLUB_REQUIRE_AUTH=0)에서만 사용합니다.
    """
    if caller is not None:
        return caller.profile_id
    for candidate in fallbacks:
        if candidate:
            logger.warning(f"인증 없는 요청 - 클라이언트 profile_id 사용: {candidate}")
            return candidate
    return None


def get_club_service() -> ClubService:
    client = get_supabase_client()
    return ClubService(client, ThumbnailStorage(client))
