"""
Club Config - 동아리 백엔드 설정
"""
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class ClubSettings(BaseSettings):
    """동아리 관리 설정"""

    # Supabase
    SUPABASE_URL: str = Field(default="", description="Supabase Project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service/anon key")
    SUPABASE_JWT_SECRET: str = Field(default="", description="액세스 토큰 서명 키 (없으면 auth API로 검증)")

    # JWT
    JWT_ALGORITHM: str = "HS256"

    # 썸네일 Storage
    CLUB_THUMBNAIL_BUCKET: str = "club-thumbnails"
    CLUB_THUMBNAIL_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB

    # 이메일 검색 결과 상한
    CLUB_SEARCH_LIMIT: int = 10

    # 인증
    CLUB_REQUIRE_AUTH: bool = True
    CLUB_TEST_MODE: bool = False
    CLUB_TEST_PROFILE_ID: str = "00000000-0000-0000-0000-000000000001"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_club_settings() -> ClubSettings:
    return ClubSettings()
