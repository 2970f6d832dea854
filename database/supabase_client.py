"""
Supabase 데이터베이스 클라이언트
"""
from typing import Optional

from loguru import logger
from supabase import create_client, Client


# 싱글톤 클라이언트
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Supabase 클라이언트 인스턴스 반환 (싱글톤)
    동아리 테이블 조회와 썸네일 Storage 업로드에 공통으로 사용
    """
    from app.club.config import get_club_settings

    global _supabase_client
    if _supabase_client is None:
        settings = get_club_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("SUPABASE_URL과 SUPABASE_KEY 환경변수를 설정해주세요")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY
        )
        logger.info("Supabase 클라이언트 초기화 완료")
    return _supabase_client


def reset_supabase_client() -> None:
    """싱글톤 초기화 (설정 변경 후 재연결)"""
    global _supabase_client
    _supabase_client = None
