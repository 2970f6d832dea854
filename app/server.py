"""
Club Membership API - FastAPI 웹 서버

데이터 소스: Supabase (clubs, club_members, club_officers, profiles + 썸네일 Storage)
"""
from fastapi import FastAPI
from loguru import logger
from dotenv import load_dotenv

from app.club import club_router, register_error_handlers
from app.openapi import install_openapi

# 환경변수 로드
load_dotenv()


def create_app() -> FastAPI:
    """FastAPI 앱 생성"""
    app = FastAPI(
        title="Club Membership API",
        description="동아리 생성, 회원 명단, 초대, 직책 관리 API",
        version="1.0.0"
    )

    register_error_handlers(app)

    # 동아리 라우터 등록
    app.include_router(club_router, prefix="/api")

    install_openapi(app)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event():
        logger.info("✅ 서버 시작 완료 - Supabase 데이터 소스 사용 중")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("서버 종료됨")

    return app


# FastAPI 앱
app = create_app()


# ==================== 서버 실행 ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
