"""
동아리 회원 관리 API 서버 메인
"""
import argparse
import sys

import uvicorn
from loguru import logger


# 로깅 설정
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/club_api_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def main():
    """메인 함수"""
    parser = argparse.ArgumentParser(description="동아리 회원 관리 API 서버")
    parser.add_argument("--host", default="0.0.0.0", help="바인드 주소")
    parser.add_argument("--port", type=int, default=8000, help="포트")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="코드 변경 시 자동 재시작 (개발용)"
    )

    args = parser.parse_args()

    logger.info(f"API 서버 시작: {args.host}:{args.port}")
    uvicorn.run(
        "app.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
