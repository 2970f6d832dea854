"""
Club Errors

동아리 API 에러 분류 및 `{"error": ...}` 응답 변환
"""

from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class ClubError(Exception):
    """동아리 API 기본 에러"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClubError):
    """필수 값 누락 등 요청 검증 실패"""
    status_code = 400


class ConflictError(ClubError):
    """중복 초대/가입, 허용되지 않는 역할 변경"""
    status_code = 400


class NotFoundError(ClubError):
    """대상이 없거나 호출자 소유가 아님"""
    status_code = 404


class BackendError(ClubError):
    """데이터/스토리지 백엔드 오류"""
    status_code = 500


class ThumbnailUploadError(BackendError):
    """썸네일 Storage 업로드 실패"""


@contextmanager
def backend_errors(route: str):
    """
    핸들러 본문을 감싸 분류되지 않은 예외를 BackendError(500)로 변환

    원본 메시지를 그대로 전달하고 라우트 태그와 함께 로깅합니다.
    """
    try:
        yield
    except ClubError as e:
        if e.status_code >= 500:
            logger.error(f"{route} 오류: {e.message}")
        raise
    except Exception as e:
        logger.error(f"{route} 오류: {e}")
        raise BackendError(getattr(e, "message", None) or str(e)) from e


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_club_error(request: Request, exc: ClubError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI 파라미터 검증 실패도 400 + error 형식으로"""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        if loc:
            fields.append(".".join(loc))
    if fields:
        message = f"{', '.join(fields)} 값이 올바르지 않습니다."
    else:
        message = "요청 형식이 올바르지 않습니다."
    return error_response(400, message)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} 오류: {exc}")
    return error_response(500, str(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClubError, handle_club_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
