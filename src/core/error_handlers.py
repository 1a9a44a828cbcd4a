"""전역 예외 핸들러.

AppException 계열 예외와 요청 검증 실패를 잡아 일관된 JSON 응답으로 변환한다.
main.py에서 app.add_exception_handler()로 등록한다.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException, InvalidInput


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.error_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.error_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "error": exc.message,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 본문/파라미터 검증 실패도 같은 {"error_code", "error"} 형식으로 돌려준다."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg = err.get("msg", "")
        messages.append(f"{loc}: {msg}" if loc else msg)
    message = "; ".join(messages) or "요청 형식이 올바르지 않습니다"

    logger.info(f"{request.method} {request.url.path} -> INVALID_INPUT: {message}")
    return JSONResponse(
        status_code=400,
        content={
            "error_code": InvalidInput.error_code,
            "error": message,
        },
    )
