import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings

QUIET_PREFIXES = ("/health", "/favicon.ico")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 HTTP 요청을 로깅하는 미들웨어.

    기록 항목: 메서드, 경로, 클라이언트 IP, 상태코드, 처리시간(ms)
    업로드는 외부 API를 세 번 거치므로 느린 요청 기준은 설정값(SLOW_REQUEST_MS)을 쓴다.
    헬스체크 요청은 DEBUG로만 남긴다.
    """

    def __init__(self, app, slow_threshold_ms: int | None = None):
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms or settings.SLOW_REQUEST_MS

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        line = f"{request.method} {request.url.path} | {client_ip} | {response.status_code} | {elapsed_ms:.0f}ms"

        if request.url.path.startswith(QUIET_PREFIXES):
            logger.debug(line)
        elif elapsed_ms > self.slow_threshold_ms:
            logger.warning(f"{line} (slow)")
        else:
            logger.info(line)

        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.0f}"
        return response
