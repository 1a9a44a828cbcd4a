import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from core.config import settings
from core.error_handlers import app_exception_handler, validation_exception_handler
from core.exceptions import AppException
from core.lifespan import lifespan
from core.middleware import RequestLoggingMiddleware
from router.gallery_router import router as gallery_router
from router.wallpaper_router import router as wallpaper_router
import model.wallpaper  # noqa: F401 — 테이블 등록

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="월페이퍼 갤러리 — 외부 호스트 업로드 + AI 이름/태그 분석",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(wallpaper_router)
app.include_router(gallery_router)


@app.get("/health")
def health(request: Request):
    pipeline = getattr(request.app.state, "pipeline", None)
    config_error = getattr(request.app.state, "config_error", None)
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "upload_ready": pipeline is not None,
        "analysis_mode": pipeline.analysis_mode.value if pipeline else None,
        "config_error": config_error.message if config_error else None,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )
