from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from core.config import settings
from core.exceptions import ConfigurationError
from model.database import create_db_and_tables
from service.pipeline import PipelineConfig, UploadPipeline
from utility.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    setup_logger(settings.LOG_LEVEL)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")

    create_db_and_tables()
    logger.info(f"Database ready ({settings.DATABASE_URL})")

    # 설정은 여기서 한 번만 검증한다. 실패해도 갤러리는 열어 두고,
    # 업로드 요청은 외부 호출 없이 ConfigurationError로 응답한다.
    app.state.settings = settings
    app.state.pipeline = None
    app.state.config_error = None
    try:
        config = PipelineConfig.from_settings(settings)
        app.state.pipeline = UploadPipeline.from_config(config)
        logger.info(f"Upload pipeline ready (analysis_mode={config.analysis_mode})")
    except ConfigurationError as e:
        app.state.config_error = e
        logger.error(f"Upload pipeline disabled: {e.message}")

    yield

    # === 종료 ===
    logger.info("Shutting down")
