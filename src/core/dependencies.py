from fastapi import Depends, Request
from sqlmodel import Session

from core.exceptions import ConfigurationError
from model.database import get_session
from service.catalog import CatalogStore
from service.pipeline import UploadPipeline


def get_catalog(session: Session = Depends(get_session)) -> CatalogStore:
    return CatalogStore(session)


def get_pipeline(request: Request) -> UploadPipeline:
    """lifespan에서 만든 파이프라인을 꺼낸다.

    시작 시 설정 검증이 실패했다면 그때의 ConfigurationError를 그대로 던진다.
    외부 API는 호출되지 않는다.
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        error = getattr(request.app.state, "config_error", None)
        raise error or ConfigurationError("업로드 파이프라인이 초기화되지 않았습니다")
    return pipeline
