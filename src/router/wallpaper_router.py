from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from core.dependencies import get_catalog, get_pipeline
from service import wallpaper_service
from service.catalog import CatalogStore
from service.pipeline import UploadPipeline

router = APIRouter(prefix="/api/wallpapers", tags=["wallpapers"])


# --- 요청/응답 스키마 ---


class UploadWallpaperRequest(BaseModel):
    image: str | None = None  # data:image/...;base64,...
    name: str | None = None
    tags: str | list[str] | None = None  # "nature, sunset" 또는 ["nature", "sunset"]


class UploadWallpaperResponse(BaseModel):
    message: str
    id: int
    name: str
    tags: list[str]
    image_url: str
    thumb_url: str


class AnalyzeRequest(BaseModel):
    image: str | None = None


class AnalyzeResponse(BaseModel):
    name: str
    tags: list[str]


class WallpaperResponse(BaseModel):
    id: int
    name: str
    tags: list[str]
    image_url: str
    thumb_url: str
    created_at: datetime


# --- 엔드포인트 ---


@router.get("/", response_model=list[WallpaperResponse])
def list_wallpapers(tag: str | None = None, catalog: CatalogStore = Depends(get_catalog)):
    """갤러리 목록 (최신순). tag를 주면 해당 태그만."""
    return catalog.list(tag=tag)


@router.get("/{wallpaper_id}", response_model=WallpaperResponse)
def get_wallpaper(wallpaper_id: int, catalog: CatalogStore = Depends(get_catalog)):
    return catalog.get(wallpaper_id)


@router.post(
    "/upload",
    response_model=UploadWallpaperResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_wallpaper(
    req: UploadWallpaperRequest,
    pipeline: UploadPipeline = Depends(get_pipeline),
    catalog: CatalogStore = Depends(get_catalog),
):
    """업로드 파이프라인 실행: 호스트 업로드 → AI 분석 → 저장.

    실패하면 전역 핸들러가 {"error_code", "error"}로 응답한다.
    """
    result = wallpaper_service.upload_wallpaper(
        pipeline, catalog, req.image, name=req.name, tags=req.tags
    )
    return UploadWallpaperResponse(
        message="월페이퍼가 업로드되었습니다",
        id=result.record_id,
        name=result.name,
        tags=result.tags,
        image_url=result.image_url,
        thumb_url=result.thumb_url,
    )


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_wallpaper(req: AnalyzeRequest, pipeline: UploadPipeline = Depends(get_pipeline)):
    """업로드 폼 미리 채우기용. 저장하지 않는다."""
    analysis = wallpaper_service.analyze_image(pipeline, req.image)
    return AnalyzeResponse(name=analysis.name, tags=analysis.tags)
