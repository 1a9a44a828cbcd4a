from core.exceptions import InvalidInput
from service.catalog import CatalogStore
from service.data_url import DecodedImage, decode_data_url
from service.normalize import normalize_tags
from service.pipeline import AnalysisMode, UploadPipeline, UploadRequest, UploadResult


def prepare_upload(
    image: str | DecodedImage | None,
    name: str | None,
    tags: str | list[str] | None,
    mode: AnalysisMode,
    max_bytes: int | None = None,
) -> UploadRequest:
    """파이프라인 진입 전 전제조건을 확인한다. 네트워크 호출 전에 실패해야 한다.

    1. 이미지가 있고 디코딩 가능한지 (data URL 또는 이미 디코딩된 이미지)
    2. 분석을 건너뛰는 모드라면 이름이 비어 있지 않은지
    """
    if isinstance(image, DecodedImage):
        decoded = image
    else:
        decoded = decode_data_url(image, max_bytes=max_bytes)

    name = (name or "").strip()
    if mode == AnalysisMode.SKIP and not name:
        raise InvalidInput("월페이퍼 이름을 입력해 주세요")

    tag_list = normalize_tags(tags)
    return UploadRequest(
        image=decoded,
        name=name or None,
        tags=tag_list or None,
    )


def upload_wallpaper(
    pipeline: UploadPipeline,
    catalog: CatalogStore,
    image: str | DecodedImage | None,
    name: str | None = None,
    tags: str | list[str] | None = None,
) -> UploadResult:
    request = prepare_upload(
        image, name, tags, pipeline.analysis_mode, pipeline.config.max_upload_bytes
    )
    return pipeline.run(request, catalog)


def analyze_image(pipeline: UploadPipeline, image: str | None):
    """업로드 폼 미리 채우기용 분석. 호스트 업로드/저장 없이 비전 모델만 호출한다."""
    decoded = decode_data_url(image, max_bytes=pipeline.config.max_upload_bytes)
    if pipeline.vision is None:
        raise InvalidInput("AI 분석이 비활성화되어 있습니다 (ANALYSIS_MODE=skip)")
    return pipeline.vision.analyze(decoded.data, decoded.mime_type)
