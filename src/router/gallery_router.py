"""서버 렌더링 화면: 갤러리, 상세, 업로드 폼.

업로드 폼은 UploadDraft를 들고 다닌다. 파이프라인이 실패하면 같은 draft
(미리보기, 이름, 태그)로 폼을 다시 그려서 사용자가 그대로 재시도할 수 있다.
성공하면 draft를 버리고 갤러리로 이동한다.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from loguru import logger

from core.config import settings
from core.dependencies import get_catalog, get_pipeline
from core.exceptions import AppException
from model.draft import DraftStatus, UploadDraft
from service import wallpaper_service
from service.catalog import CatalogStore
from service.data_url import encode_data_url
from service.normalize import tags_to_text
from service.pipeline import AnalysisMode
from router.templating import render

router = APIRouter(tags=["gallery"])


def _analysis_mode(request: Request) -> str | None:
    pipeline = getattr(request.app.state, "pipeline", None)
    return pipeline.analysis_mode.value if pipeline else None


def _max_upload_bytes(request: Request) -> int | None:
    pipeline = getattr(request.app.state, "pipeline", None)
    return pipeline.config.max_upload_bytes if pipeline else settings.MAX_UPLOAD_BYTES


def _build_draft(
    file: UploadFile | None,
    preview: str | None,
    name: str,
    tags: str,
    max_bytes: int | None = None,
) -> UploadDraft:
    """새로 고른 파일이 있으면 그것을, 없으면 이전 미리보기(data URL)를 쓴다.

    파일이 max_bytes보다 크면 인코딩하지 않고 FAILED draft를 돌려준다.
    """
    draft = UploadDraft(name=name.strip(), tags=tags.strip())
    if file is not None and file.filename:
        # 최대 크기 + 1 바이트까지만 읽어서 초과 여부를 판단한다
        data = file.file.read(-1 if max_bytes is None else max_bytes + 1)
        mime_type = file.content_type or "application/octet-stream"
        if max_bytes is not None and len(data) > max_bytes:
            draft.filename = file.filename
            return draft.mark(DraftStatus.FAILED, f"이미지가 너무 큽니다 (최대 {max_bytes} bytes)")
        if data:
            draft.filename = file.filename
            draft.mime_type = mime_type
            draft.preview = encode_data_url(data, mime_type)
            return draft
    if preview:
        draft.preview = preview
    return draft


def _render_upload(request: Request, draft: UploadDraft, status_code: int = 200) -> HTMLResponse:
    return render(
        "upload.html",
        status_code=status_code,
        title="월페이퍼 업로드",
        draft=draft,
        analysis_mode=_analysis_mode(request),
        skip_mode=_analysis_mode(request) == AnalysisMode.SKIP.value,
    )


@router.get("/", response_class=HTMLResponse)
def gallery(
    tag: str | None = None,
    msg: str | None = None,
    catalog: CatalogStore = Depends(get_catalog),
):
    wallpapers = catalog.list(tag=tag)
    return render(
        "gallery.html",
        title="월페이퍼 갤러리",
        wallpapers=wallpapers,
        tags=catalog.all_tags(),
        active_tag=tag,
        msg=msg,
    )


@router.get("/wallpapers/{wallpaper_id}", response_class=HTMLResponse)
def wallpaper_detail(wallpaper_id: int, catalog: CatalogStore = Depends(get_catalog)):
    wallpaper = catalog.get(wallpaper_id)
    return render("wallpaper.html", title=wallpaper.name, wallpaper=wallpaper)


@router.get("/upload", response_class=HTMLResponse)
def upload_form(request: Request):
    return _render_upload(request, UploadDraft())


@router.post("/upload", response_class=HTMLResponse)
def upload_submit(
    request: Request,
    file: UploadFile | None = File(None),
    preview: str | None = Form(None),
    name: str = Form(""),
    tags: str = Form(""),
    catalog: CatalogStore = Depends(get_catalog),
):
    draft = _build_draft(file, preview, name, tags, _max_upload_bytes(request))
    if draft.status == DraftStatus.FAILED:
        return _render_upload(request, draft, 400)
    if not draft.has_file:
        return _render_upload(request, draft.mark(DraftStatus.FAILED, "먼저 이미지를 선택해 주세요"), 400)

    draft.mark(DraftStatus.UPLOADING)
    try:
        pipeline = get_pipeline(request)
        result = wallpaper_service.upload_wallpaper(
            pipeline, catalog, draft.preview, name=draft.name, tags=draft.tags
        )
    except AppException as e:
        logger.warning(f"Upload from form failed: {e.error_code}")
        return _render_upload(request, draft.mark(DraftStatus.FAILED, e.message), e.status_code)

    msg = quote(f"'{result.name}' 업로드 완료")
    return RedirectResponse(f"/?msg={msg}", status_code=303)


@router.post("/upload/analyze", response_class=HTMLResponse)
def upload_analyze(
    request: Request,
    file: UploadFile | None = File(None),
    preview: str | None = Form(None),
    name: str = Form(""),
    tags: str = Form(""),
):
    """AI 분석 결과로 비어 있는 이름/태그를 채운 폼을 다시 보여준다."""
    draft = _build_draft(file, preview, name, tags, _max_upload_bytes(request))
    if draft.status == DraftStatus.FAILED:
        return _render_upload(request, draft, 400)
    if not draft.has_file:
        return _render_upload(request, draft.mark(DraftStatus.FAILED, "먼저 이미지를 선택해 주세요"), 400)

    draft.mark(DraftStatus.ANALYZING)
    try:
        pipeline = get_pipeline(request)
        analysis = wallpaper_service.analyze_image(pipeline, draft.preview)
    except AppException as e:
        return _render_upload(request, draft.mark(DraftStatus.FAILED, e.message), e.status_code)

    draft.name = draft.name or analysis.name
    draft.tags = draft.tags or tags_to_text(analysis.tags)
    return _render_upload(request, draft.mark(DraftStatus.IDLE))
