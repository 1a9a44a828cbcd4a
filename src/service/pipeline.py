"""업로드 파이프라인.

세 개의 외부 호출을 순서대로 실행한다:

    IDLE → HOST_UPLOADING → ANALYZING → PERSISTING → DONE
                 └──────────────┴────────────┴──→ FAILED

세 단계는 하나의 트랜잭션으로 묶이지 않는다 (saga). 각 단계는 시작 전에
journal에 기록을 남기고, 호스트 업로드가 성공하면 보상(compensation) 훅을
등록한다. 이후 단계가 실패하면 등록된 보상을 역순으로 실행한다.
지금의 호스트 보상은 고아 자산을 로그로 남기는 것뿐이다.

재시도는 없다. 실패 후 다시 실행하면 이미지를 다시 올리므로 호스트에
중복 자산이 생길 수 있다.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable

from loguru import logger

from client.image_host import HostedImage, ImageHostClient
from client.vision import VisionClient, WallpaperAnalysis
from core.config import Settings
from core.exceptions import AnalysisError, AppException, ConfigurationError
from service.catalog import CatalogStore
from service.data_url import DecodedImage
from utility.timer import timer

FALLBACK_NAME = "Untitled Wallpaper"
FALLBACK_TAGS = ["wallpaper"]

# 외부 호출 단계가 이보다 오래 걸리면 WARNING
SLOW_STAGE_SECONDS = 5.0


class AnalysisMode(StrEnum):
    SKIP = "skip"  # AI 분석 없이 사용자 입력만 사용 (이름 필수)
    REQUIRED = "required"  # 분석 실패 시 전체 실패
    BEST_EFFORT = "best_effort"  # 분석 실패 시 사용자 입력 또는 고정 대체값


class PipelineState(StrEnum):
    IDLE = "idle"
    HOST_UPLOADING = "host_uploading"
    ANALYZING = "analyzing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineConfig:
    """파이프라인 설정. 시작 시 한 번 검증하고 생성자에 주입한다."""

    analysis_mode: AnalysisMode
    imgbb_api_key: str
    imgbb_api_url: str
    gemini_api_key: str | None
    gemini_api_url: str
    gemini_model: str
    http_timeout: float = 30.0
    max_upload_bytes: int | None = None
    imgbb_expiration: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        try:
            mode = AnalysisMode(settings.ANALYSIS_MODE.strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in AnalysisMode)
            raise ConfigurationError(
                f"ANALYSIS_MODE 값이 올바르지 않습니다: {settings.ANALYSIS_MODE!r} ({choices})"
            )

        missing = []
        if not settings.IMGBB_API_KEY:
            missing.append("IMGBB_API_KEY")
        if mode != AnalysisMode.SKIP and not settings.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY")
        if not settings.DATABASE_URL:
            missing.append("DATABASE_URL")
        if missing:
            raise ConfigurationError(f"필수 설정값이 없습니다: {', '.join(missing)}")

        return cls(
            analysis_mode=mode,
            imgbb_api_key=settings.IMGBB_API_KEY,
            imgbb_api_url=settings.IMGBB_API_URL,
            gemini_api_key=settings.GEMINI_API_KEY,
            gemini_api_url=settings.GEMINI_API_URL,
            gemini_model=settings.GEMINI_MODEL,
            http_timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_upload_bytes=settings.MAX_UPLOAD_BYTES,
            imgbb_expiration=settings.IMGBB_EXPIRATION_SECONDS,
        )


@dataclass(frozen=True)
class UploadRequest:
    """호출자가 전제조건을 검증한 뒤 넘기는 입력.

    name/tags가 None이면 사용자가 입력하지 않은 것이다.
    """

    image: DecodedImage
    name: str | None = None
    tags: list[str] | None = None


@dataclass(frozen=True)
class UploadResult:
    record_id: int
    name: str
    tags: list[str]
    image_url: str
    thumb_url: str


@dataclass(frozen=True)
class SagaEntry:
    stage: PipelineState
    event: str  # started | completed | failed | skipped | compensated | compensation_failed
    detail: str | None = None


@dataclass
class PipelineRun:
    state: PipelineState = PipelineState.IDLE
    journal: list[SagaEntry] = field(default_factory=list)
    hosted: HostedImage | None = None
    analysis: WallpaperAnalysis | None = None
    result: UploadResult | None = None
    error: AppException | None = None

    @property
    def ok(self) -> bool:
        return self.state == PipelineState.DONE

    def record(self, stage: PipelineState, event: str, detail: str | None = None):
        entry = SagaEntry(stage=stage, event=event, detail=detail)
        self.journal.append(entry)
        logger.debug(f"[saga] {stage} {event}" + (f": {detail}" if detail else ""))


class UploadPipeline:
    def __init__(
        self,
        config: PipelineConfig,
        host: ImageHostClient,
        vision: VisionClient | None = None,
    ):
        if config.analysis_mode != AnalysisMode.SKIP and vision is None:
            raise ConfigurationError(
                f"analysis_mode={config.analysis_mode}에는 비전 클라이언트가 필요합니다"
            )
        self.config = config
        self.host = host
        self.vision = vision

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "UploadPipeline":
        host = ImageHostClient(
            api_key=config.imgbb_api_key,
            api_url=config.imgbb_api_url,
            timeout=config.http_timeout,
            expiration=config.imgbb_expiration,
        )
        vision = None
        if config.analysis_mode != AnalysisMode.SKIP:
            vision = VisionClient(
                api_key=config.gemini_api_key,
                api_url=config.gemini_api_url,
                model=config.gemini_model,
                timeout=config.http_timeout,
            )
        return cls(config, host, vision)

    @property
    def analysis_mode(self) -> AnalysisMode:
        return self.config.analysis_mode

    def run(self, request: UploadRequest, catalog: CatalogStore) -> UploadResult:
        """파이프라인을 실행하고 결과를 반환한다. 실패하면 해당 단계의 예외를 던진다."""
        run = self.execute(request, catalog)
        if run.error is not None:
            raise run.error
        return run.result

    def execute(self, request: UploadRequest, catalog: CatalogStore) -> PipelineRun:
        """파이프라인을 실행하고 journal을 포함한 실행 기록을 반환한다. 예외를 던지지 않는다."""
        run = PipelineRun()
        compensations: list[tuple[PipelineState, Callable[[], None]]] = []

        try:
            # 1. 호스트 업로드
            self._enter(run, PipelineState.HOST_UPLOADING)
            with timer("host upload", slow_after=SLOW_STAGE_SECONDS):
                run.hosted = self.host.upload(request.image.data, request.image.mime_type)
            hosted = run.hosted
            compensations.append((PipelineState.HOST_UPLOADING, lambda: self.host.discard(hosted)))
            run.record(PipelineState.HOST_UPLOADING, "completed", run.hosted.image_url)

            # 2. AI 분석
            if self.analysis_mode == AnalysisMode.SKIP:
                run.record(PipelineState.ANALYZING, "skipped")
            else:
                self._enter(run, PipelineState.ANALYZING)
                run.analysis = self._analyze(run, request.image)

            name, tags = self._resolve(request, run.analysis)

            # 3. 카탈로그 저장
            self._enter(run, PipelineState.PERSISTING)
            with timer("persist"):
                record_id = catalog.insert(
                    name=name,
                    tags=tags,
                    image_url=run.hosted.image_url,
                    thumb_url=run.hosted.thumb_url,
                )
            run.record(PipelineState.PERSISTING, "completed", f"id={record_id}")

        except AppException as e:
            self._fail(run, e, compensations)
            return run

        run.result = UploadResult(
            record_id=record_id,
            name=name,
            tags=tags,
            image_url=run.hosted.image_url,
            thumb_url=run.hosted.thumb_url,
        )
        run.state = PipelineState.DONE
        logger.info(f"Wallpaper #{record_id} created: {name!r} {tags}")
        return run

    def _enter(self, run: PipelineRun, stage: PipelineState):
        run.state = stage
        run.record(stage, "started")

    def _analyze(self, run: PipelineRun, image: DecodedImage) -> WallpaperAnalysis | None:
        try:
            with timer("vision analysis", slow_after=SLOW_STAGE_SECONDS):
                analysis = self.vision.analyze(image.data, image.mime_type)
        except AnalysisError as e:
            if self.analysis_mode == AnalysisMode.BEST_EFFORT:
                logger.warning(f"Analysis failed, using fallback: {e.message}")
                run.record(PipelineState.ANALYZING, "failed", f"fallback: {e.message}")
                return None
            raise
        run.record(PipelineState.ANALYZING, "completed", analysis.name)
        return analysis

    def _resolve(
        self, request: UploadRequest, analysis: WallpaperAnalysis | None
    ) -> tuple[str, list[str]]:
        """사용자 입력이 우선이고, 비어 있는 항목만 분석 결과로 채운다."""
        name = (request.name or "").strip()
        tags = list(request.tags or [])

        if analysis is not None:
            name = name or analysis.name
            tags = tags or list(analysis.tags)
        elif self.analysis_mode == AnalysisMode.BEST_EFFORT:
            name = name or FALLBACK_NAME
            tags = tags or list(FALLBACK_TAGS)
        return name, tags

    def _fail(
        self,
        run: PipelineRun,
        error: AppException,
        compensations: list[tuple[PipelineState, Callable[[], None]]],
    ):
        failed_stage = run.state
        run.record(failed_stage, "failed", error.message)
        logger.error(f"Upload pipeline failed at {failed_stage}: {error.message}")

        for stage, compensate in reversed(compensations):
            try:
                compensate()
            except Exception as e:
                # 보상 실패가 원래 오류를 가리지 않도록 기록만 한다
                logger.exception(f"Compensation for {stage} failed")
                run.record(stage, "compensation_failed", str(e))
            else:
                run.record(stage, "compensated")

        run.state = PipelineState.FAILED
        run.error = error
