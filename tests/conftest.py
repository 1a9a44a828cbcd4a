"""pytest 공용 fixture.

모든 API 테스트는 in-memory SQLite DB를 사용하여 격리된다.
외부 API(이미지 호스트, 비전 모델)는 호출 기록을 남기는 가짜 클라이언트로 대체한다.
- session: 테스트마다 새 in-memory DB 세션
- catalog: 그 세션 위의 CatalogStore
- host / vision: 가짜 외부 클라이언트 (error 속성을 채우면 실패한다)
- make_pipeline: 가짜 클라이언트로 조립한 UploadPipeline 팩토리
- client: get_session 오버라이드 + 가짜 파이프라인을 꽂은 TestClient
"""

import base64
import io
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from client.image_host import HostedImage
from client.vision import WallpaperAnalysis
from main import app
from model.database import get_session
from service.catalog import CatalogStore
from service.pipeline import AnalysisMode, PipelineConfig, UploadPipeline


class FakeHost:
    def __init__(self):
        self.calls: list[tuple[bytes, str]] = []
        self.discarded: list[HostedImage] = []
        self.error: Exception | None = None

    def upload(self, data: bytes, mime_type: str) -> HostedImage:
        self.calls.append((data, mime_type))
        if self.error:
            raise self.error
        n = len(self.calls)
        return HostedImage(
            image_url=f"https://i.ibb.co/full/{n}.png",
            thumb_url=f"https://i.ibb.co/thumb/{n}.png",
            delete_url=f"https://ibb.co/delete/{n}",
        )

    def discard(self, hosted: HostedImage) -> None:
        self.discarded.append(hosted)


class FakeVision:
    def __init__(self):
        self.calls: list[tuple[bytes, str]] = []
        self.result = WallpaperAnalysis(name="Neon Mountain Dusk", tags=["mountain", "neon", "dusk"])
        self.error: Exception | None = None

    def analyze(self, data: bytes, mime_type: str) -> WallpaperAnalysis:
        self.calls.append((data, mime_type))
        if self.error:
            raise self.error
        return self.result


def make_png(width: int = 100, height: int = 100, noise: bool = False) -> bytes:
    """테스트용 PNG 바이트를 메모리에서 생성한다."""
    if noise:
        img = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        img = Image.new("RGB", (width, height), color="blue")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


@pytest.fixture()
def png_bytes():
    return make_png()


@pytest.fixture()
def png_data_url(png_bytes):
    return to_data_url(png_bytes)


@pytest.fixture()
def session():
    """테스트마다 새 in-memory SQLite DB를 생성한다.

    StaticPool을 사용해야 모든 커넥션이 같은 in-memory DB를 공유한다.
    (기본값은 커넥션마다 별도 DB가 생성되어 테이블이 안 보임)
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s


@pytest.fixture()
def catalog(session):
    return CatalogStore(session)


@pytest.fixture()
def host():
    return FakeHost()


@pytest.fixture()
def vision():
    return FakeVision()


@pytest.fixture()
def make_pipeline(host, vision):
    def _make(mode: AnalysisMode = AnalysisMode.REQUIRED, max_upload_bytes: int | None = None):
        config = PipelineConfig(
            analysis_mode=mode,
            imgbb_api_key="test-imgbb-key",
            imgbb_api_url="https://api.imgbb.test/1/upload",
            gemini_api_key="test-gemini-key",
            gemini_api_url="https://gemini.test/v1beta/models",
            gemini_model="test-model",
            max_upload_bytes=max_upload_bytes,
        )
        return UploadPipeline(config, host, None if mode == AnalysisMode.SKIP else vision)

    return _make


@pytest.fixture()
def client(session, make_pipeline):
    """get_session을 테스트용 세션으로 오버라이드하고, 가짜 파이프라인을 꽂은 TestClient.

    lifespan이 app.state.pipeline을 설정한 뒤에 덮어써야 하므로 with 블록 안에서 교체한다.
    모드를 바꾸려면 테스트에서 client.app.state.pipeline을 다시 설정한다.
    """

    def _override():
        yield session

    app.dependency_overrides[get_session] = _override
    with TestClient(app) as c:
        app.state.pipeline = make_pipeline()
        app.state.config_error = None
        yield c
    app.dependency_overrides.clear()
