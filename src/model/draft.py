"""업로드 폼의 임시 상태 (UploadDraft).

DB에 저장되지 않는다. 업로드 페이지가 렌더링할 때만 쓰이며,
파이프라인이 실패하면 같은 draft로 폼을 다시 그려 사용자가 재시도할 수 있게 한다.
제출이 성공하거나 사용자가 이미지를 빼면 빈 draft(GET /upload)로 돌아간다.
"""

from enum import StrEnum

from pydantic import BaseModel


class DraftStatus(StrEnum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


class UploadDraft(BaseModel):
    filename: str | None = None
    mime_type: str | None = None
    preview: str | None = None  # data URL
    name: str = ""
    tags: str = ""  # 콤마 구분 문자열 (폼 입력 그대로)
    status: DraftStatus = DraftStatus.IDLE
    error: str | None = None

    @property
    def has_file(self) -> bool:
        return bool(self.preview)

    @property
    def busy(self) -> bool:
        return self.status in (DraftStatus.ANALYZING, DraftStatus.UPLOADING)

    def mark(self, status: DraftStatus, error: str | None = None) -> "UploadDraft":
        self.status = status
        self.error = error
        return self
