from datetime import UTC, datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class WallpaperRecord(SQLModel, table=True):
    """카탈로그의 유일한 영속 엔티티.

    업로드 파이프라인이 성공했을 때 한 번만 생성되고, 이후 수정/삭제되지 않는다.
    image_url과 thumb_url은 호스트 업로드가 성공한 뒤에만 함께 채워진다.
    """

    __tablename__ = "wallpaper"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    # 태그는 항상 문자열 배열로 저장한다 (콤마 문자열은 경계에서 변환)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    image_url: str
    thumb_url: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
