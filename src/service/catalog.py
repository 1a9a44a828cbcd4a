from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from core.exceptions import InvalidInput, PersistenceFailed, WallpaperNotFound
from model.wallpaper import WallpaperRecord


class CatalogStore:
    """월페이퍼 테이블에 대한 얇은 래퍼.

    쓰기는 업로드 파이프라인만, 읽기는 갤러리 화면만 사용한다.
    수정/삭제 연산은 없다.
    """

    def __init__(self, session: Session):
        self.session = session

    def insert(self, name: str, tags: list[str], image_url: str, thumb_url: str) -> int:
        """새 레코드를 추가하고 id를 반환한다. created_at은 여기서 정해진다."""
        if not name or not name.strip():
            raise InvalidInput("월페이퍼 이름이 비어 있습니다")
        if not image_url or not thumb_url:
            raise InvalidInput("이미지 URL과 썸네일 URL이 모두 필요합니다")

        record = WallpaperRecord(
            name=name.strip(),
            tags=list(tags),
            image_url=image_url,
            thumb_url=thumb_url,
        )
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceFailed(f"월페이퍼 저장 실패: {e}")
        return record.id

    def get(self, wallpaper_id: int) -> WallpaperRecord:
        record = self.session.get(WallpaperRecord, wallpaper_id)
        if not record:
            raise WallpaperNotFound
        return record

    def all_tags(self) -> list[str]:
        """갤러리 태그 필터용. 등장 빈도 높은 순."""
        counts: dict[str, int] = {}
        for record in self.list():
            for t in record.tags:
                counts[t] = counts.get(t, 0) + 1
        return sorted(counts, key=lambda t: (-counts[t], t))

    # 클래스 본문에서 builtin list를 가리므로 마지막에 둔다
    def list(self, tag: str | None = None) -> list[WallpaperRecord]:
        """최신순 목록. 같은 시각이면 나중에 들어간 id가 먼저 온다."""
        stmt = select(WallpaperRecord).order_by(
            col(WallpaperRecord.created_at).desc(), col(WallpaperRecord.id).desc()
        )
        records = [r for r in self.session.exec(stmt).all()]
        if tag:
            # JSON 컬럼 검색은 DB마다 달라서 메모리에서 거른다
            tag = tag.strip().lower()
            records = [r for r in records if tag in r.tags]
        return records
