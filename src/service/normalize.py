"""비전 모델 응답 정규화.

모델은 JSON을 돌려주도록 요청받지만 실제로는 마크다운 코드 펜스로 감싸거나,
태그를 배열 대신 콤마 문자열로 주기도 한다. 이 모듈은 그 차이를 한 곳에서 흡수한다.

parse_analysis는 예외를 던지지 않고 ParsedAnalysis 또는 ParseError를 반환한다.
"""

import json
import re
from dataclasses import dataclass, field

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


@dataclass(frozen=True)
class ParsedAnalysis:
    name: str
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseError:
    reason: str
    text: str


def normalize_tags(value: str | list | tuple | None) -> list[str]:
    """태그를 정규형(소문자, 공백 제거, 빈 값/중복 제거, 순서 유지)으로 만든다.

    콤마 문자열과 배열 모두 받는다. 정규형에 다시 적용해도 결과가 같다.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value if item is not None]

    tags: list[str] = []
    for item in items:
        tag = item.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def tags_to_text(tags: list[str]) -> str:
    """폼 입력용 콤마 문자열."""
    return ", ".join(tags)


def strip_code_fence(text: str) -> str:
    """```json ... ``` 형태의 펜스를 벗긴다. 펜스가 없으면 공백만 정리한다."""
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_analysis(text: str) -> ParsedAnalysis | ParseError:
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseError(reason=f"JSON 파싱 실패: {e.msg}", text=cleaned)

    if not isinstance(data, dict):
        return ParseError(reason="JSON 객체가 아닙니다", text=cleaned)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return ParseError(reason="name 필드가 없습니다", text=cleaned)

    tags = data.get("tags")
    if tags is not None and not isinstance(tags, (str, list)):
        return ParseError(reason="tags 필드 형식이 올바르지 않습니다", text=cleaned)

    return ParsedAnalysis(name=name.strip(), tags=normalize_tags(tags))
