"""비전 분석 클라이언트 (Gemini generateContent REST API).

이미지를 inline_data로 넣고 고정 프롬프트로 제목과 태그를 요청한다.
응답 텍스트는 candidates[0].content.parts[0].text 경로에 있다.
"""

import base64
from dataclasses import dataclass, field

import requests
from loguru import logger

from core.exceptions import (
    AnalysisBlocked,
    AnalysisEmpty,
    AnalysisRequestFailed,
    AnalysisUnparseable,
    InvalidInput,
)
from service.normalize import ParseError, parse_analysis

ANALYSIS_PROMPT = (
    "Analyze this image and provide a suitable name and tags for a wallpaper gallery. "
    'Respond with a single, clean JSON object with two keys: "name" (a creative title, '
    '3-5 words) and "tags" (a JSON array of 3-5 relevant, single-word, lowercase tags). '
    "Do not include any other text or markdown formatting."
)


@dataclass(frozen=True)
class WallpaperAnalysis:
    name: str
    tags: list[str] = field(default_factory=list)


class VisionClient:
    def __init__(self, api_key: str, api_url: str, model: str, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._endpoint = f"{api_url.rstrip('/')}/{model}:generateContent"
        self._timeout = timeout

    def analyze(self, data: bytes, mime_type: str) -> WallpaperAnalysis:
        if not data:
            raise InvalidInput("분석할 이미지 데이터가 비어 있습니다")

        body = {
            "contents": [
                {
                    "parts": [
                        {"text": ANALYSIS_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(data).decode("ascii"),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": {"response_mime_type": "application/json"},
        }

        try:
            r = requests.post(
                self._endpoint,
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise AnalysisRequestFailed(f"비전 모델 요청 실패: {e}")

        if r.status_code >= 400:
            raise AnalysisRequestFailed(f"비전 모델 API 오류 ({r.status_code}): {r.text}")

        try:
            payload = r.json()
        except ValueError:
            raise AnalysisRequestFailed(f"비전 모델 응답이 JSON이 아닙니다: {r.text}")
        if not isinstance(payload, dict):
            raise AnalysisRequestFailed(f"비전 모델 응답 형식이 올바르지 않습니다: {r.text}")

        text = _candidate_text(payload)
        if not text:
            feedback = payload.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if block_reason:
                raise AnalysisBlocked(f"AI 안전 필터에 의해 차단되었습니다. 사유: {block_reason}")
            raise AnalysisEmpty()

        result = parse_analysis(text)
        if isinstance(result, ParseError):
            logger.error(f"Failed to parse model answer ({result.reason}): {result.text!r}")
            raise AnalysisUnparseable(f"AI 응답을 이해할 수 없습니다: {result.reason}")

        logger.info(f"Analysis: name={result.name!r} tags={result.tags}")
        return WallpaperAnalysis(name=result.name, tags=result.tags)


def _candidate_text(payload: dict) -> str | None:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text.strip() else None
