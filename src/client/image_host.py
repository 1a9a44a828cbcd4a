"""이미지 호스트 클라이언트 (imgbb 호환 API).

POST {api_url}?key=<key>  multipart form, 필드 image = base64 페이로드
응답: {"success": bool, "data": {"url", "thumb": {"url"}, "delete_url"}, "error": {"message"}}

재시도, 캐시, 반환된 URL의 접근성 검사는 하지 않는다.
"""

import base64
from dataclasses import dataclass

import requests
from loguru import logger

from core.exceptions import HostUploadFailed, InvalidInput


@dataclass(frozen=True)
class HostedImage:
    image_url: str
    thumb_url: str
    delete_url: str | None = None


class ImageHostClient:
    def __init__(
        self,
        api_key: str,
        api_url: str,
        timeout: float = 30.0,
        expiration: int | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = timeout
        self._expiration = expiration

    def upload(self, data: bytes, mime_type: str) -> HostedImage:
        if not data:
            raise InvalidInput("업로드할 이미지 데이터가 비어 있습니다")
        if not mime_type:
            raise InvalidInput("이미지 mime type을 알 수 없습니다")

        params = {"key": self._api_key}
        if self._expiration:
            params["expiration"] = self._expiration

        # (None, value) 튜플 → 파일명 없는 일반 multipart 필드
        files = {"image": (None, base64.b64encode(data).decode("ascii"))}

        try:
            r = requests.post(self._api_url, params=params, files=files, timeout=self._timeout)
        except requests.RequestException as e:
            raise HostUploadFailed(f"이미지 호스트 요청 실패: {e}")

        body = _json_or_none(r)
        if r.status_code >= 400 or not body or not body.get("success"):
            detail = _error_text(body) or r.text
            logger.warning(f"Image host rejected upload ({r.status_code}): {detail}")
            raise HostUploadFailed(f"이미지 호스트 업로드 실패: {detail}")

        payload = body.get("data")
        thumb = payload.get("thumb") if isinstance(payload, dict) else None
        if not isinstance(payload, dict) or not isinstance(thumb, dict):
            raise HostUploadFailed(f"이미지 호스트 응답 형식이 올바르지 않습니다: {r.text}")

        image_url = payload.get("url")
        thumb_url = thumb.get("url")
        if not image_url or not thumb_url:
            raise HostUploadFailed(f"이미지 호스트 응답에 URL이 없습니다: {r.text}")

        logger.info(f"Image hosted: {image_url} ({len(data)} bytes, {mime_type})")
        return HostedImage(
            image_url=image_url,
            thumb_url=thumb_url,
            delete_url=payload.get("delete_url"),
        )

    def discard(self, hosted: HostedImage) -> None:
        """호스트에 올라간 이미지의 보상(compensation) 훅.

        imgbb는 delete_url을 사람이 여는 페이지로만 제공하고 삭제 API가 없다.
        지금은 고아가 된 자산을 기록만 한다.
        """
        logger.warning(
            f"Orphaned host asset: {hosted.image_url}"
            + (f" (delete: {hosted.delete_url})" if hosted.delete_url else "")
        )


def _json_or_none(r: requests.Response) -> dict | None:
    try:
        body = r.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _error_text(body: dict | None) -> str | None:
    if not body:
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or str(error)
    if error:
        return str(error)
    return None
