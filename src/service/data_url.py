"""data URL → (바이트, mime type) 디코딩.

브라우저가 FileReader.readAsDataURL로 만든 문자열을 받는다:
    data:image/png;base64,iVBORw0KGgo...
"""

import base64
import binascii
import io
import re
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from core.exceptions import InvalidInput

_DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return encode_data_url(self.data, self.mime_type)


def encode_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(value: str | None, max_bytes: int | None = None) -> DecodedImage:
    """data URL을 검증하고 디코딩한다.

    - header/payload로 나눌 수 없거나 mime type이 없으면 InvalidInput
    - base64가 깨졌거나 디코딩 결과가 비어 있으면 InvalidInput
    - max_bytes를 넘으면 InvalidInput
    - 실제 이미지가 아니면 InvalidInput (Pillow로 확인)
    """
    if not value:
        raise InvalidInput("이미지 데이터가 없습니다")

    match = _DATA_URL_RE.match(value.strip())
    if not match:
        raise InvalidInput("base64 이미지 형식이 올바르지 않습니다")

    mime_type, payload = match.group(1), match.group(2)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInput("base64 페이로드를 디코딩할 수 없습니다")

    return validate_image_bytes(data, mime_type, max_bytes)


def validate_image_bytes(data: bytes, mime_type: str, max_bytes: int | None = None) -> DecodedImage:
    if not data:
        raise InvalidInput("이미지 데이터가 비어 있습니다")
    if max_bytes is not None and len(data) > max_bytes:
        raise InvalidInput(f"이미지가 너무 큽니다 ({len(data)} bytes, 최대 {max_bytes} bytes)")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise InvalidInput("이미지 파일로 인식할 수 없습니다")

    return DecodedImage(data=data, mime_type=mime_type)
