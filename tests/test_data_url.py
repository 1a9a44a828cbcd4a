"""data URL 디코딩 / 이미지 검증 테스트."""

import base64

import pytest

from core.exceptions import InvalidInput
from service.data_url import decode_data_url, encode_data_url


def test_decode_valid_png(png_bytes, png_data_url):
    decoded = decode_data_url(png_data_url)

    assert decoded.mime_type == "image/png"
    assert decoded.data == png_bytes
    assert decoded.size == len(png_bytes)
    assert decoded.to_data_url() == png_data_url


def test_encode_decode_consistent(png_bytes):
    url = encode_data_url(png_bytes, "image/png")
    assert url.startswith("data:image/png;base64,")
    assert decode_data_url(url).data == png_bytes


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "not a data url",
        "data:image/png,abc",  # base64 표시 없음
        "data:;base64,AAAA",  # mime type 없음
        "data:text/plain;base64,aGVsbG8=",  # 이미지가 아님
    ],
)
def test_malformed_data_url(value):
    with pytest.raises(InvalidInput):
        decode_data_url(value)


def test_bad_base64():
    with pytest.raises(InvalidInput):
        decode_data_url("data:image/png;base64,@@@not-base64@@@")


def test_not_an_image():
    payload = base64.b64encode(b"this is definitely not a png").decode()
    with pytest.raises(InvalidInput):
        decode_data_url(f"data:image/png;base64,{payload}")


def test_too_large(png_data_url, png_bytes):
    with pytest.raises(InvalidInput, match="너무 큽니다"):
        decode_data_url(png_data_url, max_bytes=len(png_bytes) - 1)
