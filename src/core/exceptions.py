"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error_code": "...", "error": "..."} 형식의 JSON 응답을 생성한다.

업로드 파이프라인의 실패 종류(이미지 호스트, 분석, 저장)는 각각 하나의
베이스 클래스로 묶인다. 파이프라인을 호출하는 쪽은 베이스 클래스만 알면 된다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 입력 / 설정 ---


class InvalidInput(AppException):
    status_code = 400
    error_code = "INVALID_INPUT"
    message = "이미지 데이터가 올바르지 않습니다"


class ConfigurationError(AppException):
    status_code = 500
    error_code = "CONFIGURATION_ERROR"
    message = "필수 설정값이 누락되었습니다"


# --- 이미지 호스트 ---


class ImageHostError(AppException):
    status_code = 502
    error_code = "IMAGE_HOST_ERROR"
    message = "이미지 호스트 업로드에 실패했습니다"


class HostUploadFailed(ImageHostError):
    """호스트가 실패 상태코드 또는 success=false를 돌려준 경우."""


# --- 비전 분석 ---


class AnalysisError(AppException):
    status_code = 502
    error_code = "ANALYSIS_ERROR"
    message = "이미지 분석에 실패했습니다"


class AnalysisRequestFailed(AnalysisError):
    error_code = "ANALYSIS_REQUEST_FAILED"
    message = "비전 모델 요청에 실패했습니다"


class AnalysisBlocked(AnalysisError):
    status_code = 422
    error_code = "ANALYSIS_BLOCKED"
    message = "AI 안전 필터에 의해 차단되었습니다"


class AnalysisEmpty(AnalysisError):
    error_code = "ANALYSIS_EMPTY"
    message = "비전 모델이 빈 응답을 반환했습니다"


class AnalysisUnparseable(AnalysisError):
    error_code = "ANALYSIS_UNPARSEABLE"
    message = "비전 모델 응답을 해석할 수 없습니다"


# --- 카탈로그 저장소 ---


class PersistenceError(AppException):
    status_code = 500
    error_code = "PERSISTENCE_ERROR"
    message = "월페이퍼 저장에 실패했습니다"


class PersistenceFailed(PersistenceError):
    """DB 쓰기 중 발생한 오류. 원본 오류 메시지를 그대로 담는다."""


class WallpaperNotFound(AppException):
    status_code = 404
    error_code = "WALLPAPER_NOT_FOUND"
    message = "월페이퍼를 찾을 수 없습니다"
