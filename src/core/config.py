from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "wallpaper-gallery"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # DB 설정 (카탈로그 저장소)
    DATABASE_URL: str = "sqlite:///./wallpapers.db"

    # 이미지 호스트 (imgbb 호환 API)
    IMGBB_API_URL: str = "https://api.imgbb.com/1/upload"
    IMGBB_API_KEY: str | None = None
    IMGBB_EXPIRATION_SECONDS: int | None = None  # None이면 만료 없음

    # 비전 모델 (Gemini generateContent)
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_KEY: str | None = None

    # 업로드 파이프라인: skip | required | best_effort
    ANALYSIS_MODE: str = "required"

    # 외부 HTTP 호출 타임아웃. 파이프라인 자체에는 타임아웃이 없다.
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # imgbb 업로드 한도 32MB
    MAX_UPLOAD_BYTES: int = 32 * 1024 * 1024

    SLOW_REQUEST_MS: int = 500

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
