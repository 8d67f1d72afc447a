"""설정 관리 - 환경 변수 로드 및 검증"""
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 데이터베이스
    database_url: str = "sqlite:///data/catalog.db"

    # YouTube Data API v3
    youtube_api_key: str = ""
    youtube_api_base: str = "https://www.googleapis.com/youtube/v3"

    # 일일 쿼터 (YouTube 기본 할당량 10,000 units)
    # buffer 만큼은 절대 사용하지 않음
    daily_quota_limit: int = 10000
    quota_buffer: int = 100
    quota_timezone: str = "UTC"

    # 요청 간 최소 간격 (모든 시도에 적용)
    min_request_interval_ms: int = 100

    # 재시도 (지수 백오프)
    api_max_retries: int = 3
    api_backoff_base_ms: int = 1000
    api_backoff_factor: float = 2.0
    api_backoff_max_ms: int = 30000
    api_request_timeout_s: float = 30.0

    # curl_cffi 세션 옵션 (빈 문자열이면 impersonate 비활성화)
    http_impersonate: str = ""
    http_max_clients: int = 10

    # 배치/검색 크기
    api_batch_size: int = 50
    search_max_results: int = 5

    # 해당 지역에서 차단된 영상은 blocked 처리
    blocked_region: str = "US"

    # 리소스
    overrides_path: str = "overrides.yaml"
    seeds_resource: str = "seeds.yaml"

    # 로깅
    log_level: str = "INFO"

    @field_validator("daily_quota_limit")
    @classmethod
    def validate_daily_quota_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("daily_quota_limit must be positive")
        return v

    @field_validator("quota_buffer", "min_request_interval_ms", "api_max_retries")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("quota_buffer, min_request_interval_ms and api_max_retries must be >= 0")
        return v

    @field_validator("api_backoff_base_ms", "api_backoff_max_ms")
    @classmethod
    def validate_backoff(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("backoff delays must be positive")
        return v

    @field_validator("api_batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        # 업스트림 제한: 호출당 최대 50개 ID
        if not 1 <= v <= 50:
            raise ValueError("api_batch_size must be between 1 and 50")
        return v

    @field_validator("search_max_results")
    @classmethod
    def validate_search_max_results(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError("search_max_results must be between 1 and 50")
        return v

    @field_validator("quota_timezone")
    @classmethod
    def validate_quota_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown quota_timezone: {v}") from e
        return v

    @field_validator("database_url")
    @classmethod
    def validate_required_urls(cls, v: str) -> str:
        if not v:
            raise ValueError("database_url must not be empty")
        return v

    @property
    def usable_quota(self) -> int:
        """버퍼를 제외한 실제 사용 가능 쿼터"""
        return self.daily_quota_limit - self.quota_buffer

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
