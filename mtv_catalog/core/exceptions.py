"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class CatalogException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 업스트림 API 관련 예외
class ApiException(CatalogException):
    """YouTube API 호출 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "API_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "API_ERROR", details)


class TransientError(ApiException):
    """재시도 가능한 오류 (네트워크 장애, 5xx, 429, 403 rate/quota)"""
    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, "TRANSIENT_API_ERROR",
                        details or {"status_code": status_code})


class FatalError(ApiException):
    """재시도하지 않는 오류 (그 외 4xx, 해석 불가 응답, 직접 조회 미발견)"""
    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, "FATAL_API_ERROR",
                        details or {"status_code": status_code})


class QuotaExhaustedError(ApiException):
    """일일 쿼터 부족 - 업스트림 호출 전에 발생"""
    def __init__(self, endpoint: str, cost: int, remaining: int, details: Optional[dict[str, Any]] = None):
        self.endpoint = endpoint
        self.cost = cost
        self.remaining = remaining
        message = f"Daily quota exhausted: '{endpoint}' costs {cost}, remaining {remaining}"
        super().__init__(message, "QUOTA_EXHAUSTED",
                        details or {"endpoint": endpoint, "cost": cost, "remaining": remaining})


# 채널 해석 관련 예외
class NoConfidentMatchError(CatalogException):
    """검색 결과가 없거나 최고 점수가 임계값 미만"""
    def __init__(self, seed_name: str, reason: str, details: Optional[dict[str, Any]] = None):
        self.seed_name = seed_name
        self.reason = reason
        super().__init__(reason, "NO_CONFIDENT_MATCH",
                        details or {"seed_name": seed_name})


# 데이터베이스 관련 예외
class DatabaseException(CatalogException):
    """데이터베이스 관련 예외"""
    def __init__(self, message: str, error_code: str = "DB_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "DB_ERROR", details)


# 설정/입력 관련 예외
class ConfigurationException(CatalogException):
    """필수 설정 누락 (예: API 키)"""
    def __init__(self, setting: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Invalid configuration for '{setting}': {reason}"
        super().__init__(message, "CONFIGURATION_ERROR",
                        details or {"setting": setting, "reason": reason})


class ValidationException(CatalogException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})
