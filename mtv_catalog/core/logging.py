"""로깅 설정

- 패키지 전체가 공유하는 "mtv_catalog" 로거 하나
- production 에서는 DEBUG 를 INFO 로 올리고 짧은 포맷 사용
- 모든 레코드에서 YouTube API 키(key=...)를 가림
"""
import logging
import os
import re
import sys
from typing import Optional

from mtv_catalog.core.config import settings

LOGGER_NAME = "mtv_catalog"
REDACTED = "***"

# 쿼리스트링 key=... 와 api_key=... 형태의 비밀 값
_SECRET_PATTERNS = (
    re.compile(r"([?&]key=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"\b((?:api_key|password|secret)\s*[:=]\s*)[^&\s\"',}]+", re.IGNORECASE),
)

_PRODUCTION_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DEVELOPMENT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def redact_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\1{REDACTED}", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """포맷 전에 메시지를 완성하고 API 키를 가림"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def is_production() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


def resolve_level(level_name: str, production: bool) -> int:
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    if production and level < logging.INFO:
        level = logging.INFO
    return level


def setup_logging(level_name: Optional[str] = None) -> logging.Logger:
    """공유 로거 초기화 (핸들러는 한 번만 추가)"""
    production = is_production()
    level = resolve_level(level_name or settings.log_level, production)

    catalog_logger = logging.getLogger(LOGGER_NAME)
    catalog_logger.setLevel(level)

    if not catalog_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.addFilter(SecretRedactingFilter())
        handler.setFormatter(
            logging.Formatter(
                fmt=_PRODUCTION_FORMAT if production else _DEVELOPMENT_FORMAT,
                datefmt=_DATE_FORMAT,
            )
        )
        catalog_logger.addHandler(handler)

    for handler in catalog_logger.handlers:
        handler.setLevel(level)

    return catalog_logger


logger = setup_logging()


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """예외 메시지 등 외부 문자열을 로그/에러 메시지용으로 정리

    API 키를 가리고 max_length 를 넘으면 자릅니다.
    """
    if not value:
        return "[empty]"

    result = redact_secrets(value)
    if len(result) > max_length:
        result = result[:max_length] + "..."
    return result
