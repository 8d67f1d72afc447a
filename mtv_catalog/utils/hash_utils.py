"""해싱 유틸리티"""
import hashlib
from typing import Mapping

# 서명에 포함하지 않는 파라미터 (자격 증명)
EXCLUDED_PARAMS = frozenset({"key"})


def hash_string(text: str, length: int = 32) -> str:
    """
    문자열을 SHA-256 해시로 변환

    Args:
        text: 해시할 문자열
        length: 반환할 hex 길이

    Returns:
        SHA-256 hex 앞부분
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def canonical_request(endpoint: str, params: Mapping[str, object]) -> str:
    """endpoint?k1=v1&k2=v2 (키 정렬, API 키 제외)"""
    pairs = "&".join(
        f"{k}={params[k]}" for k in sorted(params) if k not in EXCLUDED_PARAMS
    )
    return f"{endpoint}?{pairs}"


def request_signature(endpoint: str, params: Mapping[str, object]) -> str:
    """
    요청 서명 생성 (응답 캐시 키)

    같은 endpoint 와 같은 파라미터 집합이면 순서와 무관하게 같은 서명.

    Args:
        endpoint: API 작업 이름 (search, channels, ...)
        params: 요청 파라미터

    Returns:
        32자 hex 서명
    """
    return hash_string(canonical_request(endpoint, params))
