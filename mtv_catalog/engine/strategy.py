"""Retry Strategy - Error Classification and Backoff Schedule

Decides which upstream failures are retried and how long to wait between
attempts.
"""

from dataclasses import dataclass
from typing import Optional

from mtv_catalog.core.config import Settings
from mtv_catalog.core.exceptions import FatalError, TransientError


@dataclass(frozen=True)
class RetryPolicy:
    """지수 백오프 재시도 정책

    Usage:
        policy = RetryPolicy.from_settings(settings)

        for attempt in range(1, policy.max_attempts + 1):
            try:
                return await send()
            except Exception as e:
                if not policy.should_retry(e) or attempt == policy.max_attempts:
                    raise
                await asyncio.sleep(policy.backoff_delay(attempt))
    """

    max_retries: int = 3
    base_delay_s: float = 1.0
    factor: float = 2.0
    max_delay_s: float = 30.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.api_max_retries,
            base_delay_s=settings.api_backoff_base_ms / 1000.0,
            factor=settings.api_backoff_factor,
            max_delay_s=settings.api_backoff_max_ms / 1000.0,
        )

    def backoff_delay(self, retry_number: int) -> float:
        """n 번째 재시도 전 대기 시간 (초)

        Args:
            retry_number: 1부터 시작하는 재시도 번호

        Returns:
            float: min(base * factor^(n-1), max)
        """
        return min(self.base_delay_s * (self.factor ** (retry_number - 1)), self.max_delay_s)

    @staticmethod
    def should_retry(error: Exception) -> bool:
        """TransientError 만 재시도, FatalError 는 즉시 실패"""
        if isinstance(error, FatalError):
            return False
        return isinstance(error, TransientError)


def classify_status(status_code: int, body: str = "") -> Optional[Exception]:
    """HTTP 상태 코드 → 예외 (2xx 면 None)

    - 403, 429 (rate limit / quota), 5xx → TransientError
    - 그 외 4xx → FatalError
    """
    if 200 <= status_code < 300:
        return None
    snippet = body[:300] if body else ""
    if status_code in (403, 429):
        return TransientError(f"Rate limited ({status_code}): {snippet}", status_code=status_code)
    if status_code >= 500:
        return TransientError(f"Server error ({status_code}): {snippet}", status_code=status_code)
    return FatalError(f"API error ({status_code}): {snippet}", status_code=status_code)
