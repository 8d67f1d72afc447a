"""Cost Ledger - Daily Quota Budget Management

쿼터 사용량은 별도 카운터 없이 api_calls 감사 로그에서 매번 계산합니다:

- 사용량 = 오늘(quota_timezone 기준) cached=False 행의 quota_cost 합계
- 사용 가능 한도 = daily_quota_limit - quota_buffer
- used + cost > 한도 이면 호출 불가
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from mtv_catalog.core.config import Settings
from mtv_catalog.core.database import session_scope
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.impl.api_call_repository import ApiCallRepository

# 작업별 고정 비용 (YouTube Data API v3)
QUOTA_COSTS: Dict[str, int] = {
    "search": 100,
    "channels": 1,
    "playlistItems": 1,
    "videos": 1,
}

CHEAPEST_CALL_COST = min(QUOTA_COSTS.values())


def cost_of(endpoint: str) -> int:
    try:
        return QUOTA_COSTS[endpoint]
    except KeyError:
        raise ValueError(f"Unknown endpoint: {endpoint}") from None


@dataclass
class QuotaConfig:
    """쿼터 설정"""

    daily_limit: int = 10000
    buffer: int = 100
    timezone: str = "UTC"

    def __post_init__(self):
        """설정 검증"""
        if self.buffer >= self.daily_limit:
            raise ValueError(
                f"Quota buffer ({self.buffer}) must be smaller than daily limit ({self.daily_limit})"
            )

    @property
    def usable(self) -> int:
        return self.daily_limit - self.buffer

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuotaConfig":
        return cls(
            daily_limit=settings.daily_quota_limit,
            buffer=settings.quota_buffer,
            timezone=settings.quota_timezone,
        )


@dataclass(frozen=True)
class QuotaStatus:
    used: int
    remaining: int
    limit: int


class CostLedger:
    """일일 쿼터 원장

    Usage:
        ledger = CostLedger(ctx.session_factory, QuotaConfig.from_settings(settings))

        if ledger.would_exceed(cost_of("search")):
            ...  # 호출하지 않고 건너뜀

        ledger.record("search", signature, params, cost=100, response=data)
    """

    def __init__(self, session_factory, config: Optional[QuotaConfig] = None, clock=None):
        self._session_factory = session_factory
        self.config = config or QuotaConfig()
        self._zone = ZoneInfo(self.config.timezone)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def today_bounds(self) -> Tuple[datetime, datetime]:
        """오늘(설정 시간대)의 [시작, 끝) 구간을 naive UTC 로 반환"""
        local_now = self._clock().astimezone(self._zone)
        start_local = datetime.combine(local_now.date(), time.min, tzinfo=self._zone)
        end_local = datetime.combine(local_now.date() + timedelta(days=1), time.min, tzinfo=self._zone)
        return (
            start_local.astimezone(timezone.utc).replace(tzinfo=None),
            end_local.astimezone(timezone.utc).replace(tzinfo=None),
        )

    def used_today(self) -> int:
        start, end = self.today_bounds()
        with session_scope(self._session_factory) as db:
            return ApiCallRepository(db).sum_cost_between(start, end)

    def remaining_budget(self) -> int:
        """남은 사용 가능 쿼터 (음수가 되지 않도록 보장)"""
        return max(0, self.config.usable - self.used_today())

    def would_exceed(self, cost: int) -> bool:
        """cost 만큼 쓰면 버퍼를 침범하는지 여부"""
        return self.used_today() + cost > self.config.usable

    def record(
        self,
        endpoint: str,
        signature: str,
        params: Dict[str, Any],
        cost: int,
        cached: bool = False,
        response_status: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """호출 시도 한 건을 감사 로그에 추가"""
        with session_scope(self._session_factory) as db:
            ApiCallRepository(db).append(
                endpoint=endpoint,
                params_hash=signature,
                request_params=params,
                quota_cost=cost,
                cached=cached,
                response_status=response_status,
                response=response,
                error_message=error_message,
            )
        if cost:
            logger.debug(f"Quota spent: {endpoint} cost={cost}")

    def status(self) -> QuotaStatus:
        used = self.used_today()
        return QuotaStatus(
            used=used,
            remaining=max(0, self.config.usable - used),
            limit=self.config.daily_limit,
        )

    def get_report(self) -> dict:
        """쿼터 사용 리포트

        Returns:
            dict: used, remaining, usable, daily_limit, buffer
        """
        status = self.status()
        return {
            "used": status.used,
            "remaining": status.remaining,
            "usable": self.config.usable,
            "daily_limit": self.config.daily_limit,
            "buffer": self.config.buffer,
        }
