"""Rate-Limited Retrying Transport (curl_cffi)

- 프로세스 전체에서 하나의 RequestPacer 를 공유해 호출 간 최소 간격을 보장합니다.
  재시도를 포함한 모든 시도가 같은 게이트를 통과합니다.
- AsyncSession 은 한 번 만들어 재사용하고 종료 시 close()로 정리합니다.
- 시도마다 on_attempt 콜백으로 결과를 알려 감사 로그에 실제 비용을 남깁니다.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession

from mtv_catalog.core.config import Settings
from mtv_catalog.core.exceptions import ConfigurationException, FatalError, TransientError
from mtv_catalog.core.logging import logger, sanitize_for_log
from mtv_catalog.engine.strategy import RetryPolicy, classify_status

SleepFn = Callable[[float], Awaitable[None]]


class RequestPacer:
    """호출 간 최소 간격 게이트"""

    def __init__(
        self,
        min_interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self.min_interval_s = max(0.0, min_interval_s)
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None

    async def wait(self) -> None:
        async with self._lock:
            if self._last_request_at is not None:
                remaining = self._last_request_at + self.min_interval_s - self._clock()
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_request_at = self._clock()


@dataclass
class AttemptRecord:
    """업스트림 호출 시도 한 건"""

    endpoint: str
    params: Dict[str, Any]
    attempt: int
    status_code: Optional[int] = None
    response: Optional[Dict[str, Any]] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


AttemptCallback = Callable[[AttemptRecord], None]


class YouTubeTransport:
    """YouTube Data API 전송 계층

    Raises (send):
        TransientError: 재시도 소진 (네트워크, 5xx, 429, 403)
        FatalError: 재시도 불가 (그 외 4xx, JSON 해석 실패)
        ConfigurationException: API 키 미설정
    """

    def __init__(
        self,
        settings: Settings,
        pacer: RequestPacer,
        policy: Optional[RetryPolicy] = None,
        session: Optional[Any] = None,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self.settings = settings
        self.pacer = pacer
        self.policy = policy or RetryPolicy.from_settings(settings)
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self):
        async with self._lock:
            if self._session is not None:
                return self._session
            options: Dict[str, Any] = {
                "headers": {"Accept": "application/json"},
                "max_clients": self.settings.http_max_clients,
                "trust_env": False,
            }
            if self.settings.http_impersonate:
                options["impersonate"] = self.settings.http_impersonate
            self._session = AsyncSession(**options)
            return self._session

    async def send(
        self,
        endpoint: str,
        params: Dict[str, Any],
        on_attempt: Optional[AttemptCallback] = None,
    ) -> Dict[str, Any]:
        """재시도/간격 제어를 적용해 GET 요청

        Args:
            endpoint: API 작업 이름 (search, channels, playlistItems, videos)
            params: 요청 파라미터 (API 키 제외)
            on_attempt: 시도마다 호출되는 콜백

        Returns:
            dict: 원시 JSON 응답
        """
        if not self.settings.youtube_api_key:
            raise ConfigurationException("youtube_api_key", "YOUTUBE_API_KEY is not set")

        max_attempts = self.policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            await self.pacer.wait()
            try:
                status_code, data = await self._request_once(endpoint, params)
            except (TransientError, FatalError) as e:
                if on_attempt:
                    on_attempt(AttemptRecord(endpoint, params, attempt, status_code=e.status_code, error=e))
                if not self.policy.should_retry(e) or attempt >= max_attempts:
                    logger.error(f"[TRANSPORT] {endpoint} failed after {attempt} attempt(s): {e}")
                    raise
                delay = self.policy.backoff_delay(attempt)
                logger.warning(
                    f"[TRANSPORT] {endpoint} attempt {attempt}/{max_attempts} failed "
                    f"({e.message[:120]}), retrying in {delay:.1f}s"
                )
                await self._sleep(delay)
                continue

            if on_attempt:
                on_attempt(AttemptRecord(endpoint, params, attempt, status_code=status_code, response=data))
            return data

        raise TransientError(f"{endpoint}: no attempts made")

    async def _request_once(self, endpoint: str, params: Dict[str, Any]) -> tuple[int, Dict[str, Any]]:
        session = await self._ensure_session()
        url = f"{self.settings.youtube_api_base.rstrip('/')}/{endpoint}"
        query = {**params, "key": self.settings.youtube_api_key}
        try:
            resp = await session.get(url, params=query, timeout=self.settings.api_request_timeout_s)
        except (CurlError, asyncio.TimeoutError, OSError) as e:
            raise TransientError(f"Network error: {type(e).__name__}: {sanitize_for_log(str(e), 200)}") from e

        status_code = getattr(resp, "status_code", 0) or 0
        error = classify_status(status_code, getattr(resp, "text", "") or "")
        if error is not None:
            raise error

        try:
            data = resp.json()
        except ValueError as e:
            raise FatalError(f"Undecodable response body from {endpoint}", status_code=status_code) from e
        if not isinstance(data, dict):
            raise FatalError(f"Unexpected response type from {endpoint}: {type(data).__name__}",
                             status_code=status_code)
        return status_code, data

    async def close(self) -> None:
        async with self._lock:
            if self._session is None or not self._owns_session:
                return
            try:
                await self._session.close()
            except CurlError as e:
                logger.info(f"[TRANSPORT] session close failed: {e}")
            self._session = None
