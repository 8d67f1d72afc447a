"""Stage Results - Tagged outcomes and per-stage summaries

Every unit of work (one seed, one playlist, one batch) ends in either
``Ok(value)`` or ``Err(kind, message)``. Stage loops branch on ``Err.kind``:
only ``QUOTA_EXHAUSTED`` halts a stage, everything else becomes per-item state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Generic, List, Optional, TypeVar, Union

from mtv_catalog.core.exceptions import (
    FatalError,
    NoConfidentMatchError,
    QuotaExhaustedError,
    TransientError,
)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """실패 종류"""

    TRANSIENT = "transient"  # 재시도 소진 - 다음 실행에서 재시도
    FATAL = "fatal"  # 항목 단위 영구 실패
    QUOTA_EXHAUSTED = "quota_exhausted"  # 스테이지 중단
    NO_CONFIDENT_MATCH = "no_confident_match"  # 항목 단위 영구 실패


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def halts_stage(self) -> bool:
        """스테이지 전체를 멈춰야 하는지 여부"""
        return self.kind == ErrorKind.QUOTA_EXHAUSTED

    @classmethod
    def from_exception(cls, error: Exception) -> "Err":
        """예외 계층 → 실패 종류

        Args:
            error: 게이트웨이/엔진에서 발생한 예외

        Returns:
            Err: 대응하는 실패 결과

        Raises:
            Exception: 분류 대상이 아닌 예외는 그대로 다시 발생
        """
        if isinstance(error, QuotaExhaustedError):
            return cls(ErrorKind.QUOTA_EXHAUSTED, error.message)
        if isinstance(error, NoConfidentMatchError):
            return cls(ErrorKind.NO_CONFIDENT_MATCH, error.reason)
        if isinstance(error, TransientError):
            return cls(ErrorKind.TRANSIENT, error.message)
        if isinstance(error, FatalError):
            return cls(ErrorKind.FATAL, error.message)
        raise error


Outcome = Union[Ok[T], Err]


async def capture(awaitable: Awaitable[T]) -> "Outcome[T]":
    """코루틴 실행 결과를 Outcome 으로 변환 (API 예외만 포착)"""
    try:
        return Ok(await awaitable)
    except (QuotaExhaustedError, NoConfidentMatchError, TransientError, FatalError) as e:
        return Err.from_exception(e)


@dataclass
class Resolution:
    """시드 → 채널 해석 결과"""

    seed_name: str
    channel_id: str
    title: str
    handle: Optional[str]
    confidence: float
    method: str  # override | handle | search
    rank: int
    reasons: List[str] = field(default_factory=list)
    channel: Any = None  # ChannelDetails


@dataclass
class CrawlSummary:
    """재생목록 크롤 결과

    Attributes:
        total_seen: 지금까지 처리한 항목 수 (이전 실행 포함)
        newly_inserted: 이번 호출에서 새로 추가한 영상 수
        halted_by_quota: 쿼터 부족으로 중간에 멈췄는지 여부
    """

    playlist_id: str
    total_seen: int = 0
    newly_inserted: int = 0
    total_results: Optional[int] = None
    pages_fetched: int = 0
    is_complete: bool = False
    halted_by_quota: bool = False


@dataclass
class StageReport:
    """스테이지 실행 요약"""

    stage: str
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    deferred: int = 0  # pending 으로 남긴 항목
    halted_by_quota: bool = False
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "deferred": self.deferred,
            "halted_by_quota": self.halted_by_quota,
            **self.details,
        }
