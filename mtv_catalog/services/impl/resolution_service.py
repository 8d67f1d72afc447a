"""채널 해석 서비스 - 시드 이름 → YouTube 채널 ID

해석 순서 (먼저 성공한 것 채택):
1. 수동 매핑 (override) - 신뢰도 1.0, 채널이 없으면 다음 단계로
2. 핸들 조회 - 핸들 형태의 이름이고 점수 >= 0.3 일 때
3. 검색 - 상위 5개 후보 중 최고 점수, 0.2 미만이면 실패
"""

from __future__ import annotations

from typing import Optional

from mtv_catalog.core.context import AppContext
from mtv_catalog.core.exceptions import (
    FatalError,
    NoConfidentMatchError,
    QuotaExhaustedError,
    TransientError,
)
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.budget import CHEAPEST_CALL_COST, cost_of
from mtv_catalog.engine.result import Err, ErrorKind, Outcome, Resolution, StageReport, capture
from mtv_catalog.repositories.impl.channel_repository import ChannelRepository
from mtv_catalog.repositories.impl.override_repository import OverrideRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository
from mtv_catalog.repositories.models import ResolutionMethod
from mtv_catalog.utils.scoring import (
    MIN_HANDLE_SCORE,
    MIN_SEARCH_SCORE,
    calculate_match_score,
    handle_candidate,
    looks_like_handle,
)


class ChannelResolver:
    """시드 해석기

    Usage:
        resolver = ChannelResolver(ctx)
        outcome = await resolver.resolve("A.R. Rahman Official")
        report = await resolver.resolve_pending()
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway
        self.ledger = ctx.ledger

    async def resolve(self, seed_name: str) -> Outcome[Resolution]:
        """시드 하나를 해석 (DB 상태는 바꾸지 않음)

        Returns:
            Ok(Resolution) 또는 Err(kind, message)
        """
        return await capture(self._resolve(seed_name))

    async def _resolve(self, seed_name: str) -> Resolution:
        override_channel_id = self._get_override(seed_name)
        if override_channel_id:
            resolution = await self._resolve_override(seed_name, override_channel_id)
            if resolution is not None:
                return resolution
            logger.warning(
                f"Override channel {override_channel_id} for '{seed_name}' not found, falling back to lookup"
            )

        if looks_like_handle(seed_name):
            try:
                resolution = await self._resolve_handle(seed_name)
            except (TransientError, FatalError) as e:
                logger.info(f"Handle lookup failed for '{seed_name}', falling back to search: {e}")
                resolution = None
            if resolution is not None:
                return resolution

        return await self._resolve_search(seed_name)

    def _get_override(self, seed_name: str) -> Optional[str]:
        with self.ctx.session() as db:
            override = OverrideRepository(db).get(seed_name)
            return override.channel_id if override else None

    async def _resolve_override(self, seed_name: str, channel_id: str) -> Optional[Resolution]:
        channel = await self.gateway.get_channel(channel_id)
        if channel is None:
            return None
        return Resolution(
            seed_name=seed_name,
            channel_id=channel.channel_id,
            title=channel.title,
            handle=channel.handle,
            confidence=1.0,
            method=ResolutionMethod.OVERRIDE.value,
            rank=1,
            reasons=["manual_override"],
            channel=channel,
        )

    async def _resolve_handle(self, seed_name: str) -> Optional[Resolution]:
        channel = await self.gateway.get_channel_by_handle(handle_candidate(seed_name))
        if channel is None:
            return None
        match = calculate_match_score(
            seed_name, channel.title, channel.description, channel.subscriber_count, 1
        )
        if match.score < MIN_HANDLE_SCORE:
            logger.info(f"Handle match for '{seed_name}' too weak ({match.score:.2f}): {channel.title}")
            return None
        return Resolution(
            seed_name=seed_name,
            channel_id=channel.channel_id,
            title=channel.title,
            handle=channel.handle,
            confidence=match.score,
            method=ResolutionMethod.HANDLE.value,
            rank=1,
            reasons=match.reasons,
            channel=channel,
        )

    async def _resolve_search(self, seed_name: str) -> Resolution:
        search_cost = cost_of("search")
        if self.ledger.would_exceed(search_cost):
            raise QuotaExhaustedError("search", search_cost, self.ledger.remaining_budget())

        hits = await self.gateway.search_channels(seed_name)
        if not hits:
            raise NoConfidentMatchError(seed_name, "No search results")

        best = None
        best_score = 0.0
        best_rank = 0
        for rank, hit in enumerate(hits, start=1):
            match = calculate_match_score(seed_name, hit.title, hit.description, None, rank)
            # 동점이면 앞 순위 유지
            if match.score > best_score:
                best, best_score, best_rank = hit, match.score, rank

        if best is None or best_score < MIN_SEARCH_SCORE:
            title = best.title if best else "none"
            raise NoConfidentMatchError(seed_name, f"Best match score too low ({best_score:.2f}): {title}")

        channel = await self.gateway.get_channel(best.channel_id)
        if channel is None:
            raise FatalError(f"Could not fetch channel {best.channel_id}", details={"seed_name": seed_name})

        final = calculate_match_score(
            seed_name, channel.title, channel.description, channel.subscriber_count, best_rank
        )
        return Resolution(
            seed_name=seed_name,
            channel_id=channel.channel_id,
            title=channel.title,
            handle=channel.handle,
            confidence=final.score,
            method=ResolutionMethod.SEARCH.value,
            rank=best_rank,
            reasons=final.reasons,
            channel=channel,
        )

    async def resolve_pending(self, limit: Optional[int] = None) -> StageReport:
        """pending 시드를 순서대로 해석하고 결과를 저장

        - 성공: 채널 upsert + resolved
        - 매치 없음/치명적 오류: failed
        - 일시적 오류: pending 유지 (다음 실행에서 재시도)
        - 쿼터 부족: pending 유지, 스테이지 중단
        """
        report = StageReport(stage="resolve")
        with self.ctx.session() as db:
            seed_names = [seed.seed_name for seed in SeedRepository(db).get_pending()]
        if limit is not None:
            seed_names = seed_names[:limit]

        logger.info(f"Resolving {len(seed_names)} pending seeds")

        for seed_name in seed_names:
            if not seed_name.strip():
                with self.ctx.session() as db:
                    SeedRepository(db).mark_skipped(seed_name, "Blank seed name")
                report.processed += 1
                continue

            if self.ledger.would_exceed(CHEAPEST_CALL_COST):
                logger.warning("Quota exhausted, stopping channel resolution")
                report.halted_by_quota = True
                break

            outcome = await self.resolve(seed_name)
            report.processed += 1

            if outcome.is_ok:
                self._save_resolution(outcome.value)
                report.succeeded += 1
                logger.info(
                    f"Resolved '{seed_name}' → {outcome.value.title} "
                    f"({outcome.value.method}, rank={outcome.value.rank}, score={outcome.value.confidence:.2f})"
                )
                continue

            if self._save_failure(seed_name, outcome):
                report.failed += 1
            else:
                report.deferred += 1
            if outcome.halts_stage:
                logger.warning(f"Quota exhausted while resolving '{seed_name}', stopping")
                report.halted_by_quota = True
                break

        logger.info(
            f"Resolution finished: {report.succeeded} resolved, {report.failed} failed, "
            f"{report.deferred} deferred"
        )
        return report

    def _save_resolution(self, resolution: Resolution) -> None:
        channel = resolution.channel
        with self.ctx.session() as db:
            ChannelRepository(db).upsert(channel)
            SeedRepository(db).mark_resolved(
                resolution.seed_name,
                channel_id=resolution.channel_id,
                title=resolution.title,
                handle=resolution.handle,
                method=resolution.method,
                confidence=resolution.confidence,
                rank=resolution.rank,
                uploads_playlist_id=channel.uploads_playlist_id,
                subscriber_count=channel.subscriber_count,
                video_count=channel.video_count,
                is_verified=channel.is_verified,
            )

    def _save_failure(self, seed_name: str, outcome: Err) -> bool:
        """실패 저장. failed 로 확정했으면 True, pending 으로 남겼으면 False"""
        with self.ctx.session() as db:
            seeds = SeedRepository(db)
            if outcome.kind in (ErrorKind.NO_CONFIDENT_MATCH, ErrorKind.FATAL):
                seeds.mark_failed(seed_name, outcome.message)
                logger.info(f"Failed to resolve '{seed_name}': {outcome.message}")
                return True
            if outcome.kind == ErrorKind.TRANSIENT:
                seeds.note_error(seed_name, outcome.message)
                logger.warning(f"Transient error resolving '{seed_name}', will retry next run: {outcome.message}")
        return False
