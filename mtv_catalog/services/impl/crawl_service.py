"""업로드 재생목록 크롤 서비스 (재개 가능)

페이지마다:
1. 쿼터 확인 (부족하면 중단, 지금까지의 진행은 이미 저장됨)
2. 저장된 토큰으로 한 페이지 조회
3. video_id 가 있는 항목만 pending 영상으로 멱등 삽입 (트랜잭션 1)
4. 진행 상태 저장 (트랜잭션 2)

삽입 후 진행 저장 전에 중단되면 같은 페이지를 다시 받지만 삽입이 멱등이므로 안전합니다.
"""

from __future__ import annotations

from typing import Optional

from mtv_catalog.core.context import AppContext
from mtv_catalog.core.exceptions import QuotaExhaustedError
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.budget import cost_of
from mtv_catalog.engine.result import CrawlSummary, StageReport, capture
from mtv_catalog.repositories.impl.progress_repository import ProgressRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository
from mtv_catalog.repositories.impl.video_repository import VideoRepository


class PlaylistCrawler:
    """커서 기반 재생목록 크롤러

    Usage:
        crawler = PlaylistCrawler(ctx)
        summary = await crawler.crawl("UUxxxx", "UCxxxx", seed_source="A.R. Rahman Official")
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway
        self.ledger = ctx.ledger

    async def crawl(
        self,
        playlist_id: str,
        channel_id: str,
        seed_source: Optional[str] = None,
        max_pages: Optional[int] = None,
    ) -> CrawlSummary:
        """재생목록을 끝까지 (또는 쿼터/페이지 한도까지) 크롤

        Args:
            playlist_id: 업로드 재생목록 ID
            channel_id: 소유 채널 ID
            seed_source: 영상에 기록할 시드 이름
            max_pages: 이번 호출에서 가져올 최대 페이지 수

        Returns:
            CrawlSummary: 누적 처리 수와 이번 호출에서 새로 추가한 수

        Raises:
            TransientError, FatalError: 실패한 페이지는 저장하지 않고 그대로 전파
        """
        with self.ctx.session() as db:
            progress = ProgressRepository(db).get(playlist_id)
            next_token = progress.next_page_token if progress else None
            fetched_count = progress.fetched_count if progress else 0
            total_results = progress.total_results if progress else None
            is_complete = bool(progress and progress.is_complete)

        summary = CrawlSummary(
            playlist_id=playlist_id,
            total_seen=fetched_count,
            total_results=total_results,
            is_complete=is_complete,
        )
        if is_complete:
            logger.debug(f"Playlist {playlist_id} already complete ({fetched_count} items)")
            return summary

        page_cost = cost_of("playlistItems")
        while True:
            if max_pages is not None and summary.pages_fetched >= max_pages:
                break
            if self.ledger.would_exceed(page_cost):
                logger.warning(f"Quota exhausted, pausing crawl of {playlist_id} at {fetched_count} items")
                summary.halted_by_quota = True
                break

            try:
                page = await self.gateway.list_playlist_page(playlist_id, next_token)
            except QuotaExhaustedError:
                summary.halted_by_quota = True
                break

            if total_results is None and page.total_results is not None:
                total_results = page.total_results

            published = {item.video_id: item.published_at for item in page.items if item.video_id}
            with self.ctx.session() as db:
                inserted = VideoRepository(db).insert_many_if_absent(
                    list(published), channel_id, seed_source, published_at=published
                )

            fetched_count += len(page.items)
            next_token = page.next_page_token
            with self.ctx.session() as db:
                ProgressRepository(db).save_page(
                    playlist_id,
                    channel_id,
                    next_page_token=next_token,
                    fetched_count=fetched_count,
                    total_results=total_results,
                )

            summary.pages_fetched += 1
            summary.newly_inserted += inserted
            summary.total_seen = fetched_count
            summary.total_results = total_results

            if not next_token:
                summary.is_complete = True
                break

        logger.info(
            f"Crawled {playlist_id}: {summary.pages_fetched} pages, {summary.newly_inserted} new, "
            f"{summary.total_seen}/{summary.total_results or '?'} seen"
            + (" (complete)" if summary.is_complete else "")
        )
        return summary

    async def crawl_pending(self, max_playlists: Optional[int] = None) -> StageReport:
        """크롤이 끝나지 않은 모든 업로드 재생목록 처리

        재생목록 단위 오류는 기록 후 다음으로 진행, 쿼터 부족이면 중단합니다.
        """
        report = StageReport(stage="crawl", details={"new_videos": 0})
        with self.ctx.session() as db:
            targets = [
                (seed.seed_name, seed.resolved_channel_id, seed.uploads_playlist_id)
                for seed in SeedRepository(db).get_crawl_targets()
            ]
        if max_playlists is not None:
            targets = targets[:max_playlists]

        logger.info(f"Crawling {len(targets)} uploads playlists")

        seen_playlists = set()
        for seed_name, channel_id, playlist_id in targets:
            # 여러 시드가 같은 채널로 해석된 경우
            if playlist_id in seen_playlists:
                continue
            seen_playlists.add(playlist_id)

            outcome = await capture(self.crawl(playlist_id, channel_id, seed_source=seed_name))
            report.processed += 1

            if not outcome.is_ok:
                if outcome.halts_stage:
                    report.halted_by_quota = True
                    report.deferred += 1
                    break
                report.failed += 1
                logger.error(f"Crawl of {playlist_id} ('{seed_name}') failed: {outcome.message}")
                continue

            summary = outcome.value
            report.details["new_videos"] += summary.newly_inserted
            if summary.is_complete:
                report.succeeded += 1
            else:
                report.deferred += 1
            if summary.halted_by_quota:
                report.halted_by_quota = True
                break

        logger.info(
            f"Crawl finished: {report.succeeded} complete, {report.deferred} partial, "
            f"{report.failed} failed, {report.details['new_videos']} new videos"
        )
        return report
