"""카탈로그 Service - 시드/매핑 초기화, 통계, 초기화(reset), 전체 파이프라인"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mtv_catalog.core.context import AppContext
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.result import StageReport
from mtv_catalog.repositories.impl.analytics_repository import AnalyticsRepository
from mtv_catalog.repositories.impl.channel_repository import ChannelRepository
from mtv_catalog.repositories.impl.override_repository import OverrideRepository
from mtv_catalog.repositories.impl.progress_repository import ProgressRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository
from mtv_catalog.repositories.impl.video_repository import VideoRepository
from mtv_catalog.services.impl.crawl_service import PlaylistCrawler
from mtv_catalog.services.impl.resolution_service import ChannelResolver
from mtv_catalog.services.impl.uploads_service import UploadsPlaylistService
from mtv_catalog.services.impl.video_details_service import VideoDetailsService
from mtv_catalog.utils.resource_loader import load_override_file, load_seed_names


class CatalogService:
    """파이프라인 진입점

    Usage:
        async with AppContext.create() as ctx:
            service = CatalogService(ctx)
            service.init_seeds()
            reports = await service.run_all(max_videos=500)
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    def init_seeds(self, seed_names: Optional[List[str]] = None) -> int:
        """시드 등록 (이미 있는 이름은 무시)

        Args:
            seed_names: 등록할 이름. None 이면 패키지 seeds.yaml 사용

        Returns:
            int: 새로 등록된 시드 수
        """
        names = seed_names if seed_names is not None else load_seed_names(self.ctx.settings.seeds_resource)
        with self.ctx.session() as db:
            inserted = SeedRepository(db).insert_many_if_absent(names)
        logger.info(f"Seeds initialized: {inserted} new of {len(names)}")
        return inserted

    def import_overrides(self, path: Optional[str] = None) -> int:
        """수동 매핑 파일(YAML/JSON)을 DB 로 가져오기 (멱등)"""
        path = path or self.ctx.settings.overrides_path
        overrides = load_override_file(path)
        if not overrides:
            return 0
        with self.ctx.session() as db:
            count = OverrideRepository(db).upsert_many(overrides)
        logger.info(f"Imported {count} channel overrides from {path}")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """카탈로그 통계 + 오늘의 쿼터 사용량"""
        with self.ctx.session() as db:
            stats = AnalyticsRepository(db).get_catalog_stats()
        stats["quota"] = self.ctx.ledger.get_report()
        return stats

    def reset(self, failed_only: bool = False) -> Dict[str, int]:
        """진행 상태 초기화

        - failed_only: failed/skipped 시드만 pending 으로 되돌림
        - 전체: 모든 시드를 pending 으로, 채널/영상/크롤 진행 삭제

        api_calls 감사 로그는 유지합니다 (오늘 쓴 쿼터가 사라지면 한도를 넘길 수 있음).
        """
        with self.ctx.session() as db:
            result = {"seeds": SeedRepository(db).reset(failed_only=failed_only)}
            if not failed_only:
                result["channels"] = ChannelRepository(db).delete_all()
                result["videos"] = VideoRepository(db).delete_all()
                result["playlists"] = ProgressRepository(db).delete_all()
        logger.warning(f"Catalog reset ({'failed only' if failed_only else 'full'}): {result}")
        return result

    async def resolve_channels(self) -> StageReport:
        return await ChannelResolver(self.ctx).resolve_pending()

    async def fetch_uploads(self) -> StageReport:
        return await UploadsPlaylistService(self.ctx).fetch_uploads_playlists()

    async def crawl_uploads(self, max_playlists: Optional[int] = None) -> StageReport:
        return await PlaylistCrawler(self.ctx).crawl_pending(max_playlists)

    async def fetch_video_details(self, max_videos: Optional[int] = None) -> StageReport:
        return await VideoDetailsService(self.ctx).fetch_video_details(max_videos)

    async def run_all(self, max_videos: Optional[int] = None) -> List[StageReport]:
        """해석 → 업로드 재생목록 → 크롤 → 메타데이터 순서로 실행

        쿼터 부족으로 멈춘 스테이지가 있으면 이후 스테이지는 건너뜁니다.
        """
        self.import_overrides()
        self.init_seeds()

        reports: List[StageReport] = []
        stages = (
            self.resolve_channels,
            self.fetch_uploads,
            self.crawl_uploads,
            lambda: self.fetch_video_details(max_videos),
        )
        for index, stage in enumerate(stages, start=1):
            report = await stage()
            reports.append(report)
            logger.info(f"[{index}/{len(stages)}] {report.stage}: {report.to_dict()}")
            if report.halted_by_quota:
                logger.warning("Daily quota exhausted, remaining stages deferred to the next run")
                break
        return reports
