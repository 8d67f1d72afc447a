"""업로드 재생목록 조회 서비스

해석은 됐지만 업로드 재생목록 ID 가 없는 시드의 채널 정보를 일괄 조회해
채널을 갱신하고 시드에 재생목록 ID 를 기록합니다.
"""

from __future__ import annotations

from collections import defaultdict

from mtv_catalog.core.context import AppContext
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.gateway import chunked
from mtv_catalog.engine.result import StageReport, capture
from mtv_catalog.repositories.impl.channel_repository import ChannelRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository


class UploadsPlaylistService:
    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    async def fetch_uploads_playlists(self) -> StageReport:
        report = StageReport(stage="fetch_uploads", details={"not_found": 0})

        with self.ctx.session() as db:
            seeds_by_channel = defaultdict(list)
            for seed in SeedRepository(db).get_needing_uploads_playlist():
                seeds_by_channel[seed.resolved_channel_id].append(seed.seed_name)

        if not seeds_by_channel:
            logger.info("All resolved channels already have uploads playlists")
            return report

        channel_ids = list(seeds_by_channel)
        logger.info(f"Fetching uploads playlists for {len(channel_ids)} channels")

        for batch in chunked(channel_ids, self.ctx.settings.api_batch_size):
            outcome = await capture(self.gateway.get_channels(batch))
            if not outcome.is_ok:
                if outcome.halts_stage:
                    report.halted_by_quota = True
                    report.deferred += len(batch)
                    break
                logger.error(f"Channel batch failed: {outcome.message}")
                report.failed += len(batch)
                continue

            for channel in outcome.value:
                report.processed += 1
                if not channel.is_available or not channel.uploads_playlist_id:
                    logger.warning(f"No uploads playlist for channel {channel.channel_id}")
                    report.details["not_found"] += 1
                    report.failed += 1
                    continue
                with self.ctx.session() as db:
                    ChannelRepository(db).upsert(channel)
                    seeds = SeedRepository(db)
                    for seed_name in seeds_by_channel[channel.channel_id]:
                        seeds.set_uploads_playlist(seed_name, channel.uploads_playlist_id)
                report.succeeded += 1

        logger.info(
            f"Uploads playlists: {report.succeeded} found, {report.details['not_found']} not found"
        )
        return report
