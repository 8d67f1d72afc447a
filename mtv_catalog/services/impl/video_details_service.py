"""영상 메타데이터 조회 서비스

pending 영상을 50개씩 조회해 fetched / failed 로 전이시킵니다.

- 사용 가능한 영상: 메타데이터 저장 + Shorts/비음악 분류
- 자리표시자 또는 private/deleted/blocked: failed
- 배치 단위 FatalError: 배치 전체 failed
- TransientError, 쿼터 부족: 배치를 pending 으로 두고 스테이지 중단
"""

from __future__ import annotations

from typing import Optional

from mtv_catalog.core.context import AppContext
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.result import ErrorKind, StageReport, capture
from mtv_catalog.repositories.impl.video_repository import VideoRepository
from mtv_catalog.schemas.youtube_schema import UNAVAILABLE_TITLE
from mtv_catalog.utils.classification import classify_video


class VideoDetailsService:
    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway

    async def fetch_video_details(self, max_videos: Optional[int] = None) -> StageReport:
        """pending 영상 메타데이터 조회

        Args:
            max_videos: 이번 실행에서 처리할 최대 영상 수 (None 이면 전부)

        Returns:
            StageReport: 처리 요약 (shorts, non_music 포함)
        """
        report = StageReport(stage="fetch_video_details", details={"shorts": 0, "non_music": 0})
        batch_size = self.ctx.settings.api_batch_size

        while max_videos is None or report.processed < max_videos:
            limit = batch_size if max_videos is None else min(batch_size, max_videos - report.processed)
            with self.ctx.session() as db:
                batch = [video.youtube_id for video in VideoRepository(db).get_pending(limit)]
            if not batch:
                break

            outcome = await capture(self.gateway.get_videos(batch))
            if not outcome.is_ok:
                if outcome.kind == ErrorKind.FATAL:
                    logger.error(f"Video batch failed permanently: {outcome.message}")
                    with self.ctx.session() as db:
                        videos = VideoRepository(db)
                        for video_id in batch:
                            videos.mark_failed(video_id, outcome.message)
                    report.processed += len(batch)
                    report.failed += len(batch)
                    continue
                report.halted_by_quota = outcome.halts_stage
                report.deferred += len(batch)
                logger.warning(f"Stopping video details fetch ({outcome.kind.value}): {outcome.message}")
                break

            with self.ctx.session() as db:
                videos = VideoRepository(db)
                for details in outcome.value:
                    report.processed += 1
                    if not details.is_available:
                        reason = (
                            "Video not found in API response"
                            if details.title == UNAVAILABLE_TITLE
                            else f"Video is {details.status.value}"
                        )
                        videos.mark_failed(details.video_id, reason, details.status)
                        report.failed += 1
                        continue

                    classification = classify_video(details)
                    videos.mark_fetched(details, classification)
                    report.succeeded += 1
                    if classification.is_short:
                        report.details["shorts"] += 1
                    if not classification.is_music_candidate:
                        report.details["non_music"] += 1

            logger.info(f"Fetched details for {report.processed} videos so far")

        logger.info(
            f"Video details: {report.succeeded} fetched, {report.failed} failed, "
            f"{report.details['shorts']} shorts, {report.details['non_music']} non-music"
        )
        return report
