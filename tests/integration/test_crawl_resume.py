"""재생목록 크롤 통합 테스트 (재개 가능성, 멱등 삽입, 쿼터 중단)"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from mtv_catalog.core.exceptions import FatalError
from mtv_catalog.repositories.impl.progress_repository import ProgressRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository
from mtv_catalog.repositories.models import MetadataStatus, Video
from mtv_catalog.services.impl.crawl_service import PlaylistCrawler
from mtv_catalog.services.impl.video_details_service import VideoDetailsService
from tests.fixtures.youtube_payloads import PLAYLIST_PUBLISHED_AT, FakeResponse, video_item

pytestmark = pytest.mark.integration

PLAYLIST = "UUrahman"
CHANNEL = "UCrahman"
VIDEO_IDS = [f"vid{i:04d}" for i in range(120)]


def stored_video_ids(ctx):
    with ctx.session() as db:
        return sorted(v.youtube_id for v in db.query(Video).all())


def progress_of(ctx, playlist_id=PLAYLIST):
    with ctx.session() as db:
        return ProgressRepository(db).get(playlist_id)


def video_of(ctx, video_id):
    with ctx.session() as db:
        return db.query(Video).filter(Video.youtube_id == video_id).one()


class TestCrawl:
    @pytest.mark.asyncio
    async def test_full_crawl(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS

        summary = await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL, seed_source="A.R. Rahman Official")

        assert summary.is_complete is True
        assert summary.pages_fetched == 3
        assert summary.newly_inserted == 120
        assert summary.total_seen == 120
        assert summary.total_results == 120
        assert stored_video_ids(ctx) == sorted(VIDEO_IDS)

        progress = progress_of(ctx)
        assert progress.is_complete is True
        assert progress.next_page_token is None
        assert progress.fetched_count == 120
        assert ctx.ledger.used_today() == 3

    @pytest.mark.asyncio
    async def test_complete_playlist_makes_no_calls(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS
        crawler = PlaylistCrawler(ctx)
        await crawler.crawl(PLAYLIST, CHANNEL)
        calls_before = len(fake_youtube.calls)

        summary = await crawler.crawl(PLAYLIST, CHANNEL)

        assert summary.is_complete is True
        assert summary.pages_fetched == 0
        assert summary.newly_inserted == 0
        assert summary.total_seen == 120
        assert len(fake_youtube.calls) == calls_before

    @pytest.mark.asyncio
    async def test_items_without_video_id_counted_not_stored(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = ["v1", None, "v2"]

        summary = await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL)

        assert summary.total_seen == 3
        assert summary.newly_inserted == 2
        assert stored_video_ids(ctx) == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_empty_playlist_completes(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = []

        summary = await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL)

        assert summary.is_complete is True
        assert progress_of(ctx).total_results == 0

    @pytest.mark.asyncio
    async def test_seed_source_recorded(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = ["v1"]

        await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL, seed_source="A.R. Rahman Official")

        with ctx.session() as db:
            video = db.query(Video).filter(Video.youtube_id == "v1").one()
            assert (video.channel_id, video.seed_source) == (CHANNEL, "A.R. Rahman Official")

    @pytest.mark.asyncio
    async def test_published_at_kept_when_metadata_fails(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = ["v1"]
        fake_youtube.add_video(video_item("v1", "Hidden", privacy="private"))

        await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL)
        assert video_of(ctx, "v1").published_at == PLAYLIST_PUBLISHED_AT

        await VideoDetailsService(ctx).fetch_video_details()

        video = video_of(ctx, "v1")
        assert video.metadata_status == MetadataStatus.FAILED.value
        assert video.published_at == PLAYLIST_PUBLISHED_AT


class TestResume:
    @pytest.mark.asyncio
    async def test_resume_after_failure_matches_uninterrupted_run(self, make_ctx, fake_youtube, tmp_path):
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS
        ctx = make_ctx()
        crawler = PlaylistCrawler(ctx)

        first = await crawler.crawl(PLAYLIST, CHANNEL, max_pages=1)
        assert first.is_complete is False
        assert progress_of(ctx).next_page_token == "p50"

        fake_youtube.fail_next("playlistItems", FakeResponse(404, text="playlistNotFound"))
        with pytest.raises(FatalError):
            await crawler.crawl(PLAYLIST, CHANNEL)
        # 실패한 페이지는 진행 상태를 바꾸지 않음
        assert progress_of(ctx).fetched_count == 50
        assert progress_of(ctx).next_page_token == "p50"

        resumed = await crawler.crawl(PLAYLIST, CHANNEL)
        assert resumed.is_complete is True
        assert resumed.newly_inserted == 70
        assert resumed.total_seen == 120

        fresh = make_ctx(database_url=f"sqlite:///{tmp_path / 'fresh.db'}")
        await PlaylistCrawler(fresh).crawl(PLAYLIST, CHANNEL)
        assert stored_video_ids(ctx) == stored_video_ids(fresh)
        assert progress_of(ctx).fetched_count == progress_of(fresh).fetched_count

    @pytest.mark.asyncio
    async def test_crash_between_insert_and_progress(self, ctx, fake_youtube):
        """영상 삽입 후 진행 저장 전에 중단 → 같은 페이지를 다시 받아도 중복 없음"""
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS
        crawler = PlaylistCrawler(ctx)

        with patch.object(ProgressRepository, "save_page", side_effect=RuntimeError("crash")):
            with pytest.raises(RuntimeError):
                await crawler.crawl(PLAYLIST, CHANNEL)

        assert len(stored_video_ids(ctx)) == 50
        assert progress_of(ctx) is None

        summary = await crawler.crawl(PLAYLIST, CHANNEL)

        assert summary.is_complete is True
        assert summary.newly_inserted == 70
        assert summary.total_seen == 120
        assert stored_video_ids(ctx) == sorted(VIDEO_IDS)
        # 첫 페이지는 캐시에서 재생
        assert len(fake_youtube.calls_to("playlistItems")) == 3
        assert ctx.ledger.used_today() == 3

    @pytest.mark.asyncio
    async def test_total_results_fixed_at_first_observation(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS
        crawler = PlaylistCrawler(ctx)
        await crawler.crawl(PLAYLIST, CHANNEL, max_pages=1)

        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS + ["late1", "late2"]
        summary = await crawler.crawl(PLAYLIST, CHANNEL)

        assert summary.total_results == 120
        assert progress_of(ctx).total_results == 120
        assert summary.total_seen == 122

    @pytest.mark.asyncio
    async def test_quota_pauses_crawl(self, make_ctx, fake_youtube):
        ctx = make_ctx(daily_quota_limit=102, quota_buffer=100)
        fake_youtube.playlists[PLAYLIST] = VIDEO_IDS

        summary = await PlaylistCrawler(ctx).crawl(PLAYLIST, CHANNEL)

        assert summary.halted_by_quota is True
        assert summary.pages_fetched == 2
        assert summary.is_complete is False
        progress = progress_of(ctx)
        assert progress.fetched_count == 100
        assert progress.next_page_token == "p100"
        assert len(stored_video_ids(ctx)) == 100


class TestCrawlPending:
    @pytest.mark.asyncio
    async def test_shared_playlist_crawled_once(self, ctx, fake_youtube):
        fake_youtube.playlists[PLAYLIST] = ["v1", "v2"]
        fake_youtube.playlists["UUother"] = ["v3"]
        with ctx.session() as db:
            seeds = SeedRepository(db)
            seeds.insert_many_if_absent(["A.R. Rahman Official", "AR Rahman", "Other"])
            seeds.mark_resolved("A.R. Rahman Official", CHANNEL, "A.R. Rahman Official", None, "search", 0.65, 1,
                                uploads_playlist_id=PLAYLIST)
            seeds.mark_resolved("AR Rahman", CHANNEL, "A.R. Rahman Official", None, "search", 0.4, 2,
                                uploads_playlist_id=PLAYLIST)
            seeds.mark_resolved("Other", "UCother", "Other", None, "search", 0.4, 1,
                                uploads_playlist_id="UUother")

        report = await PlaylistCrawler(ctx).crawl_pending()

        assert report.processed == 2
        assert report.succeeded == 2
        assert report.details["new_videos"] == 3
        assert len(fake_youtube.calls_to("playlistItems")) == 2

    @pytest.mark.asyncio
    async def test_failed_playlist_does_not_stop_stage(self, ctx, fake_youtube):
        fake_youtube.playlists["UUb"] = ["v1"]
        fake_youtube.fail_next("playlistItems", FakeResponse(404, text="playlistNotFound"))
        with ctx.session() as db:
            seeds = SeedRepository(db)
            seeds.insert_many_if_absent(["A", "B"])
            seeds.mark_resolved("A", "UCa", "A", None, "search", 0.4, 1, uploads_playlist_id="UUa")
            seeds.mark_resolved("B", "UCb", "B", None, "search", 0.4, 1, uploads_playlist_id="UUb")

        report = await PlaylistCrawler(ctx).crawl_pending()

        assert (report.processed, report.failed, report.succeeded) == (2, 1, 1)
        assert stored_video_ids(ctx) == ["v1"]
