"""채널 해석 통합 테스트

Fake YouTube 세션 + 임시 SQLite 로 override → handle → search 순서와
결과 저장(resolved / failed / pending)을 검증합니다.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from mtv_catalog.engine.result import ErrorKind
from mtv_catalog.repositories.impl.channel_repository import ChannelRepository
from mtv_catalog.repositories.impl.override_repository import OverrideRepository
from mtv_catalog.repositories.impl.seed_repository import SeedRepository
from mtv_catalog.repositories.models import SeedStatus
from mtv_catalog.services.impl.resolution_service import ChannelResolver
from mtv_catalog.utils.scoring import MatchScore
from tests.fixtures.youtube_payloads import (
    ISAIARUVI_CHANNEL,
    RAHMAN_CHANNEL,
    FakeResponse,
    channel_item,
)

pytestmark = pytest.mark.integration


def add_seeds(ctx, *names):
    with ctx.session() as db:
        SeedRepository(db).insert_many_if_absent(names)


def get_seed(ctx, name):
    with ctx.session() as db:
        return SeedRepository(db).get(name)


class TestResolveOne:
    @pytest.mark.asyncio
    async def test_search_resolution(self, ctx, fake_youtube):
        fake_youtube.add_channel(RAHMAN_CHANNEL)
        fake_youtube.search_results["A.R. Rahman Official"] = ["UCrahman"]

        outcome = await ChannelResolver(ctx).resolve("A.R. Rahman Official")

        assert outcome.is_ok
        resolution = outcome.value
        assert resolution.channel_id == "UCrahman"
        assert resolution.method == "search"
        assert resolution.rank == 1
        assert resolution.confidence == 0.65
        # 검색 100 + 채널 조회 1
        assert ctx.ledger.used_today() == 101
        assert fake_youtube.calls_to("channels")[0]["id"] == "UCrahman"

    @pytest.mark.asyncio
    async def test_final_score_uses_subscribers_and_rank(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UCother", "Unrelated"))
        fake_youtube.add_channel(channel_item("UCtips", "Tips Tamil", subscribers=5_000_000, uploads="UUtips"))
        fake_youtube.search_results["Tips Tamil Songs"] = ["UCother", "UCtips"]

        outcome = await ChannelResolver(ctx).resolve("Tips Tamil Songs")

        assert outcome.value.channel_id == "UCtips"
        assert outcome.value.rank == 2
        # partial 0.3 + tamil 0.1 + 1M 0.1 - rank2 0.05
        assert outcome.value.confidence == pytest.approx(0.45)

    @pytest.mark.asyncio
    async def test_tie_keeps_earlier_rank(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UC1", "Madras Gig"))
        fake_youtube.add_channel(channel_item("UC2", "Madras Gig"))
        fake_youtube.search_results["Madras Gig!"] = ["UC1", "UC2"]

        with patch(
            "mtv_catalog.services.impl.resolution_service.calculate_match_score",
            return_value=MatchScore(0.5, ["fixed"]),
        ):
            outcome = await ChannelResolver(ctx).resolve("Madras Gig!")

        assert outcome.value.channel_id == "UC1"
        assert outcome.value.rank == 1

    @pytest.mark.asyncio
    async def test_handle_resolution(self, ctx, fake_youtube):
        fake_youtube.add_channel(ISAIARUVI_CHANNEL, handle="Isaiaruvi")

        outcome = await ChannelResolver(ctx).resolve("Isaiaruvi")

        assert outcome.value.method == "handle"
        assert outcome.value.channel_id == "UCisaiaruvi"
        assert outcome.value.confidence == pytest.approx(0.6)
        assert fake_youtube.calls_to("search") == []
        assert ctx.ledger.used_today() == 1

    @pytest.mark.asyncio
    async def test_weak_handle_falls_back_to_search(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UCwrong", "Completely Different"), handle="OfRo")
        fake_youtube.add_channel(channel_item("UCofro", "OfRo", subscribers=200_000))
        fake_youtube.search_results["OfRo"] = ["UCofro"]

        outcome = await ChannelResolver(ctx).resolve("OfRo")

        assert outcome.value.method == "search"
        assert outcome.value.channel_id == "UCofro"
        assert ctx.ledger.used_today() == 1 + 100 + 1

    @pytest.mark.asyncio
    async def test_handle_error_falls_back_to_search(self, ctx, fake_youtube):
        fake_youtube.fail_next("channels", FakeResponse(400, text="invalid handle"))
        fake_youtube.add_channel(ISAIARUVI_CHANNEL)
        fake_youtube.search_results["Isaiaruvi"] = ["UCisaiaruvi"]

        outcome = await ChannelResolver(ctx).resolve("Isaiaruvi")

        assert outcome.value.method == "search"

    @pytest.mark.asyncio
    async def test_override_wins(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UCsun", "Sun Pictures", uploads="UUsun"))
        with ctx.session() as db:
            OverrideRepository(db).upsert("Sun Pictures", "UCsun")

        outcome = await ChannelResolver(ctx).resolve("Sun Pictures")

        assert outcome.value.method == "override"
        assert outcome.value.confidence == 1.0
        assert outcome.value.rank == 1
        assert fake_youtube.calls_to("search") == []

    @pytest.mark.asyncio
    async def test_stale_override_falls_back_to_search(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UCsun", "Sun Pictures", uploads="UUsun"))
        fake_youtube.search_results["Sun Pictures"] = ["UCsun"]
        with ctx.session() as db:
            OverrideRepository(db).upsert("Sun Pictures", "UCgone")

        outcome = await ChannelResolver(ctx).resolve("Sun Pictures")

        assert outcome.is_ok
        assert outcome.value.channel_id == "UCsun"
        assert outcome.value.method == "search"
        assert fake_youtube.calls_to("channels")[0]["id"] == "UCgone"
        assert len(fake_youtube.calls_to("search")) == 1

    @pytest.mark.asyncio
    async def test_nonexistent_channel(self, ctx, fake_youtube):
        """핸들 조회(1) → 검색(100) → 결과 없음"""
        outcome = await ChannelResolver(ctx).resolve("Zzz Nonexistent Channel 123")

        assert outcome.kind == ErrorKind.NO_CONFIDENT_MATCH
        assert outcome.message == "No search results"
        assert fake_youtube.calls_to("channels")[0]["forHandle"] == "ZzzNonexistentChannel123"
        assert ctx.ledger.used_today() == 101

    @pytest.mark.asyncio
    async def test_low_score_rejected(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UC1", "Nothing Alike"))
        fake_youtube.add_channel(channel_item("UC2", "Gig Madras Live"))
        fake_youtube.search_results["Madras Gig"] = ["UC1", "UC2"]

        outcome = await ChannelResolver(ctx).resolve("Madras Gig")

        # rank 2: 0.2 - 0.05
        assert outcome.kind == ErrorKind.NO_CONFIDENT_MATCH
        assert outcome.message == "Best match score too low (0.15): Gig Madras Live"
        assert fake_youtube.calls_to("channels")[-1].get("forHandle") == "MadrasGig"

    @pytest.mark.asyncio
    async def test_all_zero_scores(self, ctx, fake_youtube):
        fake_youtube.add_channel(channel_item("UC1", "Nothing Alike"))
        fake_youtube.search_results["A.B. Seed"] = ["UC1"]

        outcome = await ChannelResolver(ctx).resolve("A.B. Seed")

        assert outcome.message == "Best match score too low (0.00): none"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score, resolved", [(0.2, True), (0.1999, False)])
    async def test_search_threshold_boundary(self, ctx, fake_youtube, score, resolved):
        fake_youtube.add_channel(channel_item("UC1", "Candidate"))
        fake_youtube.search_results["A.B. Seed"] = ["UC1"]

        with patch(
            "mtv_catalog.services.impl.resolution_service.calculate_match_score",
            return_value=MatchScore(score, []),
        ):
            outcome = await ChannelResolver(ctx).resolve("A.B. Seed")

        assert outcome.is_ok is resolved

    @pytest.mark.asyncio
    async def test_winner_details_missing_is_fatal(self, ctx, fake_youtube):
        fake_youtube.search_results["A.R. Rahman Official"] = ["UCghost"]
        fake_youtube.search_snippets["UCghost"] = {"title": "A.R. Rahman Official", "description": ""}

        outcome = await ChannelResolver(ctx).resolve("A.R. Rahman Official")

        assert outcome.kind == ErrorKind.FATAL
        assert outcome.message == "Could not fetch channel UCghost"

    @pytest.mark.asyncio
    async def test_search_needs_full_cost(self, make_ctx, fake_youtube):
        """handle 조회는 가능해도 검색 비용이 부족하면 QUOTA_EXHAUSTED"""
        ctx = make_ctx(daily_quota_limit=150, quota_buffer=100)

        outcome = await ChannelResolver(ctx).resolve("Isaiaruvi")

        assert outcome.kind == ErrorKind.QUOTA_EXHAUSTED
        assert fake_youtube.calls_to("search") == []


class TestResolvePending:
    @pytest.mark.asyncio
    async def test_outcomes_persisted(self, ctx, fake_youtube):
        fake_youtube.add_channel(RAHMAN_CHANNEL)
        fake_youtube.search_results["A.R. Rahman Official"] = ["UCrahman"]
        add_seeds(ctx, "A.R. Rahman Official", "Zzz Nonexistent Channel 123", "   ")

        report = await ChannelResolver(ctx).resolve_pending()

        assert (report.processed, report.succeeded, report.failed, report.deferred) == (3, 1, 1, 0)
        rahman = get_seed(ctx, "A.R. Rahman Official")
        assert rahman.resolution_status == SeedStatus.RESOLVED.value
        assert rahman.resolved_channel_id == "UCrahman"
        assert rahman.uploads_playlist_id == "UUrahman"
        assert rahman.subscriber_count == 12_000_000
        assert rahman.confidence_score == 0.65
        assert rahman.resolution_method == "search"
        assert rahman.chosen_rank == 1

        missing = get_seed(ctx, "Zzz Nonexistent Channel 123")
        assert missing.resolution_status == SeedStatus.FAILED.value
        assert missing.resolution_error == "No search results"

        assert get_seed(ctx, "   ").resolution_status == SeedStatus.SKIPPED.value

        with ctx.session() as db:
            assert ChannelRepository(db).get("UCrahman").title == "A.R. Rahman Official"

    @pytest.mark.asyncio
    async def test_transient_error_keeps_seed_pending(self, ctx, fake_youtube):
        fake_youtube.fail_next("search", *[FakeResponse(500, text="backend error")] * 4)
        add_seeds(ctx, "A.R. Rahman Official")

        report = await ChannelResolver(ctx).resolve_pending()

        assert report.deferred == 1
        assert report.halted_by_quota is False
        seed = get_seed(ctx, "A.R. Rahman Official")
        assert seed.resolution_status == SeedStatus.PENDING.value
        assert "500" in seed.resolution_error

    @pytest.mark.asyncio
    async def test_quota_halts_stage(self, make_ctx, fake_youtube):
        """두 번째 시드에서 검색 비용 부족 → pending 유지, 세 번째는 손대지 않음"""
        ctx = make_ctx(daily_quota_limit=250, quota_buffer=100)
        fake_youtube.add_channel(RAHMAN_CHANNEL)
        fake_youtube.search_results["A.R. Rahman Official"] = ["UCrahman"]
        add_seeds(ctx, "A.R. Rahman Official", "Lahari Music | Tamil", "Star Music India – Tamil")

        report = await ChannelResolver(ctx).resolve_pending()

        assert report.halted_by_quota is True
        assert (report.succeeded, report.deferred, report.processed) == (1, 1, 2)
        assert get_seed(ctx, "Lahari Music | Tamil").resolution_status == SeedStatus.PENDING.value
        assert get_seed(ctx, "Star Music India – Tamil").resolution_status == SeedStatus.PENDING.value
        assert len(fake_youtube.calls_to("search")) == 1
        assert ctx.ledger.used_today() == 101

    @pytest.mark.asyncio
    async def test_rerun_skips_resolved_seeds(self, ctx, fake_youtube):
        fake_youtube.add_channel(RAHMAN_CHANNEL)
        fake_youtube.search_results["A.R. Rahman Official"] = ["UCrahman"]
        add_seeds(ctx, "A.R. Rahman Official")

        await ChannelResolver(ctx).resolve_pending()
        report = await ChannelResolver(ctx).resolve_pending()

        assert report.processed == 0
        assert len(fake_youtube.calls) == 2
