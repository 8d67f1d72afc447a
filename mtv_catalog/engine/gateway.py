"""YouTube API Gateway - single choke point for every upstream call

Per call:
1. compute the request signature
2. cache hit → replay the stored response (cost 0, audited)
3. ledger check → QuotaExhaustedError before any transport call
4. transport (pacing + retry); each attempt audited with its real cost
5. parse into normalized models
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from mtv_catalog.core.config import Settings
from mtv_catalog.core.exceptions import QuotaExhaustedError
from mtv_catalog.core.logging import logger
from mtv_catalog.engine import parsers
from mtv_catalog.engine.budget import CostLedger, cost_of
from mtv_catalog.engine.cache_adapter import ResponseCache
from mtv_catalog.engine.transport import AttemptRecord, YouTubeTransport
from mtv_catalog.schemas.youtube_schema import (
    ChannelDetails,
    ChannelSearchHit,
    PlaylistPage,
    VideoDetails,
)
from mtv_catalog.utils.hash_utils import request_signature

T = TypeVar("T")

CHANNEL_PARTS = "snippet,contentDetails,statistics,brandingSettings,status"
VIDEO_PARTS = "snippet,contentDetails,statistics,status"
PLAYLIST_PARTS = "contentDetails,snippet"
MAX_PAGE_SIZE = 50


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class YouTubeGateway:
    """쿼터 인식 API 게이트웨이

    Usage:
        gateway = YouTubeGateway(settings, ledger, cache, transport)
        hits = await gateway.search_channels("A.R. Rahman Official")
        page = await gateway.list_playlist_page("UU...", page_token=None)
    """

    def __init__(
        self,
        settings: Settings,
        ledger: CostLedger,
        cache: ResponseCache,
        transport: YouTubeTransport,
    ):
        self.settings = settings
        self.ledger = ledger
        self.cache = cache
        self.transport = transport

    async def request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """캐시/쿼터/전송을 거친 원시 응답 (파서 전 단계)

        Raises:
            QuotaExhaustedError: 남은 쿼터로 감당할 수 없는 호출
            TransientError: 재시도 소진
            FatalError: 재시도 불가 오류
        """
        signature = request_signature(endpoint, params)

        cached = self.cache.lookup(signature)
        if cached is not None:
            self.cache.record_hit(endpoint, signature, params)
            return cached

        cost = cost_of(endpoint)
        if self.ledger.would_exceed(cost):
            remaining = self.ledger.remaining_budget()
            logger.warning(f"Quota check failed: {endpoint} costs {cost}, remaining {remaining}")
            raise QuotaExhaustedError(endpoint, cost, remaining)

        return await self.transport.send(endpoint, params, on_attempt=self._audit(signature, cost))

    def _audit(self, signature: str, cost: int) -> Callable[[AttemptRecord], None]:
        def on_attempt(record: AttemptRecord) -> None:
            self.ledger.record(
                record.endpoint,
                signature,
                record.params,
                cost=cost,
                cached=False,
                response_status=record.status_code,
                response=record.response if record.succeeded else None,
                error_message=str(record.error) if record.error else None,
            )
        return on_attempt

    # ---------------------------------------------------------------- search

    async def search_channels(self, query: str, max_results: Optional[int] = None) -> List[ChannelSearchHit]:
        """채널 검색 (비용 100). 결과 순서가 곧 순위"""
        params = {
            "part": "snippet",
            "q": query,
            "type": "channel",
            "maxResults": str(max_results or self.settings.search_max_results),
        }
        data = await self.request("search", params)
        return parsers.parse_search_response(data)

    # -------------------------------------------------------------- channels

    async def get_channel(self, channel_id: str) -> Optional[ChannelDetails]:
        """ID 로 채널 조회 (비용 1). 없으면 None"""
        data = await self.request("channels", {"part": CHANNEL_PARTS, "id": channel_id})
        channels = parsers.parse_channels_response(data)
        return channels[0] if channels else None

    async def get_channel_by_handle(self, handle: str) -> Optional[ChannelDetails]:
        """@핸들로 채널 조회 (비용 1). 없으면 None"""
        clean = handle.lstrip("@")
        if not clean:
            return None
        data = await self.request("channels", {"part": CHANNEL_PARTS, "forHandle": clean})
        channels = parsers.parse_channels_response(data)
        return channels[0] if channels else None

    async def get_channels(self, channel_ids: Sequence[str]) -> List[ChannelDetails]:
        """채널 일괄 조회 (50개 단위, 배치당 비용 1)

        응답에서 빠진 ID 는 is_available=False 자리표시자로 채웁니다.
        """
        async def fetch(batch: List[str]) -> List[ChannelDetails]:
            data = await self.request("channels", {"part": CHANNEL_PARTS, "id": ",".join(batch)})
            found = {c.channel_id: c for c in parsers.parse_channels_response(data)}
            return [found.get(cid) or ChannelDetails.unavailable(cid) for cid in batch]

        return await self._batched(channel_ids, fetch)

    # -------------------------------------------------------------- playlist

    async def list_playlist_page(
        self, playlist_id: str, page_token: Optional[str] = None, max_results: int = MAX_PAGE_SIZE
    ) -> PlaylistPage:
        """재생목록 한 페이지 (비용 1)"""
        params = {
            "part": PLAYLIST_PARTS,
            "playlistId": playlist_id,
            "maxResults": str(min(max_results, MAX_PAGE_SIZE)),
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self.request("playlistItems", params)
        return parsers.parse_playlist_page(data)

    # ---------------------------------------------------------------- videos

    async def get_videos(self, video_ids: Sequence[str]) -> List[VideoDetails]:
        """영상 일괄 조회 (50개 단위, 배치당 비용 1)

        응답에서 빠진 ID 는 status=deleted, title="[Unavailable]" 자리표시자.
        """
        region = self.settings.blocked_region

        async def fetch(batch: List[str]) -> List[VideoDetails]:
            data = await self.request("videos", {"part": VIDEO_PARTS, "id": ",".join(batch)})
            found = {v.video_id: v for v in parsers.parse_videos_response(data, region)}
            return [found.get(vid) or VideoDetails.unavailable(vid) for vid in batch]

        return await self._batched(video_ids, fetch)

    async def _batched(self, ids: Sequence[str], fetch) -> list:
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return []
        batches = chunked(unique_ids, self.settings.api_batch_size)
        tasks = [asyncio.create_task(fetch(batch)) for batch in batches]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # 첫 실패에서 남은 배치 중단
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [item for batch_result in results for item in batch_result]
