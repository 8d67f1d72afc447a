"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 주입 (YouTube API, sleep)
- 테스트마다 임시 SQLite 파일 DB

금지:
- 실제 YouTube API 호출
- 실제 대기 (sleep)
"""

from __future__ import annotations

import os
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mtv_catalog.core.config import Settings  # noqa: E402
from mtv_catalog.core.context import AppContext  # noqa: E402
from tests.fixtures.youtube_payloads import PLAYLIST_PUBLISHED_AT, FakeResponse  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


class RecordingSleep:
    """asyncio.sleep 대체 - 대기 시간만 기록"""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeYouTubeSession:
    """curl_cffi AsyncSession 대체 (메모리 상의 YouTube Data API)

    - channels: channel_id → 원시 channel 항목
    - handles: 소문자 핸들 → channel_id
    - search_results: 검색어 → channel_id 목록 (순위 순)
    - playlists: playlist_id → video_id 목록 (None 이면 videoId 없는 항목)
    - videos: video_id → 원시 video 항목
    - fail_next(endpoint, ...): 다음 호출들에서 순서대로 돌려줄 응답/예외
    """

    def __init__(self) -> None:
        self.channels: Dict[str, dict] = {}
        self.handles: Dict[str, str] = {}
        self.search_results: Dict[str, List[str]] = {}
        self.search_snippets: Dict[str, dict] = {}
        self.playlists: Dict[str, List[Optional[str]]] = {}
        self.videos: Dict[str, dict] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.closed = False
        self._scripted: Dict[str, List[Any]] = defaultdict(list)

    # ------------------------------------------------------------ 데이터 등록

    def add_channel(self, item: dict, handle: Optional[str] = None) -> None:
        self.channels[item["id"]] = item
        if handle:
            self.handles[handle.lstrip("@").lower()] = item["id"]

    def add_video(self, item: dict) -> None:
        self.videos[item["id"]] = item

    def fail_next(self, endpoint: str, *responses: Any) -> None:
        self._scripted[endpoint].extend(responses)

    def calls_to(self, endpoint: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == endpoint]

    # ------------------------------------------------------------ AsyncSession

    async def get(self, url: str, params: Optional[dict] = None, timeout: Optional[float] = None) -> FakeResponse:
        endpoint = url.rsplit("/", 1)[-1]
        params = dict(params or {})
        self.calls.append((endpoint, params))

        if self._scripted[endpoint]:
            scripted = self._scripted[endpoint].pop(0)
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        handler = getattr(self, f"_handle_{endpoint}", None)
        if handler is None:
            return FakeResponse(404, {"error": {"message": f"unknown endpoint {endpoint}"}})
        return FakeResponse(200, handler(params))

    async def close(self) -> None:
        self.closed = True

    # ------------------------------------------------------------ 라우팅

    def _handle_search(self, params: dict) -> dict:
        limit = int(params.get("maxResults", 5))
        items = []
        for channel_id in self.search_results.get(params.get("q", ""), [])[:limit]:
            snippet = self.search_snippets.get(channel_id)
            if snippet is None:
                channel_snippet = self.channels.get(channel_id, {}).get("snippet", {})
                snippet = {
                    "title": channel_snippet.get("title", ""),
                    "description": channel_snippet.get("description", ""),
                }
            items.append({"id": {"kind": "youtube#channel", "channelId": channel_id}, "snippet": snippet})
        return {"items": items, "pageInfo": {"totalResults": len(items)}}

    def _handle_channels(self, params: dict) -> dict:
        if "forHandle" in params:
            channel_id = self.handles.get(params["forHandle"].lower())
            return {"items": [self.channels[channel_id]] if channel_id in self.channels else []}
        ids = [i for i in params.get("id", "").split(",") if i]
        return {"items": [self.channels[i] for i in ids if i in self.channels]}

    def _handle_playlistItems(self, params: dict) -> dict:
        video_ids = self.playlists.get(params["playlistId"])
        if video_ids is None:
            return {"items": [], "pageInfo": {"totalResults": 0}}
        size = int(params.get("maxResults", 50))
        offset = int(params.get("pageToken", "p0")[1:])
        items = []
        for position, video_id in enumerate(video_ids[offset:offset + size], start=offset):
            content = {"videoId": video_id, "videoPublishedAt": PLAYLIST_PUBLISHED_AT} if video_id else {}
            items.append({"snippet": {"title": f"Video {position}", "position": position}, "contentDetails": content})
        data = {"items": items, "pageInfo": {"totalResults": len(video_ids), "resultsPerPage": size}}
        if offset + size < len(video_ids):
            data["nextPageToken"] = f"p{offset + size}"
        return data

    def _handle_videos(self, params: dict) -> dict:
        ids = [i for i in params.get("id", "").split(",") if i]
        return {"items": [self.videos[i] for i in ids if i in self.videos]}


@pytest.fixture
def fake_youtube() -> FakeYouTubeSession:
    return FakeYouTubeSession()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_settings(tmp_path):
    """임시 DB 를 쓰는 Settings 팩토리"""

    def factory(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "database_url": f"sqlite:///{tmp_path / 'catalog.db'}",
            "youtube_api_key": "test-key",
            "min_request_interval_ms": 0,
            "overrides_path": str(tmp_path / "overrides.yaml"),
        }
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def make_ctx(make_settings, fake_youtube, fake_sleep):
    """AppContext 팩토리 (Fake 세션 주입, 테스트 종료 시 엔진 정리)"""
    created: List[AppContext] = []

    def factory(**overrides: Any) -> AppContext:
        ctx = AppContext(make_settings(**overrides), http_session=fake_youtube, sleep=fake_sleep)
        created.append(ctx)
        return ctx

    yield factory

    for ctx in created:
        ctx.engine.dispose()


@pytest.fixture
def ctx(make_ctx) -> AppContext:
    return make_ctx()
