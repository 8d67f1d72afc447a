"""애플리케이션 컨텍스트

프로세스 시작 시 한 번 만들어 모든 컴포넌트에 주입합니다.
DB 엔진/세션 팩토리, 요청 간격 게이트, HTTP 세션을 소유하고
종료 시 aclose()로 정리합니다.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from mtv_catalog.core.config import Settings
from mtv_catalog.core.database import create_db_engine, create_session_factory, init_db, session_scope
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.budget import CostLedger, QuotaConfig
from mtv_catalog.engine.cache_adapter import ResponseCache
from mtv_catalog.engine.gateway import YouTubeGateway
from mtv_catalog.engine.transport import RequestPacer, YouTubeTransport


class AppContext:
    def __init__(
        self,
        settings: Settings,
        engine: Optional[Engine] = None,
        http_session: Optional[Any] = None,
        sleep=None,
    ) -> None:
        self.settings = settings
        self.engine = engine or create_db_engine(settings.database_url)
        init_db(self.engine)
        self.session_factory = create_session_factory(self.engine)

        self.ledger = CostLedger(self.session_factory, QuotaConfig.from_settings(settings))
        self.cache = ResponseCache(self.session_factory, self.ledger)
        self.pacer = RequestPacer(settings.min_request_interval_ms / 1000.0, sleep=sleep)
        self.transport = YouTubeTransport(settings, self.pacer, session=http_session, sleep=sleep)
        self.gateway = YouTubeGateway(settings, self.ledger, self.cache, self.transport)

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "AppContext":
        from mtv_catalog.core.config import settings as default_settings

        return cls(settings or default_settings)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        with session_scope(self.session_factory) as db:
            yield db

    async def aclose(self) -> None:
        await self.transport.close()
        self.engine.dispose()
        logger.debug("AppContext closed")

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
