"""재시도 정책 / 상태 코드 분류 유닛 테스트"""
import pytest

from mtv_catalog.core.exceptions import FatalError, QuotaExhaustedError, TransientError
from mtv_catalog.engine.strategy import RetryPolicy, classify_status


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.max_attempts == 4

    def test_backoff_schedule(self):
        """1s, 2s, 4s ... 최대 30s"""
        policy = RetryPolicy()
        delays = [policy.backoff_delay(n) for n in range(1, 8)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    def test_from_settings(self, make_settings):
        settings = make_settings(api_max_retries=5, api_backoff_base_ms=500, api_backoff_max_ms=2000)
        policy = RetryPolicy.from_settings(settings)
        assert policy.max_attempts == 6
        assert policy.backoff_delay(1) == 0.5
        assert policy.backoff_delay(4) == 2.0

    def test_should_retry(self):
        assert RetryPolicy.should_retry(TransientError("boom", 503)) is True
        assert RetryPolicy.should_retry(FatalError("bad", 400)) is False
        assert RetryPolicy.should_retry(QuotaExhaustedError("search", 100, 0)) is False
        assert RetryPolicy.should_retry(ValueError("x")) is False


class TestClassifyStatus:
    @pytest.mark.parametrize("status", [200, 204])
    def test_success(self, status):
        assert classify_status(status) is None

    @pytest.mark.parametrize("status", [403, 429, 500, 502, 503])
    def test_transient(self, status):
        error = classify_status(status, "quotaExceeded")
        assert isinstance(error, TransientError)
        assert error.status_code == status

    @pytest.mark.parametrize("status", [400, 401, 404, 410])
    def test_fatal(self, status):
        error = classify_status(status, "")
        assert isinstance(error, FatalError)
        assert error.status_code == status

    def test_body_snippet_truncated(self):
        error = classify_status(500, "x" * 1000)
        assert len(error.message) < 400
