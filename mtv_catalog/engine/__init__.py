"""Engine Layer - Quota-Aware Gateway

This module provides the upstream access layer, implementing:
- YouTubeGateway: single choke point for every API call
- CostLedger: daily quota derived from the audit log
- ResponseCache: signature-keyed replay of stored responses
- YouTubeTransport / RequestPacer: pacing, retry and backoff over curl_cffi
- RetryPolicy: error classification and backoff schedule
- Ok / Err: tagged stage outcomes
"""

from .budget import QUOTA_COSTS, CostLedger, QuotaConfig, QuotaStatus, cost_of
from .cache_adapter import ResponseCache
from .gateway import YouTubeGateway
from .result import CrawlSummary, Err, ErrorKind, Ok, Outcome, Resolution, StageReport, capture
from .strategy import RetryPolicy, classify_status
from .transport import AttemptRecord, RequestPacer, YouTubeTransport

__all__ = [
    "YouTubeGateway",
    "CostLedger",
    "QuotaConfig",
    "QuotaStatus",
    "QUOTA_COSTS",
    "cost_of",
    "ResponseCache",
    "YouTubeTransport",
    "RequestPacer",
    "AttemptRecord",
    "RetryPolicy",
    "classify_status",
    # Outcomes
    "Ok",
    "Err",
    "ErrorKind",
    "Outcome",
    "capture",
    "Resolution",
    "CrawlSummary",
    "StageReport",
]
