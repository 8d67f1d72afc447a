"""채널 매칭 점수 계산

시드 이름과 후보 채널 사이의 신뢰도 점수(0~1)를 계산하는 순수 함수.
같은 입력이면 항상 같은 값을 반환합니다 (가산 순서 고정).
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

OFFICIAL_KEYWORDS = (
    "official",
    "music",
    "records",
    "productions",
    "entertainment",
    "films",
    "audio",
    "label",
)

DOMAIN_KEYWORDS = (
    "tamil",
    "kollywood",
    "chennai",
    "south",
    "இசை",  # isai (음악)
    "பாடல்",  # paadal (노래)
)

# 검색 결과 채택 최소 점수 / 핸들 조회 채택 최소 점수
MIN_SEARCH_SCORE = 0.2
MIN_HANDLE_SCORE = 0.3

_HANDLE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass
class MatchScore:
    score: float
    reasons: List[str] = field(default_factory=list)


def calculate_match_score(
    seed_name: str,
    channel_title: str,
    channel_description: str = "",
    subscriber_count: Optional[int] = None,
    search_rank: int = 1,
) -> MatchScore:
    """시드 이름 대비 채널 신뢰도 점수

    가산 항목:
    - 제목 일치: 완전 일치 +0.4, 부분 포함 +0.3, 단어 겹침 0.1/단어 (최대 3)
    - 공식 키워드(제목, 첫 일치만) +0.1
    - 도메인 키워드(제목 또는 설명, 첫 일치만) +0.1
    - 구독자: 10M 이상 +0.15, 1M 이상 +0.10, 100K 이상 +0.05
    - 순위 감점: -0.05 * (rank - 1)

    Args:
        seed_name: 시드 이름
        channel_title: 후보 채널 제목
        channel_description: 후보 채널 설명
        subscriber_count: 구독자 수 (검색 단계에서는 None)
        search_rank: 1부터 시작하는 검색 순위

    Returns:
        MatchScore: [0, 1] 로 잘린 점수와 가산 사유
    """
    score = 0.0
    reasons: List[str] = []

    seed_lower = seed_name.lower()
    title_lower = (channel_title or "").lower()
    desc_lower = (channel_description or "").lower()

    if title_lower == seed_lower:
        score += 0.4
        reasons.append("exact_title_match")
    elif seed_lower in title_lower or title_lower in seed_lower:
        score += 0.3
        reasons.append("partial_title_match")
    else:
        seed_words = [w for w in seed_lower.split() if len(w) > 2]
        title_words = set(title_lower.split())
        overlap = sum(1 for w in seed_words if w in title_words)
        if overlap > 0:
            score += 0.1 * min(overlap, 3)
            reasons.append(f"word_overlap_{overlap}")

    for keyword in OFFICIAL_KEYWORDS:
        if keyword in title_lower:
            score += 0.1
            reasons.append(f"official_keyword_{keyword}")
            break

    for keyword in DOMAIN_KEYWORDS:
        if keyword in title_lower or keyword in desc_lower:
            score += 0.1
            reasons.append(f"domain_keyword_{keyword}")
            break

    if subscriber_count:
        if subscriber_count >= 10_000_000:
            score += 0.15
            reasons.append("subscribers_10m_plus")
        elif subscriber_count >= 1_000_000:
            score += 0.1
            reasons.append("subscribers_1m_plus")
        elif subscriber_count >= 100_000:
            score += 0.05
            reasons.append("subscribers_100k_plus")

    if search_rank > 1:
        score -= 0.05 * (search_rank - 1)
        reasons.append(f"rank_penalty_{search_rank}")

    return MatchScore(score=min(1.0, max(0.0, score)), reasons=reasons)


def looks_like_handle(seed_name: str) -> bool:
    """@핸들이거나 공백 제거 후 식별자 문자만으로 구성된 이름인지"""
    compact = "".join(seed_name.split())
    return compact.startswith("@") or bool(_HANDLE_PATTERN.match(compact))


def handle_candidate(seed_name: str) -> str:
    """핸들 조회에 사용할 문자열 (공백 제거)"""
    return "".join(seed_name.split())
