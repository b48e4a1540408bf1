"""
Cross-campaign pattern analysis.
Flags campaigns that reuse wording or cluster on goal amount with recent
same-category campaigns from other creators.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Sequence, Set

from fundguard.config import settings
from fundguard.models.analysis import SignalCollector, SubScore
from fundguard.models.snapshot import CampaignRecord, CampaignSnapshot
from fundguard.services.store_service import CampaignStore
from fundguard.utils.logging_config import metrics
from fundguard.utils.preprocessing import significant_words

TITLE_MIN_WORD_LENGTH = 3
TITLE_STRONG_OVERLAP = 0.7
TITLE_STRONG_POINTS = 25
TITLE_MODERATE_OVERLAP = 0.5
TITLE_MODERATE_POINTS = 15

DESCRIPTION_MIN_WORD_LENGTH = 4
DESCRIPTION_STRONG_OVERLAP = 0.6
DESCRIPTION_STRONG_POINTS = 30
DESCRIPTION_MODERATE_OVERLAP = 0.4
DESCRIPTION_MODERATE_POINTS = 20

AMOUNT_CLUSTER_TOLERANCE = 0.10
AMOUNT_CLUSTER_LIMIT = 3
AMOUNT_CLUSTER_POINTS = 15

logger = logging.getLogger(__name__)


def overlap_ratio(a: Set[str], b: Set[str]) -> float:
    """Shared words relative to the smaller of the two word sets."""
    smaller = min(len(a), len(b))
    if smaller == 0:
        return 0.0
    return len(a & b) / smaller


def _best_overlap(words: Set[str], others: Sequence[Set[str]], strong: float) -> float:
    best = 0.0
    for other in others:
        ratio = overlap_ratio(words, other)
        if ratio > strong:
            return ratio  # first strong match settles it
        best = max(best, ratio)
    return best


def score_patterns(campaign: CampaignSnapshot, others: Sequence[CampaignRecord]) -> SubScore:
    """Score ``campaign`` against comparison campaigns. Pure."""
    signals = SignalCollector("pattern", "Pattern")
    if not others:
        return signals.result()

    title_words = significant_words(campaign.title, TITLE_MIN_WORD_LENGTH)
    title_ratio = _best_overlap(
        title_words,
        [significant_words(o.title, TITLE_MIN_WORD_LENGTH) for o in others],
        TITLE_STRONG_OVERLAP,
    )
    if title_ratio > TITLE_STRONG_OVERLAP:
        signals.add(TITLE_STRONG_POINTS, f"Title nearly duplicates a recent campaign ({title_ratio:.0%} shared words)")
    elif title_ratio > TITLE_MODERATE_OVERLAP:
        signals.add(TITLE_MODERATE_POINTS, f"Title resembles a recent campaign ({title_ratio:.0%} shared words)")

    desc_words = significant_words(campaign.description, DESCRIPTION_MIN_WORD_LENGTH)
    desc_ratio = _best_overlap(
        desc_words,
        [significant_words(o.description, DESCRIPTION_MIN_WORD_LENGTH) for o in others],
        DESCRIPTION_STRONG_OVERLAP,
    )
    if desc_ratio > DESCRIPTION_STRONG_OVERLAP:
        signals.add(
            DESCRIPTION_STRONG_POINTS,
            f"Description nearly duplicates a recent campaign ({desc_ratio:.0%} shared words)",
        )
    elif desc_ratio > DESCRIPTION_MODERATE_OVERLAP:
        signals.add(
            DESCRIPTION_MODERATE_POINTS,
            f"Description resembles a recent campaign ({desc_ratio:.0%} shared words)",
        )

    amount = float(campaign.goal_amount)
    tolerance = amount * AMOUNT_CLUSTER_TOLERANCE
    clustered = sum(1 for o in others if abs(o.goal_amount - amount) <= tolerance)
    if clustered > AMOUNT_CLUSTER_LIMIT:
        signals.add(AMOUNT_CLUSTER_POINTS, f"{clustered} recent campaigns ask for nearly the same amount")

    return signals.result()


def fallback_pattern_score(reason: str) -> SubScore:
    metrics.increment("analysis.fallback.pattern")
    signals = SignalCollector("pattern", "Pattern")
    signals.add(settings.pattern_fallback_score, f"Pattern comparison unavailable ({reason})")
    return signals.result()


async def analyze_patterns(store: CampaignStore, campaign: CampaignSnapshot, now: datetime) -> SubScore:
    since = now - timedelta(days=settings.pattern_window_days)
    try:
        others = await asyncio.wait_for(
            asyncio.to_thread(
                store.find_campaigns_by_category_excluding_creator,
                campaign.category,
                campaign.creator_id,
                since,
            ),
            timeout=settings.store_query_timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Pattern lookup timed out for creator {campaign.creator_id}")
        return fallback_pattern_score("lookup timed out")
    except Exception as e:
        logger.warning(f"Pattern lookup failed for creator {campaign.creator_id}: {e}")
        return fallback_pattern_score("lookup failed")

    return score_patterns(campaign, others)
