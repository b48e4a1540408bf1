"""
Creator history analysis.
Scores a creator's past year of campaigns: rejections, submission
velocity, completion rate and repeated goal amounts.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional, Sequence

from fundguard.config import settings
from fundguard.models.analysis import SignalCollector, SubScore
from fundguard.models.snapshot import CampaignRecord, CampaignStatus, ensure_utc
from fundguard.services.store_service import CampaignStore
from fundguard.utils.logging_config import metrics

logger = logging.getLogger(__name__)

NEW_CREATOR_SCORE = 15

# (rejection rate strictly above, points), first match wins
REJECTION_TIERS = ((0.7, 50), (0.5, 35), (0.3, 20))

BURST_WINDOW_DAYS = 7
BURST_LIMIT = 2
BURST_POINTS = 30
MONTH_WINDOW_DAYS = 30
MONTH_TIERS = ((5, 25), (3, 15))

# (completion rate below, decided campaigns above, points)
COMPLETION_TIERS = ((0.2, 3, 20), (0.4, 2, 10))

REPEATED_AMOUNT_MIN = 2
REPEATED_AMOUNT_POINTS = 15


def score_creator_history(campaigns: Sequence[CampaignRecord], now: datetime) -> SubScore:
    """Score an already-fetched creator history. Pure."""
    signals = SignalCollector("creator", "Creator History")

    if not campaigns:
        signals.add(NEW_CREATOR_SCORE, "New creator with no campaign history")
        return signals.result()

    total = len(campaigns)
    statuses = Counter(c.status for c in campaigns)

    rejection_rate = statuses[CampaignStatus.REJECTED] / total
    for threshold, points in REJECTION_TIERS:
        if rejection_rate > threshold:
            signals.add(points, f"Creator has a {rejection_rate:.0%} rejection rate")
            break

    def created_within(days: int) -> int:
        cutoff = now - timedelta(days=days)
        return sum(1 for c in campaigns if ensure_utc(c.created_at) >= cutoff)

    last_week = created_within(BURST_WINDOW_DAYS)
    if last_week > BURST_LIMIT:
        signals.add(BURST_POINTS, f"Creator launched {last_week} campaigns in the last week")
    else:
        last_month = created_within(MONTH_WINDOW_DAYS)
        for limit, points in MONTH_TIERS:
            if last_month > limit:
                signals.add(points, f"Creator launched {last_month} campaigns in the last month")
                break

    completed = statuses[CampaignStatus.COMPLETED]
    decided = completed + statuses[CampaignStatus.ACTIVE]
    if decided >= 1:
        completion_rate = completed / decided
        for rate, minimum, points in COMPLETION_TIERS:
            if completion_rate < rate and decided > minimum:
                signals.add(points, f"Creator completes only {completion_rate:.0%} of campaigns")
                break

    amounts = Counter(c.goal_amount for c in campaigns)
    if any(count >= REPEATED_AMOUNT_MIN for count in amounts.values()):
        signals.add(REPEATED_AMOUNT_POINTS, "Creator reuses identical goal amounts across campaigns")

    return signals.result()


def fallback_creator_score(reason: str) -> SubScore:
    metrics.increment("analysis.fallback.creator")
    signals = SignalCollector("creator", "Creator History")
    signals.add(settings.creator_fallback_score, f"Creator history unavailable ({reason})")
    return signals.result()


async def analyze_creator_history(
    store: CampaignStore,
    creator_id: str,
    now: datetime,
    exclude_campaign_id: Optional[str] = None,
) -> SubScore:
    """
    Query the store for the creator's last year of campaigns and score it.

    Store failures and timeouts degrade to the fallback sub-score; they
    never propagate.
    """
    since = now - timedelta(days=settings.creator_history_days)
    try:
        campaigns = await asyncio.wait_for(
            asyncio.to_thread(store.find_campaigns_by_creator, creator_id, since),
            timeout=settings.store_query_timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Creator history lookup timed out for creator {creator_id}")
        return fallback_creator_score("lookup timed out")
    except Exception as e:
        logger.warning(f"Creator history lookup failed for creator {creator_id}: {e}")
        return fallback_creator_score("lookup failed")

    if exclude_campaign_id is not None:
        campaigns = [c for c in campaigns if c.id != exclude_campaign_id]
    return score_creator_history(campaigns, now)
