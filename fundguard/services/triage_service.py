"""
Review-queue triage on top of the campaign scorer.

Batch analysis of pending campaigns, queue summaries, the approval gate for
high-risk campaigns and the enrichment step that attaches a fraud result to
an outgoing campaign payload.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from fundguard.config import settings
from fundguard.models.analysis import FraudAnalysisResult, RiskLevel
from fundguard.models.snapshot import CampaignSnapshot, ensure_utc
from fundguard.pipelines.campaign_pipeline import analyze_campaign
from fundguard.services.media_service import MediaFetcher
from fundguard.services.store_service import CampaignStore
from fundguard.utils.logging_config import StructuredLogger
from fundguard.utils.risk_levels import needs_urgent_review

logger = StructuredLogger(__name__)


@dataclass(frozen=True)
class TriageSummary:
    total: int
    by_risk_level: Dict[str, int]
    needs_manual_review: int
    auto_approvable: int
    urgent: int


@dataclass(frozen=True)
class ApprovalDecision:
    allowed: bool
    requires_override: bool
    message: str
    warning: Optional[str] = None


async def analyze_queue(
    snapshots: Sequence[CampaignSnapshot],
    store: CampaignStore,
    fetcher: Optional[MediaFetcher] = None,
    *,
    risk_level: Optional[RiskLevel] = None,
    now: Optional[datetime] = None,
    concurrency: Optional[int] = None,
) -> List[Tuple[CampaignSnapshot, FraudAnalysisResult]]:
    """
    Analyze a batch of campaigns and return them riskiest first.

    All campaigns share one reference time. ``risk_level`` keeps only
    campaigns in that tier.
    """
    now = ensure_utc(now or datetime.now(timezone.utc))
    concurrency = settings.queue_concurrency if concurrency is None else concurrency
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run(snapshot: CampaignSnapshot) -> FraudAnalysisResult:
        async with semaphore:
            return await analyze_campaign(snapshot, store, fetcher, now=now)

    results = await asyncio.gather(*(run(s) for s in snapshots))
    pairs = list(zip(snapshots, results))

    for snapshot, result in pairs:
        if needs_urgent_review(result.fraud_score):
            logger.warning(
                "High fraud risk detected",
                campaign_id=snapshot.campaign_id,
                fraud_score=result.fraud_score,
            )

    if risk_level is not None:
        pairs = [(s, r) for s, r in pairs if r.risk_level == risk_level]
    pairs.sort(key=lambda pair: pair[1].fraud_score, reverse=True)
    return pairs


def summarize(results: Sequence[FraudAnalysisResult]) -> TriageSummary:
    levels = Counter(r.risk_level.value for r in results)
    return TriageSummary(
        total=len(results),
        by_risk_level={level.value: levels.get(level.value, 0) for level in RiskLevel},
        needs_manual_review=sum(1 for r in results if r.needs_manual_review),
        auto_approvable=sum(1 for r in results if r.auto_approve),
        urgent=sum(1 for r in results if needs_urgent_review(r.fraud_score)),
    )


def check_approval(
    result: FraudAnalysisResult,
    force_approve: bool = False,
    reason: Optional[str] = None,
) -> ApprovalDecision:
    """
    Decide whether an admin may approve a campaign with this fraud result.

    At or above ``approval_block_threshold`` approval needs an explicit
    override with a written reason.
    """
    score = result.fraud_score
    if score >= settings.approval_block_threshold:
        if not force_approve:
            return ApprovalDecision(
                allowed=False,
                requires_override=True,
                message=(
                    "Cannot approve campaign with very high fraud risk. "
                    "Set force_approve and give a detailed reason to override."
                ),
            )
        if not (reason and reason.strip()):
            return ApprovalDecision(
                allowed=False,
                requires_override=True,
                message="A reason is required to override the fraud check.",
            )
        logger.warning("Fraud check overridden", fraud_score=score, reason=reason)
        return ApprovalDecision(
            allowed=True,
            requires_override=True,
            message="Approved with override",
            warning=f"Campaign approved despite fraud score {score}",
        )

    if score >= settings.approval_warning_threshold:
        logger.warning("Approving high-risk campaign", fraud_score=score)
        return ApprovalDecision(
            allowed=True,
            requires_override=False,
            message="Approval allowed",
            warning=f"Campaign has an elevated fraud score of {score}",
        )

    return ApprovalDecision(allowed=True, requires_override=False, message="Approval allowed")


def review_flags(result: FraudAnalysisResult) -> Dict[str, bool]:
    return {
        "needs_urgent_review": needs_urgent_review(result.fraud_score),
        "can_auto_approve": result.auto_approve,
        "requires_manual_review": result.needs_manual_review,
    }


def enrich_campaign_payload(payload: Mapping[str, Any], result: FraudAnalysisResult) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with the fraud analysis attached.

    Called by a handler once it holds the result; the input payload is left
    untouched.
    """
    enriched = dict(payload)
    enriched["fraud_analysis"] = result.to_dict()
    enriched["review_flags"] = review_flags(result)
    return enriched
