"""
Campaign fraud analysis pipeline.

Fans out to the text, amount, creator-history, pattern and image analyzers,
waits for all of them (or their fallbacks) and fuses the sub-scores into a
single FraudAnalysisResult. Nothing raised inside escapes: any failure
degrades to the fail-safe "manual review" result.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional

from fundguard.models.analysis import FraudAnalysisResult
from fundguard.models.snapshot import CampaignSnapshot, ensure_utc
from fundguard.pipelines.fusion_engine import fuse_sub_scores, safe_default_result
from fundguard.pipelines.vision_pipeline import analyze_campaign_images
from fundguard.services.amount_service import analyze_amount
from fundguard.services.creator_service import analyze_creator_history
from fundguard.services.media_service import MediaFetcher
from fundguard.services.pattern_service import analyze_patterns
from fundguard.services.store_service import CampaignStore
from fundguard.services.text_service import analyze_description, analyze_story, analyze_title
from fundguard.utils.logging_config import StructuredLogger, campaign_id_var, track_analysis

logger = StructuredLogger(__name__)


async def _no_images():
    return None


@track_analysis("campaign")
async def analyze_campaign(
    snapshot: CampaignSnapshot,
    store: CampaignStore,
    fetcher: Optional[MediaFetcher] = None,
    *,
    now: Optional[datetime] = None,
) -> FraudAnalysisResult:
    """
    Score one campaign.

    Args:
        snapshot: The campaign to analyze; never mutated.
        store: Read-only campaign store for creator history and patterns.
        fetcher: Media fetcher; without one (or without images) the
            no-image weighting applies.
        now: Reference time for the history windows. Pass it explicitly to
            get identical results across repeated calls.

    Returns:
        FraudAnalysisResult. Never raises.
    """
    token = campaign_id_var.set(snapshot.campaign_id if snapshot is not None else None)
    try:
        now = ensure_utc(now or datetime.now(timezone.utc))

        title = analyze_title(snapshot.title)
        description = analyze_description(snapshot.description)
        story = analyze_story(snapshot.story)
        amount = analyze_amount(snapshot.goal_amount, snapshot.category)

        with_images = fetcher is not None and snapshot.has_images
        creator, pattern, images = await asyncio.gather(
            analyze_creator_history(store, snapshot.creator_id, now, snapshot.campaign_id),
            analyze_patterns(store, snapshot, now),
            analyze_campaign_images(snapshot, fetcher) if with_images else _no_images(),
        )

        result = fuse_sub_scores(
            [title, description, story, amount, creator, pattern],
            image_analysis=images,
        )
        logger.bind(creator_id=snapshot.creator_id).info(
            "Campaign analyzed",
            fraud_score=result.fraud_score,
            risk_level=result.risk_level.value,
            sub_scores=result.sub_scores,
        )
        return result
    except Exception as e:
        logger.error("Campaign fraud analysis failed", exc_info=True, error=str(e))
        return safe_default_result()
    finally:
        campaign_id_var.reset(token)


def analyze_campaign_sync(
    snapshot: CampaignSnapshot,
    store: CampaignStore,
    fetcher: Optional[MediaFetcher] = None,
    *,
    now: Optional[datetime] = None,
) -> FraudAnalysisResult:
    """
    Blocking wrapper for callers that have no running event loop.

    Store and media calls that already timed out may still be running in
    worker threads; the wrapper returns without joining them.
    """
    loop = asyncio.new_event_loop()
    executor = ThreadPoolExecutor(thread_name_prefix="fundguard-io")
    loop.set_default_executor(executor)
    try:
        return loop.run_until_complete(analyze_campaign(snapshot, store, fetcher, now=now))
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        executor.shutdown(wait=False)
        loop.close()
