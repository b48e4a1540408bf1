"""
Campaign media pipeline.
Fetches and analyzes the cover and additional images concurrently and
folds them into one CampaignImageAnalysis.
"""

import asyncio
import logging
from typing import Optional, Sequence

from fundguard.config import settings
from fundguard.models.analysis import (
    CampaignImageAnalysis,
    ImageAnalysisResult,
    clamp_score,
)
from fundguard.models.snapshot import CampaignSnapshot
from fundguard.services.media_service import MediaFetcher
from fundguard.services.vision_service import analyze_image_bytes, failed_image_result

logger = logging.getLogger(__name__)

COVER_WEIGHT = 0.6
ADDITIONAL_WEIGHT = 0.3  # shared across all additional images


def combine_image_scores(
    cover: Optional[ImageAnalysisResult],
    additional: Sequence[ImageAnalysisResult],
) -> float:
    score = 0.0
    if cover is not None:
        score += cover.risk_score * COVER_WEIGHT
    if additional:
        score += sum(img.risk_score for img in additional) * ADDITIONAL_WEIGHT / len(additional)
    return clamp_score(score)


async def analyze_image(
    fetcher: MediaFetcher,
    reference: str,
    semaphore: Optional[asyncio.Semaphore] = None,
) -> ImageAnalysisResult:
    """Fetch and analyze one image; any failure becomes a failed result."""
    semaphore = semaphore or asyncio.Semaphore(1)
    async with semaphore:
        try:
            data = await asyncio.wait_for(
                asyncio.to_thread(fetcher.fetch_image_bytes, reference),
                timeout=settings.media_fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Image fetch timed out: {reference}")
            return failed_image_result(reference, "fetch timed out")
        except Exception as e:
            logger.warning(f"Image fetch failed for {reference}: {e}")
            return failed_image_result(reference, "fetch failed")

        try:
            return await asyncio.to_thread(analyze_image_bytes, reference, data)
        except Exception as e:
            logger.warning(f"Image analysis crashed for {reference}: {e}")
            return failed_image_result(reference, "analysis error", len(data))


async def analyze_campaign_images(
    snapshot: CampaignSnapshot,
    fetcher: MediaFetcher,
) -> CampaignImageAnalysis:
    """
    Analyze every image of a campaign, bounded by ``settings.image_concurrency``.

    Videos are carried through unscored. A failure of the pipeline as a
    whole yields the image fallback score rather than raising.
    """
    try:
        semaphore = asyncio.Semaphore(max(1, settings.image_concurrency))
        references = ([snapshot.image_url] if snapshot.image_url else []) + list(snapshot.additional_images)
        results = await asyncio.gather(
            *(analyze_image(fetcher, ref, semaphore) for ref in references)
        )
    except Exception as e:
        logger.warning(f"Image pipeline failed: {e}")
        return image_fallback(snapshot, "image pipeline failed")

    cover = results[0] if snapshot.image_url else None
    additional = tuple(results[1:] if snapshot.image_url else results)

    indicators = []
    for result in ([cover] if cover else []) + list(additional):
        indicators.extend(result.indicators)

    return CampaignImageAnalysis(
        cover_image=cover,
        additional_images=additional,
        videos=tuple(snapshot.videos),
        overall_risk_score=combine_image_scores(cover, additional),
        indicators=tuple(indicators),
    )


def image_fallback(snapshot: CampaignSnapshot, reason: str) -> CampaignImageAnalysis:
    failed = failed_image_result(snapshot.image_url or "", reason)
    return CampaignImageAnalysis(
        cover_image=None,
        additional_images=(),
        videos=tuple(snapshot.videos),
        overall_risk_score=settings.image_fallback_score,
        indicators=failed.indicators,
    )
