import math
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from fundguard.config import settings
from fundguard.models.analysis import (
    CampaignImageAnalysis,
    Confidence,
    FraudAnalysisResult,
    Indicator,
    RiskLevel,
    SubScore,
    clamp_score,
)
from fundguard.utils.risk_levels import (
    ANALYSIS_FAILED_RECOMMENDATION,
    can_auto_approve,
    derive_confidence,
    derive_risk_level,
    get_recommendation,
    needs_manual_review,
)

# Image-aware weights; must sum to 1.0
WEIGHTS = MappingProxyType({
    "title": 0.20,
    "description": 0.15,
    "story": 0.15,
    "amount": 0.12,
    "creator": 0.10,
    "pattern": 0.08,
    "images": 0.20,
})

# Used when the campaign has no image data at all
NO_IMAGE_WEIGHTS = MappingProxyType({
    "title": 0.25,
    "description": 0.20,
    "story": 0.20,
    "amount": 0.15,
    "creator": 0.12,
    "pattern": 0.08,
})

LABELS = MappingProxyType({
    "title": "Title",
    "description": "Description",
    "story": "Story",
    "amount": "Goal Amount",
    "creator": "Creator History",
    "pattern": "Pattern",
    "images": "Image",
})

TEXT_FLOOR_TRIGGER = 30  # title or description above this
TEXT_FLOOR = 35
STORY_FLOOR_TRIGGER = 25
STORY_COMPANION_TRIGGER = 15  # title or description above this, with the story
STORY_FLOOR = 30
IMAGE_FLOOR_TRIGGER = 40
IMAGE_FLOOR = 45

FAILED_ANALYSIS_SCORE = 50


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_significant_risks(scores: Mapping[str, float]) -> int:
    return sum(1 for s in scores.values() if s > settings.significant_risk_threshold)


def compute_fraud_score(scores: Mapping[str, float]) -> int:
    """
    Combine analyzer sub-scores into the composite 0-100 fraud score.

    Weighted sum, plus the base-risk floor, amplified when several
    analyzers agree, then raised to the floors that single strong signals
    demand. The image-aware weights apply whenever an "images" sub-score is
    present.
    """
    weights = WEIGHTS if "images" in scores else NO_IMAGE_WEIGHTS
    clamped = {name: clamp_score(scores.get(name, 0.0)) for name in weights}

    total = sum(clamped[name] * weight for name, weight in weights.items())
    total += settings.base_risk_floor

    significant = count_significant_risks(clamped)
    if significant >= 3:
        total *= settings.amplification_three_or_more
    elif significant >= 2:
        total *= settings.amplification_two

    title = clamped["title"]
    description = clamped["description"]
    if title > TEXT_FLOOR_TRIGGER or description > TEXT_FLOOR_TRIGGER:
        total = max(total, TEXT_FLOOR)
    if clamped["story"] > STORY_FLOOR_TRIGGER and (
        title > STORY_COMPANION_TRIGGER or description > STORY_COMPANION_TRIGGER
    ):
        total = max(total, STORY_FLOOR)
    if clamped.get("images", 0.0) > IMAGE_FLOOR_TRIGGER:
        total = max(total, IMAGE_FLOOR)

    return _round_half_up(clamp_score(total))


def fuse_sub_scores(
    sub_scores: Sequence[SubScore],
    image_analysis: Optional[CampaignImageAnalysis] = None,
) -> FraudAnalysisResult:
    """
    Build the final result from analyzer outputs.

    ``sub_scores`` holds the six non-image analyzers; the image sub-score
    comes from ``image_analysis`` when present.
    """
    scores: Dict[str, float] = {s.name: clamp_score(s.score) for s in sub_scores}
    indicators: List[Indicator] = [ind for s in sub_scores for ind in s.indicators]

    if image_analysis is not None:
        scores["images"] = clamp_score(image_analysis.overall_risk_score)
        indicators.extend(image_analysis.indicators)

    fraud_score = compute_fraud_score(scores)

    order = WEIGHTS if "images" in scores else NO_IMAGE_WEIGHTS
    risk_factors = tuple(
        LABELS[name]
        for name in order
        if scores.get(name, 0.0) > settings.significant_risk_threshold
    )

    return FraudAnalysisResult(
        fraud_score=fraud_score,
        risk_level=derive_risk_level(fraud_score),
        indicators=tuple(indicators),
        risk_factors=risk_factors,
        recommendation=get_recommendation(fraud_score),
        needs_manual_review=needs_manual_review(fraud_score),
        auto_approve=can_auto_approve(fraud_score),
        confidence=derive_confidence(fraud_score, len(indicators)),
        image_analysis=image_analysis,
        sub_scores={name: round(score, 2) for name, score in scores.items()},
    )


def safe_default_result() -> FraudAnalysisResult:
    """Fail-safe result: always routes the campaign to a human."""
    return FraudAnalysisResult(
        fraud_score=FAILED_ANALYSIS_SCORE,
        risk_level=RiskLevel.UNKNOWN,
        indicators=(),
        risk_factors=(),
        recommendation=ANALYSIS_FAILED_RECOMMENDATION,
        needs_manual_review=True,
        auto_approve=False,
        confidence=Confidence.LOW,
        image_analysis=None,
        sub_scores={},
    )
