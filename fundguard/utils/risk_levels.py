"""
Risk level utilities.
Tier, recommendation, review flags and confidence are all derived from the
composite fraud score (plus indicator count for confidence), never set
independently.
"""

from typing import Optional

from fundguard.config import settings
from fundguard.models.analysis import Confidence, RiskLevel

RECOMMENDATIONS = {
    "reject_immediately": "REJECT IMMEDIATELY - Critical fraud risk detected",
    "reject": "REJECT - High fraud probability detected",
    "manual_review": "MANUAL REVIEW REQUIRED - Multiple fraud indicators found",
    "detailed_review": "DETAILED REVIEW RECOMMENDED - Several suspicious elements detected",
    "standard_review": "STANDARD REVIEW - Minor concerns identified",
    "quick_review": "QUICK REVIEW - Low fraud risk, verify basics",
    "approve": "APPROVE - Low fraud risk detected",
}

ANALYSIS_FAILED_RECOMMENDATION = "MANUAL REVIEW REQUIRED - Analysis failed"

HIGH_CONFIDENCE_MIN_INDICATORS = 3
HIGH_CONFIDENCE_HIGH_SCORE = 30
HIGH_CONFIDENCE_LOW_SCORE = 15
MEDIUM_CONFIDENCE_MIN_INDICATORS = 1


def derive_risk_level(score: float) -> RiskLevel:
    """
    Derive the risk tier purely from the 0-100 fraud score.

    Returns:
        Critical, Very High, High, Medium, Low or Very Low
    """
    if score >= settings.critical_threshold:
        return RiskLevel.CRITICAL
    elif score >= settings.very_high_threshold:
        return RiskLevel.VERY_HIGH
    elif score >= settings.high_threshold:
        return RiskLevel.HIGH
    elif score >= settings.medium_threshold:
        return RiskLevel.MEDIUM
    elif score >= settings.low_threshold:
        return RiskLevel.LOW
    else:
        return RiskLevel.VERY_LOW


def get_recommendation(score: float) -> str:
    if score >= settings.critical_threshold:
        return RECOMMENDATIONS["reject_immediately"]
    elif score >= settings.very_high_threshold:
        return RECOMMENDATIONS["reject"]
    elif score >= settings.high_threshold:
        return RECOMMENDATIONS["manual_review"]
    elif score >= settings.medium_threshold:
        return RECOMMENDATIONS["detailed_review"]
    elif score >= settings.low_threshold:
        return RECOMMENDATIONS["standard_review"]
    elif score >= settings.quick_review_threshold:
        return RECOMMENDATIONS["quick_review"]
    else:
        return RECOMMENDATIONS["approve"]


def needs_manual_review(score: float) -> bool:
    return score >= settings.manual_review_threshold


def can_auto_approve(score: float) -> bool:
    return score < settings.auto_approve_threshold


def derive_confidence(score: float, indicator_count: int) -> Confidence:
    """
    High when several indicators back a clearly high or clearly low score,
    Medium when anything was flagged at all, otherwise Low.
    """
    if indicator_count >= HIGH_CONFIDENCE_MIN_INDICATORS and (
        score >= HIGH_CONFIDENCE_HIGH_SCORE or score <= HIGH_CONFIDENCE_LOW_SCORE
    ):
        return Confidence.HIGH
    if indicator_count >= MEDIUM_CONFIDENCE_MIN_INDICATORS:
        return Confidence.MEDIUM
    return Confidence.LOW


def needs_urgent_review(score: float, threshold: Optional[float] = None) -> bool:
    threshold = settings.urgent_review_threshold if threshold is None else threshold
    return score >= threshold
