"""
Fraud analysis result types.
Built fresh for every call and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskLevel(str, Enum):
    VERY_LOW = "Very Low"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"


class Confidence(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 100]."""
    return max(0.0, min(100.0, float(value)))


def severity_for_points(points: float) -> Severity:
    if points >= 30:
        return Severity.HIGH
    if points >= 15:
        return Severity.MEDIUM
    return Severity.LOW


@dataclass(frozen=True)
class Indicator:
    """A single reviewer-facing finding."""
    category: str  # analyzer label, e.g. "Title", "Goal Amount"
    severity: Severity
    score: float  # points this finding contributed
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "severity": self.severity.value,
            "score": self.score,
            "description": self.description,
        }


@dataclass(frozen=True)
class SubScore:
    """One analyzer's 0-100 output."""
    name: str
    score: float
    indicators: Tuple[Indicator, ...] = ()


class SignalCollector:
    """Accumulates points and indicators for one analyzer run."""

    def __init__(self, name: str, label: str):
        self.name = name
        self.label = label
        self.total = 0.0
        self._indicators = []

    def add(self, points: float, description: str):
        self.total += points
        self._indicators.append(
            Indicator(
                category=self.label,
                severity=severity_for_points(points),
                score=float(points),
                description=description,
            )
        )

    def result(self) -> SubScore:
        return SubScore(self.name, clamp_score(self.total), tuple(self._indicators))


@dataclass(frozen=True)
class ImageAnalysisResult:
    """Forensic read-out for a single image."""
    reference: str
    width: int = 0
    height: int = 0
    format: Optional[str] = None
    byte_size: int = 0
    risk_score: float = 0.0
    is_stock_photo: bool = False
    is_screenshot: bool = False
    is_edited: bool = False
    quality_issues: bool = False
    quality_score: Optional[float] = None
    analysis_failed: bool = False
    indicators: Tuple[Indicator, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "byte_size": self.byte_size,
            "risk_score": self.risk_score,
            "is_stock_photo": self.is_stock_photo,
            "is_screenshot": self.is_screenshot,
            "is_edited": self.is_edited,
            "quality_issues": self.quality_issues,
            "quality_score": self.quality_score,
            "analysis_failed": self.analysis_failed,
            "indicators": [ind.to_dict() for ind in self.indicators],
        }


@dataclass(frozen=True)
class CampaignImageAnalysis:
    """All media of one campaign. Videos are recorded, not scored."""
    cover_image: Optional[ImageAnalysisResult]
    additional_images: Tuple[ImageAnalysisResult, ...] = ()
    videos: Tuple[str, ...] = ()
    overall_risk_score: float = 0.0
    indicators: Tuple[Indicator, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cover_image": self.cover_image.to_dict() if self.cover_image else None,
            "additional_images": [img.to_dict() for img in self.additional_images],
            "videos": list(self.videos),
            "overall_risk_score": self.overall_risk_score,
            "indicators": [ind.to_dict() for ind in self.indicators],
        }


@dataclass(frozen=True)
class FraudAnalysisResult:
    fraud_score: int
    risk_level: RiskLevel
    indicators: Tuple[Indicator, ...]
    risk_factors: Tuple[str, ...]
    recommendation: str
    needs_manual_review: bool
    auto_approve: bool
    confidence: Confidence
    image_analysis: Optional[CampaignImageAnalysis] = None
    sub_scores: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fraud_score": self.fraud_score,
            "risk_level": self.risk_level.value,
            "indicators": [ind.to_dict() for ind in self.indicators],
            "risk_factors": list(self.risk_factors),
            "recommendation": self.recommendation,
            "needs_manual_review": self.needs_manual_review,
            "auto_approve": self.auto_approve,
            "confidence": self.confidence.value,
            "image_analysis": self.image_analysis.to_dict() if self.image_analysis else None,
            "sub_scores": dict(self.sub_scores),
        }
