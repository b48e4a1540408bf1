from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from fundguard.models.analysis import (
    CampaignImageAnalysis,
    FraudAnalysisResult,
    ImageAnalysisResult,
    Indicator,
)
from fundguard.models.snapshot import CampaignSnapshot, CampaignStatus, Category


class CampaignRequest(BaseModel):
    """Campaign fields needed for fraud analysis."""
    title: str
    description: str
    story: str = ""
    category: Category
    goal_amount: float = Field(..., gt=0)
    creator_id: str
    image_url: Optional[str] = None
    additional_images: List[str] = []
    videos: List[str] = []
    created_at: Optional[datetime] = None
    status: CampaignStatus = CampaignStatus.PENDING
    campaign_id: Optional[str] = None

    def to_snapshot(self) -> CampaignSnapshot:
        return CampaignSnapshot(
            title=self.title,
            description=self.description,
            story=self.story,
            category=self.category.value,
            goal_amount=self.goal_amount,
            creator_id=self.creator_id,
            image_url=self.image_url,
            additional_images=tuple(self.additional_images),
            videos=tuple(self.videos),
            created_at=self.created_at,
            status=self.status,
            campaign_id=self.campaign_id,
        )


class IndicatorOut(BaseModel):
    category: str
    severity: str
    score: float
    description: str

    @classmethod
    def from_indicator(cls, ind: Indicator) -> "IndicatorOut":
        return cls(category=ind.category, severity=ind.severity.value, score=ind.score, description=ind.description)


class ImageAnalysisOut(BaseModel):
    reference: str
    width: int
    height: int
    format: Optional[str] = None
    byte_size: int
    risk_score: float
    is_stock_photo: bool
    is_screenshot: bool
    is_edited: bool
    quality_issues: bool
    analysis_failed: bool

    @classmethod
    def from_result(cls, img: ImageAnalysisResult) -> "ImageAnalysisOut":
        return cls(
            reference=img.reference,
            width=img.width,
            height=img.height,
            format=img.format,
            byte_size=img.byte_size,
            risk_score=img.risk_score,
            is_stock_photo=img.is_stock_photo,
            is_screenshot=img.is_screenshot,
            is_edited=img.is_edited,
            quality_issues=img.quality_issues,
            analysis_failed=img.analysis_failed,
        )


class CampaignImageAnalysisOut(BaseModel):
    cover_image: Optional[ImageAnalysisOut] = None
    additional_images: List[ImageAnalysisOut]
    videos: List[str]
    overall_risk_score: float

    @classmethod
    def from_analysis(cls, analysis: CampaignImageAnalysis) -> "CampaignImageAnalysisOut":
        return cls(
            cover_image=ImageAnalysisOut.from_result(analysis.cover_image) if analysis.cover_image else None,
            additional_images=[ImageAnalysisOut.from_result(img) for img in analysis.additional_images],
            videos=list(analysis.videos),
            overall_risk_score=analysis.overall_risk_score,
        )


class FraudAnalysisResponse(BaseModel):
    fraud_score: int
    risk_level: str
    indicators: List[IndicatorOut]
    risk_factors: List[str]
    recommendation: str
    needs_manual_review: bool
    auto_approve: bool
    confidence: str
    image_analysis: Optional[CampaignImageAnalysisOut] = None
    sub_scores: Dict[str, float]

    @classmethod
    def from_result(cls, result: FraudAnalysisResult) -> "FraudAnalysisResponse":
        return cls(
            fraud_score=result.fraud_score,
            risk_level=result.risk_level.value,
            indicators=[IndicatorOut.from_indicator(ind) for ind in result.indicators],
            risk_factors=list(result.risk_factors),
            recommendation=result.recommendation,
            needs_manual_review=result.needs_manual_review,
            auto_approve=result.auto_approve,
            confidence=result.confidence.value,
            image_analysis=(
                CampaignImageAnalysisOut.from_analysis(result.image_analysis)
                if result.image_analysis
                else None
            ),
            sub_scores=dict(result.sub_scores),
        )


class QueueRequest(BaseModel):
    campaigns: List[CampaignRequest]
    risk_level: Optional[str] = None  # keep only this tier, e.g. "Critical"


class QueueItem(BaseModel):
    campaign_id: Optional[str] = None
    title: str
    analysis: FraudAnalysisResponse


class TriageSummaryOut(BaseModel):
    total: int
    by_risk_level: Dict[str, int]
    needs_manual_review: int
    auto_approvable: int
    urgent: int


class QueueResponse(BaseModel):
    items: List[QueueItem]
    summary: TriageSummaryOut


class ApprovalCheckRequest(BaseModel):
    campaign: CampaignRequest
    force_approve: bool = False
    reason: Optional[str] = None


class ApprovalCheckResponse(BaseModel):
    allowed: bool
    requires_override: bool
    message: str
    warning: Optional[str] = None
    analysis: FraudAnalysisResponse
