import uuid

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from fundguard.config import settings
from fundguard.database import SessionLocal, Base, engine
from fundguard.models.analysis import RiskLevel
from fundguard.pipelines.campaign_pipeline import analyze_campaign
from fundguard.schemas.campaign_schemas import (
    ApprovalCheckRequest,
    ApprovalCheckResponse,
    CampaignRequest,
    FraudAnalysisResponse,
    QueueItem,
    QueueRequest,
    QueueResponse,
    TriageSummaryOut,
)
from fundguard.services.media_service import HttpMediaFetcher, MediaFetcher
from fundguard.services.store_service import CampaignStore, SqlCampaignStore
from fundguard.services.triage_service import analyze_queue, check_approval, summarize
from fundguard.utils.logging_config import metrics, request_id_var, StructuredLogger, init_logging

# Initialize structured logging
init_logging()

logger = StructuredLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="FundGuard API",
    version="0.1.0",
    description="Fraud-risk scoring for crowdfunding campaigns",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)


# Request id + security headers middleware
@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


def get_store() -> CampaignStore:
    return SqlCampaignStore(SessionLocal)


_media_fetcher = HttpMediaFetcher()


def get_media_fetcher() -> MediaFetcher:
    return _media_fetcher


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/status")
def status_info():
    """API status and scoring configuration."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "environment": settings.environment,
        "thresholds": {
            "manual_review": settings.manual_review_threshold,
            "auto_approve": settings.auto_approve_threshold,
            "approval_block": settings.approval_block_threshold,
        },
        "metrics": metrics.get_stats(),
    }


@app.post("/analyze/campaign", response_model=FraudAnalysisResponse)
async def analyze_single(
    campaign: CampaignRequest,
    store: CampaignStore = Depends(get_store),
    fetcher: MediaFetcher = Depends(get_media_fetcher),
):
    result = await analyze_campaign(campaign.to_snapshot(), store, fetcher)
    return FraudAnalysisResponse.from_result(result)


@app.post("/analyze/queue", response_model=QueueResponse)
async def analyze_review_queue(
    body: QueueRequest,
    store: CampaignStore = Depends(get_store),
    fetcher: MediaFetcher = Depends(get_media_fetcher),
):
    level = None
    if body.risk_level:
        try:
            level = RiskLevel(body.risk_level)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown risk_level '{body.risk_level}'. Must be one of {[l.value for l in RiskLevel]}.",
            )

    snapshots = [c.to_snapshot() for c in body.campaigns]
    pairs = await analyze_queue(snapshots, store, fetcher)
    summary = summarize([result for _, result in pairs])

    items = [
        QueueItem(
            campaign_id=snapshot.campaign_id,
            title=snapshot.title,
            analysis=FraudAnalysisResponse.from_result(result),
        )
        for snapshot, result in pairs
        if level is None or result.risk_level == level
    ]
    return QueueResponse(
        items=items,
        summary=TriageSummaryOut(
            total=summary.total,
            by_risk_level=summary.by_risk_level,
            needs_manual_review=summary.needs_manual_review,
            auto_approvable=summary.auto_approvable,
            urgent=summary.urgent,
        ),
    )


@app.post("/approval/check", response_model=ApprovalCheckResponse)
async def approval_check(
    body: ApprovalCheckRequest,
    store: CampaignStore = Depends(get_store),
    fetcher: MediaFetcher = Depends(get_media_fetcher),
):
    result = await analyze_campaign(body.campaign.to_snapshot(), store, fetcher)
    decision = check_approval(result, force_approve=body.force_approve, reason=body.reason)

    response = ApprovalCheckResponse(
        allowed=decision.allowed,
        requires_override=decision.requires_override,
        message=decision.message,
        warning=decision.warning,
        analysis=FraudAnalysisResponse.from_result(result),
    )
    if not decision.allowed:
        logger.warning("Approval blocked by fraud check", fraud_score=result.fraud_score)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=response.model_dump())
    return response
