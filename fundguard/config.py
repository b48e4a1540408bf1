from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True

    # ==========================================================================
    # DATABASE (campaign store, read-only from the scorer)
    # ==========================================================================
    database_url: str = "sqlite:///./fundguard.db"

    # ==========================================================================
    # COLLABORATOR TIMEOUTS (seconds)
    # ==========================================================================
    store_query_timeout: float = 5.0
    media_fetch_timeout: float = 10.0

    # ==========================================================================
    # MEDIA
    # ==========================================================================
    image_concurrency: int = 4  # Max images fetched/decoded at once per campaign
    queue_concurrency: int = 8  # Max campaigns scored at once per review-queue batch
    max_image_bytes: int = 15 * 1024 * 1024
    media_user_agent: str = "fundguard-media-fetcher/0.1"
    allow_local_media: bool = True  # Accept file:// and filesystem references

    # ==========================================================================
    # RISK TIERS (0-100 scale, descending)
    # ==========================================================================
    critical_threshold: float = 50.0
    very_high_threshold: float = 35.0
    high_threshold: float = 25.0
    medium_threshold: float = 18.0
    low_threshold: float = 12.0
    quick_review_threshold: float = 8.0  # Recommendation only, no tier of its own

    # ==========================================================================
    # REVIEW FLAGS
    # ==========================================================================
    manual_review_threshold: float = 25.0  # Score >= this needs manual review
    auto_approve_threshold: float = 12.0  # Score < this may be auto-approved
    urgent_review_threshold: float = 50.0
    approval_block_threshold: float = 50.0  # Approval needs an override at/above this
    approval_warning_threshold: float = 35.0

    # ==========================================================================
    # AGGREGATION
    # ==========================================================================
    base_risk_floor: float = 5.0
    significant_risk_threshold: float = 20.0
    amplification_three_or_more: float = 1.3
    amplification_two: float = 1.15

    # ==========================================================================
    # ANALYZER WINDOWS (days)
    # ==========================================================================
    creator_history_days: int = 365
    pattern_window_days: int = 60

    # ==========================================================================
    # FALLBACK SUB-SCORES (collaborator failure / timeout)
    # ==========================================================================
    creator_fallback_score: float = 20.0
    pattern_fallback_score: float = 5.0
    image_fallback_score: float = 20.0

    # ==========================================================================
    # IMAGE FORENSICS
    # ==========================================================================
    image_min_dimension: int = 400
    screenshot_min_dpi: float = 144.0
    border_uniformity_threshold: int = 8  # Max channel spread along an edge row
    ela_quality: int = 90
    ela_threshold: float = 10.0  # Mean absolute difference after re-encode
    blur_edge_threshold: float = 8.0  # Mean gradient below this reads as blurry
    min_bytes_per_pixel: float = 0.02
    analysis_max_side: int = 1024  # Downscale before pixel metrics

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"


settings = Settings()
