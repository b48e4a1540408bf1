"""
Campaign inputs handed to the scorer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class Category(str, Enum):
    EDUCATION = "Education"
    MEDICAL = "Medical"
    ENVIRONMENT = "Environment"
    ANIMAL_WELFARE = "Animal Welfare"
    DISASTER_RELIEF = "Disaster Relief"
    SPORTS = "Sports"
    ELDERLY_CARE = "Elderly Care"
    CHILD_WELFARE = "Child Welfare"


class CampaignStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    REJECTED = "rejected"


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CampaignSnapshot:
    """Immutable view of one campaign for a single analysis call."""
    title: str
    description: str
    story: str
    category: str
    goal_amount: float
    creator_id: str
    image_url: Optional[str] = None
    additional_images: Tuple[str, ...] = ()
    videos: Tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    status: CampaignStatus = CampaignStatus.PENDING
    campaign_id: Optional[str] = None  # Excluded from the creator's own history

    @property
    def has_images(self) -> bool:
        return bool(self.image_url) or bool(self.additional_images)


@dataclass(frozen=True)
class CampaignRecord:
    """Row shape returned by a CampaignStore query."""
    id: str
    creator_id: str
    category: str
    title: str
    description: str
    goal_amount: float
    status: CampaignStatus
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
