"""
Read-only access to the campaign store.
The scorer never writes through this interface.
"""

import logging
from datetime import datetime
from typing import Callable, List, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fundguard.models.campaign import Campaign
from fundguard.models.snapshot import CampaignRecord, CampaignStatus, ensure_utc

logger = logging.getLogger(__name__)


class CampaignStoreError(Exception):
    """A campaign store query failed."""


class CampaignStore(Protocol):
    def find_campaigns_by_creator(self, creator_id: str, since: datetime) -> List[CampaignRecord]:
        """Creator's campaigns created at/after ``since``, newest first."""
        ...

    def find_campaigns_by_category_excluding_creator(
        self, category: str, creator_id: str, since: datetime
    ) -> List[CampaignRecord]:
        """Same-category campaigns by other creators created at/after ``since``."""
        ...


def _to_record(row: Campaign) -> CampaignRecord:
    try:
        status = CampaignStatus(row.status)
    except ValueError:
        status = CampaignStatus.PENDING
    return CampaignRecord(
        id=str(row.id),
        creator_id=row.creator_id,
        category=row.category,
        title=row.title or "",
        description=row.description or "",
        goal_amount=float(row.goal_amount or 0),
        status=status,
        created_at=ensure_utc(row.created_at),
    )


class SqlCampaignStore:
    """CampaignStore over the SQLAlchemy ``campaigns`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _query(self, stmt) -> List[CampaignRecord]:
        db = self._session_factory()
        try:
            return [_to_record(row) for row in db.scalars(stmt)]
        except SQLAlchemyError as e:
            logger.warning(f"Campaign store query failed: {e}")
            raise CampaignStoreError(str(e)) from e
        finally:
            db.close()

    def find_campaigns_by_creator(self, creator_id: str, since: datetime) -> List[CampaignRecord]:
        stmt = (
            select(Campaign)
            .where(Campaign.creator_id == creator_id, Campaign.created_at >= since)
            .order_by(Campaign.created_at.desc())
        )
        return self._query(stmt)

    def find_campaigns_by_category_excluding_creator(
        self, category: str, creator_id: str, since: datetime
    ) -> List[CampaignRecord]:
        stmt = (
            select(Campaign)
            .where(
                Campaign.category == category,
                Campaign.creator_id != creator_id,
                Campaign.created_at >= since,
            )
            .order_by(Campaign.created_at.desc())
        )
        return self._query(stmt)
