"""
Campaign table, as written by the campaign service.
The fraud scorer only ever reads it.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON

from fundguard.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(String(64), nullable=False, index=True)

    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    story = Column(Text, nullable=False, default="")
    category = Column(String(32), nullable=False, index=True)  # see Category
    goal_amount = Column(Float, nullable=False)

    image_url = Column(String, nullable=True)
    additional_images = Column(JSON, nullable=True)  # ["https://...", ...]
    videos = Column(JSON, nullable=True)

    status = Column(String(16), nullable=False, default="pending")  # pending | active | completed | rejected
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
