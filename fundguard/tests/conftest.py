import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from fundguard.api.server import app, get_media_fetcher, get_store
from fundguard.models.snapshot import CampaignSnapshot, CampaignStatus
from fundguard.tests.fakes import (
    LIBRARY_DESCRIPTION,
    LIBRARY_STORY,
    NOW,
    FakeCampaignStore,
    FakeMediaFetcher,
    make_image_bytes,
    make_record,
)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def scam_snapshot():
    """Urgent emotional appeal with a suspicious goal and no images."""
    return CampaignSnapshot(
        title="URGENT!! Please help save my dying dog!!!",
        description="Max needs surgery. Vet bills are so high",
        story=(
            "My dog Max got very sick. The vet says he needs an operation. "
            "We cannot afford it alone. Please donate what you can."
        ),
        category="Animal Welfare",
        goal_amount=99999,
        creator_id="new-creator",
        campaign_id="scam-1",
    )


@pytest.fixture
def library_snapshot():
    return CampaignSnapshot(
        title="Support Our Local School Library Renovation",
        description=LIBRARY_DESCRIPTION,
        story=LIBRARY_STORY,
        category="Education",
        goal_amount=15000,
        creator_id="trusted-creator",
        image_url="https://cdn.example.org/library.png",
        campaign_id="library-1",
    )


@pytest.fixture
def trusted_creator_store():
    """Five completed campaigns over the past year, distinct goals."""
    records = [
        make_record("trusted-creator", days, CampaignStatus.COMPLETED, amount)
        for days, amount in ((40, 5000), (80, 7500), (120, 9000), (160, 12000), (200, 3000))
    ]
    return FakeCampaignStore(records)


@pytest.fixture
def clean_image():
    return make_image_bytes()


# ============== API ==============


@pytest.fixture
def client():
    """FastAPI test client with in-memory collaborators."""
    app.dependency_overrides[get_store] = lambda: FakeCampaignStore()
    app.dependency_overrides[get_media_fetcher] = lambda: FakeMediaFetcher()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
