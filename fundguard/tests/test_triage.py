"""Tests for queue triage, the approval gate and payload enrichment."""

import asyncio
import dataclasses
import threading
import time

from fundguard.config import settings
from fundguard.models.analysis import RiskLevel
from fundguard.pipelines.fusion_engine import safe_default_result
from fundguard.services.triage_service import (
    analyze_queue,
    check_approval,
    enrich_campaign_payload,
    review_flags,
    summarize,
)

from fundguard.tests.fakes import NOW, FakeCampaignStore


def _result(score, level=RiskLevel.HIGH, manual=None, auto=None):
    return dataclasses.replace(
        safe_default_result(),
        fraud_score=score,
        risk_level=level,
        needs_manual_review=score >= 25 if manual is None else manual,
        auto_approve=score < 12 if auto is None else auto,
    )


class CountingCampaignStore(FakeCampaignStore):
    """Tracks how many creator lookups run at the same time."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def find_campaigns_by_creator(self, creator_id, since):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.1)
        with self._lock:
            self.active -= 1
        return super().find_campaigns_by_creator(creator_id, since)


class TestAnalyzeQueue:
    """Tests for batch analysis."""

    def test_sorted_riskiest_first(self, scam_snapshot, library_snapshot, trusted_creator_store):
        """Results come back in descending fraud score order."""
        pairs = asyncio.run(
            analyze_queue([library_snapshot, scam_snapshot], trusted_creator_store, now=NOW)
        )
        assert [s.campaign_id for s, _ in pairs] == ["scam-1", "library-1"]
        assert pairs[0][1].fraud_score > pairs[1][1].fraud_score

    def test_risk_level_filter(self, scam_snapshot, library_snapshot, trusted_creator_store):
        """Only the requested tier is kept."""
        pairs = asyncio.run(
            analyze_queue(
                [library_snapshot, scam_snapshot],
                trusted_creator_store,
                risk_level=RiskLevel.CRITICAL,
                now=NOW,
            )
        )
        assert [s.campaign_id for s, _ in pairs] == ["scam-1"]

    def test_naive_now_matches_utc(self, scam_snapshot, library_snapshot, trusted_creator_store):
        """A naive batch time scores the same as the equivalent UTC time."""
        batch = [library_snapshot, scam_snapshot]
        naive = asyncio.run(analyze_queue(batch, trusted_creator_store, now=NOW.replace(tzinfo=None)))
        aware = asyncio.run(analyze_queue(batch, trusted_creator_store, now=NOW))
        assert [r.fraud_score for _, r in naive] == [r.fraud_score for _, r in aware]
        assert [r.sub_scores for _, r in naive] == [r.sub_scores for _, r in aware]

    def test_concurrency_comes_from_settings(self, scam_snapshot, monkeypatch):
        """The configured queue concurrency bounds campaigns in flight."""
        monkeypatch.setattr(settings, "queue_concurrency", 1)
        store = CountingCampaignStore()
        batch = [dataclasses.replace(scam_snapshot, campaign_id=f"scam-{i}") for i in range(4)]
        pairs = asyncio.run(analyze_queue(batch, store, now=NOW))
        assert len(pairs) == 4
        assert store.peak == 1

    def test_explicit_concurrency_wins(self, scam_snapshot, monkeypatch):
        """An explicit concurrency argument overrides the setting."""
        monkeypatch.setattr(settings, "queue_concurrency", 1)
        store = CountingCampaignStore()
        batch = [dataclasses.replace(scam_snapshot, campaign_id=f"scam-{i}") for i in range(4)]
        asyncio.run(analyze_queue(batch, store, now=NOW, concurrency=4))
        assert store.peak > 1

    def test_empty_queue(self):
        """No campaigns, no results."""
        assert asyncio.run(analyze_queue([], FakeCampaignStore(), now=NOW)) == []


class TestSummarize:
    """Tests for queue summaries."""

    def test_counts(self):
        """Tiers, review flags and urgent cases are counted."""
        results = [
            _result(60, RiskLevel.CRITICAL),
            _result(30, RiskLevel.HIGH),
            _result(5, RiskLevel.VERY_LOW),
        ]
        summary = summarize(results)

        assert summary.total == 3
        assert summary.by_risk_level["Critical"] == 1
        assert summary.by_risk_level["Medium"] == 0
        assert summary.needs_manual_review == 2
        assert summary.auto_approvable == 1
        assert summary.urgent == 1


class TestCheckApproval:
    """Tests for the approval gate."""

    def test_low_risk_allowed(self):
        """Scores under 35 are approved without a warning."""
        decision = check_approval(_result(20))
        assert decision.allowed
        assert decision.warning is None

    def test_elevated_risk_warns(self):
        """Scores from 35 to 49 are allowed with a warning."""
        decision = check_approval(_result(40))
        assert decision.allowed
        assert not decision.requires_override
        assert "40" in decision.warning

    def test_high_risk_blocked(self):
        """Scores of 50 or more are blocked without an override."""
        decision = check_approval(_result(50))
        assert not decision.allowed
        assert decision.requires_override

    def test_override_needs_reason(self):
        """Forcing approval without a reason is still blocked."""
        decision = check_approval(_result(70), force_approve=True, reason="  ")
        assert not decision.allowed

    def test_override_with_reason(self):
        """Forcing approval with a reason is allowed and flagged."""
        decision = check_approval(_result(70), force_approve=True, reason="Verified hospital invoice by phone")
        assert decision.allowed
        assert decision.requires_override
        assert decision.warning


class TestEnrichment:
    """Tests for attaching fraud data to outgoing payloads."""

    def test_payload_copy_is_enriched(self):
        """The input payload is not modified."""
        payload = {"id": "c-1", "title": "Garden"}
        result = _result(55, RiskLevel.CRITICAL)
        enriched = enrich_campaign_payload(payload, result)

        assert "fraud_analysis" not in payload
        assert enriched["id"] == "c-1"
        assert enriched["fraud_analysis"]["fraud_score"] == 55
        assert enriched["fraud_analysis"]["risk_level"] == "Critical"
        assert enriched["review_flags"] == review_flags(result)
        assert enriched["review_flags"]["needs_urgent_review"]
