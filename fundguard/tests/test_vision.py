"""Tests for image forensics and campaign image aggregation."""

import asyncio

import numpy as np
import pytest

from fundguard.models.analysis import ImageAnalysisResult
from fundguard.models.snapshot import CampaignSnapshot
from fundguard.pipelines.vision_pipeline import analyze_campaign_images, combine_image_scores
from fundguard.services.vision_service import analyze_image_bytes, has_uniform_border, quality_score

from fundguard.tests.fakes import FakeMediaFetcher, make_image_bytes


def _snapshot(image_url=None, additional_images=(), videos=()):
    return CampaignSnapshot(
        title="Title",
        description="Description",
        story="Story.",
        category="Education",
        goal_amount=1000,
        creator_id="c1",
        image_url=image_url,
        additional_images=tuple(additional_images),
        videos=tuple(videos),
    )


class TestAnalyzeImageBytes:
    """Tests for single-image heuristics."""

    def test_clean_photo(self, clean_image):
        """A large, sharp, unmarked image carries no risk."""
        result = analyze_image_bytes("cover.png", clean_image)
        assert result.risk_score == 0
        assert result.width == 1600
        assert result.height == 1200
        assert result.format == "PNG"
        assert not result.analysis_failed

    def test_stock_agency_metadata(self):
        """Agency names in metadata mark a stock photo."""
        data = make_image_bytes(text={"Copyright": "Shutterstock Inc."})
        result = analyze_image_bytes("cover.png", data)
        assert result.is_stock_photo
        assert result.risk_score == 25

    def test_stock_preset_size(self):
        """Common stock export sizes count as stock."""
        result = analyze_image_bytes("cover.png", make_image_bytes(width=800, height=600))
        assert result.is_stock_photo
        assert result.risk_score == 25

    def test_editing_software_metadata(self):
        """An editor named in metadata marks the image as edited."""
        data = make_image_bytes(text={"Software": "Adobe Photoshop 25.0"})
        result = analyze_image_bytes("cover.png", data)
        assert result.is_edited
        assert result.risk_score == 30

    def test_high_error_level_is_edited(self):
        """Noise that changes heavily on re-encode reads as edited."""
        result = analyze_image_bytes("cover.png", make_image_bytes(width=600, height=600, noise=True))
        assert result.is_edited

    def test_screenshot_dpi(self):
        """High pixel density marks a screenshot."""
        result = analyze_image_bytes("cover.png", make_image_bytes(dpi=(300, 300)))
        assert result.is_screenshot
        assert result.risk_score == 20

    def test_screenshot_dpi_threshold_png(self):
        """A PNG saved at 144 dpi still counts as a screenshot after the metre round trip."""
        result = analyze_image_bytes("cover.png", make_image_bytes(dpi=(144, 144)))
        assert result.is_screenshot

    def test_ordinary_dpi_is_not_a_screenshot(self):
        """Print-style 72 dpi images are not screenshots."""
        result = analyze_image_bytes("cover.png", make_image_bytes(dpi=(72, 72)))
        assert not result.is_screenshot

    def test_screenshot_border(self):
        """A flat band along the top edge marks a screenshot."""
        result = analyze_image_bytes("cover.png", make_image_bytes(border_rows=40))
        assert result.is_screenshot

    def test_small_image(self):
        """Images under 400 pixels on a side are flagged."""
        result = analyze_image_bytes("cover.png", make_image_bytes(width=300, height=200))
        assert result.quality_issues
        assert result.risk_score >= 15

    def test_flat_image_has_poor_quality(self):
        """A featureless image is blurry and reads as a screenshot."""
        result = analyze_image_bytes("cover.png", make_image_bytes(width=1200, height=1200, solid=128))
        assert result.is_screenshot
        assert result.quality_issues
        assert result.quality_score < 50

    def test_undecodable_bytes(self):
        """Garbage bytes produce a failed result at the fallback risk."""
        result = analyze_image_bytes("cover.png", b"definitely not an image")
        assert result.analysis_failed
        assert result.risk_score == 20
        assert result.byte_size == len(b"definitely not an image")


class TestHelpers:
    """Tests for the pixel-level helpers."""

    def test_uniform_border(self):
        """A single-color row is uniform; a striped row is not."""
        flat = np.full((10, 10, 3), 200, dtype=np.uint8)
        striped = flat.copy()
        striped[:, ::2, :] = 0
        assert has_uniform_border(flat)
        assert not has_uniform_border(striped)

    def test_quality_score_small_and_blurry(self):
        """Deductions for size, byte density and blur stack."""
        assert quality_score(2000, 2000, 4_000_000, "PNG", 20.0) == 100
        assert quality_score(300, 300, 100, "JPEG", 0.0) == 0


class TestCombineImageScores:
    """Tests for cover/additional weighting."""

    def test_cover_only(self):
        """Cover contributes 60%."""
        cover = ImageAnalysisResult(reference="c", risk_score=50)
        assert combine_image_scores(cover, []) == pytest.approx(30)

    def test_cover_and_additional(self):
        """Additional images share 30% by their mean."""
        cover = ImageAnalysisResult(reference="c", risk_score=50)
        extra = [ImageAnalysisResult(reference="a", risk_score=20), ImageAnalysisResult(reference="b", risk_score=40)]
        assert combine_image_scores(cover, extra) == pytest.approx(39)

    def test_additional_only(self):
        """Without a cover only the additional term applies."""
        extra = [ImageAnalysisResult(reference="a", risk_score=100)]
        assert combine_image_scores(None, extra) == pytest.approx(30)


class TestAnalyzeCampaignImages:
    """Tests for the campaign image pipeline."""

    def test_cover_and_additional(self, clean_image):
        """Every image is analyzed and videos are carried through."""
        fetcher = FakeMediaFetcher({
            "cover.png": clean_image,
            "extra.png": make_image_bytes(text={"Software": "GIMP 2.10"}),
        })
        snapshot = _snapshot("cover.png", ["extra.png"], videos=["https://video.example/1"])
        analysis = asyncio.run(analyze_campaign_images(snapshot, fetcher))

        assert analysis.cover_image.risk_score == 0
        assert analysis.additional_images[0].is_edited
        assert analysis.overall_risk_score == pytest.approx(9)  # 30 * 0.3
        assert analysis.videos == ("https://video.example/1",)
        assert sorted(fetcher.calls) == ["cover.png", "extra.png"]

    def test_fetch_failure_is_isolated(self, clean_image):
        """A missing image scores at the fallback without affecting the others."""
        fetcher = FakeMediaFetcher({"cover.png": clean_image})
        analysis = asyncio.run(analyze_campaign_images(_snapshot("cover.png", ["missing.png"]), fetcher))

        assert analysis.cover_image.risk_score == 0
        assert analysis.additional_images[0].analysis_failed
        assert analysis.overall_risk_score == pytest.approx(6)  # 20 * 0.3
