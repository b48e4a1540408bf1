"""
Lightweight image forensics for campaign media.

These are explainable proxies, not forensic-grade checks: stock-photo
markers and preset sizes, screenshot chrome, editing-software markers plus
an error-level-analysis (ELA) re-compression difference, and a quality
estimate from size, byte density and gradient-based blur.
"""

import io
import logging
from typing import Dict, Optional

import numpy as np
from PIL import ExifTags, Image, UnidentifiedImageError

from fundguard.config import settings
from fundguard.models.analysis import (
    ImageAnalysisResult,
    SignalCollector,
    clamp_score,
)
from fundguard.utils.logging_config import metrics

logger = logging.getLogger(__name__)

STOCK_AGENCY_MARKERS = (
    "shutterstock",
    "getty images",
    "gettyimages",
    "istock",
    "adobe stock",
    "alamy",
    "depositphotos",
    "dreamstime",
    "123rf",
    "unsplash",
    "pexels",
    "pixabay",
)

EDITING_SOFTWARE_MARKERS = (
    "photoshop",
    "gimp",
    "lightroom",
    "affinity photo",
    "pixlr",
    "snapseed",
    "picsart",
    "canva",
    "paint.net",
    "facetune",
    "photopea",
)

STOCK_PRESET_DIMENSIONS = frozenset({
    (800, 600),
    (1024, 768),
    (1280, 720),
    (1920, 1080),
})

# EXIF tags that carry provenance text
PROVENANCE_EXIF_TAGS = (0x010E, 0x013B, 0x8298, 0x0131)  # description, artist, copyright, software
SKIPPED_INFO_KEYS = frozenset({"exif", "icc_profile"})

FORMAT_MIN_BYTES_PER_PIXEL = {
    "JPEG": 0.02,
    "WEBP": 0.01,
    "PNG": 0.05,
}

SMALL_IMAGE_POINTS = 15
STOCK_PHOTO_POINTS = 25
SCREENSHOT_POINTS = 20
EDITED_POINTS = 30
LOW_QUALITY_POINTS = 10

LOW_QUALITY_SCORE = 50
TINY_IMAGE_DEDUCTION = 30
SMALL_IMAGE_DEDUCTION = 15
LOW_BYTES_DEDUCTION = 20
MAX_BLUR_DEDUCTION = 50


def extract_metadata(image: Image.Image) -> Dict[str, str]:
    """Text metadata from format info chunks and provenance EXIF tags."""
    meta: Dict[str, str] = {}
    for key, value in image.info.items():
        if key in SKIPPED_INFO_KEYS:
            continue
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        if isinstance(value, str) and value.strip():
            meta[str(key).lower()] = value

    exif = image.getexif()
    for tag in PROVENANCE_EXIF_TAGS:
        value = exif.get(tag)
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        if isinstance(value, str) and value.strip():
            meta[ExifTags.TAGS.get(tag, str(tag)).lower()] = value
    return meta


def _find_marker(meta: Dict[str, str], markers) -> Optional[str]:
    blob = " ".join(meta.values()).lower()
    for marker in markers:
        if marker in blob:
            return marker
    return None


def _pixel_density(image: Image.Image) -> float:
    dpi = image.info.get("dpi")
    if not dpi:
        return 0.0
    try:
        return float(max(dpi))
    except (TypeError, ValueError):
        return 0.0


def _working_copy(image: Image.Image) -> Image.Image:
    rgb = image.convert("RGB")
    side = settings.analysis_max_side
    if max(rgb.size) > side:
        rgb.thumbnail((side, side))
    return rgb


def has_uniform_border(pixels: np.ndarray, threshold: Optional[int] = None) -> bool:
    """True when a row just inside the top edge is (nearly) one color."""
    threshold = settings.border_uniformity_threshold if threshold is None else threshold
    height, width = pixels.shape[:2]
    if width < 2:
        return False
    row = pixels[1 if height > 2 else 0].astype(np.int16)
    spread = (row.max(axis=0) - row.min(axis=0)).max()
    return int(spread) <= threshold


def error_level(rgb: Image.Image, quality: Optional[int] = None) -> float:
    """Mean absolute pixel difference after one JPEG re-encode."""
    quality = settings.ela_quality if quality is None else quality
    buffer = io.BytesIO()
    rgb.save(buffer, format="JPEG", quality=quality)
    buffer.seek(0)
    with Image.open(buffer) as recompressed:
        resaved = np.asarray(recompressed.convert("RGB"), dtype=np.int16)
    original = np.asarray(rgb, dtype=np.int16)
    return float(np.abs(original - resaved).mean())


def edge_strength(rgb: Image.Image) -> float:
    """Mean gradient magnitude of the grayscale image; low means blurry."""
    gray = np.asarray(rgb.convert("L"), dtype=np.float32)
    if gray.shape[0] < 2 or gray.shape[1] < 2:
        return 0.0
    gx = np.diff(gray, axis=1)[:-1, :]
    gy = np.diff(gray, axis=0)[:, :-1]
    return float(np.hypot(gx, gy).mean())


def quality_score(width: int, height: int, byte_size: int, fmt: Optional[str], sharpness: float) -> float:
    score = 100.0

    min_side = min(width, height)
    if min_side < settings.image_min_dimension:
        score -= TINY_IMAGE_DEDUCTION
    elif min_side < settings.image_min_dimension * 2:
        score -= SMALL_IMAGE_DEDUCTION

    pixels = width * height
    min_density = FORMAT_MIN_BYTES_PER_PIXEL.get((fmt or "").upper(), settings.min_bytes_per_pixel)
    if pixels and byte_size / pixels < min_density:
        score -= LOW_BYTES_DEDUCTION

    threshold = settings.blur_edge_threshold
    if threshold > 0 and sharpness < threshold:
        score -= min(MAX_BLUR_DEDUCTION, (1 - sharpness / threshold) * MAX_BLUR_DEDUCTION)

    return clamp_score(score)


def failed_image_result(reference: str, reason: str, byte_size: int = 0) -> ImageAnalysisResult:
    metrics.increment("analysis.fallback.image")
    signals = SignalCollector("image", "Image")
    signals.add(settings.image_fallback_score, f"Image analysis failed: {reason}")
    sub = signals.result()
    return ImageAnalysisResult(
        reference=reference,
        byte_size=byte_size,
        risk_score=sub.score,
        analysis_failed=True,
        indicators=sub.indicators,
    )


def analyze_image_bytes(reference: str, data: bytes) -> ImageAnalysisResult:
    """
    Run all per-image heuristics on raw image bytes.

    Undecodable data yields a failed result (fallback risk) instead of
    raising.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Could not decode image {reference}: {e}")
        return failed_image_result(reference, "unreadable image data", len(data))

    with image:
        width, height = image.size
        fmt = image.format
        meta = extract_metadata(image)
        density = _pixel_density(image)
        rgb = _working_copy(image)

    pixels = np.asarray(rgb)
    signals = SignalCollector("image", "Image")
    quality_issues = False

    if width < settings.image_min_dimension or height < settings.image_min_dimension:
        signals.add(SMALL_IMAGE_POINTS, f"Image is only {width}x{height} pixels")
        quality_issues = True

    stock_marker = _find_marker(meta, STOCK_AGENCY_MARKERS)
    is_stock = stock_marker is not None or (width, height) in STOCK_PRESET_DIMENSIONS
    if is_stock:
        reason = f"metadata mentions '{stock_marker}'" if stock_marker else f"stock preset size {width}x{height}"
        signals.add(STOCK_PHOTO_POINTS, f"Image looks like a stock photo ({reason})")

    is_screenshot = round(density) >= settings.screenshot_min_dpi or has_uniform_border(pixels)
    if is_screenshot:
        signals.add(SCREENSHOT_POINTS, "Image looks like a screenshot")

    editor = _find_marker(meta, EDITING_SOFTWARE_MARKERS)
    ela = error_level(rgb)
    is_edited = editor is not None or ela > settings.ela_threshold
    if is_edited:
        reason = f"saved by '{editor}'" if editor else f"error level {ela:.1f}"
        signals.add(EDITED_POINTS, f"Image shows signs of editing ({reason})")

    quality = quality_score(width, height, len(data), fmt, edge_strength(rgb))
    if quality < LOW_QUALITY_SCORE:
        signals.add(LOW_QUALITY_POINTS, f"Image quality is poor ({quality:.0f}/100)")
        quality_issues = True

    sub = signals.result()
    return ImageAnalysisResult(
        reference=reference,
        width=width,
        height=height,
        format=fmt,
        byte_size=len(data),
        risk_score=sub.score,
        is_stock_photo=is_stock,
        is_screenshot=is_screenshot,
        is_edited=is_edited,
        quality_issues=quality_issues,
        quality_score=round(quality, 1),
        indicators=sub.indicators,
    )
