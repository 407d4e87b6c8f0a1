"""Image comparer — pixel comparison that ignores blind regions."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Optional

from PIL import Image, ImageChops, UnidentifiedImageError

from visual_assertions.models.image import BlindRegion
from visual_assertions.screenshots.errors import VisualAssertionError

logger = logging.getLogger(__name__)

# Painted over blind regions on both images so they always compare equal
_BLIND_FILL = (0, 0, 0, 0)
_DIFF_HIGHLIGHT = (255, 0, 0, 255)


class ImageComparisonError(VisualAssertionError):
    """Raised when an image payload cannot be decoded."""


@dataclass
class ComparisonResult:
    matched: bool
    diff_pixels: int = 0
    diff_image: Optional[bytes] = None
    message: str = ""


class ImageComparer:
    """Compares two PNG payloads pixel by pixel outside of blind regions."""

    def __init__(self, generate_diff_image: bool = True):
        self.generate_diff_image = generate_diff_image

    def compare(
        self,
        baseline: bytes,
        candidate: bytes,
        blind_regions: Iterable[BlindRegion] = (),
    ) -> ComparisonResult:
        baseline_img = _open(baseline, "baseline")
        candidate_img = _open(candidate, "candidate")

        if baseline_img.size != candidate_img.size:
            msg = f"Size mismatch: baseline {baseline_img.size}, candidate {candidate_img.size}"
            logger.debug(msg)
            return ComparisonResult(matched=False, message=msg)

        regions = list(blind_regions)
        baseline_masked = _mask(baseline_img, regions)
        candidate_masked = _mask(candidate_img, regions)

        difference = ImageChops.difference(baseline_masked, candidate_masked)
        # Any channel differing, alpha included, marks the pixel as changed
        strongest = reduce(ImageChops.lighter, difference.split())
        if strongest.getbbox() is None:
            return ComparisonResult(matched=True, message="Images match")

        changed = strongest.point(lambda v: 255 if v else 0)
        diff_pixels = changed.histogram()[255]
        msg = f"{diff_pixels} pixel(s) differ outside {len(regions)} blind region(s)"
        logger.debug(msg)

        diff_image = None
        if self.generate_diff_image:
            diff_image = _render_diff(baseline_masked, changed)
        return ComparisonResult(
            matched=False, diff_pixels=diff_pixels, diff_image=diff_image, message=msg,
        )


def _open(payload: bytes, label: str) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(payload))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageComparisonError(f"Cannot decode {label} image: {e}") from e
    return img.convert("RGBA")


def _mask(img: Image.Image, regions: list[BlindRegion]) -> Image.Image:
    if not regions:
        return img
    masked = img.copy()
    width, height = masked.size
    for region in regions:
        # Clip to the image; regions may extend past a smaller screenshot
        box = (
            min(region.left, width),
            min(region.top, height),
            min(region.right, width),
            min(region.bottom, height),
        )
        if box[0] < box[2] and box[1] < box[3]:
            masked.paste(_BLIND_FILL, box)
    return masked


def _render_diff(baseline: Image.Image, changed: Image.Image) -> bytes:
    faded = Image.blend(baseline, Image.new("RGBA", baseline.size, (255, 255, 255, 255)), 0.7)
    highlight = Image.new("RGBA", baseline.size, _DIFF_HIGHLIGHT)
    faded.paste(highlight, (0, 0), changed)
    out = io.BytesIO()
    faded.save(out, format="PNG")
    return out.getvalue()
