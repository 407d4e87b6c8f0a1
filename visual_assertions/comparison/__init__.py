"""Pixel comparison of screenshots against baselines."""

from .image_comparer import ComparisonResult, ImageComparer, ImageComparisonError

__all__ = ["ComparisonResult", "ImageComparer", "ImageComparisonError"]
