"""Session ledger — per-run grouping of comparison outcomes."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from visual_assertions.models.image import BlindRegion, ImageBytes


class TestResult(BaseModel):
    """Outcome of one comparison against a baseline pattern."""

    __test__ = False

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    pattern_id: str
    screenshot_name: str
    category: str
    browser_name: str
    test_passed: bool
    # Failure evidence; left empty when the test passed
    error_screenshot: Optional[ImageBytes] = None
    diff_image: Optional[ImageBytes] = None
    blind_regions_snapshot: list[BlindRegion] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TestSession(BaseModel):
    """All results recorded for one run, keyed by the run start date."""

    __test__ = False

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    start_date: datetime
    test_results: list[TestResult] = Field(default_factory=list)

    def add_test_result(self, test_result: TestResult) -> None:
        self.test_results.append(test_result)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.test_results if r.test_passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.test_results if not r.test_passed)
