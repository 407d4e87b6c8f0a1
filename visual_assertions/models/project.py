"""Pattern store — projects, test case categories, test cases and browser patterns."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from visual_assertions.comparison.image_comparer import ComparisonResult, ImageComparer
from visual_assertions.models.image import BlindRegion, ImageBytes
from visual_assertions.models.session import TestSession
from visual_assertions.screenshots.errors import InvariantViolation


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BrowserPattern(BaseModel):
    """Accepted baseline image of one test case for one browser."""

    id: str = Field(default_factory=_new_id)
    browser_name: str
    pattern_screenshot: ImageBytes
    blind_regions: list[BlindRegion] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    def match_to(self, image: bytes, comparer: ImageComparer | None = None) -> bool:
        """Return True when ``image`` matches the baseline outside the blind regions."""
        return self.compare_to(image, comparer).matched

    def compare_to(self, image: bytes, comparer: ImageComparer | None = None) -> ComparisonResult:
        comparer = comparer or ImageComparer()
        return comparer.compare(self.pattern_screenshot, image, self.blind_regions)

    def get_copy_of_all_blind_regions(self) -> list[BlindRegion]:
        return [region.model_copy() for region in self.blind_regions]

    def add_blind_region(self, region: BlindRegion) -> None:
        self.blind_regions.append(region)

    def replace_blind_regions(self, regions: list[BlindRegion]) -> None:
        self.blind_regions = list(regions)


class TestCase(BaseModel):
    """Visual test case identified by its screenshot name."""

    __test__ = False  # not a pytest class

    pattern_screenshot_name: str
    patterns: list[BrowserPattern] = Field(default_factory=list)

    def get_active_pattern_for_browser(self, browser_name: str) -> Optional[BrowserPattern]:
        for pattern in self.patterns:
            if pattern.is_active and pattern.browser_name == browser_name:
                return pattern
        return None

    def add_new_pattern(self, image: bytes, browser_name: str) -> BrowserPattern:
        """Store ``image`` as the active baseline for ``browser_name``.

        An already active pattern of the same browser is deactivated, so a
        test case never holds two active patterns for one browser.
        """
        for pattern in self.patterns:
            if pattern.is_active and pattern.browser_name == browser_name:
                pattern.is_active = False
        pattern = BrowserPattern(browser_name=browser_name, pattern_screenshot=image)
        self.patterns.append(pattern)
        return pattern

    def get_pattern(self, pattern_id: str) -> Optional[BrowserPattern]:
        return next((p for p in self.patterns if p.id == pattern_id), None)


class TestCaseCategory(BaseModel):
    __test__ = False

    name: str
    test_cases: list[TestCase] = Field(default_factory=list)

    def get_test_case(self, pattern_screenshot_name: str) -> Optional[TestCase]:
        return next(
            (tc for tc in self.test_cases if tc.pattern_screenshot_name == pattern_screenshot_name),
            None,
        )

    def add_test_case(self, pattern_screenshot_name: str) -> TestCase:
        test_case = TestCase(pattern_screenshot_name=pattern_screenshot_name)
        self.test_cases.append(test_case)
        return test_case


class Project(BaseModel):
    """Root aggregate holding the pattern catalog and the session ledger."""

    name: str = Field(min_length=1)
    version: int = 0  # bumped by the repository on every commit
    sessions: Optional[list[TestSession]] = Field(default_factory=list)
    test_case_categories: list[TestCaseCategory] = Field(default_factory=list)

    def get_test_case_category(self, name: str) -> Optional[TestCaseCategory]:
        return next((c for c in self.test_case_categories if c.name == name), None)

    def add_test_case_category(self, name: str) -> TestCaseCategory:
        category = TestCaseCategory(name=name)
        self.test_case_categories.append(category)
        return category

    def require_sessions(self) -> list[TestSession]:
        if self.sessions is None:
            raise InvariantViolation(f"Sessions of project '{self.name}' cannot be null")
        return self.sessions

    def get_session(self, start_date: datetime) -> Optional[TestSession]:
        return next((s for s in self.require_sessions() if s.start_date == start_date), None)

    def add_session(self, session: TestSession) -> None:
        self.require_sessions().append(session)

    def find_pattern(self, pattern_id: str) -> Optional[BrowserPattern]:
        for category in self.test_case_categories:
            for test_case in category.test_cases:
                pattern = test_case.get_pattern(pattern_id)
                if pattern is not None:
                    return pattern
        return None

    def iter_active_patterns(self):
        """Yield (category, test case, pattern) for every active pattern."""
        for category in self.test_case_categories:
            for test_case in category.test_cases:
                for pattern in test_case.patterns:
                    if pattern.is_active:
                        yield category, test_case, pattern
