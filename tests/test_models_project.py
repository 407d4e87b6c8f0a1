"""Tests for the pattern store and session ledger models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from visual_assertions.models.image import BlindRegion
from visual_assertions.models.project import BrowserPattern, Project, TestCase, TestCaseCategory
from visual_assertions.models.session import TestResult, TestSession
from visual_assertions.screenshots.errors import InvariantViolation


class TestBlindRegion:
    def test_box_and_edges(self):
        region = BlindRegion(left=5, top=10, width=20, height=4)
        assert region.right == 25
        assert region.bottom == 14
        assert region.box == (5, 10, 25, 14)

    def test_contains_is_half_open(self):
        region = BlindRegion(left=0, top=0, width=2, height=2)
        assert region.contains(0, 0)
        assert region.contains(1, 1)
        assert not region.contains(2, 1)

    def test_rejects_empty_rectangle(self):
        with pytest.raises(ValidationError):
            BlindRegion(left=0, top=0, width=0, height=5)


class TestBrowserPattern:
    def test_match_to_identical_image(self, png):
        image = png()
        pattern = BrowserPattern(browser_name="chromium", pattern_screenshot=image)
        assert pattern.match_to(image)

    def test_match_to_ignores_blind_regions(self, png):
        pattern = BrowserPattern(browser_name="chromium", pattern_screenshot=png())
        pattern.add_blind_region(BlindRegion(left=0, top=0, width=10, height=10))
        assert pattern.match_to(png(patches=[((2, 2, 8, 8), (0, 0, 0))]))
        assert not pattern.match_to(png(patches=[((12, 12, 14, 14), (0, 0, 0))]))

    def test_copy_of_blind_regions_is_independent(self, png):
        pattern = BrowserPattern(browser_name="chromium", pattern_screenshot=png())
        pattern.add_blind_region(BlindRegion(left=1, top=1, width=2, height=2))
        snapshot = pattern.get_copy_of_all_blind_regions()
        snapshot.append(BlindRegion(left=5, top=5, width=1, height=1))
        pattern.replace_blind_regions([])
        assert len(snapshot) == 2
        assert pattern.blind_regions == []

    def test_image_serializes_as_base64(self, png):
        image = png()
        pattern = BrowserPattern(browser_name="chromium", pattern_screenshot=image)
        restored = BrowserPattern.model_validate_json(pattern.model_dump_json())
        assert isinstance(pattern.model_dump(mode="json")["pattern_screenshot"], str)
        assert restored.pattern_screenshot == image


class TestTestCase:
    def test_no_active_pattern_initially(self):
        assert TestCase(pattern_screenshot_name="header").get_active_pattern_for_browser("chromium") is None

    def test_active_pattern_per_browser(self, png):
        test_case = TestCase(pattern_screenshot_name="header")
        chromium = test_case.add_new_pattern(png(), "chromium")
        firefox = test_case.add_new_pattern(png(), "firefox")
        assert test_case.get_active_pattern_for_browser("chromium") is chromium
        assert test_case.get_active_pattern_for_browser("firefox") is firefox

    def test_new_pattern_deactivates_previous_one(self, png):
        test_case = TestCase(pattern_screenshot_name="header")
        old = test_case.add_new_pattern(png(), "chromium")
        new = test_case.add_new_pattern(png(color=(0, 0, 0)), "chromium")
        assert not old.is_active
        assert test_case.get_active_pattern_for_browser("chromium") is new
        assert sum(1 for p in test_case.patterns if p.is_active) == 1
        assert test_case.get_pattern(old.id) is old


class TestProject:
    def test_categories_and_test_cases_are_found_by_name(self):
        project = Project(name="shop")
        category = project.add_test_case_category("home")
        test_case = category.add_test_case("header")
        assert project.get_test_case_category("home") is category
        assert category.get_test_case("header") is test_case
        assert project.get_test_case_category("cart") is None
        assert isinstance(category, TestCaseCategory)

    def test_sessions_keyed_by_start_date(self):
        project = Project(name="shop")
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        session = TestSession(start_date=start)
        project.add_session(session)
        assert project.get_session(start) is session
        assert project.get_session(datetime(2025, 1, 2, tzinfo=timezone.utc)) is None

    def test_null_sessions_is_an_invariant_violation(self):
        project = Project.model_validate({"name": "shop", "sessions": None})
        with pytest.raises(InvariantViolation):
            project.get_session(datetime(2025, 1, 1, tzinfo=timezone.utc))
        with pytest.raises(InvariantViolation):
            project.add_session(TestSession(start_date=datetime(2025, 1, 1, tzinfo=timezone.utc)))

    def test_find_pattern_searches_all_test_cases(self, png):
        project = Project(name="shop")
        pattern = project.add_test_case_category("home").add_test_case("header").add_new_pattern(png(), "chromium")
        assert project.find_pattern(pattern.id) is pattern
        assert project.find_pattern("missing") is None
        assert [p for _, _, p in project.iter_active_patterns()] == [pattern]


class TestTestSession:
    def test_counts_passed_and_failed(self):
        session = TestSession(start_date=datetime(2025, 1, 1, tzinfo=timezone.utc))
        for passed in (True, True, False):
            session.add_test_result(TestResult(
                pattern_id="p", screenshot_name="s", category="c", browser_name="b", test_passed=passed,
            ))
        assert session.passed == 2
        assert session.failed == 1
