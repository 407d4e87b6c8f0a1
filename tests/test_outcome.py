"""Tests for check outcomes and their delivery."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from visual_assertions.models.identity import ScreenshotIdentity
from visual_assertions.models.project import BrowserPattern
from visual_assertions.models.session import TestResult, TestSession
from visual_assertions.screenshots.outcome import CheckOutcome, OutcomeKind


@pytest.fixture
def identity() -> ScreenshotIdentity:
    return ScreenshotIdentity(project_name="shop", browser_name="chromium", category="home", screenshot_name="header")


@pytest.fixture
def pattern(png) -> BrowserPattern:
    return BrowserPattern(browser_name="chromium", pattern_screenshot=png())


@pytest.fixture
def session() -> TestSession:
    return TestSession(start_date=datetime(2025, 1, 1, tzinfo=timezone.utc))


def _result(pattern, passed):
    return TestResult(
        pattern_id=pattern.id, screenshot_name="header", category="home",
        browser_name="chromium", test_passed=passed,
    )


class TestCheckOutcome:
    def test_building_does_not_notify(self, identity, pattern):
        adapter = Mock()
        CheckOutcome.baseline_created(identity, pattern)
        adapter.assert_not_called()
        assert adapter.method_calls == []

    def test_baseline_is_delivered_as_success(self, identity, pattern):
        adapter = Mock()
        outcome = CheckOutcome.baseline_created(identity, pattern)
        outcome.deliver_to(adapter)
        adapter.notify_about_test_success.assert_called_once_with("shop/home/header [chromium]")
        assert outcome.is_success

    def test_passed_result_is_delivered_as_success(self, identity, pattern, session):
        adapter = Mock()
        outcome = CheckOutcome.from_test_result(identity, session, pattern, _result(pattern, True))
        assert outcome.kind == OutcomeKind.PASSED
        outcome.deliver_to(adapter)
        adapter.notify_about_test_success.assert_called_once()
        adapter.notify_about_test_fail.assert_not_called()

    def test_failed_result_is_delivered_with_context(self, identity, pattern, session):
        adapter = Mock()
        outcome = CheckOutcome.from_test_result(identity, session, pattern, _result(pattern, False))
        assert outcome.kind == OutcomeKind.FAILED
        assert not outcome.is_success
        outcome.deliver_to(adapter)
        adapter.notify_about_test_fail.assert_called_once_with("shop/home/header [chromium]", session, pattern)

    def test_error_is_delivered_to_error_channel(self, identity):
        adapter = Mock()
        error = OSError("disk full")
        CheckOutcome.failure(identity, error).deliver_to(adapter)
        adapter.notify_about_error.assert_called_once_with(error)
        adapter.notify_about_test_success.assert_not_called()

    def test_delivers_only_once(self, identity, pattern):
        outcome = CheckOutcome.baseline_created(identity, pattern)
        outcome.deliver_to(Mock())
        with pytest.raises(RuntimeError):
            outcome.deliver_to(Mock())
