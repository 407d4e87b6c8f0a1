"""Check outcomes — produced by the transactional phase, delivered after commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from visual_assertions.models.identity import ScreenshotIdentity
from visual_assertions.models.project import BrowserPattern
from visual_assertions.models.session import TestResult, TestSession

if TYPE_CHECKING:
    from visual_assertions.adapters.base import TestRunnerAdapter

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    BASELINE_CREATED = "baseline_created"
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class CheckOutcome:
    """Pending notification for one visual check.

    Building an outcome has no side effects; ``deliver_to`` is the only step
    that talks to the test runner.
    """

    kind: OutcomeKind
    identity: ScreenshotIdentity
    pattern: Optional[BrowserPattern] = None
    session: Optional[TestSession] = None
    test_result: Optional[TestResult] = None
    error: Optional[BaseException] = None
    delivered: bool = False

    @classmethod
    def baseline_created(cls, identity: ScreenshotIdentity, pattern: BrowserPattern) -> "CheckOutcome":
        return cls(OutcomeKind.BASELINE_CREATED, identity, pattern=pattern)

    @classmethod
    def from_test_result(
        cls, identity: ScreenshotIdentity, session: TestSession,
        pattern: BrowserPattern, test_result: TestResult,
    ) -> "CheckOutcome":
        kind = OutcomeKind.PASSED if test_result.test_passed else OutcomeKind.FAILED
        return cls(kind, identity, pattern=pattern, session=session, test_result=test_result)

    @classmethod
    def failure(cls, identity: ScreenshotIdentity, error: BaseException) -> "CheckOutcome":
        return cls(OutcomeKind.ERROR, identity, error=error)

    @property
    def is_success(self) -> bool:
        return self.kind in (OutcomeKind.BASELINE_CREATED, OutcomeKind.PASSED)

    def deliver_to(self, adapter: "TestRunnerAdapter") -> None:
        """Send this outcome to the test runner.

        Adapter errors are logged and never reach the caller.
        """
        if self.delivered:
            raise RuntimeError(f"Outcome for {self.identity.full_name} already delivered")
        self.delivered = True
        try:
            match self.kind:
                case OutcomeKind.BASELINE_CREATED | OutcomeKind.PASSED:
                    adapter.notify_about_test_success(self.identity.full_name)
                case OutcomeKind.FAILED:
                    adapter.notify_about_test_fail(self.identity.full_name, self.session, self.pattern)
                case OutcomeKind.ERROR:
                    adapter.notify_about_error(self.error)
        except Exception as e:
            logger.warning("Test runner adapter failed to report %s: %s", self.identity.full_name, e)
