"""Visual assertions service — checks views against their baseline patterns."""

from __future__ import annotations

import logging

from visual_assertions.adapters.base import TestRunnerAdapter
from visual_assertions.camera.browser_camera import BrowserCamera
from visual_assertions.comparison.image_comparer import ImageComparer
from visual_assertions.models.identity import RunContext, ScreenshotIdentity
from visual_assertions.models.project import BrowserPattern, Project, TestCase
from visual_assertions.models.session import TestResult, TestSession
from visual_assertions.persistence.repository import ConcurrentModificationError, ProjectRepository, Transaction

from .errors import DuplicatedScreenshotInSession, InvariantViolation
from .outcome import CheckOutcome

logger = logging.getLogger(__name__)


class VisualAssertionsService:
    """Runs visual checks for one test run.

    The set of already checked identities lives on the instance, so every
    run needs its own service; instances are not thread-safe.
    """

    def __init__(
        self,
        project_repository: ProjectRepository,
        test_runner_adapter: TestRunnerAdapter,
        run_context: RunContext,
        project_name: str,
        browser_name: str,
        screenshot_category: str,
        image_comparer: ImageComparer | None = None,
        max_commit_attempts: int = 3,
    ):
        self.project_repository = project_repository
        self.test_runner_adapter = test_runner_adapter
        self.run_context = run_context
        self.project_name = project_name
        self.browser_name = browser_name
        self.screenshot_category = screenshot_category
        self.image_comparer = image_comparer or ImageComparer()
        self.max_commit_attempts = max(1, max_commit_attempts)
        self._taken_screenshots: set[ScreenshotIdentity] = set()

    def check_view_with_pattern(self, browser_camera: BrowserCamera, view_name: str) -> CheckOutcome:
        """Capture ``view_name`` and compare it with its pattern.

        Raises DuplicatedScreenshotInSession when the view was already
        checked by this service, before any screenshot is taken. Capture,
        comparison and storage failures are reported to the test runner as
        errors instead of being raised.
        """
        identity = ScreenshotIdentity(
            project_name=self.project_name,
            browser_name=self.browser_name,
            category=self.screenshot_category,
            screenshot_name=view_name,
        )
        if identity in self._taken_screenshots:
            raise DuplicatedScreenshotInSession(identity)

        try:
            image = browser_camera.take_screenshot()
        except Exception as e:
            logger.error("Could not capture screenshot for %s: %s", identity.full_name, e)
            outcome = CheckOutcome.failure(identity, e)
        else:
            logger.debug("Captured %s (%d bytes)", identity.full_name, len(image))
            self._taken_screenshots.add(identity)
            outcome = self._check_screenshot_with_pattern(image, identity)

        # Only reached once the transaction committed or was abandoned
        outcome.deliver_to(self.test_runner_adapter)
        return outcome

    @property
    def taken_screenshots(self) -> frozenset[ScreenshotIdentity]:
        return frozenset(self._taken_screenshots)

    def _check_screenshot_with_pattern(self, image: bytes, identity: ScreenshotIdentity) -> CheckOutcome:
        # Each attempt reloads the project, so a check that lost a commit race
        # is redone against the other run's changes
        for attempt in range(1, self.max_commit_attempts + 1):
            try:
                return self._run_check_transaction(image, identity)
            except ConcurrentModificationError as e:
                if attempt == self.max_commit_attempts:
                    logger.error("Visual check %s kept conflicting with other runs: %s", identity.full_name, e)
                    return CheckOutcome.failure(identity, e)
                logger.info(
                    "Project changed while checking %s, retrying (%d/%d)",
                    identity.full_name, attempt + 1, self.max_commit_attempts,
                )
            except InvariantViolation:
                raise
            except Exception as e:
                logger.error("Visual check %s failed: %s", identity.full_name, e, exc_info=True)
                return CheckOutcome.failure(identity, e)

    def _run_check_transaction(self, image: bytes, identity: ScreenshotIdentity) -> CheckOutcome:
        with self.project_repository.transaction() as tx:
            project = self._get_project(tx, identity.project_name)
            test_case = self._get_test_case(project, identity)
            browser_pattern = test_case.get_active_pattern_for_browser(identity.browser_name)
            if browser_pattern is None:
                browser_pattern = test_case.add_new_pattern(image, identity.browser_name)
                outcome = CheckOutcome.baseline_created(identity, browser_pattern)
                logger.info("Stored new pattern for %s", identity.full_name)
            else:
                test_session = self._get_current_test_session(project)
                test_result = self._get_test_result(image, identity, browser_pattern)
                test_session.add_test_result(test_result)
                outcome = CheckOutcome.from_test_result(identity, test_session, browser_pattern, test_result)
            tx.save(project)
            tx.commit()
        return outcome

    def _get_project(self, tx: Transaction, project_name: str) -> Project:
        project = tx.find_project_by_name(project_name)
        if project is None:
            logger.info("Creating project '%s'", project_name)
            project = Project(name=project_name)
            tx.save(project)
        return project

    @staticmethod
    def _get_test_case(project: Project, identity: ScreenshotIdentity) -> TestCase:
        category = project.get_test_case_category(identity.category)
        if category is None:
            category = project.add_test_case_category(identity.category)
        test_case = category.get_test_case(identity.screenshot_name)
        if test_case is None:
            test_case = category.add_test_case(identity.screenshot_name)
        return test_case

    def _get_current_test_session(self, project: Project) -> TestSession:
        if project.sessions is None:
            raise InvariantViolation(f"Sessions of project '{project.name}' cannot be null")
        start_date = self.run_context.start_date
        test_session = project.get_session(start_date)
        if test_session is None:
            test_session = TestSession(start_date=start_date)
            project.add_session(test_session)
        return test_session

    def _get_test_result(
        self, image: bytes, identity: ScreenshotIdentity, browser_pattern: BrowserPattern,
    ) -> TestResult:
        comparison = browser_pattern.compare_to(image, self.image_comparer)
        if comparison.matched:
            logger.info("Screenshot %s matches its pattern", identity.full_name)
            return TestResult(
                pattern_id=browser_pattern.id,
                screenshot_name=identity.screenshot_name,
                category=identity.category,
                browser_name=identity.browser_name,
                test_passed=True,
            )
        logger.warning("Screenshot %s differs from its pattern: %s", identity.full_name, comparison.message)
        return TestResult(
            pattern_id=browser_pattern.id,
            screenshot_name=identity.screenshot_name,
            category=identity.category,
            browser_name=identity.browser_name,
            test_passed=False,
            error_screenshot=image,
            diff_image=comparison.diff_image,
            blind_regions_snapshot=browser_pattern.get_copy_of_all_blind_regions(),
        )
