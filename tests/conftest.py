"""Pytest configuration and shared fixtures."""

import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from visual_assertions.models.identity import RunContext
from visual_assertions.persistence import InMemoryProjectRepository
from visual_assertions.screenshots.service import VisualAssertionsService


# ============================================================================
# Image Helpers
# ============================================================================


def make_png(width: int = 40, height: int = 30, color=(255, 255, 255), patches=()) -> bytes:
    """Create PNG bytes filled with ``color``; ``patches`` is a list of (box, color)."""
    img = Image.new("RGB", (width, height), color)
    for box, patch_color in patches:
        img.paste(patch_color, box)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


# ============================================================================
# Collaborator Doubles
# ============================================================================


class FakeCamera:
    """Camera returning a fixed image and counting captures."""

    def __init__(self, image: bytes | None = None, error: Exception | None = None):
        self.image = image if image is not None else make_png()
        self.error = error
        self.calls = 0

    def take_screenshot(self) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.image


class RecordingAdapter:
    """Test runner adapter remembering every notification."""

    def __init__(self):
        self.successes = []
        self.failures = []
        self.errors = []

    def is_present(self) -> bool:
        return True

    def notify_about_test_success(self, test_name):
        self.successes.append(test_name)

    def notify_about_test_fail(self, test_name, session, pattern):
        self.failures.append((test_name, session, pattern))

    def notify_about_error(self, error):
        self.errors.append(error)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures) + len(self.errors)


class FailingCommitRepository(InMemoryProjectRepository):
    """In-memory repository whose commits fail while ``fail`` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def _apply(self, staged, loaded_versions):
        if self.fail:
            raise OSError("disk full")
        super()._apply(staged, loaded_versions)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def start_date() -> datetime:
    return datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def run_context(start_date: datetime) -> RunContext:
    return RunContext(start_date=start_date)


@pytest.fixture
def repository() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def make_service(repository, adapter, run_context):
    """Factory building a service for one run; defaults come from the other fixtures."""

    def _make(run_context=run_context, repository=repository, adapter=adapter, category="home"):
        return VisualAssertionsService(
            project_repository=repository,
            test_runner_adapter=adapter,
            run_context=run_context,
            project_name="shop",
            browser_name="chromium",
            screenshot_category=category,
        )

    return _make


@pytest.fixture
def service(make_service) -> VisualAssertionsService:
    return make_service()


@pytest.fixture
def png():
    """Fixture that provides the make_png function."""
    return make_png


@pytest.fixture
def make_camera():
    """Fixture that provides the FakeCamera class."""
    return FakeCamera


@pytest.fixture
def failing_repository() -> FailingCommitRepository:
    return FailingCommitRepository()
