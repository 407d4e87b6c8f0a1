"""Test runner adapter contract."""

from __future__ import annotations

from typing import Protocol

from visual_assertions.models.project import BrowserPattern
from visual_assertions.models.session import TestSession


class TestRunnerAdapter(Protocol):
    """Receives the outcome of each visual check."""

    __test__ = False

    def is_present(self) -> bool: ...

    def notify_about_test_success(self, test_name: str) -> None: ...

    def notify_about_test_fail(self, test_name: str, session: TestSession, pattern: BrowserPattern) -> None: ...

    def notify_about_error(self, error: BaseException) -> None: ...


def full_exception_message(error: BaseException) -> str:
    """Message of ``error`` followed by the messages of its causes."""
    parts = []
    seen = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return "\n  caused by ".join(parts)
