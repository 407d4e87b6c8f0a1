"""TeamCity adapter — reports checks as TeamCity service messages."""

from __future__ import annotations

import os
import sys
from typing import TextIO

from visual_assertions.models.project import BrowserPattern
from visual_assertions.models.session import TestSession

from .base import full_exception_message

_ESCAPES = {"|": "||", "'": "|'", "\n": "|n", "\r": "|r", "[": "|[", "]": "|]"}


def escape_value(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


class TeamCityTestRunnerAdapter:
    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def is_present(self) -> bool:
        return bool(os.environ.get("TEAMCITY_VERSION"))

    def _message(self, message_name: str, **attrs: str) -> None:
        body = " ".join(f"{key}='{escape_value(value)}'" for key, value in attrs.items())
        stream = self.stream or sys.stdout
        stream.write(f"##teamcity[{message_name} {body}]\n")
        stream.flush()

    def notify_about_test_success(self, test_name: str) -> None:
        self._message("testStarted", name=test_name)
        self._message("testFinished", name=test_name)

    def notify_about_test_fail(self, test_name: str, session: TestSession, pattern: BrowserPattern) -> None:
        self._message("testStarted", name=test_name)
        self._message(
            "testFailed",
            name=test_name,
            message="Screenshot does not match the pattern",
            details=f"session={session.start_date.isoformat()} pattern={pattern.id}",
        )
        self._message("testFinished", name=test_name)

    def notify_about_error(self, error: BaseException) -> None:
        self._message("message", text=str(error), errorDetails=full_exception_message(error), status="ERROR")
