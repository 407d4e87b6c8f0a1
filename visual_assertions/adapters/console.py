"""Console adapter — colored pass/fail lines on the terminal."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from visual_assertions.models.project import BrowserPattern
from visual_assertions.models.session import TestSession

from .base import full_exception_message


class ConsoleTestRunnerAdapter:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def is_present(self) -> bool:
        return True

    def notify_about_test_success(self, test_name: str) -> None:
        self.console.print(f"[green]Test passed: {escape(test_name)}[/green]")

    def notify_about_test_fail(self, test_name: str, session: TestSession, pattern: BrowserPattern) -> None:
        self.console.print(f"[red]Test failed: {escape(test_name)}[/red]")

    def notify_about_error(self, error: BaseException) -> None:
        self.console.print(f"[red]{escape(full_exception_message(error))}[/red]")
