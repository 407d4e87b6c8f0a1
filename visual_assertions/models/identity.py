"""Value objects naming one visual check and the run it belongs to."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ScreenshotIdentity(BaseModel):
    """Unique name of one visual check: project, browser, category and screenshot."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(min_length=1)
    browser_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    screenshot_name: str = Field(min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.project_name}/{self.category}/{self.screenshot_name} [{self.browser_name}]"

    def __str__(self) -> str:
        return self.full_name


class RunContext(BaseModel):
    """Identity of one test run; sessions are keyed by its start date."""

    model_config = ConfigDict(frozen=True)

    start_date: datetime

    @classmethod
    def start_now(cls) -> "RunContext":
        return cls(start_date=datetime.now(timezone.utc))
