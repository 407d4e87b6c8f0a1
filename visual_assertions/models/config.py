"""Configuration models for visual assertions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720
    name: str = "desktop"


class VisualAssertionsConfig(BaseModel):
    # Identity of the checks
    project_name: str = Field(min_length=1)
    browser_name: str = "chromium"
    screenshot_category: str = "default"

    # Capture
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    full_page: bool = False
    headless: bool = True

    # Storage and reporting
    storage_dir: str = ".visual-assertions"
    report_output_dir: str = "./visual-reports"
    test_runner: Literal["auto", "console", "teamcity"] = "auto"

    @classmethod
    def load(cls, path: str | Path) -> "VisualAssertionsConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
