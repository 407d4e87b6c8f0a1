"""Browser cameras — produce the PNG bytes a visual check compares."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from playwright.sync_api import Page

logger = logging.getLogger(__name__)


class BrowserCamera(Protocol):
    def take_screenshot(self) -> bytes: ...


class PlaywrightBrowserCamera:
    """Captures the current state of a Playwright page."""

    def __init__(self, page: Page, full_page: bool = False, wait_for_idle: bool = True):
        self.page = page
        self.full_page = full_page
        self.wait_for_idle = wait_for_idle

    def take_screenshot(self) -> bytes:
        if self.wait_for_idle:
            try:
                self.page.wait_for_load_state("networkidle", timeout=3000)
            except Exception as e:
                # A page that never idles is still worth capturing
                logger.debug("Page did not reach network idle: %s", e)
        image = self.page.screenshot(full_page=self.full_page, animations="disabled")
        logger.debug("Captured %d bytes from %s", len(image), self.page.url)
        return image


class ImageFileCamera:
    """Returns an existing PNG file, for screenshots taken outside the framework."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def take_screenshot(self) -> bytes:
        return self.path.read_bytes()
