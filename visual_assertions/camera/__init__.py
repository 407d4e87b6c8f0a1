"""Screenshot capture collaborators."""

from .browser_camera import BrowserCamera, ImageFileCamera, PlaywrightBrowserCamera

__all__ = ["BrowserCamera", "ImageFileCamera", "PlaywrightBrowserCamera"]
