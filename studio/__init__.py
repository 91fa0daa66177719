"""Playwright helpers for the studio web application."""

from studio.notify import Notify
from studio.pages import StudioSite

__all__ = ["Notify", "StudioSite"]
