"""Module-scoped browser and studio fixtures for the E2E suite."""

import pytest

from scripter.config import Config
from studio.pages import StudioSite


@pytest.fixture(scope="module")
def suite_config():
    return Config()


@pytest.fixture(scope="module")
def studio_page(browser):
    """One page shared by every step of a module, like a single user session."""
    context = browser.new_context()
    page = context.new_page()
    yield page
    context.close()


@pytest.fixture(scope="module")
def site(studio_page, suite_config):
    suite_config.validate()
    site = StudioSite(studio_page, suite_config)
    site.login()
    return site
