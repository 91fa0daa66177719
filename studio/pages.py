"""
Studio page helpers.

Login, the devices overview and the data acquisition pages, as used by the
device-integration suite. All polling goes through
:func:`scripter.waiting.wait_for_condition` so a stuck UI fails with the URL and
selector that were being watched.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from playwright.sync_api import Locator, Page

from scripter.config import Config
from scripter.errors import ScripterError
from scripter.waiting import wait_for_condition
from studio.notify import Notify

logger = logging.getLogger(__name__)

CONNECTED_DEVICE = ".device-remote-mgmt i.bg-success"
SENSOR_SELECT = "#input-sample-sensor"
FREQUENCY_SELECT = "#input-sample-frequency"
START_SAMPLING = "#input-start-sampling"

SAMPLING_STAGES = ("Starting...", "Waiting to start...", "Sampling... (1s left)")

PROJECT_PATH = re.compile(r"^/studio/(\d+)/?$")


class StudioSite:
    """One logged-in studio project in a Playwright page."""

    def __init__(self, page: Page, config: Config):
        self.page = page
        self.config = config
        self.notify = Notify(page)
        self.studio_url: Optional[str] = None
        self.project_id: Optional[int] = None

    def _context(self, selector: str = "") -> str:
        if selector:
            return f"url={self.page.url} selector={selector}"
        return f"url={self.page.url}"

    def wait_until(self, predicate, timeout: float, message: str, selector: str = ""):
        return wait_for_condition(
            predicate,
            timeout=timeout,
            timeout_message=message,
            context=lambda: self._context(selector),
        )

    # Login

    def login(self, timeout: float = 30) -> int:
        """Log in through the form and land on the project dashboard.

        Returns the project id parsed from the dashboard URL.
        """
        endpoint = self.config.studio_endpoint
        self.page.goto(endpoint + "/login")
        self.page.fill('input[name="username"]', self.config.USERNAME or "")
        self.page.fill('input[name="password"]', self.config.PASSWORD or "")
        self.page.click('input[type="submit"]')

        def on_dashboard():
            url = self.page.url
            return url.startswith(endpoint) and PROJECT_PATH.match(url[len(endpoint):])

        match = self.wait_until(on_dashboard, timeout, "should redirect to the project dashboard")

        title = self.page.get_by_role("heading", level=1, name=self.config.PROJECT_NAME, exact=True)
        if title.count() == 0:
            raise ScripterError("login_failed", f"project title {self.config.PROJECT_NAME!r} missing at {self.page.url}")

        self.studio_url = self.page.url if self.page.url.endswith("/") else self.page.url + "/"
        self.project_id = int(match.group(1))
        logger.info("Logged in to project %d", self.project_id, extra={"url": self.studio_url})
        return self.project_id

    def open(self, path: str) -> None:
        if self.studio_url is None:
            raise ScripterError("not_logged_in", f"cannot open {path!r} before logging in")
        self.page.goto(self.studio_url + path)

    def reload(self) -> None:
        self.page.reload()

    # Devices

    def connected_device_count(self) -> int:
        return len(self.page.query_selector_all(CONNECTED_DEVICE))

    def wait_for_connected_devices(self, count: int, timeout: float = 30) -> None:
        self.wait_until(
            lambda: self.connected_device_count() == count,
            timeout,
            f"expected {count} connected device(s)",
            selector=CONNECTED_DEVICE,
        )

    # Data acquisition

    def sensor_option_count(self) -> int:
        return len(self.page.query_selector_all(f"{SENSOR_SELECT} option"))

    def wait_for_sensors(self, count: int, timeout: float = 2) -> None:
        self.wait_until(
            lambda: self.sensor_option_count() == count,
            timeout,
            f"expected {count} sensors",
            selector=f"{SENSOR_SELECT} option",
        )

    def start_button_text(self) -> str:
        return self.page.inner_text(START_SAMPLING)

    def start_button_disabled(self) -> bool:
        return "disabled" in (self.page.get_attribute(START_SAMPLING, "class") or "")

    def start_sampling(
        self,
        label: str,
        sensor: str,
        length_ms: int = 1000,
        frequency: Optional[str] = None,
        stage_timeout: float = 10,
    ) -> None:
        """Fill in the record form, start sampling and follow the button's stages."""
        self.page.fill("#input-category", label)
        self.page.fill("#input-sample-length", str(length_ms))
        self.page.select_option(SENSOR_SELECT, label=sensor)
        if frequency:
            self.page.select_option(FREQUENCY_SELECT, label=frequency)

        self.page.click(START_SAMPLING)
        for stage in SAMPLING_STAGES:
            self.wait_until(
                lambda: self.start_button_text() == stage,
                stage_timeout,
                f"sampling button should show {stage!r}",
                selector=START_SAMPLING,
            )

    def sample_cell(self, label: str) -> Locator:
        return self.page.locator("td", has_text=label)

    def sample_row(self, label: str) -> Locator:
        return self.sample_cell(label).first.locator("xpath=..")

    def sample_exists(self, label: str) -> bool:
        return self.sample_cell(label).count() > 0

    def wait_for_sample(self, label: str, timeout: float = 30) -> None:
        self.wait_until(lambda: self.sample_exists(label), timeout,
                        f"{label} should be listed", selector=f"td:has-text({label!r})")

    def wait_until_sampling_done(self, timeout: float = 15) -> None:
        self.wait_until(lambda: not self.start_button_disabled(), timeout,
                        "sampling button should be enabled again", selector=START_SAMPLING)

    def sample_category(self, label: str) -> str:
        return self.sample_row(label).locator(".aq-category").inner_text()

    def expand_samples(self) -> None:
        self.page.click(".acquisition-table .expand a")

    def sample_signature(self, label: str) -> Tuple[str, str, str]:
        """Signature method, tooltip and icon classes of a sample's row."""
        signature = self.sample_row(label).locator(".aq-signature")
        return (
            signature.inner_text(),
            signature.get_attribute("title") or "",
            signature.locator("i").get_attribute("class") or "",
        )

    def delete_sample(self, label: str, timeout: float = 15) -> None:
        self.sample_row(label).locator("a.btn").click()
        self.page.get_by_role("link", name="Delete", exact=True).click()
        self.notify.accept_alert()
        self.wait_until(
            lambda: not self.sample_exists(label),
            timeout,
            f"{label} should be deleted by JS",
            selector=f"td:has-text({label!r})",
        )
