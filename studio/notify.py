"""SweetAlert2 dialog helpers for the studio."""

from playwright.sync_api import Page

from scripter.errors import ConvergenceTimeout
from scripter.waiting import wait_for_condition

CONTAINER = ".swal2-container"
POPUP = ".swal2-popup"


class Notify:
    """Modal dialogs and toast notifications."""

    def __init__(self, page: Page):
        self.page = page

    def is_alert_open(self) -> bool:
        if self.page.query_selector(CONTAINER) is not None:
            try:
                # Container is inserted before its opening animation finishes
                wait_for_condition(
                    lambda: self.page.is_visible(CONTAINER),
                    timeout=1,
                    timeout_message="alert container not shown",
                )
            except ConvergenceTimeout:
                return False
        return self.page.is_visible(CONTAINER)

    def alert_text(self) -> str:
        return self.page.inner_text(".swal2-title") + " - " + self.page.inner_text(".swal2-content")

    def accept_alert(self, timeout: float = 15) -> None:
        container_id = self.page.get_attribute(POPUP, "id")

        self.page.click(".swal2-confirm")
        selector = f"#{container_id}" if container_id else POPUP
        wait_for_condition(
            lambda: not self.page.is_visible(selector),
            timeout=timeout,
            timeout_message="alert should close after confirming",
            context=lambda: f"selector={selector} url={self.page.url}",
        )

    def send_alert_text(self, msg: str) -> None:
        self.page.fill(".swal2-input", msg)

    def notification_exists(self) -> bool:
        return self.page.is_visible('span[data-notify="message"]')
