"""
End-to-end WiFi onboarding.

Runs only with ``EI_TESTWIFI=1``. The daemon configures the board's WiFi,
reports the device connected over WiFi and exits; data is then sampled over
the board's own connection.
"""

import os

import pytest

from scripter.config import WIFI_REQUIRED
from scripter.onboarding import Credentials, DaemonOnboarding, WifiNetwork, daemon_args
from scripter.session import InteractiveSession

from e2e.acquisition import (
    CATEGORIES,
    RUN_ID,
    SENSORS,
    check_label,
    check_signature,
    delete_sample,
    record_sample,
    requires_studio,
    sample_label,
)

pytestmark = [
    pytest.mark.e2e,
    requires_studio,
    pytest.mark.skipif(os.environ.get("EI_TESTWIFI") != "1", reason="EI_TESTWIFI is not 1"),
]

DEVICE_NAME = f"selenium-device-{RUN_ID}-wifi"

CASES = [(sensor, category) for sensor in SENSORS for category in CATEGORIES]


def wifi_label(sensor, category):
    return sample_label(RUN_ID, sensor, category) + "-wifi"


class TestEnvironment:

    @pytest.mark.parametrize("name", WIFI_REQUIRED)
    def test_wifi_credentials_set(self, suite_config, name):
        suite_config.require(name)


class TestWifiOnboarding:

    def test_connects_over_wifi(self, site, suite_config):
        with InteractiveSession.spawn(
            suite_config.DAEMON, daemon_args(), suite_config.daemon_environment()
        ) as session:
            onboarding = DaemonOnboarding(
                session,
                Credentials.from_config(suite_config),
                DEVICE_NAME,
                wifi=WifiNetwork.from_config(suite_config),
            )
            onboarding.start()
            onboarding.wait_until_cleared(timeout=20)

            site.open("devices")
            site.wait_for_connected_devices(0, timeout=30)
            assert site.connected_device_count() == 0, "should have no connected devices"

            onboarding.select_project()
            result = onboarding.wait_until_connected(timeout=20)
            result = onboarding.wait_until_exited(timeout=20)

        assert result.cleared_config, f"cleared config: {session.transcript}"
        assert result.connected, f"connected: {session.transcript}"
        assert result.exited, "should have exited"

        site.open("devices")
        site.wait_for_connected_devices(1, timeout=30)
        assert site.connected_device_count() == 1, "should have one connected device"


@pytest.mark.parametrize("sensor,category", CASES)
class TestWifiDataAcquisition:

    def test_shows_sampled_data(self, site, sensor, category):
        record_sample(site, wifi_label(sensor, category), sensor, category)

    def test_has_correct_label(self, site, sensor, category):
        check_label(site, wifi_label(sensor, category), category)

    def test_passed_signature_verification(self, site, suite_config, sensor, category):
        check_signature(site, suite_config, wifi_label(sensor, category), category)

    def test_allows_deleting_sample(self, site, sensor, category):
        delete_sample(site, wifi_label(sensor, category), category)
