from __future__ import annotations

import shlex
import time
from typing import Optional

import typer

from scripter.config import REQUIRED, WIFI_REQUIRED, Config
from scripter.errors import ScripterError
from scripter.logging_config import configure_logging
from scripter.onboarding import (
    CONNECT_TIMEOUT,
    Credentials,
    DaemonOnboarding,
    WifiNetwork,
    daemon_args,
)
from scripter.session import InteractiveSession

app = typer.Typer(help="Script the device daemon's interactive onboarding")


@app.command("check-env")
def check_env(
    wifi: bool = typer.Option(
        False,
        "--wifi",
        help="Also require the WiFi network credentials",
    ),
) -> None:
    """Report required environment variables that are not set."""
    config = Config()
    names = REQUIRED + WIFI_REQUIRED if (wifi or config.wifi_enabled) else REQUIRED
    missing = config.missing(names)
    if missing:
        for name in missing:
            typer.echo(f"❌ {name} should be set", err=True)
        raise typer.Exit(1)
    typer.echo(f"✅ All {len(names)} variables set (host: {config.HOSTNAME})")


@app.command()
def onboard(
    device_name: Optional[str] = typer.Option(
        None,
        "--device-name",
        "-n",
        help="Name to give the device (default: cli-device-<timestamp>)",
    ),
    wifi: bool = typer.Option(
        False,
        "--wifi/--no-wifi",
        help="Configure the WiFi network from SELENIUM_WIFI_SSID/SELENIUM_WIFI_PASSWORD",
    ),
    daemon_cmd: Optional[str] = typer.Option(
        None,
        "--daemon-cmd",
        help="Command line to run instead of '<EI_DAEMON> --clean'",
    ),
    timeout: float = typer.Option(
        CONNECT_TIMEOUT,
        "--timeout",
        help="Seconds to wait for each stage",
    ),
    log_level: str = typer.Option("INFO", "--log-level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON lines"),
) -> None:
    """Clear the daemon's configuration and connect it to the project."""
    configure_logging(level=log_level, json_format=json_logs)
    config = Config()

    try:
        config.require("EI_USERNAME", "EI_PASSWORD")
        network = None
        if wifi:
            config.require(*WIFI_REQUIRED)
            network = WifiNetwork(ssid=config.WIFI_SSID, password=config.WIFI_PASSWORD)

        if daemon_cmd:
            executable, *args = shlex.split(daemon_cmd)
        else:
            executable, args = config.DAEMON, daemon_args()

        name = device_name or f"cli-device-{int(time.time() * 1000)}"
        with InteractiveSession.spawn(executable, args, config.daemon_environment()) as session:
            onboarding = DaemonOnboarding(session, Credentials.from_config(config), name, wifi=network)
            onboarding.start()
            onboarding.wait_until_cleared(timeout)
            typer.echo("✅ Configuration cleared")
            onboarding.select_project()
            result = onboarding.wait_until_connected(timeout)
            if network:
                result = onboarding.wait_until_exited(timeout)
    except ScripterError as e:
        typer.echo(f"❌ Onboarding failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ {name} connected")
    typer.echo(f"States: {' -> '.join(s.value for s in result.history)}")


if __name__ == "__main__":
    app()
