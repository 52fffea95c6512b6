"""Command-line entry point: scan, report and serve until interrupted."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import functools
import getpass
import logging
import os
import sys
from collections.abc import Callable, Mapping

from n26a_bt._constants import BUILD_MESSAGE
from n26a_bt.aggregator import ScanAggregator
from n26a_bt.client import LoginProvider, N26aClient
from n26a_bt.config import UNSET_LOCATION_ID, N26aConfig
from n26a_bt.exceptions import N26aAuthError, N26aConfigError, N26aFatalInitError
from n26a_bt.hub import BroadcastHub
from n26a_bt.radio import BleakRadio
from n26a_bt.scheduler import ScanScheduler
from n26a_bt.web import create_app, start_site

_logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="n26a-bt",
        description="Count nearby Bluetooth LE devices, stream snapshots and report occupancy.",
    )
    parser.add_argument(
        "--locate",
        type=int,
        default=UNSET_LOCATION_ID,
        help="Location ID for logging (default: $N26A_BT_LOCATE_ID or prompt)",
    )
    parser.add_argument("--host", help="Bind address for the web page (default: localhost)")
    parser.add_argument("--port", type=int, help="Port for the web page (default: 2829)")
    parser.add_argument("--adapter", help="Bluetooth adapter, e.g. hci0 (default: system default)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=BUILD_MESSAGE)
    return parser.parse_args(argv)


def resolve_location_id(
    flag_value: int,
    env: Mapping[str, str],
    prompt: Callable[[str], str] = input,
) -> int:
    """Pick the location id: flag, then environment, then prompt.

    An invalid prompt answer keeps the unset value ``-1``.
    """
    if flag_value != UNSET_LOCATION_ID:
        return flag_value

    raw = env.get("N26A_BT_LOCATE_ID", "")
    try:
        env_value = int(raw)
    except ValueError:
        env_value = UNSET_LOCATION_ID
    if env_value != UNSET_LOCATION_ID:
        return env_value

    answer = prompt("Location ID: ")
    try:
        return int(answer.strip())
    except ValueError:
        print("Invalid input, using the default of -1.", file=sys.stderr)
        return UNSET_LOCATION_ID


def resolve_login(
    env: Mapping[str, str],
    prompt: Callable[[str], str] = input,
    secret_prompt: Callable[[str], str] = getpass.getpass,
) -> tuple[str, str]:
    """Login id and password from the environment, prompting for gaps."""
    user_id = env.get("N26A_BT_USERID", "")
    password = env.get("N26A_BT_PASS", "")
    if not user_id:
        user_id = prompt("User ID: ").strip()
    if not password:
        password = secret_prompt("Password: ")
    return user_id, password


async def run(config: N26aConfig, *, login_provider: LoginProvider | None = None) -> None:
    """Authenticate, then scan/report/broadcast forever.

    Raises
    ------
    N26aAuthError
        If no cached credential is valid and login fails.
    """
    hub = BroadcastHub()
    app = create_app(hub)

    async with N26aClient(config, login_provider=login_provider) as client:
        await client.ensure_credential()

        aggregator = ScanAggregator(
            BleakRadio(adapter=config.adapter),
            rssi_threshold=config.rssi_threshold,
            scan_window=config.scan_window,
            stop_grace=config.stop_grace,
        )
        scheduler = ScanScheduler(
            aggregator,
            hub,
            report=client.report,
            report_every=config.report_every,
            cycle_interval=config.cycle_interval,
        )

        runner = await start_site(app, config.host, config.port)
        try:
            await scheduler.run_forever()
        finally:
            await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    env = os.environ
    location_id = resolve_location_id(args.locate, env)

    overrides: dict[str, object] = {"location_id": location_id}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.adapter:
        overrides["adapter"] = args.adapter

    try:
        config = N26aConfig.from_env(**overrides)
    except N26aConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    # prompted only if the cached credential cannot be reused
    login_provider = None if config.has_login else functools.partial(resolve_login, env)

    _logger.info("%s starting (location=%d)", BUILD_MESSAGE, config.location_id)
    try:
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(run(config, login_provider=login_provider))
    except N26aAuthError as exc:
        print(f"Error: credential scan failed: {exc}", file=sys.stderr)
        return 1
    except N26aFatalInitError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0
