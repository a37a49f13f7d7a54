#!/usr/bin/env python3
"""Passive store probe for device-state change observation.

Connects to the configured store (``HOMEPANEL_*`` variables or flags),
subscribes to changes and prints every notification as one JSON line.
Nothing is written to the store.

Use this to check what a backend actually delivers: whether the first
notification carries the full record, and how partial updates look.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyhomepanel import PanelConfig, PanelConfigError, StoreNotification, build_store  # noqa: E402
from pyhomepanel.state.snapshot import DeviceSnapshot  # noqa: E402

_LOG = logging.getLogger("store_probe")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--store", choices=("firebase", "mqtt"), help="Store backend")
    parser.add_argument("--database-url", help="Firebase Realtime Database URL")
    parser.add_argument("--duration", type=float, default=60.0, help="Seconds to listen (0 = until Ctrl-C)")
    parser.add_argument("--snapshot", action="store_true", help="Also print the merged device snapshot")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _probe(config: PanelConfig, duration: float, show_snapshot: bool) -> int:
    store = build_store(config)
    snapshot = DeviceSnapshot()
    started = time.monotonic()
    count = 0

    def _on_notification(notification: StoreNotification) -> None:
        nonlocal count
        count += 1
        record: dict[str, Any] = {
            "t": round(time.monotonic() - started, 3),
            "source": notification.source.value,
            "path": notification.path,
            "data": notification.data,
        }
        if show_snapshot:
            snapshot.apply(notification)
            record["snapshot"] = snapshot.as_dict()
        print(json.dumps(record), flush=True)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    store.subscribe(_on_notification)
    await store.start()
    try:
        if duration > 0:
            try:
                await asyncio.wait_for(stop.wait(), duration)
            except TimeoutError:
                pass
        else:
            await stop.wait()
    finally:
        await store.close()

    _LOG.info("Received %d notifications in %.1fs", count, time.monotonic() - started)
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides: dict[str, Any] = {}
    if args.store:
        overrides["store"] = args.store
    if args.database_url:
        overrides["database_url"] = args.database_url
    try:
        config = PanelConfig.from_env(**overrides).validate()
    except PanelConfigError as exc:
        _LOG.error("Configuration error: %s", exc)
        return 2
    return asyncio.run(_probe(config, args.duration, args.snapshot))


if __name__ == "__main__":
    raise SystemExit(main())
