"""Console shell for the device panel.

Renders one row per device plus the last recognized voice command, and
reads commands from stdin::

    door on | door off        flip the door switch
    light on | light off      flip the light switch
    window on | window off    flip the window switch
    voice                     start a voice command
    say <text>                run <text> as if it had been spoken
    show                      redraw the panel
    quit                      exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pyhomepanel._speech import RecognizerSpeechService, request_microphone_access
from pyhomepanel._store import build_store
from pyhomepanel.config import STORE_KINDS, PanelConfig
from pyhomepanel.exceptions import PanelConfigError
from pyhomepanel.models.device import Device
from pyhomepanel.panel import DevicePanel

_logger = logging.getLogger(__name__)

_SWITCH_WORDS: dict[str, bool] = {"on": True, "off": False}

HELP_TEXT = "Commands: door|light|window on|off, voice, say <text>, show, quit"


def render(panel: DevicePanel) -> str:
    """Text rendering of the panel."""
    lines = ["Realtime Database", ""]
    for device in Device:
        switch = "on" if panel.is_checked(device) else "off"
        lines.append(f"  {device.label:<8}{panel.state(device):<10}[{switch}]")
    lines.append("")
    lines.append(f"Recognized: {panel.recognized_text}")
    if panel.status_message:
        lines.append(f"! {panel.status_message}")
    return "\n".join(lines)


class PanelShell:
    """Line-oriented front end for a :class:`DevicePanel`."""

    def __init__(self, panel: DevicePanel, *, write: Callable[[str], None] = print) -> None:
        self._panel = panel
        self._write = write
        self._voice_task: asyncio.Task[Any] | None = None

    def redraw(self) -> None:
        self._write(render(self._panel))

    def handle_line(self, line: str) -> bool:
        """Execute one command line; return ``False`` when the shell should exit."""
        text = line.strip()
        if not text:
            return True
        word, _, rest = text.partition(" ")
        word = word.lower()
        rest = rest.strip()

        if word in ("quit", "exit"):
            return False
        if word == "show":
            self.redraw()
            return True
        if word == "voice":
            self._panel.clear_status()
            self._voice_task = asyncio.get_running_loop().create_task(self._panel.start_voice_command())
            return True
        if word == "say":
            if rest:
                self._panel.clear_status()
                self._panel.handle_transcript(rest)
            else:
                self._write("Usage: say <text>")
            return True

        try:
            device = Device(word)
        except ValueError:
            self._write(HELP_TEXT)
            return True
        checked = _SWITCH_WORDS.get(rest.lower())
        if checked is None:
            self._write(f"Usage: {device.value} on|off")
            return True
        self._panel.clear_status()
        self._panel.toggle(device, checked)
        return True

    async def run(self, read_line: Callable[[], Awaitable[str]]) -> None:
        """Read and execute lines until ``quit`` or end of input."""
        remove = self._panel.add_listener(self.redraw)
        try:
            self.redraw()
            while True:
                line = await read_line()
                if not line:
                    break
                if not self.handle_line(line):
                    break
        finally:
            remove()
            if self._voice_task is not None and not self._voice_task.done():
                self._voice_task.cancel()


async def _read_stdin_line() -> str:
    return await asyncio.to_thread(sys.stdin.readline)


def _on_microphone_check_done(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        _logger.warning("Microphone check failed: %s", exc, exc_info=exc)


async def run_panel(config: PanelConfig) -> None:
    _logger.debug("Starting panel store=%s", config.store)
    store = build_store(config)
    speech = RecognizerSpeechService(config.speech)
    panel = DevicePanel(store, speech)
    loop = asyncio.get_running_loop()
    # Probe the microphone in the background; recognition does not wait for it.
    microphone_check = loop.run_in_executor(None, request_microphone_access)
    microphone_check.add_done_callback(_on_microphone_check_done)
    async with panel:
        await PanelShell(panel).run(_read_stdin_line)
    if not microphone_check.done():
        _logger.debug("Microphone check still running at exit")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyhomepanel",
        description="Control door, light and window state from a realtime database.",
    )
    parser.add_argument("--store", choices=STORE_KINDS, help="Store backend (default: HOMEPANEL_STORE or firebase)")
    parser.add_argument("--database-url", help="Firebase Realtime Database URL")
    parser.add_argument("--database-root", help="Path holding the device keys")
    parser.add_argument("--mqtt-host", help="MQTT broker host")
    parser.add_argument("--mqtt-port", type=int, help="MQTT broker port")
    parser.add_argument("--language", help="Speech recognition language (e.g. en-US)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.store:
        overrides["store"] = args.store
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.database_root is not None:
        overrides["database_root"] = args.database_root
    if args.mqtt_host:
        overrides["mqtt_host"] = args.mqtt_host
    if args.mqtt_port is not None:
        overrides["mqtt_port"] = args.mqtt_port
    if args.language:
        overrides["speech"] = {"language": args.language}

    try:
        config = PanelConfig.from_env(**overrides).validate()
    except PanelConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(run_panel(config))
    except KeyboardInterrupt:
        return 130
    return 0
