from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import pytest

from pyhomepanel import shell
from pyhomepanel._store.base import NotificationCallback, SubscriberSet
from pyhomepanel.config import PanelConfig
from pyhomepanel.models.device import Device
from pyhomepanel.panel import DevicePanel
from pyhomepanel.shell import HELP_TEXT, PanelShell, main, render
from pyhomepanel.state.events import StoreNotification, StoreSource


class _FakeStore:
    def __init__(self) -> None:
        self.writes: list[tuple[Device, str]] = []
        self._subscribers = SubscriberSet()

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def get(self) -> StoreNotification:
        return StoreNotification(source=StoreSource.MEMORY)

    async def set(self, device: Device, value: str) -> None:
        self.writes.append((device, value))

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def emit(self, **data: str) -> None:
        self._subscribers.dispatch(StoreNotification(source=StoreSource.MEMORY, data=data))


def test_render_shows_rows_and_recognized_text() -> None:
    store = _FakeStore()
    panel = DevicePanel(store)
    panel._on_notification(StoreNotification(source=StoreSource.MEMORY, data={"light": "on"}))  # noqa: SLF001

    text = render(panel)

    assert text.splitlines()[0] == "Realtime Database"
    assert "Door    Unknown   [off]" in text
    assert "Light   on        [on]" in text
    assert "Recognized: Press the button and speak..." in text


@pytest.mark.asyncio
async def test_switch_commands_write_to_store() -> None:
    store = _FakeStore()
    panel = DevicePanel(store)
    shell = PanelShell(panel, write=lambda _text: None)

    assert shell.handle_line("light on")
    assert shell.handle_line("Door OFF")
    await panel.wait_for_writes()

    assert store.writes == [(Device.LIGHT, "on"), (Device.DOOR, "closed")]


@pytest.mark.asyncio
async def test_say_runs_transcript_through_interpreter() -> None:
    store = _FakeStore()
    panel = DevicePanel(store)
    shell = PanelShell(panel, write=lambda _text: None)

    shell.handle_line("say please set door open and light on now")
    await panel.wait_for_writes()

    assert store.writes == [(Device.DOOR, "open")]
    assert panel.recognized_text == "please set door open and light on now"


@pytest.mark.asyncio
async def test_unknown_input_prints_help() -> None:
    output: list[str] = []
    shell = PanelShell(DevicePanel(_FakeStore()), write=output.append)

    assert shell.handle_line("garage open")
    assert shell.handle_line("light dim")
    assert output == [HELP_TEXT, "Usage: light on|off"]
    assert not shell.handle_line("quit")


@pytest.mark.asyncio
async def test_run_redraws_on_store_changes() -> None:
    store = _FakeStore()
    panel = DevicePanel(store)
    output: list[str] = []
    shell = PanelShell(panel, write=output.append)
    lines = iter(["window on\n", "quit\n"])

    async def _read_line() -> str:
        line = next(lines)
        store.emit(window="open")
        return line

    await shell.run(_read_line)
    await panel.wait_for_writes()

    assert store.writes == [(Device.WINDOW, "open")]
    assert len(output) >= 2
    assert "Window  open      [on]" in output[-1]


def test_main_reports_config_error(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOMEPANEL_STORE", raising=False)
    monkeypatch.delenv("HOMEPANEL_DATABASE_URL", raising=False)

    assert main(["--store", "firebase"]) == 2
    assert "database_url" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_failed_microphone_check_is_logged(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="pyhomepanel.shell")

    def _no_audio() -> bool:
        raise RuntimeError("audio backend crashed")

    async def _eof() -> str:
        return ""

    monkeypatch.setattr(shell, "request_microphone_access", _no_audio)
    monkeypatch.setattr(shell, "RecognizerSpeechService", lambda settings: None)
    monkeypatch.setattr(shell, "_read_stdin_line", _eof)

    await shell.run_panel(PanelConfig(store="memory"))
    for _ in range(100):
        if "Microphone check failed" in caplog.text:
            break
        await asyncio.sleep(0.01)

    assert "audio backend crashed" in caplog.text
