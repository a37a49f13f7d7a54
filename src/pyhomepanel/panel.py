"""Device panel view-model.

Holds the last confirmed state of every device and turns user intents
(switch flips, voice commands) into store writes.

Writes are never applied locally. A switch flip or a recognized command
sends one ``set`` to the store and returns; the snapshot only changes when
the store echoes the new value back through its subscription.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import Any

from pyhomepanel._constants import NO_TRANSCRIPT_TEXT, RECOGNIZED_TEXT_PROMPT
from pyhomepanel._speech.base import SpeechService
from pyhomepanel._store.base import DeviceStore
from pyhomepanel.interpreter import interpret
from pyhomepanel.models.device import Device, DeviceCommand, is_checked
from pyhomepanel.models.speech import SpeechResult, SpeechStatus
from pyhomepanel.state.events import StoreNotification
from pyhomepanel.state.snapshot import DeviceSnapshot

_logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class DevicePanel:
    """View-model bound to a device store and an optional speech service.

    Usage::

        panel = DevicePanel(store, speech)
        panel.add_listener(redraw)
        await panel.start()
        panel.toggle(Device.LIGHT, checked=True)
        await panel.start_voice_command()
    """

    def __init__(self, store: DeviceStore, speech: SpeechService | None = None) -> None:
        self._store = store
        self._speech = speech
        self._snapshot = DeviceSnapshot()
        self._listeners: list[ChangeListener] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._pending_writes: set[asyncio.Task[None]] = set()
        self._speech_task: asyncio.Task[SpeechResult] | None = None
        self._speech_token = 0
        self.recognized_text: str = RECOGNIZED_TEXT_PROMPT
        self.status_message: str | None = None
        self.last_write_error: BaseException | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to store changes and start the store."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_notification)
        await self._store.start()

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_speech()
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
        await self._store.close()

    async def __aenter__(self) -> DevicePanel:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> DeviceSnapshot:
        return self._snapshot

    def state(self, device: Device) -> str:
        return self._snapshot[device]

    def is_checked(self, device: Device) -> bool:
        """Switch position implied by the device's confirmed state."""
        return is_checked(device, self._snapshot[device])

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback fired whenever anything displayed changes."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                _logger.debug("Panel listener failed", exc_info=True)

    def clear_status(self) -> None:
        if self.status_message is not None:
            self.status_message = None
            self._notify()

    def _on_notification(self, notification: StoreNotification) -> None:
        changed = self._snapshot.apply(notification)
        _logger.debug(
            "Store notification source=%s path=%s changed=%s",
            notification.source,
            notification.path,
            sorted(device.value for device in changed),
        )
        if changed:
            self._notify()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def toggle(self, device: Device, checked: bool) -> asyncio.Task[None]:
        """Write the value for flipping *device*'s switch to *checked*."""
        return self.submit(DeviceCommand.from_toggle(device, checked))

    def submit(self, command: DeviceCommand) -> asyncio.Task[None]:
        """Send *command* to the store without waiting for it.

        Must be called from the running event loop. The returned task can be
        awaited by callers that care; failures are recorded on the panel
        either way.
        """
        task = asyncio.get_running_loop().create_task(self._store.set(command.device, command.state))
        self._pending_writes.add(task)
        task.add_done_callback(functools.partial(self._on_write_done, command))
        return task

    def _on_write_done(self, command: DeviceCommand, task: asyncio.Task[None]) -> None:
        self._pending_writes.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        _logger.warning("Store write %s=%s failed: %s", command.device.value, command.state, exc)
        self.last_write_error = exc
        self.status_message = f"Failed to update {command.device.value}"
        self._notify()

    # ------------------------------------------------------------------
    # Voice commands
    # ------------------------------------------------------------------

    def handle_transcript(self, transcript: str) -> DeviceCommand | None:
        """Show *transcript* and write the command it maps to, if any."""
        self.recognized_text = transcript
        self._notify()
        command = interpret(transcript)
        if command is not None:
            _logger.debug("Voice command %s=%s", command.device.value, command.state)
            self.submit(command)
        return command

    def handle_speech_result(self, result: SpeechResult) -> DeviceCommand | None:
        if result.status != SpeechStatus.RECOGNIZED:
            _logger.debug("Speech request ended status=%s message=%s", result.status, result.message)
            return None
        return self.handle_transcript(result.transcript or NO_TRANSCRIPT_TEXT)

    def _cancel_speech(self) -> None:
        task = self._speech_task
        self._speech_task = None
        if task is not None and not task.done():
            task.cancel()

    async def start_voice_command(self) -> SpeechResult | None:
        """Run one speech request and act on its transcript.

        Starting a new request cancels the one in flight; a superseded
        request resolves to ``None`` and its result is discarded. Failures to
        launch recognition are shown as a status message and never raised.
        """
        self._speech_token += 1
        token = self._speech_token
        self._cancel_speech()
        self.clear_status()

        if self._speech is None:
            self.status_message = "Error: voice commands are not available"
            self._notify()
            return None

        task = asyncio.get_running_loop().create_task(self._speech.recognize())
        self._speech_task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if token != self._speech_token:
                return None
            raise
        except Exception as exc:
            if token != self._speech_token:
                return None
            _logger.debug("Speech request failed", exc_info=True)
            self.status_message = f"Error: {exc}"
            self._notify()
            return None
        finally:
            if self._speech_task is task:
                self._speech_task = None

        if token != self._speech_token:
            return None
        self.handle_speech_result(result)
        return result

    async def wait_for_writes(self) -> None:
        """Wait until every write issued so far has completed."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
