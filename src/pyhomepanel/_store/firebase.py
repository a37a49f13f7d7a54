"""Firebase Realtime Database store over the REST API.

Reads and writes go through ``<database_url>/<path>.json``. Changes are
received from the REST streaming endpoint (``Accept: text/event-stream``),
which sends a ``put`` with the full record on connect and then a ``put`` or
``patch`` for every change.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import aiohttp

from pyhomepanel._constants import (
    SSE_EVENT_AUTH_REVOKED,
    SSE_EVENT_CANCEL,
    SSE_EVENT_KEEP_ALIVE,
    SSE_EVENT_PATCH,
    SSE_EVENT_PUT,
    USER_AGENT,
)
from pyhomepanel._redact import redact_for_log, redact_url
from pyhomepanel._store.base import NotificationCallback, SubscriberSet
from pyhomepanel._store.sse import ServerSentEvent, SseParser
from pyhomepanel.config import PanelConfig
from pyhomepanel.exceptions import PanelConfigError, StoreError, StoreTransportError
from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification, StoreSource

_logger = logging.getLogger(__name__)

# The database sends keep-alive events every 30 seconds.
_STREAM_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_read=90)


def _root_record(data: Any) -> dict[str, Any]:
    """Full record for a whole-tree replacement; absent devices become ``None``."""
    if not isinstance(data, dict):
        return {device.value: None for device in Device}
    return {device.value: data.get(device.value) for device in Device}


def notification_from_event(event: ServerSentEvent) -> StoreNotification | None:
    """Translate a ``put``/``patch`` stream event into a store notification.

    Returns ``None`` for events that carry no device data.
    """
    if event.event not in (SSE_EVENT_PUT, SSE_EVENT_PATCH):
        return None
    try:
        payload = json.loads(event.data)
    except json.JSONDecodeError:
        _logger.debug("Invalid JSON in %s event: %r", event.event, redact_for_log(event.data))
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("path"), str):
        _logger.debug("Unexpected %s payload shape: %r", event.event, redact_for_log(payload))
        return None

    path: str = payload["path"]
    data = payload.get("data")
    segments = [segment for segment in path.split("/") if segment]

    if not segments:
        if event.event == SSE_EVENT_PUT:
            record = _root_record(data)
        elif isinstance(data, dict):
            record = dict(data)
        else:
            return None
        return StoreNotification(source=StoreSource.FIREBASE, data=record, path="/")

    # A change below the device key (e.g. /door/extra) means the device
    # no longer holds a plain string.
    value = data if len(segments) == 1 and event.event == SSE_EVENT_PUT else None
    return StoreNotification(source=StoreSource.FIREBASE, data={segments[0]: value}, path=path)


class FirebaseStore:
    """Device store backed by a Firebase Realtime Database.

    Usage::

        async with FirebaseStore(config) as store:
            store.subscribe(print)
            await store.set(Device.LIGHT, "on")
    """

    def __init__(
        self,
        config: PanelConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if not config.database_url:
            raise PanelConfigError("database_url is required for the firebase store")
        self._config = config
        self._base_url = config.database_url.rstrip("/")
        self._external_session = session is not None
        self._http = session
        self._subscribers = SubscriberSet()
        self._stream_task: asyncio.Task[None] | None = None
        self._closed = False

    async def __aenter__(self) -> FirebaseStore:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Open the HTTP session and start listening for changes."""
        self._closed = False
        if self._http is None:
            self._http = aiohttp.ClientSession(headers={"user-agent": USER_AGENT})
        if self._stream_task is None or self._stream_task.done():
            self._stream_task = asyncio.get_running_loop().create_task(self._stream_loop())

    async def close(self) -> None:
        self._closed = True
        task = self._stream_task
        self._stream_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                _logger.debug("Change stream ended with an error", exc_info=True)
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_http(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise StoreError("Store not started. Use 'async with FirebaseStore(...) as store:'")
        return self._http

    def _url(self, *parts: str) -> str:
        segments = [p.strip("/") for p in (self._config.database_root, *parts) if p and p.strip("/")]
        url = f"{self._base_url}/{'/'.join(segments)}.json"
        if self._config.auth_token:
            url = f"{url}?{urlencode({'auth': self._config.auth_token})}"
        return url

    async def _request(self, method: str, url: str, path: str, *, body: str | None = None) -> Any:
        http = self._require_http()
        _logger.debug("%s %s", method, redact_url(url))
        try:
            async with http.request(method, url, data=body) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise StoreTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        path=path,
                    )
        except StoreTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise StoreTransportError(f"Request to {path} failed: {exc}", path=path) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreTransportError(f"Invalid JSON from {path}: {text[:200]}", path=path) from exc

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    async def get(self) -> StoreNotification:
        """Read the current device record."""
        data = await self._request("GET", self._url(), "/")
        return StoreNotification(source=StoreSource.FIREBASE, data=_root_record(data), path="/")

    async def set(self, device: Device, value: str) -> None:
        """Write *value* under the device key."""
        path = f"/{device.value}"
        await self._request("PUT", self._url(device.value), path, body=json.dumps(value))

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        return self._subscribers.add(callback)

    # ------------------------------------------------------------------
    # Change stream
    # ------------------------------------------------------------------

    async def _stream_loop(self) -> None:
        failures = 0
        while not self._closed:
            try:
                reconnect = await self._consume_stream()
                failures = 0
            except (StoreTransportError, aiohttp.ClientError, TimeoutError) as exc:
                failures += 1
                # First failure in a row at WARNING, repeats at DEBUG.
                level = logging.WARNING if failures == 1 else logging.DEBUG
                _logger.log(level, "Change stream dropped, retrying in %ss: %s", self._config.stream_retry_delay, exc)
                reconnect = True
            except Exception:
                failures += 1
                _logger.warning("Change stream failed, reconnecting", exc_info=True)
                reconnect = True
            if not reconnect or self._closed:
                return
            await asyncio.sleep(self._config.stream_retry_delay)

    async def _consume_stream(self) -> bool:
        """Read one streaming connection; return whether to reconnect afterwards."""
        http = self._require_http()
        url = self._url()
        _logger.debug("STREAM %s", redact_url(url))
        async with http.get(url, headers={"accept": "text/event-stream"}, timeout=_STREAM_TIMEOUT) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise StoreTransportError(
                    f"HTTP {resp.status} opening change stream: {text[:200]}",
                    status_code=resp.status,
                    path="/",
                )
            parser = SseParser()
            async for raw_line in resp.content:
                event = parser.feed_line(raw_line.decode("utf-8", errors="replace").rstrip("\r\n"))
                if event is None or event.event == SSE_EVENT_KEEP_ALIVE:
                    continue
                _logger.debug("Stream %s event: %s", event.event, redact_for_log(event.data))
                if event.event == SSE_EVENT_CANCEL:
                    _logger.warning("Change stream cancelled by the database: %s", event.data)
                    return False
                if event.event == SSE_EVENT_AUTH_REVOKED:
                    _logger.warning("Change stream credential expired, reconnecting")
                    return True
                notification = notification_from_event(event)
                if notification is not None:
                    self._subscribers.dispatch(notification)
        return True
