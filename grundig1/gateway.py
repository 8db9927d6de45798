#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Device gateway: typed access to the console's REST surface.

The gateway is asynchronous, but the default transport is a blocking
requests session; calls are run on a small thread pool so that the
event loop is never stalled by a slow or unreachable device. Every
failure, whether an HTTP error status, a timeout or a network error,
is raised as a DeviceError.
"""

from __future__ import annotations

import asyncio
import functools
import json
from concurrent import futures

import requests
import websockets
from websockets.exceptions import WebSocketException

from grundig1.log import LOG_PROTOCOL_TRACE, Log
from grundig1.util import ensure_future

DEFAULT_BASE_URL = "http://192.168.1.42"

# Request timeouts, in seconds
PING_TIMEOUT = 1.5
STATUS_TIMEOUT = 3.0
STATE_TIMEOUT = 5.0
WRITE_TIMEOUT = 5.0


class DeviceError(Exception):
    """
    A device call failed

    :param message: Description of the failure
    :param status: HTTP status code, if a response was received
    :param body: Response body text, if a response was received
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


def normalize_base_url(url: str) -> str:
    """
    Strip surrounding whitespace and trailing slashes from a base URL
    """
    return url.strip().rstrip("/")


def to_ws_url(url: str) -> str:
    """
    Map an http(s) base URL to the matching ws(s) URL
    """
    if url.startswith("https:"):
        return "wss:" + url[len("https:") :]
    if url.startswith("http:"):
        return "ws:" + url[len("http:") :]
    return url


class WsConnection:
    """
    Best-effort realtime channel to the device.

    Each JSON object received is handed to the callback. Connection
    failures end the channel quietly, and frames which are not valid
    JSON objects are skipped; callers keep polling regardless.
    """

    def __init__(self, url: str, on_message, logger=None):
        self._url = url
        self._on_message = on_message
        self._logger = logger if logger is not None else Log.get("grundig1.gateway")
        self._task = None
        self._connected = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        """
        True while the websocket is open
        """
        return self._connected

    def start(self):
        if self._task is None or self._task.done():
            self._task = ensure_future(self._run())
        return self

    async def _run(self):
        try:
            async with websockets.connect(self._url) as ws:
                self._connected = True
                self._logger.debug("Realtime channel open: %s", self._url)
                async for raw in ws:
                    self._dispatch(raw)
        except (OSError, asyncio.TimeoutError, WebSocketException) as err:
            self._logger.debug("Realtime channel unavailable (%s): %s", self._url, err)
        finally:
            self._connected = False

    def _dispatch(self, raw):
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            self._logger.debug("Ignoring malformed realtime frame")
            return
        if not isinstance(message, dict):
            return
        self._on_message(message)

    async def close(self):
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


class HttpTransport:
    """
    Blocking JSON-over-HTTP transport built on a requests session.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, session: requests.Session | None = None):
        self._base_url = normalize_base_url(base_url)
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, url: str):
        self._base_url = normalize_base_url(url)

    def request(self, path: str, method: str = "GET", body=None, timeout: float = WRITE_TIMEOUT):
        """
        Perform a request against the device.

        :param path: Path relative to the base URL, e.g. "/api/state"
        :param method: HTTP method
        :param body: Object to send as a JSON body, or None
        :param timeout: Timeout in seconds

        :return: Decoded JSON for JSON responses, text otherwise
        :raises DeviceError: on any failure
        """
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(method, url, json=body, timeout=timeout)
        except requests.Timeout as err:
            raise DeviceError(f"Timeout after {timeout}s: {method} {path}") from err
        except requests.RequestException as err:
            raise DeviceError(f"Request failed: {err}") from err

        if not resp.ok:
            text = resp.text
            raise DeviceError(f"HTTP {resp.status_code}: {text or resp.reason}", resp.status_code, text)

        if "application/json" in resp.headers.get("content-type", ""):
            try:
                return resp.json()
            except ValueError as err:
                raise DeviceError(f"Invalid JSON from {path}", resp.status_code, resp.text) from err
        return resp.text

    def connect(self, on_message) -> WsConnection:
        """
        Open the realtime channel at <base>/ws
        """
        return WsConnection(f"{to_ws_url(self._base_url)}/ws", on_message).start()

    def close(self):
        self._session.close()


class DeviceGateway:
    """
    Asynchronous, typed operations on the device.

    :param transport: Object providing request(path, method, body, timeout)
                      and, optionally, connect(on_message)
    """

    def __init__(self, transport, executor: futures.Executor | None = None):
        self._transport = transport
        self._logger = Log.get("grundig1.gateway")
        self._own_executor = executor is None
        self._executor = executor if executor is not None else futures.ThreadPoolExecutor(max_workers=4)

    @property
    def transport(self):
        return self._transport

    @property
    def base_url(self) -> str | None:
        return getattr(self._transport, "base_url", None)

    @base_url.setter
    def base_url(self, url: str):
        self._transport.base_url = url

    async def _request(self, path: str, method: str = "GET", body=None, timeout: float = WRITE_TIMEOUT):
        if self._logger.isEnabledFor(LOG_PROTOCOL_TRACE):
            self._logger.log(LOG_PROTOCOL_TRACE, "--> %s %s %s", method, path, body)

        call = functools.partial(self._transport.request, path, method=method, body=body, timeout=timeout)
        result = await asyncio.get_running_loop().run_in_executor(self._executor, call)

        if self._logger.isEnabledFor(LOG_PROTOCOL_TRACE):
            self._logger.log(LOG_PROTOCOL_TRACE, "<-- %s %s", path, result)
        return result

    async def _post(self, path: str, body, timeout: float = WRITE_TIMEOUT):
        return await self._request(path, method="POST", body=body, timeout=timeout)

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    async def fetch_status(self):
        """
        Short device status (name, uptime, volume)
        """
        return await self._request("/api/status", timeout=STATUS_TIMEOUT)

    async def fetch_full_state(self):
        """
        The complete device state document
        """
        return await self._request("/api/state", timeout=STATE_TIMEOUT)

    async def ping(self) -> bool:
        """
        Check whether the device answers at all

        :return: True if the status call succeeded
        """
        try:
            await self._request("/api/status", timeout=PING_TIMEOUT)
        except DeviceError:
            return False
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Parameter groups
    # ─────────────────────────────────────────────────────────────────────────

    async def set_volume(self, volume: float):
        return await self._post("/api/volume", {"volume": volume})

    async def set_master(self, level_pct: float):
        """
        Set the master level, in percent (0 - 100)
        """
        return await self._post("/api/master", {"levelPct": level_pct})

    async def set_input_geq(self, bands, preset: int | None = None):
        """
        Set the fifteen input graphic EQ bands, in dB

        :param bands: Sequence of band gains
        :param preset: Index of the factory curve the bands came from
        """
        body = {"bands": list(bands)}
        if preset is not None:
            body["preset"] = preset
        return await self._post("/api/input/geq", body)

    async def set_input_peq(self, peq: dict):
        """
        Set the input parametric EQ, given as {f, g, q}
        """
        return await self._post("/api/input/peq", dict(peq))

    async def set_output(self, ch: int, settings: dict):
        """
        Set the settings bundle of an output channel

        :param ch: Channel number, 1 - 4
        :param settings: route, hpf, lpf, peq, delayMs, invert, limiter, gainDb, mute
        """
        return await self._post("/api/output", {"ch": ch, **settings})

    async def set_generators(self, gen: dict):
        return await self._post("/api/gen", dict(gen))

    async def set_sequencer(self, seq: dict):
        return await self._post("/api/seq", dict(seq))

    async def update_battery(self, voltage: float):
        return await self._post("/api/battery", {"v": voltage})

    async def set_lock(self, set_code: str | None = None, lock: bool | None = None, unlock: str | None = None):
        """
        Manage the front panel password lock

        :param set_code: New six digit code
        :param lock: Engage (True) or release (False) the lock
        :param unlock: Code to release the lock with
        """
        body = {}
        if set_code is not None:
            body["setCode"] = set_code
        if lock is not None:
            body["lock"] = lock
        if unlock is not None:
            body["unlock"] = unlock
        return await self._post("/api/lock", body)

    # ─────────────────────────────────────────────────────────────────────────
    # Device preset slots
    # ─────────────────────────────────────────────────────────────────────────

    async def save_preset(self, slot: int, name: str = "Preset"):
        return await self._post("/api/preset/save", {"slot": slot, "name": name})

    async def load_preset(self, slot: int):
        return await self._post("/api/preset/load", {"slot": slot})

    async def copy_preset(self, src: int, dst: int):
        return await self._post("/api/preset/copy", {"from": src, "to": dst})

    async def command(self, action: str, args: dict | None = None):
        """
        Run a generic firmware command
        """
        return await self._post("/api/command", {"action": action, "args": args or {}})

    # ─────────────────────────────────────────────────────────────────────────
    # Realtime channel
    # ─────────────────────────────────────────────────────────────────────────

    def connect_ws(self, on_message):
        """
        Open the optional realtime channel.

        :return: A connection handle with an async close(), or None if the
                 transport has no realtime channel or it could not be opened
        """
        connect = getattr(self._transport, "connect", None)
        if connect is None:
            return None
        try:
            return connect(on_message)
        except (OSError, ValueError, RuntimeError, DeviceError) as err:
            self._logger.debug("Realtime channel not available: %s", err)
            return None

    def close(self):
        if self._own_executor:
            self._executor.shutdown(wait=False)
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()
