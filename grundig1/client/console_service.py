#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Console service layer for CLI commands.

Bridges the preferences, the device gateway and the sync controller,
and runs their coroutines to completion for the synchronous commands.
"""

from __future__ import annotations

import asyncio

from grundig1.convert import from_device_wire
from grundig1.gateway import DeviceError, DeviceGateway, HttpTransport, normalize_base_url
from grundig1.prefs import PreferenceManager
from grundig1.state import CanonicalState
from grundig1.sync import SyncController


class ConsoleService:
    """
    Service layer for console operations.

    :param prefs: Preference manager, created on first use if omitted
    :param transport: Transport for the gateway, an HttpTransport on the
                      configured base URL if omitted
    """

    def __init__(self, prefs: PreferenceManager | None = None, transport=None):
        self._prefs = prefs
        self._transport = transport
        self._base_url: str | None = None
        self._gateway: DeviceGateway | None = None

    @property
    def prefs(self) -> PreferenceManager:
        if self._prefs is None:
            self._prefs = PreferenceManager()
        return self._prefs

    @property
    def base_url(self) -> str:
        """
        The URL given on the command line, or else the saved one
        """
        if self._base_url is not None:
            return self._base_url
        return self.prefs.base_url

    def override_url(self, url: str | None):
        """
        Use a different device URL for this run only
        """
        self._base_url = normalize_base_url(url) if url else None

    @property
    def gateway(self) -> DeviceGateway:
        if self._gateway is None:
            transport = self._transport
            if transport is None:
                transport = HttpTransport(self.base_url)
            self._gateway = DeviceGateway(transport)
        return self._gateway

    def create_controller(self) -> SyncController:
        return SyncController(self.gateway, prefs=self.prefs)

    def close(self):
        if self._gateway is not None:
            self._gateway.close()
            self._gateway = None

    # ─────────────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────────────

    def status(self):
        return asyncio.run(self.gateway.fetch_status())

    def fetch_state(self) -> CanonicalState:
        """
        Pull and convert the device state

        :raises DeviceError: if the device is unreachable or the reply unusable
        """
        state = from_device_wire(asyncio.run(self.gateway.fetch_full_state()))
        if state is None:
            raise DeviceError("Device returned a malformed state")
        return state

    def apply(self, *actions) -> CanonicalState:
        """
        Apply actions on top of the current device state and push the
        result, as the interactive client would.

        :return: The resulting state
        :raises DeviceError: if the device could not be read or written
        """
        return asyncio.run(self._apply(actions))

    async def _apply(self, actions) -> CanonicalState:
        controller = self.create_controller()
        try:
            if not await controller.pull():
                raise DeviceError(controller.state.sync_status.error or "Device unreachable")

            for action in actions:
                controller.dispatch(action)

            if await controller.flush() is False:
                raise DeviceError(controller.state.sync_status.error or "Push failed")
        finally:
            await controller.stop()

        return controller.state

    def watch(self, on_state, on_status, count: int = 0):
        """
        Run the sync controller until interrupted, or until count
        device updates have been seen.

        :param on_state: Called with the new state after each device update
        :param on_status: Called with the sync status whenever it changes
        """
        return asyncio.run(self._watch(on_state, on_status, count))

    async def _watch(self, on_state, on_status, count: int) -> str:
        controller = self.create_controller()
        done = asyncio.Event()
        seen = 0

        def synced(state):
            nonlocal seen
            seen += 1
            on_state(state)
            if count and seen >= count:
                done.set()

        def state_changed(change):
            if change["old"].sync_status != change["new"].sync_status:
                on_status(change["new"].sync_status)

        controller.synced.connect(synced)
        controller.observe(state_changed, names=["state"])

        try:
            source = await controller.start()
            await done.wait()
        finally:
            await controller.stop()
        return source


_service: ConsoleService | None = None


def get_console_service() -> ConsoleService:
    """Get the singleton console service instance."""
    global _service
    if _service is None:
        _service = ConsoleService()
    return _service
