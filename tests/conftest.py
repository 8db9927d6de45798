# grundig1 test configuration and shared fixtures
from __future__ import annotations

import asyncio
import copy

import pytest

from grundig1.gateway import DeviceError
from grundig1.prefs import PreferenceManager
from grundig1.state import create_initial_state


def _output(route="A", gain_db=0.0):
    return {
        "route": route,
        "hpf": {"type": "LR", "slope": 24, "freq": 80, "enabled": True},
        "lpf": {"type": "BW", "slope": 12, "freq": 20000, "enabled": False},
        "peq": {"f": 1000, "g": 0, "q": 1.0},
        "delayMs": 0.5,
        "invert": False,
        "limiter": {"thr": -6, "atk": 5, "rel": 100, "auto": False, "en": True, "act": False},
        "gainDb": gain_db,
        "mute": False,
        "enabled": True,
    }


DEVICE_WIRE = {
    "master": 0.6,
    "xoPreset": 2,
    "locked": False,
    "firmware": "v1.2.8",
    "battery": {"v": 12.9, "min": 11.5, "max": 14.2},
    "seq": {"s1": True, "s2": True, "s3": False, "intervalMs": 1500},
    "input": {
        "geq": [1, 2, 3, 4, 5, 6, 7, 0, -1, -2, -3, -4, -5, -6, -7],
        "geqPreset": 3,
        "peq": {"f": 250, "g": -3, "q": 2.0},
    },
    "gen": {
        "sineEn": False,
        "sineHz": 440,
        "sineDb": -60,
        "sweepEn": True,
        "sweepStart": 50,
        "sweepEnd": 5000,
        "sweepDb": -18,
        "pinkEn": False,
        "pinkDb": -60,
    },
    "outputs": [_output("A"), _output("B", -3.0), _output("A+B", 6.0), _output("A")],
}


class FakeWs:
    """Stand-in for a realtime connection."""

    def __init__(self, on_message):
        self.on_message = on_message
        self.closed = False

    async def close(self):
        self.closed = True


class FakeGateway:
    """
    Device gateway double which records every call.

    Set `error` to make writes fail, `pull_error` to make reads fail,
    and `delay` to keep calls in flight for a while.
    """

    def __init__(self, wire=None):
        self.wire = wire
        self.calls = []
        self.error = None
        self.pull_error = None
        self.delay = 0.0
        self.active = 0
        self.max_active = 0
        self.ws = None

    def calls_named(self, name):
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    @property
    def call_names(self):
        return [name for name, _, _ in self.calls]

    async def _call(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
        finally:
            self.active -= 1

    async def fetch_full_state(self):
        self.calls.append(("fetch_full_state", (), {}))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.pull_error is not None:
            raise self.pull_error
        if self.wire is None:
            raise DeviceError("Request failed: unreachable")
        return copy.deepcopy(self.wire)

    async def fetch_status(self):
        return {"name": "Grundig1", "uptime": 42}

    async def set_master(self, level_pct):
        await self._call("set_master", level_pct)

    async def set_input_geq(self, bands, preset=None):
        await self._call("set_input_geq", tuple(bands), preset=preset)

    async def set_input_peq(self, peq):
        await self._call("set_input_peq", peq)

    async def set_output(self, ch, settings):
        await self._call("set_output", ch, settings)

    async def set_generators(self, gen):
        await self._call("set_generators", gen)

    async def set_sequencer(self, seq):
        await self._call("set_sequencer", seq)

    async def set_lock(self, set_code=None, lock=None, unlock=None):
        await self._call("set_lock", set_code=set_code, lock=lock, unlock=unlock)

    def connect_ws(self, on_message):
        self.ws = FakeWs(on_message)
        return self.ws

    def close(self):
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def initial_state():
    """The hardcoded default state."""
    return create_initial_state()


@pytest.fixture
def device_wire():
    """A complete device state document."""
    return copy.deepcopy(DEVICE_WIRE)


@pytest.fixture
def gateway(device_wire):
    """A reachable fake device."""
    return FakeGateway(device_wire)


@pytest.fixture
def offline_gateway():
    """A fake device which cannot be reached."""
    return FakeGateway()


@pytest.fixture
def prefs(tmp_path):
    """Preferences stored in a temporary directory."""
    return PreferenceManager(str(tmp_path / "preferences.yaml"))
