#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
# pylint: disable=too-many-instance-attributes
"""
Synchronization between the canonical state and the device.

The SyncController owns the application state and is the only place it
is mutated. Local edits are applied immediately through the reducer and
then pushed to the device after a debounce window; the device is polled
on a fixed period and its state reconciled back, except while a control
is being dragged.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import contextmanager

from traitlets import Bool, HasTraits, Instance

from grundig1 import actions as A
from grundig1.convert import (
    from_device_wire,
    generators_to_wire,
    merge_wire,
    output_to_wire,
    peq_to_wire,
    sequencer_to_wire,
    to_device_wire,
)
from grundig1.gateway import DeviceError
from grundig1.log import Log
from grundig1.prefs import SyncConfig
from grundig1.presets import get_crossover_preset, get_graphic_eq_preset
from grundig1.reducer import reduce
from grundig1.state import CanonicalState, create_initial_state
from grundig1.types import CHANNELS, PresetType, channel_number
from grundig1.util import Signal, Ticker, cancel_task, ensure_future

# Where the state came from at startup
SOURCE_DEVICE = "device"
SOURCE_SNAPSHOT = "snapshot"
SOURCE_DEFAULTS = "defaults"


class SyncController(HasTraits):
    """
    Owns the canonical state and keeps it in sync with the device.

    Outbound, every dispatched action with a device counterpart takes the
    single pending slot, replacing whatever was there, and (re)arms the
    push timer. When the timer fires, only the latest (action, state)
    pair is sent. A push never starts while another is in flight.

    Inbound, the device state is pulled every poll_interval seconds and
    reconciled with SYNC_FROM_ARDUINO. Ticks are skipped while dragging
    is set, and a pull which completes during a drag is discarded.

    Failures never propagate: they are reflected in state.sync_status.

    Observe the "state" trait to be notified of every change.
    """

    state = Instance(CanonicalState)
    dragging = Bool(False)
    running = Bool(False)

    def __init__(self, gateway, prefs=None, config: SyncConfig | None = None,
                 initial_state: CanonicalState | None = None, clock=time.time, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self._gateway = gateway
        self._prefs = prefs
        if config is None:
            config = prefs.sync_config if prefs is not None else SyncConfig()
        self._config = config
        self._clock = clock
        self._logger = Log.get("grundig1.sync")

        self._pending = None
        self._push_task = None
        self._inflight = None
        self._save_task = None
        self._poll_task = None
        self._ws = None
        self._last_wire = None

        # fired with the new state after each reconciliation with the device
        self.synced = Signal()

        self._pushers = {
            A.SetMaster: self._push_master,
            A.SetGraphicEq: self._push_graphic_eq,
            A.SetGraphicEqBand: self._push_graphic_eq,
            A.SetInputPeq: self._push_input_peq,
            A.SetChannelRoute: self._push_channel,
            A.SetChannelXover: self._push_channel,
            A.SetChannelPeq: self._push_channel,
            A.SetChannelDelay: self._push_channel,
            A.SetChannelPolarity: self._push_channel,
            A.SetChannelLimiter: self._push_channel,
            A.SetChannelGain: self._push_channel,
            A.SetChannelMute: self._push_channel,
            A.SetGenerator: self._push_generators,
            A.SetSequencer: self._push_sequencer,
            A.LoadPreset: self._push_preset,
            A.LoadUserPreset: self._push_all,
            A.SetPasswordLocked: self._push_lock,
        }

        self.state = initial_state if initial_state is not None else create_initial_state()

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def gateway(self):
        return self._gateway

    @property
    def pending(self):
        """
        The (action, state) pair waiting to be pushed, or None
        """
        return self._pending

    # ─────────────────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────────────────

    def is_pushed(self, action: A.Action) -> bool:
        """
        Whether an action is mirrored to the device
        """
        return type(action) not in A.LOCAL_ACTIONS and type(action) in self._pushers

    def dispatch(self, action: A.Action) -> CanonicalState:
        """
        Apply an action to the state, and queue the matching device push.

        :return: The new state
        """
        old = self.state
        new = reduce(old, action)
        self.state = new

        if self.is_pushed(action):
            self._pending = (action, new)
            self._schedule_push()

        # sync status is not persisted
        if new._replace(sync_status=old.sync_status) != old:
            self._schedule_save()

        return new

    def save_user_preset(self, name: str | None = None) -> CanonicalState:
        """
        Save the current state as a user preset, stamped with the current time
        """
        return self.dispatch(A.SaveUserPreset(name=name, timestamp=self._clock()))

    # ─────────────────────────────────────────────────────────────────────────
    # Interaction
    # ─────────────────────────────────────────────────────────────────────────

    def begin_interaction(self):
        """
        A control started a drag gesture. Device pulls are suspended
        until end_interaction() is called.
        """
        self.dragging = True

    def end_interaction(self):
        self.dragging = False

    @contextmanager
    def interaction(self):
        self.begin_interaction()
        try:
            yield self
        finally:
            self.end_interaction()

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    async def start(self) -> str | None:
        """
        Reconcile the initial state and start the poll timer.

        :return: Where the initial state came from: "device", "snapshot" or "defaults",
                 or None if the controller was already running
        """
        if self.running:
            return None

        self.running = True
        source = await self.reconcile_startup()
        self._poll_task = ensure_future(self._poll_loop())

        if self._config.realtime:
            self._ws = self._gateway.connect_ws(self._on_realtime)

        self._logger.info("Sync started (%s), polling every %.1fs", source, self._config.poll_interval)
        return source

    async def stop(self):
        """
        Tear down the timers. A pending snapshot save is written out now,
        a pending push is dropped.
        """
        self.running = False

        save_pending = self._save_task is not None and not self._save_task.done()
        for task in (self._poll_task, self._push_task, self._save_task):
            await cancel_task(task)
        self._poll_task = self._push_task = self._save_task = None

        if save_pending:
            self.save_now()

        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def reconcile_startup(self) -> str:
        """
        Take the initial state from the device, falling back to the last
        saved snapshot, falling back to the defaults.
        """
        if await self.pull():
            return SOURCE_DEVICE

        snapshot = self._prefs.load_snapshot() if self._prefs is not None else None
        if snapshot is not None:
            self.dispatch(A.RestoreState(state=snapshot))
            self._logger.info("Device unreachable, restored saved state")
            return SOURCE_SNAPSHOT

        self._logger.info("Device unreachable, using defaults")
        return SOURCE_DEFAULTS

    # ─────────────────────────────────────────────────────────────────────────
    # Inbound
    # ─────────────────────────────────────────────────────────────────────────

    async def _poll_loop(self):
        ticker = Ticker(self._config.poll_interval)
        while True:
            await ticker.tick()
            with ticker:
                if self.dragging:
                    self._logger.debug("Interaction in progress, skipping pull")
                    continue
                try:
                    await self.pull()

                except Exception as err:
                    self._logger.exception("Poll tick failed, retrying next tick", exc_info=err)

    async def pull(self) -> bool:
        """
        Fetch the device state and reconcile it into the canonical state.

        :return: True if the state was reconciled
        """
        if self.dragging:
            return False

        try:
            wire = await self._gateway.fetch_full_state()
        except (DeviceError, ValueError, TypeError) as err:
            self._logger.warning("Pull from device failed: %s", err)
            self.dispatch(A.SetSyncStatus(connected=False, error=str(err)))
            return False

        return self._reconcile(wire)

    def _reconcile(self, wire) -> bool:
        try:
            state = from_device_wire(wire)
        except (ValueError, TypeError, ArithmeticError) as err:
            self._logger.warning("Could not convert device state: %s", err)
            self.dispatch(A.SetSyncStatus(connected=False, error=str(err)))
            return False

        if state is None:
            self._logger.debug("Ignoring malformed device state: %r", wire)
            return False

        # the drag may have started while the request was in flight
        if self.dragging:
            self._logger.debug("Interaction in progress, discarding pulled state")
            return False

        self._last_wire = wire
        self.dispatch(A.SyncFromArduino(state=state, timestamp=self._clock()))
        self.synced.fire(self.state)
        return True

    def _on_realtime(self, message: dict):
        base = self._last_wire
        if base is None:
            base = to_device_wire(self.state)
        self._reconcile(merge_wire(base, message))

    # ─────────────────────────────────────────────────────────────────────────
    # Outbound
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _loop_running() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    def _schedule_push(self):
        # without a loop the pending push waits for an explicit flush()
        if not self._loop_running():
            return
        if self._push_task is not None and not self._push_task.done():
            self._push_task.cancel()
        self._push_task = ensure_future(self._push_later())

    async def _push_later(self):
        await asyncio.sleep(self._config.push_delay)
        await self.flush()

    async def flush(self) -> bool | None:
        """
        Push the pending action now, after any push already in flight.

        :return: True if the push succeeded, False if it failed, None if
                 nothing was pending
        """
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait([self._inflight])

        if self._pending is None:
            return None

        action, state = self._pending
        self._pending = None
        self._inflight = ensure_future(self._push(action, state))
        await asyncio.wait([self._inflight])
        return self._inflight.result()

    async def _push(self, action: A.Action, state: CanonicalState) -> bool:
        self._logger.debug("Pushing %s", action.type)
        try:
            await self._pushers[type(action)](action, state)
        except (DeviceError, ValueError, TypeError) as err:
            self._logger.warning("Push of %s failed: %s", action.type, err)
            self.dispatch(A.SetSyncStatus(connected=False, error=str(err)))
            return False

        self.dispatch(A.SetSyncStatus(connected=True, error=None))
        return True

    async def _push_master(self, action, state):
        await self._gateway.set_master(state.global_.master)

    async def _push_graphic_eq(self, action, state):
        await self._gateway.set_input_geq(state.input.graphic_eq)

    async def _push_input_peq(self, action, state):
        await self._gateway.set_input_peq(peq_to_wire(state.input.peq))

    async def _push_output(self, channel: str, state):
        await self._gateway.set_output(
            channel_number(channel), output_to_wire(state.outputs[channel])
        )

    async def _push_channel(self, action, state):
        if channel_number(action.channel) is None:
            return
        await self._push_output(action.channel, state)

    async def _push_generators(self, action, state):
        await self._gateway.set_generators(generators_to_wire(state.generators))

    async def _push_sequencer(self, action, state):
        await self._gateway.set_sequencer(sequencer_to_wire(state.sequencer))

    async def _push_preset(self, action, state):
        preset_type = PresetType.parse(action.preset_type)
        if preset_type == PresetType.GRAPHIC_EQ:
            if get_graphic_eq_preset(action.index) is not None:
                await self._gateway.set_input_geq(state.input.graphic_eq, preset=action.index)
        elif preset_type == PresetType.CROSSOVER:
            if get_crossover_preset(action.index) is not None:
                for channel in CHANNELS:
                    await self._push_output(channel, state)

    async def _push_lock(self, action, state):
        if state.global_.password_locked:
            await self._gateway.set_lock(lock=True)
        else:
            await self._gateway.set_lock(lock=False, unlock=action.code)

    async def _push_all(self, action, state):
        """
        Upload every parameter group
        """
        gateway = self._gateway
        await gateway.set_master(state.global_.master)
        await gateway.set_input_geq(state.input.graphic_eq)
        await gateway.set_input_peq(peq_to_wire(state.input.peq))
        for channel in CHANNELS:
            await self._push_output(channel, state)
        await gateway.set_generators(generators_to_wire(state.generators))
        await gateway.set_sequencer(sequencer_to_wire(state.sequencer))

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────────

    def _schedule_save(self):
        if self._prefs is None or not self._loop_running():
            return
        if self._save_task is not None and not self._save_task.done():
            self._save_task.cancel()
        self._save_task = ensure_future(self._save_later())

    async def _save_later(self):
        await asyncio.sleep(self._config.save_delay)
        self.save_now()

    def save_now(self) -> bool:
        """
        Write the state snapshot immediately

        :return: True if it was written
        """
        if self._prefs is None:
            return False
        return self._prefs.save_snapshot(self.state)
