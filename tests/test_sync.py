#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#

"""Unit tests for grundig1.sync module."""

from __future__ import annotations

import asyncio

from grundig1 import actions as A
from grundig1.gateway import DeviceError
from grundig1.prefs import PreferenceManager, SyncConfig
from grundig1.reducer import reduce
from grundig1.state import create_initial_state
from grundig1.sync import SOURCE_DEFAULTS, SOURCE_DEVICE, SOURCE_SNAPSHOT, SyncController

# Timers which never fire on their own during a test
MANUAL = SyncConfig(push_delay=10, poll_interval=10, save_delay=10)

# Short debounce windows
FAST = SyncConfig(push_delay=0.02, poll_interval=10, save_delay=0.02)


def _controller(gateway, config=MANUAL, **kwargs):
    return SyncController(gateway, config=config, clock=lambda: 1234.0, **kwargs)


# ─────────────────────────────────────────────────────────────────────────────
# Dispatch and push
# ─────────────────────────────────────────────────────────────────────────────


class TestDispatch:
    """Local edits apply immediately and queue a push."""

    def test_optimistic_update(self, gateway):
        """The state changes before anything is sent."""
        ctl = _controller(gateway)
        state = ctl.dispatch(A.SetMaster(value=40))
        assert state.global_.master == 40
        assert ctl.state is state
        assert gateway.calls == []

    def test_pending_slot_holds_latest(self, gateway):
        """Each pushable action replaces the pending one."""
        ctl = _controller(gateway)
        ctl.dispatch(A.SetMaster(value=40))
        ctl.dispatch(A.SetGraphicEqBand(band=0, value=3))
        action, state = ctl.pending
        assert action == A.SetGraphicEqBand(band=0, value=3)
        assert state is ctl.state

    def test_local_actions_not_queued(self, gateway):
        """Local-only and sync actions never occupy the slot."""
        ctl = _controller(gateway)
        for action in (
            A.SetChannelEnabled(channel="ch1", enabled=False),
            A.SetVoltmeter(live=12.0),
            A.SaveUserPreset(name="x"),
            A.DeleteUserPreset(index=0),
            A.SetSyncStatus(connected=True),
            A.RestoreState(state=create_initial_state()),
            A.SyncFromArduino(state=create_initial_state()),
        ):
            ctl.dispatch(action)
            assert ctl.pending is None, action.type

    def test_flush_without_loop_at_dispatch(self, gateway):
        """An edit made without a running loop is pushed by flush()."""
        ctl = _controller(gateway)
        ctl.dispatch(A.SetMaster(value=130))
        assert asyncio.run(ctl.flush()) is True
        assert gateway.calls_named("set_master") == [((100,), {})]
        assert ctl.pending is None

    def test_flush_nothing_pending(self, gateway):
        """Flushing with nothing pending does nothing."""
        assert asyncio.run(_controller(gateway).flush()) is None
        assert gateway.calls == []

    def test_observers_notified(self, gateway):
        """Observers of the state trait see every change."""
        ctl = _controller(gateway)
        changes = []
        ctl.observe(lambda change: changes.append(change["new"]), names=["state"])
        ctl.dispatch(A.SetMaster(value=10))
        ctl.dispatch(A.SetMaster(value=10))
        assert [s.global_.master for s in changes] == [10]


class TestCoalescing:
    """Rapid edits collapse into one push of the latest state."""

    def test_rapid_band_edits(self, gateway):
        """Ten band edits inside the window give one EQ push."""

        async def run():
            ctl = _controller(gateway, config=FAST)
            for band in range(10):
                ctl.dispatch(A.SetGraphicEqBand(band=band, value=band))
            await asyncio.sleep(0.2)
            return ctl

        ctl = asyncio.run(run())
        calls = gateway.calls_named("set_input_geq")
        assert len(calls) == 1
        assert calls[0][0][0] == ctl.state.input.graphic_eq
        assert calls[0][0][0][:3] == (0, 1, 2)

    def test_last_action_wins(self, gateway):
        """Only the last action of a burst is mapped to a device call."""

        async def run():
            ctl = _controller(gateway, config=FAST)
            ctl.dispatch(A.SetMaster(value=10))
            ctl.dispatch(A.SetMaster(value=20))
            ctl.dispatch(A.SetChannelMute(channel="ch3", mute=True))
            await asyncio.sleep(0.2)

        asyncio.run(run())
        assert gateway.call_names == ["set_output"]
        ch, settings = gateway.calls_named("set_output")[0][0]
        assert ch == 3
        assert settings["mute"] is True

    def test_one_push_in_flight(self, gateway):
        """A push waits for the one already in flight."""
        gateway.delay = 0.05

        async def run():
            ctl = _controller(gateway)
            ctl.dispatch(A.SetMaster(value=10))
            first = asyncio.ensure_future(ctl.flush())
            await asyncio.sleep(0.01)
            ctl.dispatch(A.SetMaster(value=20))
            second = await ctl.flush()
            return await first, second

        assert asyncio.run(run()) == (True, True)
        assert gateway.max_active == 1
        assert gateway.calls_named("set_master") == [((10,), {}), ((20,), {})]


class TestPushMapping:
    """Each action kind is mirrored with the matching device call."""

    def _push(self, gateway, *actions):
        ctl = _controller(gateway)
        for action in actions:
            ctl.dispatch(action)
        asyncio.run(ctl.flush())
        return ctl

    def test_input_peq(self, gateway):
        """Input PEQ is sent as {f, g, q}."""
        self._push(gateway, A.SetInputPeq(freq=500, gain=2, q=3))
        assert gateway.calls_named("set_input_peq") == [(({"f": 500, "g": 2, "q": 3},), {})]

    def test_channel_bundle(self, gateway):
        """Channel edits send the whole bundle of that channel."""
        self._push(gateway, A.SetChannelDelay(channel="ch4", value=2.5))
        ((ch, settings), _) = gateway.calls_named("set_output")[0]
        assert ch == 4
        assert settings["delayMs"] == 2.5
        assert "enabled" not in settings

    def test_graphic_eq_preset(self, gateway):
        """A graphic EQ preset sends the curve with its index."""
        ctl = self._push(gateway, A.LoadPreset(preset_type="graphicEq", index=2))
        ((bands,), kwargs) = gateway.calls_named("set_input_geq")[0]
        assert bands == ctl.state.input.graphic_eq
        assert kwargs == {"preset": 2}

    def test_crossover_preset(self, gateway):
        """A crossover preset updates all four outputs."""
        self._push(gateway, A.LoadPreset(preset_type="crossover", index=1))
        assert [args[0] for args, _ in gateway.calls_named("set_output")] == [1, 2, 3, 4]

    def test_unknown_preset_not_sent(self, gateway):
        """An out of range preset sends nothing."""
        self._push(gateway, A.LoadPreset(preset_type="crossover", index=40))
        assert gateway.calls == []

    def test_generators_and_sequencer(self, gateway):
        """Generator and sequencer edits send their bundles."""
        self._push(gateway, A.SetGenerator(mode="pink", level_db=-12))
        self._push(gateway, A.SetSequencer(s3=True, interval_ms=250))
        gen = gateway.calls_named("set_generators")[0][0][0]
        seq = gateway.calls_named("set_sequencer")[0][0][0]
        assert gen["pinkEn"] is True and gen["pinkDb"] == -12 and gen["sineDb"] == -60
        assert seq == {"s1": True, "s2": False, "s3": True, "intervalMs": 250}

    def test_lock_and_unlock(self, gateway):
        """Locking and unlocking use the lock endpoint."""
        self._push(gateway, A.SetPasswordLocked(locked=True))
        self._push(gateway, A.SetPasswordLocked(locked=False, code="123456"))
        assert [kwargs for _, kwargs in gateway.calls_named("set_lock")] == [
            {"set_code": None, "lock": True, "unlock": None},
            {"set_code": None, "lock": False, "unlock": "123456"},
        ]

    def test_user_preset_full_upload(self, gateway):
        """Loading a user preset uploads every parameter group."""
        ctl = _controller(gateway)
        ctl.save_user_preset("mine")
        assert ctl.state.global_.user_presets[0].timestamp == 1234.0
        ctl.dispatch(A.LoadUserPreset(index=0))
        asyncio.run(ctl.flush())
        assert sorted(set(gateway.call_names)) == [
            "set_generators",
            "set_input_geq",
            "set_input_peq",
            "set_master",
            "set_output",
            "set_sequencer",
        ]
        assert len(gateway.calls_named("set_output")) == 4


class TestHealth:
    """Push outcomes are reflected in the sync status."""

    def test_failure_then_recovery(self, gateway):
        """A failed push records the error, a later success clears it."""
        ctl = _controller(gateway)
        gateway.error = DeviceError("HTTP 500: boom", 500)
        ctl.dispatch(A.SetMaster(value=50))
        assert asyncio.run(ctl.flush()) is False
        assert ctl.state.sync_status.connected is False
        assert ctl.state.sync_status.error == "HTTP 500: boom"
        assert ctl.state.global_.master == 50

        gateway.error = None
        ctl.dispatch(A.SetMaster(value=55))
        assert asyncio.run(ctl.flush()) is True
        assert ctl.state.sync_status.connected is True
        assert ctl.state.sync_status.error is None


# ─────────────────────────────────────────────────────────────────────────────
# Pull and reconciliation
# ─────────────────────────────────────────────────────────────────────────────


class TestPull:
    """Device state is pulled and reconciled."""

    def test_pull(self, gateway):
        """A pull replaces the state and marks the sync."""
        ctl = _controller(gateway)
        ctl.save_user_preset("keep")
        synced = []
        ctl.synced.connect(synced.append)

        assert asyncio.run(ctl.pull()) is True
        assert ctl.state.global_.master == 60
        assert ctl.state.sync_status.connected is True
        assert ctl.state.sync_status.last_sync == 1234.0
        assert [p.name for p in ctl.state.global_.user_presets] == ["keep"]
        assert synced == [ctl.state]

    def test_pull_failure(self, offline_gateway):
        """A failed pull records the error and keeps the state."""
        ctl = _controller(offline_gateway)
        before = ctl.state
        assert asyncio.run(ctl.pull()) is False
        assert ctl.state.sync_status.connected is False
        assert "unreachable" in ctl.state.sync_status.error
        assert ctl.state._replace(sync_status=before.sync_status) == before

    def test_huge_value_does_not_stop_polling(self, gateway):
        """A value too large to convert leaves the poll timer running."""
        config = SyncConfig(push_delay=10, poll_interval=0.02, save_delay=10)

        async def run():
            ctl = _controller(gateway, config=config)
            gateway.wire["master"] = 1e307
            await ctl.start()
            await asyncio.sleep(0.1)
            gateway.wire["master"] = 0.6
            polled = len(gateway.calls_named("fetch_full_state"))
            await asyncio.sleep(0.1)
            running = not ctl._poll_task.done()
            await ctl.stop()
            return ctl, polled, running

        ctl, polled, running = asyncio.run(run())
        assert running
        assert len(gateway.calls_named("fetch_full_state")) > polled
        assert ctl.state.global_.master == 60
        assert ctl.state.sync_status.connected is True

    def test_malformed_reply_ignored(self, gateway):
        """A reply which is not an object is ignored."""
        gateway.wire = ["not", "a", "state"]
        ctl = _controller(gateway)
        assert asyncio.run(ctl.pull()) is False
        assert ctl.state == create_initial_state()


class TestDragSuppression:
    """No device state is applied while a control is being dragged."""

    def test_pull_skipped(self, gateway):
        """No request is made while dragging."""
        ctl = _controller(gateway)
        ctl.begin_interaction()
        assert asyncio.run(ctl.pull()) is False
        assert gateway.calls == []

    def test_pull_completing_during_drag_discarded(self, gateway):
        """A reply arriving after a drag started is dropped."""
        gateway.delay = 0.05

        async def run():
            ctl = _controller(gateway)
            task = asyncio.ensure_future(ctl.pull())
            await asyncio.sleep(0.01)
            ctl.begin_interaction()
            ctl.dispatch(A.SetMaster(value=5))
            return ctl, await task

        ctl, result = asyncio.run(run())
        assert result is False
        assert ctl.state.global_.master == 5

    def test_interaction_context(self, gateway):
        """The context manager clears the flag on exit."""
        ctl = _controller(gateway)
        with ctl.interaction():
            assert ctl.dragging is True
        assert ctl.dragging is False
        assert asyncio.run(ctl.pull()) is True

    def test_poll_ticks_skipped(self, gateway):
        """Poll ticks during a drag make no request."""
        config = SyncConfig(push_delay=10, poll_interval=0.02, save_delay=10)

        async def run():
            ctl = _controller(gateway, config=config)
            await ctl.start()
            ctl.begin_interaction()
            gateway.calls.clear()
            await asyncio.sleep(0.15)
            dragging_calls = len(gateway.calls)
            ctl.end_interaction()
            await asyncio.sleep(0.15)
            await ctl.stop()
            return dragging_calls

        assert asyncio.run(run()) == 0
        assert len(gateway.calls_named("fetch_full_state")) >= 2


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────────────────────


class TestStartup:
    """Startup takes the device, else the snapshot, else the defaults."""

    def test_device(self, gateway, prefs):
        """A reachable device wins over a saved snapshot."""
        prefs.save_snapshot(reduce(create_initial_state(), A.SetMaster(value=11)))

        async def run():
            ctl = _controller(gateway, prefs=prefs)
            source = await ctl.start()
            await ctl.stop()
            return ctl, source

        ctl, source = asyncio.run(run())
        assert source == SOURCE_DEVICE
        assert ctl.state.global_.master == 60
        assert ctl.running is False

    def test_snapshot(self, offline_gateway, prefs):
        """The saved snapshot is used when the device is unreachable."""
        prefs.save_snapshot(reduce(create_initial_state(), A.SetMaster(value=11)))

        async def run():
            ctl = _controller(offline_gateway, prefs=prefs)
            source = await ctl.start()
            await ctl.stop()
            return ctl, source

        ctl, source = asyncio.run(run())
        assert source == SOURCE_SNAPSHOT
        assert ctl.state.global_.master == 11
        assert ctl.state.sync_status.connected is False
        assert ctl.state.sync_status.error is not None

    def test_defaults(self, offline_gateway):
        """Without device or snapshot the defaults stay."""

        async def run():
            ctl = _controller(offline_gateway)
            source = await ctl.start()
            await ctl.stop()
            return ctl, source

        ctl, source = asyncio.run(run())
        assert source == SOURCE_DEFAULTS
        assert ctl.state.global_ == create_initial_state().global_

    def test_second_start_is_noop(self, gateway):
        """Starting a running controller returns None and makes no request."""

        async def run():
            ctl = _controller(gateway)
            first = await ctl.start()
            calls = len(gateway.calls)
            second = await ctl.start()
            await ctl.stop()
            return first, second, calls

        first, second, calls = asyncio.run(run())
        assert first == SOURCE_DEVICE
        assert second is None
        assert len(gateway.calls) == calls

    def test_config_from_prefs(self, gateway, prefs):
        """Sync tuning is taken from the preferences."""
        prefs.sync_config = SyncConfig(poll_interval=7.0)
        assert SyncController(gateway, prefs=prefs).config.poll_interval == 7.0


class TestRealtime:
    """Realtime frames are merged and reconciled."""

    def test_partial_frame(self, gateway):
        """A partial frame updates only what it carries."""
        config = MANUAL._replace(realtime=True)

        async def run():
            ctl = _controller(gateway, config=config)
            await ctl.start()
            gateway.ws.on_message({"master": 0.3, "battery": {"v": 11.9}})
            state = ctl.state
            await ctl.stop()
            return state

        state = asyncio.run(run())
        assert state.global_.master == 30
        assert state.global_.voltmeter.live == 11.9
        assert state.global_.voltmeter.max == 14.2
        assert state.global_.presets.crossover == 2
        assert gateway.ws.closed is True

    def test_frame_during_drag_ignored(self, gateway):
        """Frames arriving during a drag are dropped."""
        config = MANUAL._replace(realtime=True)

        async def run():
            ctl = _controller(gateway, config=config)
            await ctl.start()
            ctl.begin_interaction()
            gateway.ws.on_message({"master": 0.3})
            state = ctl.state
            await ctl.stop()
            return state

        assert asyncio.run(run()).global_.master == 60


class TestPersistence:
    """The state is saved after a quiet period and on stop."""

    def test_debounced_save(self, gateway, prefs):
        """Edits are written out after the save delay."""

        async def run():
            ctl = _controller(gateway, config=FAST, prefs=prefs)
            for value in (10, 20, 33):
                ctl.dispatch(A.SetMaster(value=value))
            await asyncio.sleep(0.2)

        asyncio.run(run())
        assert PreferenceManager(prefs.path).load_snapshot().global_.master == 33

    def test_unchanged_pull_not_saved(self, gateway, prefs):
        """A pull which only refreshes the sync status does not rewrite the file."""
        clock = iter(range(1000))

        async def run():
            ctl = SyncController(gateway, prefs=prefs, config=FAST, clock=lambda: next(clock))
            await ctl.pull()
            await asyncio.sleep(0.1)
            stamp = PreferenceManager(prefs.path).last_updated
            await ctl.pull()
            pending = ctl._save_task is not None and not ctl._save_task.done()
            await asyncio.sleep(0.1)
            return stamp, pending

        stamp, pending = asyncio.run(run())
        assert stamp is not None
        assert not pending
        assert PreferenceManager(prefs.path).last_updated == stamp

    def test_save_on_stop(self, gateway, prefs):
        """A pending save is written when the controller stops."""

        async def run():
            ctl = _controller(gateway, prefs=prefs)
            ctl.dispatch(A.SetChannelGain(channel="ch1", value=-9))
            await ctl.stop()

        asyncio.run(run())
        assert PreferenceManager(prefs.path).load_snapshot().outputs["ch1"].gain_db == -9
