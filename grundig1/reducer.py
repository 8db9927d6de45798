#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
# pylint: disable=unused-argument
"""
The state reducer.

reduce() maps (state, action) to the next state. It is pure and total:
it never raises, never performs I/O, and returns the state unchanged for
actions it does not know about or payloads which are unusable. Numeric
payloads are clamped to the declared range of their field, and enum
payloads which are not declared members are ignored.
"""

from __future__ import annotations

from collections.abc import Callable

from frozendict import frozendict

from grundig1 import actions as A
from grundig1.presets import get_crossover_preset, get_graphic_eq_preset
from grundig1.state import (
    CanonicalState,
    ChannelState,
    PresetSnapshot,
    SyncStatus,
    bounded,
    normalize_geq,
    normalize_state,
    snapshot_state,
)
from grundig1.types import GEQ_BANDS, FilterType, GeneratorMode, PresetType, Route, Slope
from grundig1.util import to_number


def _bool(value, current: bool) -> bool:
    if isinstance(value, bool):
        return value
    return current


def _enum(enum_class, value, current):
    parsed = enum_class.parse(value)
    if parsed is None:
        return current
    return parsed


def _index(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _update_global(state: CanonicalState, **kwargs) -> CanonicalState:
    return state._replace(global_=state.global_._replace(**kwargs))


def _update_channel(
    state: CanonicalState, channel: str, update: Callable[[ChannelState], ChannelState]
) -> CanonicalState:
    if not isinstance(channel, str) or channel not in state.outputs:
        return state
    outputs = dict(state.outputs)
    outputs[channel] = update(outputs[channel])
    return state._replace(outputs=frozendict(outputs))


# ─────────────────────────────────────────────────────────────────────────────
# Global and input section
# ─────────────────────────────────────────────────────────────────────────────


def _set_master(state, action: A.SetMaster):
    return _update_global(state, master=bounded("master", action.value, state.global_.master))


def _set_graphic_eq(state, action: A.SetGraphicEq):
    geq = normalize_geq(action.values, state.input.graphic_eq)
    return state._replace(input=state.input._replace(graphic_eq=geq))


def _set_graphic_eq_band(state, action: A.SetGraphicEqBand):
    band = _index(action.band)
    if band is None or not 0 <= band < GEQ_BANDS:
        return state
    geq = list(state.input.graphic_eq)
    geq[band] = bounded("geq", action.value, geq[band])
    return state._replace(input=state.input._replace(graphic_eq=tuple(geq)))


def _merge_peq(peq, action):
    return peq._replace(
        freq=bounded("peq_freq", action.freq, peq.freq),
        gain=bounded("peq_gain", action.gain, peq.gain),
        q=bounded("peq_q", action.q, peq.q),
    )


def _set_input_peq(state, action: A.SetInputPeq):
    return state._replace(input=state.input._replace(peq=_merge_peq(state.input.peq, action)))


# ─────────────────────────────────────────────────────────────────────────────
# Output channels
# ─────────────────────────────────────────────────────────────────────────────


def _set_channel_route(state, action: A.SetChannelRoute):
    return _update_channel(
        state, action.channel, lambda ch: ch._replace(route=_enum(Route, action.route, ch.route))
    )


def _set_channel_xover(state, action: A.SetChannelXover):
    if action.filter not in ("hpf", "lpf"):
        return state

    def update(ch):
        filt = getattr(ch.xover, action.filter)
        filt = filt._replace(
            type=_enum(FilterType, action.filter_type, filt.type),
            slope=_enum(Slope, action.slope, filt.slope),
            freq_hz=bounded("filter_freq", action.freq_hz, filt.freq_hz),
            enabled=_bool(action.enabled, filt.enabled),
        )
        return ch._replace(xover=ch.xover._replace(**{action.filter: filt}))

    return _update_channel(state, action.channel, update)


def _set_channel_peq(state, action: A.SetChannelPeq):
    return _update_channel(
        state, action.channel, lambda ch: ch._replace(peq=_merge_peq(ch.peq, action))
    )


def _set_channel_delay(state, action: A.SetChannelDelay):
    return _update_channel(
        state,
        action.channel,
        lambda ch: ch._replace(delay_ms=bounded("delay_ms", action.value, ch.delay_ms)),
    )


def _set_channel_polarity(state, action: A.SetChannelPolarity):
    return _update_channel(
        state, action.channel, lambda ch: ch._replace(invert=_bool(action.invert, ch.invert))
    )


def _set_channel_limiter(state, action: A.SetChannelLimiter):
    def update(ch):
        lim = ch.limiter
        return ch._replace(
            limiter=lim._replace(
                on=_bool(action.on, lim.on),
                threshold_db=bounded("threshold_db", action.threshold_db, lim.threshold_db),
                attack_ms=bounded("attack_ms", action.attack_ms, lim.attack_ms),
                release_ms=bounded("release_ms", action.release_ms, lim.release_ms),
                auto_release=_bool(action.auto_release, lim.auto_release),
                active=_bool(action.active, lim.active),
            )
        )

    return _update_channel(state, action.channel, update)


def _set_channel_gain(state, action: A.SetChannelGain):
    return _update_channel(
        state,
        action.channel,
        lambda ch: ch._replace(gain_db=bounded("gain_db", action.value, ch.gain_db)),
    )


def _set_channel_mute(state, action: A.SetChannelMute):
    return _update_channel(
        state, action.channel, lambda ch: ch._replace(mute=_bool(action.mute, ch.mute))
    )


def _set_channel_enabled(state, action: A.SetChannelEnabled):
    return _update_channel(
        state, action.channel, lambda ch: ch._replace(enabled=_bool(action.enabled, ch.enabled))
    )


# ─────────────────────────────────────────────────────────────────────────────
# Tools
# ─────────────────────────────────────────────────────────────────────────────


def _set_sequencer(state, action: A.SetSequencer):
    seq = state.sequencer
    return state._replace(
        sequencer=seq._replace(
            s1=_bool(action.s1, seq.s1),
            s2=_bool(action.s2, seq.s2),
            s3=_bool(action.s3, seq.s3),
            interval_ms=bounded("interval_ms", action.interval_ms, seq.interval_ms),
        )
    )


def _set_generator(state, action: A.SetGenerator):
    gen = state.generators
    return state._replace(
        generators=gen._replace(
            mode=_enum(GeneratorMode, action.mode, gen.mode),
            level_db=bounded("level_db", action.level_db, gen.level_db),
            sine_hz=bounded("sine_hz", action.sine_hz, gen.sine_hz),
            sweep=gen.sweep._replace(
                start=bounded("sweep_hz", action.sweep_start, gen.sweep.start),
                end=bounded("sweep_hz", action.sweep_end, gen.sweep.end),
            ),
        )
    )


# ─────────────────────────────────────────────────────────────────────────────
# Presets
# ─────────────────────────────────────────────────────────────────────────────


def _load_preset(state, action: A.LoadPreset):
    preset_type = PresetType.parse(action.preset_type)
    presets = state.global_.presets

    if preset_type == PresetType.GRAPHIC_EQ:
        preset = get_graphic_eq_preset(action.index)
        if preset is None:
            return state
        state = state._replace(input=state.input._replace(graphic_eq=tuple(preset.values)))
        return _update_global(state, presets=presets._replace(graphic_eq=action.index))

    if preset_type == PresetType.CROSSOVER:
        preset = get_crossover_preset(action.index)
        if preset is None:
            return state
        outputs = frozendict(
            (ch, channel._replace(xover=preset.xover)) for ch, channel in state.outputs.items()
        )
        state = state._replace(outputs=outputs)
        return _update_global(state, presets=presets._replace(crossover=action.index))

    return state


def _save_user_preset(state, action: A.SaveUserPreset):
    user_presets = state.global_.user_presets
    name = action.name
    if not isinstance(name, str) or not name:
        name = f"Preset {len(user_presets) + 1}"
    preset = PresetSnapshot(
        name=name,
        timestamp=to_number(action.timestamp, 0.0),
        state=snapshot_state(state),
    )
    return _update_global(state, user_presets=(*user_presets, preset))


def _load_user_preset(state, action: A.LoadUserPreset):
    index = _index(action.index)
    user_presets = state.global_.user_presets
    if index is None or not 0 <= index < len(user_presets):
        return state
    loaded = normalize_state(user_presets[index].state)
    return loaded._replace(
        global_=loaded.global_._replace(user_presets=user_presets),
        sync_status=state.sync_status,
    )


def _delete_user_preset(state, action: A.DeleteUserPreset):
    index = _index(action.index)
    user_presets = state.global_.user_presets
    if index is None or not 0 <= index < len(user_presets):
        return state
    return _update_global(
        state, user_presets=tuple(p for i, p in enumerate(user_presets) if i != index)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Device status and state replacement
# ─────────────────────────────────────────────────────────────────────────────


def _set_voltmeter(state, action: A.SetVoltmeter):
    volts = state.global_.voltmeter
    return _update_global(
        state,
        voltmeter=volts._replace(
            live=to_number(action.live, volts.live),
            min=to_number(action.min, volts.min),
            max=to_number(action.max, volts.max),
        ),
    )


def _set_password_locked(state, action: A.SetPasswordLocked):
    return _update_global(
        state, password_locked=_bool(action.locked, state.global_.password_locked)
    )


def _restore_state(state, action: A.RestoreState):
    if not isinstance(action.state, CanonicalState):
        return state
    return normalize_state(action.state)._replace(sync_status=state.sync_status)


def _sync_from_arduino(state, action: A.SyncFromArduino):
    if not isinstance(action.state, CanonicalState):
        return state
    synced = normalize_state(action.state)
    last_sync = action.timestamp
    if last_sync is None:
        last_sync = state.sync_status.last_sync
    return synced._replace(
        global_=synced.global_._replace(user_presets=state.global_.user_presets),
        sync_status=SyncStatus(connected=True, last_sync=last_sync, error=None),
    )


def _set_sync_status(state, action: A.SetSyncStatus):
    status = state.sync_status
    last_sync = status.last_sync if action.last_sync is None else action.last_sync
    return state._replace(
        sync_status=SyncStatus(
            connected=_bool(action.connected, status.connected),
            last_sync=last_sync,
            error=None if action.error is None else str(action.error),
        )
    )


_REDUCERS: dict[type[A.Action], Callable] = {
    A.SetMaster: _set_master,
    A.SetGraphicEq: _set_graphic_eq,
    A.SetGraphicEqBand: _set_graphic_eq_band,
    A.SetInputPeq: _set_input_peq,
    A.SetChannelRoute: _set_channel_route,
    A.SetChannelXover: _set_channel_xover,
    A.SetChannelPeq: _set_channel_peq,
    A.SetChannelDelay: _set_channel_delay,
    A.SetChannelPolarity: _set_channel_polarity,
    A.SetChannelLimiter: _set_channel_limiter,
    A.SetChannelGain: _set_channel_gain,
    A.SetChannelMute: _set_channel_mute,
    A.SetChannelEnabled: _set_channel_enabled,
    A.SetSequencer: _set_sequencer,
    A.SetGenerator: _set_generator,
    A.LoadPreset: _load_preset,
    A.SaveUserPreset: _save_user_preset,
    A.LoadUserPreset: _load_user_preset,
    A.DeleteUserPreset: _delete_user_preset,
    A.SetVoltmeter: _set_voltmeter,
    A.SetPasswordLocked: _set_password_locked,
    A.RestoreState: _restore_state,
    A.SyncFromArduino: _sync_from_arduino,
    A.SetSyncStatus: _set_sync_status,
}


def handles(action_type: type[A.Action]) -> bool:
    """
    Check whether the reducer knows an action kind
    """
    return action_type in _REDUCERS


def reduce(state: CanonicalState, action: A.Action) -> CanonicalState:
    """
    Compute the next state

    :param state: The current state
    :param action: The action to apply

    :return: The next state, or the same state for unknown actions
    """
    handler = _REDUCERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action)
