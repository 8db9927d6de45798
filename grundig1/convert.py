#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Conversion between the device wire format and the canonical state.

The firmware reports its state as a loosely structured JSON document
(see from_device_wire) which may omit fields depending on the firmware
version. Missing fields take documented defaults, and every value is
clamped on the way in. The push path only ever sends one parameter
group at a time, using the *_to_wire builders below.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from frozendict import frozendict

from grundig1.state import (
    CanonicalState,
    ChannelState,
    Crossover,
    FilterState,
    GeneratorState,
    GlobalState,
    InputState,
    LimiterState,
    PeqState,
    PresetSelection,
    SequencerState,
    SweepRange,
    Voltmeter,
    _flag,
    bounded,
    create_channel_state,
    normalize_channel,
    normalize_state,
)
from grundig1.types import CHANNELS, GEQ_BANDS, GeneratorMode, Route
from grundig1.util import to_number

# Level reported to the device for generators which are switched off
GEN_OFF_DB = -60

# Firmware version assumed when the device does not report one
DEFAULT_FIRMWARE = "v1.0.0"

# Channel settings assumed for channels the device does not report
DEVICE_DEFAULT_CHANNEL = create_channel_state(route=Route.A)


def _get(data, *path, default=None):
    """
    Walk a path of keys through nested mappings. Returns the default
    when any step is missing, is not a mapping, or holds None.
    """
    for key in path:
        if not isinstance(data, Mapping):
            return default
        data = data.get(key)
        if data is None:
            return default
    return data


def _num(data, *path, default):
    return to_number(_get(data, *path), default)


# ─────────────────────────────────────────────────────────────────────────────
# Device -> canonical
# ─────────────────────────────────────────────────────────────────────────────


def _peq_from_wire(peq) -> PeqState:
    default = PeqState()
    return PeqState(
        freq=_num(peq, "f", default=default.freq),
        gain=_num(peq, "g", default=default.gain),
        q=_num(peq, "q", default=default.q),
    )


def _filter_from_wire(filt, default: FilterState) -> FilterState:
    return FilterState(
        type=_get(filt, "type", default=default.type),
        slope=_get(filt, "slope", default=default.slope),
        freq_hz=_num(filt, "freq", default=default.freq_hz),
        enabled=_get(filt, "enabled", default=default.enabled),
    )


def channel_from_wire(out) -> ChannelState:
    """
    Convert one entry of the device "outputs" array
    """
    default = DEVICE_DEFAULT_CHANNEL
    if not isinstance(out, Mapping):
        return default

    lim = _get(out, "limiter", default={})
    dlim = default.limiter
    channel = ChannelState(
        route=_get(out, "route", default=default.route),
        xover=Crossover(
            hpf=_filter_from_wire(_get(out, "hpf"), default.xover.hpf),
            lpf=_filter_from_wire(_get(out, "lpf"), default.xover.lpf),
        ),
        peq=_peq_from_wire(_get(out, "peq")),
        delay_ms=_num(out, "delayMs", default=default.delay_ms),
        invert=_get(out, "invert", default=default.invert),
        limiter=LimiterState(
            on=_get(lim, "en", default=dlim.on),
            threshold_db=_num(lim, "thr", default=dlim.threshold_db),
            attack_ms=_num(lim, "atk", default=dlim.attack_ms),
            release_ms=_num(lim, "rel", default=dlim.release_ms),
            auto_release=_get(lim, "auto", default=dlim.auto_release),
            active=_get(lim, "act", default=dlim.active),
        ),
        gain_db=_num(out, "gainDb", default=default.gain_db),
        mute=_get(out, "mute", default=default.mute),
        enabled=_get(out, "enabled", default=default.enabled),
    )
    return normalize_channel(channel, default)


def _percent(fraction: float) -> int:
    # whole percent, halves round up
    pct = bounded("master", fraction * 100, GlobalState().master)
    return math.floor(pct + 0.5)


def _generators_from_wire(gen) -> GeneratorState:
    default = GeneratorState()

    # When several generators are enabled at once, the first of
    # sine, sweep, pink wins
    mode = default.mode
    level = default.level_db
    for candidate, prefix in (
        (GeneratorMode.SINE, "sine"),
        (GeneratorMode.SWEEP, "sweep"),
        (GeneratorMode.PINK, "pink"),
    ):
        if _flag(_get(gen, f"{prefix}En"), False):
            mode = candidate
            level = _num(gen, f"{prefix}Db", default=default.level_db)
            break

    return GeneratorState(
        mode=mode,
        level_db=level,
        sine_hz=_num(gen, "sineHz", default=default.sine_hz),
        sweep=SweepRange(
            start=_num(gen, "sweepStart", default=default.sweep.start),
            end=_num(gen, "sweepEnd", default=default.sweep.end),
        ),
    )


def from_device_wire(wire) -> CanonicalState | None:
    """
    Convert a device state document to a canonical state.

    The result always holds four output channels: entries beyond the
    fourth are dropped, missing ones are filled with
    DEVICE_DEFAULT_CHANNEL. User presets are not known to the device
    and come back empty.

    :param wire: Decoded JSON from GET /api/state
    :return: The canonical state, or None if the document is not an object
    """
    if not isinstance(wire, Mapping):
        return None

    outputs = _get(wire, "outputs", default=[])
    if not isinstance(outputs, list | tuple):
        outputs = []

    channels = frozendict(
        (ch, channel_from_wire(outputs[idx]) if idx < len(outputs) else DEVICE_DEFAULT_CHANNEL)
        for idx, ch in enumerate(CHANNELS)
    )

    master = _num(wire, "master", default=0.0)
    volts = Voltmeter()
    geq = _get(wire, "input", "geq", default=(0,) * GEQ_BANDS)

    state = CanonicalState(
        global_=GlobalState(
            master=_percent(master),
            presets=PresetSelection(
                graphic_eq=_get(wire, "input", "geqPreset", default=0),
                crossover=_get(wire, "xoPreset", default=0),
            ),
            user_presets=(),
            voltmeter=Voltmeter(
                live=_num(wire, "battery", "v", default=volts.live),
                min=_num(wire, "battery", "min", default=volts.min),
                max=_num(wire, "battery", "max", default=volts.max),
            ),
            password_locked=_get(wire, "locked", default=False),
            firmware_version=_get(wire, "firmware", default=DEFAULT_FIRMWARE),
        ),
        sequencer=SequencerState(
            s1=_get(wire, "seq", "s1", default=False),
            s2=_get(wire, "seq", "s2", default=False),
            s3=_get(wire, "seq", "s3", default=False),
            interval_ms=_num(wire, "seq", "intervalMs", default=SequencerState().interval_ms),
        ),
        input=InputState(graphic_eq=geq, peq=_peq_from_wire(_get(wire, "input", "peq"))),
        outputs=channels,
        generators=_generators_from_wire(_get(wire, "gen")),
    )
    return normalize_state(state)


# ─────────────────────────────────────────────────────────────────────────────
# Canonical -> device
# ─────────────────────────────────────────────────────────────────────────────


def peq_to_wire(peq: PeqState) -> dict:
    return {"f": peq.freq, "g": peq.gain, "q": peq.q}


def _filter_to_wire(filt: FilterState) -> dict:
    return {
        "type": filt.type.value,
        "slope": filt.slope.value,
        "freq": filt.freq_hz,
        "enabled": filt.enabled,
    }


def output_to_wire(channel: ChannelState, full: bool = False) -> dict:
    """
    Build the settings bundle of POST /api/output for one channel.

    :param channel: The channel settings
    :param full: Also include the fields which only appear in the
                 device state document (limiter activity, enabled)
    """
    lim = channel.limiter
    limiter = {
        "thr": lim.threshold_db,
        "atk": lim.attack_ms,
        "rel": lim.release_ms,
        "auto": lim.auto_release,
        "en": lim.on,
    }
    wire = {
        "route": channel.route.value,
        "hpf": _filter_to_wire(channel.xover.hpf),
        "lpf": _filter_to_wire(channel.xover.lpf),
        "peq": peq_to_wire(channel.peq),
        "delayMs": channel.delay_ms,
        "invert": channel.invert,
        "limiter": limiter,
        "gainDb": channel.gain_db,
        "mute": channel.mute,
    }
    if full:
        limiter["act"] = lim.active
        wire["enabled"] = channel.enabled
    return wire


def generators_to_wire(gen: GeneratorState) -> dict:
    """
    Build the body of POST /api/gen. Only the selected generator is
    enabled; the others are reported at GEN_OFF_DB.
    """

    def level(mode):
        return gen.level_db if gen.mode == mode else GEN_OFF_DB

    return {
        "sineEn": gen.mode == GeneratorMode.SINE,
        "sineHz": gen.sine_hz,
        "sineDb": level(GeneratorMode.SINE),
        "sweepEn": gen.mode == GeneratorMode.SWEEP,
        "sweepStart": gen.sweep.start,
        "sweepEnd": gen.sweep.end,
        "sweepDb": level(GeneratorMode.SWEEP),
        "pinkEn": gen.mode == GeneratorMode.PINK,
        "pinkDb": level(GeneratorMode.PINK),
    }


def sequencer_to_wire(seq: SequencerState) -> dict:
    return {"s1": seq.s1, "s2": seq.s2, "s3": seq.s3, "intervalMs": seq.interval_ms}


def to_device_wire(state: CanonicalState) -> dict:
    """
    Convert a canonical state to a device state document, such that
    from_device_wire() gives back the same state (less user presets
    and sync status).
    """
    glob = state.global_
    return {
        "master": glob.master / 100,
        "xoPreset": glob.presets.crossover,
        "locked": glob.password_locked,
        "firmware": glob.firmware_version,
        "battery": {"v": glob.voltmeter.live, "min": glob.voltmeter.min, "max": glob.voltmeter.max},
        "seq": sequencer_to_wire(state.sequencer),
        "input": {
            "geq": list(state.input.graphic_eq),
            "geqPreset": glob.presets.graphic_eq,
            "peq": peq_to_wire(state.input.peq),
        },
        "gen": generators_to_wire(state.generators),
        "outputs": [output_to_wire(state.outputs[ch], full=True) for ch in CHANNELS],
    }


def merge_wire(base, patch):
    """
    Deep-merge a partial device document over a full one. Mappings are
    merged key by key, anything else (including lists) is replaced.
    """
    if not isinstance(base, Mapping) or not isinstance(patch, Mapping):
        return patch
    merged = dict(base)
    for key, value in patch.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_wire(merged[key], value)
        else:
            merged[key] = value
    return merged
