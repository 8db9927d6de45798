#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
# pylint: disable=invalid-name, too-many-return-statements
"""
Canonical client-side state of the console.

Every record is an immutable NamedTuple, and the output channel map is a
frozendict, so a state value can be shared freely between the reducer,
the sync controller and any observers. New states are derived with
_replace(). All bounded numeric fields are declared in RANGES and are
clamped whenever a value enters the tree, whether it comes from a user
action, the device, or a persisted snapshot.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import NamedTuple

from frozendict import frozendict

from grundig1.types import CHANNELS, GEQ_BANDS, FilterType, GeneratorMode, Route, Slope
from grundig1.util import clamp, to_number

# Declared ranges of every bounded numeric field, (min, max)
RANGES = {
    "master": (0, 100),
    "geq": (-12, 12),
    "peq_freq": (20, 20000),
    "peq_gain": (-12, 12),
    "peq_q": (0.4, 10),
    "interval_ms": (100, 10000),
    "filter_freq": (20, 20000),
    "delay_ms": (0, 8),
    "threshold_db": (-24, 0),
    "attack_ms": (0.1, 100),
    "release_ms": (1, 1600),
    "gain_db": (-45, 15),
    "level_db": (-60, 0),
    "sine_hz": (10, 22000),
    "sweep_hz": (10, 22000),
}


def bounded(key: str, value, fallback):
    """
    Clamp a value to the declared range of a field.

    :param key: Name of the range in RANGES
    :param value: Candidate value, may be of any type
    :param fallback: Returned when the value is not a usable number

    :return: The constrained value
    """
    number = to_number(value)
    if number is None:
        return fallback
    lo, hi = RANGES[key]
    return clamp(number, lo, hi)


def _flag(value, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float) and value in (0, 1):
        return bool(value)
    return fallback


def _index(value, fallback: int = 0) -> int:
    number = to_number(value)
    if number is None or number in (float("inf"), float("-inf")):
        return fallback
    return int(number)


def _enum(enum_class: type[Enum], value, fallback):
    parsed = enum_class.parse(value)
    if parsed is None:
        return fallback
    return parsed


# ─────────────────────────────────────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────────────────────────────────────


class PeqState(NamedTuple):
    freq: float = 1000
    gain: float = 0
    q: float = 1.0


class FilterState(NamedTuple):
    type: FilterType = FilterType.BW
    slope: Slope = Slope.DB24
    freq_hz: float = 80
    enabled: bool = False


class Crossover(NamedTuple):
    hpf: FilterState = FilterState()
    lpf: FilterState = FilterState(freq_hz=12000)


class LimiterState(NamedTuple):
    on: bool = False
    threshold_db: float = -6
    attack_ms: float = 5
    release_ms: float = 100
    auto_release: bool = False
    active: bool = False


class ChannelState(NamedTuple):
    """
    Settings of a single output channel
    """

    route: Route = Route.A_B
    xover: Crossover = Crossover()
    peq: PeqState = PeqState()
    delay_ms: float = 0
    invert: bool = False
    limiter: LimiterState = LimiterState()
    gain_db: float = 0
    mute: bool = False
    enabled: bool = True


class PresetSelection(NamedTuple):
    graphic_eq: int = 0
    crossover: int = 0


class Voltmeter(NamedTuple):
    live: float = 12.6
    min: float = 11.8
    max: float = 14.4


class GlobalState(NamedTuple):
    master: float = 75
    presets: PresetSelection = PresetSelection()
    user_presets: tuple = ()
    voltmeter: Voltmeter = Voltmeter()
    password_locked: bool = False
    firmware_version: str = "v1.2.8"


class SequencerState(NamedTuple):
    s1: bool = True
    s2: bool = False
    s3: bool = False
    interval_ms: float = 1000


class InputState(NamedTuple):
    graphic_eq: tuple = (0,) * GEQ_BANDS
    peq: PeqState = PeqState()


class SweepRange(NamedTuple):
    start: float = 20
    end: float = 20000


class GeneratorState(NamedTuple):
    mode: GeneratorMode = GeneratorMode.SINE
    level_db: float = -20
    sine_hz: float = 1000
    sweep: SweepRange = SweepRange()


class SyncStatus(NamedTuple):
    """
    Connection health, transient and never persisted
    """

    connected: bool = False
    last_sync: float | None = None
    error: str | None = None


class CanonicalState(NamedTuple):
    """
    The single source of truth for every console parameter
    """

    global_: GlobalState
    sequencer: SequencerState
    input: InputState
    outputs: frozendict
    generators: GeneratorState
    sync_status: SyncStatus = SyncStatus()


class PresetSnapshot(NamedTuple):
    """
    A user-saved copy of the console state. The embedded state never
    carries user presets of its own.
    """

    name: str
    timestamp: float
    state: CanonicalState


def create_channel_state(route: Route = Route.A_B) -> ChannelState:
    """
    Create the default settings of an output channel
    """
    return ChannelState(route=route)


def create_initial_state() -> CanonicalState:
    """
    Create the hardcoded default state used before anything is
    known about the device.
    """
    return CanonicalState(
        global_=GlobalState(),
        sequencer=SequencerState(),
        input=InputState(),
        outputs=frozendict((ch, create_channel_state()) for ch in CHANNELS),
        generators=GeneratorState(),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────────────────────


def normalize_geq(values, current=None) -> tuple:
    """
    Coerce a graphic EQ curve to exactly GEQ_BANDS clamped values.

    Missing or unusable bands keep the value of the current curve.
    """
    if current is None:
        current = InputState().graphic_eq
    if isinstance(values, str | bytes | Mapping) or values is None:
        values = ()
    try:
        values = list(values)
    except TypeError:
        values = []

    bands = []
    for idx in range(GEQ_BANDS):
        fallback = current[idx]
        value = values[idx] if idx < len(values) else None
        bands.append(bounded("geq", value, fallback))
    return tuple(bands)


def normalize_peq(peq: PeqState, fallback: PeqState = PeqState()) -> PeqState:
    return PeqState(
        freq=bounded("peq_freq", peq.freq, fallback.freq),
        gain=bounded("peq_gain", peq.gain, fallback.gain),
        q=bounded("peq_q", peq.q, fallback.q),
    )


def normalize_filter(filt: FilterState, fallback: FilterState) -> FilterState:
    return FilterState(
        type=_enum(FilterType, filt.type, fallback.type),
        slope=_enum(Slope, filt.slope, fallback.slope),
        freq_hz=bounded("filter_freq", filt.freq_hz, fallback.freq_hz),
        enabled=_flag(filt.enabled, fallback.enabled),
    )


def normalize_limiter(lim: LimiterState, fallback: LimiterState = LimiterState()) -> LimiterState:
    return LimiterState(
        on=_flag(lim.on, fallback.on),
        threshold_db=bounded("threshold_db", lim.threshold_db, fallback.threshold_db),
        attack_ms=bounded("attack_ms", lim.attack_ms, fallback.attack_ms),
        release_ms=bounded("release_ms", lim.release_ms, fallback.release_ms),
        auto_release=_flag(lim.auto_release, fallback.auto_release),
        active=_flag(lim.active, fallback.active),
    )


def normalize_channel(channel: ChannelState, fallback: ChannelState | None = None) -> ChannelState:
    if fallback is None:
        fallback = create_channel_state()
    return ChannelState(
        route=_enum(Route, channel.route, fallback.route),
        xover=Crossover(
            hpf=normalize_filter(channel.xover.hpf, fallback.xover.hpf),
            lpf=normalize_filter(channel.xover.lpf, fallback.xover.lpf),
        ),
        peq=normalize_peq(channel.peq, fallback.peq),
        delay_ms=bounded("delay_ms", channel.delay_ms, fallback.delay_ms),
        invert=_flag(channel.invert, fallback.invert),
        limiter=normalize_limiter(channel.limiter, fallback.limiter),
        gain_db=bounded("gain_db", channel.gain_db, fallback.gain_db),
        mute=_flag(channel.mute, fallback.mute),
        enabled=_flag(channel.enabled, fallback.enabled),
    )


def normalize_outputs(outputs, fallback: ChannelState | None = None) -> frozendict:
    """
    Produce an output map holding exactly the fixed channel keys, in
    channel order. Unknown keys are dropped, missing ones defaulted.
    """
    if fallback is None:
        fallback = create_channel_state()
    if not isinstance(outputs, Mapping):
        outputs = {}
    result = {}
    for ch in CHANNELS:
        channel = outputs.get(ch)
        if isinstance(channel, ChannelState):
            result[ch] = normalize_channel(channel, fallback)
        else:
            result[ch] = fallback
    return frozendict(result)


def normalize_generators(gen: GeneratorState, fallback: GeneratorState = GeneratorState()):
    return GeneratorState(
        mode=_enum(GeneratorMode, gen.mode, fallback.mode),
        level_db=bounded("level_db", gen.level_db, fallback.level_db),
        sine_hz=bounded("sine_hz", gen.sine_hz, fallback.sine_hz),
        sweep=SweepRange(
            start=bounded("sweep_hz", gen.sweep.start, fallback.sweep.start),
            end=bounded("sweep_hz", gen.sweep.end, fallback.sweep.end),
        ),
    )


def normalize_sequencer(seq: SequencerState, fallback: SequencerState = SequencerState()):
    return SequencerState(
        s1=_flag(seq.s1, fallback.s1),
        s2=_flag(seq.s2, fallback.s2),
        s3=_flag(seq.s3, fallback.s3),
        interval_ms=bounded("interval_ms", seq.interval_ms, fallback.interval_ms),
    )


def normalize_state(state: CanonicalState) -> CanonicalState:
    """
    Clamp every bounded field and repair the fixed structure (four
    channels, fifteen EQ bands) of a state of uncertain origin.
    """
    glob = state.global_
    presets = glob.presets
    return state._replace(
        global_=glob._replace(
            master=bounded("master", glob.master, GlobalState().master),
            presets=PresetSelection(
                graphic_eq=_index(presets.graphic_eq),
                crossover=_index(presets.crossover),
            ),
            user_presets=tuple(p for p in glob.user_presets if isinstance(p, PresetSnapshot)),
            voltmeter=Voltmeter(
                *(to_number(v, d) for v, d in zip(glob.voltmeter, Voltmeter(), strict=True))
            ),
            password_locked=_flag(glob.password_locked, False),
            firmware_version=(
                glob.firmware_version
                if isinstance(glob.firmware_version, str)
                else GlobalState().firmware_version
            ),
        ),
        sequencer=normalize_sequencer(state.sequencer),
        input=InputState(
            graphic_eq=normalize_geq(state.input.graphic_eq),
            peq=normalize_peq(state.input.peq),
        ),
        outputs=normalize_outputs(state.outputs),
        generators=normalize_generators(state.generators),
    )


def snapshot_state(state: CanonicalState) -> CanonicalState:
    """
    Copy of a state suitable for embedding in a PresetSnapshot
    """
    return state._replace(
        global_=state.global_._replace(user_presets=()), sync_status=SyncStatus()
    )


# ─────────────────────────────────────────────────────────────────────────────
# Plain (persistable) representation
# ─────────────────────────────────────────────────────────────────────────────


def _to_plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return {
            name.rstrip("_"): _to_plain(getattr(value, name))
            for name in value._fields
            if name != "sync_status"
        }
    if isinstance(value, Mapping):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, tuple | list):
        return [_to_plain(v) for v in value]
    return value


def state_to_dict(state: CanonicalState) -> dict:
    """
    Convert a state to plain dicts, lists and scalars for serialization.
    The sync status is connection-scoped and is left out.
    """
    return _to_plain(state)


def _section(data, key) -> Mapping:
    if not isinstance(data, Mapping):
        return {}
    value = data.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _record(cls, data: Mapping, default):
    """
    Build a flat record from a mapping, taking fields from the default
    where the mapping lacks them. Values are normalized afterwards.
    """
    return cls(*(data.get(name, getattr(default, name)) for name in cls._fields))


def _channel_from_dict(data: Mapping) -> ChannelState:
    default = create_channel_state()
    xover = _section(data, "xover")
    return normalize_channel(
        ChannelState(
            route=data.get("route", default.route),
            xover=Crossover(
                hpf=_record(FilterState, _section(xover, "hpf"), default.xover.hpf),
                lpf=_record(FilterState, _section(xover, "lpf"), default.xover.lpf),
            ),
            peq=_record(PeqState, _section(data, "peq"), default.peq),
            delay_ms=data.get("delay_ms", default.delay_ms),
            invert=data.get("invert", default.invert),
            limiter=_record(LimiterState, _section(data, "limiter"), default.limiter),
            gain_db=data.get("gain_db", default.gain_db),
            mute=data.get("mute", default.mute),
            enabled=data.get("enabled", default.enabled),
        ),
        default,
    )


def _preset_from_dict(data) -> PresetSnapshot | None:
    if not isinstance(data, Mapping) or not isinstance(data.get("state"), Mapping):
        return None
    return PresetSnapshot(
        name=str(data.get("name", "Preset")),
        timestamp=to_number(data.get("timestamp"), 0.0),
        state=snapshot_state(state_from_dict(data["state"])),
    )


def state_from_dict(data: Mapping) -> CanonicalState:
    """
    Best-effort parse of a plain state representation. Missing or
    malformed fields take their default values.

    :raises ValueError: if the data is not a mapping at all
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Invalid state data: {type(data).__name__}")

    initial = create_initial_state()
    glob = _section(data, "global")
    inp = _section(data, "input")
    gen = _section(data, "generators")
    outputs = _section(data, "outputs")

    user_presets = glob.get("user_presets")
    if not isinstance(user_presets, list | tuple):
        user_presets = ()

    state = CanonicalState(
        global_=GlobalState(
            master=glob.get("master", initial.global_.master),
            presets=_record(PresetSelection, _section(glob, "presets"), PresetSelection()),
            user_presets=tuple(
                p for p in (_preset_from_dict(x) for x in user_presets) if p is not None
            ),
            voltmeter=_record(Voltmeter, _section(glob, "voltmeter"), Voltmeter()),
            password_locked=glob.get("password_locked", False),
            firmware_version=glob.get("firmware_version", initial.global_.firmware_version),
        ),
        sequencer=_record(SequencerState, _section(data, "sequencer"), SequencerState()),
        input=InputState(
            graphic_eq=inp.get("graphic_eq", initial.input.graphic_eq),
            peq=_record(PeqState, _section(inp, "peq"), PeqState()),
        ),
        outputs=frozendict(
            (ch, _channel_from_dict(outputs[ch]))
            for ch in CHANNELS
            if isinstance(outputs.get(ch), Mapping)
        ),
        generators=GeneratorState(
            mode=gen.get("mode", initial.generators.mode),
            level_db=gen.get("level_db", initial.generators.level_db),
            sine_hz=gen.get("sine_hz", initial.generators.sine_hz),
            sweep=_record(SweepRange, _section(gen, "sweep"), SweepRange()),
        ),
    )
    return normalize_state(state)
