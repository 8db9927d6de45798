#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Actions which describe every mutation of the canonical state.

Each action kind is a frozen dataclass carrying the string tag it is
known by in logs and on the wire. The set is closed: ALL_ACTIONS lists
every kind, and the reducer must handle each one of them.

Optional payload fields left as None mean "keep the current value".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from grundig1.state import CanonicalState


@dataclass(frozen=True)
class Action:
    """
    Base class of all actions
    """

    type: ClassVar[str] = "UNKNOWN"


# ─────────────────────────────────────────────────────────────────────────────
# Global and input section
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetMaster(Action):
    type: ClassVar[str] = "SET_MASTER"
    value: Any


@dataclass(frozen=True)
class SetGraphicEq(Action):
    type: ClassVar[str] = "SET_GRAPHIC_EQ"
    values: tuple


@dataclass(frozen=True)
class SetGraphicEqBand(Action):
    type: ClassVar[str] = "SET_GRAPHIC_EQ_BAND"
    band: int
    value: Any


@dataclass(frozen=True)
class SetInputPeq(Action):
    type: ClassVar[str] = "SET_INPUT_PEQ"
    freq: Any = None
    gain: Any = None
    q: Any = None


# ─────────────────────────────────────────────────────────────────────────────
# Output channels
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChannelAction(Action):
    """
    Base class of actions addressing a single output channel
    """

    channel: str


@dataclass(frozen=True)
class SetChannelRoute(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_ROUTE"
    route: Any


@dataclass(frozen=True)
class SetChannelXover(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_XOVER"
    filter: str
    filter_type: Any = None
    slope: Any = None
    freq_hz: Any = None
    enabled: bool | None = None


@dataclass(frozen=True)
class SetChannelPeq(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_PEQ"
    freq: Any = None
    gain: Any = None
    q: Any = None


@dataclass(frozen=True)
class SetChannelDelay(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_DELAY"
    value: Any


@dataclass(frozen=True)
class SetChannelPolarity(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_POLARITY"
    invert: bool


@dataclass(frozen=True)
class SetChannelLimiter(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_LIMITER"
    on: bool | None = None
    threshold_db: Any = None
    attack_ms: Any = None
    release_ms: Any = None
    auto_release: bool | None = None
    active: bool | None = None


@dataclass(frozen=True)
class SetChannelGain(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_GAIN"
    value: Any


@dataclass(frozen=True)
class SetChannelMute(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_MUTE"
    mute: bool


@dataclass(frozen=True)
class SetChannelEnabled(ChannelAction):
    type: ClassVar[str] = "SET_CHANNEL_ENABLED"
    enabled: bool


# ─────────────────────────────────────────────────────────────────────────────
# Tools
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetSequencer(Action):
    type: ClassVar[str] = "SET_SEQUENCER"
    s1: bool | None = None
    s2: bool | None = None
    s3: bool | None = None
    interval_ms: Any = None


@dataclass(frozen=True)
class SetGenerator(Action):
    type: ClassVar[str] = "SET_GENERATOR"
    mode: Any = None
    level_db: Any = None
    sine_hz: Any = None
    sweep_start: Any = None
    sweep_end: Any = None


# ─────────────────────────────────────────────────────────────────────────────
# Presets
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LoadPreset(Action):
    """
    Apply a factory preset from the graphicEq or crossover catalog
    """

    type: ClassVar[str] = "LOAD_PRESET"
    preset_type: Any
    index: int


@dataclass(frozen=True)
class SaveUserPreset(Action):
    """
    Append a snapshot of the current state to the user presets
    """

    type: ClassVar[str] = "SAVE_USER_PRESET"
    name: str | None = None
    timestamp: float | None = None


@dataclass(frozen=True)
class LoadUserPreset(Action):
    type: ClassVar[str] = "LOAD_USER_PRESET"
    index: int


@dataclass(frozen=True)
class DeleteUserPreset(Action):
    type: ClassVar[str] = "DELETE_USER_PRESET"
    index: int


# ─────────────────────────────────────────────────────────────────────────────
# Device status and state replacement
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetVoltmeter(Action):
    type: ClassVar[str] = "SET_VOLTMETER"
    live: Any = None
    min: Any = None
    max: Any = None


@dataclass(frozen=True)
class SetPasswordLocked(Action):
    type: ClassVar[str] = "SET_PASSWORD_LOCKED"
    locked: bool
    code: str | None = None


@dataclass(frozen=True)
class RestoreState(Action):
    """
    Replace the state with a locally persisted snapshot
    """

    type: ClassVar[str] = "RESTORE_STATE"
    state: CanonicalState


@dataclass(frozen=True)
class SyncFromArduino(Action):
    """
    Reconcile with a state pulled from the device
    """

    type: ClassVar[str] = "SYNC_FROM_ARDUINO"
    state: CanonicalState
    timestamp: float | None = None


@dataclass(frozen=True)
class SetSyncStatus(Action):
    """
    Record the outcome of a device call. A None error clears it,
    a None last_sync keeps the previous timestamp.
    """

    type: ClassVar[str] = "SET_SYNC_STATUS"
    connected: bool
    error: str | None = None
    last_sync: float | None = None


ALL_ACTIONS: tuple[type[Action], ...] = (
    SetMaster,
    SetGraphicEq,
    SetGraphicEqBand,
    SetInputPeq,
    SetChannelRoute,
    SetChannelXover,
    SetChannelPeq,
    SetChannelDelay,
    SetChannelPolarity,
    SetChannelLimiter,
    SetChannelGain,
    SetChannelMute,
    SetChannelEnabled,
    SetSequencer,
    SetGenerator,
    LoadPreset,
    SaveUserPreset,
    LoadUserPreset,
    DeleteUserPreset,
    SetVoltmeter,
    SetPasswordLocked,
    RestoreState,
    SyncFromArduino,
    SetSyncStatus,
)

# Actions which only ever originate from, or describe, the sync process
# itself and are never echoed back to the device
LOCAL_ACTIONS: frozenset[type[Action]] = frozenset((RestoreState, SyncFromArduino, SetSyncStatus))
