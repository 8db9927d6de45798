#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Factory presets for the input graphic EQ and the output crossovers.

These are fixed catalogs, addressed by index, and are not user-editable.
"""

from __future__ import annotations

from typing import NamedTuple

from grundig1.state import Crossover, FilterState
from grundig1.types import FilterType, Slope


class GraphicEqPreset(NamedTuple):
    name: str
    values: tuple


class CrossoverPreset(NamedTuple):
    name: str
    xover: Crossover


def _xo(hpf: tuple, lpf: tuple) -> Crossover:
    def filt(spec):
        ftype, slope, freq, enabled = spec
        return FilterState(FilterType(ftype), Slope(slope), freq, enabled)

    return Crossover(hpf=filt(hpf), lpf=filt(lpf))


GRAPHIC_EQ_PRESETS = (
    GraphicEqPreset("Flat", (0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    GraphicEqPreset("Bass Boost", (6, 5, 4, 2, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    GraphicEqPreset("Treble Boost", (0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 2, 4, 5, 6, 6)),
    GraphicEqPreset("V-Shape", (5, 4, 3, 1, 0, -1, -2, -2, -1, 0, 1, 3, 4, 5, 6)),
    GraphicEqPreset("Presence", (0, 0, 0, 0, 0, 1, 2, 3, 4, 3, 2, 1, 0, 0, 0)),
    GraphicEqPreset("Voice", (-2, -1, 0, 2, 4, 5, 4, 2, 0, -1, -2, -2, -2, -1, 0)),
    GraphicEqPreset("Lo-Cut", (-6, -5, -3, -2, -1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    GraphicEqPreset("Hi-Cut", (0, 0, 0, 0, 0, 0, 0, 0, 0, -1, -2, -3, -5, -6, -8)),
    GraphicEqPreset("Warmth", (3, 2, 1, 0, 0, 0, -1, -1, 0, 0, 1, 2, 2, 2, 1)),
    GraphicEqPreset("Bright", (-1, -1, 0, 0, 0, 1, 2, 3, 3, 3, 3, 3, 2, 2, 1)),
    GraphicEqPreset("Scoop", (2, 1, 0, -1, -2, -3, -3, -3, -2, -1, 0, 1, 2, 2, 2)),
    GraphicEqPreset("Full Range", (2, 2, 1, 1, 0, 0, 0, 0, 0, 0, 1, 1, 2, 2, 3)),
)

# (type, slope, freq, enabled) for hpf and lpf
CROSSOVER_PRESETS = (
    CrossoverPreset("Full Range", _xo(("BW", 12, 20, False), ("BW", 12, 20000, False))),
    CrossoverPreset("Sub 80Hz", _xo(("BW", 24, 20, False), ("LR", 24, 80, True))),
    CrossoverPreset("Sub 120Hz", _xo(("BW", 24, 20, False), ("LR", 24, 120, True))),
    CrossoverPreset("Mid 80-8k", _xo(("LR", 24, 80, True), ("LR", 24, 8000, True))),
    CrossoverPreset("Mid 120-10k", _xo(("LR", 24, 120, True), ("LR", 24, 10000, True))),
    CrossoverPreset("High 8kHz+", _xo(("LR", 24, 8000, True), ("BW", 12, 20000, False))),
    CrossoverPreset("High 10kHz+", _xo(("LR", 24, 10000, True), ("BW", 12, 20000, False))),
    CrossoverPreset("2-Way 2.5k", _xo(("LR", 24, 2500, True), ("LR", 24, 2500, True))),
    CrossoverPreset("2-Way 1.6k", _xo(("LR", 24, 1600, True), ("LR", 24, 1600, True))),
    CrossoverPreset("Steep HP 80", _xo(("LR", 36, 80, True), ("BW", 12, 20000, False))),
    CrossoverPreset("Gentle LP 12k", _xo(("BW", 12, 20, False), ("BW", 12, 12000, True))),
)


def _lookup(catalog: tuple, index):
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if 0 <= index < len(catalog):
        return catalog[index]
    return None


def get_graphic_eq_preset(index: int) -> GraphicEqPreset | None:
    """
    Look up a graphic EQ curve

    :return: The preset, or None if the index is outside the catalog
    """
    return _lookup(GRAPHIC_EQ_PRESETS, index)


def get_crossover_preset(index: int) -> CrossoverPreset | None:
    """
    Look up a crossover configuration

    :return: The preset, or None if the index is outside the catalog
    """
    return _lookup(CROSSOVER_PRESETS, index)
