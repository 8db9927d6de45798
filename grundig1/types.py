#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
# pylint: disable=invalid-name
"""
Common types and enumerations which are used by everything.
"""

from __future__ import annotations

from enum import Enum

# Output channels, in channel-number order
CHANNELS = ("ch1", "ch2", "ch3", "ch4")

# Number of input graphic EQ bands
GEQ_BANDS = 15


class _ValueEnum(Enum):
    """
    Enum which can be looked up leniently by value or name.
    """

    @classmethod
    def parse(cls, value) -> _ValueEnum | None:
        """
        Look up a member by value, name, or string form of the value.

        :return: The member, or None if the value is not a declared member
        """
        if isinstance(value, cls):
            return value
        if value is None or isinstance(value, bool):
            return None
        for member in cls:
            if value == member.value or str(value) == str(member.value):
                return member
        if isinstance(value, str):
            key = value.upper().replace("+", "_")
            if key in cls.__members__:
                return cls.__members__[key]
        return None

    def __str__(self):
        return str(self.value)


class Route(_ValueEnum):
    """
    Input routing of an output channel
    """

    A = "A"
    B = "B"
    A_B = "A+B"


class FilterType(_ValueEnum):
    """
    Crossover filter alignment: Butterworth or Linkwitz-Riley
    """

    BW = "BW"
    LR = "LR"


class Slope(_ValueEnum):
    """
    Crossover filter slope in dB/octave
    """

    DB12 = 12
    DB18 = 18
    DB24 = 24
    DB36 = 36


class GeneratorMode(_ValueEnum):
    """
    Test signal generator selection
    """

    SINE = "sine"
    SWEEP = "sweep"
    PINK = "pink"


class PresetType(_ValueEnum):
    """
    Catalog which a fixed preset is loaded from
    """

    GRAPHIC_EQ = "graphicEq"
    CROSSOVER = "crossover"


def channel_number(channel: str) -> int | None:
    """
    Get the 1-based device channel number for a channel key

    :param channel: Channel key, "ch1" through "ch4"
    :return: Channel number, or None for an unknown key
    """
    if channel not in CHANNELS:
        return None
    return CHANNELS.index(channel) + 1
