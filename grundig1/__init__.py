#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Remote control and state synchronization for the Grundig1 DSP console.
"""

from grundig1.version import __version__

__all__ = ["__version__"]
