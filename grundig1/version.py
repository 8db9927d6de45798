#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
__version__ = "0.3.0"
