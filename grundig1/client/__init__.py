#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Command-line client for the Grundig1 console.
"""
