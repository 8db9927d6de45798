#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Persistent client preferences.

A single YAML file holds the device base URL, sync tuning, and the last
known console state, which is used as a fallback when the device cannot
be reached at startup. The file is rewritten atomically; a missing or
unreadable file simply yields defaults.
"""

from __future__ import annotations

import os
import tempfile
import time
from collections.abc import Mapping
from datetime import datetime
from typing import NamedTuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from grundig1.gateway import DEFAULT_BASE_URL, normalize_base_url
from grundig1.log import Log
from grundig1.state import CanonicalState, state_from_dict, state_to_dict
from grundig1.util import to_number

CONFDIR = os.environ.get(
    "GRUNDIG1_CONFIG_DIR", os.path.join(os.path.expanduser("~"), ".config", "grundig1")
)
CONFFILE = "preferences.yaml"


class SyncConfig(NamedTuple):
    """
    Timing of the sync controller, in seconds
    """

    push_delay: float = 0.3
    poll_interval: float = 5.0
    save_delay: float = 1.0
    realtime: bool = False

    @classmethod
    def from_dict(cls, data) -> SyncConfig:
        """
        Parse tuning values, keeping the default for anything missing,
        malformed or not positive.
        """
        default = cls()
        if not isinstance(data, Mapping):
            return default

        def seconds(key):
            value = to_number(data.get(key))
            if value is None or value <= 0 or value == float("inf"):
                return getattr(default, key)
            return value

        realtime = data.get("realtime")
        return cls(
            push_delay=seconds("push_delay"),
            poll_interval=seconds("poll_interval"),
            save_delay=seconds("save_delay"),
            realtime=realtime if isinstance(realtime, bool) else default.realtime,
        )


class PreferenceManager:
    """
    Reads and writes the preferences file.

    :param path: Location of the file, defaults to preferences.yaml in
                 CONFDIR (~/.config/grundig1, or $GRUNDIG1_CONFIG_DIR)
    """

    def __init__(self, path: str | None = None):
        if path is None:
            path = os.path.join(CONFDIR, CONFFILE)
        self._path = path
        self._logger = Log.get("grundig1.prefs")
        self._yaml = YAML(typ="safe", pure=True)
        self._yaml.default_flow_style = False
        self._data = self._load()

    @property
    def path(self) -> str:
        return self._path

    def _load(self) -> dict:
        if not os.path.isfile(self._path):
            return {}
        try:
            with open(self._path, encoding="utf-8") as prefs_file:
                data = self._yaml.load(prefs_file)
        except (OSError, YAMLError) as err:
            self._logger.warning("Ignoring unreadable preferences %s: %s", self._path, err)
            return {}

        if not isinstance(data, dict):
            self._logger.warning("Ignoring malformed preferences %s", self._path)
            return {}
        return data

    @staticmethod
    def _yaml_header() -> str:
        header = "#\n#  Grundig1 preferences\n#\n"
        header += f"#  Updated on: {datetime.now().isoformat(' ')}\n"
        header += "#\n"
        return header

    def _save(self) -> bool:
        self._data["last_updated"] = time.time()
        dirname = os.path.dirname(self._path) or "."
        try:
            os.makedirs(dirname, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=dirname, delete=False, encoding="utf-8"
            ) as temp:
                temp.write(self._yaml_header())
                self._yaml.dump(self._data, temp)
                tempname = temp.name
            os.replace(tempname, self._path)
        except (OSError, YAMLError) as err:
            self._logger.warning("Unable to save preferences %s: %s", self._path, err)
            return False
        return True

    @property
    def last_updated(self) -> float | None:
        return to_number(self._data.get("last_updated"))

    # ─────────────────────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        """
        Base URL of the device, e.g. http://192.168.1.42
        """
        url = self._data.get("base_url")
        if isinstance(url, str) and url.strip():
            return normalize_base_url(url)
        return DEFAULT_BASE_URL

    @base_url.setter
    def base_url(self, url: str):
        self._data["base_url"] = normalize_base_url(url)
        self._save()

    @property
    def sync_config(self) -> SyncConfig:
        return SyncConfig.from_dict(self._data.get("sync"))

    @sync_config.setter
    def sync_config(self, config: SyncConfig):
        self._data["sync"] = dict(config._asdict())
        self._save()

    # ─────────────────────────────────────────────────────────────────────────
    # State snapshot
    # ─────────────────────────────────────────────────────────────────────────

    def load_snapshot(self) -> CanonicalState | None:
        """
        Restore the last saved console state

        :return: The state, or None if none was saved or it is unusable
        """
        data = self._data.get("snapshot")
        if data is None:
            return None
        try:
            return state_from_dict(data)
        except (ValueError, TypeError) as err:
            self._logger.warning("Ignoring unusable state snapshot: %s", err)
            return None

    def save_snapshot(self, state: CanonicalState) -> bool:
        """
        Save the console state. The sync status is not included.

        :return: True if the file was written
        """
        self._data["snapshot"] = state_to_dict(state)
        return self._save()
