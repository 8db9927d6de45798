#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""Tests for CLI main entry point."""

import copy

import pytest

from grundig1.client.console_service import ConsoleService
from grundig1.client.main import main
from grundig1.gateway import DeviceError, WRITE_TIMEOUT
from grundig1.prefs import PreferenceManager


class MockTransport:
    """Answers like a device, without a network."""

    base_url = "http://192.168.1.42"

    def __init__(self, wire):
        self.wire = wire
        self.requests = []
        self.error = None

    def request(self, path, method="GET", body=None, timeout=WRITE_TIMEOUT):
        self.requests.append((method, path, body))
        if self.error is not None:
            raise self.error
        if path == "/api/state":
            return copy.deepcopy(self.wire)
        if path == "/api/status":
            return {"name": "Grundig1", "uptime": 42, "volume": 0.6}
        return "OK"

    def posted(self, path):
        return [body for method, p, body in self.requests if method == "POST" and p == path]


@pytest.fixture
def transport(device_wire):
    return MockTransport(device_wire)


@pytest.fixture(autouse=True)
def mock_console_service(monkeypatch, tmp_path, transport):
    """Replace the console service singleton with one on a mock transport."""
    service = ConsoleService(PreferenceManager(str(tmp_path / "preferences.yaml")), transport)
    monkeypatch.setattr("grundig1.client.console_service._service", service)
    yield service
    service.close()


class TestMain:
    """Tests for the main() entry point."""

    def test_no_command_shows_help(self, capsys):
        """Running without a command prints help."""
        assert main([]) == 0
        assert "usage: grundig1" in capsys.readouterr().out

    def test_version(self, capsys):
        """--version prints the version and exits."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert "grundig1" in capsys.readouterr().out

    def test_device_error_exit_code(self, transport, capsys):
        """Device failures give exit code 1 and an error line."""
        transport.error = DeviceError("Timeout after 5.0s: GET /api/state")
        assert main(["master"]) == 1
        assert "Timeout" in capsys.readouterr().out


class TestUrlCommand:
    """Tests for the url command."""

    def test_show_default(self, capsys):
        """The default URL is shown when none is saved."""
        assert main(["url"]) == 0
        assert capsys.readouterr().out.strip() == "http://192.168.1.42"

    def test_save(self, mock_console_service, capsys):
        """A new URL is normalized and saved."""
        assert main(["url", "http://10.0.0.7/"]) == 0
        assert "http://10.0.0.7" in capsys.readouterr().out
        assert PreferenceManager(mock_console_service.prefs.path).base_url == "http://10.0.0.7"

    def test_override(self, mock_console_service, capsys):
        """--url applies to this run only."""
        assert main(["--url", "http://dsp.local/", "url"]) == 0
        assert capsys.readouterr().out.strip() == "http://dsp.local"
        assert mock_console_service.prefs.base_url == "http://192.168.1.42"


class TestStatusCommand:
    """Tests for the status command."""

    def test_status(self, capsys):
        """The device status is printed as columns."""
        assert main(["status"]) == 0
        out = capsys.readouterr().out
        assert "uptime" in out
        assert "Grundig1" in out

    def test_unreachable(self, transport, capsys):
        """An unreachable device is reported."""
        transport.error = DeviceError("Request failed: refused")
        assert main(["status"]) == 1
        assert "refused" in capsys.readouterr().out


class TestStateCommand:
    """Tests for the state command."""

    def test_dump(self, capsys):
        """The converted state is printed as YAML."""
        assert main(["state"]) == 0
        out = capsys.readouterr().out
        assert "master: 60" in out
        assert "outputs:" in out
        assert "sync_status" not in out

    def test_section(self, capsys):
        """A single section can be selected."""
        assert main(["state", "sequencer"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("sequencer:")
        assert "interval_ms: 1500" in out


class TestMasterCommand:
    """Tests for the master command."""

    def test_query(self, capsys):
        """The master level is shown."""
        assert main(["master"]) == 0
        assert "60%" in capsys.readouterr().out

    def test_set_clamped(self, transport, capsys):
        """Levels above 100 are clamped before being sent."""
        assert main(["master", "130"]) == 0
        assert transport.posted("/api/master") == [{"levelPct": 100}]
        assert "100%" in capsys.readouterr().out

    def test_set_saves_snapshot(self, mock_console_service):
        """The resulting state is saved for offline startup."""
        assert main(["master", "25"]) == 0
        snapshot = PreferenceManager(mock_console_service.prefs.path).load_snapshot()
        assert snapshot.global_.master == 25


class TestPresetCommand:
    """Tests for the preset command."""

    def test_list(self, capsys):
        """Both catalogs are listed."""
        assert main(["preset", "--list"]) == 0
        out = capsys.readouterr().out
        assert "Bass Boost" in out
        assert "Sub 80Hz" in out

    def test_load_graphic_eq(self, transport, capsys):
        """Loading an EQ curve sends the curve with its index."""
        assert main(["preset", "geq", "1"]) == 0
        (body,) = transport.posted("/api/input/geq")
        assert body["preset"] == 1
        assert body["bands"][:3] == [6, 5, 4]
        assert "Bass Boost" in capsys.readouterr().out

    def test_load_crossover(self, transport):
        """Loading a crossover updates all outputs."""
        assert main(["preset", "xover", "1"]) == 0
        assert [body["ch"] for body in transport.posted("/api/output")] == [1, 2, 3, 4]

    def test_unknown_index(self, transport, capsys):
        """Unknown presets are refused without contacting the device."""
        assert main(["preset", "geq", "99"]) == 1
        assert transport.requests == []

    def test_missing_index(self, capsys):
        """A kind without an index is an error."""
        assert main(["preset", "xover"]) == 1


class TestWatchCommand:
    """Tests for the watch command."""

    def test_single_update(self, capsys):
        """Watch prints the status and each device update."""
        assert main(["watch", "-n", "1"]) == 0
        out = capsys.readouterr().out
        assert "Watching http://192.168.1.42" in out
        assert "connected" in out
        assert "60%" in out
