"""Tests for the command line entry point."""

import pytest

from fingerprint_bridge import cli
from fingerprint_bridge.errors import TransportError
from fingerprint_bridge.events import SamplesAcquired
from fingerprint_bridge.models import DeviceInfo, DeviceModality, DeviceTechnology, DeviceUidType, SampleFormat


class StubApi:
    instances: list["StubApi"] = []

    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.handlers = {}
        self.calls = []
        self.closed = False
        StubApi.instances.append(self)

    def on(self, name, handler):
        self.handlers[name] = handler
        return handler

    def off(self, name=None, handler=None):
        self.handlers.pop(name, None)
        return handler

    async def enumerate_devices(self):
        return ["reader-1", "reader-2"]

    async def get_device_info(self, device_uid):
        if device_uid != "reader-1":
            return None
        return DeviceInfo(
            "reader-1", DeviceUidType.VOLATILE, DeviceModality.SWIPE, DeviceTechnology.CAPACITIVE
        )

    async def start_acquisition(self, sample_format, device_uid=None):
        self.calls.append(("start", sample_format, device_uid))
        for handler in list(self.handlers.values()):
            handler(SamplesAcquired("reader-1", sample_format, ("AAEC",)))

    async def stop_acquisition(self, device_uid=None):
        self.calls.append(("stop", device_uid))

    async def aclose(self):
        self.closed = True


@pytest.fixture
def stub_api(monkeypatch, tmp_path):
    StubApi.instances = []
    monkeypatch.setattr(cli, "FingerprintsApi", StubApi)
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    return tmp_path / "fingerprint-bridge.cfg"


def test_devices_lists_ids(stub_api, capsys):
    assert cli.main(["-c", str(stub_api), "devices"]) == 0

    assert capsys.readouterr().out.splitlines() == ["reader-1", "reader-2"]
    assert StubApi.instances[0].closed is True


def test_info_prints_descriptor(stub_api, capsys):
    assert cli.main(["-c", str(stub_api), "info", "reader-1"]) == 0

    output = capsys.readouterr().out
    assert "reader-1" in output
    assert "SWIPE" in output


def test_info_unknown_device_fails(stub_api):
    assert cli.main(["-c", str(stub_api), "info", "nope"]) == 1


def test_capture_starts_and_stops_acquisition(stub_api, capsys):
    assert cli.main(["-c", str(stub_api), "capture", "--format", "png"]) == 0

    api = StubApi.instances[0]
    assert api.calls == [("start", SampleFormat.PNG_IMAGE, None), ("stop", None)]
    assert '"samples": ["AAEC"]' in capsys.readouterr().out


def test_transport_errors_exit_non_zero(stub_api, monkeypatch):
    async def broken(self):
        raise TransportError("service down")

    monkeypatch.setattr(StubApi, "enumerate_devices", broken)

    assert cli.main(["-c", str(stub_api), "devices"]) == 1


def test_show_config_prints_sections(stub_api, capsys):
    assert cli.main(["-c", str(stub_api), "show-config"]) == 0

    output = capsys.readouterr().out
    assert "[channel]" in output
    assert "[logging]" in output
