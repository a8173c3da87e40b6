"""Tests for the multicast event dispatcher."""

import asyncio
import logging
import threading

import pytest

from fingerprint_bridge.event_bus import EventBus
from fingerprint_bridge.events import (
    CommunicationFailed,
    DeviceConnected,
    EventName,
    QualityReported,
)


def test_on_returns_the_same_handler():
    bus = EventBus()

    def handler(event):
        pass

    assert bus.on(EventName.DEVICE_CONNECTED, handler) is handler


def test_emit_invokes_handler_once_per_emission():
    bus = EventBus()
    received = []

    bus.on("DeviceConnected", received.append)
    bus.emit(DeviceConnected("dev-1"))
    bus.emit(DeviceConnected("dev-2"))

    assert received == [DeviceConnected("dev-1"), DeviceConnected("dev-2")]


def test_enum_and_string_names_are_interchangeable():
    bus = EventBus()
    received = []

    handler = bus.on(EventName.QUALITY_REPORTED, received.append)
    bus.emit(QualityReported("dev", 3))
    bus.off("QualityReported", handler)
    bus.emit(QualityReported("dev", 4))

    assert received == [QualityReported("dev", 3)]


def test_event_names_are_case_sensitive():
    bus = EventBus()
    received = []

    bus.on("deviceconnected", received.append)
    bus.emit(DeviceConnected("dev"))

    assert received == []


def test_handlers_run_in_registration_order():
    bus = EventBus()
    calls = []

    bus.on(EventName.DEVICE_CONNECTED, lambda event: calls.append("first"))
    bus.on(EventName.DEVICE_CONNECTED, lambda event: calls.append("second"))
    bus.emit(DeviceConnected("dev"))

    assert calls == ["first", "second"]


def test_only_handlers_of_the_emitted_event_run():
    bus = EventBus()
    connected, failed = [], []

    bus.on(EventName.DEVICE_CONNECTED, connected.append)
    bus.on(EventName.COMMUNICATION_FAILED, failed.append)
    bus.emit(CommunicationFailed())

    assert connected == []
    assert failed == [CommunicationFailed()]


def test_duplicate_registration_fires_twice_and_off_removes_all():
    bus = EventBus()
    received = []

    bus.on(EventName.DEVICE_CONNECTED, received.append)
    bus.on(EventName.DEVICE_CONNECTED, received.append)
    bus.emit(DeviceConnected("dev"))
    assert len(received) == 2

    bus.off(EventName.DEVICE_CONNECTED, received.append)
    bus.emit(DeviceConnected("dev"))

    assert len(received) == 2
    assert bus.handler_count(EventName.DEVICE_CONNECTED) == 0


def test_off_uses_identity_not_equality():
    bus = EventBus()
    calls = []

    class Recorder:
        def __init__(self, label):
            self.label = label

        def __eq__(self, other):
            return isinstance(other, Recorder)

        __hash__ = object.__hash__

        def __call__(self, event):
            calls.append(self.label)

    first, second = Recorder("first"), Recorder("second")
    bus.on(EventName.DEVICE_CONNECTED, first)
    bus.on(EventName.DEVICE_CONNECTED, second)

    bus.off(EventName.DEVICE_CONNECTED, first)
    bus.emit(DeviceConnected("dev"))

    assert calls == ["second"]


def test_off_unknown_handler_is_a_no_op():
    bus = EventBus()

    def handler(event):
        pass

    assert bus.off(EventName.DEVICE_CONNECTED, handler) is handler
    assert bus.off("NeverRegistered", handler) is handler


def test_bulk_off_removes_everything():
    bus = EventBus()
    received = []

    bus.on(EventName.DEVICE_CONNECTED, received.append)
    bus.on(EventName.COMMUNICATION_FAILED, received.append)
    bus.off()

    bus.emit(DeviceConnected("dev"))
    bus.emit(CommunicationFailed())

    assert received == []
    assert bus.handler_count() == 0


def test_failing_handler_does_not_stop_siblings(caplog):
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.on(EventName.DEVICE_CONNECTED, broken)
    bus.on(EventName.DEVICE_CONNECTED, received.append)

    with caplog.at_level(logging.ERROR, logger="fingerprint_bridge.event_bus"):
        bus.emit(DeviceConnected("dev-1"))
        bus.emit(DeviceConnected("dev-2"))

    assert received == [DeviceConnected("dev-1"), DeviceConnected("dev-2")]
    assert "Event handler" in caplog.text
    assert "DeviceConnected" in caplog.text


def test_failing_handler_does_not_affect_other_events(caplog):
    bus = EventBus()
    connected, failed = [], []

    def broken(event):
        raise RuntimeError("boom")

    bus.on(EventName.DEVICE_CONNECTED, broken)
    bus.on(EventName.DEVICE_CONNECTED, connected.append)
    bus.on(EventName.COMMUNICATION_FAILED, failed.append)

    with caplog.at_level(logging.ERROR, logger="fingerprint_bridge.event_bus"):
        bus.emit(DeviceConnected("dev"))
        bus.emit(CommunicationFailed())
        bus.emit(DeviceConnected("dev"))
        bus.emit(CommunicationFailed())

    assert connected == [DeviceConnected("dev"), DeviceConnected("dev")]
    assert failed == [CommunicationFailed(), CommunicationFailed()]
    assert bus.handler_count(EventName.DEVICE_CONNECTED) == 2
    assert [record.levelno for record in caplog.records] == [logging.ERROR, logging.ERROR]


def test_handler_removed_during_emission_still_sees_current_event():
    bus = EventBus()
    calls = []

    def second(event):
        calls.append("second")

    def first(event):
        calls.append("first")
        bus.off(EventName.DEVICE_CONNECTED, second)

    bus.on(EventName.DEVICE_CONNECTED, first)
    bus.on(EventName.DEVICE_CONNECTED, second)

    bus.emit(DeviceConnected("dev"))
    bus.emit(DeviceConnected("dev"))

    assert calls == ["first", "second", "first"]


def test_slot_handler_runs_before_registered_handlers():
    calls = []
    bus = EventBus(slot_lookup=lambda event: lambda e: calls.append("slot"))

    bus.on(EventName.DEVICE_CONNECTED, lambda event: calls.append("registered"))
    bus.emit(DeviceConnected("dev"))

    assert calls == ["slot", "registered"]


@pytest.mark.asyncio
async def test_coroutine_handlers_are_scheduled():
    bus = EventBus()
    done = asyncio.Event()
    received = []

    async def handler(event):
        received.append(event)
        done.set()

    bus.on(EventName.DEVICE_CONNECTED, handler)
    bus.emit(DeviceConnected("dev"))

    await asyncio.wait_for(done.wait(), timeout=1.0)
    assert received == [DeviceConnected("dev")]


def test_registry_is_safe_across_threads():
    bus = EventBus()
    errors = []
    received = []
    received_lock = threading.Lock()
    start = threading.Barrier(8)

    def record(event):
        with received_lock:
            received.append(event)

    bus.on(EventName.COMMUNICATION_FAILED, record)

    def churn(index):
        def handler(event):
            pass

        try:
            start.wait()
            for _ in range(200):
                bus.on(EventName.DEVICE_CONNECTED, handler)
                bus.emit(DeviceConnected(f"dev-{index}"))
                bus.off(EventName.DEVICE_CONNECTED, handler)
            bus.emit(CommunicationFailed())
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=churn, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert not any(thread.is_alive() for thread in threads)
    assert bus.handler_count(EventName.DEVICE_CONNECTED) == 0
    assert bus.handler_count(EventName.COMMUNICATION_FAILED) == 1
    assert len(received) == 8
