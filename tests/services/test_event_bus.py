import logging

import pytest

from seoaudit.services.event_bus import EventBus


def test_handlers_receive_payload_in_registration_order():
    bus = EventBus()
    calls = []
    bus.on("add", lambda url: calls.append(("first", url)))
    bus.on("add", lambda url: calls.append(("second", url)))
    bus.emit("add", "http://example.com")
    assert calls == [("first", "http://example.com"), ("second", "http://example.com")]


def test_off_removes_single_handler_or_all():
    bus = EventBus()
    calls = []

    def handler(url):
        calls.append(url)

    bus.on("ignore", handler)
    bus.off("ignore", handler)
    bus.emit("ignore", "a")
    bus.on("ignore", handler)
    bus.on("ignore", lambda url: calls.append("other"))
    bus.off("ignore")
    bus.emit("ignore", "b")
    assert calls == []


def test_off_unknown_handler_is_noop():
    EventBus().off("done", lambda report: None)


def test_unknown_event_rejected():
    with pytest.raises(ValueError, match="Unknown event"):
        EventBus().on("finish", lambda: None)


def test_failing_handler_does_not_block_others(caplog):
    bus = EventBus()
    seen = []

    def broken(report):
        raise RuntimeError("handler bug")

    bus.on("done", broken)
    bus.on("done", seen.append)
    caplog.set_level(logging.ERROR)
    bus.emit("done", {"issues": {}})
    assert seen == [{"issues": {}}]
    assert "handler bug" in caplog.text
