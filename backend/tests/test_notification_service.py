# backend/tests/test_notification_service.py

import asyncio

import pytest

from soiliq.services.connection_registry import ConnectionRegistry
from soiliq.services.notification_service import EVENT_TYPES, SoilEventNotifier, build_event
from test_connection_registry import FakeSocket


class ExplodingRegistry:
    async def send_to_user(self, user_id, message):
        raise RuntimeError("registry down")


def notifier_with_socket():
    registry = ConnectionRegistry()
    socket = FakeSocket()
    asyncio.run(registry.register("u1", socket))
    return SoilEventNotifier(registry), socket


def test_build_event_envelope():
    event = build_event("alert", {"urgency": "high"})
    assert event["type"] == "alert"
    assert event["data"] == {"urgency": "high"}
    assert "timestamp" in event


def test_build_event_rejects_unknown_type():
    with pytest.raises(ValueError):
        build_event("reading_exploded", {})


def test_typed_senders_use_known_event_types():
    notifier, socket = notifier_with_socket()

    async def scenario():
        await notifier.soil_reading_added("u1", {"id": "r1"})
        await notifier.soil_reading_updated("u1", {"id": "r1"})
        await notifier.soil_reading_deleted("u1", "r1")
        await notifier.health_score_updated("u1", "f1", 72)
        await notifier.alert("u1", {"urgency": "high"})
        await notifier.notification("u1", {"title": "hello"})

    asyncio.run(scenario())
    assert [m["type"] for m in socket.sent] == list(EVENT_TYPES)
    assert socket.sent[2]["data"] == {"id": "r1"}
    assert socket.sent[3]["data"] == {"farm_id": "f1", "health_score": 72}


def test_notify_reading_change_dispatch():
    notifier, socket = notifier_with_socket()
    assert asyncio.run(notifier.notify_reading_change("u1", "deleted", reading_id="r9")) is True
    assert socket.sent[-1]["type"] == "soil_reading_deleted"
    assert socket.sent[-1]["data"] == {"id": "r9"}

    with pytest.raises(ValueError):
        asyncio.run(notifier.notify_reading_change("u1", "archived"))


def test_delivery_failures_never_raise():
    notifier = SoilEventNotifier(ExplodingRegistry())
    assert asyncio.run(notifier.alert("u1", {"urgency": "high"})) is False
