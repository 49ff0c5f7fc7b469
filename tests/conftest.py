"""Shared fixtures for relay client tests."""

import asyncio

import pytest

from topic_relay.core.config import RelaySettings
from topic_relay.relay import Relay
from topic_relay.transport.fake import FakeTransport

SUBSCRIPTION_ID = "d5b1a9f2e4c3"


@pytest.fixture
def settings():
    return RelaySettings(default_protocol="waku", default_publish_ttl=86400)


@pytest.fixture
def transport():
    """Fake transport whose subscribe calls return SUBSCRIPTION_ID."""
    return FakeTransport(responders={"waku_subscribe": SUBSCRIPTION_ID})


@pytest.fixture
async def relay(transport, settings):
    relay = Relay(transport, settings=settings)
    await relay.init()
    yield relay
    await relay.close()


@pytest.fixture
def push_frame():
    """Build an inbound subscription push frame."""
    def _build(subscription_id, message, method="waku_subscription", frame_id=1):
        return {
            "id": frame_id,
            "jsonrpc": "2.0",
            "method": method,
            "params": {"id": subscription_id, "data": {"topic": "t", "message": message}},
        }
    return _build


@pytest.fixture
def wait_for():
    """Spin the loop until predicate() is true."""
    async def _wait(predicate, timeout=1.0):
        async def _poll():
            while not predicate():
                await asyncio.sleep(0)
        await asyncio.wait_for(_poll(), timeout)
    return _wait
