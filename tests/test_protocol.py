"""Unit tests for relay protocol lookup and JSON-RPC frame helpers."""

import pytest

from topic_relay.relay.exceptions import UnsupportedProtocol
from topic_relay.relay.protocol import (
    RELAY_JSONRPC,
    RPCRequest,
    RPCResponse,
    format_request,
    format_result,
    get_relay_protocol,
    is_request,
    is_subscription_push,
    payload_id,
)


@pytest.mark.parametrize("protocol", ["waku", "irn", "iridium"])
def test_known_protocol_method_names(protocol):
    jsonrpc = get_relay_protocol(protocol)
    assert jsonrpc.publish == f"{protocol}_publish"
    assert jsonrpc.subscribe == f"{protocol}_subscribe"
    assert jsonrpc.unsubscribe == f"{protocol}_unsubscribe"
    assert jsonrpc.subscription == f"{protocol}_subscription"


def test_unknown_protocol_raises():
    with pytest.raises(UnsupportedProtocol) as exc_info:
        get_relay_protocol("bridge")
    assert exc_info.value.protocol == "bridge"
    assert "bridge" in str(exc_info.value)


def test_descriptors_are_immutable():
    with pytest.raises(Exception):
        RELAY_JSONRPC["waku"].publish = "other_publish"


def test_format_request_shape():
    request = format_request("waku_subscribe", {"topic": "abc"})
    assert request["jsonrpc"] == "2.0"
    assert request["method"] == "waku_subscribe"
    assert request["params"] == {"topic": "abc"}
    assert isinstance(request["id"], int)


def test_format_request_keeps_explicit_id():
    assert format_request("waku_publish", {}, id=7)["id"] == 7


def test_payload_ids_are_unique_enough():
    ids = {payload_id() for _ in range(50)}
    assert len(ids) > 1


def test_format_result_shape():
    assert format_result(3, True) == {"id": 3, "jsonrpc": "2.0", "result": True}


def test_frame_classification():
    push = {"id": 1, "jsonrpc": "2.0", "method": "waku_subscription", "params": {}}
    request = {"id": 2, "jsonrpc": "2.0", "method": "waku_publish", "params": {}}
    response = {"id": 2, "jsonrpc": "2.0", "result": True}

    assert is_request(push) and is_subscription_push(push)
    assert is_request(request) and not is_subscription_push(request)
    assert not is_request(response)
    assert not is_subscription_push(response)
    assert not is_subscription_push("not a frame")


def test_rpc_dataclasses_to_dict():
    request = RPCRequest(method="irn_publish", params={"topic": "x"}, id=9)
    assert request.to_dict() == {"id": 9, "jsonrpc": "2.0", "method": "irn_publish", "params": {"topic": "x"}}
    assert RPCResponse(id=9, result=True).to_dict() == {"id": 9, "jsonrpc": "2.0", "result": True}
