import pytest

from toolbench.mqtt.packet import (
    BufferTooShortError,
    FixedHeader,
    MalformedPacketError,
    MessageType,
    PacketError,
    packet_len,
)
from toolbench.mqtt.subscribe import (
    SubscribeRequest,
    deserialize_suback,
    deserialize_subscribe,
    serialize_suback,
    serialize_subscribe,
    serialize_subscribe_length,
)


def test_subscribe_wire_bytes():
    assert serialize_subscribe(False, 1, ["a"], [1]) == b"\x82\x06\x00\x01\x00\x01a\x01"


def test_subscribe_header_flags():
    header = FixedHeader.from_byte(serialize_subscribe(True, 2, ["x"], [0])[0])
    assert header.type == MessageType.SUBSCRIBE
    assert header.qos == 1
    assert header.dup is True


def test_subscribe_round_trip():
    data = serialize_subscribe(True, 300, ["home/+/temp", b"alarm/#"], [0, 2])
    request = deserialize_subscribe(data)
    assert request == SubscribeRequest(
        dup=True,
        packet_id=300,
        topic_filters=[b"home/+/temp", b"alarm/#"],
        requested_qoss=[0, 2],
    )


def test_subscribe_size_matches_packet_len():
    filters = ["one", "two/three", "four/+/five"]
    data = serialize_subscribe(False, 9, filters, [0, 1, 2])
    assert len(data) == packet_len(serialize_subscribe_length(filters))


def test_subscribe_mismatched_lists():
    with pytest.raises(ValueError):
        serialize_subscribe(False, 1, ["a", "b"], [0])


def test_subscribe_buffer_limit():
    needed = packet_len(serialize_subscribe_length(["topic"]))
    with pytest.raises(BufferTooShortError):
        serialize_subscribe(False, 1, ["topic"], [1], needed - 1)
    assert len(serialize_subscribe(False, 1, ["topic"], [1], needed)) == needed


def test_deserialize_subscribe_maxcount():
    data = serialize_subscribe(False, 1, ["a", "b"], [0, 1])
    with pytest.raises(PacketError):
        deserialize_subscribe(data, 1)
    assert len(deserialize_subscribe(data, 2).topic_filters) == 2


def test_deserialize_subscribe_wrong_type():
    with pytest.raises(MalformedPacketError):
        deserialize_subscribe(serialize_suback(1, [0]))


def test_deserialize_subscribe_missing_qos():
    with pytest.raises(MalformedPacketError):
        deserialize_subscribe(b"\x82\x05\x00\x01\x00\x01a")


def test_suback_wire_bytes():
    assert serialize_suback(7, [0, 1, 2]) == b"\x90\x05\x00\x07\x00\x01\x02"


def test_suback_round_trip_with_failure_code():
    packet_id, granted = deserialize_suback(serialize_suback(65535, [2, 0x80]))
    assert packet_id == 65535
    assert granted == [2, 0x80]


def test_suback_buffer_limit():
    granted = [0, 1, 2]
    with pytest.raises(BufferTooShortError):
        serialize_suback(1, granted, 2 + len(granted) - 1)
    assert deserialize_suback(serialize_suback(1, granted, 2 + len(granted)))[1] == granted


def test_deserialize_suback_maxcount():
    data = serialize_suback(4, [0, 1])
    with pytest.raises(PacketError):
        deserialize_suback(data, 1)
    assert deserialize_suback(data, 2) == (4, [0, 1])


def test_deserialize_suback_too_short():
    with pytest.raises(MalformedPacketError):
        deserialize_suback(bytes([0x90, 0x01, 0x00]))


def test_deserialize_suback_wrong_type():
    with pytest.raises(MalformedPacketError):
        deserialize_suback(serialize_subscribe(False, 1, ["a"], [0]))