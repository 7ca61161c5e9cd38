import pytest

from toolbench.mqtt.packet import (
    BufferTooShortError,
    FixedHeader,
    MalformedPacketError,
    MessageType,
    PacketError,
    packet_len,
)
from toolbench.mqtt.publish import serialize_puback
from toolbench.mqtt.unsubscribe import (
    UnsubscribeRequest,
    deserialize_unsubscribe,
    deserialize_unsuback,
    serialize_unsubscribe,
    serialize_unsubscribe_length,
    serialize_unsuback,
)


def test_unsubscribe_wire_bytes():
    assert serialize_unsubscribe(False, 1, ["a"]) == bytes([0xA2, 5, 0, 1, 0, 1, ord("a")])


def test_unsubscribe_header_has_qos_one_and_dup():
    header = FixedHeader.from_byte(serialize_unsubscribe(True, 3, ["t"])[0])
    assert header.type == MessageType.UNSUBSCRIBE
    assert header.qos == 1
    assert header.dup is True


def test_unsubscribe_length_matches_packet():
    topics = ["ab", "c/d", b"xyz"]
    packet = serialize_unsubscribe(False, 9, topics)
    assert packet_len(serialize_unsubscribe_length(topics)) == len(packet)


def test_unsubscribe_round_trip():
    packet = serialize_unsubscribe(True, 1234, ["sensors/#", "a/+/b"])
    request = deserialize_unsubscribe(packet)
    assert request == UnsubscribeRequest(
        dup=True, packet_id=1234, topic_filters=[b"sensors/#", b"a/+/b"]
    )


def test_unsubscribe_buffer_too_short():
    topics = ["topic"]
    needed = packet_len(serialize_unsubscribe_length(topics))
    assert len(serialize_unsubscribe(False, 1, topics, needed)) == needed
    with pytest.raises(BufferTooShortError):
        serialize_unsubscribe(False, 1, topics, needed - 1)


def test_deserialize_unsubscribe_maxcount():
    packet = serialize_unsubscribe(False, 2, ["a", "b"])
    assert len(deserialize_unsubscribe(packet, 2).topic_filters) == 2
    with pytest.raises(PacketError):
        deserialize_unsubscribe(packet, 1)


def test_deserialize_unsubscribe_wrong_type():
    with pytest.raises(MalformedPacketError):
        deserialize_unsubscribe(serialize_unsuback(1))


def test_deserialize_unsubscribe_truncated():
    packet = serialize_unsubscribe(False, 2, ["abc"])
    with pytest.raises(MalformedPacketError):
        deserialize_unsubscribe(packet[:-1])


def test_unsuback_wire_bytes():
    assert serialize_unsuback(7) == b"\xb0\x02\x00\x07"


def test_unsuback_round_trip():
    assert deserialize_unsuback(serialize_unsuback(65535)) == 65535


def test_unsuback_buffer_too_short():
    with pytest.raises(BufferTooShortError):
        serialize_unsuback(1, 1)


def test_deserialize_unsuback_rejects_other_ack():
    with pytest.raises(MalformedPacketError):
        deserialize_unsuback(serialize_puback(4))