"""MQTT SUBSCRIBE and SUBACK packets, for both the client and the server side."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from toolbench.mqtt.packet import (
    BufferTooShortError,
    FixedHeader,
    MalformedPacketError,
    MessageType,
    MQTTString,
    PacketError,
    PacketReader,
    PacketWriter,
    decode_length_from,
    encode_length,
    packet_len,
    string_length,
)


@dataclass
class SubscribeRequest:
    """A decoded SUBSCRIBE packet."""

    dup: bool = False
    packet_id: int = 0
    topic_filters: List[bytes] = field(default_factory=list)
    requested_qoss: List[int] = field(default_factory=list)


def _open(data: bytes) -> Tuple[FixedHeader, PacketReader, int]:
    reader = PacketReader(data)
    header = FixedHeader.from_byte(reader.read_byte())
    rem_len, used = decode_length_from(reader.data, reader.position)
    reader.position += used
    end = reader.position + rem_len
    if end > len(reader.data):
        raise MalformedPacketError("packet is shorter than its remaining length")
    return header, reader, end


def serialize_subscribe_length(topic_filters: Sequence[MQTTString]) -> int:
    """Remaining length of a SUBSCRIBE: packet id plus each filter and its QoS byte."""
    return 2 + sum(2 + string_length(topic) + 1 for topic in topic_filters)


def serialize_subscribe(
    dup: object,
    packet_id: int,
    topic_filters: Sequence[MQTTString],
    requested_qoss: Sequence[int],
    buflen: Optional[int] = None,
) -> bytes:
    """Encode a SUBSCRIBE packet, one requested QoS per topic filter."""
    pairs = list(zip(topic_filters, requested_qoss, strict=True))
    rem_len = serialize_subscribe_length(topic_filters)
    if buflen is not None and packet_len(rem_len) > buflen:
        raise BufferTooShortError("subscribe packet does not fit in the buffer")
    header = FixedHeader(type=MessageType.SUBSCRIBE, dup=bool(dup), qos=1)
    body = PacketWriter()
    body.write_int(packet_id)
    for topic, qos in pairs:
        body.write_string(topic)
        body.write_byte(qos)
    return bytes([header.to_byte()]) + encode_length(rem_len) + body.getvalue()


def deserialize_subscribe(data: bytes, maxcount: Optional[int] = None) -> SubscribeRequest:
    """Decode a SUBSCRIBE packet holding at most ``maxcount`` filters."""
    header, reader, end = _open(data)
    if header.type != MessageType.SUBSCRIBE:
        raise MalformedPacketError("not a SUBSCRIBE packet")
    request = SubscribeRequest(dup=header.dup, packet_id=reader.read_int())
    if reader.position > end:
        raise MalformedPacketError("packet id runs past the end of the packet")
    while reader.position < end:
        if maxcount is not None and len(request.topic_filters) >= maxcount:
            raise PacketError(f"more than {maxcount} topic filters")
        topic = reader.read_len_string(end)
        if reader.position >= end:
            raise MalformedPacketError("topic filter has no requested QoS")
        request.topic_filters.append(topic)
        request.requested_qoss.append(reader.read_byte())
    return request


def serialize_suback(
    packet_id: int, granted_qoss: Sequence[int], buflen: Optional[int] = None
) -> bytes:
    """Encode a SUBACK with one granted QoS per requested filter."""
    count = len(granted_qoss)
    if buflen is not None and buflen < 2 + count:
        raise BufferTooShortError("suback packet does not fit in the buffer")
    header = FixedHeader(type=MessageType.SUBACK)
    body = PacketWriter()
    body.write_int(packet_id)
    for qos in granted_qoss:
        body.write_byte(qos)
    return bytes([header.to_byte()]) + encode_length(2 + count) + body.getvalue()


def deserialize_suback(data: bytes, maxcount: Optional[int] = None) -> Tuple[int, List[int]]:
    """Decode a SUBACK; return its packet id and granted QoS values (0x80 is failure)."""
    header, reader, end = _open(data)
    if header.type != MessageType.SUBACK:
        raise MalformedPacketError("not a SUBACK packet")
    if end - reader.position < 2:
        raise MalformedPacketError("suback has no packet id")
    packet_id = reader.read_int()
    granted: List[int] = []
    while reader.position < end:
        if maxcount is not None and len(granted) >= maxcount:
            raise PacketError(f"more than {maxcount} granted QoS values")
        granted.append(reader.read_byte())
    return packet_id, granted