"""MQTT UNSUBSCRIBE and UNSUBACK packets, for both the client and the server side."""

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
from toolbench.mqtt.publish import deserialize_ack


@dataclass
class UnsubscribeRequest:
    """A decoded UNSUBSCRIBE packet."""

    dup: bool = False
    packet_id: int = 0
    topic_filters: List[bytes] = field(default_factory=list)


def _open(data: bytes) -> Tuple[FixedHeader, PacketReader, int]:
    reader = PacketReader(data)
    header = FixedHeader.from_byte(reader.read_byte())
    rem_len, used = decode_length_from(reader.data, reader.position)
    reader.position += used
    end = reader.position + rem_len
    if end > len(reader.data):
        raise MalformedPacketError("packet is shorter than its remaining length")
    return header, reader, end


def serialize_unsubscribe_length(topic_filters: Sequence[MQTTString]) -> int:
    """Remaining length of an UNSUBSCRIBE: packet id plus each length-prefixed filter."""
    return 2 + sum(2 + string_length(topic) for topic in topic_filters)


def serialize_unsubscribe(
    dup: object,
    packet_id: int,
    topic_filters: Sequence[MQTTString],
    buflen: Optional[int] = None,
) -> bytes:
    """Encode an UNSUBSCRIBE packet; raise BufferTooShortError if it exceeds ``buflen``."""
    rem_len = serialize_unsubscribe_length(topic_filters)
    if buflen is not None and packet_len(rem_len) > buflen:
        raise BufferTooShortError("unsubscribe packet does not fit in the buffer")
    header = FixedHeader(type=MessageType.UNSUBSCRIBE, dup=bool(dup), qos=1)
    body = PacketWriter()
    body.write_int(packet_id)
    for topic in topic_filters:
        body.write_string(topic)
    return bytes([header.to_byte()]) + encode_length(rem_len) + body.getvalue()


def deserialize_unsubscribe(
    data: bytes, maxcount: Optional[int] = None
) -> UnsubscribeRequest:
    """Decode an UNSUBSCRIBE packet holding at most ``maxcount`` filters."""
    header, reader, end = _open(data)
    if header.type != MessageType.UNSUBSCRIBE:
        raise MalformedPacketError("not an UNSUBSCRIBE packet")
    request = UnsubscribeRequest(dup=header.dup, packet_id=reader.read_int())
    if reader.position > end:
        raise MalformedPacketError("packet id runs past the end of the packet")
    while reader.position < end:
        if maxcount is not None and len(request.topic_filters) >= maxcount:
            raise PacketError(f"more than {maxcount} topic filters")
        request.topic_filters.append(reader.read_len_string(end))
    return request


def serialize_unsuback(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Encode an UNSUBACK."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("unsuback packet does not fit in the buffer")
    header = FixedHeader(type=MessageType.UNSUBACK)
    body = PacketWriter()
    body.write_int(packet_id)
    return bytes([header.to_byte()]) + encode_length(2) + body.getvalue()


def deserialize_unsuback(data: bytes) -> int:
    """Decode an UNSUBACK and return its packet id."""
    ack = deserialize_ack(data)
    if ack.packet_type != MessageType.UNSUBACK:
        raise MalformedPacketError("not an UNSUBACK packet")
    return ack.packet_id