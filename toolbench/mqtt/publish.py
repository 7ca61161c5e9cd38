"""MQTT PUBLISH packets and the two-byte acknowledgements that follow them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from toolbench.mqtt.packet import (
    BufferTooShortError,
    FixedHeader,
    MalformedPacketError,
    MessageType,
    MQTTString,
    PacketReader,
    PacketWriter,
    decode_length_from,
    encode_length,
    packet_len,
    string_length,
)


@dataclass
class PublishPacket:
    """A decoded PUBLISH packet."""

    dup: bool = False
    qos: int = 0
    retained: bool = False
    packet_id: int = 0
    topic: bytes = b""
    payload: bytes = b""


@dataclass
class Ack:
    """A decoded acknowledgement: PUBACK, PUBREC, PUBREL, PUBCOMP or UNSUBACK."""

    packet_type: int
    dup: bool
    packet_id: int


def _open(data: bytes) -> Tuple[FixedHeader, PacketReader, int]:
    """Read the fixed header and remaining length; return the end of the packet body."""
    reader = PacketReader(data)
    header = FixedHeader.from_byte(reader.read_byte())
    rem_len, used = decode_length_from(reader.data, reader.position)
    reader.position += used
    end = reader.position + rem_len
    if end > len(reader.data):
        raise MalformedPacketError("packet is shorter than its remaining length")
    return header, reader, end


def serialize_publish_length(qos: int, topic: MQTTString, payload_len: int) -> int:
    """Remaining length of a PUBLISH packet; the packet id is only there for QoS above 0."""
    length = 2 + string_length(topic) + payload_len
    if qos > 0:
        length += 2
    return length


def serialize_publish(
    dup: object,
    qos: int,
    retained: object,
    packet_id: int,
    topic: MQTTString,
    payload: bytes,
    buflen: Optional[int] = None,
) -> bytes:
    """Encode a PUBLISH packet; raise BufferTooShortError if it exceeds ``buflen``."""
    payload = bytes(payload)
    rem_len = serialize_publish_length(qos, topic, len(payload))
    if buflen is not None and packet_len(rem_len) > buflen:
        raise BufferTooShortError("publish packet does not fit in the buffer")
    header = FixedHeader(
        type=MessageType.PUBLISH, dup=bool(dup), qos=qos, retain=bool(retained)
    )
    body = PacketWriter()
    body.write_string(topic)
    if qos > 0:
        body.write_int(packet_id)
    return bytes([header.to_byte()]) + encode_length(rem_len) + body.getvalue() + payload


def deserialize_publish(data: bytes) -> PublishPacket:
    """Decode a PUBLISH packet."""
    header, reader, end = _open(data)
    if header.type != MessageType.PUBLISH:
        raise MalformedPacketError("not a PUBLISH packet")
    topic = reader.read_len_string(end)
    packet_id = 0
    if header.qos > 0:
        packet_id = reader.read_int()
    if reader.position > end:
        raise MalformedPacketError("packet id runs past the end of the packet")
    return PublishPacket(
        dup=header.dup,
        qos=header.qos,
        retained=header.retain,
        packet_id=packet_id,
        topic=topic,
        payload=reader.data[reader.position : end],
    )


def serialize_ack(
    packet_type: int, dup: object, packet_id: int, buflen: Optional[int] = None
) -> bytes:
    """Encode a two-byte acknowledgement; PUBREL carries QoS 1 in its header."""
    if buflen is not None and buflen < 4:
        raise BufferTooShortError("acknowledgement needs 4 bytes")
    header = FixedHeader(
        type=packet_type,
        dup=bool(dup),
        qos=1 if packet_type == MessageType.PUBREL else 0,
    )
    body = PacketWriter()
    body.write_int(packet_id)
    return bytes([header.to_byte()]) + encode_length(2) + body.getvalue()


def deserialize_ack(data: bytes) -> Ack:
    """Decode any acknowledgement; its type is taken from the header as it is."""
    header, reader, end = _open(data)
    if end - reader.position < 2:
        raise MalformedPacketError("acknowledgement has no packet id")
    return Ack(packet_type=header.type, dup=header.dup, packet_id=reader.read_int())


def serialize_puback(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Encode a PUBACK."""
    return serialize_ack(MessageType.PUBACK, False, packet_id, buflen)


def serialize_pubrel(dup: object, packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Encode a PUBREL."""
    return serialize_ack(MessageType.PUBREL, dup, packet_id, buflen)


def serialize_pubcomp(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Encode a PUBCOMP."""
    return serialize_ack(MessageType.PUBCOMP, False, packet_id, buflen)