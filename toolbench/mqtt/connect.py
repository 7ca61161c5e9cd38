"""MQTT CONNECT, CONNACK and the zero-length packets (PINGREQ, DISCONNECT)."""

from __future__ import annotations

from dataclasses import dataclass, field
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

# Bits of the connect flags byte.
_FLAG_CLEANSESSION = 1 << 1
_FLAG_WILL = 1 << 2
_WILL_QOS_SHIFT = 3
_FLAG_WILL_RETAIN = 1 << 5
_FLAG_PASSWORD = 1 << 6
_FLAG_USERNAME = 1 << 7

# The connack flags byte keeps "session present" in its top bit.
_CONNACK_SESSION_PRESENT = 1 << 7


@dataclass
class WillOptions:
    """The "last will and testament" published by the server for a lost client."""

    topic_name: MQTTString = None
    message: MQTTString = None
    retained: bool = False
    qos: int = 0


@dataclass
class ConnectOptions:
    """Everything carried by a CONNECT packet."""

    mqtt_version: int = 4
    client_id: MQTTString = None
    keep_alive_interval: int = 60
    cleansession: bool = True
    will_flag: bool = False
    will: WillOptions = field(default_factory=WillOptions)
    username: MQTTString = None
    password: MQTTString = None


def serialize_connect_length(options: ConnectOptions) -> int:
    """Remaining length of the CONNECT packet built from ``options``."""
    if options.mqtt_version == 3:
        length = 12
    elif options.mqtt_version == 4:
        length = 10
    else:
        length = 0
    length += string_length(options.client_id) + 2
    if options.will_flag:
        length += string_length(options.will.topic_name) + 2
        length += string_length(options.will.message) + 2
    if options.username is not None:
        length += string_length(options.username) + 2
    if options.password is not None:
        length += string_length(options.password) + 2
    return length


def serialize_connect(options: ConnectOptions, buflen: Optional[int] = None) -> bytes:
    """Encode a CONNECT packet; raise BufferTooShortError if it exceeds ``buflen``."""
    rem_len = serialize_connect_length(options)
    if buflen is not None and packet_len(rem_len) > buflen:
        raise BufferTooShortError("connect packet does not fit in the buffer")

    body = PacketWriter()
    if options.mqtt_version == 4:
        body.write_cstring("MQTT")
        body.write_byte(4)
    else:
        body.write_cstring("MQIsdp")
        body.write_byte(3)

    flags = 0
    if int(options.cleansession) & 1:
        flags |= _FLAG_CLEANSESSION
    if options.will_flag:
        flags |= _FLAG_WILL
        flags |= (int(options.will.qos) & 0x03) << _WILL_QOS_SHIFT
        if int(options.will.retained) & 1:
            flags |= _FLAG_WILL_RETAIN
    if options.username is not None:
        flags |= _FLAG_USERNAME
    if options.password is not None:
        flags |= _FLAG_PASSWORD

    body.write_byte(flags)
    body.write_int(options.keep_alive_interval)
    body.write_string(options.client_id)
    if options.will_flag:
        body.write_string(options.will.topic_name)
        body.write_string(options.will.message)
    if options.username is not None:
        body.write_string(options.username)
    if options.password is not None:
        body.write_string(options.password)

    header = FixedHeader(type=MessageType.CONNECT)
    return bytes([header.to_byte()]) + encode_length(rem_len) + body.getvalue()


def check_version(protocol: MQTTString, version: int) -> bool:
    """Whether the protocol name and version form a known combination."""
    name = b"" if protocol is None else (
        protocol.encode("utf-8") if isinstance(protocol, str) else bytes(protocol)
    )
    if version == 3:
        count = min(6, len(name))
        return name[:count] == b"MQIsdp"[:count]
    if version == 4:
        count = min(4, len(name))
        return name[:count] == b"MQTT"[:count]
    return False


def deserialize_connect(data: bytes) -> ConnectOptions:
    """Decode a CONNECT packet; strings come back as bytes."""
    reader = PacketReader(data)
    header = FixedHeader.from_byte(reader.read_byte())
    if header.type != MessageType.CONNECT:
        raise MalformedPacketError("not a CONNECT packet")
    _, used = decode_length_from(reader.data, reader.position)
    reader.position += used
    end = len(reader.data)

    protocol = reader.read_len_string(end)
    version = reader.read_byte()
    if not check_version(protocol, version):
        raise MalformedPacketError(f"unknown protocol {protocol!r} version {version}")

    flags = reader.read_byte()
    options = ConnectOptions(
        mqtt_version=version,
        cleansession=bool(flags & _FLAG_CLEANSESSION),
        keep_alive_interval=reader.read_int(),
    )
    options.client_id = reader.read_len_string(end)
    options.will_flag = bool(flags & _FLAG_WILL)
    if options.will_flag:
        options.will = WillOptions(
            qos=(flags >> _WILL_QOS_SHIFT) & 0x03,
            retained=bool(flags & _FLAG_WILL_RETAIN),
        )
        options.will.topic_name = reader.read_len_string(end)
        options.will.message = reader.read_len_string(end)

    if flags & _FLAG_USERNAME:
        if end - reader.position < 3:
            raise MalformedPacketError("username flag set but no username supplied")
        options.username = reader.read_len_string(end)
        if flags & _FLAG_PASSWORD:
            if end - reader.position < 3:
                raise MalformedPacketError("password flag set but no password supplied")
            options.password = reader.read_len_string(end)
    elif flags & _FLAG_PASSWORD:
        raise MalformedPacketError("password flag set without a username")
    return options


def serialize_connack(
    connack_rc: int, session_present: object, buflen: Optional[int] = None
) -> bytes:
    """Encode a CONNACK carrying the return code and the session-present flag."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("connack packet does not fit in the buffer")
    header = FixedHeader(type=MessageType.CONNACK)
    flags = _CONNACK_SESSION_PRESENT if int(session_present) & 1 else 0
    return bytes([header.to_byte()]) + encode_length(2) + bytes([flags, connack_rc & 0xFF])


def deserialize_connack(data: bytes) -> Tuple[bool, int]:
    """Decode a CONNACK; return the session-present flag and the return code."""
    reader = PacketReader(data)
    header = FixedHeader.from_byte(reader.read_byte())
    if header.type != MessageType.CONNACK:
        raise MalformedPacketError("not a CONNACK packet")
    rem_len, used = decode_length_from(reader.data, reader.position)
    reader.position += used
    if rem_len < 2:
        raise MalformedPacketError("connack is too short")
    flags = reader.read_byte()
    connack_rc = reader.read_byte()
    return bool(flags & _CONNACK_SESSION_PRESENT), connack_rc


def serialize_zero(packet_type: int, buflen: Optional[int] = None) -> bytes:
    """Encode a packet that is only a header byte and a zero remaining length."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("packet needs 2 bytes")
    return bytes([FixedHeader(type=packet_type).to_byte()]) + encode_length(0)


def serialize_disconnect(buflen: Optional[int] = None) -> bytes:
    """Encode a DISCONNECT."""
    return serialize_zero(MessageType.DISCONNECT, buflen)


def serialize_pingreq(buflen: Optional[int] = None) -> bytes:
    """Encode a PINGREQ."""
    return serialize_zero(MessageType.PINGREQ, buflen)