"""MQTT packet primitives: fixed header, remaining length, strings and packet reading."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

MAX_REMAINING_LENGTH_BYTES = 4

MQTTString = Union[str, bytes, bytearray, None]


class MessageType(enum.IntEnum):
    """Control packet types carried in the high nibble of the header byte."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14


class PacketError(Exception):
    """Base class for packet encoding and decoding errors."""


class BufferTooShortError(PacketError):
    """The packet does not fit in the buffer size allowed for it."""


class MalformedPacketError(PacketError):
    """The data does not form a complete, well-formed packet."""


def _as_bytes(value: MQTTString) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass
class FixedHeader:
    """The first byte of every packet: type, dup flag, QoS and retain flag."""

    type: int = 0
    dup: bool = False
    qos: int = 0
    retain: bool = False

    def to_byte(self) -> int:
        """Pack the fields into one byte."""
        return (
            ((int(self.type) & 0x0F) << 4)
            | ((1 if self.dup else 0) << 3)
            | ((int(self.qos) & 0x03) << 1)
            | (1 if self.retain else 0)
        )

    @classmethod
    def from_byte(cls, value: int) -> FixedHeader:
        """Unpack a header byte."""
        value &= 0xFF
        return cls(
            type=value >> 4,
            dup=bool((value >> 3) & 1),
            qos=(value >> 1) & 0x03,
            retain=bool(value & 1),
        )


def encode_length(length: int) -> bytes:
    """Encode a remaining length as MQTT variable-length bytes."""
    if length < 0:
        raise ValueError("remaining length must not be negative")
    out = bytearray()
    while True:
        digit = length % 128
        length //= 128
        if length > 0:
            digit |= 0x80
        out.append(digit)
        if length == 0:
            return bytes(out)


def decode_length(getchar: Callable[[], Optional[int]]) -> Tuple[int, int]:
    """Decode a remaining length from ``getchar``, which yields bytes or None at the end.

    Returns the value and the number of bytes consumed.
    """
    value = 0
    multiplier = 1
    count = 0
    while True:
        count += 1
        if count > MAX_REMAINING_LENGTH_BYTES:
            raise MalformedPacketError("remaining length uses more than 4 bytes")
        byte = getchar()
        if byte is None:
            raise MalformedPacketError("remaining length is truncated")
        value += (byte & 127) * multiplier
        multiplier *= 128
        if not byte & 128:
            return value, count


def decode_length_from(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a remaining length stored in ``buf`` at ``offset``."""
    source = iter(bytes(buf[offset : offset + MAX_REMAINING_LENGTH_BYTES]))
    return decode_length(lambda: next(source, None))


def packet_len(rem_len: int) -> int:
    """Total packet size for a remaining length: header byte, length field and body."""
    rem_len += 1
    if rem_len < 128:
        rem_len += 1
    elif rem_len < 16384:
        rem_len += 2
    elif rem_len < 2097151:
        rem_len += 3
    else:
        rem_len += 4
    return rem_len


def string_length(value: MQTTString) -> int:
    """Length in bytes of an MQTT string; a missing string has length 0."""
    return len(_as_bytes(value))


def strings_equal(a: MQTTString, b: MQTTString) -> bool:
    """Whether two MQTT strings hold the same bytes."""
    return _as_bytes(a) == _as_bytes(b)


@dataclass
class PacketReader:
    """Reads big-endian integers and length-prefixed strings from packet bytes."""

    data: bytes
    position: int = 0

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    def read_byte(self) -> int:
        """Next byte as an unsigned integer."""
        if self.position >= len(self.data):
            raise MalformedPacketError("read past the end of the packet")
        value = self.data[self.position]
        self.position += 1
        return value

    def read_int(self) -> int:
        """Next two bytes as a big-endian unsigned integer."""
        if self.position + 2 > len(self.data):
            raise MalformedPacketError("read past the end of the packet")
        high, low = self.data[self.position], self.data[self.position + 1]
        self.position += 2
        return 256 * high + low

    def read_len_string(self, end: Optional[int] = None) -> bytes:
        """Next length-prefixed string, which must end no later than ``end``."""
        limit = len(self.data) if end is None else min(end, len(self.data))
        if limit - self.position <= 1:
            raise MalformedPacketError("no room for a string length")
        length = self.read_int()
        if self.position + length > limit:
            raise MalformedPacketError("string runs past the end of the data")
        value = self.data[self.position : self.position + length]
        self.position += length
        return value


class PacketWriter:
    """Accumulates bytes, big-endian integers and length-prefixed strings."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def write_byte(self, value: int) -> None:
        """Append the low byte of ``value``."""
        self._buffer.append(value & 0xFF)

    def write_int(self, value: int) -> None:
        """Append ``value`` as two big-endian bytes."""
        value &= 0xFFFF
        self._buffer.append(value >> 8)
        self._buffer.append(value & 0xFF)

    def write_cstring(self, value: str) -> None:
        """Append a text string with its two-byte length."""
        data = value.encode("utf-8")
        self.write_int(len(data))
        self._buffer.extend(data)

    def write_string(self, value: MQTTString) -> None:
        """Append an MQTT string; a missing string is written as length 0."""
        data = _as_bytes(value)
        self.write_int(len(data))
        self._buffer.extend(data)

    def getvalue(self) -> bytes:
        """Everything written so far."""
        return bytes(self._buffer)


def read_packet(getfn: Callable[[int], bytes], buflen: int) -> Tuple[int, bytes]:
    """Read one whole packet using ``getfn(count)``; return its type and bytes.

    The packet, including its header and length field, may be at most
    ``buflen`` bytes long.
    """
    header = getfn(1)
    if len(header) != 1:
        raise MalformedPacketError("no header byte")

    def getchar() -> Optional[int]:
        chunk = getfn(1)
        return chunk[0] if len(chunk) == 1 else None

    rem_len, _ = decode_length(getchar)
    encoded = encode_length(rem_len)
    if 1 + len(encoded) + rem_len > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")
    body = getfn(rem_len) if rem_len else b""
    if len(body) != rem_len:
        raise MalformedPacketError("packet body is truncated")
    packet = bytes(header) + encoded + bytes(body)
    return FixedHeader.from_byte(packet[0]).type, packet


class PacketTransport:
    """Reads packets piece by piece from a source that may have nothing ready yet.

    ``getfn(count)`` returns up to ``count`` bytes, an empty result meaning
    "call again later"; it raises on errors.
    """

    def __init__(self, getfn: Callable[[int], bytes]) -> None:
        self.getfn = getfn
        self._reset()

    def _reset(self) -> None:
        self.state = 0
        self._buffer = bytearray()
        self._length_bytes = 0
        self._multiplier = 1
        self._rem_len = 0

    def read_packet_nb(self, buflen: int) -> Optional[Tuple[int, bytes]]:
        """Advance the read; return ``(type, packet)`` when complete, else None."""
        try:
            return self._advance(buflen)
        except Exception:
            self._reset()
            raise

    def _advance(self, buflen: int) -> Optional[Tuple[int, bytes]]:
        if self.state not in (0, 1, 2):
            self._reset()
        if self.state == 0:
            chunk = self.getfn(1)
            if not chunk:
                return None
            self._reset()
            self._buffer.extend(chunk[:1])
            self.state = 1
        if self.state == 1:
            while True:
                if self._length_bytes >= MAX_REMAINING_LENGTH_BYTES:
                    raise MalformedPacketError("remaining length uses more than 4 bytes")
                chunk = self.getfn(1)
                if not chunk:
                    return None
                byte = chunk[0]
                self._length_bytes += 1
                self._rem_len += (byte & 127) * self._multiplier
                self._multiplier *= 128
                if not byte & 128:
                    break
            self._buffer.extend(encode_length(self._rem_len))
            if len(self._buffer) + self._rem_len > buflen:
                raise BufferTooShortError("packet does not fit in the buffer")
            self.state = 2
        if self._rem_len > 0:
            chunk = self.getfn(self._rem_len)
            if not chunk:
                return None
            chunk = chunk[: self._rem_len]
            self._buffer.extend(chunk)
            self._rem_len -= len(chunk)
            if self._rem_len:
                return None
        packet = bytes(self._buffer)
        self._reset()
        return FixedHeader.from_byte(packet[0]).type, packet