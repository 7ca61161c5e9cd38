"""Human-readable one-line descriptions of MQTT packets."""

from __future__ import annotations

from typing import Optional, Sequence

from toolbench.mqtt.connect import (
    ConnectOptions,
    deserialize_connack,
    deserialize_connect,
)
from toolbench.mqtt.packet import FixedHeader, MessageType, MQTTString, PacketError
from toolbench.mqtt.publish import PublishPacket, deserialize_ack, deserialize_publish
from toolbench.mqtt.subscribe import deserialize_suback, deserialize_subscribe
from toolbench.mqtt.unsubscribe import deserialize_unsuback, deserialize_unsubscribe

PACKET_NAMES = (
    "RESERVED", "CONNECT", "CONNACK", "PUBLISH", "PUBACK", "PUBREC", "PUBREL",
    "PUBCOMP", "SUBSCRIBE", "SUBACK", "UNSUBSCRIBE", "UNSUBACK",
    "PINGREQ", "PINGRESP", "DISCONNECT",
)

_PREVIEW = 20
_ACK_TYPES = (
    MessageType.PUBACK,
    MessageType.PUBREC,
    MessageType.PUBREL,
    MessageType.PUBCOMP,
)
_BARE_TYPES = (MessageType.PINGREQ, MessageType.PINGRESP, MessageType.DISCONNECT)


def _text(value: MQTTString, limit: Optional[int] = None) -> str:
    """Show an MQTT string as text, cut at ``limit`` bytes and at the first NUL."""
    if value is None:
        return ""
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if limit is not None:
        data = data[:limit]
    data = data.split(b"\0", 1)[0]
    return data.decode("utf-8", errors="replace")


def _byte_length(value: MQTTString) -> int:
    if value is None:
        return 0
    return len(value.encode("utf-8") if isinstance(value, str) else bytes(value))


def packet_name(packet_type: int) -> str:
    """Name of a packet type; 0 is RESERVED."""
    if not 0 <= packet_type < len(PACKET_NAMES):
        raise ValueError(f"unknown packet type {packet_type}")
    return PACKET_NAMES[packet_type]


def format_connect(options: ConnectOptions) -> str:
    """Describe a CONNECT packet."""
    parts = [
        "CONNECT MQTT version %d, client id %s, clean session %d, keep alive %d"
        % (
            int(options.mqtt_version),
            _text(options.client_id),
            int(options.cleansession),
            int(options.keep_alive_interval),
        )
    ]
    if options.will_flag:
        parts.append(
            ", will QoS %d, will retain %d, will topic %s, will message %s"
            % (
                int(options.will.qos),
                int(options.will.retained),
                _text(options.will.topic_name),
                _text(options.will.message),
            )
        )
    if _byte_length(options.username) > 0:
        parts.append(", user name %s" % _text(options.username))
    if _byte_length(options.password) > 0:
        parts.append(", password %s" % _text(options.password))
    return "".join(parts)


def format_connack(connack_rc: int, session_present: object) -> str:
    """Describe a CONNACK packet."""
    return "CONNACK session present %d, rc %d" % (int(bool(session_present)), connack_rc)


def format_publish(packet: PublishPacket) -> str:
    """Describe a PUBLISH packet; topic and payload are shown up to 20 bytes."""
    return (
        "PUBLISH dup %d, QoS %d, retained %d, packet id %d, topic %s, "
        "payload length %d, payload %s"
        % (
            int(bool(packet.dup)),
            packet.qos,
            int(bool(packet.retained)),
            packet.packet_id,
            _text(packet.topic, _PREVIEW),
            len(packet.payload),
            _text(packet.payload, _PREVIEW),
        )
    )


def format_ack(packet_type: int, dup: object, packet_id: int) -> str:
    """Describe an acknowledgement packet."""
    text = "%s, packet id %d" % (packet_name(packet_type), packet_id)
    if dup:
        text += ", dup %d" % int(dup)
    return text


def format_subscribe(
    dup: object,
    packet_id: int,
    count: int,
    topic_filters: Sequence[MQTTString],
    requested_qoss: Sequence[int],
) -> str:
    """Describe a SUBSCRIBE packet by its first topic filter."""
    if not topic_filters or not requested_qoss:
        raise ValueError("at least one topic filter is needed")
    return "SUBSCRIBE dup %d, packet id %d count %d topic %s qos %d" % (
        int(bool(dup)),
        packet_id,
        count,
        _text(topic_filters[0]),
        requested_qoss[0],
    )


def format_suback(packet_id: int, count: int, granted_qoss: Sequence[int]) -> str:
    """Describe a SUBACK packet by its first granted QoS."""
    if not granted_qoss:
        raise ValueError("at least one granted QoS is needed")
    return "SUBACK packet id %d count %d granted qos %d" % (
        packet_id,
        count,
        granted_qoss[0],
    )


def format_unsubscribe(
    dup: object, packet_id: int, count: int, topic_filters: Sequence[MQTTString]
) -> str:
    """Describe an UNSUBSCRIBE packet by its first topic filter."""
    if not topic_filters:
        raise ValueError("at least one topic filter is needed")
    return "UNSUBSCRIBE dup %d, packet id %d count %d topic %s" % (
        int(bool(dup)),
        packet_id,
        count,
        _text(topic_filters[0]),
    )


def _describe_common(packet_type: int, data: bytes) -> Optional[str]:
    """Packets described the same way in both directions; None if not one of them."""
    if packet_type == MessageType.PUBLISH:
        return format_publish(deserialize_publish(data))
    if packet_type in _ACK_TYPES:
        ack = deserialize_ack(data)
        return format_ack(ack.packet_type, ack.dup, ack.packet_id)
    if packet_type in _BARE_TYPES:
        return packet_name(packet_type)
    return None


def to_client_string(data: bytes) -> str:
    """Describe a packet a client receives; empty if it is not one or cannot be decoded."""
    try:
        if not data:
            return ""
        packet_type = FixedHeader.from_byte(data[0]).type
        if packet_type == MessageType.CONNACK:
            session_present, connack_rc = deserialize_connack(data)
            return format_connack(connack_rc, session_present)
        if packet_type == MessageType.SUBACK:
            packet_id, granted = deserialize_suback(data)
            return format_suback(packet_id, len(granted), granted)
        if packet_type == MessageType.UNSUBACK:
            return format_ack(MessageType.UNSUBACK, False, deserialize_unsuback(data))
        return _describe_common(packet_type, data) or ""
    except (PacketError, ValueError):
        return ""


def to_server_string(data: bytes) -> str:
    """Describe a packet a server receives; empty if it is not one or cannot be decoded."""
    try:
        if not data:
            return ""
        packet_type = FixedHeader.from_byte(data[0]).type
        if packet_type == MessageType.CONNECT:
            return format_connect(deserialize_connect(data))
        if packet_type == MessageType.SUBSCRIBE:
            request = deserialize_subscribe(data, 1)
            return format_subscribe(
                request.dup,
                request.packet_id,
                len(request.topic_filters),
                request.topic_filters,
                request.requested_qoss,
            )
        if packet_type == MessageType.UNSUBSCRIBE:
            request = deserialize_unsubscribe(data, 1)
            return format_unsubscribe(
                request.dup,
                request.packet_id,
                len(request.topic_filters),
                request.topic_filters,
            )
        return _describe_common(packet_type, data) or ""
    except (PacketError, ValueError):
        return ""