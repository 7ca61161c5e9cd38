import pytest

from toolbench.mqtt.connect import (
    ConnectOptions,
    WillOptions,
    check_version,
    deserialize_connack,
    deserialize_connect,
    serialize_connack,
    serialize_connect,
    serialize_connect_length,
    serialize_disconnect,
    serialize_pingreq,
    serialize_zero,
)
from toolbench.mqtt.packet import (
    BufferTooShortError,
    FixedHeader,
    MalformedPacketError,
    MessageType,
    packet_len,
)


def test_minimal_connect_wire_bytes():
    packet = serialize_connect(ConnectOptions(client_id="c"))
    assert packet == b"\x10\x0d\x00\x04MQTT\x04\x02\x00\x3c\x00\x01c"


def test_connect_length_matches_packet():
    options = ConnectOptions(client_id="client-1", username="user")
    packet = serialize_connect(options)
    assert len(packet) == packet_len(serialize_connect_length(options))
    assert FixedHeader.from_byte(packet[0]).type == MessageType.CONNECT


def test_connect_version_3_uses_longer_protocol_name():
    v3 = ConnectOptions(mqtt_version=3, client_id="c")
    v4 = ConnectOptions(mqtt_version=4, client_id="c")
    assert serialize_connect_length(v3) - serialize_connect_length(v4) == 2
    assert b"MQIsdp" in serialize_connect(v3)


def test_connect_round_trip_full():
    password = "password"
    options = ConnectOptions(
        client_id="dev",
        keep_alive_interval=30,
        cleansession=False,
        will_flag=True,
        will=WillOptions(topic_name="last/will", message="gone", retained=True, qos=2),
        username="user",
        password=password,
    )
    decoded = deserialize_connect(serialize_connect(options))
    assert decoded.mqtt_version == 4
    assert decoded.client_id == b"dev"
    assert decoded.keep_alive_interval == 30
    assert decoded.cleansession is False
    assert decoded.will_flag is True
    assert decoded.will.topic_name == b"last/will"
    assert decoded.will.message == b"gone"
    assert decoded.will.retained is True
    assert decoded.will.qos == 2
    assert decoded.username == b"user"
    assert decoded.password == b"password"


def test_connect_round_trip_minimal():
    decoded = deserialize_connect(serialize_connect(ConnectOptions(client_id="abc")))
    assert decoded.client_id == b"abc"
    assert decoded.cleansession is True
    assert decoded.will_flag is False
    assert decoded.username is None
    assert decoded.password is None


def test_connect_buffer_limit():
    options = ConnectOptions(client_id="c")
    size = packet_len(serialize_connect_length(options))
    assert len(serialize_connect(options, size)) == size
    with pytest.raises(BufferTooShortError):
        serialize_connect(options, size - 1)


def test_deserialize_connect_rejects_other_type():
    with pytest.raises(MalformedPacketError):
        deserialize_connect(serialize_pingreq())


def test_deserialize_connect_rejects_password_without_username():
    password = "password"
    packet = bytearray(serialize_connect(ConnectOptions(client_id="c", password=password)))
    with pytest.raises(MalformedPacketError):
        deserialize_connect(bytes(packet))


def test_deserialize_connect_rejects_unknown_version():
    packet = bytearray(serialize_connect(ConnectOptions(client_id="c")))
    packet[8] = 5  # protocol level byte after "MQTT"
    with pytest.raises(MalformedPacketError):
        deserialize_connect(bytes(packet))


@pytest.mark.parametrize(
    "protocol, version, expected",
    [
        (b"MQTT", 4, True),
        (b"MQIsdp", 3, True),
        (b"MQTT", 3, False),
        (b"MQIsdp", 4, False),
        (b"MQTT", 5, False),
    ],
)
def test_check_version(protocol, version, expected):
    assert check_version(protocol, version) is expected


@pytest.mark.parametrize("session_present", [False, True])
@pytest.mark.parametrize("rc", [0, 1, 5])
def test_connack_round_trip(session_present, rc):
    packet = serialize_connack(rc, session_present)
    assert FixedHeader.from_byte(packet[0]).type == MessageType.CONNACK
    assert deserialize_connack(packet) == (session_present, rc)


def test_connack_buffer_limit():
    with pytest.raises(BufferTooShortError):
        serialize_connack(0, 0, 1)


def test_deserialize_connack_rejects_other_type():
    with pytest.raises(MalformedPacketError):
        deserialize_connack(serialize_disconnect())


def test_zero_length_packets():
    assert serialize_disconnect() == b"\xe0\x00"
    assert serialize_pingreq() == b"\xc0\x00"
    assert serialize_zero(MessageType.PINGRESP) == bytes(
        [FixedHeader(type=MessageType.PINGRESP).to_byte(), 0]
    )


def test_zero_length_buffer_limit():
    with pytest.raises(BufferTooShortError):
        serialize_disconnect(1)