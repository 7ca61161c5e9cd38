# toolbench

A collection of small, self-contained utilities:

- `toolbench.mqtt` — MQTT 3.1 / 3.1.1 packet encoding and decoding:
  - `packet`: `MessageType`, `FixedHeader`, the remaining-length codec
    (`encode_length`, `decode_length`, `decode_length_from`, `packet_len`),
    `PacketReader`, `PacketWriter`, `read_packet` and the incremental
    `PacketTransport.read_packet_nb`;
  - `connect`: `ConnectOptions`, `WillOptions`, CONNECT / CONNACK and the
    zero-length packets (`serialize_pingreq`, `serialize_disconnect`);
  - `publish`: `PublishPacket`, `Ack`, PUBLISH and PUBACK / PUBREC / PUBREL /
    PUBCOMP;
  - `subscribe`: `SubscribeRequest`, SUBSCRIBE / SUBACK;
  - `unsubscribe`: `UnsubscribeRequest`, UNSUBSCRIBE / UNSUBACK;
  - `format`: one-line descriptions of packets (`to_client_string`,
    `to_server_string` and the `format_*` helpers).
- `toolbench.studentinfo` — a fixed-layout student record (`StudentInfo`,
  `Command`, `Status`) exchanged over a Unix-domain stream socket, with
  `serve`, `register_student` and `handle_request`.
- `toolbench.filecount` — `iter_regular_files` and `count_files`.
- `toolbench.power` — `power` and `compute`.

## Installation

```
pip install .
pip install ".[test]"   # with pytest, to run the test suite
```

## Library use

```python
from toolbench.mqtt.publish import serialize_publish, deserialize_publish
from toolbench.mqtt.format import to_client_string

wire = serialize_publish(False, 1, False, 7, "site/temp", b"21.5", 128)
packet = deserialize_publish(wire)
print(packet.topic, packet.packet_id, packet.payload)   # b'site/temp' 7 b'21.5'
print(to_client_string(wire))
```

Serializers take an optional buffer size the packet must fit in and raise
`BufferTooShortError` when it does not; malformed input raises
`MalformedPacketError`. Both derive from `PacketError`.

```python
from toolbench.filecount import count_files

print(count_files("/etc/"))   # paths are joined by concatenation: keep the trailing slash
```

## Commands

```
toolbench-power BASE EXPONENT             # in-house power: prints BASE + EXPONENT
toolbench-power --std-math BASE EXPONENT  # standard pow
toolbench-filecount DIRECTORY/            # list regular files recursively, then the total
toolbench-student-server [SOCKET_PATH]    # accept one client and answer its registrations
toolbench-student-client [SOCKET_PATH]    # read names and ages from standard input
```

Both student commands use `/tmp/test1.socket` unless given another path;
start the server first. For each REGISTER record the client sends, the server
prints the student and replies with an OK status; it stops when the client
disconnects.

## What the package does not do

- The MQTT modules only build and read packets. There is no network client,
  no broker connection, keep-alive handling or subscription dispatch.
- The `toolbench.jsontree` subpackage holds no modules: there is no JSON
  parser, printer or demo command.
- There is no syslog command.

## Running the tests

```
pytest
```