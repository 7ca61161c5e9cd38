"""MQTT 3.1 and 3.1.1 packet serialization, deserialization and formatting."""

__all__ = ["packet", "connect", "publish", "subscribe", "unsubscribe", "format"]