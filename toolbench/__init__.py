"""Small systems utilities: MQTT packet codecs, a student-record socket service and command-line helpers."""

__version__ = "0.1.0"