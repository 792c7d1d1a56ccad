"""
espserial - ESP8266 Serial Test Harness
=======================================

A small Python library for exercising ESP8266 test firmware over a
line-based serial protocol.

Example:
    >>> from espserial import SerialSession, SessionConfig
    >>>
    >>> with SerialSession(SessionConfig('/dev/ttyUSB0')) as session:
    ...     session.on_line(print)
    ...     session.send_command('GET_DHT')
"""

from .session import SerialSession, SessionConfig, Subscription
from .runner import DeviceTestRunner
from .transport import SerialTransport
from .buffer import ChunkBuffer
from .port_scanner import PortInfo, list_ports, scan_ports
from .data_types import (
    BufferStats,
    DeviceStatus,
    SensorData,
    SessionState,
    TestResult,
)
from .errors import (
    SerialSessionError,
    DeviceConnectionError,
    ConnectionTimeoutError,
    NotConnectedError,
    WriteError,
    ParseError,
)
from .commands import Command, InputPrefix

__version__ = "1.0.0"
__all__ = [
    "SerialSession",
    "SessionConfig",
    "Subscription",
    "DeviceTestRunner",
    "SerialTransport",
    "ChunkBuffer",
    "PortInfo",
    "list_ports",
    "scan_ports",
    "BufferStats",
    "DeviceStatus",
    "SensorData",
    "SessionState",
    "TestResult",
    "SerialSessionError",
    "DeviceConnectionError",
    "ConnectionTimeoutError",
    "NotConnectedError",
    "WriteError",
    "ParseError",
    "Command",
    "InputPrefix",
]
