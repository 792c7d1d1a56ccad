"""
Data Types for the ESP8266 Test Harness
=======================================

This module contains the data structures exchanged between the serial
session and its listeners. These are pure Python dataclasses with no
serial dependencies.

Inbound lines:
    STATUS:{"wifi":"connected","led":"green","uptime":"42"}
    TEMP:23.5,HUM:41.0
    CO2:400,TVOC:12
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .commands import InputPrefix
from .errors import ParseError


class SessionState(Enum):
    """Lifecycle of a serial session."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERRORED = "errored"


@dataclass
class DeviceStatus:
    """
    Device status parsed from STATUS: messages.

    Format: STATUS:{"wifi":"connected","led":"green","uptime":"42"}

    Attributes:
        wifi_connected: True when the firmware reports ``wifi == "connected"``
        led_status: LED state label as reported by the firmware
        uptime: Seconds since boot
    """
    wifi_connected: bool = False
    led_status: str = ""
    uptime: int = 0

    @classmethod
    def from_line(cls, line: str) -> Optional['DeviceStatus']:
        """
        Parse device status from a STATUS: line.

        Args:
            line: Trimmed line received from the device

        Returns:
            DeviceStatus instance, or None if the line is not a status line

        Raises:
            ParseError: If the line is a status line with a malformed payload
        """
        if not line.startswith(InputPrefix.STATUS):
            return None

        payload = line[len(InputPrefix.STATUS):]
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid status payload {payload!r}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Status payload is not an object: {payload!r}")

        try:
            return cls(
                wifi_connected=data["wifi"] == "connected",
                led_status=str(data["led"]),
                # Fractional uptimes are truncated
                uptime=int(float(data["uptime"])),
            )
        except KeyError as e:
            raise ParseError(f"Status payload missing field {e}") from e
        except (TypeError, ValueError, OverflowError) as e:
            raise ParseError(f"Invalid uptime in status payload: {e}") from e


@dataclass
class SensorData:
    """
    Sensor line received from the device.

    Every line reaches sensor listeners; ``raw`` always holds the trimmed
    line. Numeric fields are filled only for recognised lines:

        TEMP:temperature,HUM:humidity   - degrees Celsius, percent RH
        CO2:ppm,TVOC:ppb                - CCS811 readings
    """
    raw: str = ""
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    co2: Optional[int] = None
    tvoc: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_line(cls, line: str) -> 'SensorData':
        """Build a reading from a trimmed line, parsing it when recognised."""
        data = cls(raw=line)

        if line.startswith(InputPrefix.TEMP):
            parts = line[len(InputPrefix.TEMP):].split(InputPrefix.HUM)
            try:
                temperature = float(parts[0])
                humidity = float(parts[1])
            except (ValueError, IndexError):
                return data
            if not (math.isnan(temperature) or math.isnan(humidity)):
                data.temperature = temperature
                data.humidity = humidity

        elif line.startswith(InputPrefix.CO2):
            parts = line[len(InputPrefix.CO2):].split(InputPrefix.TVOC)
            try:
                data.co2 = int(parts[0])
                data.tvoc = int(parts[1])
            except (ValueError, IndexError):
                data.co2 = None
                data.tvoc = None

        return data

    @property
    def has_climate(self) -> bool:
        return self.temperature is not None and self.humidity is not None

    @property
    def has_air_quality(self) -> bool:
        return self.co2 is not None and self.tvoc is not None

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class BufferStats:
    """Size of the retained raw chunks."""
    total_bytes: int = 0
    chunks: int = 0


@dataclass(frozen=True)
class TestResult:
    """
    Outcome of one test phase.

    Averages are NaN when no reading carried a value.
    """
    __test__ = False  # not a pytest class

    test: str
    readings: int = 0
    avg_temp: float = math.nan
    avg_hum: float = math.nan

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form of the result."""
        return {
            "test": self.test,
            "readings": self.readings,
            "avgTemp": self.avg_temp,
            "avgHum": self.avg_hum,
        }
