"""
ESP8266 Test Runner
===================

Scripted test phases run against one SerialSession:

1. Connectivity  - open the port
2. Sensor data   - send SCAN_WIFI, GET_DHT, GET_CCS and listen in between
3. LED control   - toggle both LEDs with a fixed spacing
4. Buffer stress - fire numbered TEST_<n> commands and sample buffer stats

Phases are sequential and never retried. Only the sensor phase records
a TestResult.

Usage Example
-------------
>>> from espserial import SerialSession, SessionConfig, DeviceTestRunner
>>>
>>> runner = DeviceTestRunner(SerialSession(SessionConfig('/dev/ttyUSB0')))
>>> try:
...     results = runner.run_all(sensor_duration=2.0)
... finally:
...     runner.cleanup()
"""

import logging
import math
import time
from typing import Callable, List

from .commands import (
    DEFAULT_SUITE_SENSOR_DURATION_S,
    LED_COMMANDS,
    LED_INTERVAL_S,
    SENSOR_COMMANDS,
    SENSOR_DURATION_S,
    STRESS_COMMAND_COUNT,
    STRESS_SAMPLE_EVERY,
    Command,
)
from .data_types import SensorData, TestResult
from .errors import DeviceConnectionError
from .session import SerialSession
from .tools.utilities import log_exceptions

logger = logging.getLogger(__name__)


def _average(values: List[float]) -> float:
    """Mean of values, NaN when empty."""
    if not values:
        return math.nan
    return sum(values) / len(values)


class DeviceTestRunner:
    """
    Sequences the scripted test phases.

    Parameters
    ----------
    session : SerialSession
        Session the phases run against. The runner connects it in the
        connectivity phase and closes it in ``cleanup()``.
    sleep : callable
        Delay function, ``time.sleep`` unless a test swaps it out.
    """

    def __init__(self, session: SerialSession, sleep: Callable[[float], None] = time.sleep):
        self.session = session
        self._sleep = sleep
        self._results: List[TestResult] = []

    def run_basic_connectivity_test(self) -> bool:
        """Connect to the device. Returns False instead of raising on failure."""
        logger.info("Testing basic connectivity...")
        try:
            self.session.connect()
        except DeviceConnectionError as e:
            logger.error("✗ Connection failed: %s", e)
            return False
        logger.info("✓ Connection successful")
        return True

    @log_exceptions
    def run_sensor_data_test(self, duration: float = SENSOR_DURATION_S) -> TestResult:
        """
        Send the sensor commands and collect every line that comes back.

        Each command is followed by ``duration`` seconds of listening, so
        the phase takes three times ``duration``.
        """
        logger.info("Testing sensor data collection for %s seconds...", duration)

        received: List[SensorData] = []

        def on_reading(reading: SensorData) -> None:
            received.append(reading)
            logger.info("Sensor reading: %s", reading)

        subscription = self.session.on_sensor_data(on_reading)
        try:
            for cmd in SENSOR_COMMANDS:
                logger.info("Sending command: %s", cmd)
                self.session.send_command(cmd)
                self._sleep(duration)
        finally:
            subscription.cancel()

        readings = list(received)
        climate = [r for r in readings if r.has_climate]
        logger.info("✓ Received %d sensor readings", len(readings))

        result = TestResult(
            test="sensor_data",
            readings=len(readings),
            avg_temp=_average([r.temperature for r in climate]),
            avg_hum=_average([r.humidity for r in climate]),
        )
        self._results.append(result)
        return result

    @log_exceptions
    def run_led_control_test(self, interval: float = LED_INTERVAL_S) -> None:
        logger.info("Testing LED control...")
        for cmd in LED_COMMANDS:
            logger.info("Sending command: %s", cmd)
            self.session.send_command(cmd)
            self._sleep(interval)
        logger.info("✓ LED control test completed")

    @log_exceptions
    def run_buffer_stress_test(
        self,
        count: int = STRESS_COMMAND_COUNT,
        sample_every: int = STRESS_SAMPLE_EVERY,
    ) -> None:
        """Send ``count`` numbered commands back to back."""
        logger.info("Testing buffer management under load...")
        for i in range(count):
            self.session.send_command(Command.test(i))
            if i % sample_every == 0:
                stats = self.session.get_buffer_stats()
                logger.info("Buffer stats: %d bytes, %d chunks", stats.total_bytes, stats.chunks)
        logger.info("✓ Buffer stress test completed")

    def run_all(
        self,
        sensor_duration: float = DEFAULT_SUITE_SENSOR_DURATION_S,
    ) -> List[TestResult]:
        """
        Run every phase in order.

        A failed connectivity check skips the remaining phases and
        returns an empty list.
        """
        if not self.run_basic_connectivity_test():
            return []
        self.run_sensor_data_test(sensor_duration)
        self.run_led_control_test()
        self.run_buffer_stress_test()
        return self.get_test_results()

    def get_test_results(self) -> List[TestResult]:
        return list(self._results)

    def cleanup(self) -> None:
        self.session.disconnect()
