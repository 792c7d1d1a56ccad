"""
Command Protocol for ESP8266 Test Firmware
==========================================

This module defines the line-based protocol used to talk to the
ESP8266 test firmware over serial.

Protocol Overview
-----------------
Every message is a single ASCII line terminated by a newline; the host
encodes and decodes as UTF-8, which is byte-identical for ASCII.

Output (Device → Host):
    STATUS:{"wifi":"connected","led":"green","uptime":"42"}  - Status snapshot
    TEMP:temperature,HUM:humidity                          - DHT reading
    CO2:ppm,TVOC:ppb                                       - CCS811 reading
    anything else                                          - Free-form log line

Input (Host → Device):
    SCAN_WIFI         - Scan for access points
    GET_DHT           - Read temperature/humidity
    GET_CCS           - Read CO2/TVOC
    LED_GREEN_ON      - Green LED on
    LED_RED_ON        - Red LED on
    LED_GREEN_OFF     - Green LED off
    LED_RED_OFF       - Red LED off
    TEST_<n>          - Numbered no-op used for load testing
"""


class InputPrefix:
    """Prefixes for messages from device to host."""
    STATUS = "STATUS:"   # JSON status payload
    TEMP = "TEMP:"       # DHT temperature/humidity
    HUM = ",HUM:"        # Separator inside TEMP: lines
    CO2 = "CO2:"         # CCS811 air quality
    TVOC = ",TVOC:"      # Separator inside CO2: lines


class Command:
    """Commands understood by the test firmware."""
    SCAN_WIFI = "SCAN_WIFI"
    GET_DHT = "GET_DHT"
    GET_CCS = "GET_CCS"
    LED_GREEN_ON = "LED_GREEN_ON"
    LED_RED_ON = "LED_RED_ON"
    LED_GREEN_OFF = "LED_GREEN_OFF"
    LED_RED_OFF = "LED_RED_OFF"

    @staticmethod
    def test(index: int) -> str:
        """Numbered load-test command, e.g. ``TEST_7``."""
        return f"TEST_{index}"


SENSOR_COMMANDS = (Command.SCAN_WIFI, Command.GET_DHT, Command.GET_CCS)
LED_COMMANDS = (
    Command.LED_GREEN_ON,
    Command.LED_RED_ON,
    Command.LED_GREEN_OFF,
    Command.LED_RED_OFF,
)

LINE_TERMINATOR = "\n"

# Serial framing (8-N-1)
DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 115200
DEFAULT_BYTESIZE = 8
DEFAULT_PARITY = "N"
DEFAULT_STOPBITS = 1

# Timing
CONNECT_TIMEOUT_S = 5.0
LED_INTERVAL_S = 2.0
SENSOR_DURATION_S = 10.0
DEFAULT_SUITE_SENSOR_DURATION_S = 2.0

# Load test
STRESS_COMMAND_COUNT = 100
STRESS_SAMPLE_EVERY = 10

# Raw chunk ring
BUFFER_CAPACITY = 10
