"""
ESP8266 Serial Session
======================

Owns one serial connection to the device: connect/disconnect, command
sending, a capped ring of raw chunks and line-event subscriptions.

Example:
    >>> from espserial import SerialSession, SessionConfig
    >>>
    >>> with SerialSession(SessionConfig(port='/dev/ttyUSB0')) as session:
    ...     session.on_status_update(lambda s: print(s.uptime))
    ...     session.send_command('GET_DHT')
    ...     time.sleep(2)

Listeners run on the transport's reader thread. Nothing correlates a
sent command with the line that answers it; callers that need that do
it themselves.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import serial

from .buffer import ChunkBuffer
from .commands import (
    BUFFER_CAPACITY,
    CONNECT_TIMEOUT_S,
    DEFAULT_BAUDRATE,
    DEFAULT_BYTESIZE,
    DEFAULT_PARITY,
    DEFAULT_PORT,
    DEFAULT_STOPBITS,
    LINE_TERMINATOR,
)
from .data_types import BufferStats, DeviceStatus, SensorData, SessionState
from .errors import (
    ConnectionTimeoutError,
    DeviceConnectionError,
    NotConnectedError,
    ParseError,
    WriteError,
)
from .transport import SerialTransport

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    """
    Connection parameters for one session.

    Attributes:
        port: Serial port path (e.g., '/dev/ttyUSB0', 'COM3')
        baudrate: Serial baudrate (default: 115200)
        bytesize: Data bits (default: 8)
        parity: pyserial parity constant (default: 'N')
        stopbits: Stop bits (default: 1)
        connect_timeout: Seconds to wait for the port to open
        buffer_capacity: Number of raw chunks retained
        read_timeout: Reader poll timeout in seconds
    """
    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    bytesize: int = DEFAULT_BYTESIZE
    parity: str = DEFAULT_PARITY
    stopbits: float = DEFAULT_STOPBITS
    connect_timeout: float = CONNECT_TIMEOUT_S
    buffer_capacity: int = BUFFER_CAPACITY
    read_timeout: float = 0.1

    @classmethod
    def from_args(cls, args: Any) -> 'SessionConfig':
        """Build a config from an argparse namespace, keeping defaults for missing flags."""
        config = cls()
        for name in ('port', 'baudrate', 'connect_timeout'):
            value = getattr(args, name, None)
            if value is not None:
                setattr(config, name, value)
        return config


class Subscription:
    """Handle returned by the ``on_*`` methods; ``cancel()`` removes the listener."""

    def __init__(self, listeners: List[Callable], callback: Callable, lock: threading.Lock):
        self._listeners = listeners
        self._callback = callback
        self._lock = lock
        self.active = True

    def cancel(self) -> None:
        with self._lock:
            if not self.active:
                return
            self.active = False
            try:
                self._listeners.remove(self._callback)
            except ValueError:
                pass


class SerialSession:
    """
    Serial session manager for the ESP8266 test firmware.

    State machine::

        DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED
                                          |
                                          +-> ERRORED -> DISCONNECTED

    There is no reconnection: after an I/O error every ``send_command``
    fails until the caller disconnects and connects again.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        transport_factory: Callable[..., Any] = SerialTransport,
    ):
        """
        Args:
            config: Connection parameters (defaults to /dev/ttyUSB0 at 115200 8-N-1)
            transport_factory: Callable building the transport. Called with the
                port path and the framing keywords of ``SerialTransport``.
        """
        self.config = config or SessionConfig()
        self._transport_factory = transport_factory

        self._transport = None
        self._state = SessionState.DISCONNECTED
        self._state_lock = threading.Lock()
        self._ready = threading.Event()
        self._open_error: Optional[Exception] = None

        self._buffer = ChunkBuffer(self.config.buffer_capacity)
        self._pending = bytearray()

        self._listeners_lock = threading.Lock()
        self._listeners: Dict[str, List[Callable]] = {
            'raw': [],
            'line': [],
            'sensor': [],
            'status': [],
        }

    def __enter__(self) -> 'SerialSession':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            self._state = state

    def _transition(self, transport, state: SessionState) -> bool:
        """Set state only while ``transport`` is still the current one."""
        with self._state_lock:
            if transport is not self._transport:
                return False
            self._state = state
            return True

    # =========================================================================
    # Connection Management
    # =========================================================================

    def connect(self) -> None:
        """
        Open the serial port and wait until it is ready.

        Raises:
            ConnectionTimeoutError: If the port does not open within
                ``config.connect_timeout`` seconds
            DeviceConnectionError: If the port cannot be opened
        """
        if self.is_connected:
            return
        if self._transport is not None:
            self.disconnect()

        cfg = self.config
        self._set_state(SessionState.CONNECTING)
        self._ready.clear()
        self._open_error = None
        self._buffer.clear()
        self._pending.clear()

        try:
            transport = self._transport_factory(
                cfg.port,
                baudrate=cfg.baudrate,
                bytesize=cfg.bytesize,
                parity=cfg.parity,
                stopbits=cfg.stopbits,
                read_timeout=cfg.read_timeout,
            )
        except Exception as e:
            self._set_state(SessionState.DISCONNECTED)
            raise DeviceConnectionError(f"Failed to connect: {e}") from e

        transport.on_open = lambda: self._handle_open(transport)
        transport.on_data = lambda chunk: self._handle_data(transport, chunk)
        transport.on_error = lambda exc: self._handle_error(transport, exc)
        transport.on_close = lambda: self._handle_close(transport)
        with self._state_lock:
            self._transport = transport

        try:
            transport.open()
        except Exception as e:
            self._abandon(transport, SessionState.DISCONNECTED)
            raise DeviceConnectionError(f"Failed to connect: {e}") from e

        if not self._ready.wait(cfg.connect_timeout):
            self._abandon(transport, SessionState.DISCONNECTED)
            raise ConnectionTimeoutError(
                f"Connection timeout: {cfg.port} did not open within {cfg.connect_timeout}s"
            )

        if self._open_error is not None:
            self._abandon(transport, SessionState.ERRORED)
            raise DeviceConnectionError(
                f"Failed to connect: {self._open_error}"
            ) from self._open_error

    def _abandon(self, transport, state: SessionState) -> None:
        """Drop a transport that never became usable."""
        with self._state_lock:
            if self._transport is transport:
                self._transport = None
            self._state = state
        try:
            transport.close()
        except (serial.SerialException, OSError) as e:
            logger.warning("Error closing %s: %s", self.config.port, e)

    def disconnect(self) -> None:
        """Close the serial connection. Does nothing if already closed."""
        with self._state_lock:
            transport, self._transport = self._transport, None
        self._pending.clear()
        if transport is not None:
            try:
                transport.close()
            finally:
                self._set_state(SessionState.DISCONNECTED)
            logger.info("Serial port %s closed", self.config.port)
        else:
            self._set_state(SessionState.DISCONNECTED)

    # =========================================================================
    # Transport events
    # =========================================================================

    def _handle_open(self, transport) -> None:
        if not self._transition(transport, SessionState.CONNECTED):
            return
        logger.info("Connected to ESP8266 on %s", self.config.port)
        self._ready.set()

    def _handle_error(self, transport, exc: Exception) -> None:
        if not self._transition(transport, SessionState.ERRORED):
            return
        logger.error("Serial port error: %s", exc)
        if not self._ready.is_set():
            self._open_error = exc
            self._ready.set()

    def _handle_close(self, transport) -> None:
        if not self._transition(transport, SessionState.DISCONNECTED):
            return
        logger.info("Serial port closed")

    def _handle_data(self, transport, chunk: bytes) -> None:
        if transport is not self._transport:
            return
        self._buffer.append(chunk)
        for callback in self._snapshot('raw'):
            self._call(callback, chunk)

        self._pending.extend(chunk)
        while True:
            end = self._pending.find(LINE_TERMINATOR.encode())
            if end < 0:
                break
            raw_line = bytes(self._pending[:end])
            del self._pending[:end + 1]
            line = raw_line.decode('utf-8', errors='replace').strip()
            if line:
                self._dispatch_line(line)

    def _dispatch_line(self, line: str) -> None:
        """Fan one trimmed line out to every registered listener."""
        for callback in self._snapshot('line'):
            self._call(callback, line)

        sensor_listeners = self._snapshot('sensor')
        if sensor_listeners:
            reading = SensorData.from_line(line)
            for callback in sensor_listeners:
                self._call(callback, reading)

        status_listeners = self._snapshot('status')
        if status_listeners:
            try:
                status = DeviceStatus.from_line(line)
            except ParseError as e:
                logger.error("Error parsing status data: %s", e)
                return
            if status is not None:
                for callback in status_listeners:
                    self._call(callback, status)

    def _snapshot(self, kind: str) -> List[Callable]:
        with self._listeners_lock:
            return list(self._listeners[kind])

    @staticmethod
    def _call(callback: Callable, arg: Any) -> None:
        try:
            callback(arg)
        except Exception:
            logger.exception("Listener %r failed", callback)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def _subscribe(self, kind: str, callback: Callable) -> Subscription:
        with self._listeners_lock:
            listeners = self._listeners[kind]
            listeners.append(callback)
        return Subscription(listeners, callback, self._listeners_lock)

    def on_sensor_data(self, callback: Callable[[SensorData], None]) -> Subscription:
        """Called with a SensorData for every received line."""
        return self._subscribe('sensor', callback)

    def on_status_update(self, callback: Callable[[DeviceStatus], None]) -> Subscription:
        """Called with a DeviceStatus for each well-formed STATUS: line."""
        return self._subscribe('status', callback)

    def on_line(self, callback: Callable[[str], None]) -> Subscription:
        """Called with every trimmed, non-empty line."""
        return self._subscribe('line', callback)

    def on_raw_data(self, callback: Callable[[bytes], None]) -> Subscription:
        """Called with every raw chunk, before line splitting."""
        return self._subscribe('raw', callback)

    # =========================================================================
    # Commands
    # =========================================================================

    def send_command(self, command: str) -> None:
        """
        Send a newline-terminated command.

        Raises:
            NotConnectedError: If the session is not connected
            WriteError: If the serial write fails
        """
        transport = self._transport
        if transport is None or not self.is_connected:
            raise NotConnectedError()

        try:
            transport.write((command + LINE_TERMINATOR).encode('utf-8'))
        except (serial.SerialException, OSError) as e:
            raise WriteError(f"Failed to send {command!r}: {e}") from e

    # =========================================================================
    # Buffer management
    # =========================================================================

    def get_buffer_stats(self) -> BufferStats:
        return self._buffer.stats()

    def clear_buffer(self) -> None:
        self._buffer.clear()

    def get_raw_data_buffer(self) -> bytes:
        """Retained raw chunks concatenated in arrival order."""
        return self._buffer.concat()
