"""
Serial transport built on pyserial.

Turns a blocking ``serial.Serial`` into an event source: the port is
opened on a worker thread and a daemon reader thread emits every raw
chunk it reads. Listeners are plain attributes, set by the owner before
``open()``:

    on_open()            - port is open and the reader is running
    on_data(chunk)       - raw bytes read from the port
    on_error(exc)        - open or read failed
    on_close()           - port closed (emitted once per open)

All hooks run on transport threads, never on the caller's thread.
"""

import logging
import threading
from typing import Callable, Optional

import serial

from .commands import (
    DEFAULT_BAUDRATE,
    DEFAULT_BYTESIZE,
    DEFAULT_PARITY,
    DEFAULT_STOPBITS,
)

logger = logging.getLogger(__name__)


class SerialTransport:
    """
    Event-emitting wrapper around one serial port.

    Example:
        >>> transport = SerialTransport('/dev/ttyUSB0')
        >>> transport.on_data = lambda chunk: print(chunk)
        >>> transport.open()
        >>> transport.write(b'GET_DHT\\n')
        >>> transport.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        bytesize: int = DEFAULT_BYTESIZE,
        parity: str = DEFAULT_PARITY,
        stopbits: float = DEFAULT_STOPBITS,
        read_timeout: float = 0.1,
    ):
        """
        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0', 'COM3')
            baudrate: Serial baudrate (default: 115200)
            bytesize: Data bits (default: 8)
            parity: pyserial parity constant (default: 'N')
            stopbits: Stop bits (default: 1)
            read_timeout: Reader poll timeout in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.bytesize = bytesize
        self.parity = parity
        self.stopbits = stopbits
        self.read_timeout = read_timeout

        self.on_open: Optional[Callable[[], None]] = None
        self.on_data: Optional[Callable[[bytes], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None
        self.on_close: Optional[Callable[[], None]] = None

        self._ser: Optional[serial.Serial] = None
        self._open_thread: Optional[threading.Thread] = None
        self._read_thread: Optional[threading.Thread] = None
        self._running = False
        self._closed = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._ser is not None and self._ser.is_open

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> None:
        """Start opening the port; completion is reported via on_open/on_error."""
        if self._open_thread is not None:
            return
        self._closed.clear()
        self._open_thread = threading.Thread(
            target=self._open_port,
            name=f"serial-open-{self.port}",
            daemon=True,
        )
        self._open_thread.start()

    def _open_port(self) -> None:
        try:
            ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                bytesize=self.bytesize,
                parity=self.parity,
                stopbits=self.stopbits,
                timeout=self.read_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self._emit(self.on_error, e)
            return

        # ESP boards reset on DTR/RTS edges
        ser.rts = False
        ser.dtr = False

        with self._lock:
            if self._closed.is_set():
                # close() ran while the port was opening
                ser.close()
                return
            self._ser = ser
            self._running = True
            self._read_thread = threading.Thread(
                target=self._read_serial,
                name=f"serial-read-{self.port}",
                daemon=True,
            )
            self._read_thread.start()

        self._emit(self.on_open)

    def close(self) -> None:
        """Stop the reader and close the port. Safe to call repeatedly."""
        with self._lock:
            self._closed.set()
            self._running = False
            ser, self._ser = self._ser, None
            read_thread, self._read_thread = self._read_thread, None
            self._open_thread = None

        if read_thread is not None and read_thread is not threading.current_thread():
            read_thread.join(timeout=1.0)

        if ser is not None:
            was_open = ser.is_open
            ser.close()
            if was_open:
                self._emit(self.on_close)

    def _read_serial(self) -> None:
        """Background thread for reading raw chunks."""
        while self._running:
            ser = self._ser
            if ser is None:
                break
            try:
                waiting = ser.in_waiting
                chunk = ser.read(waiting or 1)
            except (serial.SerialException, OSError) as e:
                if self._running:
                    self._running = False
                    self._emit(self.on_error, e)
                break
            if chunk:
                self._emit(self.on_data, chunk)

    # =========================================================================
    # I/O
    # =========================================================================

    def write(self, data: bytes) -> None:
        """
        Write bytes and wait for them to leave the output buffer.

        Raises:
            serial.SerialException: If the port is not open or the write fails
        """
        ser = self._ser
        if ser is None or not ser.is_open:
            raise serial.SerialException(f"Port {self.port} is not open")
        ser.write(data)
        ser.flush()

    def _emit(self, hook: Optional[Callable], *args) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("Error in serial transport listener")
