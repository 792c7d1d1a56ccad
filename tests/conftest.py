"""
Shared fixtures: a mock pyserial port and a stub transport, so nothing
here needs hardware.
"""

import threading
import time

import pytest
import serial

from espserial import SerialSession, SessionConfig


class MockSerial:
    """Mock serial port for testing without hardware."""

    def __init__(self, *args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.written = []
        self.read_buffer = bytearray()
        self.is_open = True
        self.rts = True
        self.dtr = True
        self.flushed = 0
        self.read_error = None
        self._lock = threading.Lock()

    @property
    def in_waiting(self) -> int:
        with self._lock:
            return len(self.read_buffer)

    def read(self, size: int = 1) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        with self._lock:
            if self.read_buffer:
                data = bytes(self.read_buffer[:size])
                del self.read_buffer[:size]
                return data
        time.sleep(0.01)
        return b''

    def write(self, data: bytes) -> int:
        if not self.is_open:
            raise serial.SerialException("Port closed")
        with self._lock:
            self.written.append(bytes(data))
        return len(data)

    def flush(self):
        self.flushed += 1

    def inject(self, data: bytes):
        """Make bytes available to the reader."""
        with self._lock:
            self.read_buffer.extend(data)

    def close(self):
        self.is_open = False


class StubTransport:
    """
    In-memory stand-in for SerialTransport.

    Emits on_open synchronously from open() unless told not to, and
    records every write.
    """

    def __init__(self, port, auto_open=True, open_error=None, write_error=None, **kwargs):
        self.port = port
        self.kwargs = kwargs
        self.auto_open = auto_open
        self.open_error = open_error
        self.write_error = write_error
        self.written = []
        self.opened = False
        self.closed = False

        self.on_open = None
        self.on_data = None
        self.on_error = None
        self.on_close = None

    def open(self):
        if self.open_error is not None:
            self.on_error(self.open_error)
        elif self.auto_open:
            self.opened = True
            self.on_open()

    def write(self, data: bytes):
        if self.write_error is not None:
            raise self.write_error
        self.written.append(data)

    def close(self):
        if self.closed:
            return
        self.closed = True
        if self.opened and self.on_close:
            self.on_close()

    # Test helpers

    def feed(self, data: bytes):
        self.on_data(data)

    def feed_line(self, line: str):
        self.feed((line + "\n").encode())

    def fail(self, exc: Exception):
        self.on_error(exc)

    def commands(self):
        return [w.decode().rstrip("\n") for w in self.written]


class TransportFactory:
    """Builds StubTransports with preset behaviour and remembers them."""

    def __init__(self, **behaviour):
        self.behaviour = behaviour
        self.created = []

    def __call__(self, port, **kwargs):
        transport = StubTransport(port, **self.behaviour, **kwargs)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> StubTransport:
        return self.created[-1]


@pytest.fixture
def mock_serial():
    """Create a mock serial port."""
    return MockSerial()


@pytest.fixture
def transport_factory():
    return TransportFactory()


@pytest.fixture
def session(transport_factory):
    """Session wired to a stub transport (not yet connected)."""
    config = SessionConfig(port='/dev/test', connect_timeout=0.5)
    session = SerialSession(config, transport_factory=transport_factory)
    yield session
    session.disconnect()


@pytest.fixture
def connected(session, transport_factory):
    """Connected session plus its stub transport."""
    session.connect()
    return session, transport_factory.last
