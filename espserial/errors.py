"""
Exceptions raised by the espserial library.

Connection and write failures propagate to the caller. ParseError is
raised by the status parser and swallowed at the line dispatcher, so a
malformed line never tears down the listening stream.
"""


class SerialSessionError(Exception):
    """Base class for all espserial errors."""


class DeviceConnectionError(SerialSessionError, ConnectionError):
    """The serial port could not be opened."""


class ConnectionTimeoutError(DeviceConnectionError):
    """The serial port did not report ready within the connect timeout."""


class NotConnectedError(SerialSessionError):
    """A command was sent while the session was not connected."""

    def __init__(self, message: str = "Not connected to device"):
        super().__init__(message)


class WriteError(SerialSessionError):
    """The underlying serial write failed."""


class ParseError(SerialSessionError, ValueError):
    """A status payload could not be parsed."""
