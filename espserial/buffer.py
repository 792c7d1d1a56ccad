"""
Capped ring of raw serial chunks.

Only the most recent chunks are retained; older data is dropped, not
summarised.
"""

import threading
from collections import deque
from typing import Iterator

from .commands import BUFFER_CAPACITY
from .data_types import BufferStats


class ChunkBuffer:
    """
    Fixed-capacity FIFO of raw byte chunks.

    Appends come from the serial reader thread while stats are read from
    the caller's thread, so every access takes the lock.

    Example:
        >>> buf = ChunkBuffer(capacity=2)
        >>> for chunk in (b"a", b"bb", b"ccc"):
        ...     buf.append(chunk)
        >>> buf.concat()
        b'bbccc'
    """

    def __init__(self, capacity: int = BUFFER_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._chunks: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, chunk: bytes) -> None:
        """Store a chunk, evicting the oldest one when full."""
        with self._lock:
            self._chunks.append(bytes(chunk))

    def clear(self) -> None:
        with self._lock:
            self._chunks.clear()

    def stats(self) -> BufferStats:
        with self._lock:
            return BufferStats(
                total_bytes=sum(len(c) for c in self._chunks),
                chunks=len(self._chunks),
            )

    def concat(self) -> bytes:
        """All retained chunks joined in arrival order."""
        with self._lock:
            return b"".join(self._chunks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __iter__(self) -> Iterator[bytes]:
        with self._lock:
            return iter(list(self._chunks))
