"""A flow-controlled, in-memory, in-order byte stream."""

from __future__ import annotations


class ByteStream:
    """A finite byte stream with bounded buffer capacity.

    Bytes are written on the input side and read from the output side.
    The writer may end the input, after which the stream reaches eof once
    the buffer has been drained.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        self._buffer = bytearray()
        self._bytes_written = 0
        self._bytes_read = 0
        self._input_ended = False
        self._error = False

    # Writer side

    def write(self, data: bytes) -> int:
        """Write as many bytes of ``data`` as fit; return how many were accepted."""
        accepted = min(len(data), self.remaining_capacity())
        self._buffer += data[:accepted]
        self._bytes_written += accepted
        return accepted

    def remaining_capacity(self) -> int:
        """Number of additional bytes the stream has room for."""
        return self._capacity - len(self._buffer)

    def end_input(self) -> None:
        """Signal that no more bytes will be written."""
        self._input_ended = True

    def set_error(self) -> None:
        """Mark the stream as having suffered an error."""
        self._error = True

    # Reader side

    def _available(self, length: int) -> int:
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        return min(length, len(self._buffer))

    def peek_output(self, length: int) -> bytes:
        """Return up to ``length`` bytes from the front without removing them."""
        return bytes(self._buffer[: self._available(length)])

    def pop_output(self, length: int) -> None:
        """Remove up to ``length`` bytes from the front of the buffer."""
        count = self._available(length)
        del self._buffer[:count]
        self._bytes_read += count

    def read(self, length: int) -> bytes:
        """Remove and return up to ``length`` bytes from the front."""
        data = self.peek_output(length)
        self.pop_output(len(data))
        return data

    def input_ended(self) -> bool:
        """True once the writer has ended the input."""
        return self._input_ended

    def error(self) -> bool:
        """True if the stream has suffered an error."""
        return self._error

    def buffer_size(self) -> int:
        """Number of bytes currently available to read."""
        return len(self._buffer)

    def buffer_empty(self) -> bool:
        """True if nothing is buffered."""
        return not self._buffer

    def eof(self) -> bool:
        """True when the input has ended and every byte has been read."""
        return self.buffer_empty() and self.input_ended()

    # Accounting

    def bytes_written(self) -> int:
        """Total number of bytes ever accepted by ``write``."""
        return self._bytes_written

    def bytes_read(self) -> int:
        """Total number of bytes ever popped from the stream."""
        return self._bytes_read