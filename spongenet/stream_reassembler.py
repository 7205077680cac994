"""Reassembly of possibly out-of-order, overlapping substrings into a byte stream."""

from __future__ import annotations

from spongenet.byte_stream import ByteStream


class StreamReassembler:
    """Assembles indexed substrings of a byte stream into an in-order ByteStream.

    The capacity bounds both the reassembled bytes not yet read and the
    bytes held while waiting for earlier gaps to fill. Bytes beyond that
    window are silently discarded.
    """

    def __init__(self, capacity: int) -> None:
        self._output = ByteStream(capacity)
        self._capacity = capacity
        self._pending: dict[int, int] = {}
        self._eof = False

    def push_substring(self, data: bytes, index: int, eof: bool) -> None:
        """Accept ``data`` starting at stream position ``index``.

        ``eof`` marks the last byte of ``data`` as the last byte of the stream.
        """
        if index < 0:
            raise ValueError(f"index must be non-negative, got {index}")

        first_unread = self._output.bytes_read()
        first_unassembled = self._output.bytes_written()
        window_end = first_unassembled + self._output.remaining_capacity()

        if eof and index + len(data) <= first_unread + self._capacity:
            self._eof = True

        start = max(index, first_unassembled)
        stop = min(index + len(data), window_end)
        for position in range(start, stop):
            self._pending[position] = data[position - index]

        assembled = bytearray()
        room = self._output.remaining_capacity()
        next_position = first_unassembled
        while next_position in self._pending and len(assembled) < room:
            assembled.append(self._pending.pop(next_position))
            next_position += 1

        self._output.write(bytes(assembled))

        if self._eof and self.empty():
            self._output.end_input()

    def stream_out(self) -> ByteStream:
        """The reassembled in-order byte stream."""
        return self._output

    def unassembled_bytes(self) -> int:
        """Number of bytes stored but not yet reassembled, each counted once."""
        return len(self._pending)

    def empty(self) -> bool:
        """True if no bytes are waiting to be reassembled."""
        return not self._pending