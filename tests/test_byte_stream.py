import random

import pytest

from spongenet.byte_stream import ByteStream


def _check(bs, *, input_ended, buffer_empty, eof, bytes_read, bytes_written,
           remaining_capacity, buffer_size):
    assert bs.input_ended() is input_ended
    assert bs.buffer_empty() is buffer_empty
    assert bs.eof() is eof
    assert bs.bytes_read() == bytes_read
    assert bs.bytes_written() == bytes_written
    assert bs.remaining_capacity() == remaining_capacity
    assert bs.buffer_size() == buffer_size


# construction


def test_construction():
    bs = ByteStream(15)
    _check(bs, input_ended=False, buffer_empty=True, eof=False, bytes_read=0,
           bytes_written=0, remaining_capacity=15, buffer_size=0)


def test_construction_end():
    bs = ByteStream(15)
    bs.end_input()
    _check(bs, input_ended=True, buffer_empty=True, eof=True, bytes_read=0,
           bytes_written=0, remaining_capacity=15, buffer_size=0)


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        ByteStream(-1)


# one write


def test_write_end_pop():
    bs = ByteStream(15)
    bs.write(b"cat")
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=3, remaining_capacity=12, buffer_size=3)
    assert bs.peek_output(3) == b"cat"

    bs.end_input()
    _check(bs, input_ended=True, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=3, remaining_capacity=12, buffer_size=3)
    assert bs.peek_output(3) == b"cat"

    bs.pop_output(3)
    _check(bs, input_ended=True, buffer_empty=True, eof=True, bytes_read=3,
           bytes_written=3, remaining_capacity=15, buffer_size=0)


def test_write_pop_end():
    bs = ByteStream(15)
    bs.write(b"cat")
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=3, remaining_capacity=12, buffer_size=3)
    assert bs.peek_output(3) == b"cat"

    bs.pop_output(3)
    _check(bs, input_ended=False, buffer_empty=True, eof=False, bytes_read=3,
           bytes_written=3, remaining_capacity=15, buffer_size=0)

    bs.end_input()
    _check(bs, input_ended=True, buffer_empty=True, eof=True, bytes_read=3,
           bytes_written=3, remaining_capacity=15, buffer_size=0)


def test_write_pop2_end():
    bs = ByteStream(15)
    bs.write(b"cat")
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=3, remaining_capacity=12, buffer_size=3)
    assert bs.peek_output(3) == b"cat"

    bs.pop_output(1)
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=1,
           bytes_written=3, remaining_capacity=13, buffer_size=2)
    assert bs.peek_output(2) == b"at"

    bs.pop_output(2)
    _check(bs, input_ended=False, buffer_empty=True, eof=False, bytes_read=3,
           bytes_written=3, remaining_capacity=15, buffer_size=0)

    bs.end_input()
    _check(bs, input_ended=True, buffer_empty=True, eof=True, bytes_read=3,
           bytes_written=3, remaining_capacity=15, buffer_size=0)


# capacity


def test_overwrite():
    bs = ByteStream(2)
    assert bs.write(b"cat") == 2
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=2, remaining_capacity=0, buffer_size=2)
    assert bs.peek_output(2) == b"ca"

    assert bs.write(b"t") == 0
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
           bytes_written=2, remaining_capacity=0, buffer_size=2)
    assert bs.peek_output(2) == b"ca"


def test_overwrite_clear_overwrite():
    bs = ByteStream(2)
    assert bs.write(b"cat") == 2
    bs.pop_output(2)
    assert bs.write(b"tac") == 2
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=2,
           bytes_written=4, remaining_capacity=0, buffer_size=2)
    assert bs.peek_output(2) == b"ta"


def test_overwrite_pop_overwrite():
    bs = ByteStream(2)
    assert bs.write(b"cat") == 2
    bs.pop_output(1)
    assert bs.write(b"tac") == 1
    _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=1,
           bytes_written=3, remaining_capacity=0, buffer_size=2)
    assert bs.peek_output(2) == b"at"


def test_long_stream():
    bs = ByteStream(3)
    assert bs.write(b"abcdef") == 3
    assert bs.peek_output(3) == b"abc"
    bs.pop_output(1)

    for _ in range(99997):
        for data, expected in ((b"abc", b"bca"), (b"bca", b"cab"), (b"cab", b"abc")):
            assert bs.remaining_capacity() == 1
            assert bs.buffer_size() == 2
            assert bs.write(data) == 1
            assert bs.remaining_capacity() == 0
            assert bs.peek_output(3) == expected
            bs.pop_output(1)

    bs.end_input()
    assert bs.peek_output(2) == b"bc"
    bs.pop_output(2)
    assert bs.eof() is True


# many writes


def test_many_writes():
    rng = random.Random(1234)
    nreps = 1000
    min_write = 10
    max_write = 200
    capacity = max_write * nreps
    bs = ByteStream(capacity)

    acc = 0
    for _ in range(nreps):
        size = min_write + rng.randrange(max_write - min_write)
        data = bytes(ord("a") + rng.randrange(26) for _ in range(size))
        assert bs.write(data) == size
        acc += size
        _check(bs, input_ended=False, buffer_empty=False, eof=False, bytes_read=0,
               bytes_written=acc, remaining_capacity=capacity - acc, buffer_size=acc)


# read, peek and error


def test_read_copies_and_pops():
    bs = ByteStream(15)
    bs.write(b"cat")
    assert bs.read(2) == b"ca"
    assert bs.bytes_read() == 2
    assert bs.read(10) == b"t"
    assert bs.buffer_empty() is True


def test_peek_longer_than_buffer_returns_available():
    bs = ByteStream(15)
    bs.write(b"cat")
    assert bs.peek_output(100) == b"cat"
    bs.pop_output(100)
    assert bs.bytes_read() == 3


def test_negative_length_rejected():
    bs = ByteStream(4)
    with pytest.raises(ValueError):
        bs.peek_output(-1)


def test_set_error():
    bs = ByteStream(4)
    assert bs.error() is False
    bs.set_error()
    assert bs.error() is True