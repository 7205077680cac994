# spongenet

Building blocks of a user-space networking stack, in pure Python with no
third-party dependencies.

- `spongenet.byte_stream.ByteStream`: a flow-controlled, in-memory byte
  stream with a fixed capacity. `write` accepts as many bytes as fit and
  returns how many it took. The reader uses `peek_output`, `pop_output` and
  `read`. `end_input` marks the end of the stream, and `eof` becomes true
  once the input has ended and the buffer is empty. `bytes_written` and
  `bytes_read` count the totals.
- `spongenet.stream_reassembler.StreamReassembler`: takes indexed substrings
  that may arrive out of order or overlap, and writes them in order into a
  `ByteStream`, which `stream_out()` returns. Bytes beyond the capacity
  window are discarded. `unassembled_bytes` counts the bytes that are held
  but not yet assembled.
- `spongenet.network_interface`: has `EthernetHeader`, `EthernetFrame`,
  `ARPMessage` and `InternetDatagram` (IPv4 without options). Each has
  `serialize` and a `parse` classmethod, and `parse` raises `ParseError` on
  bad input. The module also has `NetworkInterface`:
  - `send_datagram(dgram, next_hop)` frames the datagram if the Ethernet
    address of the next hop is known. Otherwise it queues the datagram and
    broadcasts an ARP request.
  - `recv_frame(frame)` returns the IPv4 datagram carried by a frame that is
    addressed to the interface or to broadcast. It learns from ARP messages,
    answers ARP requests, and releases queued datagrams.
  - `tick(ms)` repeats unanswered ARP requests every 5 seconds and forgets
    mappings after 30 seconds.
  - Outgoing frames are collected in the deque returned by `frames_out()`.
- `spongenet.router`: has two classes.
  - `AsyncNetworkInterface` queues received datagrams in `datagrams_out()`.
  - `Router` forwards datagrams between its interfaces by longest-prefix
    match.
- `spongenet.sha256.SHA256`: `digest(data)` returns the 32-byte SHA-256
  digest, and text is hashed as UTF-8. `SHA256.to_string(digest, length)`
  returns the last `length` hex characters.

Addresses can be given as `ipaddress.IPv4Address`, dotted strings or
integers. Ethernet addresses are 6-byte `bytes` values. The interfaces log
diagnostic messages at debug level through the standard `logging` module.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from spongenet.byte_stream import ByteStream
from spongenet.stream_reassembler import StreamReassembler

stream = ByteStream(2)
stream.write(b"cat")         # 2: only b"ca" fits
stream.peek_output(2)        # b"ca"
stream.pop_output(1)
stream.remaining_capacity()  # 1

reassembler = StreamReassembler(8)
reassembler.push_substring(b"cd", 2, True)   # last piece of the stream
reassembler.unassembled_bytes()              # 2
reassembler.push_substring(b"ab", 0, False)
reassembler.stream_out().read(4)             # b"abcd"
reassembler.stream_out().eof()               # True
```

## Routing

Give `Router.add_interface` one `AsyncNetworkInterface` for each attached
network; it returns the interface's index. Then call
`Router.add_route(route_prefix, prefix_length, next_hop, interface_num)`.
Pass `None` as `next_hop` for a directly attached network, and the datagram
then goes to its own destination address.

Each call to `Router.route()` drains the datagrams that every interface has
received and handles each one:

- A datagram with a TTL of 1 or less is dropped.
- A datagram that matches no route is dropped.
- Any other datagram has its TTL decremented and is sent out on the interface
  of the longest matching route.

```python
from spongenet.router import AsyncNetworkInterface, Router

router = Router()
lan = router.add_interface(AsyncNetworkInterface(b"\x02\x00\x00\x00\x00\x01", "10.0.0.1"))
wan = router.add_interface(AsyncNetworkInterface(b"\x02\x00\x00\x00\x00\x02", "172.16.0.1"))
router.add_route("10.0.0.0", 8, None, lan)
router.add_route("0.0.0.0", 0, "172.16.0.254", wan)
```

## What it does not do

This package is a set of in-memory components. It has no TCP sender,
receiver or connection. It opens no sockets, TUN or TAP devices, and it has
no command-line programs. Moving frames between interfaces, and calling
`tick` as time passes, is up to the caller.