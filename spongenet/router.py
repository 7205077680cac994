"""An IP router performing longest-prefix-match forwarding between interfaces."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Optional

from spongenet.network_interface import (
    AddressLike,
    EthernetFrame,
    InternetDatagram,
    NetworkInterface,
)

logger = logging.getLogger(__name__)


class AsyncNetworkInterface(NetworkInterface):
    """A NetworkInterface that queues received datagrams instead of returning them."""

    def __init__(self, ethernet_address: bytes, ip_address: AddressLike) -> None:
        super().__init__(ethernet_address, ip_address)
        self._datagrams_out: deque[InternetDatagram] = deque()

    def recv_frame(self, frame: EthernetFrame) -> None:
        """Handle a frame, queueing any datagram it carries."""
        dgram = super().recv_frame(frame)
        if dgram is not None:
            self._datagrams_out.append(dgram)

    def datagrams_out(self) -> deque[InternetDatagram]:
        """Queue of datagrams that have been received."""
        return self._datagrams_out


@dataclass(frozen=True)
class _Route:
    prefix: int
    prefix_length: int
    mask: int
    next_hop: Optional[IPv4Address]
    interface_num: int


class Router:
    """Routes datagrams between its interfaces by longest prefix match."""

    def __init__(self) -> None:
        self._interfaces: list[AsyncNetworkInterface] = []
        self._routes: list[_Route] = []

    def add_interface(self, interface: AsyncNetworkInterface) -> int:
        """Add an interface and return its index."""
        self._interfaces.append(interface)
        return len(self._interfaces) - 1

    def interface(self, index: int) -> AsyncNetworkInterface:
        """The interface at ``index``."""
        if not 0 <= index < len(self._interfaces):
            raise IndexError(f"no interface with index {index}")
        return self._interfaces[index]

    def add_route(
        self,
        route_prefix: int,
        prefix_length: int,
        next_hop: Optional[AddressLike],
        interface_num: int,
    ) -> None:
        """Add a forwarding rule; ``next_hop`` is None for directly attached networks."""
        if not 0 <= prefix_length <= 32:
            raise ValueError(f"prefix length must be between 0 and 32, got {prefix_length}")
        prefix = int(IPv4Address(route_prefix))
        hop = IPv4Address(next_hop) if next_hop is not None else None
        mask = 0 if prefix_length == 0 else (0xFFFFFFFF << (32 - prefix_length)) & 0xFFFFFFFF
        logger.debug(
            "adding route %s/%d => %s on interface %d",
            IPv4Address(prefix),
            prefix_length,
            hop if hop is not None else "(direct)",
            interface_num,
        )
        self._routes.append(_Route(prefix, prefix_length, mask, hop, interface_num))

    def _route_one_datagram(self, dgram: InternetDatagram) -> None:
        if dgram.ttl <= 1:
            return

        best: Optional[_Route] = None
        for route in self._routes:
            if dgram.dst & route.mask == route.prefix and (
                best is None or route.prefix_length > best.prefix_length
            ):
                best = route
        if best is None:
            return

        dgram.ttl -= 1
        next_hop = best.next_hop if best.next_hop is not None else IPv4Address(dgram.dst)
        self.interface(best.interface_num).send_datagram(dgram, next_hop)

    def route(self) -> None:
        """Route every received datagram to its outgoing interface."""
        for interface in self._interfaces:
            queue = interface.datagrams_out()
            while queue:
                self._route_one_datagram(queue.popleft())