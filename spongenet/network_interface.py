"""Ethernet, ARP and IPv4 framing, and a network interface joining IP to Ethernet."""

from __future__ import annotations

import logging
import struct
from collections import deque
from dataclasses import dataclass, field, replace
from ipaddress import IPv4Address
from typing import ClassVar, Optional, Union

logger = logging.getLogger(__name__)

ETHERNET_ADDRESS_LENGTH = 6
ETHERNET_BROADCAST = b"\xff" * ETHERNET_ADDRESS_LENGTH
_ETHERNET_ZERO = bytes(ETHERNET_ADDRESS_LENGTH)

AddressLike = Union[IPv4Address, str, int]


class ParseError(ValueError):
    """Raised when bytes cannot be parsed as the expected structure."""


def _check_ethernet_address(address: bytes, what: str) -> None:
    if len(address) != ETHERNET_ADDRESS_LENGTH:
        raise ValueError(f"{what} must be {ETHERNET_ADDRESS_LENGTH} bytes, got {len(address)}")


def _format_ethernet_address(address: bytes) -> str:
    return ":".join(f"{byte:02x}" for byte in address)


def _internet_checksum(data: bytes) -> int:
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


@dataclass
class EthernetHeader:
    """Ethernet II header: destination, source and EtherType."""

    TYPE_IPv4: ClassVar[int] = 0x0800
    TYPE_ARP: ClassVar[int] = 0x0806
    LENGTH: ClassVar[int] = 14

    dst: bytes = ETHERNET_BROADCAST
    src: bytes = _ETHERNET_ZERO
    type: int = 0

    def serialize(self) -> bytes:
        _check_ethernet_address(self.dst, "destination address")
        _check_ethernet_address(self.src, "source address")
        return self.dst + self.src + struct.pack("!H", self.type)

    @classmethod
    def parse(cls, data: bytes) -> EthernetHeader:
        if len(data) < cls.LENGTH:
            raise ParseError("packet too short for an Ethernet header")
        (ethertype,) = struct.unpack_from("!H", data, 12)
        return cls(dst=bytes(data[0:6]), src=bytes(data[6:12]), type=ethertype)

    def __str__(self) -> str:
        return (
            f"dst={_format_ethernet_address(self.dst)}, "
            f"src={_format_ethernet_address(self.src)}, type={self.type:#06x}"
        )


@dataclass
class EthernetFrame:
    """An Ethernet header followed by its payload."""

    header: EthernetHeader = field(default_factory=EthernetHeader)
    payload: bytes = b""

    def serialize(self) -> bytes:
        return self.header.serialize() + bytes(self.payload)

    @classmethod
    def parse(cls, data: bytes) -> EthernetFrame:
        header = EthernetHeader.parse(data)
        return cls(header=header, payload=bytes(data[EthernetHeader.LENGTH :]))


@dataclass
class ARPMessage:
    """An ARP message mapping IPv4 addresses to Ethernet addresses."""

    TYPE_ETHERNET: ClassVar[int] = 1
    OPCODE_REQUEST: ClassVar[int] = 1
    OPCODE_REPLY: ClassVar[int] = 2
    LENGTH: ClassVar[int] = 28
    _FORMAT: ClassVar[str] = "!HHBBH6sI6sI"

    opcode: int = 0
    sender_ethernet_address: bytes = _ETHERNET_ZERO
    sender_ip_address: int = 0
    target_ethernet_address: bytes = _ETHERNET_ZERO
    target_ip_address: int = 0

    def serialize(self) -> bytes:
        _check_ethernet_address(self.sender_ethernet_address, "sender Ethernet address")
        _check_ethernet_address(self.target_ethernet_address, "target Ethernet address")
        return struct.pack(
            self._FORMAT,
            self.TYPE_ETHERNET,
            EthernetHeader.TYPE_IPv4,
            ETHERNET_ADDRESS_LENGTH,
            4,
            self.opcode,
            self.sender_ethernet_address,
            self.sender_ip_address,
            self.target_ethernet_address,
            self.target_ip_address,
        )

    @classmethod
    def parse(cls, data: bytes) -> ARPMessage:
        if len(data) < cls.LENGTH:
            raise ParseError("packet too short for an ARP message")
        (
            hardware_type,
            protocol_type,
            hardware_length,
            protocol_length,
            opcode,
            sender_eth,
            sender_ip,
            target_eth,
            target_ip,
        ) = struct.unpack_from(cls._FORMAT, data)
        if (
            hardware_type != cls.TYPE_ETHERNET
            or protocol_type != EthernetHeader.TYPE_IPv4
            or hardware_length != ETHERNET_ADDRESS_LENGTH
            or protocol_length != 4
            or opcode not in (cls.OPCODE_REQUEST, cls.OPCODE_REPLY)
        ):
            raise ParseError("unsupported ARP message")
        return cls(opcode, sender_eth, sender_ip, target_eth, target_ip)

    def __str__(self) -> str:
        kind = "REQUEST" if self.opcode == self.OPCODE_REQUEST else "REPLY"
        return (
            f"opcode={kind}, "
            f"sender={_format_ethernet_address(self.sender_ethernet_address)}"
            f"/{IPv4Address(self.sender_ip_address)}, "
            f"target={_format_ethernet_address(self.target_ethernet_address)}"
            f"/{IPv4Address(self.target_ip_address)}"
        )


@dataclass
class InternetDatagram:
    """An IPv4 datagram without header options."""

    HEADER_LENGTH: ClassVar[int] = 20
    PROTO_TCP: ClassVar[int] = 6
    DEFAULT_TTL: ClassVar[int] = 64

    src: int = 0
    dst: int = 0
    ttl: int = DEFAULT_TTL
    proto: int = PROTO_TCP
    tos: int = 0
    identification: int = 0
    df: bool = True
    mf: bool = False
    offset: int = 0
    payload: bytes = b""

    def serialize(self) -> bytes:
        total_length = self.HEADER_LENGTH + len(self.payload)
        if total_length > 0xFFFF:
            raise ValueError("datagram too large for IPv4")
        flags = (int(self.df) << 14) | (int(self.mf) << 13) | (self.offset & 0x1FFF)
        header = struct.pack(
            "!BBHHHBBHII",
            (4 << 4) | (self.HEADER_LENGTH // 4),
            self.tos,
            total_length,
            self.identification,
            flags,
            self.ttl,
            self.proto,
            0,
            self.src,
            self.dst,
        )
        checksum = struct.pack("!H", _internet_checksum(header))
        return header[:10] + checksum + header[12:] + bytes(self.payload)

    @classmethod
    def parse(cls, data: bytes) -> InternetDatagram:
        if len(data) < cls.HEADER_LENGTH:
            raise ParseError("packet too short for an IPv4 header")
        (
            version_and_length,
            tos,
            total_length,
            identification,
            flags,
            ttl,
            proto,
            _checksum,
            src,
            dst,
        ) = struct.unpack_from("!BBHHHBBHII", data)
        if version_and_length >> 4 != 4:
            raise ParseError("wrong IP version")
        header_length = (version_and_length & 0x0F) * 4
        if header_length < cls.HEADER_LENGTH:
            raise ParseError("IPv4 header length too small")
        if total_length < header_length or total_length > len(data):
            raise ParseError("IPv4 total length inconsistent with packet")
        if _internet_checksum(bytes(data[:header_length])) != 0:
            raise ParseError("bad IPv4 header checksum")
        return cls(
            src=src,
            dst=dst,
            ttl=ttl,
            proto=proto,
            tos=tos,
            identification=identification,
            df=bool(flags & 0x4000),
            mf=bool(flags & 0x2000),
            offset=flags & 0x1FFF,
            payload=bytes(data[header_length:total_length]),
        )

    def summary(self) -> str:
        return (
            f"IPv4, len={self.HEADER_LENGTH + len(self.payload)}, proto={self.proto}, "
            f"ttl={self.ttl}, src={IPv4Address(self.src)}, dst={IPv4Address(self.dst)}"
        )


class NetworkInterface:
    """Translates IPv4 datagrams to Ethernet frames and back, resolving next hops with ARP."""

    ARP_ENTRY_TTL = 30_000
    ARP_REQUEST_TIMEOUT = 5_000

    def __init__(self, ethernet_address: bytes, ip_address: AddressLike) -> None:
        _check_ethernet_address(ethernet_address, "Ethernet address")
        self._ethernet_address = bytes(ethernet_address)
        self._ip_address = IPv4Address(ip_address)
        self._frames_out: deque[EthernetFrame] = deque()
        self._arp_table: dict[int, tuple[bytes, int]] = {}
        self._pending_requests: dict[int, int] = {}
        self._pending_datagrams: list[tuple[int, InternetDatagram]] = []
        logger.debug(
            "Network interface has Ethernet address %s and IP address %s",
            _format_ethernet_address(self._ethernet_address),
            self._ip_address,
        )

    def frames_out(self) -> deque[EthernetFrame]:
        """Queue of Ethernet frames awaiting transmission."""
        return self._frames_out

    def send_datagram(self, dgram: InternetDatagram, next_hop: AddressLike) -> None:
        """Send ``dgram`` towards ``next_hop``, asking for its Ethernet address if unknown."""
        next_hop_ip = int(IPv4Address(next_hop))
        if next_hop_ip in self._arp_table:
            self._frames_out.append(self._frame(next_hop_ip, EthernetHeader.TYPE_IPv4, dgram.serialize()))
            return

        self._pending_datagrams.append((next_hop_ip, replace(dgram)))
        if next_hop_ip not in self._pending_requests:
            self._pending_requests[next_hop_ip] = self.ARP_REQUEST_TIMEOUT
            self._send_arp(next_hop_ip, ARPMessage.OPCODE_REQUEST)

    def recv_frame(self, frame: EthernetFrame) -> Optional[InternetDatagram]:
        """Handle an incoming frame; return the datagram it carries, if any."""
        header = frame.header
        if header.dst not in (self._ethernet_address, ETHERNET_BROADCAST):
            return None

        if header.type == EthernetHeader.TYPE_IPv4:
            try:
                return InternetDatagram.parse(frame.payload)
            except ParseError:
                return None

        try:
            message = ARPMessage.parse(frame.payload)
        except ParseError:
            return None
        if message.target_ip_address != int(self._ip_address):
            return None

        sender_ip = message.sender_ip_address
        self._arp_table[sender_ip] = (message.sender_ethernet_address, self.ARP_ENTRY_TTL)

        if message.opcode == ARPMessage.OPCODE_REQUEST:
            self._send_arp(sender_ip, ARPMessage.OPCODE_REPLY)

        self._pending_requests.pop(sender_ip, None)

        still_waiting = []
        for ip, dgram in self._pending_datagrams:
            if ip == sender_ip:
                self._frames_out.append(self._frame(ip, EthernetHeader.TYPE_IPv4, dgram.serialize()))
            else:
                still_waiting.append((ip, dgram))
        self._pending_datagrams = still_waiting
        return None

    def tick(self, ms_since_last_tick: int) -> None:
        """Advance time: retry unanswered ARP requests and expire old mappings."""
        for ip, remaining in self._pending_requests.items():
            if remaining <= ms_since_last_tick:
                self._send_arp(ip, ARPMessage.OPCODE_REQUEST)
                self._pending_requests[ip] = self.ARP_REQUEST_TIMEOUT
            else:
                self._pending_requests[ip] = remaining - ms_since_last_tick

        for ip, (mac, remaining) in list(self._arp_table.items()):
            if remaining <= ms_since_last_tick:
                del self._arp_table[ip]
            else:
                self._arp_table[ip] = (mac, remaining - ms_since_last_tick)

    def _known_ethernet_address(self, ip: int) -> Optional[bytes]:
        entry = self._arp_table.get(ip)
        return entry[0] if entry is not None else None

    def _frame(self, dst_ip: int, ethertype: int, payload: bytes) -> EthernetFrame:
        dst = self._known_ethernet_address(dst_ip) or ETHERNET_BROADCAST
        return EthernetFrame(EthernetHeader(dst=dst, src=self._ethernet_address, type=ethertype), payload)

    def _send_arp(self, target_ip: int, opcode: int) -> None:
        message = ARPMessage(
            opcode=opcode,
            sender_ethernet_address=self._ethernet_address,
            sender_ip_address=int(self._ip_address),
            target_ethernet_address=self._known_ethernet_address(target_ip) or _ETHERNET_ZERO,
            target_ip_address=target_ip,
        )
        self._frames_out.append(self._frame(target_ip, EthernetHeader.TYPE_ARP, message.serialize()))