"""Byte streams, stream reassembly, ARP-resolving network interfaces, routing and SHA-256."""

__version__ = "0.1.0"