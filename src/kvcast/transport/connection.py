#!/usr/bin/env python3
"""
KVCAST CONNECTION - UDP Sockets
-------------------------------
Socket setup for both ends of the feed.

- MulticastListener: binds a port on all interfaces and joins an IPv4
  multicast group (or stays plain unicast when join_group is False).
- DatagramSender: unbound UDP socket; the OS assigns an ephemeral port
  on the first sendto().

Author: KvCast Team
Date: 2026-10-19
"""

import ipaddress
import logging
import socket
import struct
from typing import Optional, Tuple

from kvcast.core.errors import TransportError
from kvcast.parsing.exporter import MAX_DATAGRAM_BYTES

logger = logging.getLogger("kvcast.connection")


def _membership_request(group: str) -> bytes:
    # ip_mreq: [4 bytes group address][4 bytes interface address]
    return struct.pack("4s4s", socket.inet_aton(group), socket.inet_aton("0.0.0.0"))


class MulticastListener:
    """
    Manages the receiving socket.

    Handles socket creation, address reuse, binding, multicast group
    membership and the receive timeout that keeps Ctrl+C responsive.
    """

    def __init__(self, group: str, port: int, buffer_size: int = MAX_DATAGRAM_BYTES,
                 join_group: bool = True, timeout: Optional[float] = 1.0):
        self.group = group
        self.port = port
        self.buffer_size = buffer_size
        self.join_group = join_group
        self.timeout = timeout
        self.socket: Optional[socket.socket] = None

    def connect(self) -> socket.socket:
        """
        Creates the socket, binds ('', port) and joins the group.

        Raises:
            TransportError: If any socket call fails.
        """
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if hasattr(socket, "SO_REUSEPORT"):
                self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)

            logger.info(f"Binding to port {self.port} on all interfaces...")
            self.socket.bind(("", self.port))

            if self.join_group:
                logger.info(f"Joining multicast group {self.group}...")
                self.socket.setsockopt(
                    socket.IPPROTO_IP,
                    socket.IP_ADD_MEMBERSHIP,
                    _membership_request(self.group)
                )

            self.socket.settimeout(self.timeout)
            logger.info(f"Listening on {self.group}:{self.port}")
            return self.socket

        except OSError as e:
            logger.error(f"Socket error during setup: {e}")
            if self.socket:
                self.socket.close()
                self.socket = None
            raise TransportError(f"Failed to listen on {self.group}:{self.port}: {e}") from e

    def receive(self) -> Tuple[bytes, Tuple[str, int]]:
        if self.socket is None:
            raise TransportError("Listener is not connected")
        return self.socket.recvfrom(self.buffer_size)

    def disconnect(self):
        """Leaves the multicast group and closes the socket."""
        if not self.socket:
            return
        try:
            if self.join_group:
                self.socket.setsockopt(
                    socket.IPPROTO_IP,
                    socket.IP_DROP_MEMBERSHIP,
                    _membership_request(self.group)
                )
        except OSError as e:
            logger.warning(f"Error leaving group {self.group}: {e}")
        finally:
            self.socket.close()
            self.socket = None
            logger.info("Listener closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


class DatagramSender:
    """Sends one JSON payload per datagram to a fixed destination."""

    def __init__(self, host: str, port: int, ttl: int = 1):
        self.host = host
        self.port = port
        self.ttl = ttl
        self.socket: Optional[socket.socket] = None

    @property
    def is_multicast(self) -> bool:
        return ipaddress.IPv4Address(self.host).is_multicast

    def connect(self) -> socket.socket:
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            if self.is_multicast:
                self.socket.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.ttl)
            logger.info(f"Sender ready for {self.host}:{self.port}")
            return self.socket
        except OSError as e:
            if self.socket:
                self.socket.close()
                self.socket = None
            raise TransportError(f"Failed to create sender socket: {e}") from e

    def send(self, payload: bytes) -> int:
        if self.socket is None:
            self.connect()
        return self.socket.sendto(payload, (self.host, self.port))

    def close(self):
        if self.socket:
            self.socket.close()
            self.socket = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_listener(group: str, port: int, config) -> MulticastListener:
    """Builds a listener from a KvCastConfig (buffer size, timeout, unicast flag)."""
    return MulticastListener(
        group=group,
        port=port,
        buffer_size=config.buffer_size,
        join_group=not config.unicast,
        timeout=config.timeout,
    )


def create_sender(host: str, port: int, config) -> DatagramSender:
    return DatagramSender(host=host, port=port, ttl=config.ttl)
