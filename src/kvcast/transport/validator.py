#!/usr/bin/env python3
"""
KVCAST VALIDATOR - The Gatekeeper
---------------------------------
Pre-flight checks for the address and port arguments of the sender and
the listener. Failures raise ArgumentError; deciding whether to exit is
left to the CLI.

Author: KvCast Team
Date: 2026-10-19
"""

import ipaddress
import logging
from typing import Tuple

from kvcast.core.errors import ArgumentError

logger = logging.getLogger("kvcast.validator")

MULTICAST_RANGE = "224.0.0.0 - 239.255.255.255"
MAX_PORT = 65535


def validate_ipv4(text: str) -> str:
    """Accepts dotted-quad IPv4 only (same rules as inet_pton)."""
    try:
        return str(ipaddress.IPv4Address(text))
    except ipaddress.AddressValueError:
        raise ArgumentError(f"Invalid IP address format: {text}")


def validate_multicast(text: str) -> str:
    address = validate_ipv4(text)
    first_octet = int(address.split(".")[0])
    if first_octet < 224 or first_octet > 239:
        raise ArgumentError(
            f"Not a multicast address: {text}\nMulticast range: {MULTICAST_RANGE}"
        )
    return address


def validate_port(text: str) -> int:
    if not text or not (text.isascii() and text.isdigit()):
        raise ArgumentError("The port number isn't a number")
    port = int(text)
    if port > MAX_PORT:
        raise ArgumentError(f"Invalid port number\nValid Port Range: 0-{MAX_PORT}")
    return port


def validate_endpoint(ip: str, port: str, require_multicast: bool = True) -> Tuple[str, int]:
    """
    Validates an (ip, port) argument pair.

    Args:
        ip: Destination or group address as typed by the user.
        port: Port as typed by the user (digits only).
        require_multicast: Reject addresses outside 224.0.0.0/4.
    """
    address = validate_multicast(ip) if require_multicast else validate_ipv4(ip)
    number = validate_port(str(port))
    logger.debug(f"Validated endpoint {address}:{number}")
    return address, number
