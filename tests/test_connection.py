#!/usr/bin/env python3
"""
KVCAST CONNECTION SUITE
-----------------------
Socket setup for the listener and the sender, exercised against mocked
sockets so no network is required.

Author: KvCast Team
Date: 2026-10-19
"""

import socket
import struct
from unittest.mock import MagicMock, patch

import pytest

from kvcast.core.config import KvCastConfig
from kvcast.core.errors import TransportError
from kvcast.transport.connection import (
    DatagramSender,
    MulticastListener,
    create_listener,
    create_sender,
)

GROUP = "239.0.0.1"
PORT = 5000


def _membership_calls(mock_sock, option):
    return [c for c in mock_sock.setsockopt.call_args_list
            if c.args[:2] == (socket.IPPROTO_IP, option)]


@patch("socket.socket")
def test_listener_binds_and_joins_group(mock_socket):
    mock_sock = MagicMock()
    mock_socket.return_value = mock_sock

    listener = MulticastListener(GROUP, PORT)
    assert listener.connect() is mock_sock

    mock_socket.assert_called_once_with(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    mock_sock.setsockopt.assert_any_call(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    mock_sock.bind.assert_called_once_with(("", PORT))
    mock_sock.settimeout.assert_called_once_with(1.0)

    (join,) = _membership_calls(mock_sock, socket.IP_ADD_MEMBERSHIP)
    expected = struct.pack("4s4s", socket.inet_aton(GROUP), socket.inet_aton("0.0.0.0"))
    assert join.args[2] == expected


@patch("socket.socket")
def test_unicast_listener_skips_membership(mock_socket):
    mock_sock = MagicMock()
    mock_socket.return_value = mock_sock

    listener = MulticastListener(GROUP, PORT, join_group=False)
    listener.connect()
    listener.disconnect()

    assert _membership_calls(mock_sock, socket.IP_ADD_MEMBERSHIP) == []
    assert _membership_calls(mock_sock, socket.IP_DROP_MEMBERSHIP) == []
    mock_sock.close.assert_called_once()


@patch("socket.socket")
def test_bind_failure_closes_socket(mock_socket):
    mock_sock = MagicMock()
    mock_sock.bind.side_effect = OSError("Address already in use")
    mock_socket.return_value = mock_sock

    listener = MulticastListener(GROUP, PORT)
    with pytest.raises(TransportError, match="Address already in use"):
        listener.connect()

    mock_sock.close.assert_called_once()
    assert listener.socket is None


@patch("socket.socket")
def test_context_manager_leaves_group(mock_socket):
    mock_sock = MagicMock()
    mock_socket.return_value = mock_sock

    with MulticastListener(GROUP, PORT) as listener:
        assert listener.socket is mock_sock

    assert len(_membership_calls(mock_sock, socket.IP_DROP_MEMBERSHIP)) == 1
    mock_sock.close.assert_called_once()
    assert listener.socket is None


@patch("socket.socket")
def test_receive_uses_buffer_size(mock_socket):
    mock_sock = MagicMock()
    mock_sock.recvfrom.return_value = (b'{"a":1}', ("10.0.0.2", 40000))
    mock_socket.return_value = mock_sock

    listener = MulticastListener(GROUP, PORT, buffer_size=2048)
    listener.connect()
    assert listener.receive() == (b'{"a":1}', ("10.0.0.2", 40000))
    mock_sock.recvfrom.assert_called_once_with(2048)


def test_receive_before_connect():
    with pytest.raises(TransportError):
        MulticastListener(GROUP, PORT).receive()


@patch("socket.socket")
def test_sender_sets_ttl_for_multicast(mock_socket):
    mock_sock = MagicMock()
    mock_sock.sendto.return_value = 7
    mock_socket.return_value = mock_sock

    with DatagramSender(GROUP, PORT, ttl=3) as sender:
        assert sender.send(b'{"a":1}') == 7

    mock_sock.setsockopt.assert_called_once_with(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 3)
    mock_sock.sendto.assert_called_once_with(b'{"a":1}', (GROUP, PORT))
    mock_sock.bind.assert_not_called()
    mock_sock.close.assert_called_once()


@patch("socket.socket")
def test_sender_unicast_has_no_ttl(mock_socket):
    mock_sock = MagicMock()
    mock_socket.return_value = mock_sock

    sender = DatagramSender("127.0.0.1", PORT)
    sender.send(b"{}")
    mock_sock.setsockopt.assert_not_called()
    sender.close()


def test_factories_use_config():
    config = KvCastConfig(buffer_size=1500, timeout=0.5, unicast=True, ttl=4)
    listener = create_listener(GROUP, PORT, config)
    assert listener.buffer_size == 1500
    assert listener.timeout == 0.5
    assert listener.join_group is False

    sender = create_sender(GROUP, PORT, config)
    assert sender.ttl == 4
    assert sender.socket is None
