"""
Remote Syslog Sender Package

A client library that forwards log lines to a remote syslog collector
over UDP, TCP or TLS without a local syslog daemon.
"""

import logging

from .config import Protocol, SenderOptions, VerifyMode
from .errors import (
    ConfigurationError,
    ConnectTimeoutError,
    PacketTooLargeError,
    SendError,
    SenderConnectionError,
    SenderError,
    TLSHandshakeError,
)
from .host_classifier import is_literal_address
from .sender import Sender, split_lines
from .tcp_transport import TcpState, TcpTransport
from .transport import Transport
from .udp_transport import UdpTransport

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'ConfigurationError',
    'ConnectTimeoutError',
    'PacketTooLargeError',
    'Protocol',
    'SendError',
    'Sender',
    'SenderConnectionError',
    'SenderError',
    'SenderOptions',
    'TLSHandshakeError',
    'TcpState',
    'TcpTransport',
    'Transport',
    'UdpTransport',
    'VerifyMode',
    'is_literal_address',
    'split_lines',
]

__version__ = '1.0.0'
