"""Exceptions raised by the syslog sender"""


class SenderError(Exception):
    """Base class for every error raised by this package"""


class ConfigurationError(SenderError, ValueError):
    """Invalid construction option (unknown protocol, bad port, ...)"""


class SenderConnectionError(SenderError, ConnectionError):
    """TCP connect failed or the destination could not be resolved"""


class ConnectTimeoutError(SenderConnectionError):
    """TCP connect did not complete within the configured timeout"""


class TLSHandshakeError(SenderError):
    """TLS handshake or certificate validation failed"""


class SendError(SenderError, OSError):
    """Writing a line to an established (or closed) transport failed"""


class PacketTooLargeError(SendError):
    """Line does not fit in a single datagram of the configured packet size"""

    def __init__(self, size: int, packet_size: int) -> None:
        super().__init__(f"Line of {size} bytes exceeds packet size of {packet_size} bytes")
        self.size: int = size
        self.packet_size: int = packet_size
