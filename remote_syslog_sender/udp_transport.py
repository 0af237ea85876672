import logging
import socket
from typing import Any, Tuple, Union

from .config import DEFAULT_PACKET_SIZE
from .errors import PacketTooLargeError, SendError, SenderConnectionError
from .transport import Transport

logger = logging.getLogger(__name__)


class UdpTransport(Transport):
    """Send one datagram per line to a fixed destination"""

    def __init__(self, host: str, port: int, packet_size: int = DEFAULT_PACKET_SIZE) -> None:
        """
        Resolve the destination and open a datagram socket for it.

        Args:
            host: Collector hostname or address literal
            port: Collector UDP port
            packet_size: Largest payload a single datagram may carry

        Raises:
            SenderConnectionError: If the destination cannot be resolved
        """
        super().__init__(host, port)
        self.packet_size: int = packet_size

        try:
            family, socktype, proto, _, address = socket.getaddrinfo(
                host, port, 0, socket.SOCK_DGRAM
            )[0]
        except (socket.gaierror, IndexError) as e:
            logger.error(f"Cannot resolve UDP destination {host}:{port}: {e}")
            raise SenderConnectionError(f"Cannot resolve {host}:{port}: {e}") from e

        self.address: Tuple[Any, ...] = address
        self.sock = socket.socket(family, socktype, proto)

        logger.info(f"UDP transport ready for {host}:{port} (packet size {packet_size})")

    def send(self, line: Union[str, bytes]) -> None:
        """
        Send line as exactly one datagram.

        Lines larger than packet_size are rejected, never truncated or split.
        A failed send leaves the transport usable for the next line.
        """
        if self.sock is None:
            raise SendError(f"UDP transport to {self.host}:{self.port} is closed")

        payload = self._encode(line)
        if len(payload) > self.packet_size:
            logger.warning(f"Dropping {len(payload)} byte line for {self.host}:{self.port}: over packet size")
            raise PacketTooLargeError(len(payload), self.packet_size)

        try:
            self.sock.sendto(payload, self.address)
        except OSError as e:
            logger.error(f"UDP send to {self.host}:{self.port} failed: {e}")
            raise SendError(f"UDP send to {self.host}:{self.port} failed: {e}") from e

        logger.debug(f"Sent {len(payload)} byte datagram to {self.host}:{self.port}")
