import logging
import socket
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    One destination, one socket.

    Subclasses establish the socket in __init__ and implement send().
    Once closed, a transport is never reopened.
    """

    def __init__(self, host: str, port: int) -> None:
        self.host: str = host
        self.port: int = port
        self.sock: Optional[socket.socket] = None

    @property
    def closed(self) -> bool:
        return self.sock is None

    @abstractmethod
    def send(self, line: Union[str, bytes]) -> None:
        """Send one line to the destination"""

    @staticmethod
    def _encode(line: Union[str, bytes]) -> bytes:
        if isinstance(line, str):
            return line.encode('utf-8')
        return bytes(line)

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""
        if self.sock is None:
            return

        sock, self.sock = self.sock, None
        try:
            sock.close()
        except OSError as e:
            logger.warning(f"Error closing socket to {self.host}:{self.port}: {e}")
        else:
            logger.info(f"Closed {type(self).__name__} to {self.host}:{self.port}")

    def __enter__(self) -> 'Transport':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f"<{type(self).__name__} {self.host}:{self.port} {state}>"
