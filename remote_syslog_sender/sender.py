import logging
from typing import Any, List, Mapping, Optional, Union

from .config import DEFAULT_PACKET_SIZE, Protocol, SenderOptions, VerifyMode
from .tcp_transport import TcpTransport
from .transport import Transport
from .udp_transport import UdpTransport

logger = logging.getLogger(__name__)


def split_lines(message: Union[str, bytes]) -> List[bytes]:
    """
    Split message into syslog records, one per newline-separated line.

    A single trailing empty segment (message ending in a newline) is dropped.
    Line content is otherwise left untouched. Strings are encoded as UTF-8.
    """
    if isinstance(message, str):
        data = message.encode('utf-8')
    elif isinstance(message, (bytes, bytearray)):
        data = bytes(message)
    else:
        raise TypeError(f"message must be str or bytes, not {type(message).__name__}")
    lines = data.split(b'\n')
    if lines[-1] == b'':
        lines.pop()
    return lines


class Sender:
    """
    Forward log lines to a remote syslog collector over UDP, TCP or TLS.

    The transport is established when the Sender is created, so connection and
    handshake failures surface here rather than on the first write.

    Example:
        with Sender('logs.example.com', 6514, protocol='tcp', tls=True) as sender:
            sender.write("first line\\nsecond line")
    """

    def __init__(self, host: str, port: int,
                 protocol: Union[Protocol, str] = Protocol.UDP,
                 packet_size: int = DEFAULT_PACKET_SIZE,
                 timeout: Optional[float] = None,
                 tls: bool = False,
                 verify_mode: Union[VerifyMode, str] = VerifyMode.PEER,
                 ca_file: Optional[str] = None,
                 keep_alive: bool = False,
                 keep_alive_idle: Optional[int] = None,
                 keep_alive_cnt: Optional[int] = None,
                 keep_alive_intvl: Optional[int] = None) -> None:
        """
        Validate options and open the transport.

        Raises:
            ConfigurationError: An option is invalid
            SenderConnectionError: The destination is unreachable
            TLSHandshakeError: The TLS handshake failed
        """
        self.options: SenderOptions = SenderOptions(
            host, port,
            protocol=protocol,
            packet_size=packet_size,
            timeout=timeout,
            tls=tls,
            verify_mode=verify_mode,
            ca_file=ca_file,
            keep_alive=keep_alive,
            keep_alive_idle=keep_alive_idle,
            keep_alive_cnt=keep_alive_cnt,
            keep_alive_intvl=keep_alive_intvl,
        )
        self._transport: Transport = self._create_transport(self.options)

    @classmethod
    def from_options(cls, host: str, port: int, options: Mapping[str, Any]) -> 'Sender':
        """Create a Sender from a mapping of option names to values"""
        SenderOptions.check_keys(options)
        return cls(host, port, **dict(options))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Sender':
        """Create a Sender configured from SYSLOG_SENDER_* environment variables"""
        return cls._from_validated(SenderOptions.from_env(environ))

    @classmethod
    def _from_validated(cls, opts: SenderOptions) -> 'Sender':
        sender = cls.__new__(cls)
        sender.options = opts
        sender._transport = cls._create_transport(opts)
        return sender

    @staticmethod
    def _create_transport(opts: SenderOptions) -> Transport:
        if opts.protocol is Protocol.TCP:
            return TcpTransport(
                opts.host, opts.port,
                timeout=opts.timeout,
                tls=opts.tls,
                verify_mode=opts.verify_mode,
                ca_file=opts.ca_file,
                keep_alive=opts.keep_alive,
                keep_alive_idle=opts.keep_alive_idle,
                keep_alive_cnt=opts.keep_alive_cnt,
                keep_alive_intvl=opts.keep_alive_intvl,
            )
        return UdpTransport(opts.host, opts.port, packet_size=opts.packet_size)

    @property
    def host(self) -> str:
        return self.options.host

    @property
    def port(self) -> int:
        return self.options.port

    @property
    def protocol(self) -> Protocol:
        return self.options.protocol

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def closed(self) -> bool:
        return self._transport.closed

    def write(self, message: Union[str, bytes]) -> None:
        """
        Send each line of message, in order.

        Stops at the first line that fails and re-raises its error; later
        lines are not sent.
        """
        lines = split_lines(message)
        for index, line in enumerate(lines):
            try:
                self._transport.send(line)
            except Exception:
                logger.error(f"Line {index + 1} of {len(lines)} to {self.host}:{self.port} failed, "
                             f"{len(lines) - index - 1} not sent")
                raise

    def close(self) -> None:
        """Close the transport. Further writes raise SendError."""
        self._transport.close()

    def __enter__(self) -> 'Sender':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<Sender {self.protocol.value}://{self.host}:{self.port} transport={self._transport!r}>"
