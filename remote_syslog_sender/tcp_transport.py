import enum
import logging
import socket
import ssl
from typing import Optional, Union

from .config import VerifyMode, parse_enum
from .errors import ConnectTimeoutError, SendError, SenderConnectionError, TLSHandshakeError
from .host_classifier import is_literal_address
from .transport import Transport

logger = logging.getLogger(__name__)


class TcpState(enum.Enum):
    """Lifecycle of a TcpTransport"""
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    TLS_HANDSHAKING = 'tls_handshaking'
    SECURED = 'secured'
    READY = 'ready'
    CLOSED = 'closed'


class TcpTransport(Transport):
    """Write lines to a single TCP (optionally TLS) stream"""

    # (option name, socket option name); options missing on this platform are skipped
    KEEPALIVE_OPTIONS = (
        ('keep_alive_idle', 'TCP_KEEPIDLE'),
        ('keep_alive_cnt', 'TCP_KEEPCNT'),
        ('keep_alive_intvl', 'TCP_KEEPINTVL'),
    )

    def __init__(self, host: str, port: int,
                 timeout: Optional[float] = None,
                 tls: bool = False,
                 verify_mode: Union[VerifyMode, str] = VerifyMode.PEER,
                 ca_file: Optional[str] = None,
                 keep_alive: bool = False,
                 keep_alive_idle: Optional[int] = None,
                 keep_alive_cnt: Optional[int] = None,
                 keep_alive_intvl: Optional[int] = None) -> None:
        """
        Connect to host:port and, if requested, complete the TLS handshake.

        Args:
            host: Collector hostname or address literal
            port: Collector TCP port
            timeout: Seconds allowed for the TCP connect; None blocks indefinitely.
                     The handshake and all writes are never bounded.
            tls: Upgrade the connection to TLS before any data is sent
            verify_mode: Certificate verification policy for TLS
            ca_file: PEM file of trusted certificates for VerifyMode.PEER
            keep_alive: Enable SO_KEEPALIVE on the connection
            keep_alive_idle: Seconds of idleness before the first keep-alive packet
            keep_alive_cnt: Unanswered keep-alive packets before the connection is dropped
            keep_alive_intvl: Seconds between keep-alive packets

        Raises:
            SenderConnectionError: Connect refused or failed
            ConnectTimeoutError: Connect did not finish within timeout
            TLSHandshakeError: Handshake or certificate validation failed
        """
        super().__init__(host, port)
        self.timeout: Optional[float] = timeout
        self.tls: bool = tls
        self.verify_mode: VerifyMode = parse_enum(VerifyMode, verify_mode, 'verify_mode')
        self.ca_file: Optional[str] = ca_file
        self.keep_alive: bool = keep_alive
        self.keep_alive_idle: Optional[int] = keep_alive_idle
        self.keep_alive_cnt: Optional[int] = keep_alive_cnt
        self.keep_alive_intvl: Optional[int] = keep_alive_intvl

        self.state: TcpState = TcpState.DISCONNECTED
        self.sni_hostname: Optional[str] = None

        self._connect()
        if self.tls:
            self._start_tls()
        self.state = TcpState.READY

    def _connect(self) -> None:
        """Open the TCP connection, bounded by self.timeout"""
        self.state = TcpState.CONNECTING
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except socket.timeout as e:
            self.state = TcpState.CLOSED
            logger.error(f"Timed out after {self.timeout}s connecting to {self.host}:{self.port}")
            raise ConnectTimeoutError(
                f"Connect to {self.host}:{self.port} timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            self.state = TcpState.CLOSED
            logger.error(f"Cannot connect to {self.host}:{self.port}: {e}")
            raise SenderConnectionError(f"Cannot connect to {self.host}:{self.port}: {e}") from e

        self.sock = sock
        # Only the connect is bounded
        sock.settimeout(None)
        if self.keep_alive:
            try:
                self._set_keepalive(sock)
            except OSError as e:
                self.close()
                logger.error(f"Cannot enable keep-alive on {self.host}:{self.port}: {e}")
                raise SenderConnectionError(f"Cannot enable keep-alive on {self.host}:{self.port}: {e}") from e

        self.state = TcpState.CONNECTED
        logger.info(f"Connected to {self.host}:{self.port}")

    def _set_keepalive(self, sock: socket.socket) -> None:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        for attr, option_name in self.KEEPALIVE_OPTIONS:
            value = getattr(self, attr)
            if value is None:
                continue
            option = getattr(socket, option_name, None)
            if option is None:
                logger.debug(f"{option_name} not supported on this platform, ignoring {attr}")
                continue
            sock.setsockopt(socket.IPPROTO_TCP, option, value)

    def _ssl_context(self) -> ssl.SSLContext:
        """Build the client context for the configured verification policy"""
        if self.verify_mode is VerifyMode.NONE:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            return context

        try:
            return ssl.create_default_context(cafile=self.ca_file)
        except (OSError, ssl.SSLError) as e:
            self.close()
            logger.error(f"Cannot load CA file {self.ca_file}: {e}")
            raise TLSHandshakeError(f"Cannot load CA file {self.ca_file}: {e}") from e

    def _start_tls(self) -> None:
        """
        Wrap the connected socket in TLS.

        DNS names are presented as SNI. Address literals are not: SNI carries
        host names only. Under VerifyMode.PEER a literal is still handed to the
        ssl module so the certificate can be matched against its IP SAN; the
        ssl module never places an address in the SNI extension.
        """
        context = self._ssl_context()
        self.state = TcpState.TLS_HANDSHAKING

        if is_literal_address(self.host):
            self.sni_hostname = None
            server_hostname = self.host if context.check_hostname else None
        else:
            self.sni_hostname = self.host
            server_hostname = self.host

        raw_sock = self.sock
        try:
            self.sock = context.wrap_socket(raw_sock, server_hostname=server_hostname)
        except (ssl.SSLError, OSError) as e:
            self.sock = raw_sock
            self.close()
            logger.error(f"TLS handshake with {self.host}:{self.port} failed: {e}")
            raise TLSHandshakeError(f"TLS handshake with {self.host}:{self.port} failed: {e}") from e

        self.state = TcpState.SECURED
        logger.info(
            f"TLS established with {self.host}:{self.port} "
            f"({self.sock.version()}, SNI: {self.sni_hostname or 'none'})"
        )

    def send(self, line: Union[str, bytes]) -> None:
        """
        Write line to the stream as-is, with no delimiter or length prefix.

        A failed write closes the transport for good.
        """
        if self.state is not TcpState.READY or self.sock is None:
            raise SendError(f"TCP transport to {self.host}:{self.port} is {self.state.value}")

        payload = self._encode(line)
        try:
            self.sock.sendall(payload)
        except OSError as e:
            self.close()
            logger.error(f"Write to {self.host}:{self.port} failed, transport closed: {e}")
            raise SendError(f"Write to {self.host}:{self.port} failed: {e}") from e

        logger.debug(f"Wrote {len(payload)} bytes to {self.host}:{self.port}")

    def close(self) -> None:
        super().close()
        self.state = TcpState.CLOSED
