import enum
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PACKET_SIZE = 1024


class Protocol(enum.Enum):
    UDP = 'udp'
    TCP = 'tcp'


class VerifyMode(enum.Enum):
    """TLS certificate verification policy"""
    NONE = 'none'
    PEER = 'peer'


def parse_enum(enum_cls: Any, value: Any, option: str) -> Any:
    """Accept an enum member or its name/value in any case"""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    choices = ', '.join(member.value for member in enum_cls)
    raise ConfigurationError(f"Invalid {option}: {value!r} (expected one of: {choices})")


class SenderOptions:
    """Validated construction options for a Sender"""

    # Environment variables read by from_env() (option -> variable)
    ENV_VARS: Dict[str, str] = {
        'host': 'SYSLOG_SENDER_HOST',
        'port': 'SYSLOG_SENDER_PORT',
        'protocol': 'SYSLOG_SENDER_PROTOCOL',
        'packet_size': 'SYSLOG_SENDER_PACKET_SIZE',
        'timeout': 'SYSLOG_SENDER_TIMEOUT',
        'tls': 'SYSLOG_SENDER_TLS',
        'verify_mode': 'SYSLOG_SENDER_VERIFY_MODE',
        'ca_file': 'SYSLOG_SENDER_CA_FILE',
        'keep_alive': 'SYSLOG_SENDER_KEEP_ALIVE',
    }

    def __init__(self,
                 host: str,
                 port: int,
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
        if not host or not isinstance(host, str):
            raise ConfigurationError(f"Invalid host: {host!r}")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError(f"Invalid port: {port!r}")
        if isinstance(packet_size, bool) or not isinstance(packet_size, int) or packet_size <= 0:
            raise ConfigurationError(f"Invalid packet_size: {packet_size!r}")
        if timeout is not None and (isinstance(timeout, bool)
                                    or not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ConfigurationError(f"Invalid timeout: {timeout!r}")
        for option, value in (('keep_alive_idle', keep_alive_idle),
                              ('keep_alive_cnt', keep_alive_cnt),
                              ('keep_alive_intvl', keep_alive_intvl)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
                raise ConfigurationError(f"Invalid {option}: {value!r}")

        # getaddrinfo and create_connection want bare IPv6 literals
        if host.startswith('[') and host.endswith(']'):
            host = host[1:-1]
            if not host:
                raise ConfigurationError("Invalid host: '[]'")

        self.host: str = host
        self.port: int = port
        self.protocol: Protocol = parse_enum(Protocol, protocol, 'protocol')
        self.packet_size: int = packet_size
        self.timeout: Optional[float] = timeout
        self.tls: bool = bool(tls)
        self.verify_mode: VerifyMode = parse_enum(VerifyMode, verify_mode, 'verify_mode')
        self.ca_file: Optional[str] = ca_file
        self.keep_alive: bool = bool(keep_alive)
        self.keep_alive_idle: Optional[int] = keep_alive_idle
        self.keep_alive_cnt: Optional[int] = keep_alive_cnt
        self.keep_alive_intvl: Optional[int] = keep_alive_intvl

        if self.protocol is Protocol.UDP and self.tls:
            logger.warning("tls option ignored for UDP transport")

    @classmethod
    def check_keys(cls, options: Mapping[str, Any]) -> None:
        """Raise ConfigurationError for option names this library does not know"""
        known = set(cls.ENV_VARS) - {'host', 'port'}
        known |= {'keep_alive_idle', 'keep_alive_cnt', 'keep_alive_intvl'}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")

    @classmethod
    def from_mapping(cls, host: str, port: int, options: Mapping[str, Any]) -> 'SenderOptions':
        """Build options from a dict, rejecting keys this library does not know"""
        cls.check_keys(options)
        return cls(host, port, **dict(options))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SenderOptions':
        """
        Build options from SYSLOG_SENDER_* environment variables.

        Unset variables fall back to the constructor defaults; host defaults
        to 127.0.0.1 and port to 514.
        """
        env = os.environ if environ is None else environ

        def get(option: str) -> Optional[str]:
            value = env.get(cls.ENV_VARS[option])
            return value if value not in (None, '') else None

        def as_int(option: str, raw: str) -> int:
            try:
                return int(raw)
            except ValueError:
                raise ConfigurationError(f"{cls.ENV_VARS[option]} must be an integer, got {raw!r}") from None

        def as_bool(option: str, raw: str) -> bool:
            lowered = raw.strip().lower()
            if lowered in ('true', '1', 'yes', 'on'):
                return True
            if lowered in ('false', '0', 'no', 'off'):
                return False
            raise ConfigurationError(f"{cls.ENV_VARS[option]} must be true or false, got {raw!r}")

        kwargs: Dict[str, Any] = {}
        for option in ('protocol', 'verify_mode', 'ca_file'):
            if get(option) is not None:
                kwargs[option] = get(option)
        if get('packet_size') is not None:
            kwargs['packet_size'] = as_int('packet_size', get('packet_size'))
        if get('timeout') is not None:
            try:
                kwargs['timeout'] = float(get('timeout'))
            except ValueError:
                raise ConfigurationError(
                    f"{cls.ENV_VARS['timeout']} must be a number, got {get('timeout')!r}"
                ) from None
        for option in ('tls', 'keep_alive'):
            if get(option) is not None:
                kwargs[option] = as_bool(option, get(option))

        host = get('host') or '127.0.0.1'
        port = as_int('port', get('port')) if get('port') is not None else 514
        return cls(host, port, **kwargs)

    def __repr__(self) -> str:
        return (f"SenderOptions(host={self.host!r}, port={self.port}, "
                f"protocol={self.protocol.value}, tls={self.tls})")
