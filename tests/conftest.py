"""Pytest configuration and shared fixtures for test suite"""

import os
import shutil
import socket
import ssl
import subprocess
import threading
import time
from typing import Generator, List, Optional, Tuple

import pytest


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests requiring network")


class StreamCollector:
    """
    Minimal TCP (or TLS) collector for tests.

    Accepts a single connection on a background thread and accumulates
    everything it receives until the peer closes.
    """

    def __init__(self, ssl_context: Optional[ssl.SSLContext] = None) -> None:
        self.ssl_context = ssl_context
        self.received: bytes = b''
        self.server_names: List[Optional[str]] = []
        self.handshake_error: Optional[Exception] = None
        self.lock = threading.Lock()
        self.done = threading.Event()

        if ssl_context is not None:
            ssl_context.sni_callback = self._record_server_name

        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.listener.bind(('127.0.0.1', 0))
        self.listener.listen(5)
        self.port: int = self.listener.getsockname()[1]

        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _record_server_name(self, sslobj, server_name, context) -> None:
        self.server_names.append(server_name)

    def _serve(self) -> None:
        try:
            conn, _ = self.listener.accept()
        except OSError:
            self.done.set()
            return

        try:
            if self.ssl_context is not None:
                try:
                    conn = self.ssl_context.wrap_socket(conn, server_side=True)
                except (ssl.SSLError, OSError) as e:
                    self.handshake_error = e
                    return

            conn.settimeout(5.0)
            while True:
                try:
                    data = conn.recv(4096)
                except OSError:
                    break
                if not data:
                    break
                with self.lock:
                    self.received += data
        finally:
            conn.close()
            self.done.set()

    def wait_for(self, expected: bytes, timeout: float = 3.0) -> bytes:
        """Wait until expected shows up in the received stream"""
        deadline = time.time() + timeout
        while time.time() < deadline:
            with self.lock:
                if expected in self.received:
                    break
            time.sleep(0.01)
        with self.lock:
            return self.received

    def wait_closed(self, timeout: float = 3.0) -> bytes:
        """Wait for the peer to close and return everything received"""
        self.done.wait(timeout)
        with self.lock:
            return self.received

    def close(self) -> None:
        self.listener.close()


@pytest.fixture
def free_port() -> int:
    """Return a TCP port with nothing listening on it"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def udp_collector() -> Generator[Tuple[socket.socket, int], None, None]:
    """UDP socket bound to an available port on localhost"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(('127.0.0.1', 0))
    sock.settimeout(2.0)
    port = sock.getsockname()[1]

    yield sock, port

    sock.close()


@pytest.fixture
def tcp_collector() -> Generator[StreamCollector, None, None]:
    """Plain TCP collector on an available port"""
    collector = StreamCollector()
    yield collector
    collector.close()


@pytest.fixture(scope='session')
def self_signed_cert(tmp_path_factory) -> Tuple[str, str]:
    """Throwaway certificate for localhost and 127.0.0.1, generated with the openssl CLI"""
    if shutil.which('openssl') is None:
        pytest.skip("openssl binary not available")

    cert_dir = tmp_path_factory.mktemp('certs')
    cert_file = os.path.join(cert_dir, 'cert.pem')
    key_file = os.path.join(cert_dir, 'key.pem')

    cmd = [
        'openssl', 'req', '-x509', '-newkey', 'rsa:2048',
        '-keyout', key_file, '-out', cert_file,
        '-days', '1', '-nodes',
        '-subj', '/CN=localhost',
        '-addext', 'subjectAltName=DNS:localhost,IP:127.0.0.1',
        '-addext', 'keyUsage=critical,digitalSignature,keyEncipherment,keyCertSign',
    ]
    result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    if result.returncode != 0:
        pytest.skip(f"Could not generate self-signed certificate: {result.stderr.decode()}")

    return cert_file, key_file


@pytest.fixture
def tls_collector(self_signed_cert: Tuple[str, str]) -> Generator[StreamCollector, None, None]:
    """TLS collector presenting the self-signed certificate and recording SNI"""
    cert_file, key_file = self_signed_cert
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(cert_file, key_file)

    collector = StreamCollector(ssl_context=context)
    yield collector
    collector.close()
