"""
Open-port inventory

The inventory reported at registration either comes from an operator
supplied specification such as "8080,9000-9090" (trusted as-is) or from a
TCP connect scan of the local host.
"""

import logging
import re
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .exceptions import PortSpecError

logger = logging.getLogger('hostwatch-agent.ports')

MIN_PORT = 1
MAX_PORT = 65535

# Plain ASCII decimal with an optional leading '+'
PORT_PATTERN = re.compile(r'\+?[0-9]+')


def _parse_port_number(text: str, token: str) -> int:
    text = text.strip()
    if not PORT_PATTERN.fullmatch(text):
        raise PortSpecError(f"invalid port {text!r} in {token!r}")
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        raise PortSpecError(f"port {port} out of range {MIN_PORT}-{MAX_PORT} in {token!r}")
    return port


def parse_ports(spec: str) -> List[int]:
    """Parse a comma-separated list of ports and inclusive ranges.

    Example: "8080,9000-9090,1433". Ports are returned in the order they are
    encountered with duplicates removed. The first invalid token aborts the
    whole parse with PortSpecError.
    """
    ports: List[int] = []
    seen = set()

    for token in spec.split(','):
        token = token.strip()
        if '-' in token:
            parts = token.split('-')
            if len(parts) != 2:
                raise PortSpecError(f"invalid port range: {token!r}")
            start = _parse_port_number(parts[0], token)
            end = _parse_port_number(parts[1], token)
            if start > end:
                raise PortSpecError(f"invalid port range, start > end: {token!r}")
            candidates = range(start, end + 1)
        else:
            candidates = [_parse_port_number(token, token)]

        for port in candidates:
            if port not in seen:
                seen.add(port)
                ports.append(port)

    return ports


class PortScanner:
    """TCP connect scanner with a fixed number of in-flight probes"""

    def __init__(self, host: str = '127.0.0.1', timeout: float = 0.2,
                 max_workers: int = 100):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.host = host
        self.timeout = timeout
        self.max_workers = max_workers
        self.lock = threading.Lock()

    def probe(self, port: int) -> bool:
        """Return True if a TCP connection to the port succeeds"""
        try:
            with socket.create_connection((self.host, port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug(f"Port {port} closed: {e}")
            return False

    def scan_ports(self, ports: Iterable[int]) -> List[int]:
        """Probe every given port and return the open ones, sorted"""
        open_ports: List[int] = []

        def run_probe(port: int):
            if self.probe(port):
                with self.lock:
                    open_ports.append(port)

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix='port-scan') as executor:
            # Drain the iterator so worker exceptions surface here
            for _ in executor.map(run_probe, ports):
                pass

        return sorted(open_ports)

    def scan(self, low: int = MIN_PORT, high: int = MAX_PORT) -> List[int]:
        """Scan the inclusive range [low, high]"""
        logger.info(f"Scanning {self.host} ports {low}-{high} "
                    f"({self.max_workers} workers, {self.timeout}s timeout)")
        open_ports = self.scan_ports(range(low, high + 1))
        logger.info(f"Scan finished: {len(open_ports)} open ports")
        return open_ports


def resolve_open_ports(spec: Optional[str], scanner: PortScanner) -> List[int]:
    """Ports to report at registration.

    An explicit specification is trusted without checking reachability.
    Without one, or when it does not parse, the full port range is scanned.
    """
    if spec:
        try:
            ports = parse_ports(spec)
        except PortSpecError as e:
            logger.warning(f"Error parsing PORTS specification: {e}; falling back to full scan")
        else:
            logger.info(f"Using {len(ports)} ports from PORTS specification")
            return ports

    return scanner.scan()
