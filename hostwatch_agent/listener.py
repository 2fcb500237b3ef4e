"""
Reachability listener

Holds a TCP port open for the lifetime of the agent so the monitoring
server can probe it. Connections are accepted and closed immediately.
"""

import logging
import socket
import threading
import time
from typing import Optional

from .exceptions import ListenerError

logger = logging.getLogger('hostwatch-agent.listener')


class ReachabilityListener:
    """Accept-and-close TCP listener running on a daemon thread"""

    def __init__(self, host: str = '0.0.0.0', port: int = 0, backlog: int = 128,
                 error_delay: float = 0.1):
        self.host = host
        self.requested_port = port
        self.backlog = backlog
        self.error_delay = error_delay
        self.sock: Optional[socket.socket] = None
        self.thread: Optional[threading.Thread] = None
        self.accepted = 0
        self._closed = threading.Event()

    @property
    def port(self) -> int:
        if self.sock is None:
            raise ListenerError("listener has not been started")
        return self.sock.getsockname()[1]

    def start(self) -> int:
        """Bind, listen and start the accept loop; returns the bound port"""
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.requested_port))
            sock.listen(self.backlog)
        except OSError as e:
            raise ListenerError(f"failed to start listener on {self.host}:{self.requested_port}: {e}") from e

        self.sock = sock
        self.thread = threading.Thread(
            target=self._accept_loop,
            name='reachability-listener',
            daemon=True,
        )
        self.thread.start()
        logger.info(f"Reachability listener bound to {self.host}:{self.port}")
        return self.port

    def _accept_loop(self):
        while not self._closed.is_set():
            try:
                conn, addr = self.sock.accept()
            except OSError as e:
                if self._closed.is_set():
                    break
                logger.error(f"Error accepting connection: {e}")
                # Avoid spinning on a persistent error such as EMFILE
                time.sleep(self.error_delay)
                continue

            self.accepted += 1
            logger.debug(f"Probe connection from {addr[0]}:{addr[1]}")
            conn.close()

    def close(self):
        """Stop accepting and release the port"""
        self._closed.set()
        if self.sock is not None:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.sock.close()
        if self.thread is not None:
            self.thread.join(timeout=5)
