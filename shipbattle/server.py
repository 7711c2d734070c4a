"""Relay server that pairs two players who send the same key."""

from __future__ import annotations

import logging
import re
import select
import selectors
import socket
import sys
import threading
from typing import Sequence

KEY_LEN = 5
BUFFER_LEN = 256
WAIT_BUFFER_LEN = 1024
_MAX_PORT = 0xFFFF
_POLL_INTERVAL = 0.2
_PORT = re.compile(r"\s*([+-]?)(\d+)")

log = logging.getLogger(__name__)


def is_valid_key(key: str) -> bool:
    """A key is exactly five lower-case ASCII letters."""
    return len(key) == KEY_LEN and all("a" <= char <= "z" for char in key)


def parse_port(text: str) -> int:
    """Read a TCP port number, rejecting non-numbers and values above 65535."""
    match = _PORT.match(text)
    if match is None:
        raise ValueError(f"the port `{text}` is not a number")
    value = int(match.group(2))
    if match.group(1) == "-" and value != 0:
        raise ValueError(f"the port `{text}` is too big for a port")
    if value > _MAX_PORT:
        raise ValueError(f"the port `{text}` is too big for a port")
    return value


def relay(sock1: socket.socket, sock2: socket.socket) -> None:
    """Greet both players, then forward bytes both ways until one side ends."""
    for sock, greeting in ((sock1, b"CONNECTED AS 1"), (sock2, b"CONNECTED AS 2")):
        try:
            sock.sendall(greeting)
        except OSError as error:
            log.error("%s", error)
    peers = {sock1: sock2, sock2: sock1}
    try:
        with selectors.DefaultSelector() as selector:
            for sock in peers:
                selector.register(sock, selectors.EVENT_READ)
            while True:
                for key, _ in selector.select():
                    source = key.fileobj
                    try:
                        data = source.recv(BUFFER_LEN - 1)
                    except OSError as error:
                        log.error("%s", error)
                        return
                    if not data:
                        log.info("a socket ended")
                        return
                    try:
                        peers[source].sendall(data)
                    except OSError as error:
                        log.error("%s", error)
                        return
    finally:
        sock1.close()
        sock2.close()


class RelayServer:
    """Listens for players and pairs those who send the same key."""

    def __init__(self, port: int, host: str = "") -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self._listener.bind((host, port))
            self._listener.listen(socket.SOMAXCONN)
        except OSError:
            self._listener.close()
            raise
        self.host = host
        self.port = self._listener.getsockname()[1]
        self._waiting: dict[str, socket.socket] = {}
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def __enter__(self) -> RelayServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop accepting and drop players still waiting for a partner."""
        self._stopped.set()
        self._listener.close()
        with self._lock:
            waiting = list(self._waiting.values())
            self._waiting.clear()
        for conn in waiting:
            conn.close()

    def serve_forever(self) -> None:
        """Accept connections until closed, each handled on its own thread."""
        while not self._stopped.is_set():
            try:
                ready, _, _ = select.select([self._listener], [], [], _POLL_INTERVAL)
                if not ready:
                    continue
                conn, _ = self._listener.accept()
            except (OSError, ValueError):
                if self._stopped.is_set():
                    return
                raise
            log.info("a new connection")
            threading.Thread(target=self.handle_waiting, args=(conn,), daemon=True).start()

    def handle_waiting(self, conn: socket.socket) -> None:
        """Read a key from ``conn`` and pair it or keep it waiting."""
        try:
            data = conn.recv(WAIT_BUFFER_LEN - 1)
        except OSError as error:
            log.error("%s", error)
            data = b""
        key = data.split(b"\0", 1)[0].decode("ascii", errors="replace")
        if not is_valid_key(key):
            log.info("invalid key format")
            try:
                conn.sendall(b"error: invalid connection")
            except OSError as error:
                log.error("%s", error)
            conn.close()
            return
        with self._lock:
            partner = self._waiting.pop(key, None)
            if partner is None:
                log.info("new key: `%s`", key)
                self._waiting[key] = conn
                log.info("new entries length: %d", len(self._waiting))
                return
            log.info("paired key: `%s`", key)
            log.info("new entries length: %d", len(self._waiting))
        threading.Thread(target=relay, args=(partner, conn), daemon=True).start()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the relay server on the port given as the only argument."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("usage: shipbattle-server <port>")
        return 0
    try:
        port = parse_port(args[0])
    except ValueError as error:
        print(f"[ERROR] {error}", file=sys.stderr)
        return 1
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s", stream=sys.stdout)
    try:
        server = RelayServer(port)
    except OSError as error:
        print(f"[ERROR] bind error: {error.strerror or error}", file=sys.stderr)
        return error.errno or 1
    log.info("start listening port %d", server.port)
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            return 0
        except OSError as error:
            print(f"[ERROR] {error.strerror or error}", file=sys.stderr)
            return error.errno or 1
    return 0