"""Terminal client: screen handling, network progress and the main loop."""

from __future__ import annotations

import errno
import os
import select
import shutil
import socket
import sys
import termios
import time
from typing import Iterator, Sequence, TextIO

from .keys import handle_key
from .protocol import ProtocolError, handle_message, parse_address
from .render import (
    Buffer,
    connect_relay_server_options,
    creating_options,
    direct_connect_options,
    end_ui,
    enter_relay_server_key_options,
    error_screen,
    frame,
    game_ui,
    greeting_options,
    greeting_screen,
    join_options,
    waiting_client,
    waiting_other_player,
    waiting_relay_server,
    waiting_server,
)
from .state import Page, Status

ENTER_ALTERNATE_SCREEN = "\x1b[?1049h\x1b[?25l"
LEAVE_ALTERNATE_SCREEN = "\x1b[?25h\x1b[?1049l"
CURSOR_HOME = "\x1b[1;1H"
FRAME_SECONDS = 1 / 60
READ_LEN = 255
_MAX_PORT = 0xFFFF
_CONNECT_PENDING = frozenset(
    {errno.EAGAIN, errno.EWOULDBLOCK, errno.EALREADY, errno.EINPROGRESS}
)


class Terminal:
    """The alternate screen with echo and line buffering switched off."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._in = sys.stdin if stdin is None else stdin
        self._out = sys.stdout if stdout is None else stdout
        self._saved_attrs: list | None = None

    def __enter__(self) -> Terminal:
        self._out.write(ENTER_ALTERNATE_SCREEN)
        self._out.flush()
        if self._in.isatty():
            fd = self._in.fileno()
            attrs = termios.tcgetattr(fd)
            self._saved_attrs = list(attrs)
            attrs[3] &= ~(termios.ECHO | termios.ICANON)
            termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._saved_attrs is not None:
            termios.tcsetattr(self._in.fileno(), termios.TCSAFLUSH, self._saved_attrs)
            self._saved_attrs = None
        self._out.write(LEAVE_ALTERNATE_SCREEN)
        self._out.flush()

    def size(self) -> tuple[int, int]:
        """Columns and rows of the output terminal."""
        try:
            measured = os.get_terminal_size(self._out.fileno())
        except (OSError, ValueError, AttributeError):
            measured = shutil.get_terminal_size()
        return measured.columns, measured.lines

    def draw(self, buffer: Buffer) -> None:
        """Paint ``buffer`` centred over the whole screen."""
        width, height = self.size()
        self._out.write(CURSOR_HOME + frame(buffer, width, height))
        self._out.flush()

    def read_keys(self) -> Iterator[str]:
        """Yield every key press already waiting, without blocking."""
        fd = self._in.fileno()
        while select.select([fd], [], [], 0)[0]:
            data = os.read(fd, 1)
            if not data:
                return
            yield data.decode("latin-1")


def _fail(status: Status, error: OSError) -> None:
    status.error = error
    status.page = Page.ERROR


def _readable(sock: socket.socket) -> bool:
    return bool(select.select([sock], [], [], 0)[0])


def _accept_client(status: Status) -> None:
    listener = status.sock
    try:
        conn, _ = listener.accept()
    except (BlockingIOError, InterruptedError):
        return
    except OSError as error:
        _fail(status, error)
        return
    listener.close()
    status.sock = conn
    status.game.is_player_1 = True
    status.page = Page.GAME


def _connect(status: Status, address: str) -> bool:
    """Advance a non-blocking connect; True once it is established."""
    code = status.sock.connect_ex(parse_address(address))
    if code in (0, errno.EISCONN):
        return True
    if code not in _CONNECT_PENDING:
        _fail(status, OSError(code, os.strerror(code)))
    return False


def _await_partner(status: Status) -> None:
    sock = status.sock
    if not _readable(sock):
        return
    try:
        data = sock.recv(READ_LEN)
    except OSError as error:
        _fail(status, error)
        return
    if not data:
        status.running = False
        return
    reply = data.decode("ascii", errors="replace")
    if reply == "CONNECTED AS 1":
        status.game.is_player_1 = True
    elif reply == "CONNECTED AS 2":
        status.game.is_player_1 = False
    else:
        raise ProtocolError(f"unexpected relay reply {reply!r}")
    status.page = Page.GAME


def _play(status: Status) -> None:
    sock = status.sock
    while _readable(sock):
        try:
            data = sock.recv(READ_LEN)
        except OSError as error:
            _fail(status, error)
            return
        handle_message(status, data)
        if not data:
            return


def handle_actions(status: Status) -> None:
    """Make network progress for the current page without blocking."""
    page = status.page
    if page is Page.WAITING_CLIENT:
        _accept_client(status)
    elif page is Page.WAITING_SERVER:
        if _connect(status, status.join_address):
            status.game.is_player_1 = False
            status.page = Page.GAME
    elif page is Page.WAITING_RELAY_SERVER:
        if _connect(status, status.relay_address):
            status.page = Page.ENTER_RELAY_SERVER_KEY
    elif page is Page.WAITING_OTHER_PLAYER:
        _await_partner(status)
    elif page is Page.GAME:
        _play(status)


def render_page(status: Status) -> Buffer:
    """The screen for the current page."""
    page = status.page
    if page is Page.GREETING:
        return greeting_screen(greeting_options(status.greeting_selection))
    if page is Page.DIRECT_CONNECT:
        return greeting_screen(direct_connect_options(status.direct_connect_selection))
    if page is Page.CONNECTING_RELAY_SERVER:
        return greeting_screen(
            connect_relay_server_options(status.relay_address, status.relay_selection)
        )
    if page is Page.CREATING:
        return greeting_screen(creating_options(status.port, status.creating_selection))
    if page is Page.JOIN:
        return greeting_screen(join_options(status.join_address, status.join_selection))
    if page is Page.ENTER_RELAY_SERVER_KEY:
        return greeting_screen(
            enter_relay_server_key_options(status.relay_key, status.key_selection)
        )
    if page is Page.WAITING_CLIENT:
        port = _MAX_PORT if status.port is None else status.port
        return greeting_screen(waiting_client(port))
    if page is Page.WAITING_SERVER:
        return greeting_screen(waiting_server(status.join_address))
    if page is Page.WAITING_RELAY_SERVER:
        return greeting_screen(waiting_relay_server(status.relay_address))
    if page is Page.WAITING_OTHER_PLAYER:
        return greeting_screen(waiting_other_player(status.relay_key))
    if page is Page.GAME:
        return game_ui(status.game)
    if page is Page.END:
        return end_ui(status.game)
    return error_screen(status.error)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the interactive client; command-line arguments are ignored."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setblocking(False)
    status = Status(sock=sock)
    try:
        with Terminal() as terminal:
            while status.running:
                for key in terminal.read_keys():
                    handle_key(status, key)
                handle_actions(status)
                terminal.draw(render_page(status))
                time.sleep(FRAME_SECONDS)
    except KeyboardInterrupt:
        pass
    finally:
        if status.sock is not None:
            status.sock.close()
        sock.close()
    return 0