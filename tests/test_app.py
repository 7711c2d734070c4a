import io
import os
import socket
import time

import pytest

from shipbattle.app import Terminal, handle_actions, render_page
from shipbattle.cells import CellState
from shipbattle.protocol import ProtocolError
from shipbattle.render import (
    Buffer,
    end_ui,
    frame,
    game_ui,
    greeting_options,
    greeting_screen,
)
from shipbattle.state import MenuSelection, Page, Status


def _poll(status, done, attempts=300):
    for _ in range(attempts):
        handle_actions(status)
        if done():
            return
        time.sleep(0.01)


@pytest.fixture
def pipe_terminal():
    read_fd, write_fd = os.pipe()
    reader = open(read_fd, "rb", buffering=0)
    out = io.StringIO()
    try:
        yield Terminal(stdin=reader, stdout=out), write_fd, out
    finally:
        reader.close()
        os.close(write_fd)


def test_read_keys_yields_pending_characters(pipe_terminal):
    terminal, write_fd, _ = pipe_terminal
    os.write(write_fd, b"jk\n")
    assert list(terminal.read_keys()) == ["j", "k", "\n"]
    assert list(terminal.read_keys()) == []


def test_context_switches_screen(pipe_terminal):
    terminal, _, out = pipe_terminal
    with terminal:
        assert out.getvalue() == "\x1b[?1049h\x1b[?25l"
    assert out.getvalue().endswith("\x1b[?25h\x1b[?1049l")


def test_size_and_draw_use_environment(pipe_terminal, monkeypatch):
    terminal, _, out = pipe_terminal
    monkeypatch.setenv("COLUMNS", "100")
    monkeypatch.setenv("LINES", "40")
    assert terminal.size() == (100, 40)
    buffer = Buffer(["hello"], 5)
    terminal.draw(buffer)
    assert out.getvalue() == "\x1b[1;1H" + frame(buffer, 100, 40)


def test_render_greeting_page():
    status = Status(greeting_selection=MenuSelection.SECOND)
    assert render_page(status) == greeting_screen(greeting_options(MenuSelection.SECOND))


def test_render_game_and_end_pages():
    status = Status(page=Page.GAME)
    assert render_page(status) == game_ui(status.game)
    status.page = Page.END
    status.game.self_hp = 3
    status.game.enemy_hp = 0
    assert render_page(status) == end_ui(status.game)


def test_render_waiting_client_without_port():
    status = Status(page=Page.WAITING_CLIENT)
    assert any("Port 65535" in line for line in render_page(status).lines)


def test_render_error_page():
    status = Status(page=Page.ERROR, error=OSError(111, "Connection refused"))
    assert render_page(status).lines == ("Error: Connection refused (111)",)


def test_handle_actions_idle_page_does_nothing():
    status = Status()
    handle_actions(status)
    assert status.page is Page.GREETING
    assert status.running


def test_waiting_client_accepts_connection():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    listener.setblocking(False)
    status = Status(page=Page.WAITING_CLIENT, sock=listener)
    handle_actions(status)
    assert status.page is Page.WAITING_CLIENT
    client = socket.create_connection(listener.getsockname())
    try:
        _poll(status, lambda: status.page is Page.GAME)
        assert status.page is Page.GAME
        assert status.game.is_player_1 is True
        assert status.sock is not listener
        assert listener.fileno() == -1
    finally:
        client.close()
        status.sock.close()


@pytest.mark.parametrize(
    "page, address_field, expected",
    [
        (Page.WAITING_SERVER, "join_address", Page.GAME),
        (Page.WAITING_RELAY_SERVER, "relay_address", Page.ENTER_RELAY_SERVER_KEY),
    ],
)
def test_connecting_pages_reach_next_page(page, address_field, expected):
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setblocking(False)
    status = Status(page=page, sock=sock)
    setattr(status, address_field, f"127.0.0.1:{listener.getsockname()[1]}")
    try:
        _poll(status, lambda: status.page is not page)
        assert status.page is expected
        assert status.game.is_player_1 is False
    finally:
        sock.close()
        listener.close()


def test_connect_refused_goes_to_error():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setblocking(False)
    status = Status(page=Page.WAITING_SERVER, sock=sock, join_address=f"127.0.0.1:{port}")
    try:
        _poll(status, lambda: status.page is not Page.WAITING_SERVER)
        assert status.page is Page.ERROR
        assert isinstance(status.error, OSError)
    finally:
        sock.close()


@pytest.mark.parametrize(
    "reply, player_1", [(b"CONNECTED AS 1", True), (b"CONNECTED AS 2", False)]
)
def test_waiting_other_player_reads_role(reply, player_1):
    ours, theirs = socket.socketpair()
    status = Status(page=Page.WAITING_OTHER_PLAYER, sock=ours)
    status.game.is_player_1 = not player_1
    try:
        handle_actions(status)
        assert status.page is Page.WAITING_OTHER_PLAYER
        theirs.sendall(reply)
        _poll(status, lambda: status.page is Page.GAME)
        assert status.page is Page.GAME
        assert status.game.is_player_1 is player_1
    finally:
        ours.close()
        theirs.close()


def test_waiting_other_player_rejects_unknown_reply():
    ours, theirs = socket.socketpair()
    status = Status(page=Page.WAITING_OTHER_PLAYER, sock=ours)
    try:
        theirs.sendall(b"error: invalid connection")
        with pytest.raises(ProtocolError):
            handle_actions(status)
    finally:
        ours.close()
        theirs.close()


def test_waiting_other_player_stops_when_closed():
    ours, theirs = socket.socketpair()
    status = Status(page=Page.WAITING_OTHER_PLAYER, sock=ours)
    theirs.close()
    try:
        handle_actions(status)
        assert status.running is False
    finally:
        ours.close()


def test_game_page_applies_messages():
    ours, theirs = socket.socketpair()
    status = Status(page=Page.GAME, sock=ours)
    try:
        theirs.sendall(b"MISS 0,0\n")
        handle_actions(status)
        assert status.game.enemy_board[0][9] is CellState.MISS
        assert status.running
        theirs.close()
        handle_actions(status)
        assert status.running is False
    finally:
        ours.close()
        theirs.close()