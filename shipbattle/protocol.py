"""Wire messages exchanged between the two players."""

from __future__ import annotations

import re
import socket

from .cells import CellState, destroyed_form, is_ship_destroyed, is_ship_intact
from .state import COLUMNS, ROWS, Page, Status, Vec2

_NUMBER = re.compile(r"\s*\+?(\d+)")
_MAX_PORT = 0xFFFF
_BROADCAST = b"\xff\xff\xff\xff"


class ProtocolError(ValueError):
    """A message or address that cannot be understood."""


def _number(text: str) -> int:
    match = _NUMBER.match(text)
    if match is None:
        raise ProtocolError(f"expected a number, got {text!r}")
    return int(match.group(1))


def parse_address(text: str) -> tuple[str, int]:
    """Split ``host:port`` into an IPv4 address and a port number."""
    if text.startswith(":"):
        raise ProtocolError(f"missing host in {text!r}")
    host, sep, rest = text.partition(":")
    port_text = rest.lstrip(":").partition(":")[0]
    if not host or not sep or not port_text:
        raise ProtocolError(f"expected host:port, got {text!r}")
    port = _number(port_text)
    if port > _MAX_PORT:
        raise ProtocolError(f"port {port} is too big")
    if host == "localhost":
        return "127.0.0.1", port
    try:
        packed = socket.inet_aton(host)
    except OSError:
        raise ProtocolError(f"invalid IPv4 address {host!r}") from None
    if packed == _BROADCAST:
        raise ProtocolError(f"invalid IPv4 address {host!r}")
    return socket.inet_ntoa(packed), port


def _on_board(x: int, y: int) -> bool:
    return 0 <= x < COLUMNS and 0 <= y < ROWS


def _check_on_board(position: Vec2) -> None:
    if not _on_board(position.x, position.y):
        raise ProtocolError(f"position ({position.x}, {position.y}) is off the board")


def _scan_end(
    board: list[list[CellState]], x: int, y: int, dx: int, dy: int, end: CellState
) -> tuple[int, int] | None:
    """Walk along a ship until ``end``; None if an intact part is met first."""
    while True:
        if not _on_board(x, y):
            raise ProtocolError("ship runs off the board")
        cell = board[y][x]
        if cell == end:
            return x, y
        if is_ship_intact(cell):
            return None
        if not is_ship_destroyed(cell):
            raise ProtocolError(f"broken ship at ({x}, {y})")
        x += dx
        y += dy


def _sunk_message(board: list[list[CellState]], x: int, y: int, hit: CellState) -> str | None:
    """The DESTROYED message if the ship at (x, y) has no intact part left."""
    if hit is CellState.SHIP_TOP_DESTROYED:
        end = _scan_end(board, x, y, 0, 1, CellState.SHIP_BOTTOM_DESTROYED)
        return None if end is None else f"DESTROYED v,{x},{y},{end[1]}\n"
    if hit is CellState.SHIP_BOTTOM_DESTROYED:
        end = _scan_end(board, x, y, 0, -1, CellState.SHIP_TOP_DESTROYED)
        return None if end is None else f"DESTROYED v,{x},{end[1]},{y}\n"
    if hit is CellState.SHIP_LEFT_DESTROYED:
        end = _scan_end(board, x, y, 1, 0, CellState.SHIP_RIGHT_DESTROYED)
        return None if end is None else f"DESTROYED h,{x},{end[0]},{y}\n"
    if hit is CellState.SHIP_RIGHT_DESTROYED:
        end = _scan_end(board, x, y, -1, 0, CellState.SHIP_LEFT_DESTROYED)
        return None if end is None else f"DESTROYED h,{end[0]},{x},{y}\n"
    if hit is CellState.SHIP_HORIZONTAL_DESTROYED:
        left = _scan_end(board, x, y, -1, 0, CellState.SHIP_LEFT_DESTROYED)
        if left is None:
            return None
        right = _scan_end(board, x, y, 1, 0, CellState.SHIP_RIGHT_DESTROYED)
        return None if right is None else f"DESTROYED h,{left[0]},{right[0]},{y}\n"
    if hit is CellState.SHIP_VERTICAL_DESTROYED:
        top = _scan_end(board, x, y, 0, -1, CellState.SHIP_TOP_DESTROYED)
        if top is None:
            return None
        bottom = _scan_end(board, x, y, 0, 1, CellState.SHIP_BOTTOM_DESTROYED)
        return None if bottom is None else f"DESTROYED v,{x},{top[1]},{bottom[1]}\n"
    raise ProtocolError(f"{hit.name} is not a hit ship part")


def handle_fire(status: Status, position: Vec2) -> str:
    """Apply an enemy shot to the own board and return the reply message."""
    _check_on_board(position)
    game = status.game
    board = game.self_board
    x, y = position.x, position.y
    target = board[y][x]
    if target == CellState.EMPTY:
        board[y][x] = CellState.MISS
        return f"MISS {x},{y}\n"
    if not is_ship_intact(target):
        return "IGNORE\n"
    game.self_hp -= 1
    hit = destroyed_form(target)
    board[y][x] = hit
    if game.self_hp <= 0:
        status.page = Page.END
    sunk = _sunk_message(board, x, y, hit)
    return f"HIT {x},{y}\n" if sunk is None else sunk


def _split_message(text: str) -> tuple[str, str | None]:
    stripped = text.lstrip(" ")
    if not stripped:
        raise ProtocolError("empty message")
    method, sep, rest = stripped.partition(" ")
    params = None
    if sep:
        rest = rest.lstrip("\n")
        if rest:
            params = rest.partition("\n")[0]
    return method, params


def _fields(params: str | None, count: int) -> list[str]:
    """Comma separated fields; the last one takes the rest of the text."""
    if params is None:
        raise ProtocolError("missing parameters")
    fields = []
    rest = params
    for _ in range(count - 1):
        token, _, rest = rest.lstrip(",").partition(",")
        if not token:
            raise ProtocolError(f"too few fields in {params!r}")
        fields.append(token)
    if not rest:
        raise ProtocolError(f"too few fields in {params!r}")
    fields.append(rest)
    return fields


def _mirrored_position(params: str | None) -> Vec2:
    x_text, y_text = _fields(params, 2)
    position = Vec2(COLUMNS - _number(x_text) - 1, _number(y_text))
    _check_on_board(position)
    return position


def _mark(board: list[list[CellState]], x: int, y: int, state: CellState) -> None:
    if not _on_board(x, y):
        raise ProtocolError(f"position ({x}, {y}) is off the board")
    board[y][x] = state


def _on_destroyed(status: Status, params: str | None) -> None:
    direction, a_text, b_text, c_text = _fields(params, 4)
    a, b, c = _number(a_text), _number(b_text), _number(c_text)
    board = status.game.enemy_board
    if direction == "v":
        x = COLUMNS - a - 1
        for y in range(b, c + 1):
            if y == b:
                state = CellState.SHIP_TOP_DESTROYED
            elif y == c:
                state = CellState.SHIP_BOTTOM_DESTROYED
            else:
                state = CellState.SHIP_VERTICAL_DESTROYED
            _mark(board, x, y, state)
    elif direction == "h":
        right = COLUMNS - a - 1
        left = COLUMNS - b - 1
        for x in range(left, right + 1):
            if x == left:
                state = CellState.SHIP_LEFT_DESTROYED
            elif x == right:
                state = CellState.SHIP_RIGHT_DESTROYED
            else:
                state = CellState.SHIP_HORIZONTAL_DESTROYED
            _mark(board, x, c, state)
    else:
        raise ProtocolError(f"unknown ship direction {direction!r}")
    status.game.enemy_hp -= 1
    if status.game.enemy_hp <= 0:
        status.page = Page.END


def handle_message(status: Status, data: bytes | str) -> None:
    """Apply one chunk received from the peer; empty data ends the game."""
    if not data:
        status.running = False
        return
    text = data.decode("ascii", errors="replace") if isinstance(data, bytes) else data
    method, params = _split_message(text.split("\0", 1)[0])
    game = status.game
    if method.startswith("FIRE"):
        position = _mirrored_position(params)
        if not game.my_turn:
            game.my_turn = True
            status.send(handle_fire(status, position))
    elif method.startswith("HIT"):
        position = _mirrored_position(params)
        game.enemy_hp -= 1
        game.enemy_board[position.y][position.x] = CellState.HIT
    elif method.startswith("MISS"):
        position = _mirrored_position(params)
        game.enemy_board[position.y][position.x] = CellState.MISS
    elif method.startswith("DESTROYED"):
        _on_destroyed(status, params)
    elif method.startswith("READY"):
        factor_text, hp_text = _fields(params, 2)
        game.enemy_turn_factor = int(bool(_number(factor_text)))
        game.enemy_max_hp = _number(hp_text)
        game.enemy_hp = game.enemy_max_hp
        game.enemy_preparing = False
        game.decide_turn()
    elif method.startswith("IGNORE"):
        if params is not None:
            raise ProtocolError("IGNORE takes no parameters")