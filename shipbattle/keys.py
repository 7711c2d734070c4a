"""Key handling for every client page."""

from __future__ import annotations

import random
import string

from .cells import CellState, is_ship_intact
from .state import (
    COLUMNS,
    NO_CURSOR,
    ROWS,
    FieldSelection,
    MenuSelection,
    Page,
    Status,
    Vec2,
)

ENTER = "\n"
ESCAPE = "\x1b"
BACKSPACE = "\x7f"

_DOWN = frozenset("js")
_UP = frozenset("kw")
_LEFT = frozenset("ha")
_RIGHT = frozenset("ld")
_START_TYPING = frozenset("ia")

_ADDRESS_CHARS = frozenset(string.digits + string.ascii_lowercase + ".:")
_KEY_CHARS = frozenset(string.ascii_lowercase)
_ADDRESS_LIMIT = 22
_KEY_LIMIT = 5
_MAX_PORT = 0xFFFF


def _step(value: int, key: str, last: int) -> int:
    """Move a menu selection down or up, clamped to 0..last."""
    if value < 0 or value > last:
        return 0
    if key in _DOWN and value < last:
        return value + 1
    if key in _UP and value > 0:
        return value - 1
    return value


def _type_into(text: str, key: str, allowed: frozenset[str], limit: int) -> tuple[str, bool]:
    """Apply one key to a text field; the flag is True when typing ends."""
    if key in allowed:
        return (text + key if len(text) < limit else text), False
    if key == BACKSPACE:
        return text[:-1], False
    return text, key in (ESCAPE, ENTER)


def handle_greeting_key(status: Status, key: str) -> None:
    selection = status.greeting_selection
    if key in _DOWN or key in _UP:
        status.greeting_selection = MenuSelection(_step(selection, key, MenuSelection.EXIT))
    elif key == ENTER:
        if selection is MenuSelection.FIRST:
            status.page = Page.DIRECT_CONNECT
        elif selection is MenuSelection.SECOND:
            status.page = Page.CONNECTING_RELAY_SERVER
        elif selection is MenuSelection.EXIT:
            status.running = False


def handle_direct_connect_key(status: Status, key: str) -> None:
    selection = status.direct_connect_selection
    if key in _DOWN or key in _UP:
        status.direct_connect_selection = MenuSelection(
            _step(selection, key, MenuSelection.EXIT)
        )
    elif key == ENTER:
        if selection is MenuSelection.FIRST:
            status.page = Page.CREATING
        elif selection is MenuSelection.SECOND:
            status.page = Page.JOIN
        elif selection is MenuSelection.EXIT:
            status.page = Page.GREETING


def _field_navigation(selection: FieldSelection, key: str, last: int) -> FieldSelection | None:
    """New selection for movement and start-typing keys, or None if unhandled."""
    if key in _DOWN or key in _UP:
        return FieldSelection(_step(selection, key, last))
    if key in _START_TYPING and selection is FieldSelection.INPUT:
        return FieldSelection.TYPING
    return None


def handle_relay_address_key(status: Status, key: str) -> None:
    if status.relay_selection is FieldSelection.TYPING:
        status.relay_address, done = _type_into(
            status.relay_address, key, _ADDRESS_CHARS, _ADDRESS_LIMIT
        )
        if done:
            status.relay_selection = FieldSelection.INPUT
        return
    selection = status.relay_selection
    if key == ENTER:
        if selection is FieldSelection.INPUT:
            status.relay_selection = FieldSelection.TYPING
        elif selection is FieldSelection.ACTION:
            status.page = Page.WAITING_RELAY_SERVER
        elif selection is FieldSelection.EXIT:
            status.page = Page.GREETING
        return
    moved = _field_navigation(selection, key, FieldSelection.EXIT)
    if moved is not None:
        status.relay_selection = moved


def handle_creating_key(status: Status, key: str) -> None:
    if status.creating_selection is FieldSelection.TYPING:
        if key in string.digits:
            port = (status.port or 0) * 10 + int(key)
            if port <= _MAX_PORT:
                status.port = port
        elif key == BACKSPACE:
            port = (status.port or 0) // 10
            status.port = port or None
        elif key in (ESCAPE, ENTER):
            status.creating_selection = FieldSelection.INPUT
        return
    selection = status.creating_selection
    if key == ENTER:
        if selection is FieldSelection.INPUT:
            status.creating_selection = FieldSelection.TYPING
        elif selection is FieldSelection.ACTION:
            _start_listening(status)
        elif selection is FieldSelection.EXIT:
            status.page = Page.DIRECT_CONNECT
        return
    moved = _field_navigation(selection, key, FieldSelection.EXIT)
    if moved is not None:
        status.creating_selection = moved


def _start_listening(status: Status) -> None:
    if status.sock is None:
        raise RuntimeError("no socket to listen on")
    # An empty port field wraps to the highest port number.
    port = _MAX_PORT if status.port is None else status.port
    try:
        status.sock.bind(("", port))
        status.sock.listen(1)
    except OSError as error:
        status.error = error
        status.page = Page.ERROR
        return
    status.page = Page.WAITING_CLIENT


def handle_join_key(status: Status, key: str) -> None:
    if status.join_selection is FieldSelection.TYPING:
        status.join_address, done = _type_into(
            status.join_address, key, _ADDRESS_CHARS, _ADDRESS_LIMIT
        )
        if done:
            status.join_selection = FieldSelection.INPUT
        return
    selection = status.join_selection
    if key == ENTER:
        if selection is FieldSelection.INPUT:
            status.join_selection = FieldSelection.TYPING
        elif selection is FieldSelection.ACTION:
            status.page = Page.WAITING_SERVER
        elif selection is FieldSelection.EXIT:
            status.page = Page.DIRECT_CONNECT
        return
    moved = _field_navigation(selection, key, FieldSelection.EXIT)
    if moved is not None:
        status.join_selection = moved


def handle_relay_key_key(status: Status, key: str) -> None:
    if status.key_selection is FieldSelection.TYPING:
        status.relay_key, done = _type_into(status.relay_key, key, _KEY_CHARS, _KEY_LIMIT)
        if done:
            status.key_selection = FieldSelection.INPUT
        return
    selection = status.key_selection
    if key == ENTER:
        if selection is FieldSelection.INPUT:
            status.key_selection = FieldSelection.TYPING
        elif selection is FieldSelection.ACTION:
            status.send(status.relay_key)
            status.page = Page.WAITING_OTHER_PLAYER
        return
    moved = _field_navigation(selection, key, FieldSelection.ACTION)
    if moved is not None:
        status.key_selection = moved


def _moved_cursor(cursor: Vec2, key: str) -> Vec2 | None:
    if key in _DOWN:
        return Vec2(cursor.x, min(cursor.y + 1, ROWS - 1))
    if key in _UP:
        return Vec2(cursor.x, max(cursor.y - 1, 0))
    if key in _LEFT:
        return Vec2(max(cursor.x - 1, 0), cursor.y)
    if key in _RIGHT:
        return Vec2(min(cursor.x + 1, COLUMNS - 1), cursor.y)
    return None


def _place_ship(status: Status) -> None:
    game = status.game
    board = game.self_board
    cursor, start = game.cursor, game.preparing_cursor
    if start == NO_CURSOR:
        if not is_ship_intact(board[cursor.y][cursor.x]):
            game.preparing_cursor = cursor
        return
    if start.x == cursor.x and start.y != cursor.y:
        x = cursor.x
        low, high = sorted((start.y, cursor.y))
        if any(is_ship_intact(board[y][x]) for y in range(low, high + 1)):
            return
        for y in range(low, high + 1):
            if y == low:
                board[y][x] = CellState.SHIP_TOP
            elif y == high:
                board[y][x] = CellState.SHIP_BOTTOM
            else:
                board[y][x] = CellState.SHIP_VERTICAL
        game.preparing_cursor = NO_CURSOR
    elif start.y == cursor.y and start.x != cursor.x:
        y = cursor.y
        low, high = sorted((start.x, cursor.x))
        if any(is_ship_intact(board[y][x]) for x in range(low, high + 1)):
            return
        for x in range(low, high + 1):
            if x == low:
                board[y][x] = CellState.SHIP_LEFT
            elif x == high:
                board[y][x] = CellState.SHIP_RIGHT
            else:
                board[y][x] = CellState.SHIP_HORIZONTAL
        game.preparing_cursor = NO_CURSOR


def _declare_ready(status: Status) -> None:
    game = status.game
    game.self_max_hp = game.count_intact_ship_cells()
    if game.self_max_hp == 0:
        return
    game.cursor = Vec2(COLUMNS - 1, 0)
    game.preparing_cursor = NO_CURSOR
    game.self_preparing = False
    game.self_hp = game.self_max_hp
    game.self_turn_factor = random.randrange(2)
    status.send(f"READY {game.self_turn_factor},{game.self_max_hp}\n")
    game.decide_turn()


def handle_preparing_key(status: Status, key: str) -> None:
    moved = _moved_cursor(status.game.cursor, key)
    if moved is not None:
        status.game.cursor = moved
    elif key == ENTER:
        _place_ship(status)
    elif key == ESCAPE:
        status.game.preparing_cursor = NO_CURSOR
    elif key == " ":
        _declare_ready(status)


def handle_game_key(status: Status, key: str) -> None:
    game = status.game
    moved = _moved_cursor(game.cursor, key)
    if moved is not None:
        game.cursor = moved
    elif key == ENTER and game.my_turn:
        game.my_turn = False
        status.send(f"FIRE {game.cursor.x},{game.cursor.y}\n")


def handle_key(status: Status, key: str) -> None:
    """Route one key press to the handler of the current page."""
    page = status.page
    if page is Page.GREETING:
        handle_greeting_key(status, key)
    elif page is Page.DIRECT_CONNECT:
        handle_direct_connect_key(status, key)
    elif page is Page.CONNECTING_RELAY_SERVER:
        handle_relay_address_key(status, key)
    elif page is Page.CREATING:
        handle_creating_key(status, key)
    elif page is Page.JOIN:
        handle_join_key(status, key)
    elif page is Page.ENTER_RELAY_SERVER_KEY:
        handle_relay_key_key(status, key)
    elif page is Page.GAME:
        if status.game.self_preparing or status.game.enemy_preparing:
            handle_preparing_key(status, key)
        else:
            handle_game_key(status, key)
    elif page is Page.END and key == ENTER:
        status.running = False