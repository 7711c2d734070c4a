"""Client state: pages, menu selections and the game board."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto

from .cells import CellState, is_ship_intact

ROWS = 12
COLUMNS = 10


@dataclass(frozen=True)
class Vec2:
    """A board position; (-1, -1) means no position."""

    x: int
    y: int


NO_CURSOR = Vec2(-1, -1)


class Page(Enum):
    """Screens the client can show."""

    GREETING = auto()
    DIRECT_CONNECT = auto()
    CONNECTING_RELAY_SERVER = auto()
    CREATING = auto()
    JOIN = auto()
    ENTER_RELAY_SERVER_KEY = auto()
    WAITING_CLIENT = auto()
    WAITING_SERVER = auto()
    WAITING_RELAY_SERVER = auto()
    WAITING_OTHER_PLAYER = auto()
    GAME = auto()
    END = auto()
    ERROR = auto()


class MenuSelection(IntEnum):
    """Highlighted row of a three-option menu."""

    NONE = -1
    FIRST = 0
    SECOND = 1
    EXIT = 2


class FieldSelection(IntEnum):
    """Highlighted row of a page with a text field and buttons."""

    INPUT = 0
    ACTION = 1
    EXIT = 2
    TYPING = 8


def _empty_board() -> list[list[CellState]]:
    return [[CellState.EMPTY] * COLUMNS for _ in range(ROWS)]


@dataclass
class GameStatus:
    """Both boards, cursors, hit points and turn order of one game."""

    self_board: list[list[CellState]] = field(default_factory=_empty_board)
    enemy_board: list[list[CellState]] = field(default_factory=_empty_board)
    preparing_cursor: Vec2 = NO_CURSOR
    cursor: Vec2 = Vec2(0, 0)
    self_preparing: bool = True
    enemy_preparing: bool = True
    is_player_1: bool = False
    my_turn: bool = False
    self_hp: int = 0
    enemy_hp: int = 0
    self_max_hp: int = 0
    enemy_max_hp: int = 0
    self_turn_factor: int = -1
    enemy_turn_factor: int = -1

    def count_intact_ship_cells(self) -> int:
        """Number of own ship parts that have not been hit."""
        return sum(is_ship_intact(cell) for row in self.self_board for cell in row)

    def decide_turn(self) -> bool | None:
        """Settle who moves first once both turn factors are known.

        Returns the new ``my_turn``, or None while a factor is missing.
        """
        if self.self_turn_factor == -1 or self.enemy_turn_factor == -1:
            return None
        total = self.self_turn_factor + self.enemy_turn_factor
        self.my_turn = (total % 2 == 1) == self.is_player_1
        return self.my_turn


@dataclass
class Status:
    """Everything the client keeps between frames."""

    running: bool = True
    page: Page = Page.GREETING
    sock: socket.socket | None = None
    game: GameStatus = field(default_factory=GameStatus)
    error: OSError | None = None
    greeting_selection: MenuSelection = MenuSelection.NONE
    direct_connect_selection: MenuSelection = MenuSelection.NONE
    relay_selection: FieldSelection = FieldSelection.TYPING
    relay_address: str = ""
    key_selection: FieldSelection = FieldSelection.TYPING
    relay_key: str = ""
    creating_selection: FieldSelection = FieldSelection.TYPING
    port: int | None = None
    join_selection: FieldSelection = FieldSelection.TYPING
    join_address: str = ""

    def send(self, text: str) -> None:
        """Write ``text`` to the peer socket."""
        if self.sock is None:
            raise RuntimeError("no connection to send on")
        self.sock.sendall(text.encode("ascii"))