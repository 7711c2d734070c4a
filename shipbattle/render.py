"""Text rendering of every client screen."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Sequence

from .cells import CellState, cell_art
from .state import NO_CURSOR, FieldSelection, GameStatus, MenuSelection, Vec2

INVERT = "\x1b[7m"
GREY = "\x1b[100m"
RESET = "\x1b[0m"

_FULL_CELL_WIDTH = 10
_FULL_CELL_HEIGHT = 4
_GAP = "  ~~  "
_END_PADDING = 11
_MENU_WIDTH = 39
_MENU_SIDE = "|         |         |"
_BORDER = "+---------+---------+---------+---------+---------+---------+---------+---------+"

_GREETING_TOP = (
    _BORDER,
    "|         | / ... \\ | / ... \\ |         |         |         |         | \\ =#= / |",
    "|         |  .   .  |  .   .  |         |         |         |         |  >#@#<  |",
    "|         | \\ ... / | \\ ... / |         |         |         |         | / =#= \\ |",
    _BORDER,
    "| \\ =#= / |        ____        __  __  __          __    _            |         |",
    "|  >#@#<  |       / __ )____ _/ /_/ /_/ /__  _____/ /_  (_)___        |         |",
    "| / =#= \\ |      / __  / __ `/ __/ __/ / _ \\/ ___/ __ \\/ / __ \\       |         |",
    "+---------+     / /_/ / /_/ / /_/ /_/ /  __(__  ) / / / / /_/ /       +---------+",
    "|         |    /_____/\\__,_/\\__/\\__/_/\\___/____/_/ /_/_/ .___/        |         |",
    "|         |                                           /_/             |         |",
    "|         |                                               by Shiphan  |         |",
    _BORDER,
    "| \\ =#= / | \\ =#= / |         |         |         |  /-X--- | ---X--- | ---X-\\  |",
    "|  >#@#<  |  >#@#<  |         |         |         | | X#X   |   X#X   |   X#X | |",
    "| / =#= \\ | / =#= \\ |         |         |         |  \\-X--- | ---X--- | ---X-/  |",
    _BORDER,
)

_VICTORY = (
    " _    ___      __                  ",
    "| |  / (_)____/ /_____  _______  __",
    "| | / / / ___/ __/ __ \\/ ___/ / / /",
    "| |/ / / /__/ /_/ /_/ / /  / /_/ / ",
    "|___/_/\\___/\\__/\\____/_/   \\__, /  ",
    "                          /____/   ",
)

_DEFEAT = (
    "    ____       ____           __ ",
    "   / __ \\___  / __/__  ____ _/ /_",
    "  / / / / _ \\/ /_/ _ \\/ __ `/ __/",
    " / /_/ /  __/ __/  __/ /_/ / /_  ",
    "/_____/\\___/_/  \\___/\\__,_/\\__/  ",
)


@dataclass(frozen=True)
class Buffer:
    """Lines of a screen and their visible width (escape codes excluded)."""

    lines: tuple[str, ...]
    width: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def height(self) -> int:
        return len(self.lines)


def _highlight(active: bool, code: str = INVERT) -> tuple[str, str]:
    return (code, RESET) if active else ("", "")


def _padding(extra: int) -> tuple[str, str]:
    """Left/right padding that centres text with ``extra`` spare columns."""
    extra = max(extra, 0)
    return " " * (extra // 2), " " if extra % 2 else ""


def grid(board: Sequence[Sequence[CellState]], cursor: Vec2, preparing_cursor: Vec2) -> Buffer:
    """Draw one board with optional cursor and pending-ship highlights."""
    columns = len(board[0]) if board else 0
    border = "+" + ("-" * (_FULL_CELL_WIDTH - 1) + "+") * columns
    lines = []
    for y, row in enumerate(board):
        lines.append(border)
        for art_line in range(_FULL_CELL_HEIGHT - 1):
            parts = []
            for x, cell in enumerate(row):
                here = Vec2(x, y)
                if here == cursor:
                    start, end = _highlight(True)
                elif here == preparing_cursor:
                    start, end = _highlight(True, GREY)
                else:
                    start, end = "", ""
                parts.append(f"| {start}{cell_art(cell)[art_line]}{end} ")
            lines.append("".join(parts) + "|")
    lines.append(border)
    return Buffer(lines, len(border))


def _bar_fill(bar_len: int, hp: int, max_hp: int) -> int:
    if max_hp == 0:
        return 0
    return min(max(int(bar_len * (hp / max_hp)), 0), bar_len)


def game_ui(game: GameStatus) -> Buffer:
    """Draw both boards side by side under a status bar."""
    left_cursor = right_cursor = NO_CURSOR
    if game.self_preparing:
        right_cursor = game.cursor
    else:
        left_cursor = game.cursor
    left = grid(game.enemy_board, left_cursor, NO_CURSOR)
    right = grid(game.self_board, right_cursor, game.preparing_cursor)

    width = left.width + len(_GAP) + right.width
    bar_len = width // 2 - 3 - 7
    if game.self_preparing or game.enemy_preparing:
        left_ready = "xxx" if game.enemy_preparing else "   "
        right_ready = "xxx" if game.self_preparing else "   "
        status_line = (
            f"?? {'\\' * bar_len}  {left_ready} <> {right_ready}  {'/' * bar_len} ??"
            if False
            else "?? " + "\\" * bar_len + "  " + left_ready + " <> " + right_ready + "  " + "/" * bar_len + " ??"
        )
    else:
        enemy_fill = _bar_fill(bar_len, game.enemy_hp, game.enemy_max_hp)
        self_fill = _bar_fill(bar_len, game.self_hp, game.self_max_hp)
        left_bar = "." * (bar_len - enemy_fill) + "\\" * enemy_fill
        right_bar = "/" * self_fill + "." * (bar_len - self_fill)
        turn = "      <> >>>  " if game.my_turn else "  <<< <>      "
        status_line = f"{game.enemy_hp:<3}{left_bar}{turn}{right_bar}{game.self_hp:>3}"

    blank = " " * width
    boards = [a + _GAP + b for a, b in zip(left.lines, right.lines)]
    return Buffer([blank, status_line, blank, *boards], width)


def end_ui(game: GameStatus) -> Buffer:
    """Draw the victory or defeat banner with both hit point totals."""
    if game.self_hp != 0 and game.enemy_hp == 0:
        art = _VICTORY
    elif game.self_hp == 0 and game.enemy_hp != 0:
        art = _DEFEAT
    else:
        raise ValueError("the game has not ended")
    side = " " * _END_PADDING
    lines = []
    for index, text in enumerate(art):
        if index == 2:
            lines.append(
                f"{INVERT}{game.enemy_hp:>5} // {RESET}  {text}  "
                f"{INVERT} // {game.self_hp:<5}{RESET}"
            )
        else:
            lines.append(side + text + side)
    return Buffer(lines, len(art[0]) + _END_PADDING * 2)


def normal_options(selection: int, options: Sequence[str]) -> Buffer:
    """A plain menu with the selected row highlighted."""
    lines = []
    for index, option in enumerate(options):
        start, end = _highlight(index == selection)
        lines.append(f"{start}{option}{end}")
    return Buffer(lines, len(options[0]))


def string_input_options(
    selection: int,
    content: str,
    content_width: int,
    content_prefix: str,
    options: Sequence[str],
) -> Buffer:
    """A text field followed by centred buttons."""
    start, end = _highlight(selection == FieldSelection.TYPING)
    field_text = f"{content_prefix}{start}{content:>{content_width}}{end}"
    width = len(content_prefix) + content_width

    start, end = _highlight(selection == FieldSelection.INPUT)
    lines = [f"{start}{field_text}{end}"]

    left, right = _padding(width - len(options[0]))
    for index, option in enumerate(options):
        start, end = _highlight(index == selection - 1)
        lines.append(f"{start}{left}{option}{left}{right}{end}")
    return Buffer(lines, width)


def greeting_options(selection: MenuSelection) -> Buffer:
    return normal_options(
        selection,
        ("- Direct connect    ", "- Use a relay server", "- Exit              "),
    )


def direct_connect_options(selection: MenuSelection) -> Buffer:
    return normal_options(selection, ("- Start a game", "- Join a game ", "- Back        "))


def connect_relay_server_options(addr: str, selection: FieldSelection) -> Buffer:
    return string_input_options(selection, addr, 22, "Address: ", ("- Join  ", "- Cancel"))


def creating_options(port: int | None, selection: FieldSelection) -> Buffer:
    content = "" if port is None else str(port)
    return string_input_options(selection, content, 6, "Port: ", ("- Create", "- Cancel"))


def join_options(addr: str, selection: FieldSelection) -> Buffer:
    return string_input_options(selection, addr, 22, "Address: ", ("- Join  ", "- Cancel"))


def enter_relay_server_key_options(key: str, selection: FieldSelection) -> Buffer:
    return string_input_options(selection, key, 10, "Key: ", ("- Send  ",))


def normal_waiting(message: str, info_prefix: str, info: str) -> Buffer:
    """Two centred lines: a message and a detail."""
    raw = (message, info_prefix + info)
    width = max(len(line) for line in raw)
    lines = []
    for line in raw:
        left, right = _padding(width - len(line))
        lines.append(f"{left}{line}{left}{right}")
    return Buffer(lines, width)


def waiting_client(port: int) -> Buffer:
    return normal_waiting("Waiting for connection...", "Port ", str(port))


def waiting_server(addr: str) -> Buffer:
    return normal_waiting("Waiting for connection...", "Address ", addr)


def waiting_relay_server(addr: str) -> Buffer:
    return normal_waiting("Waiting for relay server...", "Address ", addr)


def waiting_other_player(key: str) -> Buffer:
    return normal_waiting("Waiting for other player...", "Key ", key)


def greeting_screen(options: Buffer) -> Buffer:
    """The title art with up to three menu lines beneath it."""
    lines = list(_GREETING_TOP)
    left, right = _padding(_MENU_WIDTH - options.width)
    for index in range(3):
        if index < options.height:
            body = f"{left}{options.lines[index]}{left}{right}"
        else:
            body = " " * _MENU_WIDTH
        lines.append(f"{_MENU_SIDE}{body}{_MENU_SIDE}")
    lines.append(_BORDER)
    return Buffer(lines, len(_BORDER))


def error_screen(error: OSError | None) -> Buffer:
    """One line describing the failure."""
    if error is None:
        code, text = 0, os.strerror(0)
    else:
        code = error.errno or 0
        text = error.strerror or str(error)
    line = f"Error: {text} ({code})"
    return Buffer([line], len(line))


def frame(buffer: Buffer, width: int, height: int) -> str:
    """Centre ``buffer`` on a ``width`` x ``height`` terminal."""
    if buffer.width > width or buffer.height > height:
        message = (
            f"The terminal is too small ({width} x {height}), "
            f"and it should at least be {buffer.width} x {buffer.height}."
        )
        if height > 0 and len(message) <= width:
            return frame(Buffer([message], len(message)), width, height)
        return message + "\x1b[0J\n"

    top = (height - buffer.height) // 2
    left = " " * ((width - buffer.width) // 2)
    right = " " if (width - buffer.width) % 2 else ""
    blank = " " * width
    rows = []
    for line in range(height):
        if top <= line < top + buffer.height:
            rows.append(f"{left}{buffer.lines[line - top]}{left}{right}")
        else:
            rows.append(blank)
    return "\n".join(rows)