"""Board cell states and their three-line text art."""

from __future__ import annotations

from enum import IntEnum


class CellState(IntEnum):
    """What a single board cell shows."""

    EMPTY = 0
    UNKNOWN = 1
    HIT = 2
    MISS = 3
    SHIP_TOP = 4
    SHIP_BOTTOM = 5
    SHIP_LEFT = 6
    SHIP_RIGHT = 7
    SHIP_HORIZONTAL = 8
    SHIP_VERTICAL = 9
    SHIP_TOP_DESTROYED = 10
    SHIP_BOTTOM_DESTROYED = 11
    SHIP_LEFT_DESTROYED = 12
    SHIP_RIGHT_DESTROYED = 13
    SHIP_HORIZONTAL_DESTROYED = 14
    SHIP_VERTICAL_DESTROYED = 15


_ART: dict[CellState, tuple[str, str, str]] = {
    CellState.EMPTY: (
        "       ",
        "       ",
        "       ",
    ),
    CellState.UNKNOWN: (
        "       ",
        "       ",
        "       ",
    ),
    CellState.HIT: (
        "\\ =#= /",
        " >#@#< ",
        "/ =#= \\",
    ),
    CellState.MISS: (
        "/ ... \\",
        " .   . ",
        "\\ ... /",
    ),
    CellState.SHIP_TOP: (
        "  ---  ",
        " /   \\ ",
        "|     |",
    ),
    CellState.SHIP_BOTTOM: (
        "|     |",
        " \\   / ",
        "  ---  ",
    ),
    CellState.SHIP_LEFT: (
        " /-----",
        "|      ",
        " \\-----",
    ),
    CellState.SHIP_RIGHT: (
        "-----\\ ",
        "      |",
        "-----/ ",
    ),
    CellState.SHIP_HORIZONTAL: (
        "-------",
        "       ",
        "-------",
    ),
    CellState.SHIP_VERTICAL: (
        "|     |",
        "|     |",
        "|     |",
    ),
    CellState.SHIP_TOP_DESTROYED: (
        "  -x-  ",
        " /x#x\\ ",
        "|  x  |",
    ),
    CellState.SHIP_BOTTOM_DESTROYED: (
        "|  x  |",
        " \\x#x/ ",
        "  -x-  ",
    ),
    CellState.SHIP_LEFT_DESTROYED: (
        " /-x---",
        "| x#x  ",
        " \\-x---",
    ),
    CellState.SHIP_RIGHT_DESTROYED: (
        "---x-\\ ",
        "  x#x |",
        "---x-/ ",
    ),
    CellState.SHIP_HORIZONTAL_DESTROYED: (
        "---x---",
        "  x#x  ",
        "---x---",
    ),
    CellState.SHIP_VERTICAL_DESTROYED: (
        "|  x  |",
        "| x#x |",
        "|  x  |",
    ),
}

_DESTROYED_OFFSET = CellState.SHIP_TOP_DESTROYED - CellState.SHIP_TOP


def cell_art(state: CellState) -> tuple[str, str, str]:
    """Return the three 7-character lines that draw ``state``."""
    return _ART[CellState(state)]


def is_ship_intact(state: CellState) -> bool:
    """True for a ship part that has not been hit."""
    return CellState.SHIP_TOP <= state <= CellState.SHIP_VERTICAL


def is_ship_destroyed(state: CellState) -> bool:
    """True for a ship part that has been hit."""
    return CellState.SHIP_TOP_DESTROYED <= state <= CellState.SHIP_VERTICAL_DESTROYED


def destroyed_form(state: CellState) -> CellState:
    """Return the hit form of an intact ship part."""
    if not is_ship_intact(state):
        raise ValueError(f"{CellState(state).name} is not an intact ship part")
    return CellState(state + _DESTROYED_OFFSET)