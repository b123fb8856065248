"""VGA text-mode screen with a cursor, colours and stream-style output."""

from __future__ import annotations

from enum import IntEnum

from .libc import itoa

VIDEO_MEMORY = 0xB8000
VGA_WIDTH = 80
VGA_HEIGHT = 40


class VgaColor(IntEnum):
    """Hardware text-mode colours."""

    BLACK = 0
    BLUE = 1
    GREEN = 2
    CYAN = 3
    RED = 4
    MAGENTA = 5
    BROWN = 6
    LIGHT_GREY = 7
    DARK_GREY = 8
    LIGHT_BLUE = 9
    LIGHT_GREEN = 10
    LIGHT_CYAN = 11
    LIGHT_RED = 12
    LIGHT_MAGENTA = 13
    LIGHT_BROWN = 14
    WHITE = 15
    ORANGE = 6
    YELLOW = 14


def endl(screen):
    """Write a line break to ``screen`` and return it."""
    screen.write("\n")
    return screen


class TextScreen:
    """A grid of character cells, each a character code and a colour byte."""

    def __init__(self, width=VGA_WIDTH, height=VGA_HEIGHT):
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid screen size: {width}x{height}")
        self.width = width
        self.height = height
        self.cells = [0] * (width * height)
        self.clear()

    @property
    def cursor(self) -> tuple[int, int]:
        """Current (column, row) of the cursor."""
        return self.column, self.row

    def clear(self) -> None:
        """Blank every cell, home the cursor and reset the colour to white."""
        self.row = 0
        self.column = 0
        self.color = VgaColor.WHITE
        self.cells = [0] * (self.width * self.height)

    def _put_at(self, ch, x, y) -> None:
        code = ord(ch)
        if code > 0xFF:
            raise ValueError(f"character {ch!r} cannot be shown in text mode")
        self.cells[y * self.width + x] = code | (self.color << 8)

    def _advance(self) -> None:
        self.column += 1
        if self.column == self.width:
            self.column = 0
            self.row = (self.row + 1) % self.height

    def _backspace(self) -> None:
        if self.column == 0 and self.row == 0:
            return
        if self.column == 0:
            self.row -= 1
            self.column = self.width
        self.column -= 1
        self._put_at(" ", self.column, self.row)

    def _putc(self, ch) -> None:
        if ch == "\n":
            self.row = (self.row + 1) % self.height
            self.column = 0
        elif ch == "\b":
            self._backspace()
        else:
            self._put_at(ch, self.column, self.row)
            self._advance()

    def write(self, data) -> None:
        """Write characters at the cursor, handling line breaks and backspace."""
        for ch in data:
            self._putc(ch)

    def print_number(self, number) -> None:
        """Write ``number`` in decimal."""
        self.write(itoa(number, 10))

    def set_color(self, color) -> None:
        """Use ``color`` for characters written from now on."""
        self.color = VgaColor(color)

    def _cell(self, x, y) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"cell ({x}, {y}) is off screen")
        return self.cells[y * self.width + x]

    def char_at(self, x, y) -> str:
        """Character stored in the cell at column ``x``, row ``y``."""
        return chr(self._cell(x, y) & 0xFF)

    def color_at(self, x, y) -> int:
        """Colour byte stored in the cell at column ``x``, row ``y``."""
        return self._cell(x, y) >> 8

    def row_text(self, y) -> str:
        """Text of row ``y``, empty cells as spaces, trailing spaces removed."""
        chars = (self.char_at(x, y) for x in range(self.width))
        return "".join(" " if ch == "\0" else ch for ch in chars).rstrip(" ")

    def __lshift__(self, item):
        if isinstance(item, VgaColor):
            self.set_color(item)
        elif isinstance(item, str):
            self.write(item)
        elif isinstance(item, int):
            self.print_number(item)
        elif callable(item):
            return item(self)
        else:
            raise TypeError(f"cannot write {type(item).__name__} to the screen")
        return self