"""Square playing grid with bounds-checked placement and win-line scanning."""
from __future__ import annotations

from typing import List, Optional, Tuple

from .constants import BOARD_SIZE, DIRECTIONS, WIN_LENGTH, Placement, Role
from .errors import CellOccupied, OutOfBounds, UnsupportedCell

Cell = Optional[Role]
Coord = Tuple[int, int]


class Grid:
    """An N×N matrix of cells, each empty (``None``) or holding a seated role."""

    def __init__(self, size: int = BOARD_SIZE, placement: Placement = Placement.GRAVITY):
        self.size = size
        self.placement = placement
        self.cells: List[List[Cell]] = self._empty()

    def _empty(self) -> List[List[Cell]]:
        return [[None for _ in range(self.size)] for _ in range(self.size)]

    # -------------------- Reads -------------------- #

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def get(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise OutOfBounds()
        return self.cells[row][col]

    def is_full(self) -> bool:
        return all(cell is not None for line in self.cells for cell in line)

    def is_empty(self) -> bool:
        return all(cell is None for line in self.cells for cell in line)

    # -------------------- Writes -------------------- #

    def check_placement(self, row: int, col: int) -> None:
        """Raise the first rejection that forbids a piece at (*row*, *col*)."""
        if not self.in_bounds(row, col):
            raise OutOfBounds()
        if (
            self.placement is Placement.GRAVITY
            and row < self.size - 1
            and self.cells[row + 1][col] is None
        ):
            raise UnsupportedCell()
        if self.cells[row][col] is not None:
            raise CellOccupied()

    def set(self, row: int, col: int, role: Role) -> None:
        self.check_placement(row, col)
        self.cells[row][col] = role

    def reset(self) -> None:
        self.cells = self._empty()

    # -------------------- Win detection -------------------- #

    def _run(self, row: int, col: int, d_row: int, d_col: int, role: Role) -> List[Coord]:
        """Contiguous *role* cells walking away from (*row*, *col*), exclusive."""
        found: List[Coord] = []
        r, c = row + d_row, col + d_col
        while self.in_bounds(r, c) and self.cells[r][c] == role:
            found.append((r, c))
            r += d_row
            c += d_col
        return found

    def winning_line_through(self, row: int, col: int, length: int = WIN_LENGTH) -> Optional[List[Coord]]:
        """Return the cells of a run of at least *length* through (*row*, *col*).

        Only the four axes crossing the placed cell are walked, so the cost is
        bounded by the run length rather than the board area.
        """
        role = self.get(row, col)
        if role is None:
            return None
        for d_row, d_col in DIRECTIONS:
            backward = self._run(row, col, -d_row, -d_col, role)
            forward = self._run(row, col, d_row, d_col, role)
            if 1 + len(backward) + len(forward) >= length:
                return list(reversed(backward)) + [(row, col)] + forward
        return None

    def __repr__(self) -> str:
        return f"Grid(size={self.size}, placement={self.placement.value})"


__all__ = ["Grid", "Cell", "Coord"]
