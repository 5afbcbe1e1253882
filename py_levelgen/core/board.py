"""
Mutable board shared by the partitioner, packer and randomizer.

A board is a ``y_cells x x_cells`` grid of cells. Blank cells are not part
of the level, block cells are obstacles, every other cell is playable and
ends up owned by exactly one shape once packing succeeds.
"""

import string
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np
import structlog

from .exceptions import InvalidBoardError
from .topology import GridShape, neighbor_coords

logger = structlog.get_logger()

# Cell type values used by input cell-type maps and output grids
BLANK_VALUE = 0
BLOCK_VALUE = 1
SHAPE_VALUE_OFFSET = 2

# Output value of a playable cell that no shape owns
UNASSIGNED_VALUE = -1

EMPTY_SHAPE = -1

_SHAPE_GLYPHS = string.digits + string.ascii_letters


@dataclass(eq=False)
class Cell:
    """A single board position. Compared and hashed by identity."""

    x: int
    y: int
    is_blank: bool = False
    is_block: bool = False
    shape_index: int = EMPTY_SHAPE

    @property
    def is_playable(self) -> bool:
        return not self.is_blank and not self.is_block

    @property
    def is_empty(self) -> bool:
        """Playable and not yet owned by a shape."""
        return self.is_playable and self.shape_index == EMPTY_SHAPE

    def __repr__(self) -> str:
        return f"Cell({self.x}, {self.y}, shape={self.shape_index})"


class Board:
    """Grid of cells plus the topology used to connect them."""

    def __init__(
        self,
        grid_shape: GridShape,
        x_cells: int,
        y_cells: int,
        rotate_hexagon: bool = False,
        cell_types: Optional[Sequence[Sequence[int]]] = None,
    ):
        """
        Allocate the board.

        Args:
            grid_shape: Tessellation deciding which cells are adjacent
            x_cells: Number of columns
            y_cells: Number of rows
            rotate_hexagon: Hexagon orientation flag (ignored for other shapes)
            cell_types: Optional ``y_cells x x_cells`` map, 0 = blank,
                1 = block, anything else = playable

        Raises:
            InvalidBoardError: On non-positive dimensions or a cell type
                map that does not match them
        """
        if x_cells < 1 or y_cells < 1:
            raise InvalidBoardError(
                f"Board dimensions must be positive, got {x_cells}x{y_cells}"
            )

        self.grid_shape = GridShape(grid_shape)
        self.x_cells = x_cells
        self.y_cells = y_cells
        self.rotate_hexagon = rotate_hexagon

        if cell_types is not None:
            self._check_cell_types(cell_types)

        self.cells: List[List[Cell]] = []
        for y in range(y_cells):
            row = []
            for x in range(x_cells):
                cell_type = None if cell_types is None else int(cell_types[y][x])
                row.append(
                    Cell(
                        x=x,
                        y=y,
                        is_blank=cell_type == BLANK_VALUE,
                        is_block=cell_type == BLOCK_VALUE,
                    )
                )
            self.cells.append(row)

    def _check_cell_types(self, cell_types: Sequence[Sequence[int]]) -> None:
        if len(cell_types) != self.y_cells:
            raise InvalidBoardError(
                f"Cell type map has {len(cell_types)} rows, expected {self.y_cells}"
            )
        for y, row in enumerate(cell_types):
            if len(row) != self.x_cells:
                raise InvalidBoardError(
                    f"Cell type row {y} has {len(row)} columns, expected {self.x_cells}"
                )

    @classmethod
    def from_matrix(
        cls,
        grid_shape: GridShape,
        matrix: Sequence[Sequence[int]],
        rotate_hexagon: bool = False,
    ) -> "Board":
        """Rebuild a board, shapes included, from an output grid."""
        grid = np.asarray(matrix, dtype=np.int32)
        if grid.ndim != 2 or grid.size == 0:
            raise InvalidBoardError("Grid must be a non-empty 2D matrix")

        y_cells, x_cells = grid.shape
        board = cls(grid_shape, x_cells, y_cells, rotate_hexagon, cell_types=grid.tolist())
        for cell in board.iter_cells():
            value = int(grid[cell.y, cell.x])
            if cell.is_playable and value >= SHAPE_VALUE_OFFSET:
                cell.shape_index = value - SHAPE_VALUE_OFFSET
        return board

    def cell(self, x: int, y: int) -> Cell:
        return self.cells[y][x]

    def iter_cells(self) -> Iterator[Cell]:
        """Iterate over all cells in row-major order."""
        for row in self.cells:
            yield from row

    def playable_cells(self) -> List[Cell]:
        return [cell for cell in self.iter_cells() if cell.is_playable]

    def matches(
        self, cell: Cell, only_empty_cells: bool, shape_filter: Optional[int] = None
    ) -> bool:
        """
        Inclusion predicate shared by neighbour lookups and flood fills.

        With ``only_empty_cells`` only unowned playable cells match. Otherwise
        any playable cell matches, restricted to ``shape_filter`` when given.
        """
        if only_empty_cells:
            return cell.is_empty
        if not cell.is_playable:
            return False
        return shape_filter is None or cell.shape_index == shape_filter

    def neighbors(
        self,
        cell: Cell,
        only_empty_cells: bool = True,
        shape_filter: Optional[int] = None,
    ) -> List[Cell]:
        """Adjacent in-bounds cells that satisfy the inclusion predicate."""
        result = []
        for x, y in neighbor_coords(
            self.grid_shape, cell.x, cell.y, self.x_cells, self.y_cells, self.rotate_hexagon
        ):
            neighbor = self.cells[y][x]
            if self.matches(neighbor, only_empty_cells, shape_filter):
                result.append(neighbor)
        return result

    def to_matrix(self) -> np.ndarray:
        """
        Convert the board to the output grid.

        0 is blank, 1 is block and values >= 2 are ``shape_index + 2``.
        Playable cells without a shape come out as -1.
        """
        grid = np.full((self.y_cells, self.x_cells), UNASSIGNED_VALUE, dtype=np.int32)
        for cell in self.iter_cells():
            if cell.is_blank:
                grid[cell.y, cell.x] = BLANK_VALUE
            elif cell.is_block:
                grid[cell.y, cell.x] = BLOCK_VALUE
            elif cell.shape_index != EMPTY_SHAPE:
                grid[cell.y, cell.x] = cell.shape_index + SHAPE_VALUE_OFFSET
        return grid

    def render(self) -> str:
        """ASCII dump: ``#`` block, ``_`` blank, ``.`` empty, else the shape id."""
        lines = []
        for row in self.cells:
            chars = []
            for cell in row:
                if cell.is_block:
                    chars.append("#")
                elif cell.is_blank:
                    chars.append("_")
                elif cell.shape_index == EMPTY_SHAPE:
                    chars.append(".")
                elif cell.shape_index < len(_SHAPE_GLYPHS):
                    chars.append(_SHAPE_GLYPHS[cell.shape_index])
                else:
                    chars.append("?")
            lines.append("".join(chars))
        return "\n".join(lines)
