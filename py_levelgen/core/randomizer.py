"""
Random reshaping of a packed board.

Starting from a valid board, repeatedly moves one cell from a shape to an
adjacent shape. A move is only allowed when the receiving shape stays
within the maximum size and the giving shape stays connected and at or
above the minimum size, so the board is valid after every step.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from .alea_prng import AleaPRNG
from .board import Board, Cell
from .regions import RegionPartitioner

logger = structlog.get_logger()

DEFAULT_ITERATIONS = 1000


@dataclass(frozen=True)
class GrowMove:
    """Reassign ``to_cell`` to the shape of ``from_cell``."""

    from_cell: Cell
    to_cell: Cell


class BoardRandomizer:
    """Applies random grow moves to a fully packed board."""

    def __init__(
        self,
        board: Board,
        num_shapes: int,
        min_shape_size: int,
        max_shape_size: int,
        prng: AleaPRNG,
        partitioner: Optional[RegionPartitioner] = None,
    ):
        self.board = board
        self.num_shapes = num_shapes
        self.min_shape_size = min_shape_size
        self.max_shape_size = max_shape_size
        self.prng = prng
        self.partitioner = partitioner or RegionPartitioner(board)

    def randomize(self, iterations: int = DEFAULT_ITERATIONS) -> int:
        """
        Apply up to ``iterations`` random grow moves.

        Returns:
            Number of moves applied; fewer than requested when the board ran
            out of valid moves
        """
        applied = 0
        for _ in range(iterations):
            moves = self.possible_grows()
            if not moves:
                break

            move = self.prng.choice(moves)
            move.to_cell.shape_index = move.from_cell.shape_index
            applied += 1

        logger.debug("Board randomized", requested=iterations, applied=applied)
        return applied

    def shape_cells(self) -> List[List[Cell]]:
        """Cells of each shape, indexed by shape id, in row-major order."""
        shapes: List[List[Cell]] = [[] for _ in range(self.num_shapes)]
        for cell in self.board.iter_cells():
            if cell.is_playable:
                shapes[cell.shape_index].append(cell)
        return shapes

    def possible_grows(self) -> List[GrowMove]:
        moves = []
        for cells in self.shape_cells():
            if len(cells) >= self.max_shape_size:
                continue

            for cell in cells:
                for neighbor in self.board.neighbors(cell, only_empty_cells=False):
                    if neighbor.shape_index != cell.shape_index and self.can_grow(cell, neighbor):
                        moves.append(GrowMove(cell, neighbor))
        return moves

    def can_grow(self, from_cell: Cell, to_cell: Cell) -> bool:
        """Whether the shape of ``to_cell`` survives losing it."""
        old_shape = to_cell.shape_index
        to_cell.shape_index = from_cell.shape_index

        # The remaining cells of the old shape must form one big enough region
        neighbors = self.board.neighbors(to_cell, only_empty_cells=False, shape_filter=old_shape)
        regions = self.partitioner.partition(neighbors, only_empty_cells=False, shape_filter=old_shape)

        to_cell.shape_index = old_shape

        return len(regions) == 1 and len(regions[0]) >= self.min_shape_size
