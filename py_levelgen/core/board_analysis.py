"""
Board analysis: shape statistics and validity checks.

A generated board is valid when:
- every playable cell belongs to a shape
- exactly ``num_shapes`` distinct shapes exist
- every shape size lies within the shape size bounds
- every shape is one connected region under the board topology
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from .board import EMPTY_SHAPE, Board, Cell
from .regions import RegionPartitioner

logger = structlog.get_logger()


@dataclass
class BoardStatistics:
    playable_cells: int
    blank_cells: int
    block_cells: int
    num_shapes: int
    smallest_shape: int
    largest_shape: int
    average_shape: float


def shape_cells(board: Board) -> Dict[int, List[Cell]]:
    """Cells of every assigned shape id, in row-major order."""
    shapes: Dict[int, List[Cell]] = defaultdict(list)
    for cell in board.iter_cells():
        if cell.is_playable and cell.shape_index != EMPTY_SHAPE:
            shapes[cell.shape_index].append(cell)
    return dict(shapes)


def shape_sizes(board: Board) -> Dict[int, int]:
    return {index: len(cells) for index, cells in shape_cells(board).items()}


def board_statistics(board: Board) -> BoardStatistics:
    cells = list(board.iter_cells())
    sizes = list(shape_sizes(board).values())

    return BoardStatistics(
        playable_cells=sum(1 for cell in cells if cell.is_playable),
        blank_cells=sum(1 for cell in cells if cell.is_blank),
        block_cells=sum(1 for cell in cells if cell.is_block),
        num_shapes=len(sizes),
        smallest_shape=min(sizes, default=0),
        largest_shape=max(sizes, default=0),
        average_shape=round(sum(sizes) / len(sizes), 2) if sizes else 0.0,
    )


def check_board(
    board: Board,
    num_shapes: Optional[int] = None,
    min_shape_size: Optional[int] = None,
    max_shape_size: Optional[int] = None,
) -> List[str]:
    """
    Check a packed board.

    Args:
        board: Board to check
        num_shapes: Expected number of shapes, not checked if None
        min_shape_size: Smallest allowed shape, not checked if None
        max_shape_size: Largest allowed shape, not checked if None

    Returns:
        Human readable violations, empty for a valid board
    """
    violations = []

    for cell in board.playable_cells():
        if cell.shape_index == EMPTY_SHAPE:
            violations.append(f"Cell ({cell.x}, {cell.y}) is not covered by a shape")

    shapes = shape_cells(board)

    if num_shapes is not None and len(shapes) != num_shapes:
        violations.append(f"Expected {num_shapes} shapes, found {len(shapes)}")

    partitioner = RegionPartitioner(board)

    for index in sorted(shapes):
        cells = shapes[index]

        if min_shape_size is not None and len(cells) < min_shape_size:
            violations.append(f"Shape {index} has {len(cells)} cells, minimum is {min_shape_size}")
        if max_shape_size is not None and len(cells) > max_shape_size:
            violations.append(f"Shape {index} has {len(cells)} cells, maximum is {max_shape_size}")

        regions = partitioner.partition(cells, only_empty_cells=False, shape_filter=index)
        if len(regions) != 1:
            violations.append(f"Shape {index} is split into {len(regions)} parts")

    if violations:
        logger.debug("Board check found violations", count=len(violations))

    return violations
