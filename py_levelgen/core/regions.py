"""
Region partitioning by breadth-first flood fill.

A region is a maximal connected set of cells that satisfy the board's
inclusion predicate (only empty cells, or playable cells of one shape).
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

import structlog

from .board import Board, Cell

logger = structlog.get_logger()


@dataclass(frozen=True)
class Region:
    """Connected component in BFS discovery order. Never empty."""

    cells: Tuple[Cell, ...]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)


class RegionPartitioner:
    """Splits cells of a board into connected regions."""

    def __init__(self, board: Board):
        self.board = board

    def partition(
        self,
        cells: Optional[Iterable[Cell]] = None,
        only_empty_cells: bool = True,
        shape_filter: Optional[int] = None,
    ) -> List[Region]:
        """
        Partition candidate cells into regions.

        Args:
            cells: Candidate cells, the whole board in row-major order if None
            only_empty_cells: Only unowned playable cells belong to a region
            shape_filter: Restrict to cells of this shape when
                ``only_empty_cells`` is False

        Returns:
            Regions in the scan order of their first candidate cell
        """
        if cells is None:
            cells = self.board.iter_cells()

        visited: Set[Cell] = set()
        regions = []

        for cell in cells:
            if cell in visited:
                continue
            if not self.board.matches(cell, only_empty_cells, shape_filter):
                continue
            regions.append(self._flood_fill(cell, visited, only_empty_cells, shape_filter))

        return regions

    def _flood_fill(
        self,
        start: Cell,
        visited: Set[Cell],
        only_empty_cells: bool,
        shape_filter: Optional[int],
    ) -> Region:
        region_cells = []
        queue = deque([start])
        visited.add(start)

        while queue:
            cell = queue.popleft()
            region_cells.append(cell)

            for neighbor in self.board.neighbors(cell, only_empty_cells, shape_filter):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return Region(tuple(region_cells))
