"""
Backtracking shape packer.

Fills every empty cell of a board with exactly ``num_shapes`` connected
shapes whose sizes lie in ``[min_shape_size, max_shape_size]``.

The search works region by region:

1. ``fill_regions`` prunes with ``can_fill_remaining`` and then tries every
   cell of the current region as the seed of the next shape.
2. ``spread_shape`` grows the shape one neighbour at a time. A shape is
   finished once it reaches the maximum size, or when it cannot grow any
   further but already has the minimum size.
3. ``shape_placed`` re-partitions what is left of the current region, since
   placing a shape can split it, and recurses with the next shape id.

Backtracking failures are plain ``False`` return values. Every recursive
entry point checks the cancellation event first.
"""

import threading
from typing import Dict, List, Optional, Set, Tuple

import structlog

from ..config.generation_settings import validate_shape_bounds
from .board import EMPTY_SHAPE, Board, Cell
from .regions import Region, RegionPartitioner

logger = structlog.get_logger()

ShapeKey = Tuple[Tuple[int, int], ...]


def insert_sorted(cell: Cell, shape: List[Cell]) -> ShapeKey:
    """
    Insert ``cell`` into ``shape`` keeping it ordered by (x, y).

    Returns:
        The coordinates of the shape in canonical order, used to detect a
        cell set that was already tried through a different growth order
    """
    index = len(shape)
    for i, other in enumerate(shape):
        if (cell.x, cell.y) < (other.x, other.y):
            index = i
            break
    shape.insert(index, cell)
    return tuple((c.x, c.y) for c in shape)


class ShapePacker:
    """Exhaustive search that tiles the empty cells of a board with shapes."""

    def __init__(
        self,
        board: Board,
        num_shapes: int,
        min_shape_size: int,
        max_shape_size: int,
        partitioner: Optional[RegionPartitioner] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.board = board
        self.num_shapes = num_shapes
        self.min_shape_size = min_shape_size
        self.max_shape_size = max_shape_size
        self.partitioner = partitioner or RegionPartitioner(board)
        self.cancel_event = cancel_event

        self._min_shapes_cache: Dict[int, int] = {}

    @property
    def stopping(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def set_shape_bounds(self, min_shape_size: int, max_shape_size: int) -> None:
        self.min_shape_size = min_shape_size
        self.max_shape_size = max_shape_size
        self._min_shapes_cache.clear()

    def relax_shape_bounds(self, regions: List[Region]) -> Tuple[int, int]:
        """
        Loosen the shape size bounds after the starting regions failed the
        feasibility check.

        With several starting regions the bounds become 1 and the playable
        cell count. A single region gets bounds derived from its average
        shape size, with the requested values clamped into that range, or 1
        and 1 when there are fewer cells than shapes.

        Returns:
            The new (min_shape_size, max_shape_size)
        """
        if len(regions) > 1:
            min_size = 1
            max_size = sum(len(region) for region in regions)
        else:
            min_size, max_size = validate_shape_bounds(
                len(regions[0]), self.num_shapes, self.min_shape_size, self.max_shape_size
            )

        logger.warning(
            "Relaxing shape size bounds",
            regions=len(regions),
            requested=(self.min_shape_size, self.max_shape_size),
            relaxed=(min_size, max_size),
        )
        self.set_shape_bounds(min_size, max_size)
        return min_size, max_size

    def fill_regions(self, regions: List[Region], region_index: int, shape_index: int) -> bool:
        """Fill ``regions[region_index:]`` starting with shape id ``shape_index``."""
        if self.stopping:
            return False

        if region_index >= len(regions):
            # Every region is full, the board is only valid if every shape was used
            return shape_index >= self.num_shapes

        if not self.can_fill_remaining(regions, region_index, shape_index):
            return False

        region = regions[region_index]

        for cell in region.cells:
            if self.stopping:
                return False

            if self.spread_shape(regions, region_index, shape_index, region, cell, [], [], set()):
                return True

        return False

    def can_fill_remaining(self, regions: List[Region], region_index: int, shape_index: int) -> bool:
        """
        Quick necessary conditions for fitting the remaining shapes into
        the remaining regions. Passing does not guarantee a solution.
        """
        if self.stopping:
            return False

        remaining_regions = len(regions) - region_index
        remaining_shapes = self.num_shapes - shape_index

        # Each region needs at least one shape
        if remaining_regions > remaining_shapes:
            return False

        max_shapes_can_fit = 0
        min_shapes_can_fit = 0

        for region in regions[region_index:]:
            if self.stopping:
                return False

            cell_count = len(region)

            if cell_count < self.min_shape_size:
                return False

            min_shapes_can_fit += self.min_shapes_to_fill(cell_count)
            if min_shapes_can_fit > remaining_shapes:
                return False

            max_shapes = cell_count // self.min_shape_size
            if max_shapes == 0:
                return False

            max_shapes_can_fit += max_shapes

        return max_shapes_can_fit >= remaining_shapes

    def min_shapes_to_fill(self, cell_count: int) -> int:
        """
        Number of shapes that exactly cover ``cell_count`` cells, found by
        trying the largest shape sizes first. 0 if no combination works.
        """
        if cell_count < self.min_shape_size:
            return 0

        cached = self._min_shapes_cache.get(cell_count)
        if cached is not None:
            return cached

        result = 0
        for size in range(min(self.max_shape_size, cell_count), self.min_shape_size - 1, -1):
            if size == cell_count:
                result = 1
                break

            rest = self.min_shapes_to_fill(cell_count - size)
            if rest > 0:
                result = rest + 1
                break

        self._min_shapes_cache[cell_count] = result
        return result

    def spread_shape(
        self,
        regions: List[Region],
        region_index: int,
        shape_index: int,
        region: Region,
        cell: Cell,
        shape: List[Cell],
        frontier: List[Cell],
        tried_shapes: Set[ShapeKey],
    ) -> bool:
        """
        Add ``cell`` to the shape being built and try to finish the board.

        Args:
            shape: Cells of the shape so far, kept ordered by (x, y)
            frontier: Empty neighbours of the shape not yet absorbed
            tried_shapes: Cell sets already explored from the current seed

        Returns:
            True once the whole board is filled. On False every change made
            here has been undone.
        """
        if self.stopping:
            return False

        cell.shape_index = shape_index
        shape_key = insert_sorted(cell, shape)

        if shape_key in tried_shapes:
            shape.remove(cell)
            cell.shape_index = EMPTY_SHAPE
            return False

        tried_shapes.add(shape_key)

        if len(shape) == self.max_shape_size:
            if self.shape_placed(regions, region_index, shape_index, region):
                return True
        else:
            frontier_count = len(frontier)

            for neighbor in self.board.neighbors(cell, only_empty_cells=True):
                if neighbor not in frontier:
                    frontier.append(neighbor)

            for i in range(len(frontier)):
                if self.stopping:
                    return False

                candidate = frontier.pop(i)

                if self.spread_shape(
                    regions, region_index, shape_index, region, candidate, shape, frontier, tried_shapes
                ):
                    return True

                frontier.insert(i, candidate)

            del frontier[frontier_count:]

            # Growing further never worked, the shape may still be big enough as is
            if len(shape) >= self.min_shape_size and self.shape_placed(
                regions, region_index, shape_index, region
            ):
                return True

        shape.remove(cell)
        cell.shape_index = EMPTY_SHAPE
        return False

    def shape_placed(self, regions: List[Region], region_index: int, shape_index: int, region: Region) -> bool:
        """Continue with the next shape once the current one is final."""
        if self.stopping:
            return False

        # Whatever is left of the region may now be split in several parts
        new_regions = self.partitioner.partition(region.cells, only_empty_cells=True)
        new_region_index = region_index + 1

        if new_regions:
            new_regions.extend(regions[new_region_index:])
            new_region_index = 0
        else:
            new_regions = regions

        return self.fill_regions(new_regions, new_region_index, shape_index + 1)
