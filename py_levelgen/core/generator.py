"""
Level generation pipeline.

Runs the three phases on one board owned by the generation call:
partition the empty cells into regions, pack the regions with shapes
by backtracking, then reshape the packed board with random grow moves.
"""

import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field, field_validator

from ..config.config import settings
from ..utils import random as seeds
from .board import Board
from .exceptions import InvalidBoardError
from .randomizer import BoardRandomizer
from .regions import RegionPartitioner
from .shape_packer import ShapePacker
from .topology import GridShape

logger = structlog.get_logger()

FILL_ERROR = "Could not fill board with shapes."


class GenerationStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FailureReason(str, Enum):
    INFEASIBLE_CONSTRAINTS = "infeasible_constraints"
    SEARCH_EXHAUSTED = "search_exhausted"


class GenerationRequest(BaseModel):
    """Parameters of one generation run."""

    grid_shape: GridShape = Field(GridShape.SQUARE, description="Board tessellation")
    rotate_hexagon: bool = Field(False, description="Hexagon orientation flag")
    x_cells: int = Field(..., ge=1, description="Number of columns")
    y_cells: int = Field(..., ge=1, description="Number of rows")
    cell_types: Optional[List[List[int]]] = Field(
        None, description="Per cell type, 0 = blank, 1 = block, other = playable"
    )
    num_shapes: int = Field(..., ge=1, description="Number of shapes to place")
    min_shape_size: int = Field(1, ge=1, description="Minimum cells per shape")
    max_shape_size: int = Field(..., ge=1, description="Maximum cells per shape")
    seed: Optional[str] = Field(None, description="Seed for the board randomizer")
    randomize_iterations: int = Field(
        default_factory=lambda: settings.randomize_iterations,
        ge=0,
        description="Random grow moves applied after packing",
    )
    relax_shape_bounds: bool = Field(
        default_factory=lambda: settings.relax_shape_bounds,
        description="Loosen the shape size bounds when they cannot fit the board",
    )

    @field_validator("grid_shape", mode="before")
    @classmethod
    def parse_grid_shape(cls, value):
        if isinstance(value, str):
            return int(value) if value.isdigit() else GridShape.from_name(value)
        return value


@dataclass
class GenerationResult:
    """Outcome of a generation run. ``grid`` is only set on success."""

    status: GenerationStatus
    seed: str
    min_shape_size: int
    max_shape_size: int
    grid: Optional[np.ndarray] = None
    error: Optional[str] = None
    failure: Optional[FailureReason] = None
    moves_applied: int = 0
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == GenerationStatus.COMPLETED


def _ensure_recursion_limit(cell_count: int) -> None:
    """Raise the recursion limit for boards of ``cell_count`` cells. Never lowers it."""
    # Packing recurses once per absorbed cell plus twice per placed shape
    needed = cell_count * 4 + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


# Set once for the largest board the generator accepts
_ensure_recursion_limit(settings.max_grid_cells ** 2)


class LevelGenerator:
    """Generates one level board from a ``GenerationRequest``."""

    def __init__(self, request: GenerationRequest):
        self.request = request
        self._validate()

    def _validate(self) -> None:
        request = self.request
        limit = settings.max_grid_cells

        if request.x_cells > limit or request.y_cells > limit:
            raise InvalidBoardError(
                f"Board {request.x_cells}x{request.y_cells} exceeds the {limit} cell limit"
            )
        if request.num_shapes < 1:
            raise InvalidBoardError("num_shapes must be at least 1")
        if request.min_shape_size < 1:
            raise InvalidBoardError("min_shape_size must be at least 1")
        if request.min_shape_size > request.max_shape_size:
            raise InvalidBoardError(
                f"min_shape_size {request.min_shape_size} is larger than "
                f"max_shape_size {request.max_shape_size}"
            )
        if request.cell_types is not None:
            rows = request.cell_types
            if len(rows) != request.y_cells or any(len(row) != request.x_cells for row in rows):
                raise InvalidBoardError(
                    f"Cell type map must have {request.y_cells} rows of {request.x_cells} values"
                )

    def create_board(self) -> Board:
        request = self.request
        return Board(
            request.grid_shape,
            request.x_cells,
            request.y_cells,
            rotate_hexagon=request.rotate_hexagon,
            cell_types=request.cell_types,
        )

    def generate(self, cancel_event: Optional[threading.Event] = None) -> GenerationResult:
        """
        Run the full pipeline.

        Args:
            cancel_event: Set from another thread to abandon the search

        Returns:
            GenerationResult; failed and cancelled runs carry no grid
        """
        request = self.request
        seed = seeds.resolve_seed(request.seed)
        started = time.perf_counter()

        board = self.create_board()
        partitioner = RegionPartitioner(board)
        packer = ShapePacker(
            board,
            request.num_shapes,
            request.min_shape_size,
            request.max_shape_size,
            partitioner=partitioner,
            cancel_event=cancel_event,
        )

        def finish(status, **kwargs) -> GenerationResult:
            result = GenerationResult(
                status=status,
                seed=seed,
                min_shape_size=packer.min_shape_size,
                max_shape_size=packer.max_shape_size,
                elapsed_seconds=round(time.perf_counter() - started, 4),
                **kwargs,
            )
            if status == GenerationStatus.FAILED:
                logger.error("Level generation failed", failure=result.failure.value, error=result.error)
            elif status == GenerationStatus.CANCELLED:
                logger.info("Level generation cancelled", elapsed=result.elapsed_seconds)
            return result

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        starting_regions = partitioner.partition()
        playable_count = sum(len(region) for region in starting_regions)

        logger.info(
            "Starting level generation",
            grid_shape=board.grid_shape.name,
            size=(board.x_cells, board.y_cells),
            playable_cells=playable_count,
            regions=len(starting_regions),
            num_shapes=request.num_shapes,
            shape_bounds=(request.min_shape_size, request.max_shape_size),
            seed=seed,
        )

        if not starting_regions:
            return finish(
                GenerationStatus.FAILED,
                failure=FailureReason.INFEASIBLE_CONSTRAINTS,
                error=f"{FILL_ERROR} The board has no playable cells.",
            )

        if not packer.can_fill_remaining(starting_regions, 0, 0):
            if cancelled():
                return finish(GenerationStatus.CANCELLED)

            if request.relax_shape_bounds:
                packer.relax_shape_bounds(starting_regions)

            if packer.min_shape_size > packer.max_shape_size or not packer.can_fill_remaining(
                starting_regions, 0, 0
            ):
                if cancelled():
                    return finish(GenerationStatus.CANCELLED)
                if playable_count < request.num_shapes:
                    detail = (
                        f"The board has fewer playable cells ({playable_count}) "
                        f"than shapes ({request.num_shapes})."
                    )
                else:
                    detail = (
                        f"{request.num_shapes} shapes of "
                        f"{packer.min_shape_size}-{packer.max_shape_size} cells "
                        f"cannot cover {playable_count} cells."
                    )
                return finish(
                    GenerationStatus.FAILED,
                    failure=FailureReason.INFEASIBLE_CONSTRAINTS,
                    error=f"{FILL_ERROR} {detail}",
                )

        if not packer.fill_regions(starting_regions, 0, 0):
            if cancelled():
                return finish(GenerationStatus.CANCELLED)
            return finish(
                GenerationStatus.FAILED,
                failure=FailureReason.SEARCH_EXHAUSTED,
                error=f"{FILL_ERROR} Every arrangement was tried.",
            )

        logger.debug("Board packed", board=board.render())

        randomizer = BoardRandomizer(
            board,
            request.num_shapes,
            packer.min_shape_size,
            packer.max_shape_size,
            seeds.make_prng(seed),
            partitioner=partitioner,
        )
        moves_applied = randomizer.randomize(request.randomize_iterations)

        result = finish(GenerationStatus.COMPLETED, grid=board.to_matrix(), moves_applied=moves_applied)
        logger.info(
            "Level generation completed",
            seed=seed,
            moves_applied=moves_applied,
            elapsed=result.elapsed_seconds,
        )
        return result


def generate_level(request: GenerationRequest, cancel_event: Optional[threading.Event] = None) -> GenerationResult:
    """Convenience wrapper around ``LevelGenerator(request).generate()``."""
    return LevelGenerator(request).generate(cancel_event)
