"""
Batch generation: generate a number of levels and export each one.

Every level of a batch uses its own seed derived from the batch seed, so a
whole batch can be regenerated from one seed. The batch stops at the first
level that fails or is cancelled.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import structlog

from ..utils.random import level_seed, resolve_seed
from .generator import GenerationRequest, GenerationResult, LevelGenerator
from .level_file import LevelRecord, write_level

logger = structlog.get_logger()


@dataclass
class BatchResult:
    seed: str
    requested: int
    paths: List[Path] = field(default_factory=list)
    results: List[GenerationResult] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return len(self.paths) == self.requested


def generate_batch(
    request: GenerationRequest,
    count: int,
    output_dir: Union[str, Path],
    filename: str = "level",
    cancel_event: Optional[threading.Event] = None,
) -> BatchResult:
    """
    Generate ``count`` levels with the same parameters.

    Args:
        request: Parameters shared by all levels; its seed seeds the batch
        count: Number of levels to generate
        output_dir: Folder receiving one level file per level
        filename: Base file name, made unique per level
        cancel_event: Set to abandon the batch

    Returns:
        BatchResult with the written paths and every generation result
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    batch_seed = resolve_seed(request.seed)
    batch = BatchResult(seed=batch_seed, requested=count)

    logger.info("Starting batch generation", count=count, seed=batch_seed, output_dir=str(output_dir))

    for level_number in range(1, count + 1):
        level_request = request.model_copy(update={"seed": level_seed(batch_seed, level_number)})
        result = LevelGenerator(level_request).generate(cancel_event)
        batch.results.append(result)

        if not result.succeeded:
            logger.warning(
                "Batch stopped",
                level=level_number,
                status=result.status.value,
                error=result.error,
            )
            break

        record = LevelRecord(
            grid_shape=request.grid_shape,
            rotate_hexagon=request.rotate_hexagon,
            grid=result.grid,
        )
        batch.paths.append(write_level(record, output_dir, filename))
        logger.info("Batch progress", level=level_number, of=count)

    return batch
