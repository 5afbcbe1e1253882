"""
Core level generation functionality.
"""

from .topology import GridShape, neighbor_coords
from .board import Board, Cell
from .regions import Region, RegionPartitioner
from .shape_packer import ShapePacker
from .randomizer import BoardRandomizer
from .generator import (
    FailureReason, GenerationRequest, GenerationResult, GenerationStatus,
    LevelGenerator, generate_level
)
from .worker import GenerationWorker

__all__ = ['GridShape', 'neighbor_coords', 'Board', 'Cell', 'Region', 'RegionPartitioner',
           'ShapePacker', 'BoardRandomizer', 'FailureReason', 'GenerationRequest',
           'GenerationResult', 'GenerationStatus', 'LevelGenerator', 'generate_level',
           'GenerationWorker']
