"""Exceptions raised for invalid generator input."""


class LevelGenerationError(Exception):
    """Base class for level generator errors."""


class InvalidBoardError(LevelGenerationError, ValueError):
    """Board dimensions, cell types or shape bounds are not usable."""


class LevelFileError(LevelGenerationError, ValueError):
    """A level record could not be parsed."""
