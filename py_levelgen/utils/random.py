"""
Seed helpers.

Generation only ever draws random numbers from an ``AleaPRNG`` built from
the request seed, so a level can be reproduced from its seed alone.
Python's random module is not used by the generator.
"""

import uuid
from typing import Optional

from ..core.alea_prng import AleaPRNG


def new_seed() -> str:
    """Create a short random seed string."""
    return str(uuid.uuid4())[:8]


def resolve_seed(seed: Optional[str]) -> str:
    """Return ``seed`` or a fresh one when it is missing or empty."""
    return seed if seed else new_seed()


def level_seed(seed: str, level_number: int) -> str:
    """Derive the seed of one level of a batch."""
    return f"{seed}-{level_number}"


def make_prng(seed: Optional[str]) -> AleaPRNG:
    """
    Build the generator's PRNG.

    Args:
        seed: Seed string, "default" is used when None

    Returns:
        AleaPRNG instance
    """
    return AleaPRNG(seed if seed is not None else "default")
