"""
Aztec Diamond Domino Shuffling - Core Models

This package provides:
- DiamondLattice: flat array-backed tiling state with migrate/fill half steps
- ShuffleSimulator: stepping controller with a wrap-around growth cap
"""

from .lattice import (
    CascadeStalledError,
    CellOverflowError,
    DiamondLattice,
    Direction,
    Facing,
    Grid,
    OutOfDiamondError,
    TilingInvariantError,
)
from .simulator import ShowGrid, ShuffleConfig, ShuffleSimulator
from . import utils

__all__ = [
    # Lattice
    "DiamondLattice",
    "Grid",
    "Direction",
    "Facing",
    # Controller
    "ShuffleSimulator",
    "ShowGrid",
    "ShuffleConfig",
    # Errors
    "TilingInvariantError",
    "CellOverflowError",
    "OutOfDiamondError",
    "CascadeStalledError",
    # Utilities
    "utils",
]
