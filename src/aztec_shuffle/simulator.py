"""
Stepping controller for Aztec diamond growth.

Sequences the two half steps of domino shuffling on a `DiamondLattice`
and wraps back to an empty order-2 diamond once the order outgrows the
configured maximum (normally derived from the size of the display the
tiling is drawn on).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from . import utils
from .lattice import INITIAL_ORDER, DiamondLattice

# Reference display: 1024 px window, 8x8 px per cell
DEFAULT_CELL_PIXELS = 8
DEFAULT_MAX_ORDER = 1024 // (2 * DEFAULT_CELL_PIXELS)


@dataclass
class ShuffleConfig:
    """Growth cap and reproducibility settings for a shuffling run."""

    max_order: int = DEFAULT_MAX_ORDER
    seed: Optional[int] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.max_order < INITIAL_ORDER:
            raise ValueError(
                f"max_order must be >= {INITIAL_ORDER}, got {self.max_order}"
            )

    @classmethod
    def from_window_size(
        cls, window_size: int, cell_pixels: int = DEFAULT_CELL_PIXELS, **kwargs: Any
    ) -> "ShuffleConfig":
        """A diamond of order r spans 2r cells, so the cap follows the window width."""
        return cls(max_order=window_size // (2 * cell_pixels), **kwargs)


class ShuffleSimulator:
    """
    Holds the lattice and the half-step phase.

    The phase starts in filling: the initial order-2 diamond is empty and has
    to be filled before it can migrate.
    """

    def __init__(self, config: ShuffleConfig | dict | None = None) -> None:
        if config is None:
            config = ShuffleConfig()
        elif isinstance(config, dict):
            config = ShuffleConfig(**config)
        self.config = config
        self.max_order = config.max_order
        self.rng = utils.make_rng(config.seed)
        self.lattice = DiamondLattice(INITIAL_ORDER, rng=self.rng)
        self.filling = True
        self.steps_taken = 0
        self.resets = 0

    @property
    def order(self) -> int:
        return self.lattice.order

    # ------------------------------------------------------------------ steps
    def half_step(self) -> bool:
        """Run whichever half step is pending; returns True if growth wrapped."""
        if self.filling:
            self.lattice.fill()
        else:
            self.lattice.migrate()
        self.filling = not self.filling
        self.steps_taken += 1
        return self._check_reset()

    def full_step(self) -> bool:
        """Advance one order and leave a fully tiled diamond (unless it wrapped)."""
        if self.filling:
            self.lattice.fill()
        self.lattice.migrate()
        self.filling = False
        self.steps_taken += 1
        if self._check_reset():
            return True
        self.lattice.fill()
        return False

    def _check_reset(self) -> bool:
        if self.lattice.order > self.max_order:
            self.lattice.reset()
            self.filling = True
            self.resets += 1
            if self.config.verbose:
                print(f"[aztec] order exceeded {self.max_order}, reset to {INITIAL_ORDER}")
            return True
        return False

    def grow_to(self, order: int) -> None:
        """Full-step until the lattice reaches `order` and is completely tiled."""
        if order < INITIAL_ORDER or order > self.max_order:
            raise ValueError(
                f"target order must lie in [{INITIAL_ORDER}, {self.max_order}], got {order}"
            )
        start_time = time.time()
        if self.filling:
            self.lattice.fill()
            self.filling = False
        report_every = max(1, (order - INITIAL_ORDER) // 10)
        while self.lattice.order < order:
            self.full_step()
            if self.config.verbose and self.lattice.order % report_every == 0:
                elapsed = time.time() - start_time
                print(
                    f"[aztec] order {self.lattice.order}/{order}, "
                    f"dominoes={self.lattice.domino_count()}, elapsed={elapsed:.1f}s"
                )

    # ------------------------------------------------------------------ views
    def snapshot(self) -> Dict[str, Any]:
        return {
            "order": self.lattice.order,
            "phase": "filling" if self.filling else "migrating",
            "dominoes": self.lattice.domino_count(),
            "bad_blocks": self.lattice.bad_block_count(),
            "steps_taken": self.steps_taken,
            "resets": self.resets,
        }

    def result(self) -> utils.TilingResult:
        meta = {
            "model": "aztec_shuffle",
            "max_order": int(self.max_order),
            "seed": self.config.seed,
            **self.snapshot(),
        }
        return utils.TilingResult(
            order=self.lattice.order,
            cells=self.lattice.cells.copy(),
            grid=self.lattice.cell_grid(),
            meta=meta,
        )


ShowGrid = ShuffleSimulator

__all__ = ["ShuffleConfig", "ShuffleSimulator", "ShowGrid"]
