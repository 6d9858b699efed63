"""
Aztec Diamond Lattice with Domino Shuffling.

The state of a tiling lives on the lattice points (x, y) with |x| + |y| < order.
Every point stores the directions of the dominoes whose long edge is centred
on it, so a point holds zero, one, or two directions:

1.  **Empty:** no domino is centred here.
2.  **Single:** one domino; it moves one unit in its direction on migration.
3.  **Double:** two dominoes pointing into each other (a "bad block"). It is a
    legal part of a finished tiling and is annihilated by the next migration.

The tiled region at lattice order r is the Aztec diamond of order r - 1.
Growth alternates `migrate()` (slide + annihilate, order r -> r + 1) and
`fill()` (cover every free 2x2 block with a random pair of dominoes).

The hot sweeps are compiled with `@numba.njit`. Kernels report broken
invariants through status codes, which the Python layer turns into
exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, Tuple

import numpy as np
from numba import njit

###############################################################################
# Constants
###############################################################################

NO_DIR = -1

UP = 0
DOWN = 1
LEFT = 2
RIGHT = 3

# Unit step for each direction code
DX = np.array([0, 0, -1, 1], dtype=np.int64)
DY = np.array([1, -1, 0, 0], dtype=np.int64)

# Neighbourhood of a 2x2 block centre and the directions each neighbour may
# hold while the block stays open. The centre itself must be empty (mask 0).
FREE_OFFSETS = np.array(
    [
        [1, 1],
        [1, -1],
        [-1, -1],
        [-1, 1],
        [0, 1],
        [0, -1],
        [-1, 0],
        [1, 0],
        [0, 0],
    ],
    dtype=np.int64,
)
FREE_MASKS = np.array(
    [
        (1 << LEFT) | (1 << DOWN),
        (1 << LEFT) | (1 << UP),
        (1 << RIGHT) | (1 << UP),
        (1 << RIGHT) | (1 << DOWN),
        1 << DOWN,
        1 << UP,
        1 << RIGHT,
        1 << LEFT,
        0,
    ],
    dtype=np.int64,
)

# Cells (lower-left corners) covered by the domino recorded at a point
CELL_OFFSETS = {
    UP: ((-1, -1), (0, -1)),
    DOWN: ((-1, 0), (0, 0)),
    LEFT: ((0, -1), (0, 0)),
    RIGHT: ((-1, -1), (-1, 0)),
}

STATUS_OK = 0
STATUS_OVERFLOW = 1
STATUS_OUT_OF_BOUNDS = 2

INITIAL_ORDER = 2


###############################################################################
# Errors
###############################################################################


class TilingInvariantError(RuntimeError):
    """The shuffling algorithm produced a state that cannot occur."""


class CellOverflowError(TilingInvariantError):
    """A third direction was recorded on a point that already holds two."""


class OutOfDiamondError(TilingInvariantError):
    """A write targeted a point outside the current diamond."""


class CascadeStalledError(TilingInvariantError):
    """The creation cascade has open blocks but none it can commit."""


###############################################################################
# Per-point state
###############################################################################


class Direction(IntEnum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    @property
    def step(self) -> Tuple[int, int]:
        return int(DX[self]), int(DY[self])

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITE[self]


_OPPOSITE = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


@dataclass(frozen=True)
class Facing:
    """Directions recorded on one lattice point (Empty, Single or Double)."""

    dirs: Tuple[Direction, ...] = ()

    @classmethod
    def from_row(cls, row: np.ndarray) -> "Facing":
        return cls(tuple(Direction(int(d)) for d in row if d != NO_DIR))

    @property
    def is_empty(self) -> bool:
        return not self.dirs

    @property
    def is_single(self) -> bool:
        return len(self.dirs) == 1

    @property
    def is_double(self) -> bool:
        return len(self.dirs) == 2

    def add(self, direction: Direction) -> "Facing":
        if len(self.dirs) >= 2:
            raise CellOverflowError(
                f"cannot add {direction.name} to a point already holding "
                f"{', '.join(d.name for d in self.dirs)}"
            )
        return Facing(self.dirs + (Direction(direction),))


Facing.EMPTY = Facing()  # type: ignore[attr-defined]


###############################################################################
# Indexing helpers
###############################################################################


def lattice_size(order: int) -> int:
    """Number of points with |x| + |y| < order."""
    return 1 + 2 * order * (order - 1)


@njit(cache=True)
def data_index(order: int, x: int, y: int) -> int:
    """
    Maps a diamond coordinate to its slot in the flat buffer.

    Rows with y >= 0 sit behind a square number of earlier points; rows with
    y < 0 mirror that scheme on top of an order^2 base. The resulting order is
    the canonical sweep: top row first, left to right within a row.
    """
    i = 0
    if y < 0:
        y = -y
        i += order * order + (order - 1) * (order - 1) - (order - y) * (order - y)
    else:
        n_occupied = order - 1 - y
        i += n_occupied * n_occupied
    return i + order - y - 1 + x


def canonical_coords(order: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return (xs, ys) of every point in buffer order."""
    ys = np.arange(order - 1, -order, -1, dtype=np.int64)
    widths = 2 * (order - np.abs(ys)) - 1
    y = np.repeat(ys, widths)
    starts = np.repeat(-(order - 1 - np.abs(ys)), widths)
    row_base = np.repeat(np.cumsum(widths) - widths, widths)
    x = starts + np.arange(y.size, dtype=np.int64) - row_base
    return x, y


###############################################################################
# Kernels
###############################################################################


@njit(cache=True)
def _migrate_kernel(cells: np.ndarray, order: int) -> Tuple[np.ndarray, int]:
    """
    Slides every single domino one unit into a buffer of order + 1.

    Points holding two directions are skipped, which annihilates the bad
    block they represent. Arrivals stack on the target point; a third
    arrival aborts with STATUS_OVERFLOW.
    """
    new_order = order + 1
    out = np.empty((1 + 2 * new_order * order, 2), dtype=np.int8)
    out[:] = NO_DIR
    for y in range(order - 1, -order, -1):
        span = order - 1 - abs(y)
        for x in range(-span, span + 1):
            i = data_index(order, x, y)
            d = cells[i, 0]
            if d == NO_DIR or cells[i, 1] != NO_DIR:
                continue
            nx = x + DX[d]
            ny = y + DY[d]
            if abs(nx) + abs(ny) >= new_order:
                return out, STATUS_OUT_OF_BOUNDS
            j = data_index(new_order, nx, ny)
            if out[j, 0] == NO_DIR:
                out[j, 0] = d
            elif out[j, 1] == NO_DIR:
                out[j, 1] = d
            else:
                return out, STATUS_OVERFLOW
    return out, STATUS_OK


@njit(cache=True)
def _is_free_tile(cells: np.ndarray, order: int, x: int, y: int) -> bool:
    for k in range(FREE_OFFSETS.shape[0]):
        nx = x + FREE_OFFSETS[k, 0]
        ny = y + FREE_OFFSETS[k, 1]
        if abs(nx) + abs(ny) >= order:
            continue
        i = data_index(order, nx, ny)
        first = cells[i, 0]
        if first == NO_DIR:
            continue
        if cells[i, 1] != NO_DIR:
            return False
        if (FREE_MASKS[k] >> np.int64(first)) & 1 == 0:
            return False
    return True


@njit(cache=True)
def _free_tile_centers(cells: np.ndarray, order: int) -> Tuple[np.ndarray, np.ndarray]:
    """Centres of all open 2x2 blocks; the outermost ring is never a centre."""
    xs = np.empty(cells.shape[0], dtype=np.int64)
    ys = np.empty(cells.shape[0], dtype=np.int64)
    count = 0
    for y in range(order - 2, -(order - 1), -1):
        span = order - 2 - abs(y)
        for x in range(-span, span + 1):
            if _is_free_tile(cells, order, x, y):
                xs[count] = x
                ys[count] = y
                count += 1
    return xs[:count], ys[:count]


def _is_sandwiched(x: int, y: int, open_tiles: set) -> bool:
    return ((x - 1, y) in open_tiles and (x + 1, y) in open_tiles) or (
        (x, y - 1) in open_tiles and (x, y + 1) in open_tiles
    )


###############################################################################
# Lattice
###############################################################################


class DiamondLattice:
    """
    Flat array-backed tiling state of an Aztec diamond.

    `cells` has one row per lattice point in canonical order; column 0 holds
    the first recorded direction and column 1 the second, NO_DIR when unset.
    """

    def __init__(
        self, order: int = INITIAL_ORDER, rng: Optional[np.random.Generator] = None
    ) -> None:
        if order < INITIAL_ORDER:
            raise ValueError(f"Lattice order must be >= {INITIAL_ORDER}, got {order}")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.order = int(order)
        self.cells = self._empty_cells(self.order)

    @staticmethod
    def _empty_cells(order: int) -> np.ndarray:
        return np.full((lattice_size(order), 2), NO_DIR, dtype=np.int8)

    # ------------------------------------------------------------------ access
    @property
    def size(self) -> int:
        return self.cells.shape[0]

    def __len__(self) -> int:
        return self.size

    def contains(self, x: int, y: int) -> bool:
        return abs(x) + abs(y) < self.order

    def get(self, x: int, y: int) -> Facing:
        """State at (x, y); points outside the diamond are always empty."""
        if not self.contains(x, y):
            return Facing.EMPTY
        return Facing.from_row(self.cells[data_index(self.order, x, y)])

    def add_dir(self, x: int, y: int, direction: Direction) -> None:
        """Record a direction on (x, y) in place."""
        if not self.contains(x, y):
            raise OutOfDiamondError(
                f"point ({x}, {y}) is outside the diamond of order {self.order}"
            )
        row = self.cells[data_index(self.order, x, y)]
        if row[0] == NO_DIR:
            row[0] = direction
        elif row[1] == NO_DIR:
            row[1] = direction
        else:
            raise CellOverflowError(
                f"point ({x}, {y}) already holds two directions, "
                f"cannot add {Direction(direction).name}"
            )

    def iter_cells(self) -> Iterator[Tuple[int, int, Facing]]:
        """Canonical sweep over every stored point."""
        xs, ys = canonical_coords(self.order)
        for x, y, row in zip(xs.tolist(), ys.tolist(), self.cells):
            yield x, y, Facing.from_row(row)

    def reset(self) -> None:
        self.order = INITIAL_ORDER
        self.cells = self._empty_cells(self.order)

    # ------------------------------------------------------------------ steps
    def migrate(self) -> None:
        """Slide every domino one unit outward and drop colliding pairs."""
        new_cells, status = _migrate_kernel(self.cells, self.order)
        if status == STATUS_OVERFLOW:
            raise CellOverflowError(
                f"three dominoes met on one point while migrating order {self.order}"
            )
        if status == STATUS_OUT_OF_BOUNDS:
            raise OutOfDiamondError(
                f"a domino left the diamond while migrating order {self.order}"
            )
        self.order += 1
        self.cells = new_cells

    def fill(self) -> int:
        """
        Covers every free 2x2 block with a random pair of dominoes.

        Blocks can overlap, so commits happen in rounds: a block is held back
        while both of its horizontal or both of its vertical neighbours are
        still open. Committing a block closes it and its eight neighbours.
        Returns the number of blocks filled.
        """
        xs, ys = _free_tile_centers(self.cells, self.order)
        open_tiles = set(zip(xs.tolist(), ys.tolist()))
        filled = 0
        while open_tiles:
            fillable = sorted(
                (x, y) for x, y in open_tiles if not _is_sandwiched(x, y, open_tiles)
            )
            if not fillable:
                raise CascadeStalledError(
                    f"{len(open_tiles)} open blocks are all sandwiched at order {self.order}"
                )
            for x, y in fillable:
                if (x, y) not in open_tiles:
                    continue
                if self.rng.integers(0, 2):
                    self.add_dir(x - 1, y, Direction.LEFT)
                    self.add_dir(x + 1, y, Direction.RIGHT)
                else:
                    self.add_dir(x, y + 1, Direction.UP)
                    self.add_dir(x, y - 1, Direction.DOWN)
                filled += 1
                for dx in (-1, 0, 1):
                    for dy in (-1, 0, 1):
                        open_tiles.discard((x + dx, y + dy))
        return filled

    # ------------------------------------------------------------------ views
    def domino_count(self) -> int:
        return int(np.count_nonzero(self.cells != NO_DIR))

    def bad_block_count(self) -> int:
        """Points holding two dominoes (to be annihilated on migration)."""
        return int(np.count_nonzero(self.cells[:, 1] != NO_DIR))

    def region_mask(self) -> np.ndarray:
        """Boolean mask of the Aztec diamond of order `order - 1`, top row first."""
        n = self.order - 1
        side = 2 * n
        cols = np.arange(side) - n + 0.5
        rows = (n - 1 - np.arange(side)) + 0.5
        return (np.abs(cols)[None, :] + np.abs(rows)[:, None]) <= n

    def _cell_indices(self, direction: int) -> Tuple[np.ndarray, np.ndarray]:
        """Row/column indices of the cells covered by dominoes of one direction."""
        n = self.order - 1
        xs, ys = canonical_coords(self.order)
        mask = (self.cells[:, 0] == direction) | (self.cells[:, 1] == direction)
        px, py = xs[mask], ys[mask]
        rows, cols = [], []
        for ox, oy in CELL_OFFSETS[direction]:
            cols.append(px + ox + n)
            rows.append(n - 1 - (py + oy))
        return np.concatenate(rows), np.concatenate(cols)

    def coverage(self) -> np.ndarray:
        """Number of dominoes covering each cell of the 2(order-1) square."""
        side = 2 * (self.order - 1)
        counts = np.zeros((side, side), dtype=np.int64)
        for direction in Direction:
            rows, cols = self._cell_indices(direction)
            np.add.at(counts, (rows, cols), 1)
        return counts

    def cell_grid(self) -> np.ndarray:
        """Direction code of the domino covering each cell, NO_DIR where uncovered."""
        side = 2 * (self.order - 1)
        grid = np.full((side, side), NO_DIR, dtype=np.int8)
        for direction in Direction:
            rows, cols = self._cell_indices(direction)
            grid[rows, cols] = direction
        return grid

    def is_tiled(self) -> bool:
        """True when every cell of the region is covered exactly once."""
        return bool(np.array_equal(self.coverage(), self.region_mask().astype(np.int64)))


Grid = DiamondLattice

__all__ = [
    "CascadeStalledError",
    "CellOverflowError",
    "DiamondLattice",
    "Direction",
    "Facing",
    "Grid",
    "OutOfDiamondError",
    "TilingInvariantError",
    "canonical_coords",
    "data_index",
    "lattice_size",
]
