# tests/test_lattice.py
import numpy as np
import pytest

from aztec_shuffle import (
    CellOverflowError,
    DiamondLattice,
    Direction,
    Facing,
    OutOfDiamondError,
)
from aztec_shuffle.lattice import canonical_coords, data_index, lattice_size


@pytest.mark.parametrize("order", [2, 3, 4, 7, 12])
def test_size_matches_formula(order):
    lattice = DiamondLattice(order)
    assert lattice.size == 1 + 2 * order * (order - 1)
    assert len(lattice) == lattice_size(order)
    assert lattice.domino_count() == 0


@pytest.mark.parametrize("order", [2, 3, 5, 9])
def test_index_is_bijection_in_canonical_order(order):
    """Sweeping the diamond row by row must visit slots 0, 1, 2, ... in turn."""
    indices = []
    for y in range(order - 1, -order, -1):
        span = order - 1 - abs(y)
        for x in range(-span, span + 1):
            indices.append(data_index(order, x, y))
    assert indices == list(range(lattice_size(order)))

    xs, ys = canonical_coords(order)
    assert [data_index(order, x, y) for x, y in zip(xs, ys)] == indices


def test_canonical_coords_order_two():
    xs, ys = canonical_coords(2)
    assert xs.tolist() == [0, -1, 0, 1, 0]
    assert ys.tolist() == [1, 0, 0, 0, -1]


def test_order_below_two_is_rejected():
    with pytest.raises(ValueError):
        DiamondLattice(1)


def test_get_outside_diamond_is_empty():
    lattice = DiamondLattice(3)
    assert lattice.get(3, 0).is_empty
    assert lattice.get(2, 1).is_empty
    assert lattice.get(-100, 40) == Facing.EMPTY


def test_add_dir_outside_diamond_raises():
    lattice = DiamondLattice(3)
    with pytest.raises(OutOfDiamondError):
        lattice.add_dir(2, 1, Direction.UP)


def test_add_dir_records_up_to_two_directions():
    lattice = DiamondLattice(3)
    lattice.add_dir(1, 0, Direction.LEFT)
    assert lattice.get(1, 0) == Facing((Direction.LEFT,))
    lattice.add_dir(1, 0, Direction.RIGHT)
    assert lattice.get(1, 0).is_double
    with pytest.raises(CellOverflowError):
        lattice.add_dir(1, 0, Direction.UP)


def test_facing_transitions():
    single = Facing.EMPTY.add(Direction.UP)
    assert single.is_single and single.dirs == (Direction.UP,)
    double = single.add(Direction.DOWN)
    assert double.is_double and double.dirs == (Direction.UP, Direction.DOWN)
    with pytest.raises(CellOverflowError):
        double.add(Direction.LEFT)


def test_direction_steps():
    assert Direction.UP.step == (0, 1)
    assert Direction.DOWN.step == (0, -1)
    assert Direction.LEFT.step == (-1, 0)
    assert Direction.RIGHT.step == (1, 0)
    for d in Direction:
        assert d.opposite.opposite is d


def test_iter_cells_matches_get():
    lattice = DiamondLattice(4)
    lattice.add_dir(0, 3, Direction.UP)
    lattice.add_dir(-2, 0, Direction.LEFT)
    seen = list(lattice.iter_cells())
    assert len(seen) == lattice.size
    assert seen[0][:2] == (0, 3)
    assert seen[-1][:2] == (0, -3)
    for x, y, facing in seen:
        assert lattice.get(x, y) == facing


def test_reset_returns_to_empty_order_two():
    lattice = DiamondLattice(6)
    lattice.add_dir(0, 0, Direction.DOWN)
    lattice.reset()
    assert lattice.order == 2
    assert lattice.size == 5
    assert lattice.domino_count() == 0


def test_migrate_moves_single_one_step():
    lattice = DiamondLattice(2)
    lattice.add_dir(-1, 0, Direction.LEFT)
    lattice.add_dir(1, 0, Direction.RIGHT)
    lattice.migrate()
    assert lattice.order == 3
    assert lattice.size == 13
    assert lattice.get(-2, 0) == Facing((Direction.LEFT,))
    assert lattice.get(2, 0) == Facing((Direction.RIGHT,))
    assert lattice.domino_count() == 2


def test_migrate_annihilates_doubles():
    lattice = DiamondLattice(3)
    lattice.add_dir(0, 0, Direction.UP)
    lattice.add_dir(0, 0, Direction.DOWN)
    lattice.add_dir(0, 2, Direction.UP)
    lattice.migrate()
    assert lattice.order == 4
    assert lattice.domino_count() == 1
    assert lattice.get(0, 3) == Facing((Direction.UP,))
    assert lattice.get(0, 1).is_empty
    assert lattice.get(0, -1).is_empty


def test_migrate_collision_forms_double():
    lattice = DiamondLattice(3)
    lattice.add_dir(-1, 0, Direction.RIGHT)
    lattice.add_dir(1, 0, Direction.LEFT)
    lattice.migrate()
    assert lattice.get(0, 0) == Facing((Direction.RIGHT, Direction.LEFT))
    assert lattice.bad_block_count() == 1


def test_migrate_three_arrivals_raise():
    lattice = DiamondLattice(3)
    lattice.add_dir(-1, 0, Direction.RIGHT)
    lattice.add_dir(1, 0, Direction.LEFT)
    lattice.add_dir(0, -1, Direction.UP)
    with pytest.raises(CellOverflowError):
        lattice.migrate()


def test_coverage_of_single_dominoes():
    """Each recorded direction covers two cells next to its point."""
    lattice = DiamondLattice(2)
    lattice.add_dir(0, 1, Direction.UP)
    lattice.add_dir(0, -1, Direction.DOWN)
    expected = np.ones((2, 2), dtype=np.int64)
    assert np.array_equal(lattice.coverage(), expected)
    grid = lattice.cell_grid()
    assert grid[0].tolist() == [Direction.UP, Direction.UP]
    assert grid[1].tolist() == [Direction.DOWN, Direction.DOWN]
    assert lattice.is_tiled()


def test_region_mask_is_aztec_diamond():
    lattice = DiamondLattice(4)
    mask = lattice.region_mask()
    assert mask.shape == (6, 6)
    # Aztec diamond of order 3 has rows of 2, 4, 6, 6, 4, 2 cells
    assert mask.sum(axis=1).tolist() == [2, 4, 6, 6, 4, 2]
    assert int(mask.sum()) == 2 * 3 * 4
