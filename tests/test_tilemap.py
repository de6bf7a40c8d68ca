import pytest

from treasurehunt.schemas import Position, TileType
from treasurehunt.exceptions import (
    InvalidGrid,
    InvalidSize,
    NotGenerated,
    OutOfBounds,
    ReachabilityNotComputed,
)
from treasurehunt.services.reachability import compute_reachability
from treasurehunt.services.tilemap import GridMap

G, W, T = TileType.GRASS, TileType.WATER, TileType.TREASURE


def make_rows(size, treasure, water=()):
    rows = [[G for _ in range(size)] for __ in range(size)]
    rows[treasure[1]][treasure[0]] = T
    for x, y in water:
        rows[y][x] = W
    return rows


def test_new_empty_size():
    assert GridMap(19).size == 19
    assert GridMap(5).size == 5
    assert GridMap(50).size == 50
    for bad in (4, 51, 0, -3):
        with pytest.raises(InvalidSize):
            GridMap(bad)
    # builtin compatible
    with pytest.raises(ValueError):
        GridMap(4)


def test_from_tiles_infers_size_and_treasure():
    rows = make_rows(6, (4, 1), water=[(0, 5), (1, 5)])
    grid = GridMap.from_tiles(rows)
    assert grid.size == 6
    assert grid.treasure == Position(x=4, y=1)
    assert grid.phase == "generated"
    for y in range(6):
        for x in range(6):
            assert grid.tile_at(Position(x=x, y=y)) == rows[y][x]
    # 元のリストを書き換えても影響しない
    rows[0][0] = W
    assert grid.tile_at(Position(x=0, y=0)) == G


@pytest.mark.parametrize("rows", [
    [],
    [[G] * 5 for _ in range(3)],
    [[G] * 5, [G] * 5, [G] * 4, [G] * 5, [G] * 5],
])
def test_from_tiles_rejects_bad_shape(rows):
    with pytest.raises(InvalidGrid):
        GridMap.from_tiles(rows)


def test_from_tiles_rejects_unset_cells():
    rows = [[None for _ in range(5)] for __ in range(5)]
    rows[0][0] = T
    with pytest.raises(InvalidGrid):
        GridMap.from_tiles(rows)


def test_from_tiles_requires_exactly_one_treasure():
    rows = make_rows(5, (0, 0))
    rows[0][0] = G
    with pytest.raises(InvalidGrid):
        GridMap.from_tiles(rows)
    rows = make_rows(5, (0, 0))
    rows[3][0] = T
    with pytest.raises(InvalidGrid):
        GridMap.from_tiles(rows)


def test_from_tiles_checks_size_range():
    with pytest.raises(InvalidSize):
        GridMap.from_tiles(make_rows(4, (0, 0)))


def test_is_valid_position():
    grid = GridMap(5)
    assert grid.is_valid_position(Position(x=3, y=2))
    assert grid.is_valid_position(Position(x=0, y=0))
    assert grid.is_valid_position(Position(x=4, y=4))
    assert not grid.is_valid_position(Position(x=-3, y=1))
    assert not grid.is_valid_position(Position(x=2, y=-1))
    assert not grid.is_valid_position(Position(x=5, y=1))
    assert not grid.is_valid_position(Position(x=1, y=5))


def test_tile_at_errors():
    with pytest.raises(NotGenerated):
        GridMap(5).tile_at(Position(x=1, y=3))
    grid = GridMap.from_tiles(make_rows(5, (0, 0)))
    with pytest.raises(OutOfBounds):
        grid.tile_at(Position(x=-2, y=5))
    with pytest.raises(IndexError):
        grid.tile_at(Position(x=5, y=0))


def test_getitem():
    grid = GridMap.from_tiles(make_rows(5, (2, 2), water=[(4, 0)]))
    assert grid[Position(x=2, y=2)] == T
    assert grid[Position(x=4, y=0)] == W
    with pytest.raises(TypeError):
        _ = grid[(1, 1)]  # type: ignore


def test_is_reachable_errors():
    grid = GridMap.from_tiles(make_rows(5, (0, 0)))
    with pytest.raises(OutOfBounds):
        grid.is_reachable(Position(x=7, y=0))
    with pytest.raises(ReachabilityNotComputed):
        grid.is_reachable(Position(x=1, y=1))
    with pytest.raises(ReachabilityNotComputed):
        _ = grid.reachable_count


def test_attach_reachability_and_phase():
    grid = GridMap.from_tiles(make_rows(5, (0, 0), water=[(4, 4)]))
    assert grid.phase == "generated"
    reachable, count = compute_reachability(grid)
    grid.attach_reachability(reachable, count)
    assert grid.phase == "playable"
    assert grid.reachable_count == 24
    assert not grid.is_reachable(Position(x=0, y=0))
    assert not grid.is_reachable(Position(x=4, y=4))
    assert grid.is_reachable(Position(x=3, y=3))
    assert len(grid.reachable_positions()) == 23
    with pytest.raises(ValueError):
        grid.attach_reachability([[True]], 1)


def test_queries_are_idempotent():
    grid = GridMap.from_tiles(make_rows(7, (3, 3), water=[(0, 0), (6, 6)]))
    first = [[grid.tile_at(Position(x=x, y=y)) for x in range(7)] for y in range(7)]
    second = [[grid.tile_at(Position(x=x, y=y)) for x in range(7)] for y in range(7)]
    assert first == second
    assert [grid.is_valid_position(Position(x=i, y=i)) for i in range(-1, 9)] == \
           [grid.is_valid_position(Position(x=i, y=i)) for i in range(-1, 9)]


def test_count_and_dump():
    grid = GridMap.from_tiles(make_rows(5, (2, 2), water=[(0, 0), (4, 4)]))
    assert grid.count(W) == 2
    assert grid.count(T) == 1
    assert grid.count(G) == 22
    assert grid.water_percentage() == pytest.approx(8.0)
    text = grid.dump()
    assert "$" in text and "~" in text
    assert len(text.splitlines()) == 6
    copied = grid.copy_as_list()
    copied[0][0] = G
    assert grid.tile_at(Position(x=0, y=0)) == W
