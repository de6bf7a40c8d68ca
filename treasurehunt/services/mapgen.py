import random

from treasurehunt.schemas import Position, TileType
from treasurehunt.exceptions import MapConfigError
from treasurehunt.services.reachability import min_reachable_tiles
from treasurehunt.services.tilemap import GridMap


def water_quota(size: int, water_pct: int) -> int:
    """ceil(size^2 * water_pct / 100)"""
    return -(-size * size * water_pct // 100)


def free_cells(size: int, treasure: Position) -> int:
    """宝タイルとその8近傍を除いたセル数 (水を置ける最大数)"""
    blocked = 1 + sum(1 for p in treasure.surrounding() if p.in_bounds(size, size))
    return size * size - blocked


def generate_map(size: int, min_water_pct: int, max_water_pct: int, rng: random.Random | None = None) -> GridMap:
    """
    宝を1つ、水タイルを指定割合でランダムに配置したマップを生成する。
    水は宝の8近傍には置かない。到達可能性の計算は呼び出し側で行う。
    rng: 乱数源 (テストでは seed 付きの random.Random を渡す)
    """
    if min_water_pct > max_water_pct:
        raise MapConfigError(f"min_water_pct ({min_water_pct}) exceeds max_water_pct ({max_water_pct})")
    grid = GridMap(size)
    r = rng or random.Random()

    treasure = Position(x=r.randrange(size), y=r.randrange(size))
    water_pct = r.randint(min_water_pct, max_water_pct)
    quota = water_quota(size, water_pct)
    if quota > free_cells(size, treasure):
        raise MapConfigError(
            f"cannot place {quota} water tiles ({water_pct}%) on a {size}x{size} map "
            f"with the treasure at {treasure}"
        )

    tiles: list[list[TileType | None]] = [[None for _ in range(size)] for __ in range(size)]
    tiles[treasure.y][treasure.x] = TileType.TREASURE
    near_treasure = set(treasure.surrounding())
    while quota > 0:
        x = r.randrange(size)
        y = r.randrange(size)
        if tiles[y][x] is None and Position(x=x, y=y) not in near_treasure:
            tiles[y][x] = TileType.WATER
            quota -= 1

    for row in tiles:
        for x, cell in enumerate(row):
            if cell is None:
                row[x] = TileType.GRASS

    grid._populate(tiles, treasure)  # type: ignore[arg-type]
    return grid


def map_violations(grid: GridMap, min_water_pct: int, max_water_pct: int, min_winnable_pct: int | None = None) -> list[str]:
    """
    生成ルールに反している点をメッセージのリストで返す (空なら問題なし)。
    min_winnable_pct を渡した場合は到達可能性が計算済みである必要がある。
    """
    msgs = []
    size = grid.size
    treasure = grid.treasure
    if treasure is None:
        return ["treasure tile is not set"]
    if grid.count(TileType.TREASURE) != 1:
        msgs.append("map must have exactly 1 treasure tile")
    for p in treasure.surrounding():
        if grid.is_valid_position(p) and grid.tile_at(p) == TileType.WATER:
            msgs.append(f"water tile {p} is adjacent to the treasure tile {treasure}")
    water = grid.count(TileType.WATER)
    lo, hi = water_quota(size, min_water_pct), water_quota(size, max_water_pct)
    if not (lo <= water <= hi):
        msgs.append(f"{water} water tiles, expected between {lo} and {hi}")
    if min_winnable_pct is not None:
        need = min_reachable_tiles(size, min_winnable_pct)
        if grid.reachable_count < need:
            msgs.append(f"only {grid.reachable_count} tiles can reach the treasure, need {need}")
    return msgs
