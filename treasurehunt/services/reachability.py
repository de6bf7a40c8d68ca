from typing import TYPE_CHECKING

from treasurehunt.schemas import TileType
from treasurehunt.exceptions import TreasureUnset

if TYPE_CHECKING:
    from treasurehunt.services.tilemap import GridMap


def min_reachable_tiles(size: int, min_winnable_pct: int) -> int:
    """ceil(size^2 * min_winnable_pct / 100)"""
    return -(-size * size * min_winnable_pct // 100)


def is_playable(reachable_count: int, size: int, min_winnable_pct: int) -> bool:
    return reachable_count >= min_reachable_tiles(size, min_winnable_pct)


def compute_reachability(grid: 'GridMap') -> tuple[list[list[bool]], int]:
    """
    宝タイルからスタックを使った深さ優先探索を行い、
    宝まで上下左右の移動で辿り着けるタイルを求める。
    戻り値: (到達可能テーブル [y][x], 到達可能タイル数)
    宝タイルは隣接タイルから辿り直されたときに数に含まれるが、
    テーブル上は常に False (宝の上からは開始しない)。
    """
    treasure = grid.treasure
    if treasure is None:
        raise TreasureUnset("treasure position has not been set yet")
    size = grid.size
    reachable = [[False for _ in range(size)] for __ in range(size)]
    count = 0
    stack = [treasure]
    while stack:
        pos = stack.pop()
        for np in pos.orthogonal_neighbors():
            if not grid.is_valid_position(np):
                continue
            if reachable[np.y][np.x]:
                continue
            if grid.tile_at(np) == TileType.WATER:
                continue
            reachable[np.y][np.x] = True
            count += 1
            stack.append(np)
    reachable[treasure.y][treasure.x] = False
    return reachable, count
