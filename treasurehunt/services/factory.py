import random

from treasurehunt.exceptions import InvalidGrid, MapGenerationError
from treasurehunt.services.mapgen import generate_map
from treasurehunt.services.reachability import compute_reachability, min_reachable_tiles
from treasurehunt.services.tilemap import GridMap
from treasurehunt.utils.audit import _dbg


class MapFactory:
    """
    1ゲームにつき1枚だけマップを作るファクトリ。
    最初の get_or_create で遊べるマップが出るまで生成を繰り返し、
    以降は引数に関わらず同じインスタンスを返す。
    """
    def __init__(self, rng: random.Random | None = None, *, grid: GridMap | None = None, max_attempts: int = 1000,
                 min_winnable_pct: int | None = None):
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.attempts: int = 0
        self.__instance: GridMap | None = None
        self.__args: tuple[int, int, int, int] | None = None
        if grid is not None:
            self.preset(grid, min_winnable_pct)

    @property
    def instance(self) -> GridMap | None:
        return self.__instance

    def preset(self, grid: GridMap, min_winnable_pct: int | None = None) -> None:
        """
        生成済みマップを使う。到達可能性が未計算なら計算して付与する。
        宝に辿り着けるタイルが1つもないマップ、
        または min_winnable_pct を満たさないマップは InvalidGrid。
        """
        if grid.phase != "playable":
            reachable, count = compute_reachability(grid)
            grid.attach_reachability(reachable, count)
        if not grid.reachable_positions():
            raise InvalidGrid("no tile on the map can reach the treasure")
        if min_winnable_pct is not None and not grid.is_playable(min_winnable_pct):
            need = min_reachable_tiles(grid.size, min_winnable_pct)
            raise InvalidGrid(f"only {grid.reachable_count} tiles can reach the treasure, need {need}")
        self.__instance = grid

    def get_or_create(self, size: int, min_water_pct: int = 1, max_water_pct: int = 10, min_winnable_pct: int = 75) -> GridMap:
        args = (size, min_water_pct, max_water_pct, min_winnable_pct)
        if self.__instance is not None:
            if self.__args is not None and args != self.__args:
                _dbg(f"MapFactory: ignoring {args}, map already created with {self.__args}")
            return self.__instance

        need = min_reachable_tiles(size, min_winnable_pct)
        for attempt in range(1, self.max_attempts + 1):
            grid = generate_map(size, min_water_pct, max_water_pct, rng=self.rng)
            reachable, count = compute_reachability(grid)
            grid.attach_reachability(reachable, count)
            self.attempts = attempt
            if count >= need:
                _dbg(f"MapFactory: playable {size}x{size} map after {attempt} attempt(s), reachable={count}/{need}")
                self.__instance = grid
                self.__args = args
                return grid
        raise MapGenerationError(
            f"no playable {size}x{size} map after {self.max_attempts} attempts "
            f"(water {min_water_pct}-{max_water_pct}%, winnable >= {min_winnable_pct}%)"
        )

    def reset(self) -> None:
        self.__instance = None
        self.__args = None
        self.attempts = 0
