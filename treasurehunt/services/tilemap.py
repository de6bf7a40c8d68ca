from treasurehunt.schemas import MAX_MAP_SIZE, MIN_MAP_SIZE, MapPhase, Position, TileType
from treasurehunt.exceptions import (
    InvalidGrid,
    InvalidSize,
    NotGenerated,
    OutOfBounds,
    ReachabilityNotComputed,
)


class GridMap:
    """
    正方形のタイルマップ。タイルは [y][x] で保持する。
    生成後は不変で、到達可能テーブルだけが後から設定される。
    """
    def __init__(self, size: int):
        if not (MIN_MAP_SIZE <= size <= MAX_MAP_SIZE):
            raise InvalidSize(size)
        self.__size = size
        self.__tiles: list[list[TileType]] | None = None
        self.__treasure: Position | None = None
        self.__reachable: list[list[bool]] | None = None
        self.__reachable_count: int = 0

    @classmethod
    def from_tiles(cls, values: list[list[TileType]]) -> 'GridMap':
        """生成済みのタイル配列からマップを作る (テスト・固定マップ用)。"""
        if not isinstance(values, (list, tuple)) or len(values) == 0:
            raise InvalidGrid("tile grid must not be empty")
        if not all(isinstance(row, (list, tuple)) for row in values):
            raise InvalidGrid("tile grid must be a 2D list")
        size = len(values)
        if any(len(row) != size for row in values):
            raise InvalidGrid("tile grid rows must all have the same length as the number of rows (square)")
        treasure = None
        for y, row in enumerate(values):
            for x, cell in enumerate(row):
                if not isinstance(cell, TileType):
                    raise InvalidGrid(f"tile at ({x},{y}) is not set")
                if cell == TileType.TREASURE:
                    if treasure is not None:
                        raise InvalidGrid("tile grid must include exactly 1 treasure tile")
                    treasure = Position(x=x, y=y)
        if treasure is None:
            raise InvalidGrid("tile grid must include exactly 1 treasure tile")
        grid = cls(size)
        grid._populate([list(row) for row in values], treasure)
        return grid

    def _populate(self, tiles: list[list[TileType]], treasure: Position) -> None:
        if self.__tiles is not None:
            raise InvalidGrid("map tiles have already been generated")
        self.__tiles = tiles
        self.__treasure = treasure

    @property
    def size(self) -> int:
        return self.__size

    @property
    def treasure(self) -> Position | None:
        return self.__treasure

    @property
    def phase(self) -> MapPhase:
        if self.__tiles is None:
            return "empty"
        if self.__reachable is None:
            return "generated"
        return "playable"

    @property
    def reachable_count(self) -> int:
        if self.__reachable is None:
            raise ReachabilityNotComputed("reachability has not been computed for this map")
        return self.__reachable_count

    def is_valid_position(self, pos: Position) -> bool:
        return pos.in_bounds(self.__size, self.__size)

    def tile_at(self, pos: Position) -> TileType:
        if self.__tiles is None:
            raise NotGenerated("map tiles have not been generated yet")
        if not self.is_valid_position(pos):
            raise OutOfBounds(pos, self.__size)
        return self.__tiles[pos.y][pos.x]

    def __getitem__(self, pos: Position) -> TileType:
        if not isinstance(pos, Position):
            raise TypeError(f"GridMap indices must be Position, not {type(pos).__name__}")
        return self.tile_at(pos)

    def attach_reachability(self, reachable: list[list[bool]], count: int) -> None:
        if self.__tiles is None or self.__treasure is None:
            raise NotGenerated("map tiles have not been generated yet")
        if len(reachable) != self.__size or any(len(row) != self.__size for row in reachable):
            raise ValueError("reachability table must have the same shape as the map")
        self.__reachable = [list(row) for row in reachable]
        self.__reachable[self.__treasure.y][self.__treasure.x] = False
        self.__reachable_count = count

    def is_reachable(self, pos: Position) -> bool:
        """posから宝まで上下左右の移動で到達できるか。宝タイル自身は False。"""
        if not self.is_valid_position(pos):
            raise OutOfBounds(pos, self.__size)
        if self.__reachable is None:
            raise ReachabilityNotComputed("reachability has not been computed for this map")
        return self.__reachable[pos.y][pos.x]

    def reachable_positions(self) -> list[Position]:
        if self.__reachable is None:
            raise ReachabilityNotComputed("reachability has not been computed for this map")
        return [
            Position(x=x, y=y)
            for y, row in enumerate(self.__reachable)
            for x, ok in enumerate(row) if ok
        ]

    def is_playable(self, min_winnable_pct: int) -> bool:
        from treasurehunt.services.reachability import is_playable
        return is_playable(self.reachable_count, self.__size, min_winnable_pct)

    def count(self, kind: TileType) -> int:
        if self.__tiles is None:
            raise NotGenerated("map tiles have not been generated yet")
        return sum(1 for row in self.__tiles for cell in row if cell == kind)

    def water_percentage(self) -> float:
        return 100.0 * self.count(TileType.WATER) / (self.__size * self.__size)

    def copy_as_list(self) -> list[list[TileType]]:
        if self.__tiles is None:
            raise NotGenerated("map tiles have not been generated yet")
        return [row[:] for row in self.__tiles]

    def dump(self) -> str:
        """キャラクタベースでマップを文字列化する。
        '.' 草地、'~' 水、'$' 宝。到達不能な草地は ',' で表す。
        """
        if self.__tiles is None:
            raise NotGenerated("map tiles have not been generated yet")
        lines = ["    " + "".join(f"{x:3d}" for x in range(self.__size))]
        for y, row in enumerate(self.__tiles):
            chars = []
            for x, cell in enumerate(row):
                ch = cell.symbol
                if cell == TileType.GRASS and self.__reachable is not None and not self.__reachable[y][x]:
                    ch = ","
                chars.append(f"  {ch}")
            lines.append(f"{y:2d}: " + "".join(chars))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"GridMap(size={self.__size}, treasure={self.__treasure}, phase={self.phase!r})"
