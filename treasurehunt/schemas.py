from enum import Enum
from typing import Literal
from pydantic import BaseModel, Field, model_validator

MIN_MAP_SIZE = 5
MAX_MAP_SIZE = 50
MIN_PLAYERS = 2
MAX_PLAYERS = 8
# 5人以上の場合のマップ最小サイズ
CROWDED_PLAYERS = 5
CROWDED_MIN_MAP_SIZE = 8

MAX_WATER_PCT = 64
MIN_WINNABLE_PCT = 12

Direction = Literal["up", "down", "left", "right"]
SessionState = Literal["empty", "players_set", "map_set", "positions_set", "initialized", "game_over"]
MapPhase = Literal["empty", "generated", "playable"]

DIRECTIONS: dict[str, Direction] = {
    "u": "up", "up": "up",
    "d": "down", "down": "down",
    "l": "left", "left": "left",
    "r": "right", "right": "right",
}

DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    "up": (0, -1),
    "down": (0, +1),
    "left": (-1, 0),
    "right": (+1, 0),
}


class Position(BaseModel, frozen=True):

    x: int
    y: int

    def __le__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return (self.x, self.y) <= (other.x, other.y)

    def __gt__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return (self.x, self.y) > (other.x, other.y)

    def __ge__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return (self.x, self.y) >= (other.x, other.y)

    def __lt__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return (self.x, self.y) < (other.x, other.y)

    def __hash__(self):
        return hash((self.x, self.y))

    def __eq__(self, other):
        if isinstance(other, Position):
            return self.x == other.x and self.y == other.y
        return False

    def __str__(self) -> str:
        return f"({self.x},{self.y})"

    @staticmethod
    def new(p1: 'int|tuple[int,int]|Position', p2: int|None = None) -> 'Position':
        if isinstance(p1, Position):
            return Position(x=p1.x, y=p1.y)
        elif isinstance(p1, (tuple, list)) and len(p1) == 2:
            return Position(x=p1[0], y=p1[1])
        elif isinstance(p1, int) and isinstance(p2, int):
            return Position(x=p1, y=p2)
        else:
            raise TypeError(f"invalid parameters to Position.new {p1}, {p2}")

    def in_bounds(self, w: int, h: int) -> bool:
        return 0 <= self.x < w and 0 <= self.y < h

    def offset(self, dx: int, dy: int) -> 'Position':
        return Position(x=self.x + dx, y=self.y + dy)

    def step(self, direction: Direction) -> 'Position':
        """directionへ1マス移動した位置。盤面の範囲チェックはしない。"""
        dx, dy = DIRECTION_DELTAS[direction]
        return self.offset(dx, dy)

    def orthogonal_neighbors(self):
        for dx, dy in DIRECTION_DELTAS.values():
            yield self.offset(dx, dy)

    def surrounding(self):
        """8近傍 (自分自身は含まない)"""
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                yield self.offset(dx, dy)


class PlayerStatus(str, Enum):
    """Outcome for a player standing on a tile at the end of a round."""
    NORMAL = "normal"
    DEATH = "death"
    WIN = "win"


class TileType(str, Enum):
    GRASS = "grass"
    WATER = "water"
    TREASURE = "treasure"

    @property
    def status(self) -> PlayerStatus:
        return _TILE_STATUS[self]

    @property
    def symbol(self) -> str:
        return _TILE_SYMBOL[self]

    @property
    def color(self) -> str:
        return _TILE_COLOR[self]


_TILE_STATUS: dict[TileType, PlayerStatus] = {
    TileType.GRASS: PlayerStatus.NORMAL,
    TileType.WATER: PlayerStatus.DEATH,
    TileType.TREASURE: PlayerStatus.WIN,
}

_TILE_SYMBOL: dict[TileType, str] = {
    TileType.GRASS: ".",
    TileType.WATER: "~",
    TileType.TREASURE: "$",
}

_TILE_COLOR: dict[TileType, str] = {
    TileType.GRASS: "rgba(40, 180, 99, 0.8)",
    TileType.WATER: "rgba(52, 152, 219, 0.8)",
    TileType.TREASURE: "rgba(241, 196, 15, 0.8)",
}


def outcome_of(kind: TileType) -> PlayerStatus:
    return _TILE_STATUS[kind]


class GameConfig(BaseModel):
    """Map generation parameters. Percentages are integers of the total tile count."""
    min_water_pct: int = Field(default=1, ge=0, le=MAX_WATER_PCT)
    max_water_pct: int = Field(default=10, ge=0, le=MAX_WATER_PCT)
    min_winnable_pct: int = Field(default=75, ge=MIN_WINNABLE_PCT, le=100)
    max_map_attempts: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def _check_ranges(self) -> 'GameConfig':
        if self.min_water_pct > self.max_water_pct:
            raise ValueError("min_water_pct must not exceed max_water_pct")
        # 水タイルと到達可能タイルは重ならない
        if self.min_water_pct + self.min_winnable_pct > 100:
            raise ValueError("min_water_pct + min_winnable_pct must not exceed 100")
        return self
