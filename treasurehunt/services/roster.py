from dataclasses import dataclass, field
from typing import Optional

from treasurehunt.schemas import DIRECTIONS, Direction, Position
from treasurehunt.exceptions import (
    AlreadyOnTeam,
    InvalidDirection,
    MissingStartPosition,
    MissingTeam,
)


def parse_direction(value: str) -> Direction:
    """'u'/'up' などの入力を Direction に変換する (大文字小文字は無視)。"""
    if not isinstance(value, str):
        raise InvalidDirection(value)
    key = value.strip().lower()
    if key not in DIRECTIONS:
        raise InvalidDirection(value)
    return DIRECTIONS[key]


@dataclass(eq=False)
class Player:
    player_id: int
    position: Optional[Position] = None
    start_position: Optional[Position] = None
    team: Optional['Team'] = field(default=None, repr=False)

    def set_start_position(self, pos: Position) -> None:
        self.start_position = pos
        self.position = pos

    def set_team(self, team: 'Team') -> None:
        if self.team is not None and self.team is not team:
            raise AlreadyOnTeam(self.player_id)
        self.team = team

    def next_position(self, direction: str) -> Position:
        """移動先の位置を返す。盤面外かどうかは呼び出し側で判定する。"""
        if self.position is None:
            raise MissingStartPosition(self.player_id)
        return self.position.step(parse_direction(direction))

    def set_position(self, pos: Position) -> None:
        if self.start_position is None:
            raise MissingStartPosition(self.player_id)
        if self.team is None:
            raise MissingTeam(self.player_id)
        self.position = pos
        self.team.record(pos)

    def reset(self) -> None:
        """スタート地点に戻す (水に落ちたとき)"""
        if self.start_position is None:
            raise MissingStartPosition(self.player_id)
        self.set_position(self.start_position)


@dataclass(eq=False)
class Team:
    team_id: int
    players: list[Player] = field(default_factory=list, repr=False)
    # チームで共有する訪問済みタイル (挿入順, 重複なし)
    history: list[Position] = field(default_factory=list)

    @property
    def player_ids(self) -> list[int]:
        return [p.player_id for p in self.players]

    def record(self, pos: Position) -> None:
        if pos not in self.history:
            self.history.append(pos)

    def join(self, player: Player) -> None:
        if player.start_position is None:
            raise MissingStartPosition(player.player_id)
        if player.team is not None:
            raise AlreadyOnTeam(player.player_id)
        self.players.append(player)
        self.record(player.start_position)
        player.set_team(self)
