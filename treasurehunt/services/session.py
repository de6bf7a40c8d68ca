import itertools
import random
import uuid
from typing import Callable, Optional

from treasurehunt.schemas import (
    CROWDED_MIN_MAP_SIZE,
    CROWDED_PLAYERS,
    MAX_MAP_SIZE,
    MAX_PLAYERS,
    MIN_MAP_SIZE,
    MIN_PLAYERS,
    GameConfig,
    PlayerStatus,
    Position,
    SessionState,
)
from treasurehunt.exceptions import (
    AlreadyOnTeam,
    InvalidDirection,
    InvalidMapSize,
    InvalidPlayerCount,
    InvalidTeamCount,
    MapGenerationError,
    MissingStartPosition,
    OutOfBounds,
    OutOfOrder,
    TreasureHuntError,
)
from treasurehunt.services.factory import MapFactory
from treasurehunt.services.roster import Player, Team
from treasurehunt.services.tilemap import GridMap
from treasurehunt.utils.audit import _dbg, audit_write

# (player) -> 方向の入力 (CLI などが提供するブロッキング呼び出し)
MoveReader = Callable[[Player], str]
InvalidMoveHandler = Callable[[Player, TreasureHuntError], None]


def min_map_size(n_players: int) -> int:
    return CROWDED_MIN_MAP_SIZE if n_players >= CROWDED_PLAYERS else MIN_MAP_SIZE


class Session:
    """
    1回のゲーム (プレイヤー・チーム・マップ) を保持し、
    準備の順序 (players → map → start positions → teams) と
    ラウンドの進行 (移動 → 判定) を管理する。
    """
    def __init__(self,
                 config: Optional[GameConfig] = None,
                 rand_seed: Optional[int] = None,
                 factory: Optional[MapFactory] = None,
                 session_id: Optional[str] = None,
                 audit: bool = True,
               ):
        self.session_id = session_id or str(uuid.uuid4())
        self.config = config or GameConfig()
        self.rand_seed = rand_seed
        self.rng = random.Random(rand_seed)
        self.factory = factory or MapFactory(self.rng, max_attempts=self.config.max_map_attempts)
        self.audit = audit
        self.state: SessionState = "empty"
        self.players: list[Player] = []
        self.teams: list[Team] = []
        self.map: Optional[GridMap] = None
        self.round: int = 0
        self.winners: list[int] = []
        self.drowned: list[int] = []
        self._player_ids = itertools.count(1)
        self._team_ids = itertools.count(1)

    @property
    def initialized(self) -> bool:
        return self.state == "initialized"

    def _audit(self, record: dict) -> None:
        if self.audit:
            audit_write(self.session_id, {"round": self.round, **record})

    def _require(self, state: SessionState, action: str) -> None:
        if self.state != state:
            raise OutOfOrder(f"cannot {action} in state {self.state!r} (expected {state!r})")

    # ---- setup ----

    def setup_players(self, n_players: int) -> list[Player]:
        if self.map is not None:
            raise OutOfOrder("cannot set up players after the map has been created")
        self._require("empty", "set up players")
        if not (MIN_PLAYERS <= n_players <= MAX_PLAYERS):
            raise InvalidPlayerCount(n_players)
        self.players = [Player(player_id=next(self._player_ids)) for _ in range(n_players)]
        self.state = "players_set"
        self._audit({"type": "session_setup", "players": n_players})
        return self.players

    def setup_map(self, size: int) -> GridMap:
        if not self.players:
            raise OutOfOrder("cannot set up the map before the players")
        self._require("players_set", "set up the map")
        if not (MIN_MAP_SIZE <= size <= MAX_MAP_SIZE):
            raise InvalidMapSize(size)
        if size < min_map_size(len(self.players)):
            raise InvalidMapSize(size, f"for {CROWDED_PLAYERS} to {MAX_PLAYERS} players, the minimum map size is {CROWDED_MIN_MAP_SIZE}x{CROWDED_MIN_MAP_SIZE}")
        cfg = self.config
        self.map = self.factory.get_or_create(size, cfg.min_water_pct, cfg.max_water_pct, cfg.min_winnable_pct)
        self.state = "map_set"
        self._audit({
            "type": "map_ready",
            "size": self.map.size,
            "treasure": [self.map.treasure.x, self.map.treasure.y] if self.map.treasure else None,
            "reachable": self.map.reachable_count,
            "attempts": self.factory.attempts,
            "map": [[t.value for t in row] for row in self.map.copy_as_list()],
        })
        return self.map

    def assign_start_positions(self) -> None:
        self._require("map_set", "assign start positions")
        assert self.map is not None
        candidates = self.map.reachable_positions()
        if not candidates:
            raise MapGenerationError("no tile on the map can reach the treasure")
        for player in self.players:
            player.set_start_position(self.rng.choice(candidates))
        self.state = "positions_set"
        self._audit({"type": "positions", "start": {p.player_id: [p.start_position.x, p.start_position.y] for p in self.players if p.start_position}})

    def allocate_teams(self, n_teams: Optional[int] = None) -> list[Team]:
        """
        プレイヤーをシャッフルして n_teams 個のチームに分ける。
        最後のチームが余りを引き受ける。n_teams 省略時は1人1チーム。
        """
        self._require("positions_set", "allocate teams")
        n_players = len(self.players)
        if n_teams is None:
            n_teams = n_players
        if not (1 <= n_teams <= n_players):
            raise InvalidTeamCount(n_teams, n_players)
        # 途中で失敗して一部だけチームに入った状態を残さないよう、先に全員を確認する
        for player in self.players:
            if player.team is not None:
                cause: TreasureHuntError = AlreadyOnTeam(player.player_id)
                raise OutOfOrder("invalid attempt to join a team when the player has already joined a team") from cause
            if player.start_position is None:
                cause = MissingStartPosition(player.player_id)
                raise OutOfOrder("invalid attempt to join a team when the player has no start position") from cause
        shuffled = self.players[:]
        self.rng.shuffle(shuffled)
        team_size = n_players // n_teams
        teams = []
        idx = 0
        for i in range(n_teams):
            team = Team(team_id=next(self._team_ids))
            count = team_size if i < n_teams - 1 else n_players - (n_teams - 1) * team_size
            for player in shuffled[idx:idx + count]:
                team.join(player)
            idx += count
            teams.append(team)
        self.teams = teams
        self.state = "initialized"
        self._audit({"type": "teams", "teams": {t.team_id: t.player_ids for t in teams}})
        return teams

    def initialize(self, n_players: int, map_size: int, n_teams: Optional[int] = None) -> None:
        self.setup_players(n_players)
        self.setup_map(map_size)
        self.assign_start_positions()
        self.allocate_teams(n_teams)

    # ---- play ----

    def apply_move(self, player: Player, direction: str) -> Position:
        """1手を検証して適用する。InvalidDirection / OutOfBounds は同じプレイヤーが再入力する。"""
        self._require("initialized", "move")
        assert self.map is not None
        new_pos = player.next_position(direction)
        if not self.map.is_valid_position(new_pos):
            raise OutOfBounds(new_pos, self.map.size)
        old_pos = player.position
        player.set_position(new_pos)
        self._audit({
            "type": "move", "player": player.player_id,
            "from": [old_pos.x, old_pos.y] if old_pos else None,
            "to": [new_pos.x, new_pos.y],
        })
        return new_pos

    def play_round(self, read_move: MoveReader, on_invalid: Optional[InvalidMoveHandler] = None) -> None:
        self._require("initialized", "play a round")
        self.round += 1
        for player in self.players:
            while True:
                try:
                    self.apply_move(player, read_move(player))
                    break
                except (InvalidDirection, OutOfBounds) as e:
                    _dbg(f"player #{player.player_id}: {e}")
                    if on_invalid is not None:
                        on_invalid(player, e)

    def resolve_round(self) -> list[int]:
        """
        全プレイヤーのタイルを判定する。水ならスタートに戻し、宝なら勝者に加える。
        戻り値: 勝者のプレイヤーID (ID順, いなければ空)
        """
        self._require("initialized", "resolve a round")
        assert self.map is not None
        winners: list[int] = []
        drowned: list[int] = []
        for player in sorted(self.players, key=lambda p: p.player_id):
            if player.position is None:
                raise MissingStartPosition(player.player_id)
            status = self.map.tile_at(player.position).status
            if status == PlayerStatus.DEATH:
                player.reset()
                drowned.append(player.player_id)
            elif status == PlayerStatus.WIN:
                winners.append(player.player_id)
        self.drowned = drowned
        self._audit({"type": "round", "drowned": drowned, "winners": winners})
        if winners:
            self.winners = winners
            self.state = "game_over"
            self._audit({"type": "game_over", "winners": winners})
        return winners

    def run(self, read_move: MoveReader,
            on_round: Optional[Callable[['Session'], None]] = None,
            on_invalid: Optional[InvalidMoveHandler] = None) -> list[int]:
        """勝者が出るまでラウンドを繰り返す。on_round は各ラウンドの前に呼ばれる (マップ出力など)。"""
        self._require("initialized", "start the game")
        winners: list[int] = []
        while not winners:
            if on_round is not None:
                on_round(self)
            self.play_round(read_move, on_invalid)
            winners = self.resolve_round()
        return winners

    def reset(self) -> None:
        self.state = "empty"
        self.players = []
        self.teams = []
        self.map = None
        self.round = 0
        self.winners = []
        self.drowned = []
        self.factory.reset()
