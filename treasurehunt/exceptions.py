"""Error kinds raised by the map engine and the game session.

Each error also derives from the builtin exception that fits the situation, so
callers that only know about ValueError / IndexError / RuntimeError still work.
"""


class TreasureHuntError(Exception):
    """Base class for every game error."""


# ---- map ----

class InvalidSize(TreasureHuntError, ValueError):
    def __init__(self, size: int):
        super().__init__(f"map size must be between 5 and 50, got {size}")
        self.size = size


class InvalidGrid(TreasureHuntError, ValueError):
    pass


class OutOfBounds(TreasureHuntError, IndexError):
    def __init__(self, pos, size: int | None = None):
        msg = f"position {pos} is outside the map"
        if size is not None:
            msg += f" ({size}x{size})"
        super().__init__(msg)
        self.pos = pos


class NotGenerated(TreasureHuntError, RuntimeError):
    pass


class ReachabilityNotComputed(TreasureHuntError, RuntimeError):
    pass


class TreasureUnset(TreasureHuntError, RuntimeError):
    pass


class MapConfigError(TreasureHuntError, ValueError):
    pass


class MapGenerationError(TreasureHuntError, RuntimeError):
    pass


# ---- session ----

class InvalidPlayerCount(TreasureHuntError, ValueError):
    def __init__(self, n_players: int):
        super().__init__(f"number of players must be between 2 and 8, got {n_players}")
        self.n_players = n_players


class InvalidMapSize(TreasureHuntError, ValueError):
    def __init__(self, size: int, detail: str | None = None):
        super().__init__(detail or f"map size must be between 5 and 50, got {size}")
        self.size = size


class InvalidTeamCount(TreasureHuntError, ValueError):
    def __init__(self, n_teams: int, n_players: int):
        super().__init__(f"number of teams must be between 1 and {n_players}, got {n_teams}")
        self.n_teams = n_teams


class OutOfOrder(TreasureHuntError, RuntimeError):
    pass


class InvalidDirection(TreasureHuntError, ValueError):
    def __init__(self, value):
        super().__init__(f"invalid direction {value!r}, expected one of U(p), D(own), L(eft), R(ight)")
        self.value = value


# ---- roster ----

class MissingStartPosition(TreasureHuntError, RuntimeError):
    def __init__(self, player_id: int):
        super().__init__(f"player #{player_id} has no start position")
        self.player_id = player_id


class MissingTeam(TreasureHuntError, RuntimeError):
    def __init__(self, player_id: int):
        super().__init__(f"player #{player_id} has not joined a team")
        self.player_id = player_id


class AlreadyOnTeam(TreasureHuntError, RuntimeError):
    def __init__(self, player_id: int):
        super().__init__(f"player #{player_id} is already on a team")
        self.player_id = player_id
