from pathlib import Path

from treasurehunt.schemas import Position, TileType
from treasurehunt.exceptions import MissingStartPosition, MissingTeam
from treasurehunt.services.roster import Player
from treasurehunt.services.tilemap import GridMap

START_MARK = "&#x26E9;"     # torii gate
CURRENT_MARK = "&#x1F31E;"  # sun


def _head(size: int, cell_px: int) -> str:
    parts = [
        "<head>",
        '<meta charset="utf-8">',
        "<style>",
        f".grid-container {{display: grid; grid-template-columns: repeat({size}, {cell_px}px); "
        f"grid-template-rows: repeat({size}, {cell_px}px); padding: 10px;}}",
        ".uncovered {background-color: rgba(150, 150, 150, 0.8); border: 1px solid rgba(0, 0, 0, 0.8);}",
    ]
    for tile in TileType:
        parts.append(f".{tile.value} {{background-color: {tile.color}; border: 1px solid rgba(0, 0, 0, 0.8); text-align: center;}}")
    parts.append("</style>")
    parts.append("</head>")
    return "\n".join(parts)


def render_player_map(player: Player, grid: GridMap, *, cell_px: int = 40) -> str:
    """
    プレイヤー用のHTMLマップを文字列で返す。
    チームが訪れたタイルだけ種類を表示し、それ以外は伏せる。
    スタート地点に鳥居、現在地に太陽を表示する。
    """
    if player.team is None:
        raise MissingTeam(player.player_id)
    if player.start_position is None or player.position is None:
        raise MissingStartPosition(player.player_id)
    size = grid.size
    visited = set(player.team.history)

    if len(player.team.players) == 1:
        title = f"Map for Player #{player.player_id}"
    else:
        title = f"Map for Player #{player.player_id} in Team #{player.team.team_id}"

    parts = ["<!DOCTYPE html>", "<html>", _head(size, cell_px), "<body>", f"<h1>{title}</h1>", '<div class="grid-container">']
    for y in range(size):
        for x in range(size):
            p = Position(x=x, y=y)
            cls = "uncovered"
            mark = ""
            if p in visited or p == player.position or p == player.start_position:
                cls = grid.tile_at(p).value
            if p == player.position:
                mark = CURRENT_MARK
            elif p == player.start_position:
                mark = START_MARK
            parts.append(f'<div class="{cls}" data-x="{x}" data-y="{y}">{mark}</div>')
    parts.append("</div>")
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts)


def write_player_maps(players: list[Player], grid: GridMap, directory: str | Path) -> list[Path]:
    """各プレイヤーの player_<id>_map.html を directory に書き出す。"""
    out_dir = Path(directory)
    if not out_dir.is_dir():
        raise NotADirectoryError(f"HTML output directory does not exist: {out_dir}")
    written = []
    for player in players:
        path = out_dir / f"player_{player.player_id}_map.html"
        path.write_text(render_player_map(player, grid), encoding="utf-8")
        written.append(path)
    return written
