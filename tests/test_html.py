import pytest

from treasurehunt.schemas import Position, TileType
from treasurehunt.exceptions import MissingTeam
from treasurehunt.services.factory import MapFactory
from treasurehunt.services.html import CURRENT_MARK, START_MARK, render_player_map, write_player_maps
from treasurehunt.services.roster import Player
from treasurehunt.services.session import Session
from treasurehunt.services.tilemap import GridMap


def make_session(n_teams=None) -> Session:
    rows = [[TileType.GRASS for _ in range(5)] for __ in range(5)]
    rows[4][4] = TileType.TREASURE
    rows[0][3] = TileType.WATER
    sess = Session(rand_seed=3, factory=MapFactory(grid=GridMap.from_tiles(rows)), audit=False)
    sess.initialize(2, 5, n_teams)
    return sess


def cells(html: str) -> list[str]:
    return [line for line in html.splitlines() if line.startswith("<div class=") and "data-x" in line]


def test_render_covers_unvisited_tiles():
    sess = make_session()
    player = sess.players[0]
    player.set_start_position(Position(x=1, y=0))
    player.team.history.clear()
    player.team.record(Position(x=1, y=0))
    sess.apply_move(player, "r")
    html = render_player_map(player, sess.map)
    divs = cells(html)
    assert len(divs) == 25
    assert html.startswith("<!DOCTYPE html>")
    assert "grid-template-columns: repeat(5, 40px)" in html
    assert f"Map for Player #{player.player_id}</h1>" in html
    # 訪問済み: (1,0) start, (2,0) current
    assert divs[1] == f'<div class="grass" data-x="1" data-y="0">{START_MARK}</div>'
    assert divs[2] == f'<div class="grass" data-x="2" data-y="0">{CURRENT_MARK}</div>'
    assert divs[3] == '<div class="uncovered" data-x="3" data-y="0"></div>'
    assert sum(1 for d in divs if "uncovered" in d) == 23


def test_render_shows_water_after_drowning():
    sess = make_session()
    player = sess.players[0]
    player.set_start_position(Position(x=2, y=0))
    sess.apply_move(player, "r")
    sess.resolve_round()
    divs = cells(render_player_map(player, sess.map))
    assert divs[3] == '<div class="water" data-x="3" data-y="0"></div>'
    assert CURRENT_MARK in divs[2]


def test_team_title_and_shared_history():
    sess = make_session(n_teams=1)
    a, b = sess.players
    html = render_player_map(a, sess.map)
    assert f"in Team #{a.team.team_id}" in html
    # b のスタート地点も a のマップに表示される
    bx, by = b.start_position.x, b.start_position.y
    assert f'data-x="{bx}" data-y="{by}"' in html
    idx = by * 5 + bx
    if b.start_position not in (a.start_position, a.position):
        assert cells(html)[idx] == f'<div class="grass" data-x="{bx}" data-y="{by}"></div>'


def test_render_requires_team():
    sess = make_session()
    with pytest.raises(MissingTeam):
        render_player_map(Player(player_id=99, position=Position(x=0, y=0), start_position=Position(x=0, y=0)), sess.map)


def test_write_player_maps(tmp_path):
    sess = make_session()
    paths = write_player_maps(sess.players, sess.map, tmp_path)
    assert [p.name for p in paths] == [f"player_{p.player_id}_map.html" for p in sess.players]
    for path in paths:
        assert path.exists()
        assert path.stat().st_size > 0
    with pytest.raises(NotADirectoryError):
        write_player_maps(sess.players, sess.map, tmp_path / "missing")
