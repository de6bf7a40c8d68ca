import itertools

import pytest

import treasurehunt.main as cli
from treasurehunt.schemas import TileType
from treasurehunt.services.factory import MapFactory
from treasurehunt.services.session import Session
from treasurehunt.services.tilemap import GridMap


def scripted(answers):
    it = iter(answers)

    def input_fn(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    return input_fn


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    d = tmp_path / "logs"
    monkeypatch.setenv("TREASURE_HUNT_LOG_DIR", str(d))
    return d


def test_interactive_setup_reprompts(tmp_path, log_dir, capsys):
    html_dir = tmp_path / "html"
    html_dir.mkdir()
    answers = ["abc", "9", "3", "4", "5", str(tmp_path / "nope"), str(html_dir)]
    rc = cli.main(["--seed", "1"], input_fn=scripted(answers))
    out = capsys.readouterr().out
    assert rc == 1
    assert "Welcome!" in out
    assert "'abc' is not a number." in out
    assert "between 2 and 8, got 9" in out
    assert "got 4" in out
    assert "Invalid file path specified." in out
    assert "Game aborted." in out
    # マップは最初のラウンドの前に書き出される
    assert sorted(p.name for p in html_dir.iterdir()) == ["player_1_map.html", "player_2_map.html", "player_3_map.html"]


def test_plays_until_treasure(tmp_path, log_dir, monkeypatch, capsys):
    rows = [[TileType.GRASS for _ in range(5)] for __ in range(5)]
    rows[4][4] = TileType.TREASURE

    def make_session(config=None, rand_seed=None):
        return Session(config=config, rand_seed=rand_seed, factory=MapFactory(grid=GridMap.from_tiles(rows)), audit=False)

    monkeypatch.setattr(cli, "Session", make_session)
    moves = itertools.cycle(["r", "d"])
    rc = cli.main(
        ["--players", "2", "--size", "5", "--teams", "1", "--html-dir", str(tmp_path), "--seed", "3"],
        input_fn=lambda prompt="": next(moves),
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert "Game over after" in out
    assert "Winner(s): Player #" in out
    assert (tmp_path / "player_1_map.html").exists()
    assert (tmp_path / "player_2_map.html").exists()


def test_rejects_bad_config(capsys):
    with pytest.raises(SystemExit):
        cli.main(["--min-water", "30", "--max-water", "10"], input_fn=scripted([]))


def test_unplayable_config_reports_error(tmp_path, log_dir, capsys):
    # 5x5 で水6枚なら到達可能は最大19タイル、77% は20タイル必要
    with pytest.raises(SystemExit) as exc:
        cli.main(
            ["--players", "2", "--size", "5", "--html-dir", str(tmp_path), "--seed", "0",
             "--min-water", "23", "--max-water", "23", "--min-winnable", "77"],
            input_fn=scripted([]),
        )
    assert exc.value.code == 2
    assert "no playable 5x5 map" in capsys.readouterr().err
