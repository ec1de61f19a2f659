from collections import Counter

import pytest

from quakelog.parser import Game, Player, parse_lines, parse_log_file

INIT = "  0:00 InitGame: \\sv_floodProtect\\1\\sv_maxPing\\0"
SHUTDOWN = " 20:37 ShutdownGame:"
WORLD_KILL = " 20:54 Kill: 1022 2 22: <world> killed Isgalamido by MOD_TRIGGER_HURT"


def kill(killer, victim, means):
    return f"  1:00 Kill: 2 3 7: {killer} killed {victim} by {means}"


def test_each_init_game_starts_a_numbered_game():
    lines = [INIT, SHUTDOWN, INIT, SHUTDOWN, INIT, SHUTDOWN]
    games = parse_lines(lines)
    assert sorted(games) == [1, 2, 3]
    assert all(game.id == game_id for game_id, game in games.items())


def test_lines_outside_a_game_are_ignored():
    lines = [WORLD_KILL, INIT, SHUTDOWN, kill("Zeh", "Dono", "MOD_ROCKET")]
    games = parse_lines(lines)
    assert games == {1: Game(1)}


def test_world_kill_penalizes_victim():
    game = parse_lines([INIT, WORLD_KILL])[1]
    assert game.kills_by_player == {"Isgalamido": -1}
    assert game.players == {"Isgalamido": Player("Isgalamido")}
    assert "<world>" not in game.kills_by_player
    assert game.kills_by_means == {"MOD_TRIGGER_HURT": 1}


def test_mutual_kills_balance_out():
    lines = [INIT, kill("Zeh", "Dono", "MOD_ROCKET"), kill("Dono", "Zeh", "MOD_RAILGUN")]
    game = parse_lines(lines)[1]
    assert game.kills_by_player["Zeh"] == game.kills_by_player["Dono"]
    assert set(game.players) == {"Zeh", "Dono"}


def test_suicide_costs_a_point():
    before = parse_lines([INIT, kill("Zeh", "Dono", "MOD_ROCKET")])[1]
    after = parse_lines(
        [INIT, kill("Zeh", "Dono", "MOD_ROCKET"), kill("Zeh", "Zeh", "MOD_ROCKET_SPLASH")]
    )[1]
    assert after.kills_by_player["Zeh"] == before.kills_by_player["Zeh"] - 1
    assert after.kills_by_player["Dono"] == before.kills_by_player["Dono"]
    assert after.total_kills == before.total_kills + 1


def test_total_kills_and_means_count_every_kill_line():
    kills = [
        ("Zeh", "Dono", "MOD_ROCKET"),
        ("<world>", "Zeh", "MOD_FALLING"),
        ("Dono", "Dono", "MOD_ROCKET"),
        ("Isgalamido", "Zeh", "MOD_RAILGUN"),
    ]
    game = parse_lines([INIT, *(kill(*k) for k in kills), SHUTDOWN])[1]
    assert game.total_kills == len(kills)
    assert game.kills_by_means == dict(Counter(k[2] for k in kills))
    assert sum(game.kills_by_means.values()) == game.total_kills


def test_world_killing_world_changes_no_score():
    game = parse_lines([INIT, kill("<world>", "<world>", "MOD_FALLING")])[1]
    assert game.kills_by_player == {}
    assert game.total_kills == 1


def test_userinfo_with_double_backslash_registers_client():
    line = " 20:34 ClientUserinfoChanged: 2 n\\Isgalamido\\\\t\\0\\model\\uriel/zael"
    game = parse_lines([INIT, line])[1]
    assert game.client_names == {"2": "Isgalamido"}
    assert game.kills_by_player == {"Isgalamido": 0}
    assert game.players == {"Isgalamido": Player("Isgalamido")}


def test_userinfo_with_single_backslash_is_not_recognised():
    line = " 20:34 ClientUserinfoChanged: 2 n\\Isgalamido\\t\\0\\model\\uriel/zael"
    game = parse_lines([INIT, line])[1]
    assert game == Game(1)


def test_userinfo_player_name_marker_variant():
    line = " 1:00 ClientUserinfoChanged: 3 n\\Alias\\ playerNameIsHere>Mal<\\x{005ct(7)"
    game = parse_lines([INIT, line])[1]
    assert game.client_names == {"3": "Mal"}
    assert "Alias" not in game.players


def test_userinfo_name_is_trimmed():
    line = " 1:00 ClientUserinfoChanged: 4 n\\ Dono \\\\t\\0"
    game = parse_lines([INIT, line])[1]
    assert game.client_names == {"4": "Dono"}
    assert list(game.players) == ["Dono"]


def test_userinfo_does_not_reset_existing_score():
    line = " 1:00 ClientUserinfoChanged: 2 n\\Isgalamido\\\\t\\0"
    with_info = parse_lines([INIT, WORLD_KILL, line])[1]
    without_info = parse_lines([INIT, WORLD_KILL])[1]
    assert with_info.kills_by_player == without_info.kills_by_player


def test_init_game_while_game_open_starts_new_game():
    lines = [INIT, kill("Zeh", "Dono", "MOD_ROCKET"), INIT, WORLD_KILL]
    games = parse_lines(lines)
    assert set(games[1].players) == {"Zeh", "Dono"}
    assert set(games[2].players) == {"Isgalamido"}


def test_parse_log_file_matches_parse_lines(tmp_path):
    lines = [INIT, kill("Zeh", "Dono", "MOD_ROCKET"), "", WORLD_KILL, SHUTDOWN]
    path = tmp_path / "games.log"
    path.write_bytes("\r\n".join(lines).encode("utf-8"))
    assert parse_log_file(path) == parse_lines(lines)
    assert parse_log_file(str(path)) == parse_lines(lines)


def test_parse_log_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_log_file(tmp_path / "absent.log")