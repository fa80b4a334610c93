import pytest

from sports_arena.errors import ScoringError
from sports_arena.scoring import (
    BadmintonEngine,
    Side,
    TableTennisEngine,
    VolleyballEngine,
    create_engine,
)


def play(engine, side, points):
    for _ in range(points):
        engine.apply("point", side)


def test_volleyball_set_needs_two_point_lead():
    engine = VolleyballEngine({"totalSets": 3})
    play(engine, "teamA", 24)
    play(engine, "teamB", 24)
    engine.apply("point", "teamA")
    assert engine.snapshot()["teamA"]["sets"] == 0

    engine.apply("point", "teamA")
    score = engine.snapshot()
    assert score["teamA"] == {"points": 0, "sets": 1}
    assert score["setScores"] == [{"teamA": 26, "teamB": 24}]
    assert score["currentSet"] == 2


def test_volleyball_deciding_set_played_to_fifteen():
    engine = VolleyballEngine({"totalSets": 3})
    play(engine, "teamA", 25)
    play(engine, "teamB", 25)
    assert engine.snapshot()["currentSet"] == 3

    play(engine, "teamA", 15)
    assert engine.finished
    assert engine.winner == "teamA"
    assert engine.reason == "Won 2-1 in sets"
    assert [s["teamA"] for s in engine.snapshot()["setScores"]] == [25, 0, 15]


def test_volleyball_rally_winner_serves():
    engine = create_engine("volleyball")
    engine.apply("point", "teamB")
    assert engine.snapshot()["serving"] == "teamB"
    engine.apply("point", "A")
    assert engine.snapshot()["serving"] == "teamA"


def test_volleyball_sets_alternate_first_server():
    engine = VolleyballEngine({"totalSets": 5})
    play(engine, "teamA", 25)
    assert engine.snapshot()["serving"] == "teamB"


def test_badminton_game_ends_at_cap():
    engine = BadmintonEngine()
    for _ in range(29):
        engine.apply("point", "playerA")
        engine.apply("point", "playerB")
    engine.apply("point", "playerA")

    score = engine.snapshot()
    assert score["playerA"]["games"] == 1
    assert score["gameScores"] == [{"playerA": 30, "playerB": 29}]
    assert score["currentGame"] == 2
    assert score["serving"] == "playerA"


def test_badminton_match_won_in_straight_games():
    engine = BadmintonEngine({"totalGames": 3})
    play(engine, "playerB", 21)
    play(engine, "playerB", 21)
    assert engine.winner == "teamB"
    assert engine.reason == "Won 2-0 in games"


def test_badminton_game_winner_serves_first_next_game():
    engine = BadmintonEngine({"totalGames": 3})
    play(engine, "playerA", 21)
    score = engine.snapshot()
    assert score["currentGame"] == 2
    assert score["serving"] == "playerA"

    play(engine, "playerB", 21)
    score = engine.snapshot()
    assert score["currentGame"] == 3
    assert score["serving"] == "playerB"


def test_table_tennis_service_every_two_points():
    engine = TableTennisEngine()
    assert engine.snapshot()["serving"] == "playerA"
    engine.apply("point", "playerA")
    assert engine.snapshot()["serving"] == "playerA"
    engine.apply("point", "playerA")
    assert engine.snapshot()["serving"] == "playerB"
    engine.apply("point", "playerB")
    engine.apply("point", "playerB")
    assert engine.snapshot()["serving"] == "playerA"


def test_table_tennis_service_every_point_at_deuce():
    engine = TableTennisEngine()
    for _ in range(10):
        engine.apply("point", "playerA")
        engine.apply("point", "playerB")
    assert engine.snapshot()["serving"] == "playerA"
    engine.apply("point", "playerA")
    assert engine.snapshot()["serving"] == "playerB"
    engine.apply("point", "playerB")
    assert engine.snapshot()["serving"] == "playerA"


def test_table_tennis_next_game_first_server_alternates():
    engine = TableTennisEngine()
    play(engine, "playerA", 11)
    score = engine.snapshot()
    assert score["currentGame"] == 2
    assert score["serving"] == "playerB"


def test_undo_restores_previous_point():
    engine = VolleyballEngine()
    engine.apply("point", "teamA")
    engine.apply("point", "teamB")
    engine.undo()
    score = engine.snapshot()
    assert score["teamA"]["points"] == 1
    assert score["teamB"]["points"] == 0
    assert score["serving"] == "teamA"


def test_undo_reopens_a_finished_match():
    engine = BadmintonEngine({"totalGames": 1})
    play(engine, "playerA", 21)
    assert engine.finished
    engine.undo()
    assert not engine.finished
    assert engine.snapshot()["playerA"]["points"] == 20


def test_point_requires_a_side():
    engine = VolleyballEngine()
    with pytest.raises(ScoringError):
        engine.apply("point")
    with pytest.raises(ScoringError):
        engine.apply("point", "teamC")
    assert not engine.can_undo


def test_no_points_after_completion():
    engine = VolleyballEngine({"totalSets": 1})
    play(engine, "teamB", 25)
    with pytest.raises(ScoringError):
        engine.apply("point", "teamA")


def test_manual_end_uses_sets_won():
    engine = VolleyballEngine()
    play(engine, "teamA", 10)
    assert engine.result_for_manual_end() == ("draw", "Match ended manually")
    play(engine, "teamA", 15)
    assert engine.result_for_manual_end() == ("teamA", "Match ended manually")


def test_load_defaults_missing_fields():
    engine = BadmintonEngine()
    engine.load({"playerB": {"points": 7}})
    score = engine.snapshot()
    assert score["playerA"] == {"points": 0, "games": 0}
    assert score["playerB"] == {"points": 7, "games": 0}
    assert score["currentGame"] == 1
    assert engine.leader() is None


def test_side_aliases():
    assert Side.parse("playerB") is Side.TEAM_B
    assert Side.parse("a") is Side.TEAM_A
    assert Side.TEAM_A.other is Side.TEAM_B
