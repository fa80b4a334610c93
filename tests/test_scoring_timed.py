import pytest

from sports_arena.errors import ScoringError
from sports_arena.scoring import BasketballEngine, FootballEngine
from sports_arena.scoring.timed import ordinal


def test_ordinals():
    assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22)] == [
        "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd",
    ]


def test_football_goals_and_cards():
    engine = FootballEngine()
    assert engine.apply("goal", "teamA") == {"goals": 1}
    assert engine.apply("card", "teamB", color="red") == {
        "card": "red",
        "cards": {"yellow": 0, "red": 1},
    }
    with pytest.raises(ScoringError):
        engine.apply("card", "teamB", color="green")
    score = engine.snapshot()
    assert score["teamA"]["goals"] == 1
    assert score["teamB"]["cards"] == {"yellow": 0, "red": 1}
    assert score["period"] == "1st Half"


def test_football_periods_and_full_time():
    engine = FootballEngine({"halfDuration": 1, "totalHalves": 2})
    assert engine.period_seconds == 60
    assert engine.set_time(30) == {"time": 30, "period": "1st Half"}

    assert engine.complete_period() is False
    assert engine.period_label() == "2nd Half"
    assert engine.time == 0

    engine.apply("goal", "teamB")
    assert engine.complete_period() is True
    assert engine.winner == "teamB"
    assert engine.reason == "Full time"
    with pytest.raises(ScoringError):
        engine.set_time(5)


def test_set_time_is_clamped_to_the_period():
    engine = FootballEngine({"halfDuration": 1})
    assert engine.set_time(500)["time"] == 60
    assert engine.set_time(-5)["time"] == 0


def test_basketball_points_and_fouls():
    engine = BasketballEngine()
    assert engine.apply("points", "teamA", points="3") == {"points": 3}
    assert engine.apply("foul", "teamB") == {"fouls": 1}
    with pytest.raises(ScoringError):
        engine.apply("points", "teamA", points=4)
    assert engine.time_payload() == {"time": 0, "quarter": 1}
    assert engine.period_label() == "Q1"


def test_basketball_level_after_last_quarter_is_a_draw():
    engine = BasketballEngine({"totalQuarters": 1})
    engine.apply("points", "teamA", points=2)
    engine.apply("points", "teamB", points=2)
    assert engine.complete_period() is True
    assert engine.winner == "draw"
    assert engine.reason == "Game completed"


def test_manual_end_goes_to_side_ahead():
    engine = FootballEngine()
    engine.apply("goal", "teamA")
    engine.apply("goal", "teamA")
    engine.apply("goal", "teamB")
    assert engine.result_for_manual_end() == ("teamA", "Match ended manually")


def test_load_keeps_period_and_time():
    engine = FootballEngine()
    engine.load({"teamA": {"goals": 2}, "half": 2, "time": 120})
    assert engine.period == 2
    assert engine.time == 120
    assert engine.snapshot()["teamA"]["cards"] == {"yellow": 0, "red": 0}
