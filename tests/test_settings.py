import pytest

from sports_arena.errors import SettingsError, UnknownSportError
from sports_arena.settings import default_settings, parse_settings, settings_fields
from sports_arena.sports import SPORTS, get_sport, sport_icon, sport_name


def test_defaults_per_sport():
    assert default_settings("football") == {"halfDuration": 45, "totalHalves": 2}
    assert default_settings("basketball") == {"quarterDuration": 12, "totalQuarters": 4}
    assert default_settings("cricket") == {"totalOvers": 20}
    assert default_settings("volleyball") == {"totalSets": 5, "pointsPerSet": 25}
    assert default_settings("badminton") == {"totalGames": 3, "pointsPerGame": 21}
    assert default_settings("table-tennis") == {"totalGames": 5, "pointsPerGame": 11}
    assert default_settings("chess") == {"timeControl": 30, "increment": 0}


def test_every_sport_has_settings():
    for slug in SPORTS:
        assert default_settings(slug)


def test_parse_accepts_form_strings():
    settings = parse_settings("volleyball", {"totalSets": "3", "pointsPerSet": "21"})
    assert settings == {"totalSets": 3, "pointsPerSet": 21}


def test_parse_blank_keeps_default():
    assert parse_settings("cricket", {"totalOvers": ""}) == {"totalOvers": 20}


@pytest.mark.parametrize(
    "sport,raw",
    [
        ("football", {"halfDuration": "0"}),
        ("football", {"halfDuration": 91}),
        ("table-tennis", {"pointsPerGame": 10}),
        ("chess", {"increment": 61}),
        ("volleyball", {"totalSets": 8}),
    ],
)
def test_parse_rejects_out_of_range(sport, raw):
    with pytest.raises(SettingsError):
        parse_settings(sport, raw)


def test_parse_rejects_bounds_inclusive():
    assert parse_settings("badminton", {"pointsPerGame": 30})["pointsPerGame"] == 30
    assert parse_settings("badminton", {"pointsPerGame": 11})["pointsPerGame"] == 11


def test_parse_rejects_non_integers_and_unknown_keys():
    with pytest.raises(SettingsError):
        parse_settings("cricket", {"totalOvers": "lots"})
    with pytest.raises(SettingsError):
        parse_settings("cricket", {"totalOvers": True})
    with pytest.raises(SettingsError):
        parse_settings("cricket", {"pointsPerSet": 10})


def test_settings_fields_describe_the_form():
    fields = settings_fields("chess")
    assert [f["key"] for f in fields] == ["timeControl", "increment"]
    assert fields[0]["min"] == 1 and fields[0]["max"] == 180


def test_unknown_sport():
    with pytest.raises(UnknownSportError):
        get_sport("curling")
    with pytest.raises(UnknownSportError):
        default_settings("curling")


def test_sport_names_and_icons_fall_back():
    assert sport_name("table-tennis") == "Table Tennis"
    assert sport_name("curling") == "curling"
    assert sport_icon("curling") == "\U0001F3C6"


def test_side_keys():
    assert get_sport("badminton").side_keys == ("playerA", "playerB")
    assert get_sport("chess").side_keys == ("teamA", "teamB")
    assert get_sport("cricket").score_field == "cricketScore"
