import pytest

from sports_arena.errors import ApiError, ValidationError
from sports_arena.tournaments import TournamentManager, validate_tournament

FORM = {
    "name": "Summer Cup",
    "sport": "cricket",
    "format": "knockout",
    "startDate": "2026-06-01",
    "endDate": "2026-06-10",
    "venue": "Oval",
    "description": "",
}


def test_valid_form_builds_payload():
    payload = validate_tournament(FORM)
    assert payload["name"] == "Summer Cup"
    assert payload["venue"] == "Oval"
    assert "description" not in payload


@pytest.mark.parametrize(
    "changes",
    [
        {"name": " "},
        {"sport": "curling"},
        {"format": "swiss"},
        {"startDate": "June 1st"},
        {"endDate": "2026-05-30"},
    ],
)
def test_invalid_forms(changes):
    with pytest.raises(ValidationError):
        validate_tournament({**FORM, **changes})


def test_same_day_tournament_is_allowed():
    assert validate_tournament({**FORM, "endDate": "2026-06-01"})["endDate"] == "2026-06-01"


async def test_create_and_list(api, backend):
    manager = TournamentManager(api)
    await manager.create(FORM, "tok-admin")
    tournaments = await manager.list()
    assert tournaments[0]["format"] == "knockout"


async def test_backend_rejects_non_admin(api):
    manager = TournamentManager(api)
    with pytest.raises(ApiError) as excinfo:
        await manager.create(FORM, "tok-scorer")
    assert excinfo.value.status == 403
