from melaka_api.models import Place
from scripts.seed_places import DEFAULT_PLACES, seed_places


def test_seed_fills_empty_table(db_session):
    inserted = seed_places(db_session)

    assert inserted == len(DEFAULT_PLACES)
    assert db_session.query(Place).count() == len(DEFAULT_PLACES)


def test_seed_skips_when_places_exist(db_session):
    seed_places(db_session)

    assert seed_places(db_session) == 0
    assert db_session.query(Place).count() == len(DEFAULT_PLACES)


def test_seed_force_appends(db_session):
    seed_places(db_session)

    assert seed_places(db_session, force=True) == len(DEFAULT_PLACES)
    assert db_session.query(Place).count() == 2 * len(DEFAULT_PLACES)
