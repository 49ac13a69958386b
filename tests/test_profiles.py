import pytest

from debtplanner.database import Database
from debtplanner.models import Profile
from debtplanner.profiles import ProfileError, ProfileIdentity, ProfileRepository


DEBTS = [{"id": 1, "name": "Card", "balance": "1000", "rate": "18", "minPay": ""}]


def test_missing_profile_loads_as_none(database):
    assert ProfileRepository(database).load(ProfileIdentity.anonymous("nobody")) is None


def test_save_creates_profile_with_defaults(database):
    repo = ProfileRepository(database)
    saved = repo.save(ProfileIdentity.anonymous("alice"), debts=DEBTS)

    assert saved["budget"] == "16000.00"
    assert saved["minPercent"] == "5.00"
    assert saved["debts"] == DEBTS
    assert saved["updatedAt"]


def test_save_merges_fields(database):
    repo = ProfileRepository(database)
    identity = ProfileIdentity.account("uid-123")

    repo.save(identity, budget="9000", debts=DEBTS)
    repo.save(identity, min_percent=3)

    loaded = repo.load(identity)
    assert loaded["budget"] == "9000.00"
    assert loaded["minPercent"] == "3.00"
    assert loaded["debts"] == DEBTS


def test_last_write_wins(database):
    repo = ProfileRepository(database)
    identity = ProfileIdentity.anonymous("bob")
    repo.save(identity, budget=100)
    repo.save(identity, budget=200)
    assert repo.load(identity)["budget"] == "200.00"


def test_nicknames_ignore_case_and_whitespace(database):
    repo = ProfileRepository(database)
    repo.save(ProfileIdentity.anonymous("  Alice "), budget=1234)

    assert repo.load(ProfileIdentity.anonymous("alice"))["budget"] == "1234.00"
    assert repo.load(ProfileIdentity.account("alice")) is None


def test_save_retries_when_row_appears_concurrently(database, monkeypatch):
    repo = ProfileRepository(database)
    identity = ProfileIdentity.anonymous("frank")
    repo.save(identity, budget=100)

    original_find = repo._find
    calls = []

    def stale_find(session, ident):
        calls.append(ident)
        if len(calls) == 1:
            return None
        return original_find(session, ident)

    monkeypatch.setattr(repo, "_find", stale_find)
    saved = repo.save(identity, budget=250)

    assert len(calls) == 2
    assert saved["budget"] == "250.00"
    assert repo.load(identity)["budget"] == "250.00"
    with database.session_scope() as session:
        assert session.query(Profile).filter_by(identifier="frank").count() == 1


def test_configured_defaults(database):
    repo = ProfileRepository(database, default_budget=500, default_min_percent=2)
    saved = repo.save(ProfileIdentity.anonymous("carol"))
    assert saved["budget"] == "500.00"
    assert saved["minPercent"] == "2.00"


def test_invalid_values_are_rejected(database):
    repo = ProfileRepository(database)
    identity = ProfileIdentity.anonymous("dave")
    with pytest.raises(ProfileError):
        repo.save(identity, budget="lots")
    with pytest.raises(ProfileError):
        repo.save(identity, min_percent=-1)
    with pytest.raises(ProfileError):
        repo.save(identity, debts={"id": 1})
    assert repo.load(identity) is None


def test_identity_validation():
    with pytest.raises(ProfileError):
        ProfileIdentity.anonymous("   ")
    with pytest.raises(ProfileError):
        ProfileIdentity.account("")
    with pytest.raises(ProfileError):
        ProfileIdentity.parse("guest", "x")
    assert ProfileIdentity.parse("anonymous", "Eve") == ProfileIdentity("anonymous", "eve")


def test_database_requires_connect():
    db = Database("sqlite://")
    assert not db.connected
    with pytest.raises(RuntimeError):
        with db.session_scope():
            pass

    db.connect()
    assert db.connected
    db.disconnect()
    assert not db.connected
    with pytest.raises(RuntimeError):
        db.get_engine()
