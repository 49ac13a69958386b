import pytest

from debtplanner import create_app
from debtplanner.database import Database


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.connect()
    yield db
    db.disconnect()


@pytest.fixture
def app(database):
    return create_app({"TESTING": True, "LOG_LEVEL": "WARNING"}, database=database)


@pytest.fixture
def client(app):
    return app.test_client()
