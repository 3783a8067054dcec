# tests/conftest.py

from pathlib import Path

import pytest

from app import create_app
from config import TestingConfig
from extensions import db

from .helpers import bearer, register


@pytest.fixture()
def app(tmp_path: Path):
    """App on a throwaway SQLite file, one per test."""

    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'tasks.db'}"

    app = create_app(Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def token(client):
    return register(client)


@pytest.fixture()
def headers(token):
    return bearer(token)


@pytest.fixture()
def other_headers(client):
    return bearer(register(client, name="B", email="b@x.com", password="secret2"))
