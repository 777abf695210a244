from __future__ import annotations

import pytest

from app import create_app
from extensions import db
from factories import PASSWORD, make_user


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SECRET_KEY": "test-key",
        "PAGE_SIZE": 20,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    return make_user()


@pytest.fixture
def auth_client(client, user):
    resp = client.post("/auth/", data={"mode": "signin", "email": user.email, "password": PASSWORD})
    assert resp.status_code == 302
    return client
