# tests/test_auth_api.py

import pytest

from extensions import db
from models import User

from .helpers import bearer, register


def test_register_returns_token_and_public_user(client):
    resp = client.post("/api/auth/register", json={"name": "A", "email": "a@x.com", "password": "secret1"})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["token"]
    assert body["expiresIn"] == 3600
    assert body["user"]["name"] == "A"
    assert body["user"]["email"] == "a@x.com"
    assert set(body["user"]) == {"id", "name", "email"}


def test_password_is_stored_hashed(app, client):
    register(client)
    with app.app_context():
        user = User.query.filter_by(email="a@x.com").one()
        assert user.password != "secret1"
        assert user.password.startswith("$2")


def test_duplicate_email_is_rejected_without_new_record(app, client):
    register(client)
    resp = client.post("/api/auth/register", json={"name": "Other", "email": "a@x.com", "password": "another1"})

    assert resp.status_code == 409
    assert resp.get_json() == {"message": "Email already registered"}
    with app.app_context():
        assert User.query.count() == 1


def test_email_match_is_case_sensitive(client):
    register(client, email="a@x.com")
    register(client, email="A@x.com")


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"name": "", "email": "a@x.com", "password": "secret1"}, "name"),
        ({"name": "   ", "email": "a@x.com", "password": "secret1"}, "name"),
        ({"name": "A", "email": "not-an-email", "password": "secret1"}, "email"),
        ({"name": "A", "email": "a@x.com", "password": "12345"}, "password"),
        ({"email": "a@x.com", "password": "secret1"}, "name"),
    ],
)
def test_register_validation(client, payload, field):
    resp = client.post("/api/auth/register", json=payload)

    assert resp.status_code == 400
    errors = resp.get_json()["errors"]
    assert [e["field"] for e in errors] == [field]
    assert all(set(e) == {"field", "message"} for e in errors)


def test_register_reports_every_bad_field(client):
    resp = client.post("/api/auth/register", json={"name": "", "email": "nope", "password": "1"})

    assert resp.status_code == 400
    assert {e["field"] for e in resp.get_json()["errors"]} == {"name", "email", "password"}


def test_non_json_body_is_a_validation_error(client):
    resp = client.post("/api/auth/register", data="name=A", content_type="application/x-www-form-urlencoded")

    assert resp.status_code == 400
    assert resp.get_json()["errors"][0]["field"] == "body"


def test_login_returns_token(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["token"]
    assert body["user"]["email"] == "a@x.com"


def test_wrong_password_and_unknown_email_look_the_same(client):
    register(client)
    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong-one"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json() == {"message": "Invalid credentials"}


def test_login_requires_password(client):
    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": ""})

    assert resp.status_code == 400
    assert resp.get_json()["errors"] == [{"field": "password", "message": "password is required"}]


def test_me_returns_resolved_identity(client, token):
    resp = client.get("/api/me", headers=bearer(token))

    assert resp.status_code == 200
    me = resp.get_json()["me"]
    assert me["email"] == "a@x.com"
    assert "password" not in me


def test_me_without_token(client):
    resp = client.get("/api/me")

    assert resp.status_code == 401
    assert "message" in resp.get_json()


@pytest.mark.parametrize("header", ["Bearer garbage", "Bearer ", "Basic dXNlcjpwYXNz", "garbage"])
def test_me_with_malformed_credentials(client, header):
    resp = client.get("/api/me", headers={"Authorization": header})

    assert resp.status_code == 401


def test_tampered_token_is_rejected(client, token):
    resp = client.get("/api/me", headers=bearer(token[:-2] + "xx"))

    assert resp.status_code == 401


def test_expired_and_forged_tokens_get_the_same_answer(app, client, token):
    forged = client.get("/api/me", headers=bearer(token + "x"))
    app.config["TOKEN_MAX_AGE"] = -1
    expired = client.get("/api/me", headers=bearer(token))

    assert expired.status_code == forged.status_code == 401
    assert expired.get_json() == forged.get_json()


def test_token_from_another_secret_is_rejected(app, client, token):
    app.config["SECRET_KEY"] = "rotated"

    assert client.get("/api/me", headers=bearer(token)).status_code == 401


def test_token_for_removed_user_is_rejected(app, client, token):
    with app.app_context():
        db.session.delete(User.query.one())
        db.session.commit()

    assert client.get("/api/me", headers=bearer(token)).status_code == 401


@pytest.mark.parametrize("email", ["a@x.com\n", " a@x.com", "a@x.com "])
def test_register_rejects_email_with_surrounding_whitespace(app, client, email):
    resp = client.post("/api/auth/register", json={"name": "A", "email": email, "password": "secret1"})

    assert resp.status_code == 400
    assert resp.get_json()["errors"] == [{"field": "email", "message": "valid email is required"}]
    with app.app_context():
        assert User.query.count() == 0
