from postboard.auth.crud import get_user_by_email
from postboard.db import connect

from conftest import signup


def test_signup_sets_cookie_and_hides_hash(client):
    r = client.post("/api/auth/signup", json={"name": "A", "email": "a@x.com", "password": "pw"})
    assert r.status_code == 201
    assert "token=" in r.headers["set-cookie"]
    user = r.json()["user"]
    assert user["email"] == "a@x.com"
    assert user["name"] == "A"
    assert "password_hash" not in user
    assert isinstance(user["user_id"], int)


def test_signup_then_signin(make_client):
    signup(make_client(), email="a@x.com", password="pw")
    r = make_client().post("/api/auth/signin", json={"email": "a@x.com", "password": "pw"})
    assert r.status_code == 200
    assert "token=" in r.headers["set-cookie"]
    assert "password_hash" not in r.json()["user"]


def test_duplicate_signup_rejected_without_creating_user(cfg, make_client):
    signup(make_client(), email="a@x.com")
    r = make_client().post("/api/auth/signup", json={"name": "B", "email": "A@X.com ", "password": "other"})
    assert r.status_code == 400
    assert r.json() == {"error": "user_exists"}
    assert "set-cookie" not in r.headers

    with connect(cfg.DB_DSN) as conn:
        n = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"]
    assert n == 1


def test_signup_missing_fields(client):
    r = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "pw"})
    assert r.status_code == 400
    assert r.json()["error"] == "missing_fields"


def test_email_is_normalized(cfg, make_client):
    signup(make_client(), email="  Mixed@Case.COM ")
    with connect(cfg.DB_DSN) as conn:
        assert get_user_by_email(conn, "mixed@case.com") is not None
    r = make_client().post("/api/auth/signin", json={"email": "MIXED@case.com", "password": "pw"})
    assert r.status_code == 200


def test_password_stored_hashed(cfg, client):
    signup(client, email="a@x.com", password="pw")
    with connect(cfg.DB_DSN) as conn:
        row = get_user_by_email(conn, "a@x.com")
    assert row["password_hash"] != "pw"


def test_wrong_password_and_unknown_email_look_the_same(make_client):
    signup(make_client(), email="a@x.com", password="pw")
    wrong = make_client().post("/api/auth/signin", json={"email": "a@x.com", "password": "nope"})
    unknown = make_client().post("/api/auth/signin", json={"email": "ghost@x.com", "password": "nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"error": "invalid_credentials"}
    assert "set-cookie" not in wrong.headers


def test_signin_requires_both_fields(client):
    assert client.post("/api/auth/signin", json={"email": "a@x.com"}).status_code == 400
    r = client.post("/api/auth/signin", json={"email": "", "password": "pw"})
    assert r.status_code == 400
    assert r.json()["error"] == "missing_credentials"


def test_signin_rejected_while_logged_in(alice):
    _, c = alice
    r = c.post("/api/auth/signin", json={"email": "alice@example.com", "password": "alice-pw"})
    assert r.status_code == 400
    assert r.json()["error"] == "already_logged_in"


def test_signin_updates_last_login(cfg, make_client):
    signup(make_client(), email="a@x.com", password="pw")
    make_client().post("/api/auth/signin", json={"email": "a@x.com", "password": "pw"})
    with connect(cfg.DB_DSN) as conn:
        assert get_user_by_email(conn, "a@x.com")["last_login_at"] is not None


def test_logout_requires_cookie(client):
    r = client.post("/api/auth/logout")
    assert r.status_code == 400
    assert r.json()["error"] == "not_logged_in"


def test_logout_clears_cookie(alice):
    _, c = alice
    r = c.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out"}
    header = r.headers["set-cookie"]
    assert header.startswith('token=""') or header.startswith("token=;")
    assert "httponly" in header.lower()
    assert "path=/" in header.lower()

    # Cleared cookie no longer authenticates, and a second logout is rejected.
    assert c.get("/api/auth/me").status_code == 401
    assert c.post("/api/auth/logout").status_code == 400


def test_signin_allowed_after_logout(alice):
    _, c = alice
    c.post("/api/auth/logout")
    r = c.post("/api/auth/signin", json={"email": "alice@example.com", "password": "alice-pw"})
    assert r.status_code == 200


def test_me(alice, client):
    user, c = alice
    r = c.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["user"]["user_id"] == user["user_id"]
    assert "password_hash" not in r.json()["user"]

    assert client.get("/api/auth/me").status_code == 401


def test_forged_cookie_is_rejected(make_client):
    r = make_client().get("/api/auth/me", headers={"Cookie": "token=not.a.jwt"})
    assert r.status_code == 401
    assert r.json()["error"] == "token_invalid"


def test_unknown_email_still_spends_a_hash(make_client, monkeypatch):
    from postboard.auth import crud

    calls = []
    monkeypatch.setattr(crud, "dummy_verify", lambda: calls.append(1))
    r = make_client().post("/api/auth/signin", json={"email": "ghost@x.com", "password": "nope"})
    assert r.status_code == 401
    assert calls == [1]


def test_expired_cookie_is_unauthorized(alice, make_client):
    from datetime import timedelta

    from conftest import TEST_SECRET
    from postboard.auth.tokens import issue
    from postboard.util.time import utcnow

    user, c = alice
    post = c.post("/api/posts/post", json={"title": "T"}).json()

    expired = issue(
        {"sub": str(user["user_id"]), "email": user["email"]},
        TEST_SECRET,
        timedelta(hours=8),
        now=utcnow() - timedelta(hours=9),
    )
    stale = make_client()
    headers = {"Cookie": f"token={expired}"}

    r = stale.get("/api/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "token_expired"}
    r = stale.delete(f"/api/posts/{post['post_id']}", headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "token_expired"}
