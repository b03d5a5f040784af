from conftest import signup


def _create_post(c, title="T", content="C"):
    r = c.post("/api/posts/post", json={"title": title, "content": content})
    assert r.status_code == 201, r.text
    return r.json()


def test_end_to_end_scenario(make_client):
    c = make_client()
    r = c.post("/api/auth/signup", json={"name": "A", "email": "a@x.com", "password": "pw"})
    assert r.status_code == 201
    assert "token=" in r.headers["set-cookie"]
    user_id = r.json()["user"]["user_id"]

    c2 = make_client()
    assert c2.post("/api/auth/signin", json={"email": "a@x.com", "password": "bad"}).status_code == 401
    r = c2.post("/api/auth/signin", json={"email": "a@x.com", "password": "pw"})
    assert r.status_code == 200
    assert "token=" in r.headers["set-cookie"]

    r = c2.post("/api/posts/post", json={"title": "T", "content": "C"})
    assert r.status_code == 201
    post = r.json()
    assert post["user_id"] == user_id
    assert post["title"] == "T"
    assert post["content"] == "C"

    anon = make_client()
    assert anon.get(f"/api/posts/{post['post_id']}").status_code == 401

    r = c2.delete(f"/api/posts/{post['post_id']}")
    assert r.status_code == 200
    assert r.json()["post_id"] == post["post_id"]

    assert c2.get(f"/api/posts/{post['post_id']}").status_code == 404


def test_list_posts_is_public_and_embeds_owner(alice, client):
    user, c = alice
    _create_post(c, title="first")
    _create_post(c, title="second")

    r = client.get("/api/posts")
    assert r.status_code == 200
    posts = r.json()
    assert [p["title"] for p in posts] == ["second", "first"]
    assert posts[0]["user"]["user_id"] == user["user_id"]
    assert "password_hash" not in posts[0]["user"]


def test_get_post_embeds_owner(alice):
    user, c = alice
    post = _create_post(c)
    r = c.get(f"/api/posts/{post['post_id']}")
    assert r.status_code == 200
    assert r.json()["user"]["email"] == user["email"]


def test_create_requires_login(client):
    r = client.post("/api/posts/post", json={"title": "T", "content": "C"})
    assert r.status_code == 401
    assert r.json()["error"] == "not_logged_in"


def test_create_requires_title(alice):
    _, c = alice
    r = c.post("/api/posts/post", json={"title": "  ", "content": "C"})
    assert r.status_code == 400
    assert r.json()["error"] == "title_required"


def test_content_defaults_to_empty(alice):
    _, c = alice
    r = c.post("/api/posts/post", json={"title": "only a title"})
    assert r.status_code == 201
    assert r.json()["content"] == ""


def test_update_own_post(alice):
    _, c = alice
    post = _create_post(c)
    r = c.put(f"/api/posts/{post['post_id']}", json={"content": "edited"})
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "T"
    assert body["content"] == "edited"


def test_update_needs_a_field(alice):
    _, c = alice
    post = _create_post(c)
    r = c.put(f"/api/posts/{post['post_id']}", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "nothing_to_update"


def test_auth_is_checked_before_existence(client):
    assert client.put("/api/posts/999", json={"title": "x"}).status_code == 401
    assert client.delete("/api/posts/999").status_code == 401
    assert client.get("/api/posts/999").status_code == 401


def test_missing_post_is_404(alice):
    _, c = alice
    assert c.get("/api/posts/999").status_code == 404
    assert c.put("/api/posts/999", json={"title": "x"}).status_code == 404
    r = c.delete("/api/posts/999")
    assert r.status_code == 404
    assert r.json()["error"] == "post_not_found"


def test_only_owner_can_mutate(alice, bob):
    _, alice_c = alice
    _, bob_c = bob
    post = _create_post(alice_c)

    # Reading is fine for any logged-in user.
    assert bob_c.get(f"/api/posts/{post['post_id']}").status_code == 200

    r = bob_c.put(f"/api/posts/{post['post_id']}", json={"title": "mine now"})
    assert r.status_code == 403
    assert r.json()["error"] == "not_post_owner"
    r = bob_c.delete(f"/api/posts/{post['post_id']}")
    assert r.status_code == 403

    assert alice_c.get(f"/api/posts/{post['post_id']}").json()["title"] == "T"


def test_logged_out_cookie_cannot_mutate(alice):
    _, c = alice
    post = _create_post(c)
    assert c.post("/api/auth/logout").status_code == 200
    assert c.put(f"/api/posts/{post['post_id']}", json={"title": "x"}).status_code == 401
    assert c.delete(f"/api/posts/{post['post_id']}").status_code == 401


def test_non_integer_id_is_bad_request(alice):
    _, c = alice
    r = c.get("/api/posts/abc")
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_request"


def test_token_for_deleted_user(cfg, make_client):
    from postboard.db import connect

    c = make_client()
    user = signup(c, email="gone@x.com")
    with connect(cfg.DB_DSN) as conn:
        conn.execute("DELETE FROM users WHERE user_id=?", (user["user_id"],))

    r = c.post("/api/posts/post", json={"title": "T"})
    assert r.status_code == 401
    assert r.json()["error"] == "user_not_found"


def test_out_of_range_ids_are_bad_requests(alice):
    _, c = alice
    huge = "99999999999999999999999"
    for r in (
        c.get(f"/api/posts/{huge}"),
        c.delete(f"/api/posts/{huge}"),
        c.post(f"/api/comments/{huge}", json={"comment": "hi"}),
        c.delete(f"/api/comments/{huge}"),
        c.get("/api/posts/0"),
    ):
        assert r.status_code == 400, r.text
        assert r.json()["error"] == "invalid_request"


def test_out_of_range_id_without_cookie_is_unauthorized(client):
    r = client.get("/api/posts/99999999999999999999999")
    assert r.status_code == 401
