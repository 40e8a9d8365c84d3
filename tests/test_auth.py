"""
Tests for login, sessions and user provisioning
"""
from datetime import datetime, timedelta, timezone

import bcrypt

from conftest import PASSWORD, add_user, login
from hvacpro.auth.security import create_session, purge_expired_sessions, resolve_session, verify_password
from hvacpro.models.models import User, UserSession


class TestLogin:
    def test_owner_login_and_me(self, anon, owners):
        """owner1 / demo123 logs in and /auth/me reports the same user with a company"""
        response = anon.post("/auth/login", json={"username": "owner1", "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "owner1"
        assert "password_hash" not in body
        assert anon.cookies.get("hvacpro_sid")

        me = anon.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["id"] == body["id"]
        assert me.json()["company_id"] is not None
        assert me.json()["company_role"] == "owner"

    def test_wrong_password_and_unknown_user_look_the_same(self, anon, owners):
        bad_password = anon.post("/auth/login", json={"username": "owner1", "password": "nope"})
        unknown = anon.post("/auth/login", json={"username": "ghost", "password": "nope"})
        assert bad_password.status_code == 401
        assert unknown.status_code == 401
        assert bad_password.json() == unknown.json() == {"message": "Invalid credentials"}

    def test_inactive_user_cannot_login(self, anon, db, companies):
        add_user(db, "retired", companies[0], is_active=False)
        response = anon.post("/auth/login", json={"username": "retired", "password": PASSWORD})
        assert response.status_code == 401

    def test_missing_fields_are_reported(self, anon):
        response = anon.post("/auth/login", json={"username": ""})
        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"username", "password"}

    def test_me_requires_session(self, anon):
        assert anon.get("/auth/me").status_code == 401

    def test_logout_ends_session(self, client_a, db):
        response = client_a.post("/auth/logout")
        assert response.status_code == 204
        assert db.query(UserSession).count() == 0
        assert client_a.get("/auth/me").status_code == 401

    def test_request_id_is_echoed(self, anon):
        response = anon.get("/businesses", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestSessions:
    def test_expired_session_is_rejected_and_removed(self, db, owners):
        sid = create_session(db, owners[0])
        row = db.query(UserSession).filter(UserSession.sid == sid).one()
        row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        db.commit()

        assert resolve_session(db, sid) is None
        assert db.query(UserSession).filter(UserSession.sid == sid).first() is None

    def test_live_session_resolves_to_user(self, db, owners):
        sid = create_session(db, owners[0])
        user = resolve_session(db, sid)
        assert user is not None and user.username == "owner1"

    def test_purge_removes_only_expired(self, db, owners):
        live = create_session(db, owners[0])
        stale = create_session(db, owners[1])
        db.query(UserSession).filter(UserSession.sid == stale).update(
            {"expires_at": datetime.now(timezone.utc) - timedelta(days=1)}
        )
        db.commit()
        assert purge_expired_sessions(db) == 1
        assert [s.sid for s in db.query(UserSession).all()] == [live]

    def test_legacy_bcrypt_hash_verifies(self):
        hashed = bcrypt.hashpw(b"demo123", bcrypt.gensalt(rounds=4)).decode()
        assert verify_password("demo123", hashed)
        assert not verify_password("wrong", hashed)


class TestUserProvisioning:
    def test_owner_creates_user_in_own_company(self, client_a, db, companies):
        response = client_a.post(
            "/auth/users",
            json={"username": "dispatch1", "password": "secret1", "name": "Dee", "email": "dee@example.com", "role": "dispatcher"},
        )
        assert response.status_code == 201, response.text
        user = db.query(User).filter(User.username == "dispatch1").one()
        assert user.memberships[0].company_id == companies[0].id
        assert user.memberships[0].role == "dispatcher"

    def test_duplicate_username_conflicts(self, client_a):
        payload = {"username": "owner2", "password": "secret1", "name": "X", "email": "x@example.com"}
        assert client_a.post("/auth/users", json=payload).status_code == 409

    def test_owner_cannot_create_admin(self, client_a):
        payload = {"username": "boss", "password": "secret1", "name": "B", "email": "b@example.com", "role": "admin"}
        assert client_a.post("/auth/users", json=payload).status_code == 403

    def test_technician_cannot_create_users(self, client_factory, db, companies):
        add_user(db, "tech1", companies[0], role="technician")
        client = login(client_factory(), "tech1")
        payload = {"username": "other", "password": "secret1", "name": "O", "email": "o@example.com"}
        assert client.post("/auth/users", json=payload).status_code == 403
