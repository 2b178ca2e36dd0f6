"""
Authentication and session tests.

Verifies:
- Login by username or email, inactive profiles rejected
- Logout revokes the token
- Idle and absolute timeouts
- Password strength rules
"""

from datetime import timedelta

import pytest

from dealerops.models import SessionToken
from dealerops.services import session_service
from dealerops.services.auth_service import PasswordValidationError, validate_password_strength
from dealerops.time_utils import utcnow


PASSWORD = "Password123!"


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def _session_for(db_session, token):
    db_session.expire_all()
    return db_session.query(SessionToken).filter_by(token_hash=session_service.hash_token(token)).one()


class TestLogin:

    def test_login_with_username(self, client, seed):
        resp = client.post("/api/auth/login", json={"username": "seller", "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["message"] == "Login successful"
        assert len(body["token"]) == 64
        assert body["is_admin"] is False
        assert body["permissions"]["inventory"]["view"] is True
        assert body["permissions"]["accounting"]["expenses_section"] is False
        assert body["user"]["role_data"]["name"] == "Seller"
        assert "password_hash" not in body["user"]

    def test_login_with_email(self, client, seed):
        resp = client.post("/api/auth/login", json={"email": "Admin@DealerOps.test", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.get_json()["is_admin"] is True

    @pytest.mark.parametrize(
        "payload,status",
        [
            ({"username": "seller"}, 400),
            ({"password": PASSWORD}, 400),
            ({"username": "seller", "password": "Wrong123!"}, 401),
            ({"username": "nobody", "password": PASSWORD}, 401),
        ],
    )
    def test_bad_credentials(self, client, seed, payload, status):
        assert client.post("/api/auth/login", json=payload).status_code == status

    def test_inactive_profile_cannot_login(self, client, seed, db_session):
        seed["seller"].status = "inactive"
        db_session.commit()
        resp = client.post("/api/auth/login", json={"username": "seller", "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"


class TestSession:

    def test_me(self, client, seller_headers):
        body = client.get("/api/auth/me", headers=seller_headers).get_json()
        assert body["user"]["username"] == "seller"
        assert body["impersonation"] == {"isImpersonating": False}

    def test_validate(self, client, seller_headers):
        body = client.post("/api/auth/validate", headers=seller_headers).get_json()
        assert body["valid"] is True
        assert "role_data" not in body["user"]

    def test_logout_revokes_token(self, client, seller_headers):
        assert client.post("/api/auth/logout", headers=seller_headers).status_code == 200
        assert client.get("/api/auth/me", headers=seller_headers).status_code == 401

    def test_idle_timeout(self, client, login, db_session):
        token = login("seller")
        session = _session_for(db_session, token)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert _session_for(db_session, token).revoked_reason == "Idle timeout"

    def test_absolute_timeout(self, client, login, db_session):
        token = login("seller")
        session = _session_for(db_session, token)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_deactivated_profile_loses_session(self, client, seed, login, db_session):
        token = login("seller")
        seed["seller"].status = "inactive"
        db_session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert _session_for(db_session, token).is_revoked is True

    def test_tokens_stored_hashed(self, login, db_session):
        token = login("seller")
        stored = _session_for(db_session, token)
        assert stored.token_hash != token
        assert len(stored.token_hash) == 64

    def test_cleanup_removes_old_revoked_sessions(self, client, login, db_session):
        old = login("seller")
        fresh = login("seller")
        session = _session_for(db_session, old)
        session.is_revoked = True
        session.created_at = utcnow() - timedelta(days=45)
        db_session.commit()

        assert session_service.cleanup_expired_sessions(older_than_days=30) == 1
        assert client.get("/api/auth/me", headers=auth_headers(fresh)).status_code == 200


class TestPasswordStrength:

    @pytest.mark.parametrize(
        "password,message",
        [
            ("Sh0rt!", "at least 8 characters"),
            ("lowercase123!", "uppercase"),
            ("UPPERCASE123!", "lowercase"),
            ("NoDigitsHere!", "digit"),
            ("NoSpecial123", "special character"),
        ],
    )
    def test_rejects_weak(self, password, message):
        with pytest.raises(PasswordValidationError, match=message):
            validate_password_strength(password)

    def test_accepts_strong(self):
        validate_password_strength(PASSWORD)
