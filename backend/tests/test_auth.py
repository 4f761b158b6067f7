# Overview: Pytest coverage for login, registration, password change and token handling.

from datetime import timedelta

import pytest

from stockpro.models import Company, User
from stockpro.services.auth_service import password_strength_errors
from stockpro.services.token_service import decode_token
from stockpro.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token


class TestPasswordStrength:
    def test_strong_password(self):
        assert password_strength_errors("Password123!") == []

    def test_all_failures_reported(self):
        errors = password_strength_errors("abc")

        assert len(errors) == 4
        assert any("8 characters" in e for e in errors)
        assert any("uppercase" in e for e in errors)
        assert any("digit" in e for e in errors)
        assert any("special" in e for e in errors)


class TestLogin:
    def test_login_returns_token_and_cookie(self, client, user_a):
        resp = client.post("/api/auth/login", json={"email": user_a.email, "password": PASSWORD})

        assert resp.status_code == 200
        token = resp.json["token"]
        claims = decode_token(token)
        assert claims["sub"] == str(user_a.id)
        assert claims["company_id"] == user_a.company_id
        assert claims["role"] == "ADMIN"
        assert claims["company_status"] == "ACTIVE"
        cookie = resp.headers.get("Set-Cookie")
        assert cookie.startswith("auth-token=")
        assert "HttpOnly" in cookie

    def test_token_expires_in_seven_days(self, client, user_a):
        token = get_auth_token(client, user_a.email, PASSWORD)
        claims = decode_token(token)

        assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60

    def test_wrong_password(self, client, user_a):
        resp = client.post("/api/auth/login", json={"email": user_a.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_unknown_user(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "a@b.com"}).status_code == 400

    @pytest.mark.parametrize("status", ["SUSPENDED", "INACTIVE"])
    def test_blocked_company(self, client, db_session, company_a, user_a, status):
        company_a.status = status
        db_session.commit()

        resp = client.post("/api/auth/login", json={"email": user_a.email, "password": PASSWORD})

        assert resp.status_code == 403

    def test_suspension_applies_to_existing_token(self, client, db_session, company_a, headers_a):
        company_a.status = "SUSPENDED"
        db_session.commit()

        assert client.get("/api/auth/me", headers=headers_a).status_code == 403

    def test_cookie_authenticates(self, client, user_a):
        client.post("/api/auth/login", json={"email": user_a.email, "password": PASSWORD})

        resp = client.get("/api/auth/me")

        assert resp.status_code == 200
        assert resp.json["user"]["email"] == user_a.email

    def test_invalid_token(self, client, db_session):
        assert client.get("/api/auth/me", headers=auth_headers("garbage")).status_code == 401
        assert client.get("/api/auth/me").status_code == 401


class TestRegister:
    PAYLOAD = {
        "companyName": "Padaria Central",
        "companyEmail": "contato@padaria.com",
        "userName": "Maria",
        "userEmail": "maria@padaria.com",
        "password": "Senha@2024",
        "plan": "profissional",
    }

    def test_creates_trial_company_and_admin(self, client, db_session):
        before = utcnow()
        resp = client.post("/api/auth/register", json=self.PAYLOAD)

        assert resp.status_code == 201
        company = db_session.query(Company).filter_by(email="contato@padaria.com").one()
        user = db_session.query(User).filter_by(email="maria@padaria.com").one()
        assert company.status == "TRIAL"
        assert company.plan == "PROFISSIONAL"
        assert before + timedelta(days=7) <= company.trial_ends_at <= utcnow() + timedelta(days=7)
        assert user.role == "ADMIN"
        assert user.company_id == company.id

    def test_duplicate_company_email(self, client, db_session, company_a):
        payload = dict(self.PAYLOAD, companyEmail=company_a.email)
        assert client.post("/api/auth/register", json=payload).status_code == 400

    def test_duplicate_user_email(self, client, user_a):
        payload = dict(self.PAYLOAD, userEmail=user_a.email)
        assert client.post("/api/auth/register", json=payload).status_code == 400

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json=dict(self.PAYLOAD, password="fraca"))

        assert resp.status_code == 400
        assert resp.json["details"]
        assert db_session.query(Company).count() == 0


class TestChangePassword:
    NEW = "Nova@Senha1"

    def test_change_clears_first_access(self, client, db_session, user_a, headers_a):
        user_a.first_access = True
        user_a.temporary_password = True
        db_session.commit()

        resp = client.post("/api/auth/alterar-senha", headers=headers_a, json={
            "novaSenha": self.NEW, "confirmarSenha": self.NEW,
        })

        assert resp.status_code == 200
        db_session.refresh(user_a)
        assert user_a.first_access is False
        assert user_a.temporary_password is False
        assert get_auth_token(client, user_a.email, self.NEW)

    def test_english_field_names(self, client, headers_a):
        resp = client.post("/api/auth/alterar-senha", headers=headers_a, json={
            "new_password": self.NEW, "confirm_password": self.NEW,
        })
        assert resp.status_code == 200

    def test_requires_token(self, client, db_session):
        resp = client.post("/api/auth/alterar-senha", json={"novaSenha": self.NEW, "confirmarSenha": self.NEW})
        assert resp.status_code == 401

    def test_missing_and_mismatch(self, client, headers_a):
        assert client.post("/api/auth/alterar-senha", headers=headers_a, json={"novaSenha": self.NEW}).status_code == 400
        resp = client.post("/api/auth/alterar-senha", headers=headers_a, json={
            "novaSenha": self.NEW, "confirmarSenha": "Outra@Senha1",
        })
        assert resp.status_code == 400

    def test_weak_password_lists_details(self, client, headers_a):
        resp = client.post("/api/auth/alterar-senha", headers=headers_a, json={
            "novaSenha": "fraca", "confirmarSenha": "fraca",
        })
        assert resp.status_code == 400
        assert len(resp.json["details"]) >= 1


class TestLogout:
    def test_logout_clears_cookie(self, client, user_a):
        client.post("/api/auth/login", json={"email": user_a.email, "password": PASSWORD})

        resp = client.post("/api/auth/logout")

        assert resp.status_code == 200
        assert client.get("/api/auth/me").status_code == 401
