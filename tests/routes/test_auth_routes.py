"""Tests for authentication and account administration routes."""

from unittest.mock import patch

import pytest


class TestRegister:

    def test_register_team_manager(self, client):
        response = client.post("/api/auth/register", json={
            "name": "QA Lead",
            "email": "QA@company.com",
            "password": "password123",
            "team": "QA",
        })

        assert response.status_code == 201
        data = response.get_json()
        assert data["message"] == "User registered successfully"
        assert data["user"]["email"] == "qa@company.com"
        assert data["user"]["role"] == "team_manager"
        assert data["user"]["assigned_manager"] is None
        assert "password" not in str(data)

    def test_register_whole_manager_rejected(self, client):
        response = client.post("/api/auth/register", json={
            "name": "Boss",
            "email": "boss@company.com",
            "password": "password123",
            "role": "whole_manager",
            "team": "QA",
        })
        assert response.status_code == 400

    def test_register_missing_team(self, client):
        response = client.post("/api/auth/register", json={
            "name": "QA Lead",
            "email": "qa@company.com",
            "password": "password123",
        })
        assert response.status_code == 400
        data = response.get_json()
        assert data["code"] == "invalid_input"
        assert "password123" not in str(data)

    def test_register_short_password(self, client):
        response = client.post("/api/auth/register", json={
            "name": "QA Lead",
            "email": "qa@company.com",
            "password": "short",
            "team": "QA",
        })
        assert response.status_code == 400
        assert "at least 6" in response.get_json()["error"]

    def test_register_duplicate_email(self, client, make_team_manager):
        make_team_manager(team="QA", email="qa@company.com")
        response = client.post("/api/auth/register", json={
            "name": "QA Lead",
            "email": "qa@company.com",
            "password": "password123",
            "team": "QA",
        })
        assert response.status_code == 409
        assert response.get_json()["code"] == "conflict"

    def test_register_non_object_body(self, client):
        response = client.post("/api/auth/register", json=["not", "an", "object"])
        assert response.status_code == 400
        assert response.get_json()["error"] == "Request body must be a JSON object"


class TestAdminRegister:

    def test_whole_manager_creates_assigned_team_manager(self, client, make_whole_manager, auth_headers_for):
        boss = make_whole_manager()
        response = client.post("/api/auth/admin/register", headers=auth_headers_for(boss), json={
            "name": "Dev Lead",
            "email": "dev@company.com",
            "password": "password123",
            "role": "team_manager",
            "team": "Dev",
        })

        assert response.status_code == 201
        user = response.get_json()["user"]
        assert user["assigned_manager"] == boss.id
        assert user["team"] == "Dev"

    def test_whole_manager_cannot_create_whole_manager(self, client, make_whole_manager, auth_headers_for):
        boss = make_whole_manager()
        response = client.post("/api/auth/admin/register", headers=auth_headers_for(boss), json={
            "name": "Boss Two",
            "email": "boss2@company.com",
            "password": "password123",
            "role": "whole_manager",
        })
        assert response.status_code == 403
        assert response.get_json()["code"] == "forbidden"

    def test_team_manager_cannot_admin_register(self, client, make_team_manager, auth_headers_for):
        tm = make_team_manager(team="QA")
        response = client.post("/api/auth/admin/register", headers=auth_headers_for(tm), json={
            "name": "Dev Lead",
            "email": "dev@company.com",
            "password": "password123",
            "team": "Dev",
        })
        assert response.status_code == 403

    def test_requires_authentication(self, client):
        response = client.post("/api/auth/admin/register", json={})
        assert response.status_code == 401


class TestLogin:

    def test_login_success_sets_cookie(self, client, make_team_manager):
        make_team_manager(team="QA", email="qa@company.com")
        response = client.post("/api/auth/login", json={"email": "qa@company.com", "password": "password123"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["token"]
        assert data["user"]["email"] == "qa@company.com"
        cookie = response.headers.get("Set-Cookie")
        assert "auth_token=" in cookie
        assert "HttpOnly" in cookie

    def test_login_wrong_password(self, client, make_team_manager):
        make_team_manager(team="QA", email="qa@company.com")
        response = client.post("/api/auth/login", json={"email": "qa@company.com", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid email or password"

    def test_token_from_login_authenticates(self, client, make_team_manager):
        make_team_manager(team="QA", email="qa@company.com")
        token = client.post("/api/auth/login", json={
            "email": "qa@company.com", "password": "password123",
        }).get_json()["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.get_json()["user"]["team"] == "QA"

    def test_cookie_authenticates(self, client, make_team_manager):
        make_team_manager(team="QA", email="qa@company.com")
        client.post("/api/auth/login", json={"email": "qa@company.com", "password": "password123"})

        response = client.get("/api/auth/me")
        assert response.status_code == 200

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert "auth_token=;" in response.headers.get("Set-Cookie")


class TestMe:

    def test_no_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.get_json()["error"] == "Access denied. No token provided."

    def test_malformed_header(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.get_json()["code"] == "unauthenticated"

    def test_account_deleted_after_token_check(self, app, client, make_team_manager, auth_headers_for):
        tm = make_team_manager(team="QA")
        headers = auth_headers_for(tm)

        with patch.object(app.user_directory, "find_by_id", return_value=None):
            response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401
        data = response.get_json()
        assert data["code"] == "unauthenticated"
        assert data["error"] == "Invalid token. User not found."


class TestUserManagementRoutes:

    def test_list_users_scope_and_annotations(self, client, make_whole_manager, make_team_manager,
                                              auth_headers_for):
        boss = make_whole_manager()
        other = make_whole_manager()
        mine = make_team_manager(team="QA", manager=boss)
        make_team_manager(team="Dev", manager=other)
        unclaimed = make_team_manager(team="Ops")

        response = client.get("/api/auth/users", headers=auth_headers_for(boss))

        assert response.status_code == 200
        data = response.get_json()
        assert data["count"] == 2
        by_id = {u["id"]: u for u in data["users"]}
        assert set(by_id) == {mine.id, unclaimed.id}
        assert by_id[mine.id]["assigned_to_me"] is True
        assert by_id[unclaimed.id]["assigned"] is False

    def test_list_users_forbidden_for_team_manager(self, client, make_team_manager, auth_headers_for):
        tm = make_team_manager(team="QA")
        response = client.get("/api/auth/users", headers=auth_headers_for(tm))
        assert response.status_code == 403
        data = response.get_json()
        assert data["required"] == ["whole_manager"]
        assert data["current"] == "team_manager"

    def test_assign(self, client, make_whole_manager, make_team_manager, auth_headers_for):
        boss = make_whole_manager()
        tm = make_team_manager(team="QA")

        response = client.put(f"/api/auth/users/{tm.id}/assign", headers=auth_headers_for(boss))

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "Team manager assigned successfully."
        assert data["user"]["assigned_to_me"] is True

    def test_assign_already_claimed(self, client, make_whole_manager, make_team_manager, auth_headers_for):
        boss = make_whole_manager()
        other = make_whole_manager()
        tm = make_team_manager(team="QA", manager=other)

        response = client.put(f"/api/auth/users/{tm.id}/assign", headers=auth_headers_for(boss))

        assert response.status_code == 409

    def test_assign_missing(self, client, make_whole_manager, auth_headers_for):
        boss = make_whole_manager()
        response = client.put("/api/auth/users/9999/assign", headers=auth_headers_for(boss))
        assert response.status_code == 404

    def test_delete_own_assignee(self, client, make_whole_manager, make_team_manager, auth_headers_for):
        boss = make_whole_manager()
        tm = make_team_manager(team="QA", manager=boss)

        response = client.delete(f"/api/auth/users/{tm.id}", headers=auth_headers_for(boss))

        assert response.status_code == 200
        assert response.get_json()["message"] == "Team manager deleted successfully."

    @pytest.mark.parametrize("claimed_by_other", [True, False])
    def test_delete_outside_scope(self, claimed_by_other, client, make_whole_manager,
                                  make_team_manager, auth_headers_for):
        boss = make_whole_manager()
        other = make_whole_manager()
        tm = make_team_manager(team="QA", manager=other if claimed_by_other else None)

        response = client.delete(f"/api/auth/users/{tm.id}", headers=auth_headers_for(boss))

        assert response.status_code == 404

    def test_deleted_user_token_stops_working(self, client, make_whole_manager, make_team_manager,
                                              auth_headers_for):
        boss = make_whole_manager()
        tm = make_team_manager(team="QA", manager=boss)
        tm_headers = auth_headers_for(tm)

        client.delete(f"/api/auth/users/{tm.id}", headers=auth_headers_for(boss))

        response = client.get("/api/auth/me", headers=tm_headers)
        assert response.status_code == 401

    def test_whole_managers_listing_is_public(self, client, make_whole_manager):
        boss = make_whole_manager(name="Alice Boss")
        response = client.get("/api/auth/whole-managers")
        assert response.status_code == 200
        assert response.get_json() == [{"id": boss.id, "name": "Alice Boss"}]
