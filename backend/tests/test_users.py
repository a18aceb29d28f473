"""
User administration API tests (admin only).
"""

import pytest
from conftest import USER_PASSWORD, get_auth_token, post_movement

from lojaroupa.models import User
from lojaroupa.services.auth_service import verify_password


class TestUserAdmin:

    def test_create_user(self, client, db_session, admin_headers):
        resp = client.post('/api/users', headers=admin_headers, json={
            'name': 'Carla Dias',
            'email': 'Carla@LojaRoupa.test',
            'password': 'segredo1',
            'access_level': 'guest',
        })

        assert resp.status_code == 201
        user = resp.json["user"]
        assert user["email"] == "carla@lojaroupa.test"
        assert user["access_level"] == "guest"
        assert "password_hash" not in user

        stored = db_session.get(User, user["id"])
        assert stored.password_hash != "segredo1"
        assert verify_password("segredo1", stored.password_hash)

    def test_duplicate_email_conflicts(self, client, db_session, admin_headers, regular_user):
        resp = client.post('/api/users', headers=admin_headers, json={
            'name': 'Outra', 'email': regular_user.email, 'password': 'segredo1', 'access_level': 'user',
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload,violation",
        [
            ({'name': 'A', 'email': 'a@b.com', 'password': 'segredo1', 'access_level': 'user'},
             "name must be between 2 and 100 characters"),
            ({'name': 'Ana', 'email': 'not-an-email', 'password': 'segredo1', 'access_level': 'user'},
             "Invalid email"),
            ({'name': 'Ana', 'email': 'a@b.com', 'password': '123', 'access_level': 'user'},
             "password must be between 6 and 100 characters"),
            ({'name': 'Ana', 'email': 'a@b.com', 'password': 'segredo1', 'access_level': 'owner'},
             "Invalid access level"),
        ],
    )
    def test_create_validation(self, client, db_session, admin_headers, payload, violation):
        resp = client.post('/api/users', headers=admin_headers, json=payload)
        assert resp.status_code == 400
        assert violation in resp.json["violations"]

    def test_list_users(self, client, admin_headers, regular_user):
        resp = client.get('/api/users', headers=admin_headers)
        assert resp.status_code == 200
        emails = [u["email"] for u in resp.json["users"]]
        assert emails == ["admin@lojaroupa.test", "vendas@lojaroupa.test"]

    def test_update_rehashes_password(self, client, db_session, admin_headers, regular_user):
        resp = client.put(f'/api/users/{regular_user.id}', headers=admin_headers, json={
            'password': 'novasenha',
            'access_level': 'admin',
        })

        assert resp.status_code == 200
        assert resp.json["user"]["access_level"] == "admin"
        assert get_auth_token(client, regular_user.email, USER_PASSWORD) is None
        assert get_auth_token(client, regular_user.email, 'novasenha') is not None

    def test_update_email_taken(self, client, db_session, admin_headers, admin_user, regular_user):
        resp = client.put(f'/api/users/{regular_user.id}', headers=admin_headers, json={'email': admin_user.email})
        assert resp.status_code == 409

    def test_update_missing_user(self, client, db_session, admin_headers):
        resp = client.put('/api/users/99999', headers=admin_headers, json={'name': 'Nome'})
        assert resp.status_code == 404

    def test_delete_user(self, client, db_session, admin_headers, regular_user):
        user_id = regular_user.id
        resp = client.delete(f'/api/users/{user_id}', headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.get(User, user_id) is None

    def test_delete_user_with_history_conflicts(self, client, db_session, admin_headers, admin_user, shirt):
        post_movement(client, admin_headers, shirt, type="in", quantity=1, price="10.00")

        resp = client.delete(f'/api/users/{admin_user.id}', headers=admin_headers)

        assert resp.status_code == 409

    def test_delete_missing_user(self, client, db_session, admin_headers):
        resp = client.delete('/api/users/99999', headers=admin_headers)
        assert resp.status_code == 404
