from fastapi.testclient import TestClient

from conftest import login
from kiteadmin.auth_utils import get_password_hash


def _user_id(db, username):
    return db.query_one("SELECT id FROM users WHERE username = ?", (username,))["id"]


def _add_admin(db, username="boss", password="secret123"):
    """Segundo admin só existe via banco: a API nunca promove ninguém a admin."""
    db.execute(
        "INSERT INTO users (username, password, role) VALUES (?, ?, ?)",
        (username, get_password_hash(password), "admin"),
    )
    return _user_id(db, username)


def test_admin_lists_users_without_passwords(admin_client, make_client):
    make_client("maria", role="manager")
    response = admin_client.get("/api/users")
    assert response.status_code == 200
    users = response.json()
    assert [u["username"] for u in users] == ["admin", "maria"]
    assert set(users[0]) == {"id", "username", "role", "created_at"}


def test_non_admins_get_403(manager_client, user_client, db):
    admin_id = _user_id(db, "admin")
    for client in (manager_client, user_client):
        assert client.get("/api/users").status_code == 403
        assert client.get(f"/api/users/{admin_id}").status_code == 403
        assert client.put(f"/api/users/{admin_id}", json={"username": "x", "role": "user"}).status_code == 403
        assert client.delete(f"/api/users/{admin_id}").status_code == 403
        assert client.post("/api/users", json={"username": "xyz", "password": "secret123"}).status_code == 403


def test_get_missing_user(admin_client):
    response = admin_client.get("/api/users/999")
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_admin_creates_manager(admin_client):
    response = admin_client.post(
        "/api/users", json={"username": "maria", "password": "secret123", "role": "manager"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "maria"
    assert body["role"] == "manager"
    assert isinstance(body["id"], int)


def test_admin_cannot_create_admin(admin_client):
    response = admin_client.post(
        "/api/users", json={"username": "boss", "password": "secret123", "role": "admin"}
    )
    assert response.status_code == 400


def test_update_user_role_and_name(admin_client, make_client, db):
    make_client("joao")
    user_id = _user_id(db, "joao")
    response = admin_client.put(f"/api/users/{user_id}", json={"username": "joao.silva", "role": "manager"})
    assert response.status_code == 200
    assert response.json() == {"id": user_id, "username": "joao.silva", "role": "manager"}
    assert db.query_one("SELECT role FROM users WHERE id = ?", (user_id,))["role"] == "manager"


def test_update_requires_fields_and_valid_role(admin_client, make_client, db):
    make_client("joao")
    user_id = _user_id(db, "joao")
    assert admin_client.put(f"/api/users/{user_id}", json={"username": "joao"}).status_code == 400
    response = admin_client.put(f"/api/users/{user_id}", json={"username": "joao", "role": "owner"})
    assert response.status_code == 400


def test_update_missing_user(admin_client):
    response = admin_client.put("/api/users/999", json={"username": "ghost", "role": "user"})
    assert response.status_code == 404


def test_nobody_is_promoted_to_admin(admin_client, make_client, db):
    make_client("joao")
    user_id = _user_id(db, "joao")
    response = admin_client.put(f"/api/users/{user_id}", json={"username": "joao", "role": "admin"})
    assert response.status_code == 400
    assert db.query_one("SELECT role FROM users WHERE id = ?", (user_id,))["role"] == "user"


def test_seed_admin_role_cannot_change(app, db):
    _add_admin(db)
    boss_client = login(TestClient(app), "boss", "secret123")
    admin_id = _user_id(db, "admin")
    response = boss_client.put(f"/api/users/{admin_id}", json={"username": "admin", "role": "manager"})
    assert response.status_code == 400
    assert db.query_one("SELECT role FROM users WHERE id = ?", (admin_id,))["role"] == "admin"


def test_update_to_taken_username(admin_client, make_client, db):
    make_client("joao")
    make_client("maria", role="manager")
    response = admin_client.put(
        f"/api/users/{_user_id(db, 'joao')}", json={"username": "maria", "role": "user"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Username already exists"}


def test_demoting_one_of_two_admins(admin_client, db):
    boss_id = _add_admin(db)
    response = admin_client.put(f"/api/users/{boss_id}", json={"username": "boss", "role": "manager"})
    assert response.status_code == 200
    admins = db.query_all("SELECT username FROM users WHERE role = ?", ("admin",))
    assert admins == [{"username": "admin"}]


def test_last_admin_cannot_be_demoted(app, db):
    boss_id = _add_admin(db)
    boss_client = login(TestClient(app), "boss", "secret123")
    # Rebaixa o admin padrão direto no banco: 'boss' vira o único admin
    db.execute("UPDATE users SET role = ? WHERE username = ?", ("user", "admin"))
    response = boss_client.put(f"/api/users/{boss_id}", json={"username": "boss", "role": "manager"})
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot change role. At least one admin user is required."


def test_cannot_delete_self(admin_client, db):
    response = admin_client.delete(f"/api/users/{_user_id(db, 'admin')}")
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete your own account"}
    assert db.query_one("SELECT id FROM users WHERE username = ?", ("admin",)) is not None


def test_delete_user(admin_client, make_client, db):
    make_client("joao")
    user_id = _user_id(db, "joao")
    response = admin_client.delete(f"/api/users/{user_id}")
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}
    assert admin_client.get(f"/api/users/{user_id}").status_code == 404


def test_deleting_last_admin_fails_and_row_remains(app, db):
    _add_admin(db)
    boss_client = login(TestClient(app), "boss", "secret123")
    # A sessão de 'boss' ainda diz admin, mas no banco só o admin padrão é admin
    db.execute("UPDATE users SET role = ? WHERE username = ?", ("manager", "boss"))
    admin_id = _user_id(db, "admin")

    response = boss_client.delete(f"/api/users/{admin_id}")

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete the last admin user"}
    assert db.query_one("SELECT id FROM users WHERE id = ?", (admin_id,)) is not None


def test_seed_admin_cannot_be_deleted_by_another_admin(app, db):
    _add_admin(db)
    boss_client = login(TestClient(app), "boss", "secret123")
    response = boss_client.delete(f"/api/users/{_user_id(db, 'admin')}")
    assert response.status_code == 400
    assert db.query_one("SELECT id FROM users WHERE username = ?", ("admin",)) is not None
