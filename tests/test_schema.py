from kiteadmin.auth_utils import ensure_seed_admin, verify_password
from kiteadmin.database import SQLiteDatabase
from kiteadmin.database_models import init_schema


def _columns(db, table):
    return {row["name"] for row in db.query_all(f"PRAGMA table_info({table})")}


def test_bootstrap_is_idempotent(tmp_path):
    db = SQLiteDatabase(str(tmp_path / "t.db"))
    for _ in range(2):
        init_schema(db)
        ensure_seed_admin(db, "password")

    admins = db.query_all("SELECT username, role, password FROM users")
    assert len(admins) == 1
    assert admins[0]["username"] == "admin"
    assert admins[0]["role"] == "admin"
    assert admins[0]["password"] != "password"
    assert verify_password("password", admins[0]["password"])


def test_additive_columns_reach_an_old_schema(tmp_path):
    db = SQLiteDatabase(str(tmp_path / "old.db"))
    # Esquema da primeira versão, sem papéis e sem os campos novos
    db.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "username TEXT UNIQUE NOT NULL, password TEXT NOT NULL)"
    )
    db.execute("CREATE TABLE clients (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)")
    db.execute("CREATE TABLE hotels (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)")
    db.execute("INSERT INTO clients (name) VALUES (?)", ("Antigo",))

    init_schema(db)

    assert {"role"} <= _columns(db, "users")
    assert {"nationality", "notes", "cpf", "birth_date"} <= _columns(db, "clients")
    assert {"website", "pix", "notes"} <= _columns(db, "hotels")
    assert db.query_one("SELECT name FROM clients")["name"] == "Antigo"


def test_seed_admin_role_is_forced_back(tmp_path):
    db = SQLiteDatabase(str(tmp_path / "t.db"))
    init_schema(db)
    ensure_seed_admin(db, "password")
    db.execute("UPDATE users SET role = ? WHERE username = ?", ("user", "admin"))

    ensure_seed_admin(db, "another-password")

    row = db.query_one("SELECT role, password FROM users WHERE username = ?", ("admin",))
    assert row["role"] == "admin"
    # a senha existente não é trocada
    assert verify_password("password", row["password"])
