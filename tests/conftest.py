import pytest
from fastapi.testclient import TestClient

from kiteadmin.app import create_app
from kiteadmin.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=None,
        sqlite_path=str(tmp_path / "kitesurfing-test.db"),
        session_secret="test-secret",
        environment="development",
        frontend_url="http://localhost:3000",
        default_admin_password="password",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def db(app):
    return app.state.db


def login(client, username, password):
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def anon_client(app):
    return TestClient(app)


@pytest.fixture
def admin_client(app):
    return login(TestClient(app), "admin", "password")


@pytest.fixture
def make_client(app, admin_client):
    """Cria uma conta com o papel pedido e devolve um cliente HTTP já logado."""

    def _make(username, role="user", password="secret123"):
        response = admin_client.post(
            "/api/users", json={"username": username, "password": password, "role": role}
        )
        assert response.status_code == 200, response.text
        return login(TestClient(app), username, password)

    return _make


@pytest.fixture
def manager_client(make_client):
    return make_client("maria", role="manager")


@pytest.fixture
def user_client(make_client):
    return make_client("joao", role="user")
