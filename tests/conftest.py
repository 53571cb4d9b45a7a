import pytest

from payments_portal import create_app
from payments_portal.authentication.rbac import UserRole
from payments_portal.config import TestingConfig
from payments_portal.extensions import db


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        AUDIT_LOG_DIR = str(tmp_path / "logs")

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def sessions(app):
    return app.extensions["portal.sessions"]


@pytest.fixture
def workflow(app):
    return app.extensions["portal.workflow"]


@pytest.fixture
def admin_user(sessions):
    return sessions.register("Admin User", "9001", "admin001", "adminTest123", role=UserRole.ADMIN)


def login(client, account_number, password):
    resp = client.post("/api/login", json={"accountNumber": account_number, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client, admin_user):
    return login(client, "admin001", "adminTest123")


@pytest.fixture
def employee_token(client):
    client.post("/api/register", json={
        "fullName": "Employee One",
        "idNumber": "8001",
        "accountNumber": "emp001",
        "password": "employeePass1",
    })
    return login(client, "emp001", "employeePass1")
