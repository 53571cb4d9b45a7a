import pytest
from flask import g, jsonify

from conftest import bearer
from payments_portal.authentication.rbac import UserRole, extract_bearer_token, require_role, token_required


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc", "abc"),
    ("bearer abc", "abc"),
    ("Bearer", None),
    ("Basic abc", None),
    ("Bearer a b", None),
    ("", None),
    (None, None),
])
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


@pytest.fixture
def guarded_app(app):
    @app.route("/employee-only")
    @token_required
    @require_role(UserRole.EMPLOYEE)
    def employee_only():
        return jsonify(g.current_user)

    @app.route("/whoami")
    @token_required(optional=True)
    def whoami():
        return jsonify(g.current_user)

    return app


@pytest.fixture
def guarded_client(guarded_app):
    with guarded_app.test_client() as client:
        yield client


def test_role_check_is_exact_match(guarded_client, sessions, admin_user):
    # admin does not satisfy an employee gate
    token, _ = sessions.login("admin001", "adminTest123")
    resp = guarded_client.get("/employee-only", headers=bearer(token))
    assert resp.status_code == 403


def test_employee_passes_employee_gate(guarded_client, sessions):
    user = sessions.register("E", "2", "emp2", "pw")
    token, _ = sessions.login("emp2", "pw")
    resp = guarded_client.get("/employee-only", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.get_json() == {"user_id": str(user.id), "role": "employee"}


def test_optional_guard_without_token(guarded_client):
    resp = guarded_client.get("/whoami")
    assert resp.status_code == 200
    assert resp.get_json() is None


def test_optional_guard_rejects_bad_token(guarded_client):
    assert guarded_client.get("/whoami", headers=bearer("junk")).status_code == 403


def test_denied_access_is_audited(guarded_client, app, sessions, admin_user):
    token, _ = sessions.login("admin001", "adminTest123")
    guarded_client.get("/employee-only", headers=bearer(token))
    with open(app.extensions["portal.audit"].log_file) as f:
        assert any('"access_denied"' in line for line in f)
