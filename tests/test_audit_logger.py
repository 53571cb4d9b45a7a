import base64
import json
import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from payments_portal.audit.audit_logger import KEY_FILE_NAME, AuditLogger, load_signing_key
from payments_portal.database.models import Transaction, User


@pytest.fixture
def audit_config(tmp_path):
    """Config mapping pointing the audit trail at a temporary directory."""
    return {"AUDIT_LOG_DIR": str(tmp_path / "audit")}


@pytest.fixture
def audit_logger(audit_config):
    return AuditLogger.from_config(audit_config)


def _pem(key):
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def test_from_config_creates_directory_and_key_file(audit_config):
    AuditLogger.from_config(audit_config)
    assert os.path.exists(os.path.join(audit_config["AUDIT_LOG_DIR"], KEY_FILE_NAME))


def test_transaction_events_are_recorded(audit_logger):
    tx = Transaction(id=3, user_id="7", amount=100.0, currency="USD", provider="Stripe", swift_code="DEUTDEFF")
    audit_logger.transaction_created(tx)
    audit_logger.transaction_verified(tx, admin_id=1)
    audit_logger.transaction_submitted(tx, admin_id=1)

    entries = audit_logger.entries()
    assert [e["event_type"] for e in entries] == [
        "transaction_created", "transaction_verified", "transaction_submitted",
    ]
    assert entries[0]["data"] == {"transaction_id": 3, "amount": 100.0, "currency": "USD", "provider": "Stripe"}
    assert entries[0]["user_id"] == "7"
    assert entries[1]["user_id"] == "1"
    assert entries[0]["previous_hash"] is None  # First entry
    assert entries[1]["previous_hash"] == entries[0]["hash"]


def test_login_events_never_contain_passwords(audit_logger):
    user = User(id=5, account_number="acc1", role="employee", password_hash="secret-hash")
    audit_logger.login_failed("acc1")
    audit_logger.login_succeeded(user)

    with open(audit_logger.log_file) as f:
        raw = f.read()
    assert "secret-hash" not in raw
    assert [e["event_type"] for e in audit_logger.entries()] == ["failed_login", "successful_login"]


def test_signature_verification(audit_logger):
    audit_logger.submission_rejected(4, admin_id=1)

    entry = audit_logger.entries()[0]
    signature = entry.pop("signature")
    entry.pop("hash")
    body = json.dumps(entry, sort_keys=True).encode()
    # Raises InvalidSignature if the entry was not signed as written
    audit_logger.signing_key.public_key().verify(base64.b64decode(signature), body)


def test_integrity_survives_restart(audit_config):
    first = AuditLogger.from_config(audit_config)
    first.login_failed("acc1")

    second = AuditLogger.from_config(audit_config)
    assert second.last_hash == first.last_hash
    second.submission_rejected(9, admin_id=2)

    assert second.verify_integrity() is True
    assert len(second.entries()) == 2


def test_signing_key_from_config_pem(audit_config):
    key = Ed25519PrivateKey.generate()
    audit_config["AUDIT_SIGNING_KEY"] = _pem(key)

    logger = AuditLogger.from_config(audit_config)
    logger.login_failed("acc1")

    entry = logger.entries()[0]
    signature = base64.b64decode(entry.pop("signature"))
    entry.pop("hash")
    key.public_key().verify(signature, json.dumps(entry, sort_keys=True).encode())


def test_different_key_fails_integrity(audit_config, tmp_path):
    AuditLogger.from_config(audit_config).login_failed("acc1")

    audit_config["AUDIT_SIGNING_KEY_FILE"] = str(tmp_path / "other.pem")
    assert AuditLogger.from_config(audit_config).verify_integrity() is False


def test_load_signing_key_reuses_key_file(tmp_path):
    key_file = str(tmp_path / "key.pem")
    first = load_signing_key(key_file=key_file)
    second = load_signing_key(key_file=key_file)
    assert _pem(first) == _pem(second)


def test_tampered_append_fails_integrity(audit_logger):
    audit_logger.login_failed("acc1")
    with open(audit_logger.log_file, "a") as f:
        f.write('{"tampered": true}\n')
    assert audit_logger.verify_integrity() is False


def test_edited_entry_fails_integrity(audit_logger):
    audit_logger.transaction_verified(Transaction(id=1), admin_id=1)
    entry = audit_logger.entries()[0]
    entry["data"]["transaction_id"] = 2
    with open(audit_logger.log_file, "w") as f:
        f.write(json.dumps(entry) + "\n")
    assert audit_logger.verify_integrity() is False


def test_empty_trail_is_intact(audit_logger):
    assert audit_logger.entries() == []
    assert audit_logger.verify_integrity() is True


def test_write_failure_does_not_raise(audit_logger, monkeypatch):
    def mock_open(*args, **kwargs):
        raise PermissionError("Access denied")

    monkeypatch.setattr("builtins.open", mock_open)
    audit_logger.login_failed("acc1")
    assert audit_logger.last_hash is None
