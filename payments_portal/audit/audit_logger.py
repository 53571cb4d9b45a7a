# payments_portal/audit/audit_logger.py

import base64
import hashlib
import json
import logging
import os
from datetime import datetime, timezone

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

# Payment portal audit trail: one JSON line per login, registration and
# payment approval event. Each line carries the hash of the previous one and
# an Ed25519 signature, so edits and truncation show up in verify_integrity().

logger = logging.getLogger(__name__)

KEY_FILE_NAME = 'audit_signing_key.pem'


def load_signing_key(pem=None, key_file=None):
    """Return the Ed25519 key used to sign audit entries.

    ``pem`` wins over ``key_file``. A missing key file is created with a new
    key, so the same key signs the trail across restarts.
    """
    if pem:
        return serialization.load_pem_private_key(pem.encode(), password=None)
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return serialization.load_pem_private_key(f.read(), password=None)
    key = Ed25519PrivateKey.generate()
    pem_bytes = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    fd = os.open(key_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, 'wb') as f:
        f.write(pem_bytes)
    logger.warning("Generated new audit signing key at %s", key_file)
    return key


def _canonical(entry):
    return json.dumps(entry, sort_keys=True).encode()


class AuditLogger:
    def __init__(self, log_dir, signing_key):
        self.log_file = os.path.join(log_dir, 'audit.log')
        self.signing_key = signing_key
        self.last_hash = self._read_last_hash()

    @classmethod
    def from_config(cls, config):
        log_dir = config['AUDIT_LOG_DIR']
        os.makedirs(log_dir, exist_ok=True)
        key_file = config.get('AUDIT_SIGNING_KEY_FILE') or os.path.join(log_dir, KEY_FILE_NAME)
        return cls(log_dir, load_signing_key(config.get('AUDIT_SIGNING_KEY'), key_file))

    def _read_last_hash(self):
        if not os.path.exists(self.log_file):
            return None
        last_line = None
        with open(self.log_file, 'r') as f:
            for line in f:
                if line.strip():
                    last_line = line
        if last_line is None:
            return None
        try:
            return json.loads(last_line).get('hash')
        except ValueError:
            logger.error("Audit log %s ends with an unreadable entry", self.log_file)
            return None

    def record(self, event_type, data, user_id=None):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "data": data,
            "user_id": None if user_id is None else str(user_id),
            "previous_hash": self.last_hash,
        }
        try:
            body = _canonical(entry)
            line = dict(
                entry,
                hash=hashlib.sha256(body).hexdigest(),
                signature=base64.b64encode(self.signing_key.sign(body)).decode(),
            )
            with open(self.log_file, 'a') as f:
                f.write(json.dumps(line) + "\n")
        except (OSError, TypeError, ValueError):
            # The request that triggered the event still completes
            logger.exception("Audit log write failed for event %s", event_type)
            return
        self.last_hash = line['hash']

    # Portal events

    def user_registered(self, user):
        self.record('user_registered', {'account_number': user.account_number, 'role': user.role}, user.id)

    def registration_rejected(self, account_number, reason):
        self.record('registration_failed', {'account_number': account_number, 'reason': reason})

    def login_succeeded(self, user):
        self.record('successful_login', {'role': user.role}, user.id)

    def login_failed(self, account_number):
        self.record('failed_login', {'account_number': account_number})

    def access_denied(self, path, role, required_role, user_id):
        self.record('access_denied', {'path': path, 'role': role, 'required': required_role}, user_id)

    def transaction_created(self, tx):
        self.record(
            'transaction_created',
            {'transaction_id': tx.id, 'amount': tx.amount, 'currency': tx.currency, 'provider': tx.provider},
            tx.user_id,
        )

    def transaction_verified(self, tx, admin_id):
        self.record('transaction_verified', {'transaction_id': tx.id}, admin_id)

    def transaction_submitted(self, tx, admin_id):
        self.record('transaction_submitted', {'transaction_id': tx.id, 'swift_code': tx.swift_code}, admin_id)

    def submission_rejected(self, tx_id, admin_id):
        self.record('submission_rejected', {'transaction_id': tx_id, 'reason': 'not_verified'}, admin_id)

    def entries(self):
        if not os.path.exists(self.log_file):
            return []
        with open(self.log_file, 'r') as f:
            return [json.loads(line) for line in f if line.strip()]

    def verify_integrity(self):
        public_key = self.signing_key.public_key()
        previous_hash = None
        try:
            for entry in self.entries():
                if entry.get('previous_hash') != previous_hash:
                    return False
                signature = base64.b64decode(entry.pop('signature'))
                entry_hash = entry.pop('hash')
                body = _canonical(entry)
                if hashlib.sha256(body).hexdigest() != entry_hash:
                    return False
                public_key.verify(signature, body)
                previous_hash = entry_hash
        except (KeyError, ValueError, InvalidSignature):
            return False
        return True
