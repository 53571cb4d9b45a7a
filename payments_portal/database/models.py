# payments_portal/database/models.py

from datetime import datetime, timezone

from payments_portal.extensions import db

# Database schema for users (credential store) and transactions (ledger)


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(120), nullable=False)
    id_number = db.Column(db.String(32), nullable=False)
    account_number = db.Column(db.String(32), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(200), nullable=False)  # Argon2id, never the plain password
    role = db.Column(db.String(20), nullable=False, default='employee')
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f'<User {self.account_number} ({self.role})>'


class Transaction(db.Model):
    __tablename__ = 'transactions'
    id = db.Column(db.Integer, primary_key=True)
    # Owner reference as supplied by the client or the session token
    user_id = db.Column(db.String(64), nullable=False, index=True)
    amount = db.Column(db.Numeric(14, 2, asdecimal=False), nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    provider = db.Column(db.String(64), nullable=False)
    swift_code = db.Column(db.String(11), nullable=True)
    account_info = db.Column(db.String(255), nullable=True)
    verified = db.Column(db.Boolean, nullable=False, default=False)
    submitted_to_swift = db.Column(db.Boolean, nullable=False, default=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def state(self):
        if self.submitted_to_swift:
            return 'submitted'
        if self.verified:
            return 'verified'
        return 'created'

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'amount': self.amount,
            'currency': self.currency,
            'provider': self.provider,
            'swiftCode': self.swift_code,
            'accountInfo': self.account_info,
            'verified': self.verified,
            'submittedToSwift': self.submitted_to_swift,
            'state': self.state,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f'<Transaction {self.id} {self.amount} {self.currency} [{self.state}]>'
