# payments_portal/transactions/workflow.py

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from payments_portal.database.models import Transaction
from payments_portal.errors import InvalidStateError, NotFoundError, PersistenceError
from payments_portal.extensions import db

# Payment approval workflow: created -> verified -> submitted to SWIFT.
# Flags only ever go from false to true. Each transition is one UPDATE
# statement so concurrent admin actions cannot lose an update.


class TransactionWorkflow:
    def __init__(self, audit_logger):
        self.audit_logger = audit_logger

    def create(self, user_id, amount, currency, provider, swift_code=None, account_info=None):
        tx = Transaction(
            user_id=str(user_id),
            amount=amount,
            currency=currency,
            provider=provider,
            swift_code=swift_code,
            account_info=account_info,
        )
        try:
            db.session.add(tx)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Payment error: {e}")
            raise PersistenceError("Transaction failed")

        self.audit_logger.transaction_created(tx)
        return tx

    def get(self, tx_id):
        tx = db.session.get(Transaction, tx_id)
        if tx is None:
            raise NotFoundError()
        return tx

    def list_all(self):
        try:
            return db.session.execute(db.select(Transaction).order_by(Transaction.id)).scalars().all()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Admin fetch error: {e}")
            raise PersistenceError("Failed to fetch transactions")

    def _set_flag(self, statement, failure_message):
        try:
            result = db.session.execute(statement)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"{failure_message}: {e}")
            raise PersistenceError(failure_message)
        return result.rowcount

    def verify(self, tx_id, admin_id=None):
        # Idempotent: verifying a verified transaction matches the row again
        matched = self._set_flag(
            update(Transaction)
            .where(Transaction.id == tx_id)
            .values(verified=True)
            .execution_options(synchronize_session=False),
            "Verification failed",
        )
        if matched == 0:
            raise NotFoundError()
        tx = self.get(tx_id)
        self.audit_logger.transaction_verified(tx, admin_id)
        return tx

    def submit_to_swift(self, tx_id, admin_id=None):
        matched = self._set_flag(
            update(Transaction)
            .where(Transaction.id == tx_id, Transaction.verified.is_(True))
            .values(submitted_to_swift=True)
            .execution_options(synchronize_session=False),
            "Submission failed",
        )
        if matched == 0:
            # Either the id is unknown or the transaction is not verified yet
            self.get(tx_id)
            self.audit_logger.submission_rejected(tx_id, admin_id)
            raise InvalidStateError("Transaction must be verified before submission")
        tx = self.get(tx_id)
        self.audit_logger.transaction_submitted(tx, admin_id)
        return tx
