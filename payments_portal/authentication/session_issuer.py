# payments_portal/authentication/session_issuer.py

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from payments_portal.authentication.rbac import UserRole
from payments_portal.database.models import User
from payments_portal.errors import AuthenticationError, DuplicateAccountError, PersistenceError
from payments_portal.extensions import db

# Registration and login. Login mints a session token; no session state is
# kept on the server, so logout is the client discarding its token.


class SessionIssuer:
    def __init__(self, password_service, token_manager, audit_logger):
        self.password_service = password_service
        self.token_manager = token_manager
        self.audit_logger = audit_logger

    def get_user_by_account_number(self, account_number):
        return db.session.execute(
            db.select(User).filter_by(account_number=account_number)
        ).scalar_one_or_none()

    def register(self, full_name, id_number, account_number, password, role=UserRole.EMPLOYEE):
        role_value = UserRole(role).value
        if self.get_user_by_account_number(account_number) is not None:
            self.audit_logger.registration_rejected(account_number, 'duplicate')
            raise DuplicateAccountError()

        user = User(
            full_name=full_name,
            id_number=id_number,
            account_number=account_number,
            password_hash=self.password_service.hash_password(password),
            role=role_value,
        )
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same number
            db.session.rollback()
            raise DuplicateAccountError()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Registration error: {e}")
            raise PersistenceError("Registration failed")

        current_app.logger.info(f"User registered: {user.account_number} ({user.role})")
        self.audit_logger.user_registered(user)
        return user

    def login(self, account_number, password):
        """Check the credential pair and return ``(token, user)``.

        Unknown accounts and wrong passwords raise the same
        AuthenticationError, after the same amount of hashing work.
        """
        user = self.get_user_by_account_number(account_number)
        hash_value = user.password_hash if user is not None else self.password_service.dummy_hash
        match = self.password_service.verify_password(password, hash_value)

        if user is None or not match:
            self.audit_logger.login_failed(account_number)
            raise AuthenticationError("Invalid credentials")

        self._upgrade_hash_if_needed(user, password)

        token = self.token_manager.generate_token(user.id, user.role)
        self.audit_logger.login_succeeded(user)
        return token, user

    def _upgrade_hash_if_needed(self, user, password):
        if not self.password_service.needs_rehash(user.password_hash):
            return
        try:
            user.password_hash = self.password_service.hash_password(password)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.warning(f"Password rehash failed for user {user.id}: {e}")
