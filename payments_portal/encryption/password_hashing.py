# payments_portal/encryption/password_hashing.py

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

# Salted one-way password hashing and verification using Argon2id


class PasswordHashingService:
    def __init__(self, time_cost=3, memory_cost=65536, parallelism=4):
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )
        # Checked against when the account does not exist, so both login
        # failure paths cost one hash verification.
        self.dummy_hash = self.ph.hash(secrets.token_urlsafe(16))

    @classmethod
    def from_config(cls, config):
        return cls(
            time_cost=config['PASSWORD_HASH_TIME_COST'],
            memory_cost=config['PASSWORD_HASH_MEMORY_COST'],
            parallelism=config['PASSWORD_HASH_PARALLELISM'],
        )

    def hash_password(self, password: str) -> str:
        if not isinstance(password, str) or not password:
            raise ValueError("Password must be a non-empty string")
        try:
            return self.ph.hash(password)
        except HashingError as e:
            raise ValueError(f"Password hashing failed: {str(e)}")

    def verify_password(self, password: str, hash_value: str) -> bool:
        try:
            self.ph.verify(hash_value, password)
            return True
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_value: str) -> bool:
        return self.ph.check_needs_rehash(hash_value)
