# payments_portal/security/token_manager.py

from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token, decode_token

from payments_portal.errors import InvalidCredentialError

# Signed, time-limited session tokens (JWT) carrying user identity and role.
# The signing secret and lifetime come from the app config given to create_app().


class TokenManager:
    def generate_token(self, user_id, role: str, expires_in: int = None) -> str:
        # Lifetime defaults to JWT_ACCESS_TOKEN_EXPIRES (one hour).
        expires_delta = timedelta(seconds=expires_in) if expires_in is not None else None
        return create_access_token(
            identity=str(user_id),
            additional_claims={'role': role},
            expires_delta=expires_delta,
        )

    def validate_token(self, token: str) -> dict:
        """Decode a token and return its identity and role.

        Raises InvalidCredentialError on a bad signature, an expired token
        or anything that is not a well-formed JWT.
        """
        try:
            decoded = decode_token(token, allow_expired=False)
        except Exception as e:
            current_app.logger.warning(f"Token validation failed: {type(e).__name__}")
            raise InvalidCredentialError() from e
        if 'sub' not in decoded or 'role' not in decoded:
            raise InvalidCredentialError()
        return {'user_id': decoded['sub'], 'role': decoded['role']}
