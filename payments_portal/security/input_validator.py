# payments_portal/security/input_validator.py

import math
import re

import bleach

from payments_portal.errors import ValidationError

# Upper bound of the Numeric(14, 2) amount column
MAX_AMOUNT = 10 ** 12

# Input validation and sanitization for registration and payment payloads


class InputValidator:
    def __init__(self):
        self.patterns = {
            'account_number': re.compile(r'^[A-Za-z0-9_-]{1,32}$'),
            'currency': re.compile(r'^[A-Z]{3}$'),
            # BIC: 4 bank, 2 country, 2 location, optional 3 branch
            'swift_code': re.compile(r'^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$'),
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValidationError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]
        # Strip all markup rather than escaping it
        sanitized = bleach.clean(input_str, tags=[], attributes={}, strip=True)
        return sanitized.strip()

    def _required_string(self, data, field, max_length=255):
        value = data.get(field)
        if value is None:
            raise ValidationError(f"Missing required field: {field}")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        value = self.sanitize_string(value, max_length=max_length)
        if not value:
            raise ValidationError(f"Missing required field: {field}")
        return value

    def _account_number(self, value):
        # Same coercion for registration and login so both see one identifier
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            return None
        return value.strip()

    def validate_account_number(self, account_number):
        return isinstance(account_number, str) and bool(self.patterns['account_number'].match(account_number))

    def validate_amount(self, amount):
        if isinstance(amount, bool):
            raise ValidationError("Amount must be a number")
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number")
        if not math.isfinite(value):
            raise ValidationError("Amount must be a number")
        # Round first so nothing below one cent is stored as zero
        value = round(value, 2)
        if value <= 0:
            raise ValidationError("Amount must be greater than zero")
        if value >= MAX_AMOUNT:
            raise ValidationError("Amount is too large")
        return value

    def validate_currency(self, currency):
        if not isinstance(currency, str):
            raise ValidationError("Currency must be a three-letter code")
        currency = currency.strip().upper()
        if not self.patterns['currency'].match(currency):
            raise ValidationError("Currency must be a three-letter code")
        return currency

    def validate_swift_code(self, swift_code):
        if swift_code is None or (isinstance(swift_code, str) and not swift_code.strip()):
            return None
        if not isinstance(swift_code, str):
            raise ValidationError("Invalid SWIFT/BIC code")
        swift_code = swift_code.strip().upper()
        if not self.patterns['swift_code'].match(swift_code):
            raise ValidationError("Invalid SWIFT/BIC code")
        return swift_code

    def validate_registration_data(self, data):
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        account_number = self._account_number(data.get('accountNumber'))
        if not account_number:
            raise ValidationError("Missing required field: accountNumber")
        if not self.validate_account_number(account_number):
            raise ValidationError("Invalid account number")
        password = data.get('password')
        if not isinstance(password, str) or not password:
            raise ValidationError("Missing required field: password")
        return {
            'full_name': self._required_string(data, 'fullName', max_length=120),
            'id_number': self._required_string(data, 'idNumber', max_length=32),
            'account_number': account_number,
            'password': password,
        }

    def validate_login_data(self, data):
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        account_number = self._account_number(data.get('accountNumber'))
        password = data.get('password')
        if account_number is None or not isinstance(password, str):
            raise ValidationError("Account number and password are required")
        return {'account_number': account_number, 'password': password}

    def validate_user_id(self, data):
        # Markup-only ids sanitize to an empty string and are rejected
        return self._required_string(data, 'userId', max_length=64)

    def validate_payment_data(self, data):
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        account_info = data.get('accountInfo')
        if account_info is not None:
            account_info = self.sanitize_string(str(account_info)) or None
        return {
            'amount': self.validate_amount(data.get('amount')),
            'currency': self.validate_currency(data.get('currency')),
            'provider': self._required_string(data, 'provider', max_length=64),
            'swift_code': self.validate_swift_code(data.get('swiftCode')),
            'account_info': account_info,
        }
