"""
Validation helpers for UK property identifiers.
Used by the request schemas and by providers that normalise caller input.
"""

import re
from typing import Optional


class ValidationUtils:
    """
    Utility class for common validation operations.
    Methods raise ValueError so pydantic validators can surface them as field errors.
    """

    UK_POSTCODE_PATTERN = re.compile(r'^[A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2}$', re.IGNORECASE)
    UPRN_PATTERN = re.compile(r'^\d{1,12}$')
    COMPANY_NUMBER_PATTERN = re.compile(r'^[A-Z0-9]{8}$', re.IGNORECASE)
    PERIOD_PATTERN = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')

    # Characters stripped from free text before it is used in cache keys or upstream queries
    DANGEROUS_CHARS = re.compile(r'[<>"\'&]')

    @staticmethod
    def is_valid_uk_postcode(value: str) -> bool:
        return bool(ValidationUtils.UK_POSTCODE_PATTERN.match(value.strip()))

    @staticmethod
    def validate_uk_postcode(value: str) -> str:
        """
        Validate a UK postcode and return it in canonical form ("EX1 1AB").

        Raises:
            ValueError: If the postcode is not in UK format
        """
        if not ValidationUtils.is_valid_uk_postcode(value):
            raise ValueError("Invalid UK postcode format")
        return ValidationUtils.format_postcode(value)

    @staticmethod
    def format_postcode(value: str) -> str:
        """Upper-case with a single space before the inward code."""
        compact = re.sub(r'\s+', '', value).upper()
        if len(compact) < 5:
            return compact
        return f"{compact[:-3]} {compact[-3:]}"

    @staticmethod
    def normalize_postcode(value: str) -> str:
        """Cache-key form: lower case, no whitespace."""
        return re.sub(r'\s+', '', value).lower()

    @staticmethod
    def validate_uprn(value: str) -> str:
        """
        Validate a Unique Property Reference Number (up to 12 digits).

        Raises:
            ValueError: If the UPRN is not numeric or too long
        """
        value = value.strip()
        if not ValidationUtils.UPRN_PATTERN.match(value):
            raise ValueError("UPRN must be up to 12 digits")
        return value

    @staticmethod
    def validate_period(value: str) -> str:
        """Validate a YYYY-MM reporting period."""
        if not ValidationUtils.PERIOD_PATTERN.match(value):
            raise ValueError("Date must be in YYYY-MM format")
        return value

    @staticmethod
    def sanitize_string(value: Optional[str]) -> Optional[str]:
        """Trim and strip markup characters; empty strings become None."""
        if value is None:
            return None
        cleaned = ValidationUtils.DANGEROUS_CHARS.sub('', value).strip()
        return cleaned or None
