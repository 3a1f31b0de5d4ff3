"""
Field validation shared by request schemas and the device client.

Every function either returns the normalized value or raises ValueError with
a message suitable for showing next to the offending field.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
AMOUNT_INPUT_PATTERN = re.compile(r"^\d*\.?\d{0,2}$")
PHONE_DIGITS = 10
ORG_NAME_MIN_LENGTH = 3


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_phone(value: str, country_code: str = "+1") -> str:
    """
    Convert user input such as "(555) 123-4567" to E.164 ("+15551234567").

    A leading country code digit is accepted when the remaining digits are a
    complete national number.
    """
    digits = digits_only(value)
    if len(digits) == PHONE_DIGITS + 1 and digits.startswith(country_code.lstrip("+")):
        digits = digits[1:]
    if len(digits) != PHONE_DIGITS:
        raise ValueError("Please enter a valid 10-digit phone number")
    return f"{country_code}{digits}"


def format_phone_display(value: str) -> str:
    """Progressive (XXX) XXX-XXXX formatting for partially typed input"""
    digits = digits_only(value)
    if digits.startswith("1") and len(digits) == PHONE_DIGITS + 1:
        digits = digits[1:]
    limited = digits[:PHONE_DIGITS]
    if len(limited) <= 3:
        return limited
    if len(limited) <= 6:
        return f"({limited[:3]}) {limited[3:]}"
    return f"({limited[:3]}) {limited[3:6]}-{limited[6:]}"


def validate_otp_code(code: str, length: int = 6) -> str:
    code = (code or "").strip()
    if len(code) != length or not code.isdigit():
        raise ValueError(f"Please enter the {length}-digit code")
    return code


def validate_email(value: Optional[str]) -> Optional[str]:
    """Empty input means "no email"; anything else must look like an address"""
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value


def require_name(value: Optional[str], label: str = "Name") -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()


def validate_org_name(value: str) -> str:
    value = require_name(value, "Organization name")
    if len(value) < ORG_NAME_MIN_LENGTH:
        raise ValueError(f"Organization name must be at least {ORG_NAME_MIN_LENGTH} characters")
    return value


def normalize_org_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def is_valid_amount_input(value: str) -> bool:
    """Digits with an optional decimal point and at most two decimal places"""
    return bool(AMOUNT_INPUT_PATTERN.match(value))


def parse_amount(value: str) -> Decimal:
    """Parse a donation amount input; blank or malformed input is zero"""
    if not value or value == ".":
        return Decimal("0")
    try:
        return Decimal(value)
    except InvalidOperation:
        return Decimal("0")
