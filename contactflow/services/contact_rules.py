"""
Contact Field Rules

Phone, email and tag helpers for the import pipeline.

Phone numbers follow the Indian 10-digit mobile scheme:
- optional country code 91 (12 digits) or trunk prefix 0 (11 digits) is dropped
- the result must be exactly 10 digits starting with 6, 7, 8 or 9
A standardized number is WhatsApp compatible by definition.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

# ============================================================================
# PHONE CONSTANTS
# ============================================================================

# comma, semicolon, pipe, newline or any whitespace run
PHONE_SEPARATOR_PATTERN = re.compile(r"[,;|\n\s]+")

COUNTRY_CODE = "91"
TRUNK_PREFIX = "0"
STANDARD_PHONE_LENGTH = 10
MOBILE_PREFIXES = ("6", "7", "8", "9")

STANDARD_PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")

# ============================================================================
# EMAIL CONSTANTS
# ============================================================================

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ============================================================================
# HELPER FUNCTIONS — PHONE
# ============================================================================

def extract_digits(value: Optional[str]) -> str:
    """Extract only digits from a string."""
    if not value:
        return ""
    return re.sub(r"\D", "", str(value))


def split_phone_cell(value: Optional[str]) -> List[str]:
    """Split a cell that may hold several numbers into candidate tokens."""
    if not value:
        return []
    return [part.strip() for part in PHONE_SEPARATOR_PATTERN.split(str(value)) if part.strip()]


def standardize_phone_number(phone: Optional[str]) -> Optional[str]:
    """Return the 10-digit standardized number, or None if it is not a valid mobile."""
    if not phone or not isinstance(phone, str):
        return None

    digits = extract_digits(phone)

    if digits.startswith(COUNTRY_CODE) and len(digits) == STANDARD_PHONE_LENGTH + len(COUNTRY_CODE):
        digits = digits[len(COUNTRY_CODE):]
    elif digits.startswith(TRUNK_PREFIX) and len(digits) == STANDARD_PHONE_LENGTH + len(TRUNK_PREFIX):
        digits = digits[len(TRUNK_PREFIX):]

    if len(digits) == STANDARD_PHONE_LENGTH and digits.startswith(MOBILE_PREFIXES):
        return digits
    return None


def validate_phone_number(phone: Optional[str]) -> bool:
    """True if phone is already in standardized form."""
    if not phone or not isinstance(phone, str):
        return False
    return bool(STANDARD_PHONE_PATTERN.match(phone))


def is_whatsapp_compatible(phone: Optional[str]) -> bool:
    return validate_phone_number(phone)


def extract_phone_numbers(cell_value: Optional[str]) -> List[str]:
    """
    Standardized numbers found in a phone cell, in cell order.

    Tokens that do not standardize are dropped silently.
    """
    numbers = []
    for token in split_phone_cell(cell_value):
        standardized = standardize_phone_number(token)
        if standardized:
            numbers.append(standardized)
    return numbers


def format_phone_for_display(phone: str) -> str:
    """Prefix valid numbers with +91; anything else is returned unchanged."""
    if validate_phone_number(phone):
        return f"+{COUNTRY_CODE}{phone}"
    return phone


@dataclass(frozen=True)
class PhoneValidationResult:
    is_valid: bool
    standardized: Optional[str]
    is_whatsapp_compatible: bool
    error: Optional[str] = None


def validate_phone_detailed(phone: Optional[str]) -> PhoneValidationResult:
    """Validate a single number and explain the failure."""
    if not phone or not isinstance(phone, str) or not phone.strip():
        return PhoneValidationResult(False, None, False, "Phone number is required")

    standardized = standardize_phone_number(phone)
    if not standardized:
        return PhoneValidationResult(
            False, None, False,
            "Invalid phone number format. Must be a valid 10-digit Indian mobile number.",
        )

    return PhoneValidationResult(True, standardized, is_whatsapp_compatible(standardized))


# ============================================================================
# HELPER FUNCTIONS — EMAIL
# ============================================================================

def validate_email_format(email: Optional[str]) -> bool:
    """Validate local@domain.tld shape."""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(str(email).strip()))


# ============================================================================
# HELPER FUNCTIONS — TAGS
# ============================================================================

def parse_tags(tags_str: Optional[str], max_tags: int = 10, max_length: int = 50) -> List[str]:
    """Comma-separated tags, trimmed, empty and over-long tags dropped."""
    if not tags_str:
        return []
    tags = [tag.strip() for tag in str(tags_str).split(",")]
    return [tag for tag in tags if 0 < len(tag) <= max_length][:max_tags]
