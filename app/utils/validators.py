"""
Validation utilities
"""
import re


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_postal_code(postal_code, country='US'):
    """
    Validate postal code format

    Args:
        postal_code (str): Postal code to validate
        country (str): Country code (US or CA)

    Returns:
        bool: True if valid, False otherwise
    """
    if not postal_code:
        return False

    if country == 'US':
        # 5-digit ZIP, optionally ZIP+4
        pattern = r'^\d{5}(-\d{4})?$'
    elif country == 'CA':
        # Canadian postal code: A1A 1A1 or A1A1A1
        pattern = r'^[A-Za-z]\d[A-Za-z][ -]?\d[A-Za-z]\d$'
    else:
        return True  # Skip validation for other countries

    return bool(re.match(pattern, postal_code))


def validate_choice(value, enum_cls):
    """
    Check that ``value`` names a member of a string enum

    Returns:
        bool: True if ``value`` is one of the enum's values
    """
    return isinstance(value, str) and value in {member.value for member in enum_cls}


def validate_password(password):
    """At least 8 characters with one letter and one digit."""
    if not password or len(password) < 8:
        return False
    return bool(re.search(r'[A-Za-z]', password) and re.search(r'\d', password))
