"""
Student secret codes.

A secret code is the only credential a student has, so it is drawn from a
cryptographic source rather than ``random``.
"""
import secrets
import string

SECRET_CODE_ALPHABET = string.ascii_uppercase + string.digits
SECRET_CODE_LENGTH = 9


def generate_secret_code(length=SECRET_CODE_LENGTH):
    return ''.join(secrets.choice(SECRET_CODE_ALPHABET) for _ in range(length))


def is_well_formed(code):
    return (
        isinstance(code, str)
        and len(code) == SECRET_CODE_LENGTH
        and all(ch in SECRET_CODE_ALPHABET for ch in code)
    )
