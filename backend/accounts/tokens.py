"""
Signed bearer tokens keyed on the user id
"""
import jwt
from django.conf import settings
from django.utils import timezone


def generate_token(user):
    now = timezone.now()
    payload = {
        'user_id': str(user.id),
        'role': user.role,
        'iat': now,
        'exp': now + settings.JWT_EXPIRATION,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token):
    """Decode and verify a token. Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
