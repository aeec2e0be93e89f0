"""
Authentication service
Credential checks for password users and secret-code students
"""
import copy
import logging

from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed

from .models import ROLE_STUDENT, User

logger = logging.getLogger(__name__)


class AuthService:
    """Credential verification shared by the auth endpoints and commands."""

    @staticmethod
    def verify_user_credentials(email, password):
        """
        Verify an email/password pair.

        Returns:
            User: the authenticated user

        Raises:
            AuthenticationFailed: unknown email, wrong password or inactive account
        """
        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            logger.warning('Login failed: unknown email')
            raise AuthenticationFailed('Invalid credentials')

        if not user.check_password(password):
            logger.warning(f'Login failed: wrong password for user {user.id}')
            raise AuthenticationFailed('Invalid credentials')

        if not user.is_active:
            raise AuthenticationFailed('Account is deactivated')

        return user

    @staticmethod
    def authenticate_by_secret_code(code):
        """Return the active student holding exactly this code."""
        try:
            student = User.objects.select_related('teacher').get(secret_code=code, role=ROLE_STUDENT)
        except User.DoesNotExist:
            logger.warning('Student login failed: unknown secret code')
            raise AuthenticationFailed('Invalid secret code')

        if not student.is_active:
            raise AuthenticationFailed('Account is deactivated')

        return student

    @staticmethod
    def record_login(user):
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        logger.info(f'User {user.id} ({user.role}) signed in')
        return user

    @staticmethod
    def regenerate_secret_code(student):
        """Issue a new code; the old one stops working immediately."""
        student.secret_code = User.objects.unique_secret_code()
        student.save(update_fields=['secret_code', 'updated_at'])
        logger.info(f'Secret code regenerated for student {student.id}')
        return student.secret_code


def merge_settings(current, changes):
    """Merge a partial settings update into the stored settings document."""
    merged = copy.deepcopy(current or {})
    for key, value in changes.items():
        if isinstance(value, dict):
            section = merged.get(key) if isinstance(merged.get(key), dict) else {}
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value
    return merged
