"""
JWT bearer authentication for the REST API
"""
import logging

import jwt
from django.core.exceptions import ValidationError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from .models import User
from .tokens import decode_token

logger = logging.getLogger(__name__)


class JWTAuthentication(BaseAuthentication):
    """
    Authenticate ``Authorization: Bearer <token>`` requests.

    Requests without a bearer header are left anonymous so that public
    endpoints keep working; a header carrying a bad token is rejected.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        auth_header = request.META.get('HTTP_AUTHORIZATION', '')

        if not auth_header.startswith(f'{self.keyword} '):
            return None

        token = auth_header[len(self.keyword) + 1:].strip()
        if not token:
            raise AuthenticationFailed('No token provided')

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError:
            raise AuthenticationFailed('Invalid token')

        user_id = payload.get('user_id')
        if not user_id:
            raise AuthenticationFailed('Invalid token: missing user_id')

        try:
            user = User.objects.select_related('teacher').get(pk=user_id)
        except (User.DoesNotExist, ValidationError):
            raise AuthenticationFailed('User not found')

        if not user.is_active:
            logger.warning(f'Token presented for deactivated user {user.id}')
            raise AuthenticationFailed('Account is deactivated')

        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
