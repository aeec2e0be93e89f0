"""
Authentication endpoints
- Teachers / admins: email + password
- Students: 9 character secret code issued by their teacher
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .serializers import LoginSerializer, RegisterSerializer, StudentLoginSerializer, UserSerializer
from .services import AuthService
from .tokens import generate_token

logger = logging.getLogger(__name__)


def token_response(user, message, status_code=status.HTTP_200_OK):
    return Response({
        'success': True,
        'message': message,
        'token': generate_token(user),
        'user': UserSerializer(user).data,
    }, status=status_code)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register(request):
    """
    Create an account.

    Request body:
    {
        "name": "Jane Doe",
        "email": "jane@school.org",
        "password": "secret1",
        "role": "teacher",
        "gradeLevel": "3",
        "subject": "Reading"
    }

    Students register with "grade" and "teacherId" instead of a password
    and receive a secret code in the returned profile.
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f'Registered {user.role} {user.id}')
    return token_response(user, 'User registered successfully', status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    """Email + password login for teachers and admins."""
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = AuthService.verify_user_credentials(
        serializer.validated_data['email'],
        serializer.validated_data['password'],
    )
    AuthService.record_login(user)
    return token_response(user, 'Login successful')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def student_login(request):
    """
    Secret-code login for students.

    An optional "name" renames the student on the way in.
    """
    serializer = StudentLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    student = AuthService.authenticate_by_secret_code(serializer.validated_data['secretCode'])

    name = serializer.validated_data.get('name')
    if name and name != student.name:
        student.name = name
        student.save(update_fields=['name', 'updated_at'])

    AuthService.record_login(student)
    return token_response(student, 'Student login successful')


@api_view(['GET'])
def me(request):
    return Response({'success': True, 'user': UserSerializer(request.user).data})


@api_view(['POST'])
def logout(request):
    """Tokens are stateless; the client drops its copy."""
    logger.info(f'User {request.user.id} signed out')
    return Response({'success': True, 'message': 'Logged out successfully'})


@api_view(['POST'])
def refresh_token(request):
    return Response({
        'success': True,
        'token': generate_token(request.user),
    })
