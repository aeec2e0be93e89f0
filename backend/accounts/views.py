"""
User management views - profiles, settings and teacher rosters
"""
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from lexilearn.pagination import CollectionResponseMixin, PageLimitPagination

from .models import ROLE_STUDENT, User
from .permissions import CanAccessStudentRecord, IsAdmin, IsNotStudent, IsTeacherOrAdmin
from .serializers import (
    ChangePasswordSerializer, ProfileUpdateSerializer, SettingsSerializer,
    StudentWriteSerializer, UserSerializer,
)
from .services import AuthService, merge_settings

logger = logging.getLogger(__name__)

STUDENT_PROFILE_FIELDS = {'name', 'email', 'avatar', 'settings'}


@api_view(['GET', 'PUT'])
def profile(request):
    """GET or update the current user's profile."""
    user = request.user
    if request.method == 'GET':
        return Response({'success': True, 'user': UserSerializer(user).data})

    serializer = ProfileUpdateSerializer(instance=user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    changes = dict(serializer.validated_data)

    if user.role == ROLE_STUDENT:
        refused = set(changes) - STUDENT_PROFILE_FIELDS
        if refused:
            raise ValidationError({field: 'Not editable for students' for field in sorted(refused)})

    if 'settings' in changes:
        user.settings = merge_settings(user.settings, changes.pop('settings'))
    for field, value in changes.items():
        setattr(user, field, value)
    user.save()

    logger.info(f'Profile updated for user {user.id}')
    return Response({
        'success': True,
        'message': 'Profile updated successfully',
        'user': UserSerializer(user).data,
    })


@api_view(['PUT'])
def update_settings(request):
    serializer = SettingsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    user.settings = merge_settings(user.settings, serializer.validated_data)
    user.save(update_fields=['settings', 'updated_at'])
    return Response({
        'success': True,
        'message': 'Settings updated successfully',
        'settings': user.settings,
    })


@api_view(['PUT'])
@permission_classes([IsNotStudent])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    if not user.check_password(serializer.validated_data['currentPassword']):
        raise ValidationError({'currentPassword': 'Current password is incorrect'})

    user.set_password(serializer.validated_data['newPassword'])
    user.save(update_fields=['password_hash', 'updated_at'])
    logger.info(f'Password changed for user {user.id}')
    return Response({'success': True, 'message': 'Password changed successfully'})


@api_view(['GET'])
@permission_classes([IsAdmin])
def teachers(request):
    rows = User.objects.teachers().active().order_by('name')
    return Response({'success': True, 'teachers': UserSerializer(rows, many=True).data})


@api_view(['GET'])
@permission_classes([IsAdmin])
def user_list(request):
    """Admin user directory with ?role= and ?isActive= filters."""
    users = User.objects.all().order_by('-created_at')

    role = request.query_params.get('role')
    if role:
        users = users.filter(role=role)
    is_active = request.query_params.get('isActive')
    if is_active is not None:
        users = users.filter(is_active=is_active.lower() == 'true')

    paginator = PageLimitPagination()
    page = paginator.paginate_queryset(users, request)
    return paginator.get_paginated_response(UserSerializer(page, many=True).data, collection_key='users')


class StudentViewSet(CollectionResponseMixin, viewsets.ModelViewSet):
    """
    A teacher's students.

    Teachers see and manage their own roster; admins see every student.
    Deleting a student deactivates the account so progress history stays.
    """
    permission_classes = [IsTeacherOrAdmin, CanAccessStudentRecord]
    collection_key = 'students'
    http_method_names = ['get', 'post', 'put', 'patch', 'delete']

    def get_queryset(self):
        students = User.objects.students_of(self.request.user).select_related('teacher')
        if self.action == 'list':
            if self.request.query_params.get('includeInactive', '').lower() != 'true':
                students = students.filter(is_active=True)
            return students.order_by('name')
        return students

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return StudentWriteSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        student = serializer.save()
        logger.info(f'Student {student.id} created by {request.user.id}')
        return Response({
            'success': True,
            'message': 'Student created successfully',
            'student': UserSerializer(student).data,
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'student': UserSerializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        student = self.get_object()
        serializer = self.get_serializer(student, data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)
        student = serializer.save()
        return Response({
            'success': True,
            'message': 'Student updated successfully',
            'student': UserSerializer(student).data,
        })

    def destroy(self, request, *args, **kwargs):
        student = self.get_object()
        student.is_active = False
        student.save(update_fields=['is_active', 'updated_at'])
        logger.info(f'Student {student.id} deactivated by {request.user.id}')
        return Response({'success': True, 'message': 'Student deactivated successfully'})

    @action(detail=True, methods=['post'], url_path='regenerate-code')
    def regenerate_code(self, request, pk=None):
        student = self.get_object()
        code = AuthService.regenerate_secret_code(student)
        return Response({
            'success': True,
            'message': 'Secret code regenerated',
            'secretCode': code,
        })
