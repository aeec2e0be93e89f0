"""
Accounts serializers - public profiles, registration and user management
"""
from django.conf import settings as django_settings
from rest_framework import serializers

from lexilearn.exceptions import ConflictError

from .codes import SECRET_CODE_LENGTH
from .models import (
    FONT_SIZE_CHOICES, GRADE_LEVELS, ROLE_ADMIN, ROLE_CHOICES, ROLE_STUDENT,
    ROLE_TEACHER, THEME_CHOICES, User, normalize_grade,
)


class GradeField(serializers.ChoiceField):
    """Grade choice accepting "3", 3, "3rd" or "Grade 3"."""

    def __init__(self, **kwargs):
        super().__init__(choices=GRADE_LEVELS, **kwargs)

    def to_internal_value(self, data):
        return super().to_internal_value(normalize_grade(data))


def ensure_email_available(email, exclude=None):
    users = User.objects.filter(email__iexact=email)
    if exclude is not None:
        users = users.exclude(pk=exclude.pk)
    if users.exists():
        raise ConflictError('User already exists with this email')
    return email.strip().lower()


class UserSerializer(serializers.ModelSerializer):
    """Public profile. Never exposes the password hash; secret codes only for students."""
    teacherId = serializers.UUIDField(source='teacher_id', read_only=True)
    gradeLevel = serializers.CharField(source='grade_level', read_only=True)
    secretCode = serializers.CharField(source='secret_code', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    lastLogin = serializers.DateTimeField(source='last_login', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'role', 'grade', 'teacherId', 'secretCode',
            'school', 'gradeLevel', 'subject', 'avatar', 'isActive', 'lastLogin',
            'settings', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.role == ROLE_STUDENT:
            for key in ('school', 'gradeLevel', 'subject'):
                data.pop(key, None)
        else:
            for key in ('secretCode', 'grade', 'teacherId'):
                data.pop(key, None)
        return data


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(min_length=6, required=False, allow_blank=True, write_only=True)
    role = serializers.ChoiceField(choices=[value for value, _ in ROLE_CHOICES], default=ROLE_STUDENT)
    grade = GradeField(required=False)
    teacherId = serializers.UUIDField(required=False)
    school = serializers.CharField(max_length=200, required=False, allow_blank=True)
    gradeLevel = GradeField(required=False)
    subject = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate(self, attrs):
        role = attrs['role']

        if role == ROLE_ADMIN and not django_settings.ALLOW_ADMIN_REGISTRATION:
            raise serializers.ValidationError({'role': 'Admin accounts cannot be self-registered'})

        if role == ROLE_STUDENT:
            if not attrs.get('grade'):
                raise serializers.ValidationError({'grade': 'Grade is required for students'})
            teacher_id = attrs.get('teacherId')
            if not teacher_id:
                raise serializers.ValidationError({'teacherId': 'Teacher is required for students'})
            teacher = User.objects.teachers().active().filter(pk=teacher_id).first()
            if teacher is None:
                raise serializers.ValidationError({'teacherId': 'Teacher not found'})
            attrs['teacher'] = teacher
        else:
            if not attrs.get('email'):
                raise serializers.ValidationError({'email': 'Email is required'})
            if not attrs.get('password'):
                raise serializers.ValidationError({'password': 'Password is required'})
            if role == ROLE_TEACHER:
                if not attrs.get('gradeLevel'):
                    raise serializers.ValidationError({'gradeLevel': 'Grade level is required for teachers'})
                if not attrs.get('subject'):
                    raise serializers.ValidationError({'subject': 'Subject is required for teachers'})

        if attrs.get('email'):
            attrs['email'] = ensure_email_available(attrs['email'])
        return attrs

    def create(self, validated_data):
        role = validated_data['role']
        if role == ROLE_STUDENT:
            return User.objects.create_student(
                name=validated_data['name'],
                grade=validated_data['grade'],
                teacher=validated_data['teacher'],
                email=validated_data.get('email') or None,
            )
        if role == ROLE_TEACHER:
            return User.objects.create_teacher(
                name=validated_data['name'],
                email=validated_data['email'],
                password=validated_data['password'],
                grade_level=validated_data['gradeLevel'],
                subject=validated_data['subject'],
                school=validated_data.get('school', ''),
            )
        return User.objects.create_admin(
            name=validated_data['name'],
            email=validated_data['email'],
            password=validated_data['password'],
        )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class StudentLoginSerializer(serializers.Serializer):
    secretCode = serializers.CharField(min_length=SECRET_CODE_LENGTH, max_length=SECRET_CODE_LENGTH)
    name = serializers.CharField(min_length=2, max_length=100, required=False)


class NotificationSettingsSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)


class AccessibilitySettingsSerializer(serializers.Serializer):
    fontSize = serializers.ChoiceField(choices=FONT_SIZE_CHOICES, required=False)
    highContrast = serializers.BooleanField(required=False)
    screenReader = serializers.BooleanField(required=False)


class SettingsSerializer(serializers.Serializer):
    theme = serializers.ChoiceField(choices=THEME_CHOICES, required=False)
    notifications = NotificationSettingsSerializer(required=False)
    accessibility = AccessibilitySettingsSerializer(required=False)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100, required=False)
    email = serializers.EmailField(required=False)
    school = serializers.CharField(max_length=200, required=False, allow_blank=True)
    gradeLevel = GradeField(required=False, source='grade_level')
    subject = serializers.CharField(max_length=100, required=False, allow_blank=True)
    avatar = serializers.CharField(max_length=500, required=False, allow_blank=True)
    settings = SettingsSerializer(required=False)

    def validate_email(self, value):
        return ensure_email_available(value, exclude=self.instance)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(min_length=6, write_only=True)


class StudentWriteSerializer(serializers.Serializer):
    """Create / update payload for a teacher's students."""
    name = serializers.CharField(min_length=2, max_length=100)
    grade = GradeField()
    email = serializers.EmailField(required=False, allow_blank=True)
    teacherId = serializers.UUIDField(required=False)
    isActive = serializers.BooleanField(required=False, source='is_active')

    def validate_email(self, value):
        if not value:
            return None
        return ensure_email_available(value, exclude=self.instance)

    def validate(self, attrs):
        principal = self.context['request'].user
        teacher_id = attrs.pop('teacherId', None)
        if principal.role == ROLE_TEACHER:
            attrs['teacher'] = principal
        elif teacher_id is not None:
            teacher = User.objects.teachers().filter(pk=teacher_id).first()
            if teacher is None:
                raise serializers.ValidationError({'teacherId': 'Teacher not found'})
            attrs['teacher'] = teacher
        elif self.instance is None:
            raise serializers.ValidationError({'teacherId': 'Teacher is required'})
        return attrs

    def create(self, validated_data):
        return User.objects.create_student(
            name=validated_data['name'],
            grade=validated_data['grade'],
            teacher=validated_data['teacher'],
            email=validated_data.get('email'),
        )

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        return instance
