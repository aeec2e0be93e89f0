"""
Accounts models - students, teachers and admins of the platform
"""
import uuid

from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError
from django.db import models

from .codes import generate_secret_code

ROLE_STUDENT = 'student'
ROLE_TEACHER = 'teacher'
ROLE_ADMIN = 'admin'

ROLE_CHOICES = [
    (ROLE_STUDENT, 'Student'),
    (ROLE_TEACHER, 'Teacher'),
    (ROLE_ADMIN, 'Admin'),
]

GRADE_LEVELS = [str(n) for n in range(1, 9)]
GRADE_CHOICES = [(grade, f'Grade {grade}') for grade in GRADE_LEVELS]

THEME_CHOICES = ['light', 'dark', 'auto']
FONT_SIZE_CHOICES = ['small', 'medium', 'large']

SECRET_CODE_ATTEMPTS = 20


def normalize_grade(value):
    """
    Reduce the grade spellings clients send ("3", 3, "3rd", "Grade 3")
    to the stored form ("3"). Unknown values are returned stripped so that
    choice validation can reject them.
    """
    if value is None:
        return ''
    text = str(value).strip().lower()
    if text.startswith('grade'):
        text = text[len('grade'):].strip()
    for suffix in ('st', 'nd', 'rd', 'th'):
        if text.endswith(suffix) and text[:-len(suffix)].isdigit():
            text = text[:-len(suffix)]
            break
    return text


def default_settings():
    return {
        'theme': 'light',
        'notifications': {'email': True, 'push': True},
        'accessibility': {'fontSize': 'medium', 'highContrast': False, 'screenReader': False},
    }


class UserQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def students(self):
        return self.filter(role=ROLE_STUDENT)

    def teachers(self):
        return self.filter(role=ROLE_TEACHER)

    def students_of(self, principal):
        """Students the principal may see: all for admins, own roster for teachers, self for students."""
        students = self.students()
        if principal.role == ROLE_ADMIN:
            return students
        if principal.role == ROLE_TEACHER:
            return students.filter(teacher=principal)
        return students.filter(pk=principal.pk)


class UserManager(models.Manager.from_queryset(UserQuerySet)):
    """Role-specific constructors; each validates its variant before saving."""

    def create_student(self, name, grade, teacher, email=None, **extra):
        user = self.model(name=name, grade=grade, teacher=teacher, email=email, role=ROLE_STUDENT, **extra)
        user.save()
        return user

    def create_teacher(self, name, email, password, grade_level, subject, **extra):
        user = self.model(
            name=name, email=email, role=ROLE_TEACHER,
            grade_level=grade_level, subject=subject, **extra
        )
        user.set_password(password)
        user.save()
        return user

    def create_admin(self, name, email, password, **extra):
        user = self.model(name=name, email=email, role=ROLE_ADMIN, **extra)
        user.set_password(password)
        user.save()
        return user

    def unique_secret_code(self):
        """A fresh code not held by any user, active or not."""
        for _ in range(SECRET_CODE_ATTEMPTS):
            code = generate_secret_code()
            if not self.filter(secret_code=code).exists():
                return code
        raise RuntimeError('Could not generate a unique secret code')


class User(models.Model):
    """
    A platform user.

    Students authenticate with a secret code and belong to exactly one
    teacher. Teachers and admins authenticate with email and password.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True, null=True, blank=True)
    password_hash = models.CharField(max_length=255, blank=True, default='')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STUDENT)

    # Student fields
    grade = models.CharField(max_length=2, choices=GRADE_CHOICES, blank=True, default='')
    secret_code = models.CharField(max_length=9, unique=True, null=True, blank=True)
    teacher = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='students',
    )

    # Teacher fields
    school = models.CharField(max_length=200, blank=True, default='')
    grade_level = models.CharField(max_length=2, choices=GRADE_CHOICES, blank=True, default='')
    subject = models.CharField(max_length=100, blank=True, default='')

    avatar = models.CharField(max_length=500, blank=True, default='')
    is_active = models.BooleanField(default=True)
    last_login = models.DateTimeField(null=True, blank=True)
    settings = models.JSONField(default=default_settings, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    # Request principal protocol used by DRF permissions
    is_authenticated = True
    is_anonymous = False

    class Meta:
        db_table = 'users'
        ordering = ['name']
        indexes = [
            models.Index(fields=['role', 'is_active']),
            models.Index(fields=['teacher', 'is_active']),
        ]

    def __str__(self):
        return f'{self.name} ({self.role})'

    @property
    def is_student(self):
        return self.role == ROLE_STUDENT

    @property
    def is_teacher(self):
        return self.role == ROLE_TEACHER

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def set_password(self, raw_password):
        self.password_hash = make_password(raw_password)

    def check_password(self, raw_password):
        if not self.password_hash:
            return False
        return check_password(raw_password, self.password_hash)

    def validate_role_fields(self):
        """Raise ValidationError unless the fields required by the role are present."""
        errors = {}
        if self.role not in dict(ROLE_CHOICES):
            errors['role'] = f'Unknown role "{self.role}"'
        elif self.role == ROLE_STUDENT:
            if self.grade not in GRADE_LEVELS:
                errors['grade'] = 'Students need a grade between 1 and 8'
            if not self.teacher_id:
                errors['teacher'] = 'Students must belong to a teacher'
            elif self.teacher.role != ROLE_TEACHER:
                errors['teacher'] = 'Assigned teacher must have the teacher role'
        else:
            if not self.email:
                errors['email'] = 'Email is required'
            if not self.password_hash:
                errors['password'] = 'Password is required'
            if self.teacher_id:
                errors['teacher'] = 'Only students belong to a teacher'
            if self.role == ROLE_TEACHER:
                if self.grade_level not in GRADE_LEVELS:
                    errors['grade_level'] = 'Grade level is required for teachers'
                if not self.subject:
                    errors['subject'] = 'Subject is required for teachers'
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower() if self.email else None
        self.grade = normalize_grade(self.grade)
        self.grade_level = normalize_grade(self.grade_level)
        self.validate_role_fields()

        if self.is_student and not self.secret_code:
            self.secret_code = User.objects.unique_secret_code()
            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {'secret_code'}
        super().save(*args, **kwargs)

    def public_profile(self):
        from .serializers import UserSerializer
        return UserSerializer(self).data
