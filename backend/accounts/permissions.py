"""
Access control policy - role gates, content ownership and student access.

The predicates work on entities that are already loaded; the DRF
permission classes below only wire them into views.
"""
from rest_framework import permissions

from .models import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User


def has_role(principal, *roles):
    return bool(principal) and getattr(principal, 'is_authenticated', False) and principal.role in roles


def owns_content(principal, resource):
    """Teachers own what they created; admins own everything."""
    return principal.role == ROLE_ADMIN or resource.created_by_id == principal.id


def can_access_student(principal, student):
    """Self, the student's teacher, or an admin."""
    if principal.role == ROLE_ADMIN:
        return True
    if principal.id == student.id:
        return True
    return principal.role == ROLE_TEACHER and student.teacher_id == principal.id


def can_view_content(principal, resource):
    if principal.role == ROLE_ADMIN:
        return True
    if principal.role == ROLE_TEACHER:
        return resource.created_by_id == principal.id
    return resource.is_visible_to_student(principal)


class RolePermission(permissions.BasePermission):
    roles = ()
    message = 'Access denied.'

    def has_permission(self, request, view):
        return has_role(request.user, *self.roles)


class IsStudent(RolePermission):
    """Only students"""
    roles = (ROLE_STUDENT,)
    message = 'Access denied. Student access required.'


class IsTeacher(RolePermission):
    """Only teachers"""
    roles = (ROLE_TEACHER,)
    message = 'Access denied. Teacher access required.'


class IsAdmin(RolePermission):
    """Only admins"""
    roles = (ROLE_ADMIN,)
    message = 'Access denied. Admin access required.'


class IsTeacherOrAdmin(RolePermission):
    """Only teachers and admins"""
    roles = (ROLE_TEACHER, ROLE_ADMIN)
    message = 'Access denied. Teacher or admin access required.'


class IsNotStudent(RolePermission):
    roles = (ROLE_TEACHER, ROLE_ADMIN)
    message = 'Access denied. Students do not have a password.'


class CanManageContent(IsTeacherOrAdmin):
    """
    Teacher can only manage content they created.
    Admin can manage any content.
    """
    def has_object_permission(self, request, view, obj):
        return owns_content(request.user, obj)


class CanAccessStudentRecord(permissions.BasePermission):
    """
    Students reach their own records, teachers the records of their
    students, admins everything. Works on users and on anything carrying
    a ``student``.
    """
    message = 'Access denied.'

    def has_permission(self, request, view):
        return has_role(request.user, ROLE_STUDENT, ROLE_TEACHER, ROLE_ADMIN)

    def has_object_permission(self, request, view, obj):
        student = obj if isinstance(obj, User) else obj.student
        return can_access_student(request.user, student)
