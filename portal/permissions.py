"""
Role based permission classes.

Every account carries exactly one role; the classes below gate views
on that role.  Object level rules (e.g. a student may only read their
own payment) live in the services.
"""
from rest_framework.permissions import BasePermission

STUDENT = 'student'
LECTURER = 'lecturer'
HOD = 'hod'
ADMIN = 'admin'
BURSARY = 'bursary'

ROLES = {STUDENT, LECTURER, HOD, ADMIN, BURSARY}
STAFF_ROLES = {LECTURER, HOD, ADMIN, BURSARY}
ACADEMIC_ROLES = {LECTURER, HOD, ADMIN}
FINANCE_ROLES = {BURSARY, ADMIN}


def has_role(user, *roles: str) -> bool:
    return bool(user and user.is_authenticated and getattr(user, 'role', None) in roles)


class RolePermission(BasePermission):
    """Allow access only to users whose role is in ``roles``."""
    roles: set[str] = set()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return has_role(getattr(request, 'user', None), *self.roles)


class IsStudent(RolePermission):
    roles = {STUDENT}


class IsStaff(RolePermission):
    """Any non-student account."""
    roles = STAFF_ROLES


class IsAcademicStaff(RolePermission):
    """Lecturers, heads of department and administrators."""
    roles = ACADEMIC_ROLES


class IsLecturerOrAdmin(RolePermission):
    roles = {LECTURER, ADMIN}


class IsHodOrAdmin(RolePermission):
    roles = {HOD, ADMIN}


class IsAdminRole(RolePermission):
    roles = {ADMIN}


class IsBursaryOrAdmin(RolePermission):
    roles = FINANCE_ROLES
