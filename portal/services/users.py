"""Account management: profiles, roles, activation and directory search."""
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound, Unauthorized
from portal.models import Department, User
from portal.permissions import ADMIN, ROLES, STUDENT
from portal.services.audit import log_action
from portal.services.common import iso, paginate

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('first_name', 'last_name', 'phone', 'address', 'avatar', 'gender', 'level', 'department_id')
SELF_EDITABLE_FIELDS = ('first_name', 'last_name', 'phone', 'address', 'avatar')


def serialize_user(u: User) -> dict:
    dept = u.department
    return {
        'id': u.id,
        'username': u.username,
        'email': u.email,
        'firstName': u.first_name,
        'lastName': u.last_name,
        'fullName': u.full_name,
        'role': u.role,
        'studentId': u.student_id,
        'department': {'id': dept.id, 'name': dept.name, 'code': dept.code} if dept else None,
        'level': u.level,
        'gender': u.gender or None,
        'phone': u.phone or None,
        'address': u.address or None,
        'avatar': u.avatar or None,
        'isActive': u.is_active,
        'lastLogin': iso(u.last_login),
        'dateJoined': iso(u.date_joined),
    }


def generate_student_id(year: int | None = None) -> str:
    """Next free ``ST/<nnnn>/<year>`` identifier."""
    year = year or timezone.now().year
    counter = User.objects.filter(student_id__endswith=f'/{year}').count() + 1
    while True:
        candidate = f'ST/{counter:04d}/{year}'
        if not User.objects.filter(student_id=candidate).exists():
            return candidate
        counter += 1


def _qs():
    return User.objects.select_related('department')


def get_user(pk: int) -> User:
    user = _qs().filter(pk=pk).first()
    if not user:
        raise NotFound('User not found')
    return user


def list_users(*, role=None, department=None, search=None, is_active=None, page=1, page_size=None):
    qs = _qs()
    if role:
        qs = qs.filter(role=role)
    if department:
        qs = qs.filter(department_id=department)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if search:
        qs = qs.filter(
            Q(first_name__icontains=search) | Q(last_name__icontains=search)
            | Q(email__icontains=search) | Q(student_id__icontains=search)
        )
    items, pagination = paginate(qs.order_by('-date_joined', '-id'), page, page_size)
    return [serialize_user(u) for u in items], pagination


def get_user_for(actor, pk: int) -> User:
    if actor.role == STUDENT and actor.id != pk:
        raise Forbidden('You can only view your own profile')
    return get_user(pk)


def update_user(actor, pk: int, data: dict) -> User:
    if actor.role != ADMIN and actor.id != pk:
        raise Forbidden('You can only update your own profile')
    user = get_user(pk)
    allowed = PROFILE_FIELDS if actor.role == ADMIN else SELF_EDITABLE_FIELDS
    dept_id = data.get('department_id')
    if dept_id is not None and 'department_id' in allowed and not Department.objects.filter(pk=dept_id).exists():
        raise NotFound('Department not found')
    changed = [f for f in allowed if f in data]
    for field in changed:
        setattr(user, field, data[field])
    if changed:
        user.save(update_fields=changed)
    return get_user(pk)


def change_password(user, *, current_password: str, new_password: str) -> None:
    if not user.check_password(current_password):
        raise Unauthorized('Current password is incorrect')
    if current_password == new_password:
        raise BadRequest('New password must be different from the current password')
    user.set_password(new_password)
    user.save(update_fields=['password'])
    log_action(user=user, action='password_change', object_type='user', object_id=user.id)


def set_active(actor, pk: int, active: bool) -> User:
    user = get_user(pk)
    if user.id == actor.id and not active:
        raise BadRequest('You cannot deactivate your own account here')
    user.is_active = active
    user.save(update_fields=['is_active'])
    log_action(user=actor, action='user_activate' if active else 'user_deactivate',
               object_type='user', object_id=user.id)
    return user


def update_role(actor, pk: int, role: str) -> User:
    if role not in ROLES:
        raise BadRequest(f'Invalid role: {role}')
    with transaction.atomic():
        user = _qs().select_for_update().filter(pk=pk).first()
        if not user:
            raise NotFound('User not found')
        previous = user.role
        user.role = role
        update_fields = ['role']
        if role == STUDENT and not user.student_id:
            user.student_id = generate_student_id()
            update_fields.append('student_id')
        user.save(update_fields=update_fields)
    logger.info('Role of user %s changed from %s to %s by %s', user.id, previous, role, actor.id)
    log_action(user=actor, action='user_role_change', object_type='user', object_id=user.id,
               detail={'from': previous, 'to': role})
    return get_user(pk)


def user_stats() -> dict:
    rows = (User.objects.values('role')
            .annotate(count=Count('id'), active=Count('id', filter=Q(is_active=True)))
            .order_by('role'))
    by_role = [
        {'role': r['role'], 'count': r['count'], 'active': r['active'], 'inactive': r['count'] - r['active']}
        for r in rows
    ]
    total = sum(r['count'] for r in by_role)
    active = sum(r['active'] for r in by_role)
    return {'byRole': by_role, 'overall': {'total': total, 'active': active, 'inactive': total - active}}


def students_by_department(department_id: int, *, level=None, page=1, page_size=None):
    if not Department.objects.filter(pk=department_id).exists():
        raise NotFound('Department not found')
    qs = _qs().filter(role=STUDENT, department_id=department_id, is_active=True)
    if level:
        qs = qs.filter(level=level)
    items, pagination = paginate(qs.order_by('last_name', 'first_name', 'id'), page, page_size)
    return [serialize_user(u) for u in items], pagination


def search_users(q: str, *, role=None, limit: int = 10) -> list[dict]:
    q = (q or '').strip()
    if len(q) < 2:
        raise BadRequest('Search query must be at least 2 characters')
    qs = _qs().filter(is_active=True).filter(
        Q(first_name__icontains=q) | Q(last_name__icontains=q)
        | Q(email__icontains=q) | Q(student_id__icontains=q) | Q(username__icontains=q)
    )
    if role:
        qs = qs.filter(role=role)
    limit = min(max(int(limit or 10), 1), 50)
    return [
        {'id': u.id, 'name': u.full_name, 'email': u.email, 'role': u.role,
         'studentId': u.student_id, 'avatar': u.avatar or None}
        for u in qs.order_by('first_name', 'last_name')[:limit]
    ]


def deactivate_own_account(user, password: str) -> None:
    if not password:
        raise BadRequest('Password confirmation is required')
    if not user.check_password(password):
        raise Unauthorized('Password is incorrect')
    user.is_active = False
    user.save(update_fields=['is_active'])
    log_action(user=user, action='account_self_deactivate', object_type='user', object_id=user.id)
