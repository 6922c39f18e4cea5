"""
Hostel management and room allocation.

A hostel stores its rooms as a JSON list::

    [{"number": "A101", "capacity": 4, "occupied": 1, "students": [12]}, ...]

``Hostel.occupied`` is the sum of the room occupancies and
``room['occupied']`` always equals ``len(room['students'])``.  Every
mutation of the room list happens inside a transaction that holds a row
lock on the hostel, so two concurrent allocations cannot both take the
last bed of a room.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from portal.exceptions import BadRequest, Forbidden, NotFound
from portal.models import AcademicSession, Hostel, HostelApplication, User
from portal.permissions import STUDENT
from portal.services.audit import log_action
from portal.services.common import iso, paginate, session_brief, user_brief
from portal.services.notifications import create_notification

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Room list helpers
# ---------------------------------------------------------------------------
def normalize_rooms(rooms: list[dict]) -> list[dict]:
    out = []
    seen = set()
    for room in rooms or []:
        number = str(room.get('number', '')).strip()
        if not number:
            raise BadRequest('Every room needs a number')
        if number in seen:
            raise BadRequest(f'Duplicate room number: {number}')
        seen.add(number)
        students = [int(s) for s in room.get('students') or []]
        capacity = int(room.get('capacity') or 0)
        if capacity < 1:
            raise BadRequest(f'Room {number} must have a capacity of at least 1')
        if len(students) > capacity:
            raise BadRequest(f'Room {number} has more students than its capacity')
        out.append({'number': number, 'capacity': capacity, 'occupied': len(students), 'students': students})
    return out


def recalculate_occupancy(hostel: Hostel) -> None:
    for room in hostel.rooms:
        room['occupied'] = len(room.get('students') or [])
    hostel.occupied = sum(r['occupied'] for r in hostel.rooms)


def find_room(hostel: Hostel, room_number: str) -> Optional[dict]:
    room_number = str(room_number)
    for room in hostel.rooms or []:
        if str(room.get('number')) == room_number:
            return room
    return None


def serialize_hostel(h: Hostel, include_rooms: bool = True) -> dict:
    data = {
        'id': h.id,
        'name': h.name,
        'gender': h.gender,
        'totalRooms': h.total_rooms,
        'capacity': h.capacity,
        'occupied': h.occupied,
        'available': max(0, h.capacity - h.occupied),
        'facilities': h.facilities,
        'isActive': h.is_active,
        'createdAt': iso(h.created_at),
    }
    if include_rooms:
        data['rooms'] = h.rooms
    return data


def serialize_application(a: HostelApplication) -> dict:
    return {
        'id': a.id,
        'student': user_brief(a.student),
        'session': session_brief(a.session),
        'status': a.status,
        'hostel': {'id': a.hostel.id, 'name': a.hostel.name} if a.hostel else None,
        'roomNumber': a.room_number or None,
        'roommatePreference': a.roommate_preference or None,
        'specialRequests': a.special_requests or None,
        'processedBy': user_brief(a.processed_by),
        'processedAt': iso(a.processed_at),
        'rejectionReason': a.rejection_reason or None,
        'allocatedAt': iso(a.allocated_at),
        'createdAt': iso(a.created_at),
    }


# ---------------------------------------------------------------------------
# Hostel CRUD
# ---------------------------------------------------------------------------
def create_hostel(*, name: str, gender: str, rooms: list[dict], facilities: list, total_rooms=None,
                  capacity=None, is_active: bool = True) -> Hostel:
    rooms = normalize_rooms(rooms)
    if any(r['students'] for r in rooms):
        raise BadRequest('New hostels cannot have allocated rooms')
    room_capacity = sum(r['capacity'] for r in rooms)
    hostel = Hostel.objects.create(
        name=name,
        gender=gender,
        rooms=rooms,
        facilities=facilities or [],
        total_rooms=total_rooms if total_rooms is not None else len(rooms),
        capacity=capacity if capacity is not None else room_capacity,
        occupied=0,
        is_active=is_active,
    )
    return hostel


def list_hostels(*, gender=None, available=None, page=1, page_size=None):
    qs = Hostel.objects.all()
    if gender:
        qs = qs.filter(gender=gender)
    if available:
        qs = qs.filter(occupied__lt=F('capacity'))
    items, pagination = paginate(qs.order_by('name', 'id'), page, page_size)
    return [serialize_hostel(h, include_rooms=False) for h in items], pagination


def get_hostel(pk: int) -> Hostel:
    hostel = Hostel.objects.filter(pk=pk).first()
    if not hostel:
        raise NotFound('Hostel not found')
    return hostel


@transaction.atomic
def update_hostel(pk: int, data: dict) -> Hostel:
    hostel = Hostel.objects.select_for_update().filter(pk=pk).first()
    if not hostel:
        raise NotFound('Hostel not found')
    for field in ('name', 'gender', 'facilities', 'is_active', 'total_rooms', 'capacity'):
        if field in data:
            setattr(hostel, field, data[field])
    if 'rooms' in data:
        new_rooms = {r['number']: r for r in normalize_rooms(data['rooms'])}
        # allocated students stay in their rooms
        for room in hostel.rooms:
            if room.get('students'):
                target = new_rooms.get(str(room['number']))
                if target is None:
                    raise BadRequest(f"Room {room['number']} has allocated students and cannot be removed")
                if target['capacity'] < len(room['students']):
                    raise BadRequest(f"Room {room['number']} capacity cannot drop below its occupancy")
                target['students'] = room['students']
        hostel.rooms = list(new_rooms.values())
        recalculate_occupancy(hostel)
        if 'total_rooms' not in data:
            hostel.total_rooms = len(hostel.rooms)
        if 'capacity' not in data:
            hostel.capacity = sum(r['capacity'] for r in hostel.rooms)
    if hostel.gender in ('male', 'female'):
        allocated = User.objects.filter(id__in=[s for r in hostel.rooms for s in r.get('students') or []])
        if allocated.exclude(gender=hostel.gender).exists():
            raise BadRequest('Hostel gender conflicts with allocated students')
    hostel.save()
    return hostel


def delete_hostel(pk: int) -> None:
    hostel = get_hostel(pk)
    if hostel.occupied > 0:
        raise BadRequest('Cannot delete hostel with allocated rooms')
    hostel.delete()


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------
def apply(student, *, session_id: int, roommate_preference: str = '', special_requests: str = '') -> HostelApplication:
    session = AcademicSession.objects.filter(pk=session_id).first()
    if not session:
        raise NotFound('Session not found')
    if HostelApplication.objects.filter(student=student, session=session).exists():
        raise BadRequest('You have already applied for hostel accommodation this session')
    return HostelApplication.objects.create(
        student=student,
        session=session,
        roommate_preference=roommate_preference or '',
        special_requests=special_requests or '',
    )


def _applications_qs():
    return HostelApplication.objects.select_related('student', 'session', 'hostel', 'processed_by')


def list_applications(user, *, status=None, session_id=None, page=1, page_size=None):
    qs = _applications_qs()
    if user.role == STUDENT:
        qs = qs.filter(student=user)
    if status:
        qs = qs.filter(status=status)
    if session_id:
        qs = qs.filter(session_id=session_id)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, page_size)
    return [serialize_application(a) for a in items], pagination


def get_application(user, pk: int) -> HostelApplication:
    app = _applications_qs().filter(pk=pk).first()
    if not app:
        raise NotFound('Application not found')
    if user.role == STUDENT and app.student_id != user.id:
        raise Forbidden('You are not authorized to view this application')
    return app


def my_application(student) -> HostelApplication:
    app = _applications_qs().filter(student=student).order_by('-created_at', '-id').first()
    if not app:
        raise NotFound('No hostel application found')
    return app


def _process(actor, pk: int, *, approve: bool, reason: str = '') -> HostelApplication:
    with transaction.atomic():
        app = HostelApplication.objects.select_for_update().filter(pk=pk).first()
        if not app:
            raise NotFound('Application not found')
        if app.status != HostelApplication.STATUS_PENDING:
            raise BadRequest('Application has already been processed')
        app.status = HostelApplication.STATUS_APPROVED if approve else HostelApplication.STATUS_REJECTED
        app.processed_by = actor
        app.processed_at = timezone.now()
        if not approve:
            app.rejection_reason = reason or 'No reason provided'
        app.save()
    log_action(user=actor, action='hostel_application_' + ('approve' if approve else 'reject'),
               object_type='hostel_application', object_id=app.id)
    if approve:
        create_notification(app.student_id, 'success', 'Hostel Application Approved',
                            'Your hostel application has been approved. Room allocation will follow.',
                            '/hostel')
    else:
        create_notification(app.student_id, 'warning', 'Hostel Application Rejected',
                            f'Your hostel application was rejected: {app.rejection_reason}', '/hostel')
    return _applications_qs().get(pk=app.pk)


def approve_application(actor, pk: int) -> HostelApplication:
    return _process(actor, pk, approve=True)


def reject_application(actor, pk: int, reason: str = '') -> HostelApplication:
    return _process(actor, pk, approve=False, reason=reason)


def allocate_room(actor, pk: int, *, hostel_id: int, room_number: str) -> HostelApplication:
    with transaction.atomic():
        app = HostelApplication.objects.select_for_update().select_related('student').filter(pk=pk).first()
        if not app:
            raise NotFound('Application not found')
        if app.status != HostelApplication.STATUS_APPROVED:
            raise BadRequest('Application must be approved before allocation')
        hostel = Hostel.objects.select_for_update().filter(pk=hostel_id).first()
        if not hostel:
            raise NotFound('Hostel not found')
        if hostel.gender != 'mixed' and app.student.gender != hostel.gender:
            raise BadRequest('Hostel gender does not match student gender')
        room = find_room(hostel, room_number)
        if room is None:
            raise NotFound('Room not found')
        if room['occupied'] >= room['capacity']:
            raise BadRequest('Room is full')

        room['students'].append(app.student_id)
        room['occupied'] += 1
        hostel.occupied += 1
        hostel.save(update_fields=['rooms', 'occupied', 'updated_at'])

        app.status = HostelApplication.STATUS_ALLOCATED
        app.hostel = hostel
        app.room_number = room['number']
        app.allocated_at = timezone.now()
        app.save(update_fields=['status', 'hostel', 'room_number', 'allocated_at'])

    logger.info('Allocated student %s to %s room %s', app.student_id, hostel.name, room['number'])
    log_action(user=actor, action='hostel_allocate', object_type='hostel_application', object_id=app.id,
               detail={'hostelId': hostel.id, 'room': room['number']})
    create_notification(app.student_id, 'success', 'Room Allocated',
                        f"You have been allocated {hostel.name}, Room {room['number']}.", '/hostel')
    return _applications_qs().get(pk=app.pk)


def room_details(hostel_id: int, room_number: str) -> dict:
    hostel = get_hostel(hostel_id)
    room = find_room(hostel, room_number)
    if room is None:
        raise NotFound('Room not found')
    students = User.objects.filter(id__in=room['students']).select_related('department')
    return {
        'hostel': {'id': hostel.id, 'name': hostel.name, 'gender': hostel.gender},
        'room': {**room, 'available': room['capacity'] - room['occupied']},
        'students': [{**user_brief(s), 'level': s.level,
                      'department': s.department.name if s.department else None} for s in students],
    }


def evict_student(actor, hostel_id: int, room_number: str, student_id: int) -> dict:
    with transaction.atomic():
        hostel = Hostel.objects.select_for_update().filter(pk=hostel_id).first()
        if not hostel:
            raise NotFound('Hostel not found')
        room = find_room(hostel, room_number)
        if room is None:
            raise NotFound('Room not found')
        if student_id not in room['students']:
            raise NotFound('Student not found in this room')
        room['students'] = [s for s in room['students'] if s != student_id]
        recalculate_occupancy(hostel)
        hostel.save(update_fields=['rooms', 'occupied', 'updated_at'])
        HostelApplication.objects.filter(
            student_id=student_id, hostel=hostel, room_number=room['number'],
            status=HostelApplication.STATUS_ALLOCATED,
        ).update(status=HostelApplication.STATUS_APPROVED, room_number='', hostel=None, allocated_at=None)

    log_action(user=actor, action='hostel_evict', object_type='hostel', object_id=hostel.id,
               detail={'room': room['number'], 'studentId': student_id})
    create_notification(
        student_id, 'warning', 'Hostel Update',
        f"You have been removed from {hostel.name}, room {room['number']}. "
        f"Please contact the administrator for more details.",
    )
    return {'room': room, 'hostel': {'id': hostel.id, 'occupied': hostel.occupied}}


def hostel_stats() -> dict:
    totals = Hostel.objects.aggregate(capacity=Sum('capacity'), occupied=Sum('occupied'), count=Count('id'))
    capacity = totals['capacity'] or 0
    occupied = totals['occupied'] or 0
    by_gender = {g: 0 for g, _ in Hostel.GENDER_CHOICES}
    for row in Hostel.objects.values('gender').annotate(n=Count('id')):
        by_gender[row['gender']] = row['n']
    application_stats = {s: 0 for s, _ in HostelApplication.STATUS_CHOICES}
    for row in HostelApplication.objects.values('status').annotate(n=Count('id')):
        application_stats[row['status']] = row['n']
    return {
        'totalHostels': totals['count'] or 0,
        'totalCapacity': capacity,
        'totalOccupied': occupied,
        'totalAvailable': capacity - occupied,
        'occupancyRate': round(occupied / capacity * 100, 2) if capacity else 0,
        'byGender': by_gender,
        'applicationStats': application_stats,
    }
