"""
User administration and profile views.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsAcademicStaff, IsAdminRole
from portal.serializers.users import (
    ChangePasswordSerializer,
    DeactivateAccountSerializer,
    RoleSerializer,
    StudentsByDepartmentQuerySerializer,
    UserListQuerySerializer,
    UserSearchQuerySerializer,
    UserUpdateSerializer,
)
from portal.services import users as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, pagination = svc.list_users(
        role=vd.get('role'),
        department=vd.get('department'),
        search=vd.get('search'),
        is_active=vd.get('isActive'),
        page=vd.get('page', 1),
        page_size=vd.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_user(svc.get_user_for(request.user, pk))})
    s = UserUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_user(request.user, pk, s.to_model_fields())
    return Response({'ok': True, 'message': 'User updated successfully', 'data': svc.serialize_user(user)})

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.change_password(
        request.user,
        current_password=s.validated_data['currentPassword'],
        new_password=s.validated_data['newPassword'],
    )
    return Response({'ok': True, 'message': 'Password changed successfully'})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_deactivate(request, pk):
    user = svc.set_active(request.user, pk, False)
    return Response({'ok': True, 'message': 'User deactivated', 'data': svc.serialize_user(user)})

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_activate(request, pk):
    user = svc.set_active(request.user, pk, True)
    return Response({'ok': True, 'message': 'User activated', 'data': svc.serialize_user(user)})

@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_role(request, pk):
    s = RoleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.update_role(request.user, pk, s.validated_data['role'])
    return Response({'ok': True, 'message': 'User role updated', 'data': svc.serialize_user(user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_stats(request):
    return Response({'ok': True, 'data': svc.user_stats()})

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAcademicStaff])
def department_students(request, department_id):
    q = StudentsByDepartmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.students_by_department(
        department_id,
        level=q.validated_data.get('level'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_search(request):
    q = UserSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = svc.search_users(q.validated_data['q'], role=q.validated_data.get('role'), limit=q.validated_data['limit'])
    return Response({'ok': True, 'data': data})

@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def my_profile(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_user(svc.get_user(request.user.id))})
    s = UserUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_user(request.user, request.user.id, s.to_model_fields())
    return Response({'ok': True, 'message': 'Profile updated successfully', 'data': svc.serialize_user(user)})

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deactivate_my_account(request):
    s = DeactivateAccountSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.deactivate_own_account(request.user, s.validated_data['password'])
    return Response({'ok': True, 'message': 'Account deactivated'})
