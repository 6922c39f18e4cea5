from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.serializers.notifications import NotificationListQuerySerializer
from portal.services import notifications as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_notifications(
        request.user,
        read=q.validated_data.get('read'),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination, 'unreadCount': svc.unread_count(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_unread_count(request):
    return Response({'ok': True, 'data': {'count': svc.unread_count(request.user)}})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_recent(request):
    return Response({'ok': True, 'data': svc.recent(request.user)})

@api_view(['POST', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_read_all(request):
    count = svc.mark_all_read(request.user)
    return Response({'ok': True, 'message': 'All notifications marked as read', 'data': {'modifiedCount': count}})

@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_clear_read(request):
    count = svc.clear_read(request.user)
    return Response({'ok': True, 'message': 'Read notifications cleared', 'data': {'deletedCount': count}})

@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def notification_detail(request, pk):
    if request.method == 'DELETE':
        svc.delete_notification(request.user, pk)
        return Response({'ok': True, 'message': 'Notification deleted'})
    n = svc.mark_read(request.user, pk)
    return Response({'ok': True, 'data': svc.serialize_notification(n)})

@api_view(['POST', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_read(request, pk):
    n = svc.mark_read(request.user, pk)
    return Response({'ok': True, 'message': 'Notification marked as read', 'data': svc.serialize_notification(n)})
