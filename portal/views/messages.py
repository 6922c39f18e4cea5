from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.serializers.messages import MessageListQuerySerializer, MessageSendSerializer
from portal.services import messages as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def message_list(request):
    if request.method == 'POST':
        s = MessageSendSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        message = svc.send_message(
            request.user,
            recipient_id=vd['recipientId'],
            subject=vd['subject'],
            body=vd['body'],
            attachments=vd['attachments'],
            thread_id=vd.get('threadId'),
        )
        return Response({'ok': True, 'message': 'Message sent successfully', 'data': svc.serialize_message(message)},
                        status=201)
    q = MessageListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data, pagination = svc.list_messages(
        request.user,
        box=q.validated_data['type'],
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination, 'unreadCount': svc.unread_count(request.user)})

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def message_unread_count(request):
    return Response({'ok': True, 'data': {'count': svc.unread_count(request.user)}})

@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def message_detail(request, pk):
    if request.method == 'DELETE':
        svc.delete_message(request.user, pk)
        return Response({'ok': True, 'message': 'Message deleted successfully'})
    return Response({'ok': True, 'data': svc.get_thread(request.user, pk)})

@api_view(['POST', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def message_read(request, pk):
    message = svc.mark_as_read(request.user, pk)
    return Response({'ok': True, 'message': 'Message marked as read', 'data': svc.serialize_message(message)})
