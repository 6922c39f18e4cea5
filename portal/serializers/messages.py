from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class MessageListQuerySerializer(PageQuerySerializer):
    type = serializers.CharField(max_length=10, required=False, default='inbox')

class MessageSendSerializer(serializers.Serializer):
    recipientId = serializers.IntegerField(min_value=1)
    subject = serializers.CharField(max_length=255)
    body = serializers.CharField(max_length=10000)
    attachments = serializers.ListField(child=serializers.CharField(max_length=512), required=False, default=list)
    threadId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
