from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class NotificationListQuerySerializer(PageQuerySerializer):
    read = serializers.BooleanField(required=False, allow_null=True, default=None)
