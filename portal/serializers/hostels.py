from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class RoomSerializer(serializers.Serializer):
    number = serializers.CharField(max_length=20)
    capacity = serializers.IntegerField(min_value=1, max_value=20)

class HostelCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    gender = serializers.ChoiceField(choices=['male', 'female', 'mixed'])
    rooms = RoomSerializer(many=True, required=False)
    facilities = serializers.ListField(child=serializers.CharField(max_length=64), required=False)
    totalRooms = serializers.IntegerField(min_value=0, required=False)
    capacity = serializers.IntegerField(min_value=0, required=False)
    isActive = serializers.BooleanField(required=False, default=True)

    def validate_rooms(self, v):
        numbers = [r['number'] for r in v]
        if len(numbers) != len(set(numbers)):
            raise serializers.ValidationError('Room numbers must be unique')
        return [dict(r) for r in v]

class HostelUpdateSerializer(HostelCreateSerializer):
    name = serializers.CharField(max_length=255, required=False)
    gender = serializers.ChoiceField(choices=['male', 'female', 'mixed'], required=False)
    isActive = serializers.BooleanField(required=False)

class HostelListQuerySerializer(PageQuerySerializer):
    gender = serializers.ChoiceField(choices=['male', 'female', 'mixed'], required=False)
    available = serializers.BooleanField(required=False, allow_null=True, default=None)

class HostelApplySerializer(serializers.Serializer):
    sessionId = serializers.IntegerField(min_value=1)
    roommatePreference = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    specialRequests = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

class ApplicationListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=['pending', 'approved', 'rejected', 'allocated'], required=False)
    session = serializers.IntegerField(min_value=1, required=False)

class ApplicationRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

class AllocateRoomSerializer(serializers.Serializer):
    hostelId = serializers.IntegerField(min_value=1)
    roomNumber = serializers.CharField(max_length=20)

class EvictSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(min_value=1)
