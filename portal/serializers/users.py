import bleach
from rest_framework import serializers

from portal.serializers.common import PageQuerySerializer

class UserListQuerySerializer(PageQuerySerializer):
    role = serializers.ChoiceField(choices=['student', 'lecturer', 'hod', 'admin', 'bursary'], required=False)
    department = serializers.IntegerField(min_value=1, required=False)
    search = serializers.CharField(max_length=64, required=False)
    isActive = serializers.BooleanField(required=False, allow_null=True, default=None)

class UserUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    avatar = serializers.CharField(max_length=512, required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=['male', 'female'], required=False)
    level = serializers.IntegerField(min_value=100, max_value=900, required=False, allow_null=True)
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    FIELD_MAP = {
        'firstName': 'first_name',
        'lastName': 'last_name',
        'phone': 'phone',
        'address': 'address',
        'avatar': 'avatar',
        'gender': 'gender',
        'level': 'level',
        'departmentId': 'department_id',
    }

    def validate_address(self, v):
        return bleach.clean(v.strip(), strip=True)

    def to_model_fields(self) -> dict:
        return {self.FIELD_MAP[k]: v for k, v in self.validated_data.items()}

class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=8)

class RoleSerializer(serializers.Serializer):
    role = serializers.CharField(max_length=10)

class StudentsByDepartmentQuerySerializer(PageQuerySerializer):
    level = serializers.IntegerField(min_value=100, required=False)

class UserSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    role = serializers.ChoiceField(choices=['student', 'lecturer', 'hod', 'admin', 'bursary'], required=False)
    limit = serializers.IntegerField(min_value=1, max_value=50, required=False, default=10)

class DeactivateAccountSerializer(serializers.Serializer):
    password = serializers.CharField(required=False, allow_blank=True, default='')
