import bleach
from rest_framework import serializers

class LoginSerializer(serializers.Serializer):
    # username or email
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username or email is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v

class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    username = serializers.CharField(max_length=150, required=False)
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    level = serializers.IntegerField(min_value=100, max_value=900, required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=['male', 'female'], required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_firstName(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate_lastName(self, v):
        return bleach.clean(v.strip(), strip=True)

class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)
    all = serializers.BooleanField(required=False, default=False)
