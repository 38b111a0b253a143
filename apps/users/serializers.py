"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profil des angemeldeten Nutzers."""

    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = ["id", "email", "full_name", "phone", "role", "created_at", "updated_at"]
        read_only_fields = ["id", "email", "role", "created_at", "updated_at"]

    def validate_phone(self, value):  # type: ignore
        if not value:
            return None
        normalized = User.objects.normalize_phone(value)
        try:
            PHONE_VALIDATOR(normalized)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)
        clash = User.objects.filter(phone=normalized)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("Diese Telefonnummer wird bereits verwendet.")
        return normalized
