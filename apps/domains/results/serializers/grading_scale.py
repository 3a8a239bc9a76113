# PATH: apps/domains/results/serializers/grading_scale.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Campus
from apps.domains.results.models import GradingScale


class GradingScaleSerializer(serializers.ModelSerializer):
    class Meta:
        model = GradingScale
        fields = [
            "id",
            "campus",
            "name",
            "description",
            "system",
            "max_score",
            "pass_mark",
            "bands",
            "is_default",
            "is_active",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BandField(serializers.DictField):
    """band 검증은 모델 normalize() 에서 (overlap / 범위 / 정렬)"""


class GradingScaleCreateSerializer(serializers.Serializer):
    campus = serializers.PrimaryKeyRelatedField(queryset=Campus.objects.all(), required=False)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=300, required=False, allow_blank=True)
    system = serializers.ChoiceField(choices=GradingScale.System.choices)
    max_score = serializers.DecimalField(max_digits=10, decimal_places=4, min_value=Decimal("0.0001"))
    pass_mark = serializers.DecimalField(max_digits=10, decimal_places=4, min_value=Decimal("0"))
    bands = serializers.ListField(child=BandField(), required=False, default=list)
    is_default = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs["pass_mark"] > attrs["max_score"]:
            raise serializers.ValidationError({"pass_mark": ["pass_mark cannot exceed max_score."]})
        return attrs


class GradingScaleUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(max_length=300, required=False, allow_blank=True)
    pass_mark = serializers.DecimalField(max_digits=10, decimal_places=4, min_value=Decimal("0"), required=False)
    bands = serializers.ListField(child=BandField(), required=False)
    is_default = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)
