# PATH: apps/domains/results/views/grading_scale_views.py
from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.api.common.responses import created, envelope
from apps.core.permissions import IsManagerOrReadOnlyTeacher
from apps.domains.results.serializers import (
    GradingScaleCreateSerializer,
    GradingScaleSerializer,
    GradingScaleUpdateSerializer,
)
from apps.domains.results.services.grading_scale_service import GradingScaleService
from apps.domains.results.views.mixins import CampusScopedMixin


class GradingScaleListCreateView(CampusScopedMixin, APIView):
    """
    GET  /results/grading-scales/   active scales (default first)
    POST /results/grading-scales/   manager
    """
    permission_classes = [IsAuthenticated, IsManagerOrReadOnlyTeacher]

    def get(self, request):
        scales = GradingScaleService.list_for(self.principal, self.requested_campus_id)
        return envelope("Grading scales fetched.", GradingScaleSerializer(scales, many=True).data)

    def post(self, request):
        serializer = GradingScaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        scale = GradingScaleService.create(
            principal=self.principal,
            attrs=serializer.validated_data,
            requested_campus_id=self.requested_campus_or(serializer.validated_data.get("campus")),
        )
        return created("Grading scale created.", GradingScaleSerializer(scale).data)


class GradingScaleDetailView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrReadOnlyTeacher]

    def get(self, request, pk: int):
        scale = GradingScaleService.get(self.principal, int(pk), self.requested_campus_id)
        return envelope("Grading scale fetched.", GradingScaleSerializer(scale).data)

    def patch(self, request, pk: int):
        scale = GradingScaleService.get(self.principal, int(pk), self.requested_campus_id)
        serializer = GradingScaleUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        scale = GradingScaleService.update(
            principal=self.principal,
            scale=scale,
            attrs=serializer.validated_data,
        )
        return envelope("Grading scale updated.", GradingScaleSerializer(scale).data)
