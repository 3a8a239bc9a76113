# PATH: apps/domains/results/views/result_views.py
"""
Result CRUD + ingestion

GET    /results/               목록 (filter + pagination)
POST   /results/               DRAFT 생성
GET    /results/<id>/          상세 (audit_entries 포함)
PUT    /results/<id>/          수정 (can_modify)
DELETE /results/<id>/          soft delete
POST   /results/bulk/          한 평가 일괄 입력 (207)
POST   /results/upload-csv/    CSV / XLSX import (207)
"""
from __future__ import annotations

from django.conf import settings
from rest_framework import generics
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle, UserRateThrottle
from rest_framework.views import APIView

from apps.api.common.responses import created, envelope, multi_status
from apps.core.permissions import IsManagerOrTeacher
from apps.domains.results.filters import ResultFilter
from apps.domains.results.serializers import (
    BulkCreateSerializer,
    ResultCreateSerializer,
    ResultDetailSerializer,
    ResultSerializer,
    ResultUpdateSerializer,
    UploadSerializer,
)
from apps.domains.results.services.ingestion_service import IngestionService
from apps.domains.results.services.result_service import (
    ResultService,
    get_visible_result,
    visible_results,
)
from apps.domains.results.utils.tabular import read_entries
from apps.domains.results.views.mixins import CampusScopedMixin


class ResultListCreateView(CampusScopedMixin, generics.ListAPIView):
    serializer_class = ResultSerializer
    filterset_class = ResultFilter

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsManagerOrTeacher()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return (
            visible_results(self.principal, self.requested_campus_id)
            .select_related("student", "subject", "school_class")
            .order_by("-created_at", "-id")
        )

    def post(self, request):
        serializer = ResultCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ResultService.create(
            principal=self.principal,
            data=serializer.validated_data,
            requested_campus_id=self.requested_campus_or(serializer.validated_data.get("campus")),
        )
        return created("Result created.", ResultSerializer(result).data)


class ResultDetailView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated]

    def _get(self, pk):
        return get_visible_result(self.principal, int(pk), self.requested_campus_id)

    def get(self, request, pk: int):
        result = self._get(pk)
        return envelope("Result fetched.", ResultDetailSerializer(result).data)

    def put(self, request, pk: int):
        result = self._get(pk)
        serializer = ResultUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ResultService.update(
            principal=self.principal,
            result=result,
            data=serializer.validated_data,
        )
        return envelope("Result updated.", ResultSerializer(result).data)

    def delete(self, request, pk: int):
        result = self._get(pk)
        ResultService.delete(principal=self.principal, result=result)
        return envelope("Result deleted.")


class ResultBulkCreateView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]

    def post(self, request):
        serializer = BulkCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        entries = data.pop("results")

        report = IngestionService.create_bulk(
            principal=self.principal,
            header=data,
            entries=entries,
            requested_campus_id=self.requested_campus_or(data.get("campus")),
        )
        return multi_status("Bulk create completed.", report)


class ResultUploadView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]
    parser_classes = [MultiPartParser, FormParser]
    throttle_classes = [UserRateThrottle, ScopedRateThrottle]
    throttle_scope = "uploads"

    def post(self, request):
        serializer = UploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        upload = data.pop("file")

        limit = getattr(settings, "RESULTS_UPLOAD_MAX_BYTES", 5 * 1024 * 1024)
        if upload.size > limit:
            raise ValidationError({"file": [f"File exceeds the {limit} byte limit."]})

        entries = read_entries(upload)

        report = IngestionService.create_bulk(
            principal=self.principal,
            header=data,
            entries=entries,
            requested_campus_id=self.requested_campus_or(data.get("campus")),
        )
        return multi_status("Import completed.", report)
