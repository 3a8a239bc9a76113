# PATH: apps/domains/results/views/workflow_views.py
"""
Workflow endpoints

POST  /results/<id>/submit/        DRAFT → SUBMITTED (teacher: own only)
POST  /results/submit-batch/       bulk submit
POST  /results/<id>/return/        SUBMITTED → DRAFT (manager)
PATCH /results/<id>/publish/       SUBMITTED → PUBLISHED (manager, retake-atomic)
PATCH /results/publish-batch/      bulk publish (행 단위)
PATCH /results/<id>/archive/       PUBLISHED → ARCHIVED (manager)
PATCH /results/lock-semester/      lock + final transcripts (manager)
PATCH /results/audit/<id>/         post-publication correction (ADMIN / DIRECTOR)
"""
from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.api.common.responses import envelope
from apps.core.permissions import IsGlobalRole, IsManager, IsManagerOrTeacher
from apps.domains.results.serializers import (
    AuditCorrectionSerializer,
    BatchFilterSerializer,
    LockSemesterSerializer,
    ResultDetailSerializer,
    ResultSerializer,
    ReturnSerializer,
)
from apps.domains.results.services.workflow_service import WorkflowService
from apps.domains.results.views.mixins import CampusScopedMixin, client_ip


class ResultSubmitView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]

    def post(self, request, pk: int):
        result = WorkflowService.submit(
            principal=self.principal,
            result_id=int(pk),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Result submitted.", ResultSerializer(result).data)


class ResultSubmitBatchView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]

    def post(self, request):
        serializer = BatchFilterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        count = WorkflowService.submit_batch(
            principal=self.principal,
            filters=serializer.validated_data,
            requested_campus_id=self.requested_campus_id,
        )
        return envelope(f"{count} result(s) submitted.", {"submitted": count})


class ResultReturnView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def post(self, request, pk: int):
        serializer = ReturnSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WorkflowService.return_to_draft(
            principal=self.principal,
            result_id=int(pk),
            reason=serializer.validated_data.get("reason", ""),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Result returned to draft.", ResultSerializer(result).data)


class ResultPublishView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def patch(self, request, pk: int):
        result = WorkflowService.publish(
            principal=self.principal,
            result_id=int(pk),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Result published.", ResultSerializer(result).data)


class ResultPublishBatchView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def patch(self, request):
        serializer = BatchFilterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        report = WorkflowService.publish_batch(
            principal=self.principal,
            filters=serializer.validated_data,
            requested_campus_id=self.requested_campus_id,
        )
        return envelope(f"{report['published']} result(s) published.", report)


class ResultArchiveView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def patch(self, request, pk: int):
        result = WorkflowService.archive(
            principal=self.principal,
            result_id=int(pk),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Result archived.", ResultSerializer(result).data)


class LockSemesterView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def patch(self, request):
        serializer = LockSemesterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        report = WorkflowService.lock_semester(
            principal=self.principal,
            academic_year=data["academic_year"],
            semester=data["semester"],
            requested_campus_id=self.requested_campus_or(data.get("campus")),
        )
        return envelope(
            f"Semester {data['academic_year']} {data['semester']} locked.",
            report,
        )


class AuditCorrectionView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsGlobalRole]

    def patch(self, request, pk: int):
        serializer = AuditCorrectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        reason = data.pop("reason")

        result = WorkflowService.audit_correction(
            principal=self.principal,
            result_id=int(pk),
            reason=reason,
            changes=data,
            ip_address=client_ip(request),
            requested_campus_id=self.requested_campus_id,
        )
        result.refresh_from_db()
        return envelope("Result corrected.", ResultDetailSerializer(result).data)
