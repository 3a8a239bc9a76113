# PATH: apps/domains/results/views/analytics_views.py
"""
Analytics + public verification

GET /results/statistics/<class_id>/      ?subject&evaluation_title&academic_year&semester
GET /results/retake-list/<class_id>/     ?academic_year&semester[&subject]
GET /results/campus/overview/            ?academic_year&semester
GET /results/transcript/<student_id>/    ?academic_year
GET /results/verify/<token>/             PUBLIC
GET /results/verify-transcript/<token>/  PUBLIC
"""
from __future__ import annotations

from rest_framework import serializers
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.api.common.responses import envelope
from apps.core.permissions import IsManager, IsManagerOrTeacher
from apps.domains.results.models import Semester
from apps.domains.results.models.result import ACADEMIC_YEAR_RE
from apps.domains.results.services import analytics_service
from apps.domains.results.views.mixins import CampusScopedMixin


class ClassStatisticsQuerySerializer(serializers.Serializer):
    subject = serializers.IntegerField(min_value=1)
    evaluation_title = serializers.CharField(max_length=200)
    academic_year = serializers.RegexField(ACADEMIC_YEAR_RE)
    semester = serializers.ChoiceField(choices=Semester.choices)


class RetakeListQuerySerializer(serializers.Serializer):
    subject = serializers.IntegerField(min_value=1, required=False)
    academic_year = serializers.RegexField(ACADEMIC_YEAR_RE)
    semester = serializers.ChoiceField(choices=Semester.choices)


class OverviewQuerySerializer(serializers.Serializer):
    academic_year = serializers.RegexField(ACADEMIC_YEAR_RE, required=False)
    semester = serializers.ChoiceField(choices=Semester.choices, required=False)


class ClassStatisticsView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]

    def get(self, request, class_id: int):
        query = ClassStatisticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        q = query.validated_data

        stats = analytics_service.class_distribution(
            principal=self.principal,
            school_class_id=int(class_id),
            subject_id=q["subject"],
            evaluation_title=q["evaluation_title"],
            academic_year=q["academic_year"],
            semester=q["semester"],
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Class statistics fetched.", stats)


class RetakeListView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManagerOrTeacher]

    def get(self, request, class_id: int):
        query = RetakeListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        q = query.validated_data

        data = analytics_service.retake_list(
            principal=self.principal,
            school_class_id=int(class_id),
            academic_year=q["academic_year"],
            semester=q["semester"],
            subject_id=q.get("subject"),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Retake list fetched.", data)


class CampusOverviewView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def get(self, request):
        query = OverviewQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        q = query.validated_data

        data = analytics_service.campus_overview(
            principal=self.principal,
            academic_year=q.get("academic_year"),
            semester=q.get("semester"),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Campus overview fetched.", data)


class TranscriptView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, student_id: int):
        query = OverviewQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        data = analytics_service.get_transcript(
            principal=self.principal,
            student_id=int(student_id),
            academic_year=query.validated_data.get("academic_year"),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Transcript fetched.", data)


class VerifyResultView(APIView):
    """
    QR 검증 (인증 없음). 토큰이 없거나 DRAFT / 삭제 → 모두 404
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, token: str):
        data = analytics_service.verify_result(token)
        return envelope("Result verified. This document is authentic.", data)


class VerifyTranscriptView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, token: str):
        data = analytics_service.verify_transcript(token)
        return envelope("Transcript verified. This document is authentic.", data)
