# PATH: apps/domains/results/views/transcript_views.py
"""
Final transcripts

GET  /results/final-transcripts/<student_id>/   ?academic_year&semester
POST /results/final-transcripts/<id>/validate/  DRAFT → VALIDATED (manager)
POST /results/final-transcripts/<id>/seal/      VALIDATED → SEALED (manager)
POST /results/final-transcripts/<id>/sign/      보호자 서명 (PUBLIC)
"""
from __future__ import annotations

from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.api.common.responses import envelope
from apps.core.permissions import IsManager
from apps.domains.results.serializers import (
    FinalTranscriptQuerySerializer,
    FinalTranscriptSerializer,
    SignTranscriptSerializer,
    ValidateTranscriptSerializer,
)
from apps.domains.results.services.transcript_service import TranscriptService, visible_transcripts
from apps.domains.results.views.mixins import CampusScopedMixin, client_ip


class FinalTranscriptView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, student_id: int):
        query = FinalTranscriptQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        q = query.validated_data

        # 학생: 본인 + VALIDATED/SEALED 만, 그 외: principal 의 캠퍼스 안에서만
        transcript = (
            visible_transcripts(self.principal, self.requested_campus_id)
            .select_related("student", "school_class")
            .filter(student_id=int(student_id), academic_year=q["academic_year"], semester=q["semester"])
            .first()
        )
        if transcript is None:
            raise NotFound("Final transcript not found.")

        return envelope("Final transcript fetched.", FinalTranscriptSerializer(transcript).data)


class ValidateTranscriptView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def post(self, request, pk: int):
        serializer = ValidateTranscriptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        transcript = TranscriptService.validate(
            principal=self.principal,
            transcript_id=int(pk),
            decision=serializer.validated_data.get("decision"),
            general_appreciation=serializer.validated_data.get("general_appreciation"),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Transcript validated.", FinalTranscriptSerializer(transcript).data)


class SealTranscriptView(CampusScopedMixin, APIView):
    permission_classes = [IsAuthenticated, IsManager]

    def post(self, request, pk: int):
        transcript = TranscriptService.seal(
            principal=self.principal,
            transcript_id=int(pk),
            requested_campus_id=self.requested_campus_id,
        )
        return envelope("Transcript sealed.", FinalTranscriptSerializer(transcript).data)


class SignTranscriptView(APIView):
    """보호자는 계정이 없으므로 인증 없이 signed_by 로 식별"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, pk: int):
        serializer = SignTranscriptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        transcript = TranscriptService.sign(
            transcript_id=int(pk),
            signed_by=serializer.validated_data["signed_by"],
            method=serializer.validated_data["method"],
            ip_address=client_ip(request),
        )
        return envelope("Transcript signed by parent.", {
            "signed_at": transcript.parent_signature["signed_at"],
            "signed_by": transcript.parent_signature["signed_by"],
        })
