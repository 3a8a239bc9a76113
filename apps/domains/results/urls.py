# PATH: apps/domains/results/urls.py

from django.urls import path

# ======================================================
# Result CRUD / ingestion
# ======================================================
from apps.domains.results.views.result_views import (
    ResultBulkCreateView,
    ResultDetailView,
    ResultListCreateView,
    ResultUploadView,
)

# ======================================================
# Workflow
# ======================================================
from apps.domains.results.views.workflow_views import (
    AuditCorrectionView,
    LockSemesterView,
    ResultArchiveView,
    ResultPublishBatchView,
    ResultPublishView,
    ResultReturnView,
    ResultSubmitBatchView,
    ResultSubmitView,
)

# ======================================================
# Analytics / public verification
# ======================================================
from apps.domains.results.views.analytics_views import (
    CampusOverviewView,
    ClassStatisticsView,
    RetakeListView,
    TranscriptView,
    VerifyResultView,
    VerifyTranscriptView,
)

# ======================================================
# Final transcripts / grading scales
# ======================================================
from apps.domains.results.views.transcript_views import (
    FinalTranscriptView,
    SealTranscriptView,
    SignTranscriptView,
    ValidateTranscriptView,
)
from apps.domains.results.views.grading_scale_views import (
    GradingScaleDetailView,
    GradingScaleListCreateView,
)

urlpatterns = [
    # ---------------- collection ----------------
    path("", ResultListCreateView.as_view(), name="result-list"),
    path("bulk/", ResultBulkCreateView.as_view(), name="result-bulk"),
    path("upload-csv/", ResultUploadView.as_view(), name="result-upload"),

    # ---------------- batch workflow (고정 경로가 <pk> 보다 먼저) ----------------
    path("submit-batch/", ResultSubmitBatchView.as_view(), name="result-submit-batch"),
    path("publish-batch/", ResultPublishBatchView.as_view(), name="result-publish-batch"),
    path("lock-semester/", LockSemesterView.as_view(), name="result-lock-semester"),
    path("audit/<int:pk>/", AuditCorrectionView.as_view(), name="result-audit"),

    # ---------------- analytics ----------------
    path("statistics/<int:class_id>/", ClassStatisticsView.as_view(), name="result-statistics"),
    path("retake-list/<int:class_id>/", RetakeListView.as_view(), name="result-retake-list"),
    path("campus/overview/", CampusOverviewView.as_view(), name="result-campus-overview"),
    path("transcript/<int:student_id>/", TranscriptView.as_view(), name="result-transcript"),

    # ---------------- public ----------------
    path("verify/<str:token>/", VerifyResultView.as_view(), name="result-verify"),
    path("verify-transcript/<str:token>/", VerifyTranscriptView.as_view(), name="transcript-verify"),

    # ---------------- final transcripts ----------------
    path("final-transcripts/<int:student_id>/", FinalTranscriptView.as_view(), name="final-transcript"),
    path("final-transcripts/<int:pk>/validate/", ValidateTranscriptView.as_view(), name="final-transcript-validate"),
    path("final-transcripts/<int:pk>/seal/", SealTranscriptView.as_view(), name="final-transcript-seal"),
    path("final-transcripts/<int:pk>/sign/", SignTranscriptView.as_view(), name="final-transcript-sign"),

    # ---------------- grading scales ----------------
    path("grading-scales/", GradingScaleListCreateView.as_view(), name="grading-scale-list"),
    path("grading-scales/<int:pk>/", GradingScaleDetailView.as_view(), name="grading-scale-detail"),

    # ---------------- single result ----------------
    path("<int:pk>/", ResultDetailView.as_view(), name="result-detail"),
    path("<int:pk>/submit/", ResultSubmitView.as_view(), name="result-submit"),
    path("<int:pk>/return/", ResultReturnView.as_view(), name="result-return"),
    path("<int:pk>/publish/", ResultPublishView.as_view(), name="result-publish"),
    path("<int:pk>/archive/", ResultArchiveView.as_view(), name="result-archive"),
]
