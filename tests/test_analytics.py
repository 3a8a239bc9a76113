# PATH: tests/test_analytics.py
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.core.principal import Principal
from apps.domains.results.models import Result
from apps.domains.results.services.analytics_service import (
    compute_dropout_risk,
    dropout_risk_from_scores,
    score_color,
)
from apps.domains.results.services.transcript_service import TranscriptService, generate_for_student
from apps.domains.students.models import Student
from tests.conftest import YEAR

URL = "/api/v1/results/"


@pytest.fixture
def third_student(campus, school_class):
    s = Student.objects.create(campus=campus, first_name="Eve", last_name="Curie", matricule="M-003")
    school_class.students.add(s)
    return s


# ==================================================
# class distribution
# ==================================================

@pytest.fixture
def midterm(make_result, published_result, student, other_student, third_student):
    kw = dict(evaluation_title="Midterm")
    make_result(student=student, score=Decimal("8"), **kw)
    published_result(student=other_student, score=Decimal("12.5"), **kw)
    make_result(student=third_student, score=Decimal("13"), status=Result.Status.SUBMITTED, **kw)


def _stats_query(subject, **extra):
    q = {"subject": subject.pk, "evaluation_title": "Midterm", "academic_year": YEAR, "semester": "S1"}
    q.update(extra)
    return q


def test_class_distribution(client_for, manager_user, midterm, school_class, subject):
    res = client_for(manager_user).get(f"{URL}statistics/{school_class.pk}/", _stats_query(subject))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["n"] == 3
    assert data["mean"] == 11.17
    assert data["min"] == 8.0
    assert data["max"] == 13.0
    assert data["std_dev"] == 2.25
    assert data["passing_rate"] == 66.7

    counts = [b["count"] for b in data["histogram"]]
    assert counts == [0, 0, 0, 0, 1, 0, 2, 0, 0, 0]
    assert data["histogram"][0]["range"] == "[0, 2)"
    assert data["histogram"][-1]["range"] == "[18, 20]"


def test_distribution_of_six_scores(client_for, manager_user, published_result, campus, school_class, subject):
    for i, score in enumerate(["5", "8", "10", "12", "14", "18"]):
        s = Student.objects.create(campus=campus, first_name="Student", last_name=str(i), matricule=f"D-{i:03d}")
        school_class.students.add(s)
        published_result(student=s, score=Decimal(score), evaluation_title="Midterm")

    data = client_for(manager_user).get(f"{URL}statistics/{school_class.pk}/", _stats_query(subject)).json()["data"]

    assert data["n"] == 6
    assert data["mean"] == 11.17
    assert data["passing_rate"] == 66.7
    by_range = {b["range"]: b["count"] for b in data["histogram"]}
    assert by_range["[10, 12)"] == 1
    assert by_range["[12, 14)"] == 1
    assert by_range["[18, 20]"] == 1
    assert [b["count"] for b in data["histogram"]] == [0, 0, 1, 0, 1, 1, 1, 1, 0, 1]


def test_distribution_skips_absent_and_archived(client_for, teacher_user, make_result, other_student,
                                                 third_student, school_class, subject):
    make_result(evaluation_title="Midterm", score=Decimal("20"))
    make_result(evaluation_title="Midterm", student=other_student, exam_attendance=Result.Attendance.ABSENT)
    make_result(evaluation_title="Midterm", student=third_student, status=Result.Status.ARCHIVED)

    data = client_for(teacher_user).get(f"{URL}statistics/{school_class.pk}/", _stats_query(subject)).json()["data"]

    assert data["n"] == 1
    assert data["histogram"][-1]["count"] == 1
    assert data["std_dev"] == 0.0


def test_distribution_without_rows(client_for, manager_user, school_class, subject):
    res = client_for(manager_user).get(f"{URL}statistics/{school_class.pk}/", _stats_query(subject))
    assert res.status_code == 404


def test_distribution_requires_query(client_for, manager_user, school_class):
    assert client_for(manager_user).get(f"{URL}statistics/{school_class.pk}/").status_code == 400


def test_students_cannot_read_statistics(client_for, student_user, midterm, school_class, subject):
    res = client_for(student_user).get(f"{URL}statistics/{school_class.pk}/", _stats_query(subject))
    assert res.status_code == 403


# ==================================================
# retake list
# ==================================================

@pytest.mark.parametrize(
    "value,color",
    [
        ("0", "#ef4444"),
        ("6.99", "#ef4444"),
        ("7", "#f97316"),
        ("9.99", "#f97316"),
        ("10", "#3b82f6"),
        ("13.99", "#3b82f6"),
        ("14", "#10b981"),
        ("20", "#10b981"),
    ],
)
def test_score_color(value, color):
    assert score_color(Decimal(value)) == color


def test_retake_list_groups_by_student(client_for, manager_user, published_result, make_result, make_subject,
                                       other_student, school_class):
    physics = make_subject("Physics", "PHYS")
    published_result(score=Decimal("6"))
    published_result(subject=physics, score=Decimal("8"))
    published_result(student=other_student, score=Decimal("9"))
    published_result(student=other_student, subject=physics, score=Decimal("15"))
    published_result(student=other_student, score=Decimal("2"), exam_attendance=Result.Attendance.EXCUSED)
    make_result(score=Decimal("1"))

    res = client_for(manager_user).get(
        f"{URL}retake-list/{school_class.pk}/", {"academic_year": YEAR, "semester": "S1"},
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["total"] == 2
    first, second = data["students"]
    assert first["student"]["matricule"] == "M-001"
    assert [f["score_color"] for f in first["failed_subjects"]] == ["#ef4444", "#f97316"]
    assert [f["subject"]["code"] for f in second["failed_subjects"]] == ["MATH"]


def test_retake_list_subject_filter(client_for, manager_user, published_result, make_subject, school_class):
    physics = make_subject("Physics", "PHYS")
    published_result(score=Decimal("6"))
    published_result(subject=physics, score=Decimal("8"))

    res = client_for(manager_user).get(
        f"{URL}retake-list/{school_class.pk}/",
        {"academic_year": YEAR, "semester": "S1", "subject": physics.pk},
    )
    [entry] = res.json()["data"]["students"]
    assert [f["subject"]["code"] for f in entry["failed_subjects"]] == ["PHYS"]


# ==================================================
# campus overview
# ==================================================

def test_campus_overview(client_for, manager_user, make_result, published_result, other_student):
    published_result(score=Decimal("12"))
    absent = published_result(student=other_student, exam_attendance=Result.Attendance.ABSENT)
    make_result(score=Decimal("15"))
    published_result(score=Decimal("14"), status=Result.Status.ARCHIVED)
    Result.objects.filter(pk=absent.pk).update(dropout_risk_score=70)

    res = client_for(manager_user).get(f"{URL}campus/overview/")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["by_status"] == {"ARCHIVED": 1, "DRAFT": 1, "PUBLISHED": 2}
    assert data["by_evaluation_type"] == {"CC": 4}
    assert data["by_exam_period"] == {"Midterm": 4}
    assert data["total_published"] == 3
    assert data["average_normalized"] == 8.67
    assert data["passing_rate"] == 66.7
    assert data["retake_eligible"] == 1
    assert data["at_risk"] == 1
    assert data["absent_students"] == 1


def test_overview_is_campus_scoped(client_for, other_manager_user, published_result):
    published_result()
    data = client_for(other_manager_user).get(f"{URL}campus/overview/").json()["data"]
    assert data["total_published"] == 0
    assert data["passing_rate"] is None
    assert data["average_normalized"] is None


def test_overview_requires_manager(client_for, teacher_user, db):
    assert client_for(teacher_user).get(f"{URL}campus/overview/").status_code == 403


# ==================================================
# dropout risk
# ==================================================

@pytest.mark.parametrize(
    "scores,expected",
    [
        ([], 0),
        ([12], 0),
        ([15, 15], 0),
        ([8, 9], 45),
        ([14, 12, 10, 8], 55),
        ([2, 1, 0], 80),
        ([10, 0], 90),
        ([6, 4], 100),
    ],
)
def test_dropout_risk_formula(scores, expected):
    assert dropout_risk_from_scores(scores) == expected


def test_dropout_risk_window(published_result, student, campus, settings):
    settings.RESULTS_DROPOUT_RISK_WINDOW = 2
    base = timezone.now()
    published_result(score=Decimal("2"), published_at=base - timedelta(days=3))
    published_result(score=Decimal("15"), published_at=base - timedelta(days=2))
    published_result(score=Decimal("15"), published_at=base - timedelta(days=1))

    assert compute_dropout_risk(student.pk, campus.pk) == 0

    settings.RESULTS_DROPOUT_RISK_WINDOW = 10
    assert compute_dropout_risk(student.pk, campus.pk) > 0


def test_dropout_risk_ignores_excused(published_result, student, campus):
    published_result(score=Decimal("15"))
    published_result(score=Decimal("1"), exam_attendance=Result.Attendance.EXCUSED)

    assert compute_dropout_risk(student.pk, campus.pk) == 0


# ==================================================
# public verification
# ==================================================

VERIFY_KEYS = {
    "is_authentic",
    "student",
    "subject",
    "school_class",
    "academic_year",
    "semester",
    "evaluation_type",
    "evaluation_title",
    "exam_period",
    "score_on_20",
    "grade_band",
    "published_at",
}


def test_verify_published_result(api_client, published_result):
    r = published_result(score=Decimal("45"), max_score=Decimal("60"), published_at=timezone.now())

    res = api_client.get(f"{URL}verify/{r.verification_token}/")

    assert res.status_code == 200
    data = res.json()["data"]
    assert set(data) == VERIFY_KEYS
    assert data["is_authentic"] is True
    assert data["score_on_20"] == 15.0
    assert data["student"] == {"first_name": "Marie", "last_name": "Curie", "matricule": "M-001"}
    assert data["subject"] == {"name": "Mathematics", "code": "MATH"}


def test_verify_archived_result(api_client, published_result):
    r = published_result(status=Result.Status.ARCHIVED)
    assert api_client.get(f"{URL}verify/{r.verification_token}/").status_code == 200


def test_verify_draft_token_is_not_found(api_client, make_result):
    r = make_result(verification_token="draft-token")
    res = api_client.get(f"{URL}verify/{r.verification_token}/")

    assert res.status_code == 404
    assert res.json()["message"] == "Invalid or expired verification token."


def test_verify_deleted_result_is_not_found(api_client, published_result):
    r = published_result()
    r.soft_delete()
    assert api_client.get(f"{URL}verify/{r.verification_token}/").status_code == 404


def test_verify_unknown_token(api_client, db):
    assert api_client.get(f"{URL}verify/nope/").status_code == 404


def test_verify_transcript(api_client, published_result, student, campus, manager_user):
    published_result(score=Decimal("14"))
    t = generate_for_student(student_id=student.pk, campus_id=campus.pk, academic_year=YEAR, semester="S1")

    draft = api_client.get(f"{URL}verify-transcript/{t.verification_token or 'none'}/")
    assert draft.status_code == 404

    t = TranscriptService.validate(
        principal=Principal.from_user(manager_user), transcript_id=t.pk, decision="Admitted",
    )
    res = api_client.get(f"{URL}verify-transcript/{t.verification_token}/")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["general_average"] == 14.0
    assert data["decision"] == "Admitted"
    assert data["status"] == "VALIDATED"
    assert "subjects" not in data
