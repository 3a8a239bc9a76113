# PATH: tests/test_transcripts.py
from decimal import Decimal

import pytest

from apps.api.common.exceptions import InvalidTransition
from apps.core.principal import Principal
from apps.domains.results.models import FinalTranscript, Result
from apps.domains.results.services.transcript_service import (
    TranscriptService,
    aggregate_rows,
    assign_class_ranks,
    counted_rows,
    generate_for_student,
)
from tests.conftest import YEAR

URL = "/api/v1/results/"


@pytest.fixture
def physics(make_subject):
    return make_subject("Physics", "PHYS", coefficient=Decimal("1"))


@pytest.fixture
def two_subject_term(published_result, subject, physics):
    """Mathematics (coef 2): 15, 17 → 16 / Physics (coef 1): 13 → general 15.00"""
    subject.coefficient = Decimal("2")
    subject.save()
    published_result(subject=subject, score=Decimal("15"))
    published_result(subject=subject, score=Decimal("34"), max_score=Decimal("40"))
    published_result(subject=physics, score=Decimal("13"))


def _generate(student, campus, semester="S1"):
    return generate_for_student(
        student_id=student.pk,
        campus_id=campus.pk,
        academic_year=YEAR,
        semester=semester,
    )


# ==================================================
# aggregation
# ==================================================

def test_weighted_general_average(two_subject_term, student):
    agg = aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR, semester="S1"))

    by_code = {s["subject_code"]: s for s in agg["subjects"]}
    assert by_code["MATH"]["average"] == 16.0
    assert by_code["MATH"]["coefficient"] == 2.0
    assert len(by_code["MATH"]["evaluations"]) == 2
    assert by_code["PHYS"]["average"] == 13.0
    assert agg["general_average"] == 15.0


def test_subject_without_coefficient_uses_row_coefficient(published_result, make_subject, student):
    chem = make_subject("Chemistry", "CHEM")
    bio = make_subject("Biology", "BIO")
    published_result(subject=chem, score=Decimal("8"), coefficient=Decimal("3"))
    published_result(subject=bio, score=Decimal("16"), coefficient=Decimal("1"))

    agg = aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR))

    assert agg["general_average"] == 10.0


def test_drafts_excused_and_deleted_are_not_counted(published_result, make_result, student):
    published_result(score=Decimal("12"))
    make_result(score=Decimal("2"))
    published_result(score=Decimal("1"), exam_attendance=Result.Attendance.EXCUSED)
    published_result(score=Decimal("3")).soft_delete()

    agg = aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR))
    assert agg["general_average"] == 12.0


def test_absent_counts_as_zero(published_result, student):
    published_result(score=Decimal("16"))
    published_result(score=Decimal("15"), exam_attendance=Result.Attendance.ABSENT)

    agg = aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR))
    assert agg["general_average"] == 8.0


def test_subject_band_follows_scale(two_subject_term, student, scale):
    agg = aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR), scale)
    bands = {s["subject_code"]: s["grade_band"]["label"] for s in agg["subjects"]}
    assert bands == {"MATH": "Good", "PHYS": "Pass"}


def test_no_rows_no_average(student):
    assert aggregate_rows(counted_rows(student_id=student.pk, academic_year=YEAR)) == {
        "subjects": [],
        "general_average": None,
    }


# ==================================================
# on-the-fly transcript
# ==================================================

def test_transcript_replaces_original_with_retake(client_for, manager_user, published_result, student):
    original = published_result(score=Decimal("6"), evaluation_type=Result.EvaluationType.EXAM)
    published_result(
        score=Decimal("12"),
        evaluation_type=Result.EvaluationType.RETAKE,
        evaluation_title="Retake",
        retake_of=original,
    )

    res = client_for(manager_user).get(f"{URL}transcript/{student.pk}/")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["student"]["matricule"] == "M-001"
    assert data["verification_url"] == "https://results.test/api/v1/results/verify"
    [term] = data["semesters"]
    [math] = term["subjects"]
    assert math["average"] == 12.0
    assert [e["evaluation_type"] for e in math["evaluations"]] == ["RETAKE"]


def test_unpublished_retake_keeps_original(client_for, manager_user, published_result, make_result, student):
    original = published_result(score=Decimal("6"), evaluation_type=Result.EvaluationType.EXAM)
    make_result(
        score=Decimal("18"),
        evaluation_type=Result.EvaluationType.RETAKE,
        evaluation_title="Retake",
        retake_of=original,
        status=Result.Status.SUBMITTED,
    )

    data = client_for(manager_user).get(f"{URL}transcript/{student.pk}/").json()["data"]
    assert data["semesters"][0]["general_average"] == 6.0


def test_excused_retake_keeps_original(client_for, manager_user, published_result, student):
    original = published_result(score=Decimal("6"), evaluation_type=Result.EvaluationType.EXAM)
    published_result(
        score=Decimal("0"),
        evaluation_type=Result.EvaluationType.RETAKE,
        evaluation_title="Retake",
        retake_of=original,
        exam_attendance=Result.Attendance.EXCUSED,
    )

    data = client_for(manager_user).get(f"{URL}transcript/{student.pk}/").json()["data"]

    [term] = data["semesters"]
    [math] = term["subjects"]
    assert math["average"] == 6.0
    assert [e["evaluation_type"] for e in math["evaluations"]] == ["EXAM"]


def test_transcript_semester_order(client_for, manager_user, published_result, student):
    published_result(semester="S2")
    published_result(semester="S1")
    published_result(academic_year="2023-2024", semester="S1")

    data = client_for(manager_user).get(f"{URL}transcript/{student.pk}/").json()["data"]
    order = [(s["academic_year"], s["semester"]) for s in data["semesters"]]
    assert order == [(YEAR, "S1"), (YEAR, "S2"), ("2023-2024", "S1")]


def test_transcript_year_filter(client_for, manager_user, published_result, student):
    published_result(semester="S1")
    published_result(academic_year="2023-2024", semester="S1")

    res = client_for(manager_user).get(f"{URL}transcript/{student.pk}/", {"academic_year": "2023-2024"})
    assert [s["academic_year"] for s in res.json()["data"]["semesters"]] == ["2023-2024"]


def test_student_reads_own_transcript_only(client_for, student_user, student, other_student):
    client = client_for(student_user)
    assert client.get(f"{URL}transcript/{student.pk}/").status_code == 200
    assert client.get(f"{URL}transcript/{other_student.pk}/").status_code == 403


def test_transcript_unknown_student(client_for, manager_user, db):
    assert client_for(manager_user).get(f"{URL}transcript/999999/").status_code == 404


def test_transcript_other_campus(client_for, other_manager_user, student):
    assert client_for(other_manager_user).get(f"{URL}transcript/{student.pk}/").status_code == 403


# ==================================================
# final transcript generation / ranks
# ==================================================

def test_generate_final_transcript(two_subject_term, student, campus, school_class):
    t = _generate(student, campus)

    assert t.status == FinalTranscript.Status.DRAFT
    assert t.school_class_id == school_class.pk
    assert t.general_average == Decimal("15.00")
    assert [s["subject_code"] for s in t.subjects] == ["MATH", "PHYS"]


def test_generate_without_results(student, campus):
    from rest_framework.exceptions import NotFound

    with pytest.raises(NotFound):
        _generate(student, campus)


def test_regenerate_resets_to_draft(published_result, student, campus, manager_user):
    published_result(score=Decimal("12"))
    t = _generate(student, campus)
    TranscriptService.validate(principal=Principal.from_user(manager_user), transcript_id=t.pk)

    again = _generate(student, campus)

    assert again.pk == t.pk
    assert again.status == FinalTranscript.Status.DRAFT


def test_sealed_transcript_cannot_be_regenerated(published_result, student, campus, manager_user):
    published_result(score=Decimal("12"))
    t = _generate(student, campus)
    principal = Principal.from_user(manager_user)
    TranscriptService.validate(principal=principal, transcript_id=t.pk)
    TranscriptService.seal(principal=principal, transcript_id=t.pk)

    with pytest.raises(InvalidTransition):
        _generate(student, campus)


def test_dense_class_ranks(published_result, student, other_student, campus, school_class, make_student):
    third = make_student("M-003")
    published_result(score=Decimal("15"))
    published_result(student=other_student, score=Decimal("15"))
    published_result(student=third, score=Decimal("9"))
    for s in (student, other_student, third):
        _generate(s, campus)

    total = assign_class_ranks(school_class_id=school_class.pk, academic_year=YEAR, semester="S1")

    assert total == 3
    ranks = dict(FinalTranscript.objects.values_list("student__matricule", "class_rank"))
    assert ranks == {"M-001": 1, "M-002": 1, "M-003": 2}
    assert set(FinalTranscript.objects.values_list("class_total", flat=True)) == {3}


@pytest.fixture
def make_student(campus, school_class):
    from apps.domains.students.models import Student

    def _make(matricule):
        s = Student.objects.create(campus=campus, first_name="Irene", last_name="Curie", matricule=matricule)
        school_class.students.add(s)
        return s
    return _make


# ==================================================
# final transcript API
# ==================================================

@pytest.fixture
def draft_transcript(published_result, student, campus):
    published_result(score=Decimal("14"))
    return _generate(student, campus)


def _final_url(student):
    return f"{URL}final-transcripts/{student.pk}/"


def test_manager_reads_draft_final_transcript(client_for, manager_user, draft_transcript, student):
    res = client_for(manager_user).get(_final_url(student), {"academic_year": YEAR, "semester": "S1"})
    assert res.status_code == 200
    assert res.json()["data"]["general_average"] == 14


def test_student_cannot_see_draft_final_transcript(client_for, student_user, draft_transcript, student):
    res = client_for(student_user).get(_final_url(student), {"academic_year": YEAR, "semester": "S1"})
    assert res.status_code == 404


def test_final_transcript_requires_period(client_for, manager_user, student):
    assert client_for(manager_user).get(_final_url(student)).status_code == 400


def test_student_reads_own_validated_final_transcript(
    client_for, student_user, manager_user, draft_transcript, student,
):
    TranscriptService.validate(principal=Principal.from_user(manager_user), transcript_id=draft_transcript.pk)

    res = client_for(student_user).get(_final_url(student), {"academic_year": YEAR, "semester": "S1"})

    assert res.status_code == 200
    assert res.json()["data"]["status"] == FinalTranscript.Status.VALIDATED


def test_student_cannot_read_another_students_final_transcript(
    client_for, student_user, manager_user, published_result, other_student, campus,
):
    published_result(student=other_student, score=Decimal("11"))
    t = _generate(other_student, campus)
    TranscriptService.validate(principal=Principal.from_user(manager_user), transcript_id=t.pk)

    res = client_for(student_user).get(_final_url(other_student), {"academic_year": YEAR, "semester": "S1"})

    assert res.status_code == 404


def test_final_transcript_hidden_from_other_campus(client_for, other_manager_user, draft_transcript, student, campus):
    client = client_for(other_manager_user)
    params = {"academic_year": YEAR, "semester": "S1"}

    assert client.get(_final_url(student), params).status_code == 404
    # 다른 캠퍼스를 명시하면 403
    res = client.get(_final_url(student), params, HTTP_X_CAMPUS_ID=str(campus.pk))
    assert res.status_code == 403


def test_validate_then_seal(client_for, manager_user, student_user, draft_transcript, student):
    client = client_for(manager_user)
    res = client.post(
        f"{URL}final-transcripts/{draft_transcript.pk}/validate/",
        {"decision": "  Admitted  ", "general_appreciation": "Solid term."},
        format="json",
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "VALIDATED"
    assert data["decision"] == "Admitted"
    assert data["verification_token"]
    assert data["validated_by"] == manager_user.pk

    seen = client_for(student_user).get(_final_url(student), {"academic_year": YEAR, "semester": "S1"})
    assert seen.status_code == 200

    res = client.post(f"{URL}final-transcripts/{draft_transcript.pk}/seal/")
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "SEALED"


def test_seal_requires_validated(client_for, manager_user, draft_transcript):
    res = client_for(manager_user).post(f"{URL}final-transcripts/{draft_transcript.pk}/seal/")
    assert res.status_code == 400


def test_validate_twice(client_for, manager_user, draft_transcript):
    client = client_for(manager_user)
    url = f"{URL}final-transcripts/{draft_transcript.pk}/validate/"
    assert client.post(url).status_code == 200
    assert client.post(url).status_code == 400


def test_teacher_cannot_validate(client_for, teacher_user, draft_transcript):
    res = client_for(teacher_user).post(f"{URL}final-transcripts/{draft_transcript.pk}/validate/")
    assert res.status_code == 403


def test_other_campus_cannot_validate(client_for, other_manager_user, draft_transcript):
    res = client_for(other_manager_user).post(f"{URL}final-transcripts/{draft_transcript.pk}/validate/")
    assert res.status_code == 404


def test_parent_signature(api_client, manager_user, draft_transcript):
    TranscriptService.validate(principal=Principal.from_user(manager_user), transcript_id=draft_transcript.pk)
    url = f"{URL}final-transcripts/{draft_transcript.pk}/sign/"

    res = api_client.post(url, {"signed_by": "Jane Doe"}, format="json")

    assert res.status_code == 200
    assert res.json()["data"]["signed_by"] == "Jane Doe"
    draft_transcript.refresh_from_db()
    assert draft_transcript.parent_signature["method"] == "click"
    assert draft_transcript.parent_signature["ip_address"] == "127.0.0.1"

    again = api_client.post(url, {"signed_by": "Jane Doe"}, format="json")
    assert again.status_code == 409


def test_draft_cannot_be_signed(api_client, draft_transcript):
    res = api_client.post(
        f"{URL}final-transcripts/{draft_transcript.pk}/sign/", {"signed_by": "Jane Doe"}, format="json",
    )
    assert res.status_code == 400


def test_sign_unknown_transcript(api_client, db):
    res = api_client.post(f"{URL}final-transcripts/999999/sign/", {"signed_by": "Jane Doe"}, format="json")
    assert res.status_code == 404
