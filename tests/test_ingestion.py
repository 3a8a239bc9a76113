# PATH: tests/test_ingestion.py
import io
from decimal import Decimal

import openpyxl
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.domains.results.models import Result
from apps.domains.students.models import Student
from tests.conftest import YEAR

URL = "/api/v1/results/"


@pytest.fixture
def header(school_class, subject, teacher):
    return {
        "school_class": school_class.pk,
        "subject": subject.pk,
        "teacher": teacher.pk,
        "evaluation_type": "EXAM",
        "evaluation_title": "Final exam",
        "academic_year": YEAR,
        "semester": "S1",
        "max_score": "40",
    }


@pytest.fixture
def outsider(campus):
    return Student.objects.create(campus=campus, first_name="Lise", last_name="Meitner", matricule="M-099")


def _csv(text, name="results.csv"):
    return SimpleUploadedFile(name, text.encode("utf-8-sig"), content_type="text/csv")


def _xlsx(rows, name="results.xlsx"):
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return SimpleUploadedFile(
        name,
        buf.getvalue(),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


# ==================================================
# bulk JSON
# ==================================================

def test_bulk_partial_success(client_for, teacher_user, header, student, other_student, outsider):
    body = dict(header, results=[
        {"student_id": student.pk, "score": "30", "teacher_remarks": "Good"},
        {"student_id": outsider.pk, "score": "20"},
        {"student_id": other_student.pk, "score": "41"},
        {"student_id": "abc", "score": "10"},
    ])

    res = client_for(teacher_user).post(f"{URL}bulk/", body, format="json")

    assert res.status_code == 207
    data = res.json()["data"]
    assert data["inserted"] == 1
    assert data["skipped"] == 3
    assert [e["index"] for e in data["errors"]] == [1, 2, 3]
    assert data["errors"][0]["error"] == "Student not enrolled in this class."
    assert data["errors"][1]["error"].startswith("Score must be 0-40")
    assert data["errors"][2]["error"] == "Invalid student_id."

    r = Result.objects.get(student=student)
    assert r.status == Result.Status.DRAFT
    assert r.normalized_score == Decimal("15.00")
    assert r.teacher_remarks == "Good"


def test_bulk_flags_duplicates(client_for, manager_user, header, student, other_student, make_result):
    make_result(
        student=other_student,
        evaluation_type=Result.EvaluationType.EXAM,
        evaluation_title="Final exam",
    )
    body = dict(header, results=[
        {"student_id": student.pk, "score": "20"},
        {"student_id": student.pk, "score": "25"},
        {"student_id": other_student.pk, "score": "10"},
    ])

    data = client_for(manager_user).post(f"{URL}bulk/", body, format="json").json()["data"]

    assert data["inserted"] == 1
    assert {e["error"] for e in data["errors"]} == {"Duplicate result for this evaluation."}
    assert [e["index"] for e in data["errors"]] == [1, 2]


def test_bulk_absent_without_score(client_for, manager_user, header, student):
    body = dict(header, results=[{"student_id": student.pk, "exam_attendance": "absent"}])

    data = client_for(manager_user).post(f"{URL}bulk/", body, format="json").json()["data"]

    assert data["inserted"] == 1
    r = Result.objects.get(student=student)
    assert r.score == 0
    assert r.exam_attendance == Result.Attendance.ABSENT


def test_bulk_rejects_bad_attendance_and_coefficient(client_for, manager_user, header, student, other_student):
    body = dict(header, results=[
        {"student_id": student.pk, "score": "10", "exam_attendance": "sick"},
        {"student_id": other_student.pk, "score": "10", "coefficient": "-1"},
    ])

    data = client_for(manager_user).post(f"{URL}bulk/", body, format="json").json()["data"]

    assert data["inserted"] == 0
    assert data["errors"][0]["error"].startswith("exam_attendance must be one of")
    assert data["errors"][1]["error"] == "Invalid coefficient."


def test_bulk_other_campus_class(client_for, other_manager_user, header):
    body = dict(header, results=[{"student_id": 1, "score": "10"}])
    res = client_for(other_manager_user).post(f"{URL}bulk/", body, format="json")
    assert res.status_code == 403


def test_bulk_teacher_in_own_name_only(client_for, other_teacher_user, header, student):
    body = dict(header, results=[{"student_id": student.pk, "score": "10"}])
    res = client_for(other_teacher_user).post(f"{URL}bulk/", body, format="json")
    assert res.status_code == 403
    assert Result.objects.count() == 0


def test_bulk_requires_rows(client_for, manager_user, header):
    res = client_for(manager_user).post(f"{URL}bulk/", dict(header, results=[]), format="json")
    assert res.status_code == 400


# ==================================================
# file upload
# ==================================================

def test_csv_upload(client_for, teacher_user, header, student, other_student):
    text = (
        "student_id,score,coefficient,teacher_remarks\n"
        f"{student.pk},32,2,Excellent\n"
        "\n"
        f"{other_student.pk},18,,\n"
    )
    res = client_for(teacher_user).post(
        f"{URL}upload-csv/", dict(header, file=_csv(text)), format="multipart",
    )

    assert res.status_code == 207
    assert res.json()["data"] == {"inserted": 2, "skipped": 0, "errors": []}
    r = Result.objects.get(student=student)
    assert r.coefficient == Decimal("2")
    assert r.teacher_remarks == "Excellent"
    assert Result.objects.get(student=other_student).coefficient == Decimal("1")


def test_csv_camel_case_headers(client_for, manager_user, header, student):
    text = f"studentId,Score,teacherRemarks,examAttendance\n{student.pk},,Missed it,absent\n"
    res = client_for(manager_user).post(
        f"{URL}upload-csv/", dict(header, file=_csv(text)), format="multipart",
    )

    assert res.json()["data"]["inserted"] == 1
    r = Result.objects.get(student=student)
    assert r.exam_attendance == Result.Attendance.ABSENT
    assert r.teacher_remarks == "Missed it"


def test_xlsx_upload(client_for, manager_user, header, student, other_student):
    upload = _xlsx([
        ["Student ID", "Score", "Strengths"],
        [student.pk, 36.5, "Algebra"],
        [other_student.pk, 50, None],
    ])
    res = client_for(manager_user).post(f"{URL}upload-csv/", dict(header, file=upload), format="multipart")

    assert res.status_code == 207
    data = res.json()["data"]
    assert data["inserted"] == 1
    assert data["errors"][0]["index"] == 1
    r = Result.objects.get(student=student)
    assert r.score == Decimal("36.5")
    assert r.strengths == "Algebra"


def test_upload_empty_file(client_for, manager_user, header):
    res = client_for(manager_user).post(f"{URL}upload-csv/", dict(header, file=_csv(" \n")), format="multipart")
    assert res.status_code == 400
    assert "file" in res.json()["errors"]


def test_upload_missing_score_column(client_for, manager_user, header, student):
    text = f"student_id,remarks\n{student.pk},x\n"
    res = client_for(manager_user).post(f"{URL}upload-csv/", dict(header, file=_csv(text)), format="multipart")
    assert res.status_code == 400


def test_upload_header_only(client_for, manager_user, header):
    res = client_for(manager_user).post(
        f"{URL}upload-csv/", dict(header, file=_csv("student_id,score\n")), format="multipart",
    )
    assert res.status_code == 400


def test_upload_size_limit(client_for, manager_user, header, student, settings):
    settings.RESULTS_UPLOAD_MAX_BYTES = 10
    text = f"student_id,score\n{student.pk},20\n"
    res = client_for(manager_user).post(f"{URL}upload-csv/", dict(header, file=_csv(text)), format="multipart")
    assert res.status_code == 400
    assert Result.objects.count() == 0
