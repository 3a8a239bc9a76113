# PATH: tests/test_result_api.py
from decimal import Decimal

import pytest

from apps.domains.results.models import Result
from tests.conftest import YEAR

URL = "/api/v1/results/"


@pytest.fixture
def payload(student, school_class, subject, teacher):
    def _payload(**overrides):
        data = {
            "student": student.pk,
            "school_class": school_class.pk,
            "subject": subject.pk,
            "teacher": teacher.pk,
            "evaluation_type": "CC",
            "evaluation_title": "Quiz 1",
            "academic_year": YEAR,
            "semester": "S1",
            "score": "15",
            "max_score": "20",
        }
        data.update(overrides)
        return data
    return _payload


# ==================================================
# create
# ==================================================

def test_teacher_creates_draft(client_for, teacher_user, payload, campus):
    res = client_for(teacher_user).post(URL, payload(), format="json")

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    data = body["data"]
    assert data["status"] == "DRAFT"
    assert data["campus"] == campus.pk
    assert data["normalized_score"] == 15
    assert data["reference"].startswith("RES-")
    assert data["is_retake_eligible"] is False


def test_teacher_cannot_record_in_another_teachers_name(client_for, other_teacher_user, payload):
    res = client_for(other_teacher_user).post(URL, payload(), format="json")
    assert res.status_code == 403


def test_student_cannot_create(client_for, student_user, payload):
    res = client_for(student_user).post(URL, payload(), format="json")
    assert res.status_code == 403


def test_duplicate_evaluation_is_conflict(client_for, manager_user, payload):
    client = client_for(manager_user)
    assert client.post(URL, payload(), format="json").status_code == 201

    res = client.post(URL, payload(score="3"), format="json")
    assert res.status_code == 409
    assert res.json()["success"] is False


@pytest.mark.parametrize("year", ["2024", "2024-25", "24-2025", "2024/2025"])
def test_invalid_academic_year(client_for, manager_user, payload, year):
    res = client_for(manager_user).post(URL, payload(academic_year=year), format="json")
    assert res.status_code == 400
    assert "academic_year" in res.json()["errors"]


def test_score_above_max(client_for, manager_user, payload):
    res = client_for(manager_user).post(URL, payload(score="25"), format="json")
    assert res.status_code == 400
    assert "score" in res.json()["errors"]


def test_admin_must_name_a_campus(client_for, admin_user, payload, campus):
    client = client_for(admin_user)
    assert client.post(URL, payload(), format="json").status_code == 400

    res = client.post(URL, payload(campus=campus.pk), format="json")
    assert res.status_code == 201


def test_collaborators_must_share_the_campus(client_for, admin_user, payload, other_campus):
    res = client_for(admin_user).post(URL, payload(campus=other_campus.pk), format="json")
    assert res.status_code == 400
    assert "student" in res.json()["errors"]


def test_retake_link_requires_same_student(client_for, manager_user, payload, make_result, other_student):
    original = make_result(student=other_student, score=Decimal("6"))
    res = client_for(manager_user).post(
        URL,
        payload(evaluation_type="RETAKE", evaluation_title="Retake", retake_of=original.pk),
        format="json",
    )
    assert res.status_code == 400
    assert "retake_of" in res.json()["errors"]


def test_retake_link_requires_retake_type(client_for, manager_user, payload, make_result):
    original = make_result(score=Decimal("6"))
    res = client_for(manager_user).post(URL, payload(retake_of=original.pk), format="json")
    assert res.status_code == 400


def test_absent_create_forces_zero(client_for, manager_user, payload):
    res = client_for(manager_user).post(URL, payload(exam_attendance="absent", score="11"), format="json")
    assert res.status_code == 201
    assert res.json()["data"]["score"] == 0
    assert res.json()["data"]["is_retake_eligible"] is True


# ==================================================
# read
# ==================================================

def test_list_is_paginated_and_filtered(client_for, manager_user, make_result):
    make_result(semester="S1")
    make_result(semester="S2")
    make_result(semester="S2")

    res = client_for(manager_user).get(URL, {"semester": "S2", "limit": 1})

    assert res.status_code == 200
    body = res.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["total"] == 2
    assert body["pagination"]["pages"] == 2


def test_student_sees_only_own_released_results(client_for, student_user, make_result, published_result, other_student):
    make_result()
    mine = published_result()
    published_result(student=other_student)

    res = client_for(student_user).get(URL)

    ids = [row["id"] for row in res.json()["data"]]
    assert ids == [mine.pk]


def test_student_draft_detail_is_hidden(client_for, student_user, make_result):
    r = make_result()
    res = client_for(student_user).get(f"{URL}{r.pk}/")
    assert res.status_code == 404


def test_other_campus_manager_is_forbidden(client_for, other_manager_user, make_result):
    r = make_result()
    res = client_for(other_manager_user).get(f"{URL}{r.pk}/")
    assert res.status_code == 403


def test_other_campus_list_header_forbidden(client_for, other_manager_user, campus):
    res = client_for(other_manager_user).get(URL, HTTP_X_CAMPUS_ID=str(campus.pk))
    assert res.status_code == 403


def test_admin_lists_across_campuses(client_for, admin_user, make_result):
    make_result()
    res = client_for(admin_user).get(URL)
    assert res.json()["pagination"]["total"] == 1


def test_detail_includes_audit_entries(client_for, manager_user, make_result):
    r = make_result()
    res = client_for(manager_user).get(f"{URL}{r.pk}/")
    assert res.status_code == 200
    assert res.json()["data"]["audit_entries"] == []
    assert res.json()["data"]["student_name"] == "Marie Curie"


# ==================================================
# update
# ==================================================

def test_owner_updates_draft(client_for, teacher_user, make_result):
    r = make_result()
    res = client_for(teacher_user).put(f"{URL}{r.pk}/", {"score": "9", "teacher_remarks": "Revise"}, format="json")

    assert res.status_code == 200
    r.refresh_from_db()
    assert r.normalized_score == Decimal("9.00")
    assert r.is_retake_eligible is True
    assert r.teacher_remarks == "Revise"


def test_teacher_cannot_write_manager_remarks(client_for, teacher_user, make_result):
    r = make_result()
    res = client_for(teacher_user).put(f"{URL}{r.pk}/", {"class_manager_remarks": "Hi"}, format="json")
    assert res.status_code == 403


def test_manager_remarks_stamp_the_manager(client_for, manager_user, make_result):
    r = make_result()
    res = client_for(manager_user).put(f"{URL}{r.pk}/", {"class_manager_remarks": "Steady"}, format="json")
    assert res.status_code == 200
    r.refresh_from_db()
    assert r.class_manager_id == manager_user.pk


def test_teacher_cannot_update_submitted(client_for, teacher_user, make_result):
    r = make_result(status=Result.Status.SUBMITTED)
    res = client_for(teacher_user).put(f"{URL}{r.pk}/", {"score": "9"}, format="json")
    assert res.status_code == 403


def test_published_row_is_not_updatable(client_for, admin_user, published_result):
    r = published_result()
    res = client_for(admin_user).put(f"{URL}{r.pk}/", {"score": "9"}, format="json")
    assert res.status_code == 403
    assert "audit" in res.json()["message"]


def test_empty_update_rejected(client_for, manager_user, make_result):
    r = make_result()
    res = client_for(manager_user).put(f"{URL}{r.pk}/", {}, format="json")
    assert res.status_code == 400


def test_update_score_past_max(client_for, manager_user, make_result):
    r = make_result()
    res = client_for(manager_user).put(f"{URL}{r.pk}/", {"max_score": "10"}, format="json")
    assert res.status_code == 400


# ==================================================
# delete
# ==================================================

def test_owner_deletes_draft(client_for, teacher_user, make_result):
    r = make_result()
    res = client_for(teacher_user).delete(f"{URL}{r.pk}/")

    assert res.status_code == 200
    r.refresh_from_db()
    assert r.is_deleted is True
    assert r.deleted_by_id == teacher_user.pk
    assert client_for(teacher_user).get(f"{URL}{r.pk}/").status_code == 404


def test_manager_cannot_delete_published(client_for, manager_user, published_result):
    r = published_result()
    res = client_for(manager_user).delete(f"{URL}{r.pk}/")
    assert res.status_code == 400


def test_admin_deletes_published(client_for, admin_user, published_result):
    r = published_result()
    assert client_for(admin_user).delete(f"{URL}{r.pk}/").status_code == 200
    r.refresh_from_db()
    assert r.is_deleted is True


def test_other_teacher_cannot_delete(client_for, other_teacher_user, make_result):
    r = make_result()
    assert client_for(other_teacher_user).delete(f"{URL}{r.pk}/").status_code == 403


def test_unauthenticated(api_client, make_result):
    r = make_result()
    assert api_client.get(f"{URL}{r.pk}/").status_code == 401
