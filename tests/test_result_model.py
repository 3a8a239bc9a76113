# PATH: tests/test_result_model.py
from decimal import Decimal

import pytest

from apps.core.principal import Principal
from apps.domains.results.models import AuditLogImmutable, Result, ResultAuditEntry
from apps.domains.results.utils.numbers import normalize_on_20, round2


# --------------------------------------------------
# normalization
# --------------------------------------------------

@pytest.mark.parametrize(
    "score,max_score,expected",
    [
        ("0", "20", "0.00"),
        ("20", "20", "20.00"),
        ("14", "20", "14.00"),
        ("45", "60", "15.00"),
        ("1", "3", "6.67"),
        ("0.5", "8", "1.25"),
        ("17", "40", "8.50"),
    ],
)
def test_normalize_on_20(score, max_score, expected):
    assert normalize_on_20(Decimal(score), Decimal(max_score)) == Decimal(expected)


def test_round2_is_half_up():
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round2(Decimal("2.665")) == Decimal("2.67")


def test_normalized_score_computed_on_save(make_result):
    r = make_result(score=Decimal("45"), max_score=Decimal("60"), coefficient=Decimal("2"))
    r.refresh_from_db()
    assert r.normalized_score == Decimal("15.00")
    assert r.score_on_20 == r.normalized_score
    assert r.weighted_normalized_score == Decimal("30.00")


def test_absent_forces_zero_with_warning(make_result, caplog):
    with caplog.at_level("WARNING"):
        r = make_result(score=Decimal("12"), exam_attendance=Result.Attendance.ABSENT)
    r.refresh_from_db()
    assert r.score == 0
    assert r.normalized_score == 0
    assert "exam_attendance=absent" in caplog.text


def test_retake_eligibility_without_scale(make_result):
    assert make_result(score=Decimal("9.99")).is_retake_eligible is True
    assert make_result(score=Decimal("10")).is_retake_eligible is False


def test_excused_is_never_retake_eligible(make_result):
    r = make_result(score=Decimal("2"), exam_attendance=Result.Attendance.EXCUSED)
    assert r.is_retake_eligible is False


def test_explicit_scale_drives_band_and_eligibility(make_result, scale):
    scale.pass_mark = Decimal("12")
    scale.save()

    r = make_result(score=Decimal("11"), grading_scale=scale)
    assert r.grade_band["label"] == "Pass"
    assert r.is_retake_eligible is True


def test_band_snapshot_frozen_once_released(make_result, scale):
    r = make_result(score=Decimal("15"), grading_scale=scale)
    r.status = Result.Status.PUBLISHED
    r.save()
    assert r.grade_band["label"] == "Good"

    scale.bands = [{"min": 0, "max": 20, "label": "Everything"}]
    scale.save()
    r.teacher_remarks = "edited"
    r.save()
    r.refresh_from_db()
    assert r.grade_band["label"] == "Good"


def test_transition_table():
    S = Result.Status
    assert Result.can_transition(S.DRAFT, S.SUBMITTED)
    assert Result.can_transition(S.SUBMITTED, S.PUBLISHED)
    assert Result.can_transition(S.SUBMITTED, S.DRAFT)
    assert Result.can_transition(S.PUBLISHED, S.ARCHIVED)
    assert not Result.can_transition(S.DRAFT, S.PUBLISHED)
    assert not Result.can_transition(S.PUBLISHED, S.DRAFT)
    assert not Result.can_transition(S.ARCHIVED, S.PUBLISHED)


# --------------------------------------------------
# can_modify
# --------------------------------------------------

@pytest.fixture
def principals(admin_user, manager_user, teacher_user, other_teacher_user, student_user):
    return {
        "admin": Principal.from_user(admin_user),
        "manager": Principal.from_user(manager_user),
        "owner": Principal.from_user(teacher_user),
        "other_teacher": Principal.from_user(other_teacher_user),
        "student": Principal.from_user(student_user),
    }


@pytest.mark.parametrize(
    "status,who,allowed",
    [
        ("DRAFT", "admin", True),
        ("DRAFT", "manager", True),
        ("DRAFT", "owner", True),
        ("DRAFT", "other_teacher", False),
        ("DRAFT", "student", False),
        ("SUBMITTED", "manager", True),
        ("SUBMITTED", "owner", False),
        ("PUBLISHED", "admin", False),
        ("PUBLISHED", "manager", False),
        ("ARCHIVED", "owner", False),
    ],
)
def test_can_modify_matrix(make_result, principals, status, who, allowed):
    r = make_result(status=status)
    ok, reason = r.can_modify(principals[who])
    assert ok is allowed
    if not allowed:
        assert reason


def test_deleted_result_cannot_be_modified(make_result, principals):
    r = make_result()
    r.soft_delete()
    assert r.can_modify(principals["admin"])[0] is False


def test_period_lock_blocks_non_global(make_result, principals):
    r = make_result(period_locked=True)
    ok, reason = r.can_modify(principals["manager"])
    assert ok is False
    assert "locked" in reason
    assert r.can_modify(principals["admin"])[0] is True


# --------------------------------------------------
# audit log
# --------------------------------------------------

def test_audit_entries_are_append_only(published_result, admin_user):
    r = published_result()
    entry = ResultAuditEntry.objects.create(
        result=r, modified_by=admin_user, field="score", old_value=14.0, new_value=15.0,
        reason="Re-scan of answer booklet.",
    )

    entry.new_value = 20.0
    with pytest.raises(AuditLogImmutable):
        entry.save()
    with pytest.raises(AuditLogImmutable):
        entry.delete()

    entry.refresh_from_db()
    assert entry.new_value == 15.0
    assert r.audit_entries.count() == 1


def test_audit_entries_refuse_bulk_update_and_delete(published_result, admin_user):
    r = published_result()
    ResultAuditEntry.objects.create(
        result=r, modified_by=admin_user, field="score", old_value=14.0, new_value=15.0,
        reason="Re-scan of answer booklet.",
    )

    with pytest.raises(AuditLogImmutable):
        ResultAuditEntry.objects.filter(result=r).update(new_value=20.0)
    with pytest.raises(AuditLogImmutable):
        ResultAuditEntry.objects.filter(result=r).delete()
    with pytest.raises(AuditLogImmutable):
        r.audit_entries.all().delete()

    assert list(r.audit_entries.values_list("new_value", flat=True)) == [15.0]


def test_uniqueness_ignores_deleted_rows(make_result):
    first = make_result(evaluation_title="Midterm")
    first.soft_delete()
    again = make_result(evaluation_title="Midterm")
    assert again.pk != first.pk
