# PATH: tests/conftest.py
from __future__ import annotations

import itertools
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.core.models import Campus, User
from apps.core.services.sequencer import next_reference
from apps.domains.classes.models import SchoolClass
from apps.domains.results.models import GradingScale, Result
from apps.domains.students.models import Student
from apps.domains.subjects.models import Subject
from apps.domains.teachers.models import Teacher

YEAR = "2024-2025"

_seq = itertools.count(1)

STANDARD_BANDS = [
    {"min": 0, "max": 9.99, "label": "Fail", "letter_grade": "F", "ects_grade": "F"},
    {"min": 10, "max": 13.99, "label": "Pass", "letter_grade": "C", "ects_grade": "C"},
    {"min": 14, "max": 20, "label": "Good", "letter_grade": "A", "ects_grade": "A", "color": "#10B981"},
]


# ==================================================
# campus / users
# ==================================================

@pytest.fixture
def campus(db):
    return Campus.objects.create(name="Main campus", code="main")


@pytest.fixture
def other_campus(db):
    return Campus.objects.create(name="North campus", code="north")


@pytest.fixture
def make_user(db):
    def _make(role, campus=None, username=None):
        n = next(_seq)
        return User.objects.create_user(
            username=username or f"{role.lower()}_{n}",
            password="pw",
            role=role,
            campus=campus,
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(User.Role.ADMIN)


@pytest.fixture
def manager_user(make_user, campus):
    return make_user(User.Role.CAMPUS_MANAGER, campus)


@pytest.fixture
def other_manager_user(make_user, other_campus):
    return make_user(User.Role.CAMPUS_MANAGER, other_campus)


@pytest.fixture
def teacher_user(make_user, campus):
    return make_user(User.Role.TEACHER, campus)


@pytest.fixture
def other_teacher_user(make_user, campus):
    return make_user(User.Role.TEACHER, campus)


@pytest.fixture
def student_user(make_user, campus):
    return make_user(User.Role.STUDENT, campus)



# ==================================================
# collaborators
# ==================================================

@pytest.fixture
def teacher(campus, teacher_user):
    return Teacher.objects.create(user=teacher_user, campus=campus, first_name="Ada", last_name="Byron")


@pytest.fixture
def other_teacher(campus, other_teacher_user):
    return Teacher.objects.create(user=other_teacher_user, campus=campus, first_name="Alan", last_name="Turing")


@pytest.fixture
def student(campus, student_user):
    return Student.objects.create(
        user=student_user, campus=campus, first_name="Marie", last_name="Curie", matricule="M-001",
    )


@pytest.fixture
def other_student(campus):
    return Student.objects.create(campus=campus, first_name="Pierre", last_name="Curie", matricule="M-002")


@pytest.fixture
def school_class(campus, student, other_student):
    klass = SchoolClass.objects.create(campus=campus, name="L1-A", academic_year=YEAR)
    klass.students.add(student, other_student)
    return klass


@pytest.fixture
def make_subject(campus):
    def _make(name="Mathematics", code=None, coefficient=None, campus_obj=None):
        return Subject.objects.create(
            campus=campus_obj or campus,
            name=name,
            code=code or f"S{next(_seq)}",
            coefficient=coefficient,
        )
    return _make


@pytest.fixture
def subject(make_subject):
    return make_subject("Mathematics", "MATH")


@pytest.fixture
def scale(campus):
    return GradingScale.objects.create(
        campus=campus,
        name="Standard /20",
        system=GradingScale.System.NUMERIC_20,
        max_score=Decimal("20"),
        pass_mark=Decimal("10"),
        bands=STANDARD_BANDS,
        is_default=True,
    )


# ==================================================
# results
# ==================================================

@pytest.fixture
def make_result(campus, student, school_class, subject, teacher):
    def _make(**overrides):
        fields = dict(
            campus=campus,
            student=student,
            school_class=school_class,
            subject=subject,
            teacher=teacher,
            evaluation_type=Result.EvaluationType.CC,
            evaluation_title=f"Quiz {next(_seq)}",
            academic_year=YEAR,
            semester="S1",
            score=Decimal("14"),
            max_score=Decimal("20"),
        )
        fields.update(overrides)
        result = Result(reference=next_reference(2025), **fields)
        result.save()
        return result
    return _make


@pytest.fixture
def published_result(make_result):
    """PUBLISHED 상태로 바로 만드는 헬퍼 (workflow 를 거치지 않음)"""
    def _make(**overrides):
        overrides.setdefault("status", Result.Status.PUBLISHED)
        overrides.setdefault("verification_token", f"tok-{next(_seq)}")
        return make_result(**overrides)
    return _make


# ==================================================
# API clients
# ==================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client
