import django_filters

from .models import Result, Semester


class ResultFilter(django_filters.FilterSet):
    school_class = django_filters.NumberFilter(field_name="school_class_id")
    subject = django_filters.NumberFilter(field_name="subject_id")
    teacher = django_filters.NumberFilter(field_name="teacher_id")
    student = django_filters.NumberFilter(field_name="student_id")
    status = django_filters.ChoiceFilter(choices=Result.Status.choices)
    evaluation_type = django_filters.ChoiceFilter(choices=Result.EvaluationType.choices)
    academic_year = django_filters.CharFilter()
    semester = django_filters.ChoiceFilter(choices=Semester.choices)
    exam_period = django_filters.ChoiceFilter(choices=Result.ExamPeriod.choices)
    evaluation_title = django_filters.CharFilter(lookup_expr="icontains")
    is_retake_eligible = django_filters.BooleanFilter()
    period_locked = django_filters.BooleanFilter()

    class Meta:
        model = Result
        fields = [
            "school_class",
            "subject",
            "teacher",
            "student",
            "status",
            "evaluation_type",
            "academic_year",
            "semester",
            "exam_period",
            "evaluation_title",
            "is_retake_eligible",
            "period_locked",
        ]
