# PATH: apps/domains/results/management/commands/lock_semester.py
"""
학기 마감 (API PATCH /results/lock-semester/ 와 같은 경로)

- 공개된 결과 period_locked=True
- 학생별 FinalTranscript 생성 + class rank

사용:
  python manage.py lock_semester --academic-year=2024-2025 --semester=S1
  python manage.py lock_semester --academic-year=2024-2025 --semester=S1 --campus=3 --username=director
"""
import re

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.core.principal import ADMIN, Principal
from apps.domains.results.models import Semester
from apps.domains.results.models.result import ACADEMIC_YEAR_RE
from apps.domains.results.services.workflow_service import WorkflowService


class Command(BaseCommand):
    help = "Lock a semester and generate final transcripts (same closure as the API)."

    def add_arguments(self, parser):
        parser.add_argument("--academic-year", type=str, required=True, help="YYYY-YYYY")
        parser.add_argument(
            "--semester",
            type=str,
            required=True,
            choices=Semester.values,
        )
        parser.add_argument(
            "--campus",
            type=int,
            default=None,
            help="Campus id (default: every campus)",
        )
        parser.add_argument(
            "--username",
            type=str,
            default=None,
            help="Recorded as generated_by on transcripts",
        )

    def handle(self, *args, **options):
        academic_year = (options["academic_year"] or "").strip()
        if not re.match(ACADEMIC_YEAR_RE, academic_year):
            raise CommandError("academic year must be in format YYYY-YYYY (e.g. 2024-2025)")

        user_id = None
        username = options["username"]
        if username:
            user = get_user_model().objects.filter(username=username).first()
            if user is None:
                raise CommandError(f"user not found: {username}")
            user_id = user.pk

        principal = Principal(user_id=user_id, role=ADMIN)

        report = WorkflowService.lock_semester(
            principal=principal,
            academic_year=academic_year,
            semester=options["semester"],
            requested_campus_id=options["campus"],
        )

        self.stdout.write(
            f"locked={report['locked']} students={report['students']} "
            f"generated={report['generated']} errors={report['errors']}"
        )
        for failure in report["failures"]:
            self.stdout.write(self.style.WARNING(f"  student {failure['student']}: {failure['error']}"))

        if report["errors"]:
            self.stdout.write(self.style.WARNING("Done with errors."))
        else:
            self.stdout.write(self.style.SUCCESS("Done."))
