from django.conf import settings
from django.db import models

from apps.api.common.models import TimestampModel


class Student(TimestampModel):
    # =========================
    # 🔐 로그인 사용자 연결
    # =========================
    # STUDENT principal 은 user.student_profile 로 자기 자신을 식별한다
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="student_profile",
    )

    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="students",
    )

    # =========================
    # 기본 정보
    # =========================
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    matricule = models.CharField(max_length=50)

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["last_name", "first_name", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["campus", "matricule"],
                name="uniq_student_matricule_per_campus",
            ),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.matricule})"
