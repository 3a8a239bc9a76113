from django.conf import settings
from django.db import models

from apps.api.common.models import TimestampModel


class Teacher(TimestampModel):
    # TEACHER principal 의 소유권 판정: result.teacher.user_id == principal.user_id
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="teacher_profile",
    )

    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="teachers",
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-id"]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"
