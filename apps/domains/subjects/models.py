from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.api.common.models import TimestampModel


class Subject(TimestampModel):
    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="subjects",
    )
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=30)

    # 성적표 가중 평균에 쓰이는 과목 계수 (없으면 결과 행의 coefficient 사용)
    coefficient = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["campus", "code"],
                name="uniq_subject_code_per_campus",
            ),
        ]

    def __str__(self):
        return f"{self.code} {self.name}"
