from django.db import models

from apps.api.common.models import TimestampModel


class SchoolClass(TimestampModel):
    """
    Class (roster). Bulk result entry is limited to enrolled students.
    """

    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="classes",
    )
    name = models.CharField(max_length=100)
    academic_year = models.CharField(max_length=9, blank=True)

    students = models.ManyToManyField(
        "students.Student",
        blank=True,
        related_name="classes",
    )

    class Meta:
        ordering = ["name", "id"]
        verbose_name = "Class"
        verbose_name_plural = "Classes"

    def __str__(self):
        return self.name
