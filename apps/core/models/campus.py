# PATH: apps/core/models/campus.py
from django.db import models


class Campus(models.Model):
    """
    Campus == Tenant

    Every Result / GradingScale / FinalTranscript / class / teacher / student
    belongs to exactly one campus.
    """

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)

    phone = models.CharField(max_length=50, blank=True)
    address = models.CharField(max_length=255, blank=True)

    # ---------- capacity ----------
    max_students = models.PositiveIntegerField(null=True, blank=True)
    max_classes = models.PositiveIntegerField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        app_label = "core"
        verbose_name = "Campus"
        verbose_name_plural = "Campuses"

    def __str__(self):
        return self.name
