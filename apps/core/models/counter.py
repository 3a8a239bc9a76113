# PATH: apps/core/models/counter.py
from django.db import models


class Counter(models.Model):
    """
    Named monotonic counter (e.g. "result_2025").

    Incremented only through apps.core.services.sequencer (row lock + F()).
    No timestamps: purely technical row.
    """

    name = models.CharField(max_length=100, unique=True)
    seq = models.PositiveBigIntegerField(default=0)

    class Meta:
        app_label = "core"
        db_table = "core_counter"

    def __str__(self) -> str:
        return f"Counter<{self.name}>={self.seq}"
