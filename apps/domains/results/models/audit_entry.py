# PATH: apps/domains/results/models/audit_entry.py
from __future__ import annotations

from django.conf import settings
from django.db import models


class AuditLogImmutable(Exception):
    pass


class AuditEntryQuerySet(models.QuerySet):
    """bulk update / delete 도 막는다 (로그는 늘어나기만 한다)"""

    def update(self, **kwargs):
        raise AuditLogImmutable("Audit entries cannot be modified.")

    def delete(self):
        raise AuditLogImmutable("Audit entries cannot be deleted.")


class ResultAuditEntry(models.Model):
    """
    Post-publication correction log (append-only).

    - 한 번 기록되면 수정/삭제 불가 (instance save/delete, queryset update/delete 모두 거부)
    - old_value / new_value 는 JSON (숫자 / 문자열 그대로)
    """

    result = models.ForeignKey(
        "results.Result",
        on_delete=models.PROTECT,
        related_name="audit_entries",
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
    )
    modified_at = models.DateTimeField(auto_now_add=True)

    field = models.CharField(max_length=50)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    reason = models.CharField(max_length=500)
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    objects = AuditEntryQuerySet.as_manager()

    class Meta:
        ordering = ["modified_at", "id"]
        verbose_name = "Result audit entry"
        verbose_name_plural = "Result audit entries"

    def __str__(self):
        return f"Result#{self.result_id} {self.field}: {self.old_value} -> {self.new_value}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise AuditLogImmutable("Audit entries cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditLogImmutable("Audit entries cannot be deleted.")
