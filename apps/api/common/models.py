# PATH: apps/api/common/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class TimestampModel(models.Model):
    """
    생성 / 수정 시간 자동 기록 추상 모델
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(TimestampModel):
    """
    Common base for every persisted entity.

    - timestamps
    - soft delete lives in SoftDeleteModel
    """
    class Meta:
        abstract = True


class SoftDeleteModel(BaseModel):
    """
    Rows are never physically removed.

    Uniqueness constraints on subclasses must carry
    condition=Q(is_deleted=False) so a deleted row frees its slot.
    """

    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        abstract = True

    def soft_delete(self, *, by_id=None) -> None:
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.deleted_by_id = by_id
        self.save(update_fields=["is_deleted", "deleted_at", "deleted_by", "updated_at"])
