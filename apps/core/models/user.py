from django.contrib.auth.models import AbstractUser
from django.db import models


# --------------------------------------------------
# Custom User (AUTH_USER_MODEL)
# --------------------------------------------------

class User(AbstractUser):
    """
    Custom User 모델
    - AUTH_USER_MODEL = core.User
    - role / campus 는 요청 principal 의 원천 (apps.core.principal)
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        DIRECTOR = "DIRECTOR", "Director"
        CAMPUS_MANAGER = "CAMPUS_MANAGER", "Campus manager"
        TEACHER = "TEACHER", "Teacher"
        STUDENT = "STUDENT", "Student"

    name = models.CharField(max_length=50, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.STUDENT,
    )

    # global roles (ADMIN / DIRECTOR) may have no campus
    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="users",
    )

    class Meta:
        app_label = "core"
        db_table = "accounts_user"
        ordering = ["-id"]

    def __str__(self):
        return self.username
