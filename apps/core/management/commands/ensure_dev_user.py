# PATH: apps/core/management/commands/ensure_dev_user.py
"""
로컬 개발용 캠퍼스 + 관리자 유저 채우기.

- Campus(code=--campus) 없으면 생성
- username 유저 있으면 비밀번호 / role / campus 만 맞추고, 없으면 생성

사용:
  python manage.py ensure_dev_user --campus=main --username=admin --password=admin1234
  python manage.py ensure_dev_user --campus=north --username=north_manager --role=CAMPUS_MANAGER
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.core.models import Campus, User


class Command(BaseCommand):
    help = "Ensure a dev campus + user with a role for local login."

    def add_arguments(self, parser):
        parser.add_argument(
            "--campus",
            type=str,
            default="main",
            help="Campus code (default: main)",
        )
        parser.add_argument(
            "--username",
            type=str,
            default="admin",
            help="Login username (default: admin)",
        )
        parser.add_argument(
            "--password",
            type=str,
            default="admin1234",
            help="Password (default: admin1234)",
        )
        parser.add_argument(
            "--role",
            type=str,
            default=User.Role.ADMIN,
            choices=User.Role.values,
            help="Role (default: ADMIN)",
        )
        parser.add_argument(
            "--name",
            type=str,
            default="개발용",
            help="Display name when creating user (default: 개발용)",
        )

    def handle(self, *args, **options):
        campus_code = (options["campus"] or "main").strip()
        username = (options["username"] or "admin").strip()
        password = (options["password"] or "admin1234").strip()
        role = options["role"]
        display_name = (options["name"] or "개발용").strip()

        UserModel = get_user_model()

        with transaction.atomic():
            # 1) Campus
            campus, campus_created = Campus.objects.get_or_create(
                code=campus_code,
                defaults={"name": campus_code, "is_active": True},
            )
            if campus_created:
                self.stdout.write(self.style.SUCCESS(f"Created Campus: code={campus.code}"))
            else:
                if not campus.is_active:
                    campus.is_active = True
                    campus.save(update_fields=["is_active"])
                self.stdout.write(f"Campus already exists: code={campus.code}")

            # 2) User
            user, user_created = UserModel.objects.get_or_create(
                username=username,
                defaults={
                    "is_active": True,
                    "is_staff": True,
                    "email": f"{username}@local.dev",
                    "name": display_name,
                },
            )
            user.set_password(password)
            user.is_active = True
            user.is_staff = True
            user.role = role
            user.campus = campus
            user.save(update_fields=["password", "is_active", "is_staff", "role", "campus"])

            if user_created:
                self.stdout.write(self.style.SUCCESS(f"Created User: username={username}, role={role}"))
            else:
                self.stdout.write(self.style.SUCCESS(f"Updated User: username={username}, role={role}, password set"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Done. Log in with username={username}, password={password} (campus {campus_code})"
            )
        )
