# shared_task 가 Django settings(CELERY_*)를 읽는 앱에 바인딩되도록 먼저 로드
from .celery import app as celery_app

__all__ = ("celery_app",)
